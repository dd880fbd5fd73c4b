# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Shared fixtures for the binding engine tests."""

from __future__ import annotations

import pytest

from jsonbinder.serde import ObjectMapper, SchemaCache


@pytest.fixture
def isolated_mapper() -> ObjectMapper:
    """Return a mapper with its own schema cache."""

    return ObjectMapper(cache=SchemaCache())
