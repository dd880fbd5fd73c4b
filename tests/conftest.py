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

from __future__ import annotations

from collections.abc import Iterator

import pytest

from jsonbinder.serde import DEFAULT_CACHE


@pytest.fixture(autouse=True)
def fresh_schema_cache() -> Iterator[None]:
    """Start every test with an empty process-wide schema cache."""

    DEFAULT_CACHE.clear()
    yield
    DEFAULT_CACHE.clear()
