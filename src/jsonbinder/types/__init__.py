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

"""Type aliases describing the JSON value trees jsonbinder reads and writes.

:data:`JSONValue`
    The recursive union of all JSON-compatible types::

        type JSONValue = str | int | float | bool | None | JSONObject | JSONArray

:data:`JSONObject`
    A mapping with string keys and JSON values.

:data:`JSONArray`
    A sequence of JSON values.
"""

from __future__ import annotations

from .json import JSONArray, JSONObject, JSONPrimitive, JSONValue

__all__ = [
    "JSONArray",
    "JSONObject",
    "JSONPrimitive",
    "JSONValue",
]
