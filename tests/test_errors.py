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

"""Tests for the binding error hierarchy."""

from __future__ import annotations

import pytest

import jsonbinder
from jsonbinder import (
    BindError,
    IdentityTypeConflict,
    InvalidSubtype,
    MalformedJSON,
    SchemaError,
    UnknownProperties,
    UnresolvedObjectIds,
)
from jsonbinder.errors import __all__ as error_names
from jsonbinder.serde import parse

pytestmark = pytest.mark.core


def test_message_renders_location_details() -> None:
    error = BindError("Bad value", type_name="User", path="$.id", fragment={"id": "x"})

    assert str(error) == 'Bad value [type=User, path=$.id, input={"id": "x"}]'
    assert error.message == "Bad value"
    assert error.snippet == '{"id": "x"}'


def test_message_without_details_is_unchanged() -> None:
    error = BindError("Plain")

    assert str(error) == "Plain"
    assert error.snippet is None


def test_fragment_none_is_rendered() -> None:
    assert str(BindError("Null", fragment=None)) == "Null [input=null]"


def test_snippets_are_bounded() -> None:
    error = BindError("Long", fragment="x" * 500)

    assert error.snippet is not None
    assert len(error.snippet) == 200
    assert error.snippet.endswith("...")


def test_unserializable_fragments_fall_back_to_repr() -> None:
    marker = object()

    error = BindError("Odd", fragment={"value": marker})

    assert error.snippet == f'{{"value": "{marker!r}"}}'


def test_structured_attributes() -> None:
    unknown = UnknownProperties(["b", "a"], type_name="User")
    invalid = InvalidSubtype("bird", ["dog", "cat"])
    unresolved = UnresolvedObjectIds({": 2", ": 1"})

    assert unknown.keys == ("b", "a")
    assert str(unknown).startswith("Unknown properties ['b', 'a']")
    assert (invalid.type_id, invalid.known_ids) == ("bird", ("dog", "cat"))
    assert unresolved.ids == (": 1", ": 2")


@pytest.mark.parametrize("name", [name for name in error_names if name != "BindError"])
def test_every_error_is_a_bind_error(name: str) -> None:
    error_type = getattr(jsonbinder, name)

    assert issubclass(error_type, BindError)
    assert issubclass(error_type, ValueError | TypeError | LookupError)


def test_builtin_bases() -> None:
    assert issubclass(UnresolvedObjectIds, LookupError)
    assert issubclass(IdentityTypeConflict, TypeError)
    assert issubclass(SchemaError, TypeError)
    assert issubclass(UnknownProperties, ValueError)


def test_malformed_json_is_reported_before_binding() -> None:
    with pytest.raises(MalformedJSON) as excinfo:
        _ = parse('{"id": ')

    assert isinstance(excinfo.value.__cause__, ValueError)
