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

"""Tests for the public parse/stringify entry points and call configuration."""

from __future__ import annotations

import json
import logging
import math
import sys
from datetime import UTC, date, datetime

import pytest

from jsonbinder import (
    BindError,
    MalformedJSON,
    RootNameMismatch,
    SelfReferenceError,
    UnknownProperties,
)
from jsonbinder.serde import Config, CustomMapper, ObjectMapper, parse, stringify
from tests.serde._fixtures import (
    Address,
    Counter,
    Credentials,
    Customer,
    Event,
    Loop,
    Point,
    User,
    user_payload,
)

pytestmark = pytest.mark.core


# =============================================================================
# Basic binding
# =============================================================================


def test_parse_binds_nested_records() -> None:
    user = parse(json.dumps(user_payload()), Config(main_type=User))

    assert user == User(
        id=1,
        email="ada@example.com",
        address=Address(street="1 Loop Rd", city="London"),
        tags=["admin"],
    )


def test_stringify_uses_wire_names_in_declaration_order() -> None:
    user = User(id=1, email="ada@example.com", address=None)

    assert stringify(user) == '{"id": 1, "mail": "ada@example.com", "address": null, "tags": []}'


def test_round_trip_preserves_records() -> None:
    user = parse(json.dumps(user_payload()), Config(main_type=User))

    assert json.loads(stringify(user)) == user_payload()
    assert parse(stringify(user), Config(main_type=User)) == user


def test_parse_without_main_type_returns_plain_tree() -> None:
    assert parse('{"a": [1, 2.5, "x", null, true]}') == {
        "a": [1, 2.5, "x", None, True]
    }


def test_parse_accepts_generic_main_type() -> None:
    users = parse(
        '[{"id": 1, "mail": "a@b"}, {"id": 2, "mail": "c@d"}]',
        Config(main_type=list[User]),
    )

    assert [user.id for user in users] == [1, 2]
    assert all(isinstance(user, User) for user in users)


def test_stringify_scalars_and_none() -> None:
    assert stringify(None) == "null"
    assert stringify(42) == "42"
    assert stringify("héllo") == '"héllo"'


def test_stringify_indent_is_forwarded() -> None:
    assert stringify({"a": 1}, indent=2) == '{\n  "a": 1\n}'


def test_malformed_json_fails_before_binding() -> None:
    with pytest.raises(MalformedJSON) as excinfo:
        _ = parse("{not json", Config(main_type=User))

    assert isinstance(excinfo.value, BindError)
    assert isinstance(excinfo.value, ValueError)


def test_parse_accepts_bytes() -> None:
    assert parse(b'{"x": 1, "y": 2}', Config(main_type=Point)) == Point(x=1, y=2)


def test_unknown_properties_are_aggregated() -> None:
    with pytest.raises(UnknownProperties) as excinfo:
        _ = parse(
            '{"id": 1, "mail": "m", "a": 1, "b": 2}', Config(main_type=User)
        )

    assert excinfo.value.keys == ("a", "b")
    assert excinfo.value.type_name == "User"
    assert excinfo.value.path == "$"


def test_unknown_properties_tolerated_when_disabled() -> None:
    user = parse(
        '{"id": 1, "mail": "m", "extra": true}',
        Config(main_type=User, deserialization={"FAIL_ON_UNKNOWN_PROPERTIES": False}),
    )

    assert user == User(id=1, email="m")


# =============================================================================
# ObjectMapper defaults
# =============================================================================


def test_object_mapper_merges_default_configuration() -> None:
    mapper = ObjectMapper(
        parser_config=Config(deserialization={"FAIL_ON_UNKNOWN_PROPERTIES": False})
    )

    user = mapper.parse('{"id": 1, "mail": "m", "extra": 1}', Config(main_type=User))

    assert user == User(id=1, email="m")
    with pytest.raises(UnknownProperties):
        _ = mapper.parse(
            '{"id": 1, "mail": "m", "extra": 1}',
            Config(main_type=User, deserialization={"FAIL_ON_UNKNOWN_PROPERTIES": True}),
        )


def test_object_mapper_value_tree_api(isolated_mapper: ObjectMapper) -> None:
    point = isolated_mapper.read_value({"x": 3, "y": 4}, Config(main_type=Point))

    assert point == Point(x=3, y=4)
    assert isolated_mapper.write_value(point) == {"x": 3, "y": 4}
    assert Point in isolated_mapper.cache


def test_object_mapper_stringifier_defaults() -> None:
    mapper = ObjectMapper(
        stringifier_config=Config(serialization={"WRAP_ROOT_VALUE": True})
    )

    assert mapper.stringify(Point(x=1, y=2)) == '{"point": {"x": 1, "y": 2}}'


# =============================================================================
# Serialization features
# =============================================================================


def test_wrap_root_value_uses_class_name_without_root_name() -> None:
    text = stringify(
        Address(street="s", city="c"), Config(serialization={"WRAP_ROOT_VALUE": True})
    )

    assert json.loads(text) == {"Address": {"street": "s", "city": "c"}}


def test_wrap_root_value_ignores_root_name_when_disabled() -> None:
    text = stringify(
        Point(x=1, y=2),
        Config(
            serialization={"WRAP_ROOT_VALUE": True},
            decorators_enabled={"ROOT_NAME": False},
        ),
    )

    assert json.loads(text) == {"Point": {"x": 1, "y": 2}}


def test_unwrap_root_value() -> None:
    config = Config(main_type=Point, deserialization={"UNWRAP_ROOT_VALUE": True})

    assert parse('{"point": {"x": 1, "y": 2}}', config) == Point(x=1, y=2)
    with pytest.raises(RootNameMismatch):
        _ = parse('{"Point": {"x": 1, "y": 2}}', config)
    with pytest.raises(RootNameMismatch):
        _ = parse('{"point": {"x": 1, "y": 2}, "other": 1}', config)


def test_order_map_entries_by_keys() -> None:
    payload = {"b": 1, "a": 2}

    assert stringify(payload) == '{"b": 1, "a": 2}'
    assert (
        stringify(payload, Config(serialization={"ORDER_MAP_ENTRIES_BY_KEYS": True}))
        == '{"a": 2, "b": 1}'
    )


def test_dates_written_as_timestamps() -> None:
    moment = datetime(2024, 1, 1, tzinfo=UTC)

    assert stringify(moment) == '"2024-01-01T00:00:00+00:00"'
    assert (
        stringify(moment, Config(serialization={"WRITE_DATES_AS_TIMESTAMPS": True}))
        == "1704067200000"
    )


def test_non_finite_floats() -> None:
    assert stringify(math.nan, Config(serialization={"WRITE_NAN_AS_ZERO": True})) == "0"
    positive = stringify(
        math.inf,
        Config(serialization={"WRITE_POSITIVE_INFINITY_AS_NUMBER_MAX_VALUE": True}),
    )
    negative = stringify(
        -math.inf,
        Config(serialization={"WRITE_NEGATIVE_INFINITY_AS_NUMBER_MIN_VALUE": True}),
    )

    assert json.loads(positive) == sys.float_info.max
    assert json.loads(negative) == -sys.float_info.max


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
def test_unmapped_non_finite_floats_are_written_as_null(value: float) -> None:
    assert stringify(value) == "null"
    assert stringify({"ratio": value}) == '{"ratio": null}'


def test_null_defaults_on_serialize() -> None:
    counter = Counter(count=None, label=None, ratio=None)  # pyright: ignore[reportArgumentType]

    assert json.loads(stringify(counter)) == {
        "count": None,
        "label": None,
        "ratio": None,
        "enabled": False,
    }
    assert json.loads(
        stringify(
            counter, Config(serialization={"SET_DEFAULT_VALUE_FOR_NUMBER_ON_NULL": True})
        )
    ) == {"count": 0, "label": None, "ratio": None, "enabled": False}
    assert json.loads(
        stringify(
            counter,
            Config(serialization={"SET_DEFAULT_VALUE_FOR_PRIMITIVES_ON_NULL": True}),
        )
    ) == {"count": 0, "label": "", "ratio": None, "enabled": False}


def test_self_reference_without_identity() -> None:
    loop = Loop()
    loop.name = "ouroboros"
    loop.me = loop

    with pytest.raises(SelfReferenceError):
        _ = stringify(loop)
    assert json.loads(
        stringify(loop, Config(serialization={"FAIL_ON_SELF_REFERENCES": False}))
    ) == {"name": "ouroboros", "me": None}


def test_shared_value_without_cycle_is_written_twice() -> None:
    shared = Address(street="s", city="c")

    assert json.loads(stringify([shared, shared])) == [
        {"street": "s", "city": "c"},
        {"street": "s", "city": "c"},
    ]


# =============================================================================
# Custom mappers
# =============================================================================


def test_custom_serializer_by_class() -> None:
    config = Config(
        serializers=(
            CustomMapper(lambda key, value, ctx: value.strftime("%d/%m/%Y"), cls=date),
        )
    )

    text = stringify(Event(title="launch", when=date(2024, 2, 1)), config)

    assert json.loads(text) == {"title": "launch", "when": "01/02/2024"}


def test_custom_deserializer_receives_wire_key() -> None:
    keys: list[str | None] = []

    def read_date(key: str | None, value: object, ctx: object) -> date:
        keys.append(key)
        return datetime.strptime(str(value), "%d/%m/%Y").date()

    event = parse(
        '{"title": "launch", "when": "01/02/2024"}',
        Config(main_type=Event, deserializers=(CustomMapper(read_date, cls=date),)),
    )

    assert event == Event(title="launch", when=date(2024, 2, 1))
    assert keys == ["when"]


def test_custom_mappers_run_in_order() -> None:
    late = CustomMapper(lambda key, value, ctx: "late", cls=str, order=1)
    early = CustomMapper(lambda key, value, ctx: "early", cls=str, order=0)

    assert parse('"x"', Config(main_type=str, deserializers=(late, early))) == "early"


def test_custom_mapper_predicate() -> None:
    shout = CustomMapper(
        lambda key, value, ctx: str(value).upper(),
        predicate=lambda value: isinstance(value, str) and value.startswith("!"),
    )

    assert json.loads(stringify(["!a", "b"], Config(serializers=(shout,)))) == [
        "!A",
        "b",
    ]


# =============================================================================
# Per-type overrides and decorator toggles
# =============================================================================


def test_for_type_override_applies_to_matching_nodes() -> None:
    config = Config(
        main_type=User,
        for_type={Address: Config(deserialization={"FAIL_ON_UNKNOWN_PROPERTIES": False})},
    )

    user = parse(
        '{"id": 1, "mail": "m", "address": {"street": "s", "city": "c", "zip": "z"}}',
        config,
    )

    assert user.address == Address(street="s", city="c")
    with pytest.raises(UnknownProperties):
        _ = parse('{"id": 1, "mail": "m", "zip": "z"}', config)


def test_decorators_can_be_disabled() -> None:
    credentials = Credentials(user="u", secret="s", note="n")

    assert json.loads(stringify(credentials)) == {"user": "u"}
    assert json.loads(
        stringify(credentials, Config(decorators_enabled={"IGNORE": False}))
    ) == {"user": "u", "secret": "s", "note": "n"}


def test_naming_decorator_toggle() -> None:
    customer = Customer(first_name="Ada", last_name="Lovelace", zip_code="1")

    assert json.loads(stringify(customer)) == {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "zipCode": "1",
    }
    assert json.loads(
        stringify(customer, Config(decorators_enabled={"NAMING": False}))
    ) == {"first_name": "Ada", "last_name": "Lovelace", "zip_code": "1"}


# =============================================================================
# Diagnostics
# =============================================================================


def test_engine_emits_structured_debug_events(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="jsonbinder")

    _ = parse('{"x": 1, "y": 2}', Config(main_type=Point))
    _ = stringify(Point(x=1, y=2))

    events = [getattr(record, "event", None) for record in caplog.records]
    assert "schema.built" in events
    assert "parse.completed" in events
    assert "stringify.completed" in events
    built = next(
        record for record in caplog.records if getattr(record, "event", None) == "schema.built"
    )
    assert getattr(built, "context")["type"] == "Point"
    assert getattr(built, "context")["component"] == "schema_cache"
