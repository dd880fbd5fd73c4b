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

"""Tests for property-level metadata: views, naming, filtering and hooks."""

from __future__ import annotations

import json
from typing import Annotated

import pytest

from jsonbinder import (
    IdentityInfo,
    JsonProperty,
    Nulls,
    NullValueRejected,
    RequiredPropertyMissing,
    UnknownProperties,
    json_type,
)
from jsonbinder.serde import Config, parse, stringify
from tests.serde._fixtures import (
    Account,
    Badge,
    Bag,
    Credentials,
    Currency,
    Customer,
    Envelope,
    FullName,
    Gadget,
    Internal,
    Inventory,
    Invoice,
    Member,
    Node,
    Profile,
    Public,
    Reading,
    Report,
    Secret,
    User,
    Vault,
)

pytestmark = pytest.mark.core


@json_type(identity=IdentityInfo(property="id"))
class Link:
    id: int = 0
    next: Annotated[Link | None, JsonProperty(nulls=Nulls.FAIL)] = None


class Catalog:
    entry: Annotated[Node | None, JsonProperty(content_nulls=Nulls.FAIL)] = None


# =============================================================================
# Views
# =============================================================================


def test_view_restricts_output_to_matching_members() -> None:
    profile = Profile(id=1, email="ada@example.com", password="hunter2")
    config = Config(
        views=(Public,), serialization={"DEFAULT_VIEW_INCLUSION": False}
    )

    assert json.loads(stringify(profile, config)) == {"id": 1}


def test_view_hierarchy_includes_base_view_members() -> None:
    profile = Profile(id=1, email="ada@example.com", password="hunter2")
    config = Config(
        views=(Internal,), serialization={"DEFAULT_VIEW_INCLUSION": False}
    )

    assert json.loads(stringify(profile, config)) == {
        "id": 1,
        "email": "ada@example.com",
    }


def test_members_without_views_follow_default_inclusion() -> None:
    profile = Profile(id=1, email="ada@example.com", password="hunter2")

    assert json.loads(stringify(profile, Config(views=(Public,)))) == {
        "id": 1,
        "password": "hunter2",
    }
    assert json.loads(stringify(profile)) == {
        "id": 1,
        "email": "ada@example.com",
        "password": "hunter2",
    }


def test_view_applies_when_parsing() -> None:
    profile = parse(
        '{"id": 1, "email": "ada@example.com", "password": "hunter2"}',
        Config(
            main_type=Profile,
            views=(Public,),
            deserialization={"DEFAULT_VIEW_INCLUSION": False},
        ),
    )

    assert profile == Profile(id=1, email="", password="")


def test_view_decorator_can_be_disabled() -> None:
    profile = Profile(id=1, email="e", password="p")
    config = Config(
        views=(Public,),
        serialization={"DEFAULT_VIEW_INCLUSION": False},
        decorators_enabled={"VIEW": False},
    )

    assert json.loads(stringify(profile, config)) == {
        "id": 1,
        "email": "e",
        "password": "p",
    }


# =============================================================================
# Names, aliases and key matching
# =============================================================================


def test_naming_strategy_and_aliases_on_input() -> None:
    customer = parse(
        '{"firstName": "Ada", "surname": "Lovelace", "zip-code": "N1"}',
        Config(main_type=Customer),
    )

    assert customer == Customer(first_name="Ada", last_name="Lovelace", zip_code="N1")


def test_loose_matching_requires_naming_strategy() -> None:
    with pytest.raises(UnknownProperties) as excinfo:
        _ = parse('{"id": 1, "mail": "m", "ID": 2}', Config(main_type=User))

    assert excinfo.value.keys == ("ID",)


def test_case_insensitive_properties() -> None:
    user = parse(
        '{"ID": 3, "MAIL": "m", "Tags": ["x"]}',
        Config(
            main_type=User,
            deserialization={"ACCEPT_CASE_INSENSITIVE_PROPERTIES": True},
        ),
    )

    assert user == User(id=3, email="m", tags=["x"])


def test_aliases_can_be_disabled() -> None:
    with pytest.raises(UnknownProperties):
        _ = parse(
            '{"firstName": "Ada", "lastName": "L", "surname": "L"}',
            Config(main_type=Customer, decorators_enabled={"ALIAS": False}),
        )


def test_context_groups_activate_property_metadata() -> None:
    report = Report(title="Q1", total=5)

    assert json.loads(stringify(report)) == {"title": "Q1", "total": 5}
    assert json.loads(stringify(report, Config(context_groups=("v2",)))) == {
        "title": "Q1",
        "sum": 5,
    }
    assert parse(
        '{"title": "Q1", "sum": 5}',
        Config(main_type=Report, context_groups=("v2",)),
    ) == report


def test_context_groups_activate_class_metadata() -> None:
    invoice = Invoice(invoiceNumber="A-1", dueDate="2024-05-01")

    assert json.loads(stringify(invoice)) == {
        "invoiceNumber": "A-1",
        "dueDate": "2024-05-01",
    }
    assert json.loads(stringify(invoice, Config(context_groups=("legacy",)))) == {
        "invoice_number": "A-1",
        "due_date": "2024-05-01",
    }


# =============================================================================
# Unwrapping
# =============================================================================


def test_unwrapped_property_is_flattened_with_prefix() -> None:
    member = Member(name=FullName(first="Ada", last="Lovelace"), age=36)

    text = stringify(member)

    assert json.loads(text) == {"n_first": "Ada", "n_last": "Lovelace", "age": 36}
    assert parse(text, Config(main_type=Member)) == member


def test_nested_unwrapping_combines_prefix_and_suffix() -> None:
    badge = Badge(member=Member(name=FullName(first="A", last="B"), age=3), level=2)

    text = stringify(badge)

    assert json.loads(text) == {
        "n_first_m": "A",
        "n_last_m": "B",
        "age_m": 3,
        "level": 2,
    }
    assert parse(text, Config(main_type=Badge)) == badge


def test_unwrapped_decorator_can_be_disabled() -> None:
    member = Member(name=FullName(first="Ada", last="L"), age=1)

    assert json.loads(
        stringify(member, Config(decorators_enabled={"UNWRAPPED": False}))
    ) == {"name": {"first": "Ada", "last": "L"}, "age": 1}


# =============================================================================
# Ignoring, access and raw values
# =============================================================================


def test_ignored_properties_are_dropped_in_both_directions() -> None:
    credentials = parse(
        '{"user": "u", "secret": "s", "note": "n", "legacy": 1}',
        Config(main_type=Credentials),
    )

    assert credentials == Credentials(user="u", secret="", note="")


def test_ignored_type_is_skipped() -> None:
    vault = Vault(label="main", secret=Secret(token="t"))

    assert json.loads(stringify(vault)) == {"label": "main"}
    assert parse(
        '{"label": "main", "secret": {"token": "t"}}', Config(main_type=Vault)
    ) == Vault(label="main")


def test_access_controls_direction() -> None:
    account = parse(
        '{"id": 5, "password": "p", "name": "n"}', Config(main_type=Account)
    )

    assert account == Account(id=0, password="p", name="n")
    assert json.loads(stringify(Account(id=5, password="p", name="n"))) == {
        "id": 5,
        "name": "n",
    }


def test_raw_value_is_kept_as_json_text() -> None:
    envelope = parse(
        '{"kind": "k", "payload": {"a": [1, 2]}}', Config(main_type=Envelope)
    )

    assert json.loads(envelope.payload) == {"a": [1, 2]}
    assert json.loads(stringify(envelope)) == {"kind": "k", "payload": {"a": [1, 2]}}


# =============================================================================
# Accessors and dynamic properties
# =============================================================================


def test_accessor_properties() -> None:
    gadget = parse('{"serial": "XY-9", "checksum": 99}', Config(main_type=Gadget))

    assert gadget.serial == "XY-9"
    assert json.loads(stringify(gadget)) == {"serial": "XY-9", "checksum": 4}


def test_required_accessor() -> None:
    with pytest.raises(RequiredPropertyMissing) as excinfo:
        _ = parse("{}", Config(main_type=Gadget))

    assert excinfo.value.type_name == "Gadget"


def test_required_field() -> None:
    with pytest.raises(RequiredPropertyMissing):
        _ = parse('{"id": 1}', Config(main_type=User))


def test_any_setter_and_getter() -> None:
    bag = parse('{"name": "b", "color": "red", "size": 3}', Config(main_type=Bag))

    assert bag.name == "b"
    assert bag.extras == {"color": "red", "size": 3}
    assert json.loads(stringify(bag)) == {"name": "b", "color": "red", "size": 3}


def test_any_decorator_can_be_disabled() -> None:
    with pytest.raises(UnknownProperties):
        _ = parse(
            '{"name": "b", "color": "red"}',
            Config(main_type=Bag, decorators_enabled={"ANY": False}),
        )


# =============================================================================
# Null policies and hooks
# =============================================================================


def test_null_policies() -> None:
    inventory = parse(
        '{"items": ["a", null, "b"], "labels": {"k": "v"}, "note": null}',
        Config(main_type=Inventory),
    )

    assert inventory.items == ["a", "b"]
    assert inventory.labels == {"k": "v"}
    assert inventory.note == "default"


def test_null_policy_failures_name_the_location() -> None:
    with pytest.raises(NullValueRejected) as excinfo:
        _ = parse('{"labels": {"k": null}}', Config(main_type=Inventory))
    assert "key 'k'" in str(excinfo.value)

    with pytest.raises(NullValueRejected) as excinfo:
        _ = parse('{"owner": null}', Config(main_type=Inventory))
    assert "owner" in str(excinfo.value)


def test_null_policies_see_bound_values() -> None:
    config = Config(
        main_type=Link, deserialization={"FAIL_ON_UNRESOLVED_OBJECT_IDS": False}
    )

    with pytest.raises(NullValueRejected):
        _ = parse('{"id": 1, "next": 99}', config)

    inventory = parse(
        '{"note": ""}',
        Config(
            main_type=Inventory,
            deserialization={"ACCEPT_EMPTY_STRING_AS_NULL_OBJECT": True},
        ),
    )
    assert inventory.note == "default"


def test_content_nulls_ignore_bean_members() -> None:
    catalog = parse(
        '{"entry": {"id": 1, "name": "a", "next": null}}', Config(main_type=Catalog)
    )

    assert catalog.entry is not None
    assert catalog.entry.next is None


def test_property_hooks() -> None:
    reading = parse(
        '{"value": "21.5C", "labels": {"a": 1}, "samples": [-1, 2]}',
        Config(main_type=Reading),
    )

    assert reading == Reading(value=21.5, labels={"A": 1}, samples=[1, 2])
    assert json.loads(stringify(reading)) == {
        "value": "21.5C",
        "labels": {"a": 1},
        "samples": [-1, -2],
    }


def test_class_hooks() -> None:
    assert parse('"usd"', Config(main_type=Currency)) == Currency(code="usd")
    assert parse('{"code": "eur"}', Config(main_type=Currency)) == Currency(code="eur")
    assert stringify(Currency(code="eur")) == '{"code": "EUR"}'


def test_custom_decorator_can_be_disabled() -> None:
    reading = Reading(value=1.5)

    assert json.loads(
        stringify(reading, Config(decorators_enabled={"CUSTOM": False}))
    ) == {"value": 1.5, "labels": {}, "samples": []}
