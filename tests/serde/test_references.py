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

"""Tests for managed/back references and injected values."""

from __future__ import annotations

import json

import pytest

from jsonbinder.serde import Config, parse, stringify
from tests.serde._fixtures import Child, Order, Parent, Team

pytestmark = pytest.mark.core


def _family() -> Parent:
    parent = Parent()
    parent.name = "p"
    for name in ("c1", "c2"):
        child = Child()
        child.name = name
        child.parent = parent
        parent.children.append(child)
    return parent


# =============================================================================
# Managed and back references
# =============================================================================


def test_back_reference_is_not_written() -> None:
    assert json.loads(stringify(_family())) == {
        "name": "p",
        "children": [{"name": "c1"}, {"name": "c2"}],
    }


def test_back_reference_is_linked_after_parsing() -> None:
    parent = parse(
        '{"name": "p", "children": [{"name": "c1"}, {"name": "c2"}]}',
        Config(main_type=Parent),
    )

    assert [child.name for child in parent.children] == ["c1", "c2"]
    assert all(child.parent is parent for child in parent.children)


def test_back_reference_input_is_ignored() -> None:
    child = parse('{"name": "c", "parent": {"name": "x"}}', Config(main_type=Child))

    assert child.parent is None


def test_single_valued_managed_reference() -> None:
    team = parse('{"name": "t", "lead": {"name": "c"}}', Config(main_type=Team))

    assert team.lead is not None
    assert team.lead.parent is team


def test_reference_decorator_can_be_disabled() -> None:
    config = Config(main_type=Parent, decorators_enabled={"REFERENCE": False})

    parent = parse('{"name": "p", "children": [{"name": "c1"}]}', config)

    assert parent.children[0].parent is None


# =============================================================================
# Injection
# =============================================================================


def test_injected_value_fills_absent_property() -> None:
    order = parse(
        '{"id": 1}',
        Config(main_type=Order, injectable_values={"now": "T0", "region": "us"}),
    )

    assert order == Order(id=1, clock="T0", region="us")


def test_input_wins_over_injection_by_default() -> None:
    order = parse(
        '{"id": 1, "clock": "T9"}',
        Config(main_type=Order, injectable_values={"now": "T0"}),
    )

    assert order.clock == "T9"


def test_injection_can_override_input() -> None:
    order = parse(
        '{"id": 1, "region": "ca"}',
        Config(main_type=Order, injectable_values={"region": "us"}),
    )

    assert order.region == "us"


def test_missing_injectable_keeps_default() -> None:
    order = parse('{"id": 1, "region": "ca"}', Config(main_type=Order))

    assert order == Order(id=1, clock="", region="ca")


def test_inject_decorator_can_be_disabled() -> None:
    order = parse(
        '{"id": 1}',
        Config(
            main_type=Order,
            injectable_values={"now": "T0"},
            decorators_enabled={"INJECT": False},
        ),
    )

    assert order.clock == ""
