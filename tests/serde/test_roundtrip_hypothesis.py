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

"""Property-based tests for parse/stringify round trips."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

import pytest
from hypothesis import given, settings, strategies as st

from jsonbinder.serde import Config, parse, stringify
from tests.serde._fixtures import Level, Measurement

pytestmark = pytest.mark.core


# ============================================================================
# Test Fixtures
# ============================================================================


@dataclass(frozen=True, slots=True)
class Shipment:
    """Record built from boxed values."""

    id: UUID
    weight: Decimal
    shipped: date
    updated: datetime


# ============================================================================
# Hypothesis Strategies
# ============================================================================

_finite_floats = st.floats(allow_nan=False, allow_infinity=False)

_measurements = st.builds(
    Measurement,
    name=st.text(max_size=20),
    count=st.integers(),
    ratio=_finite_floats,
    active=st.booleans(),
    tags=st.lists(st.text(max_size=5), max_size=4).map(tuple),
    scores=st.dictionaries(st.text(max_size=5), st.integers(), max_size=4),
    level=st.sampled_from(Level),
    note=st.none() | st.text(max_size=10),
)

_shipments = st.builds(
    Shipment,
    id=st.uuids(),
    weight=st.decimals(allow_nan=False, allow_infinity=False, places=3),
    shipped=st.dates(),
    updated=st.datetimes(),
)

_json_values = st.recursive(
    st.none() | st.booleans() | st.integers() | _finite_floats | st.text(max_size=10),
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(st.text(max_size=5), children, max_size=4),
    max_leaves=12,
)


# ============================================================================
# Properties
# ============================================================================


@given(_measurements)
@settings(max_examples=75)
def test_measurement_round_trip(measurement: Measurement) -> None:
    text = stringify(measurement)

    restored = parse(text, Config(main_type=Measurement))

    assert restored == measurement
    assert stringify(restored) == text


@given(_shipments)
@settings(max_examples=50)
def test_boxed_values_round_trip(shipment: Shipment) -> None:
    restored = parse(stringify(shipment), Config(main_type=Shipment))

    assert restored == shipment


@given(_json_values)
@settings(max_examples=75)
def test_untyped_trees_pass_through(value: object) -> None:
    text = json.dumps(value)

    assert parse(text) == value
    assert json.loads(stringify(value)) == value
