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

"""Tests for frozen dataclass helpers."""

from __future__ import annotations

from dataclasses import FrozenInstanceError, field

import pytest

from jsonbinder.dataclasses import FrozenDataclass, non_default_fields

pytestmark = pytest.mark.core


@FrozenDataclass()
class Options:
    name: str = "default"
    tags: tuple[str, ...] = ()
    extras: dict[str, int] = field(default_factory=dict)


@FrozenDataclass(kw_only=False)
class Pair:
    left: int
    right: int = 0


def test_instances_are_frozen_and_slotted() -> None:
    options = Options(name="x")

    with pytest.raises(FrozenInstanceError):
        options.name = "y"  # pyright: ignore[reportAttributeAccessIssue]
    assert not hasattr(options, "__dict__")


def test_keyword_only_by_default() -> None:
    with pytest.raises(TypeError):
        _ = Options("x")  # pyright: ignore[reportCallIssue]

    assert Pair(1, 2) == Pair(left=1, right=2)


def test_update_returns_modified_copy() -> None:
    original = Options(name="a", tags=("t",))

    changed = original.update(name="b")  # pyright: ignore[reportAttributeAccessIssue]

    assert changed == Options(name="b", tags=("t",))
    assert original.name == "a"
    assert changed is not original


def test_non_default_fields() -> None:
    assert non_default_fields(Options()) == {}
    assert non_default_fields(Options(tags=("a",), extras={"k": 1})) == {
        "tags": ("a",),
        "extras": {"k": 1},
    }
    assert non_default_fields(Pair(3)) == {"left": 3}
