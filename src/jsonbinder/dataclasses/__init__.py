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

"""Frozen dataclass helpers used for jsonbinder's metadata and contexts."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import MISSING, dataclass, fields, replace
from typing import Any, TypedDict, Unpack, cast, dataclass_transform

__all__ = ["FrozenDataclass", "non_default_fields"]


class DataclassOptions(TypedDict, total=False):
    init: bool
    repr: bool
    eq: bool
    kw_only: bool
    slots: bool


@dataclass_transform(frozen_default=True)
def FrozenDataclass[T](  # noqa: N802
    **dataclass_kwargs: Unpack[DataclassOptions],
) -> Callable[[type[T]], type[T]]:
    """Dataclass decorator with frozen, slotted defaults plus an ``update`` helper.

    ``update(**changes)`` returns a modified copy via :func:`dataclasses.replace`.
    Metadata records and transform contexts are built with this decorator so
    that derived copies never share state with the value they came from.
    """

    options: dict[str, object] = {
        "frozen": True,
        "slots": True,
        "kw_only": True,
        **dataclass_kwargs,
    }

    def decorator(cls: type[T]) -> type[T]:
        dataclass_cls = cast(Callable[[type[T]], type[T]], dataclass(**options))(cls)
        cast(Any, dataclass_cls).update = _update
        return dataclass_cls

    return decorator


def _update[T](self: T, **changes: object) -> T:
    return replace(cast(Any, self), **changes)


def non_default_fields(instance: object) -> dict[str, object]:
    """Return the fields of ``instance`` whose values differ from their defaults.

    Used to layer stacked declarations: a later declaration only overrides the
    attributes it explicitly sets.
    """

    changed: dict[str, object] = {}
    for field_def in fields(cast(Any, instance)):
        value = getattr(instance, field_def.name)
        default = (
            field_def.default_factory()
            if field_def.default_factory is not MISSING
            else field_def.default
        )
        if value != default:
            changed[field_def.name] = value
    return changed
