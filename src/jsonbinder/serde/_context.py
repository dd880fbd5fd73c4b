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

"""Call configuration, context merging and per-node transform contexts."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Final

from ..annotations import ClassOptions
from ..dataclasses import FrozenDataclass
from ..features import (
    DEFAULT_DESERIALIZATION_FEATURES,
    DEFAULT_SERIALIZATION_FEATURES,
    Decorator,
    DeserializationFeature,
    SerializationFeature,
)
from ._cache import SchemaCache
from ._schema import ClassSchema, PropertyDescriptor
from ._types import OBJECT, TypeRef

_EMPTY_OVERLAY: Final[Mapping[type[Any], Overlay]] = MappingProxyType({})

type MapperFn = Callable[[str | None, object, TransformContext], object]


@FrozenDataclass(kw_only=False)
class CustomMapper:
    """Custom (de)serializer registered on a :class:`Config`.

    A mapper applies when the current target class is a subclass of ``cls``
    or when ``predicate`` accepts the raw value. Mappers run in ascending
    ``order``; the first applicable one replaces the rest of the pipeline and
    is called as ``fn(key, value, context)``.
    """

    fn: MapperFn
    cls: type[Any] | None = None
    predicate: Callable[[object], bool] | None = None
    order: int = 0

    def applies(self, cls: type[Any], value: object) -> bool:
        if self.cls is not None and issubclass(cls, self.cls):
            return True
        return self.predicate is not None and self.predicate(value)


@FrozenDataclass()
class Config:
    """Partial call configuration.

    Every field defaults to ``None`` meaning "not set"; :func:`merge_contexts`
    layers partial configurations into the effective one for a call.
    """

    main_type: object | None = None
    deserialization: Mapping[str, bool] | None = None
    serialization: Mapping[str, bool] | None = None
    views: tuple[type[Any], ...] | None = None
    context_groups: tuple[str, ...] | None = None
    injectable_values: Mapping[str, object] | None = None
    deserializers: tuple[CustomMapper, ...] | None = None
    serializers: tuple[CustomMapper, ...] | None = None
    for_type: Mapping[type[Any], Config] | None = None
    creator_name: str | None = None
    decorators_enabled: Mapping[str, bool] | None = None

    def __post_init__(self) -> None:
        for name in ("views", "context_groups", "deserializers", "serializers"):
            value = getattr(self, name)
            if isinstance(value, type):
                object.__setattr__(self, name, (value,))
            elif value is not None and not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))


def _concat[T](
    left: tuple[T, ...] | None, right: tuple[T, ...] | None
) -> tuple[T, ...] | None:
    if right is None:
        return left
    if left is None:
        return right
    return (*left, *right)


def _shallow_merge[K, V](
    left: Mapping[K, V] | None, right: Mapping[K, V] | None
) -> Mapping[K, V] | None:
    if right is None:
        return left
    if left is None:
        return dict(right)
    return {**left, **right}


def _sorted_mappers(
    mappers: tuple[CustomMapper, ...] | None,
) -> tuple[CustomMapper, ...] | None:
    if mappers is None:
        return None
    return tuple(sorted(mappers, key=lambda mapper: mapper.order))


def merge_contexts(partials: Iterable[Config | None]) -> Config:
    """Merge ``partials`` in order into one effective :class:`Config`.

    Scalars are last-write-wins, sequences concatenate (mapper lists are then
    stable-sorted by ``order``) and mappings merge shallowly with later keys
    winning. ``None`` entries are skipped and inputs are never mutated.
    """

    merged = Config()
    for partial in partials:
        if partial is None:
            continue
        merged = Config(
            main_type=partial.main_type
            if partial.main_type is not None
            else merged.main_type,
            views=partial.views if partial.views is not None else merged.views,
            creator_name=partial.creator_name
            if partial.creator_name is not None
            else merged.creator_name,
            context_groups=_concat(merged.context_groups, partial.context_groups),
            deserializers=_concat(merged.deserializers, partial.deserializers),
            serializers=_concat(merged.serializers, partial.serializers),
            deserialization=_shallow_merge(
                merged.deserialization, partial.deserialization
            ),
            serialization=_shallow_merge(merged.serialization, partial.serialization),
            injectable_values=_shallow_merge(
                merged.injectable_values, partial.injectable_values
            ),
            for_type=_shallow_merge(merged.for_type, partial.for_type),
            decorators_enabled=_shallow_merge(
                merged.decorators_enabled, partial.decorators_enabled
            ),
        )
    return replace(
        merged,
        deserializers=_sorted_mappers(merged.deserializers),
        serializers=_sorted_mappers(merged.serializers),
    )


@FrozenDataclass()
class Overlay:
    """Element-level options pushed by a container property.

    ``depth`` counts the remaining recursion levels the entry survives.
    """

    options: ClassOptions
    depth: int


@FrozenDataclass()
class TransformContext:
    """Immutable per-node state of one transform call.

    Children are derived through :meth:`child`, which never shares mutable
    state with the parent or with sibling branches.
    """

    config: Config
    cache: SchemaCache
    target: TypeRef = OBJECT
    path: str = "$"
    overlay: Mapping[type[Any], Overlay] = _EMPTY_OVERLAY
    parent_type: type[Any] | None = None
    prop: PropertyDescriptor | None = None
    root: bool = True
    overrides_applied: frozenset[type[Any]] = frozenset()

    @property
    def groups(self) -> frozenset[str]:
        return frozenset(self.config.context_groups or ())

    @property
    def owner_name(self) -> str:
        if self.parent_type is not None:
            return self.parent_type.__name__
        return self.target.name

    def deser(self, flag: DeserializationFeature) -> bool:
        configured = self.config.deserialization or {}
        return configured.get(flag, DEFAULT_DESERIALIZATION_FEATURES[flag])

    def ser(self, flag: SerializationFeature) -> bool:
        configured = self.config.serialization or {}
        return configured.get(flag, DEFAULT_SERIALIZATION_FEATURES[flag])

    def enabled(self, decorator: Decorator) -> bool:
        return (self.config.decorators_enabled or {}).get(decorator, True)

    def in_view(self, views: tuple[type[Any], ...], *, default: bool) -> bool:
        """Return whether members declared in ``views`` take part in this call.

        A requested view sees members declared for it or for one of its base
        classes; members without views fall back to ``default``.
        """

        active = self.config.views
        if not active or not self.enabled(Decorator.VIEW):
            return True
        if not views:
            return default
        return any(
            issubclass(requested, declared)
            for requested in active
            for declared in views
        )

    def schema(self, cls: type[Any]) -> ClassSchema:
        return self.cache.get(cls, self.groups)

    def overlay_options(self, cls: type[Any]) -> ClassOptions | None:
        found: ClassOptions | None = None
        for key, entry in reversed(list(self.overlay.items())):
            if issubclass(cls, key):
                found = (
                    entry.options
                    if found is None
                    else found.with_fallback(entry.options)
                )
        return found

    def options_for(self, schema: ClassSchema) -> ClassOptions:
        """Class-declared options, with overlay entries filling the gaps."""

        pending = self.overlay_options(schema.cls)
        if pending is None:
            return schema.options
        return schema.options.with_fallback(pending)

    def with_target(self, target: TypeRef) -> TransformContext:
        return replace(self, target=target)

    def with_type_override(self, cls: type[Any]) -> TransformContext:
        overrides = self.config.for_type
        if not overrides:
            return self
        for klass in cls.__mro__:
            override = overrides.get(klass)
            if override is None or klass in self.overrides_applied:
                continue
            merged = merge_contexts(
                [self.config, replace(override, main_type=None, for_type=None)]
            )
            return replace(
                self,
                config=merged,
                overrides_applied=self.overrides_applied | {klass},
            )
        return self

    def child(
        self,
        target: TypeRef,
        path: str,
        *,
        prop: PropertyDescriptor | None = None,
        parent_type: type[Any] | None = None,
    ) -> TransformContext:
        """Derive the context of a child node.

        Overlay entries lose one level of depth and disappear once exhausted.
        A property carrying element options pushes a fresh entry for its
        leaf class, spanning the property's container nesting.
        """

        overlay = {
            key: Overlay(options=entry.options, depth=entry.depth - 1)
            for key, entry in self.overlay.items()
            if entry.depth > 1
        }
        if prop is not None:
            pushed = prop.options.element_options
            if pushed is not None and target.leaf is not object:
                overlay[target.leaf] = Overlay(options=pushed, depth=target.depth)
        return replace(
            self,
            target=target,
            path=path,
            overlay=MappingProxyType(overlay) if overlay else _EMPTY_OVERLAY,
            parent_type=parent_type if parent_type is not None else self.parent_type,
            prop=prop,
            root=False,
        )


@dataclass(slots=True)
class GlobalContext:
    """Mutable bookkeeping shared by every node of one top-level call."""

    seen: dict[str, object] = field(default_factory=dict)
    unresolved: set[str] = field(default_factory=set)
    written_ids: dict[int, object] = field(default_factory=dict)
    ancestors: list[int] = field(default_factory=list)
    sequence: itertools.count[int] = field(default_factory=lambda: itertools.count(1))


__all__ = [
    "Config",
    "CustomMapper",
    "GlobalContext",
    "Overlay",
    "TransformContext",
    "merge_contexts",
]
