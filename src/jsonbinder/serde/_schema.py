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

"""Class schemas flattened from declarative metadata.

A :class:`ClassSchema` is built once per ``(class, context groups)`` pair by
walking the MRO, reading :class:`~jsonbinder.annotations.JsonProperty` markers
from ``Annotated`` hints, and collecting creator and any-setter markers. The
transform engine only ever reads the flattened result.
"""

from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Annotated, Any, ClassVar, Final, get_args, get_origin, get_type_hints

from ..annotations import (
    ANY_ATTR,
    CLASS_OPTIONS_ATTR,
    CREATOR_ATTR,
    DEFAULT_CREATOR,
    Access,
    ClassOptions,
    CreatorMode,
    CreatorSpec,
    JsonProperty,
)
from ..dataclasses import FrozenDataclass
from ..errors import MultipleValueProviders, SchemaError
from ._naming import apply_naming
from ._types import OBJECT, TypeRef, is_bean, type_ref

_EMPTY: Final = inspect.Parameter.empty
_VARIADIC_KINDS: Final = (
    inspect.Parameter.VAR_POSITIONAL,
    inspect.Parameter.VAR_KEYWORD,
)


@FrozenDataclass()
class PropertyDescriptor:
    """Binding metadata for one attribute, accessor or creator parameter."""

    name: str
    wire_name: str
    declared_name: str
    type: TypeRef
    options: JsonProperty
    views: tuple[type[Any], ...] = ()
    accessor: bool = False
    settable: bool = True

    @property
    def readable(self) -> bool:
        return self.options.access is not Access.WRITE_ONLY

    @property
    def writable(self) -> bool:
        return self.options.access is not Access.READ_ONLY and self.settable

    def key(self, *, naming: bool) -> str:
        return self.wire_name if naming else self.declared_name


@FrozenDataclass()
class ParameterDescriptor:
    name: str
    index: int
    kind: inspect._ParameterKind  # pyright: ignore[reportPrivateUsage]
    default: object
    prop: PropertyDescriptor

    @property
    def has_default(self) -> bool:
        return self.default is not _EMPTY


@FrozenDataclass()
class CreatorDescriptor:
    """A callable able to instantiate a class from bound arguments.

    ``attr`` names the ``staticmethod``/``classmethod`` on the class; ``None``
    means the class itself (its ``__init__``) is invoked. ``explicit`` is
    ``False`` for the implicit ``__init__`` creator of unmarked classes.
    """

    name: str
    mode: CreatorMode
    attr: str | None
    parameters: tuple[ParameterDescriptor, ...] = ()
    accepts_varargs: bool = False
    explicit: bool = True

    @property
    def is_constructor(self) -> bool:
        return self.attr is None

    def resolve(self, cls: type[Any]) -> Callable[..., object]:
        if self.attr is None:
            return cls
        return getattr(cls, self.attr)


@FrozenDataclass()
class ClassSchema:
    cls: type[Any]
    options: ClassOptions
    properties: tuple[PropertyDescriptor, ...]
    creators: Mapping[str, CreatorDescriptor]
    value_property: PropertyDescriptor | None = None
    any_setter: str | None = None
    any_getter: str | None = None
    by_wire: Mapping[str, PropertyDescriptor] = dataclasses.field(
        default_factory=dict
    )
    by_declared: Mapping[str, PropertyDescriptor] = dataclasses.field(
        default_factory=dict
    )
    by_alias: Mapping[str, PropertyDescriptor] = dataclasses.field(
        default_factory=dict
    )

    @property
    def name(self) -> str:
        return self.cls.__name__

    def find(
        self, key: str, *, naming: bool = True, aliases: bool = True
    ) -> PropertyDescriptor | None:
        """Return the property addressed by wire ``key`` (or one of its aliases)."""

        primary = self.by_wire if naming else self.by_declared
        found = primary.get(key)
        if found is None and aliases:
            found = self.by_alias.get(key)
        return found

    def get_property(self, name: str) -> PropertyDescriptor | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def creator(self, name: str | None) -> CreatorDescriptor:
        if name is not None and name in self.creators:
            return self.creators[name]
        return self.creators[DEFAULT_CREATOR]


def build_schema(cls: type[Any], groups: frozenset[str]) -> ClassSchema:
    """Flatten the metadata declared on ``cls`` and its bases."""

    options = class_options(cls, groups)
    properties = _collect_properties(cls, options, groups)

    value_props = [prop for prop in properties if prop.options.value]
    if len(value_props) > 1:
        raise MultipleValueProviders(
            f"Multiple value properties declared: {[p.name for p in value_props]}",
            type_name=cls.__name__,
        )

    by_name = {prop.name: prop for prop in properties}
    any_setter, any_getter = _any_accessors(cls)
    return ClassSchema(
        cls=cls,
        options=options,
        properties=tuple(properties),
        creators=_collect_creators(cls, options, groups, by_name),
        value_property=value_props[0] if value_props else None,
        any_setter=any_setter,
        any_getter=any_getter,
        by_wire={prop.wire_name: prop for prop in properties},
        by_declared={prop.declared_name: prop for prop in properties},
        by_alias={
            alias: prop for prop in properties for alias in prop.options.aliases
        },
    )


def _active(groups_declared: frozenset[str], groups: frozenset[str]) -> bool:
    return not groups_declared or bool(groups_declared & groups)


def class_options(cls: type[Any], groups: frozenset[str]) -> ClassOptions:
    effective = ClassOptions()
    for klass in reversed(cls.__mro__):
        declared: tuple[ClassOptions, ...] = vars(klass).get(CLASS_OPTIONS_ATTR, ())
        for entry in declared:
            if _active(entry.groups, groups):
                effective = effective.layered(entry)
    return effective


def _markers(hint: object) -> Iterator[JsonProperty]:
    base = hint
    while get_origin(base) is Annotated:
        args = get_args(base)
        base = args[0]
        for extra in args[1:]:
            if isinstance(extra, JsonProperty):
                yield extra


def _merge_markers(
    markers: Iterable[JsonProperty], groups: frozenset[str]
) -> tuple[JsonProperty, bool]:
    merged = JsonProperty()
    declared = False
    for marker in markers:
        if _active(marker.groups, groups):
            merged = merged.layered(marker)
            declared = True
    return merged, declared


def _field_markers(field_def: dataclasses.Field[Any] | None) -> list[JsonProperty]:
    if field_def is None:
        return []
    metadata = field_def.metadata
    markers: list[JsonProperty] = []
    alias = metadata.get("alias")
    if isinstance(alias, str):
        markers.append(JsonProperty(name=alias))
    marker = metadata.get("json")
    if isinstance(marker, JsonProperty):
        markers.append(marker)
    return markers


def _describe(
    name: str,
    hint: object,
    marker: JsonProperty,
    options: ClassOptions,
    *,
    owner: type[Any],
    accessor: bool = False,
    settable: bool = True,
) -> PropertyDescriptor:
    ref = type_ref(hint) if hint is not _EMPTY else OBJECT
    if marker.unwrapped is not None and not is_bean(ref.cls):
        raise SchemaError(
            f"Unwrapped property {name!r} needs a concrete class type",
            type_name=owner.__name__,
        )
    if marker.managed_reference is not None and not is_bean(ref.leaf):
        raise SchemaError(
            f"Managed reference {name!r} needs a concrete class element type",
            type_name=owner.__name__,
        )
    return PropertyDescriptor(
        name=name,
        wire_name=marker.name or apply_naming(options.naming, name),
        declared_name=marker.name or name,
        type=ref,
        options=marker,
        views=marker.views or options.views,
        accessor=accessor,
        settable=settable,
    )


def _class_hints(cls: type[Any]) -> dict[str, object]:
    try:
        return get_type_hints(cls, include_extras=True)
    except (NameError, TypeError) as error:
        raise SchemaError(
            f"Cannot resolve type hints: {error}", type_name=cls.__name__
        ) from error


def _collect_properties(
    cls: type[Any], options: ClassOptions, groups: frozenset[str]
) -> list[PropertyDescriptor]:
    dataclass_fields = (
        {field_def.name: field_def for field_def in dataclasses.fields(cls)}
        if dataclasses.is_dataclass(cls)
        else {}
    )
    collected: dict[str, PropertyDescriptor] = {}
    for name, hint in _class_hints(cls).items():
        if get_origin(hint) is ClassVar or isinstance(hint, dataclasses.InitVar):
            continue
        marker, declared = _merge_markers(
            [*_field_markers(dataclass_fields.get(name)), *_markers(hint)], groups
        )
        if name.startswith("_") and not declared:
            continue
        collected[name] = _describe(name, hint, marker, options, owner=cls)

    for name, member in _property_members(cls):
        hint = _return_hint(member)
        marker, declared = _merge_markers(_markers(hint), groups)
        if not declared:
            continue
        collected[name] = _describe(
            name,
            hint,
            marker,
            options,
            owner=cls,
            accessor=True,
            settable=member.fset is not None,
        )
    return list(collected.values())


def _property_members(cls: type[Any]) -> Iterator[tuple[str, property]]:
    seen: dict[str, property] = {}
    for klass in reversed(cls.__mro__):
        for name, member in vars(klass).items():
            if isinstance(member, property):
                seen[name] = member
    yield from seen.items()


def _return_hint(member: property) -> object:
    if member.fget is None:
        return _EMPTY
    try:
        hints = get_type_hints(member.fget, include_extras=True)
    except (NameError, TypeError):
        return _EMPTY
    return hints.get("return", _EMPTY)


def _collect_creators(
    cls: type[Any],
    options: ClassOptions,
    groups: frozenset[str],
    by_name: Mapping[str, PropertyDescriptor],
) -> dict[str, CreatorDescriptor]:
    creators: dict[str, CreatorDescriptor] = {}
    for klass in reversed(cls.__mro__):
        for attr, member in vars(klass).items():
            func = (
                member.__func__
                if isinstance(member, staticmethod | classmethod)
                else member
            )
            spec = getattr(func, CREATOR_ATTR, None)
            if not isinstance(spec, CreatorSpec):
                continue
            skip_first = attr == "__init__" or isinstance(member, classmethod)
            creators[spec.name] = _describe_creator(
                cls,
                spec,
                None if attr == "__init__" else attr,
                func,
                skip_first=skip_first,
                options=options,
                groups=groups,
                by_name=by_name,
            )
    if DEFAULT_CREATOR not in creators:
        creators[DEFAULT_CREATOR] = _default_creator(cls, options, groups, by_name)
    return creators


def _default_creator(
    cls: type[Any],
    options: ClassOptions,
    groups: frozenset[str],
    by_name: Mapping[str, PropertyDescriptor],
) -> CreatorDescriptor:
    init = cls.__init__
    spec = CreatorSpec(DEFAULT_CREATOR, CreatorMode.STANDARD)
    if init is object.__init__:
        return CreatorDescriptor(
            name=spec.name, mode=spec.mode, attr=None, explicit=False
        )
    return _describe_creator(
        cls,
        spec,
        None,
        init,
        skip_first=True,
        options=options,
        groups=groups,
        by_name=by_name,
        use_hints=not dataclasses.is_dataclass(cls),
        explicit=False,
    )


def _describe_creator(
    cls: type[Any],
    spec: CreatorSpec,
    attr: str | None,
    func: Callable[..., object],
    *,
    skip_first: bool,
    options: ClassOptions,
    groups: frozenset[str],
    by_name: Mapping[str, PropertyDescriptor],
    use_hints: bool = True,
    explicit: bool = True,
) -> CreatorDescriptor:
    signature = inspect.signature(func)
    hints: dict[str, object] = {}
    if use_hints:
        try:
            hints = get_type_hints(func, include_extras=True)
        except (NameError, TypeError) as error:
            raise SchemaError(
                f"Cannot resolve creator hints: {error}", type_name=cls.__name__
            ) from error

    declared = list(signature.parameters.values())
    if skip_first:
        declared = declared[1:]

    parameters: list[ParameterDescriptor] = []
    for param in declared:
        if param.kind in _VARIADIC_KINDS:
            continue
        hint = hints.get(param.name, _EMPTY)
        marker, has_marker = _merge_markers(_markers(hint), groups)
        inherited = by_name.get(param.name)
        if has_marker or inherited is None:
            prop = _describe(param.name, hint, marker, options, owner=cls)
            if hint is _EMPTY and inherited is not None:
                prop = dataclasses.replace(prop, type=inherited.type)
        else:
            prop = inherited
        parameters.append(
            ParameterDescriptor(
                name=param.name,
                index=len(parameters),
                kind=param.kind,
                default=param.default,
                prop=prop,
            )
        )

    return CreatorDescriptor(
        name=spec.name,
        mode=spec.mode,
        attr=attr,
        parameters=tuple(parameters),
        accepts_varargs=any(
            param.kind is inspect.Parameter.VAR_POSITIONAL for param in declared
        ),
        explicit=explicit,
    )


def _any_accessors(cls: type[Any]) -> tuple[str | None, str | None]:
    setter: str | None = None
    getter: str | None = None
    for klass in reversed(cls.__mro__):
        for attr, member in vars(klass).items():
            marker = getattr(member, ANY_ATTR, None)
            if marker == "setter":
                setter = attr
            elif marker == "getter":
                getter = attr
    return setter, getter


__all__ = [
    "ClassSchema",
    "CreatorDescriptor",
    "ParameterDescriptor",
    "PropertyDescriptor",
    "build_schema",
    "class_options",
]
