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

"""Declaration API describing how classes map to JSON.

Metadata is plain, immutable data attached through standard typing
constructs:

- :class:`JsonProperty` markers inside :data:`typing.Annotated` hints on class
  attributes, dataclass fields, creator parameters and ``property`` getters.
- :func:`json_type` class decorators carrying :class:`ClassOptions`.
- :func:`creator`, :func:`any_setter` and :func:`any_getter` method markers.

Example::

    @json_type(
        type_info=TypeInfo(include=As.PROPERTY, property="kind"),
        subtypes=(Dog, SubType(Cat, "kitty")),
    )
    @dataclass
    class Animal:
        name: Annotated[str, JsonProperty(required=True)]

Declarations can be restricted to context groups (``groups=("admin",)``) and
only take part in a call that activates one of those groups.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any, Final, Protocol, cast

from .dataclasses import FrozenDataclass, non_default_fields
from .errors import SchemaError

__all__ = [
    "DEFAULT_CREATOR",
    "DEFAULT_REFERENCE",
    "Access",
    "As",
    "ClassOptions",
    "CreatorMode",
    "CreatorSpec",
    "IdGenerator",
    "IdentityInfo",
    "IgnoreProperties",
    "Inject",
    "JsonProperty",
    "Naming",
    "Nulls",
    "SubType",
    "TypeId",
    "TypeIdResolver",
    "TypeInfo",
    "Unwrapped",
    "any_getter",
    "any_setter",
    "creator",
    "json_type",
]

DEFAULT_CREATOR: Final[str] = "default"
DEFAULT_REFERENCE: Final[str] = "defaultReference"

CLASS_OPTIONS_ATTR: Final[str] = "__json_type__"
CREATOR_ATTR: Final[str] = "__json_creator__"
ANY_ATTR: Final[str] = "__json_any__"

type Hook = Callable[[object], object]


class Access(Enum):
    """Direction in which a property takes part in binding."""

    AUTO = "auto"
    READ_ONLY = "read_only"
    WRITE_ONLY = "write_only"
    READ_WRITE = "read_write"


class Nulls(Enum):
    """Policy applied when ``null`` is assigned to a property or its contents."""

    SET = "set"
    SKIP = "skip"
    FAIL = "fail"


class As(Enum):
    """Where a polymorphic discriminator lives in the JSON document."""

    PROPERTY = "property"
    WRAPPER_OBJECT = "wrapper_object"
    WRAPPER_ARRAY = "wrapper_array"
    EXTERNAL_PROPERTY = "external_property"


class TypeId(Enum):
    """How discriminators are derived from classes."""

    NAME = "name"
    CLASS = "class"


class Naming(Enum):
    SNAKE_CASE = "snake_case"
    KEBAB_CASE = "kebab_case"
    LOWER_DOT_CASE = "lower_dot_case"
    LOWER_CAMEL_CASE = "lower_camel_case"
    UPPER_CAMEL_CASE = "upper_camel_case"
    LOWER_CASE = "lower_case"


class IdGenerator(Enum):
    """Source of object ids written for identity-tracked classes."""

    PROPERTY = "property"
    INT_SEQUENCE = "int_sequence"
    UUID4 = "uuid4"


class CreatorMode(Enum):
    STANDARD = "standard"
    DELEGATING = "delegating"
    PROPERTIES_OBJECT = "properties_object"


class TypeIdResolver(Protocol):
    """Custom mapping between discriminators and concrete classes."""

    def type_from_id(self, type_id: str, base: type[Any]) -> type[Any] | None:
        """Return the class for ``type_id`` or ``None`` to fall back."""
        ...

    def id_from_value(self, value: object, base: type[Any]) -> str:
        """Return the discriminator to write for ``value``."""
        ...


@FrozenDataclass(kw_only=False)
class TypeInfo:
    include: As = As.PROPERTY
    property: str = "@type"
    use: TypeId = TypeId.NAME


@FrozenDataclass(kw_only=False)
class SubType:
    cls: type[Any]
    name: str | None = None


@FrozenDataclass(kw_only=False)
class IdentityInfo:
    """Object identity strategy.

    ``property`` is the wire key holding the id. With
    :attr:`IdGenerator.PROPERTY` the class itself exposes the id under that
    key; the other generators mint ids while encoding.
    """

    property: str = "@id"
    scope: str = ""
    generator: IdGenerator = IdGenerator.PROPERTY


@FrozenDataclass(kw_only=False)
class IgnoreProperties:
    """Class-level ignore list.

    ``ignore_unknown=None`` defers to ``FAIL_ON_UNKNOWN_PROPERTIES``.
    ``allow_getters`` keeps listed names in encoded output and
    ``allow_setters`` keeps accepting them when decoding.
    """

    names: tuple[str, ...] = ()
    ignore_unknown: bool | None = None
    allow_getters: bool = False
    allow_setters: bool = False


@FrozenDataclass(kw_only=False)
class Unwrapped:
    prefix: str = ""
    suffix: str = ""


@FrozenDataclass(kw_only=False)
class Inject:
    """Inject ``injectable_values[key]`` (the property name when ``key`` is unset).

    With ``use_input=False`` the injected value replaces any value present in
    the input.
    """

    key: str | None = None
    use_input: bool = True


ELEMENT_OPTION_FIELDS: Final[tuple[str, ...]] = (
    "type_info",
    "subtypes",
    "type_id_resolver",
    "identity",
    "ignore_properties",
)


def _normalize_groups(groups: Iterable[str]) -> frozenset[str]:
    normalized: set[str] = set()
    for group in groups:
        if not isinstance(group, str) or not group.strip():  # pyright: ignore[reportUnnecessaryIsInstance]
            raise SchemaError(f"Invalid context group name: {group!r}")
        normalized.add(group)
    return frozenset(normalized)


def _normalize_subtypes(
    subtypes: Iterable[SubType | type[Any]] | None,
) -> tuple[SubType, ...] | None:
    if subtypes is None:
        return None
    return tuple(
        entry if isinstance(entry, SubType) else SubType(entry) for entry in subtypes
    )


@FrozenDataclass()
class ClassOptions:
    """Class-level metadata attached by :func:`json_type`."""

    type_info: TypeInfo | None = None
    subtypes: tuple[SubType, ...] | None = None
    type_id_resolver: TypeIdResolver | None = None
    identity: IdentityInfo | None = None
    ignore_properties: IgnoreProperties | None = None
    naming: Naming | None = None
    root_name: str | None = None
    ignore_type: bool = False
    views: tuple[type[Any], ...] = ()
    deserialize: Hook | None = None
    serialize: Hook | None = None
    groups: frozenset[str] = frozenset()

    def layered(self, other: ClassOptions) -> ClassOptions:
        """Return a copy where attributes explicitly set on ``other`` win."""

        changes = non_default_fields(other)
        _ = changes.pop("groups", None)
        return cast(ClassOptions, cast(Any, self).update(**changes))

    def with_fallback(self, fallback: ClassOptions) -> ClassOptions:
        """Fill unset element-level options from ``fallback``."""

        changes = {
            name: getattr(fallback, name)
            for name in ELEMENT_OPTION_FIELDS
            if getattr(self, name) is None and getattr(fallback, name) is not None
        }
        if not changes:
            return self
        return cast(ClassOptions, cast(Any, self).update(**changes))


@FrozenDataclass()
class JsonProperty:
    """Per-member metadata placed inside :data:`typing.Annotated`.

    Only the attributes that differ from their defaults take effect when
    several markers annotate the same member; later markers win.

    The ``type_info``, ``subtypes``, ``type_id_resolver``, ``identity`` and
    ``ignore_properties`` attributes describe the *contained* type: on a
    ``list[Animal]`` property they configure every ``Animal`` element, one
    nesting level deep, without touching the ``Animal`` class itself.
    """

    name: str | None = None
    required: bool = False
    access: Access = Access.AUTO
    views: tuple[type[Any], ...] = ()
    aliases: tuple[str, ...] = ()
    ignore: bool = False
    raw: bool = False
    unwrapped: Unwrapped | None = None
    managed_reference: str | bool | None = None
    back_reference: str | bool | None = None
    inject: Inject | None = None
    deserialize: Hook | None = None
    serialize: Hook | None = None
    content_deserialize: Hook | None = None
    content_serialize: Hook | None = None
    key_deserialize: Hook | None = None
    key_serialize: Hook | None = None
    nulls: Nulls = Nulls.SET
    content_nulls: Nulls = Nulls.SET
    value: bool = False
    type_info: TypeInfo | None = None
    subtypes: tuple[SubType, ...] | None = None
    type_id_resolver: TypeIdResolver | None = None
    identity: IdentityInfo | None = None
    ignore_properties: IgnoreProperties | None = None
    groups: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "views", tuple(self.views))
        object.__setattr__(self, "aliases", tuple(self.aliases))
        object.__setattr__(self, "subtypes", _normalize_subtypes(self.subtypes))
        object.__setattr__(self, "groups", _normalize_groups(self.groups))
        if self.managed_reference is True:
            object.__setattr__(self, "managed_reference", DEFAULT_REFERENCE)
        if self.back_reference is True:
            object.__setattr__(self, "back_reference", DEFAULT_REFERENCE)

    def layered(self, other: JsonProperty) -> JsonProperty:
        changes = non_default_fields(other)
        _ = changes.pop("groups", None)
        return cast(JsonProperty, cast(Any, self).update(**changes))

    @property
    def element_options(self) -> ClassOptions | None:
        values = {name: getattr(self, name) for name in ELEMENT_OPTION_FIELDS}
        if all(value is None for value in values.values()):
            return None
        return ClassOptions(**values)


@FrozenDataclass(kw_only=False)
class CreatorSpec:
    name: str = DEFAULT_CREATOR
    mode: CreatorMode = CreatorMode.STANDARD


def json_type[T](
    *,
    type_info: TypeInfo | None = None,
    subtypes: Iterable[SubType | type[Any]] | None = None,
    type_id_resolver: TypeIdResolver | None = None,
    identity: IdentityInfo | None = None,
    ignore_properties: IgnoreProperties | None = None,
    naming: Naming | None = None,
    root_name: str | None = None,
    ignore_type: bool = False,
    views: Iterable[type[Any]] = (),
    deserialize: Hook | None = None,
    serialize: Hook | None = None,
    groups: Iterable[str] = (),
) -> Callable[[type[T]], type[T]]:
    """Attach class-level binding options to the decorated class.

    Decorators stack: each application records one :class:`ClassOptions`
    entry and entries applied later (higher up) override the attributes they
    set explicitly. Subclasses inherit the options of their bases.
    """

    options = ClassOptions(
        type_info=type_info,
        subtypes=_normalize_subtypes(subtypes),
        type_id_resolver=type_id_resolver,
        identity=identity,
        ignore_properties=ignore_properties,
        naming=naming,
        root_name=root_name,
        ignore_type=ignore_type,
        views=tuple(views),
        deserialize=deserialize,
        serialize=serialize,
        groups=_normalize_groups(groups),
    )

    def decorator(cls: type[T]) -> type[T]:
        declared: tuple[ClassOptions, ...] = cls.__dict__.get(CLASS_OPTIONS_ATTR, ())
        setattr(cls, CLASS_OPTIONS_ATTR, (*declared, options))
        return cls

    return decorator


def _mark[F](target: F, attr: str, value: object) -> F:
    func = target.__func__ if isinstance(target, staticmethod | classmethod) else target
    setattr(func, attr, value)
    return target


def creator[F](
    name: str = DEFAULT_CREATOR, *, mode: CreatorMode = CreatorMode.STANDARD
) -> Callable[[F], F]:
    """Mark ``__init__``, a ``staticmethod`` or a ``classmethod`` as a creator.

    Parameter names and order come from the callable's signature and
    per-parameter metadata from its ``Annotated`` hints. Named creators are
    selected with ``Config(creator_name=...)``.
    """

    spec = CreatorSpec(name, mode)

    def decorator(target: F) -> F:
        return _mark(target, CREATOR_ATTR, spec)

    return decorator


def any_setter[F](target: F) -> F:
    """Mark a ``(self, key, value)`` method receiving unrecognized input keys."""

    return _mark(target, ANY_ATTR, "setter")


def any_getter[F](target: F) -> F:
    """Mark a method returning extra key/value pairs to merge into output."""

    return _mark(target, ANY_ATTR, "getter")
