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

"""Type descriptor chains derived from Python type hints."""

from __future__ import annotations

import collections
import collections.abc
import re
import types
from dataclasses import replace
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import (
    Annotated,
    Any,
    Final,
    Literal,
    TypeAliasType,
    TypeVar,
    Union,
    get_args,
    get_origin,
)
from uuid import UUID

from ..dataclasses import FrozenDataclass

_UNION_ORIGINS: Final = (Union, types.UnionType)
_NONE_TYPE: Final = type(None)

PRIMITIVES: Final[tuple[type[Any], ...]] = (bool, int, float, str)
BOXED: Final[tuple[type[Any], ...]] = (
    Decimal,
    UUID,
    Path,
    datetime,
    date,
    time,
    re.Pattern,
)

_CONCRETE_ORIGINS: Final[dict[object, type[Any]]] = {
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Set: set,
    collections.abc.MutableSet: set,
    collections.abc.Mapping: dict,
    collections.abc.MutableMapping: dict,
}


@FrozenDataclass()
class TypeRef:
    """One link of a type descriptor chain.

    ``list[Item]`` becomes ``TypeRef(cls=list, args=(TypeRef(cls=Item),))`` and
    ``dict[str, Item]`` carries key and value links. ``Optional`` hints set
    :attr:`nullable`; fixed-length tuples set ``variadic=False``.
    """

    cls: type[Any]
    args: tuple[TypeRef, ...] = ()
    nullable: bool = False
    variadic: bool = True

    @property
    def name(self) -> str:
        return self.cls.__name__

    @property
    def leaf(self) -> type[Any]:
        """Innermost element class (``Item`` for ``dict[str, list[Item]]``)."""

        if self.args and (is_mapping(self.cls) or is_collection(self.cls)):
            return self.args[-1].leaf
        return self.cls

    @property
    def depth(self) -> int:
        """Number of links from this one down to :attr:`leaf`, inclusive."""

        if self.args and (is_mapping(self.cls) or is_collection(self.cls)):
            return 1 + self.args[-1].depth
        return 1

    def arg(self, index: int) -> TypeRef:
        if index < len(self.args):
            return self.args[index]
        return OBJECT


OBJECT: Final[TypeRef] = TypeRef(cls=object)


def type_ref(hint: object) -> TypeRef:
    """Build a :class:`TypeRef` chain from a resolved type hint."""

    if hint is None or hint is _NONE_TYPE:
        return TypeRef(cls=object, nullable=True)
    if isinstance(hint, TypeAliasType):
        return type_ref(hint.__value__)
    if isinstance(hint, TypeVar) or hint is Any:
        return OBJECT

    origin = get_origin(hint)
    if origin is Annotated:
        return type_ref(get_args(hint)[0])
    if origin in _UNION_ORIGINS:
        return _union_ref(get_args(hint))
    if origin is Literal:
        return _literal_ref(get_args(hint))
    if origin is not None:
        return _generic_ref(origin, get_args(hint))
    if isinstance(hint, type):
        return TypeRef(cls=_CONCRETE_ORIGINS.get(hint, hint))
    return OBJECT


def _union_ref(members: tuple[object, ...]) -> TypeRef:
    concrete = [member for member in members if member is not _NONE_TYPE]
    nullable = len(concrete) != len(members)
    if len(concrete) == 1:
        return replace(type_ref(concrete[0]), nullable=nullable)
    return TypeRef(cls=object, nullable=nullable)


def _literal_ref(values: tuple[object, ...]) -> TypeRef:
    kinds = {type(value) for value in values if value is not None}
    nullable = None in values
    if len(kinds) == 1:
        return TypeRef(cls=kinds.pop(), nullable=nullable)
    return TypeRef(cls=object, nullable=nullable)


def _generic_ref(origin: object, args: tuple[object, ...]) -> TypeRef:
    if isinstance(origin, TypeAliasType):
        return type_ref(origin.__value__)
    if not isinstance(origin, type):
        return OBJECT
    cls = _CONCRETE_ORIGINS.get(origin, origin)
    if cls is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return TypeRef(cls=tuple, args=(type_ref(args[0]),))
        return TypeRef(
            cls=tuple, args=tuple(type_ref(arg) for arg in args), variadic=False
        )
    if cls is type:
        return OBJECT
    return TypeRef(cls=cls, args=tuple(type_ref(arg) for arg in args))


def is_primitive(cls: type[Any]) -> bool:
    return cls in PRIMITIVES


def is_mapping(cls: type[Any]) -> bool:
    return issubclass(cls, collections.abc.Mapping)


def is_collection(cls: type[Any]) -> bool:
    if cls in (str, bytes, bytearray) or is_mapping(cls):
        return False
    return issubclass(cls, list | tuple | set | frozenset | collections.deque)


def is_bean(cls: type[Any]) -> bool:
    """Return ``True`` for classes bound property by property."""

    return not (
        cls is object
        or cls is _NONE_TYPE
        or is_primitive(cls)
        or issubclass(cls, Enum)
        or issubclass(cls, BOXED)
        or is_mapping(cls)
        or is_collection(cls)
    )


def type_identifier(cls: type[Any]) -> str:
    return f"{cls.__module__}:{cls.__qualname__}"


__all__ = [
    "BOXED",
    "OBJECT",
    "PRIMITIVES",
    "TypeRef",
    "is_bean",
    "is_collection",
    "is_mapping",
    "is_primitive",
    "type_identifier",
    "type_ref",
]
