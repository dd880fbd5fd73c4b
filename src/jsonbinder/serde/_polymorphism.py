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

"""Polymorphic type resolution driven by :class:`~jsonbinder.annotations.TypeInfo`."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping, Sequence
from typing import Any, cast

from ..annotations import As, ClassOptions, TypeId, TypeInfo
from ..errors import InvalidSubtype, MissingTypeId, ShapeMismatch
from ..features import DeserializationFeature
from ..logging import StructuredLogger, get_logger
from ._context import TransformContext
from ._types import type_identifier

logger: StructuredLogger = get_logger(__name__, context={"component": "type_resolver"})


def _base_id(base: type[Any], info: TypeInfo) -> str:
    if info.use is TypeId.CLASS:
        return type_identifier(base)
    return base.__name__


def subtype_registry(
    options: ClassOptions, ctx: TransformContext
) -> list[tuple[str, type[Any]]]:
    """Return ``(discriminator, class)`` pairs reachable from ``options``.

    Subtypes declaring their own subtypes are followed transitively. Each
    subtype answers to its explicit name and to its class name (or to its
    ``module:QualName`` identifier when ids are class based).
    """

    info = options.type_info or TypeInfo()
    entries: list[tuple[str, type[Any]]] = []
    visited: set[type[Any]] = set()
    pending = list(options.subtypes or ())
    while pending:
        subtype = pending.pop(0)
        if subtype.cls in visited:
            continue
        visited.add(subtype.cls)
        if subtype.name is not None:
            entries.append((subtype.name, subtype.cls))
        entries.append((_base_id(subtype.cls, info), subtype.cls))
        nested = ctx.schema(subtype.cls).options.subtypes
        if nested:
            pending.extend(nested)
    return entries


def known_ids(base: type[Any], options: ClassOptions, ctx: TransformContext) -> list[str]:
    info = options.type_info or TypeInfo()
    ids = [name for name, _ in subtype_registry(options, ctx)]
    ids.append(_base_id(base, info))
    return list(dict.fromkeys(ids))


def _class_for_id(
    type_id: str, base: type[Any], options: ClassOptions, ctx: TransformContext
) -> type[Any] | None:
    info = options.type_info or TypeInfo()
    resolver = options.type_id_resolver
    if resolver is not None:
        found = resolver.type_from_id(type_id, base)
        if found is not None:
            return found
    for name, cls in subtype_registry(options, ctx):
        if name == type_id:
            return cls
    if type_id in (_base_id(base, info), base.__name__):
        return base
    return None


def _extract(
    value: object,
    info: TypeInfo,
    parent: MutableMapping[str, object] | None,
    ctx: TransformContext,
) -> tuple[object, object]:
    """Split ``value`` into ``(discriminator, working value)``."""

    match info.include:
        case As.PROPERTY:
            if not isinstance(value, Mapping):
                raise ShapeMismatch(
                    f"Expected an object carrying {info.property!r}",
                    type_name=ctx.target.name,
                    path=ctx.path,
                    fragment=value,
                )
            working = dict(cast(Mapping[str, object], value))
            return working.pop(info.property, None), working
        case As.WRAPPER_OBJECT:
            if not isinstance(value, Mapping) or len(cast(Mapping[str, object], value)) != 1:
                raise ShapeMismatch(
                    "Expected a wrapper object with exactly one key",
                    type_name=ctx.target.name,
                    path=ctx.path,
                    fragment=value,
                )
            ((type_id, inner),) = cast(Mapping[str, object], value).items()
            return type_id, inner
        case As.WRAPPER_ARRAY:
            items = cast(Sequence[object], value)
            if (
                not isinstance(value, list | tuple)
                or not 1 <= len(items) <= 2
                or not isinstance(items[0], str)
            ):
                raise ShapeMismatch(
                    "Expected a wrapper array of [type id, value]",
                    type_name=ctx.target.name,
                    path=ctx.path,
                    fragment=value,
                )
            return items[0], items[1] if len(items) == 2 else {}
        case As.EXTERNAL_PROPERTY:
            if parent is None:
                return None, value
            return parent.pop(info.property, None), value


def resolve_subtype(
    base: type[Any],
    options: ClassOptions,
    value: object,
    parent: MutableMapping[str, object] | None,
    ctx: TransformContext,
) -> tuple[type[Any], object]:
    """Return the concrete class for ``value`` and the value to bind into it."""

    info = options.type_info
    if info is None:
        return base, value

    type_id, working = _extract(value, info, parent, ctx)
    if type_id is None:
        if ctx.deser(DeserializationFeature.FAIL_ON_MISSING_TYPE_ID):
            raise MissingTypeId(
                f"Missing type id {info.property!r}",
                type_name=base.__name__,
                path=ctx.path,
                fragment=value,
            )
        return base, working

    resolved = _class_for_id(str(type_id), base, options, ctx)
    if resolved is None:
        if ctx.deser(DeserializationFeature.FAIL_ON_INVALID_SUBTYPE):
            raise InvalidSubtype(
                type_id,
                known_ids(base, options, ctx),
                type_name=base.__name__,
                path=ctx.path,
                fragment=value,
            )
        resolved = base

    logger.debug(
        "Resolved polymorphic subtype.",
        event="subtype.resolved",
        context={"base": base.__name__, "type_id": type_id, "type": resolved.__name__},
    )
    return resolved, working


def type_id_for(value: object, base: type[Any], options: ClassOptions) -> str:
    """Return the discriminator written for ``value``."""

    info = options.type_info or TypeInfo()
    cls = type(value)
    resolver = options.type_id_resolver
    if resolver is not None:
        return resolver.id_from_value(value, base)
    if info.use is TypeId.CLASS:
        return type_identifier(cls)
    for subtype in options.subtypes or ():
        if subtype.cls is cls and subtype.name is not None:
            return subtype.name
    return cls.__name__


def write_type_info(body: object, type_id: str, info: TypeInfo) -> object:
    """Embed ``type_id`` into an encoded ``body`` following ``info.include``."""

    match info.include:
        case As.PROPERTY if isinstance(body, Mapping):
            return {info.property: type_id, **cast(Mapping[str, object], body)}
        case As.WRAPPER_OBJECT:
            return {type_id: body}
        case As.EXTERNAL_PROPERTY:
            return body
        case _:
            return [type_id, body]


__all__ = [
    "known_ids",
    "resolve_subtype",
    "subtype_registry",
    "type_id_for",
    "write_type_info",
]
