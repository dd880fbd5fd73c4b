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

"""Object identity bookkeeping and post-construction reference linking."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping, Set
from typing import Any, cast
from uuid import uuid4

from ..annotations import IdentityInfo, IdGenerator
from ..errors import IdentityTypeConflict
from ..features import Decorator
from ..logging import StructuredLogger, get_logger
from ._coercers import MISSING
from ._context import GlobalContext, TransformContext
from ._schema import ClassSchema

logger: StructuredLogger = get_logger(__name__, context={"component": "identity"})


def scoped_id(scope: str, object_id: object) -> str:
    return f"{scope}: {object_id}"


def lookup_seen(
    value: object,
    cls: type[Any],
    identity: IdentityInfo,
    ctx: TransformContext,
    glob: GlobalContext,
) -> object:
    """Short-circuit a node whose id was already bound in this call.

    Returns the earlier instance, ``None`` for a bare id that is not known
    yet (recorded as unresolved), or :data:`MISSING` when the node has to be
    bound normally.
    """

    if isinstance(value, Mapping):
        object_id = cast(Mapping[str, object], value).get(identity.property)
        if object_id is None:
            return MISSING
    elif isinstance(value, list | tuple):
        return MISSING
    else:
        object_id = value

    key = scoped_id(identity.scope, object_id)
    if key in glob.seen:
        instance = glob.seen[key]
        if not isinstance(instance, cls):
            raise IdentityTypeConflict(
                f"Already had {type(instance).__name__} for id {object_id!r}",
                type_name=cls.__name__,
                path=ctx.path,
                fragment=value,
            )
        glob.unresolved.discard(key)
        return instance

    if not isinstance(value, Mapping):
        glob.unresolved.add(key)
        logger.debug(
            "Deferred unresolved object id.",
            event="identity.unresolved",
            context={"id": key, "path": ctx.path},
        )
        return None
    return MISSING


def register(
    instance: object,
    source: Mapping[str, object],
    identity: IdentityInfo,
    glob: GlobalContext,
) -> None:
    """Record ``instance`` under its scoped id; the first registration wins."""

    object_id = source.get(identity.property)
    if object_id is None:
        return
    _ = glob.seen.setdefault(scoped_id(identity.scope, object_id), instance)


def id_for_dump(
    value: object,
    identity: IdentityInfo,
    schema: ClassSchema,
    glob: GlobalContext,
) -> tuple[object, bool]:
    """Return ``(object id, first occurrence)`` for an identity-tracked value."""

    key = id(value)
    if key in glob.written_ids:
        return glob.written_ids[key], False

    match identity.generator:
        case IdGenerator.PROPERTY:
            prop = schema.find(identity.property)
            attr = prop.name if prop is not None else identity.property
            object_id = getattr(value, attr, None)
        case IdGenerator.INT_SEQUENCE:
            object_id = next(glob.sequence)
        case IdGenerator.UUID4:
            object_id = str(uuid4())

    if object_id is not None:
        glob.written_ids[key] = object_id
    return object_id, True


def assign(instance: object, name: str, value: object) -> None:
    """Set ``name`` through its setter or field, frozen dataclasses included."""

    try:
        setattr(instance, name, value)
    except dataclasses.FrozenInstanceError:
        object.__setattr__(instance, name, value)


def inject_values(
    instance: object,
    schema: ClassSchema,
    supplied: Set[str],
    ctx: TransformContext,
) -> None:
    """Assign ``injectable_values`` to properties declaring :class:`Inject`."""

    if not ctx.enabled(Decorator.INJECT):
        return
    injectables = ctx.config.injectable_values or {}
    for prop in schema.properties:
        inject = prop.options.inject
        if inject is None:
            continue
        key = inject.key or prop.name
        if key not in injectables:
            continue
        if prop.name in supplied and inject.use_input:
            continue
        assign(instance, prop.name, injectables[key])


def _elements(value: object) -> Iterable[object]:
    if isinstance(value, Mapping):
        return cast(Mapping[object, object], value).values()
    if isinstance(value, list | tuple | set | frozenset):
        return cast(Iterable[object], value)
    return (value,)


def link_references(
    instance: object, schema: ClassSchema, ctx: TransformContext
) -> None:
    """Point back-references of managed children at ``instance``."""

    if not ctx.enabled(Decorator.REFERENCE):
        return
    for prop in schema.properties:
        reference = prop.options.managed_reference
        if not reference:
            continue
        child = getattr(instance, prop.name, None)
        if child is None:
            continue
        for element in _elements(child):
            if element is None:
                continue
            back = next(
                (
                    candidate
                    for candidate in ctx.schema(type(element)).properties
                    if candidate.options.back_reference == reference
                ),
                None,
            )
            if back is not None:
                assign(element, back.name, instance)


__all__ = [
    "assign",
    "id_for_dump",
    "inject_values",
    "link_references",
    "lookup_seen",
    "register",
    "scoped_id",
]
