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

"""Deserialize direction of the transform engine.

Every node of a decoded JSON tree passes through :func:`transform` together
with an immutable :class:`~jsonbinder.serde._context.TransformContext`
describing its declared target. The per-node pipeline is:

1. per-type overrides from ``Config.for_type``;
2. custom deserializers, then the class-level ``deserialize`` hook;
3. scalar coercion, null defaulting, null rejection and empty-as-null;
4. structural dispatch: bean, mapping, collection, boxed value, primitive.

Beans additionally go through root unwrapping, identity short-circuiting,
polymorphic resolution, property unwrapping and key canonicalization before
the creator runs and the remaining properties are assigned.
"""

# pyright: reportUnknownArgumentType=false, reportUnknownVariableType=false, reportUnknownMemberType=false

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping, MutableMapping, Sequence
from enum import Enum
from typing import Any, Final, cast

from ..annotations import As, ClassOptions, CreatorMode, Nulls
from ..errors import (
    NullForPrimitive,
    NullValueRejected,
    RequiredPropertyMissing,
    RootNameMismatch,
    ShapeMismatch,
    UnknownProperties,
    UnresolvedObjectIds,
)
from ..features import Decorator, DeserializationFeature
from ..logging import StructuredLogger, get_logger
from ._coercers import (
    MISSING,
    coerce_scalar,
    null_default,
    parse_bigint,
    parse_boxed,
    parse_key,
)
from ._context import GlobalContext, TransformContext
from ._creators import (
    Convert,
    CreatorCall,
    candidate_keys,
    is_ignored,
    select_creator,
    source_key,
)
from ._identity import assign, inject_values, link_references, lookup_seen, register
from ._naming import split_words
from ._polymorphism import resolve_subtype
from ._schema import ClassSchema, PropertyDescriptor
from ._types import BOXED, is_bean, is_collection, is_mapping, is_primitive

logger: StructuredLogger = get_logger(__name__, context={"component": "parse"})

_NOT_HANDLED: Final = object()

type Source = dict[str, object]


def bind(value: object, ctx: TransformContext) -> object:
    """Bind a decoded JSON tree to ``ctx.target``.

    Raises :class:`~jsonbinder.errors.UnresolvedObjectIds` when bare object
    ids never resolved and ``FAIL_ON_UNRESOLVED_OBJECT_IDS`` is enabled.
    """

    glob = GlobalContext()
    result = transform(value, ctx, glob)
    if glob.unresolved and ctx.deser(
        DeserializationFeature.FAIL_ON_UNRESOLVED_OBJECT_IDS
    ):
        raise UnresolvedObjectIds(glob.unresolved, type_name=ctx.target.name)
    return result


def transform(
    value: object,
    ctx: TransformContext,
    glob: GlobalContext,
    *,
    key: str | None = None,
    parent: MutableMapping[str, object] | None = None,
) -> object:
    ctx = ctx.with_type_override(ctx.target.cls)

    intercepted = _intercept(key, value, ctx)
    if intercepted is not _NOT_HANDLED:
        return intercepted

    value = _class_hook(value, ctx)
    value = _scalar_policy(value, ctx)
    if value is None:
        return None

    stages = (
        lambda: _coerce_bean(value, ctx, glob, parent),
        lambda: _coerce_mapping(value, ctx, glob),
        lambda: _coerce_collection(value, ctx, glob),
        lambda: _coerce_boxed(value, ctx),
        lambda: _coerce_primitive(value, ctx),
    )
    for stage in stages:
        result = stage()
        if result is not _NOT_HANDLED:
            return result
    return value


# ---------------------------------------------------------------------------
# Interception and scalar policy
# ---------------------------------------------------------------------------


def _intercept(key: str | None, value: object, ctx: TransformContext) -> object:
    cls = ctx.target.cls
    for mapper in ctx.config.deserializers or ():
        if mapper.applies(cls, value):
            logger.debug(
                "Custom deserializer intercepted value.",
                event="mapper.intercepted",
                context={"direction": "parse", "type": cls.__name__, "path": ctx.path},
            )
            return mapper.fn(key, value, ctx)
    return _NOT_HANDLED


def _class_hook(value: object, ctx: TransformContext) -> object:
    cls = ctx.target.cls
    if not is_bean(cls) or not ctx.enabled(Decorator.CUSTOM):
        return value
    hook = ctx.options_for(ctx.schema(cls)).deserialize
    return value if hook is None else hook(value)


def _feature(ctx: TransformContext, name: str) -> bool:
    return ctx.deser(DeserializationFeature(name))


def _scalar_policy(value: object, ctx: TransformContext) -> object:
    target = ctx.target
    cls = target.cls
    if (
        value is not None
        and is_primitive(cls)
        and ctx.deser(DeserializationFeature.ALLOW_COERCION_OF_SCALARS)
    ):
        value = coerce_scalar(value, cls, path=ctx.path)

    if value is None and is_primitive(cls) and not target.nullable:
        default = null_default(cls, lambda name: _feature(ctx, name))
        if default is not MISSING:
            return default
        if ctx.deser(DeserializationFeature.FAIL_ON_NULL_FOR_PRIMITIVES):
            raise NullForPrimitive(
                f"Null value for primitive {cls.__name__}",
                type_name=ctx.owner_name,
                path=ctx.path,
            )

    empty_array = DeserializationFeature.ACCEPT_EMPTY_ARRAY_AS_NULL_OBJECT
    if value == [] and ctx.deser(empty_array):
        return None
    empty_string = DeserializationFeature.ACCEPT_EMPTY_STRING_AS_NULL_OBJECT
    if value == "" and ctx.deser(empty_string):
        return None
    return value


# ---------------------------------------------------------------------------
# Structural dispatch
# ---------------------------------------------------------------------------


def _element_hook(ctx: TransformContext, attr: str) -> Any:
    if ctx.prop is None or not ctx.enabled(Decorator.CUSTOM):
        return None
    return getattr(ctx.prop.options, attr)


def _coerce_mapping(value: object, ctx: TransformContext, glob: GlobalContext) -> object:
    target = ctx.target
    if not is_mapping(target.cls):
        return _NOT_HANDLED
    if not isinstance(value, Mapping):
        raise ShapeMismatch(
            f"Expected an object for {target.name}",
            type_name=ctx.owner_name,
            path=ctx.path,
            fragment=value,
        )
    key_hook = _element_hook(ctx, "key_deserialize")
    content_hook = _element_hook(ctx, "content_deserialize")
    key_ref, value_ref = target.arg(0), target.arg(1)
    result: dict[object, object] = {}
    for raw_key, item in cast(Mapping[str, object], value).items():
        path = f"{ctx.path}.{raw_key}"
        bound_key = key_hook(raw_key) if key_hook is not None else raw_key
        if isinstance(bound_key, str):
            bound_key = parse_key(bound_key, key_ref.cls, path=path)
        if content_hook is not None:
            item = content_hook(item)
        result[bound_key] = transform(
            item, ctx.child(value_ref, path), glob, key=raw_key
        )
    if target.cls is dict:
        return result
    return target.cls(result)


def _coerce_collection(
    value: object, ctx: TransformContext, glob: GlobalContext
) -> object:
    target = ctx.target
    if not is_collection(target.cls):
        return _NOT_HANDLED
    if not isinstance(value, list | tuple):
        raise ShapeMismatch(
            f"Expected an array for {target.name}",
            type_name=ctx.owner_name,
            path=ctx.path,
            fragment=value,
        )
    items = list(cast(Sequence[object], value))
    if not target.variadic and len(items) != len(target.args):
        raise ShapeMismatch(
            f"Expected {len(target.args)} items for {target.name}",
            type_name=ctx.owner_name,
            path=ctx.path,
            fragment=value,
        )
    content_hook = _element_hook(ctx, "content_deserialize")
    bound: list[object] = []
    for index, item in enumerate(items):
        if content_hook is not None:
            item = content_hook(item)
        element = target.arg(index if not target.variadic else 0)
        bound.append(transform(item, ctx.child(element, f"{ctx.path}[{index}]"), glob))
    if target.cls is list:
        return bound
    return target.cls(bound)


def _coerce_boxed(value: object, ctx: TransformContext) -> object:
    cls = ctx.target.cls
    if issubclass(cls, Enum) or issubclass(cls, BOXED):
        return parse_boxed(value, cls, path=ctx.path)
    return _NOT_HANDLED


def _coerce_primitive(value: object, ctx: TransformContext) -> object:
    if ctx.target.cls is int and isinstance(value, str):
        return parse_bigint(value, path=ctx.path)
    return _NOT_HANDLED


# ---------------------------------------------------------------------------
# Beans
# ---------------------------------------------------------------------------


def _coerce_bean(
    value: object,
    ctx: TransformContext,
    glob: GlobalContext,
    parent: MutableMapping[str, object] | None,
) -> object:
    cls = ctx.target.cls
    if not is_bean(cls):
        return _NOT_HANDLED
    if isinstance(value, cls):
        return value

    schema = ctx.schema(cls)
    options = ctx.options_for(schema)
    if ctx.root and ctx.deser(DeserializationFeature.UNWRAP_ROOT_VALUE):
        value = _unwrap_root(value, schema, options, ctx)

    identity = options.identity if ctx.enabled(Decorator.IDENTITY) else None
    if identity is not None:
        seen = lookup_seen(value, cls, identity, ctx, glob)
        if seen is not MISSING:
            return seen

    if options.type_info is not None and ctx.enabled(Decorator.TYPE_INFO):
        resolved, value = resolve_subtype(cls, options, value, parent, ctx)
        if identity is not None:
            seen = lookup_seen(value, resolved, identity, ctx, glob)
            if seen is not MISSING:
                return seen
        if resolved is not cls:
            ctx = ctx.with_target(
                dataclasses.replace(ctx.target, cls=resolved)
            ).with_type_override(resolved)
            schema = ctx.schema(resolved)
            options = ctx.options_for(schema)
            identity = options.identity if ctx.enabled(Decorator.IDENTITY) else None

    if not isinstance(value, Mapping):
        return _bind_scalar(value, schema, ctx, glob)
    source: Source = dict(cast(Mapping[str, object], value))
    return _bind_object(source, schema, options, ctx, glob)


def _unwrap_root(
    value: object, schema: ClassSchema, options: ClassOptions, ctx: TransformContext
) -> object:
    root_name = options.root_name if ctx.enabled(Decorator.ROOT_NAME) else None
    name = root_name or schema.name
    if (
        not isinstance(value, Mapping)
        or len(cast(Mapping[str, object], value)) != 1
        or name not in value
    ):
        raise RootNameMismatch(
            f"Expected a single root key {name!r}",
            type_name=schema.name,
            path=ctx.path,
            fragment=value,
        )
    return cast(Mapping[str, object], value)[name]


def _bind_scalar(
    value: object, schema: ClassSchema, ctx: TransformContext, glob: GlobalContext
) -> object:
    creator = select_creator(schema, ctx)
    options = ctx.options_for(schema)
    if creator.mode is CreatorMode.DELEGATING:
        call = CreatorCall(
            creator, schema, {}, ctx, lambda prop: _accepts_input(prop, options, ctx)
        )
        return call.invoke(value, _converter(schema, ctx, glob, {}))
    value_prop = schema.value_property
    if value_prop is not None and ctx.enabled(Decorator.VALUE):
        source: Source = {value_prop.key(naming=ctx.enabled(Decorator.NAMING)): value}
        return _bind_object(source, schema, options, ctx, glob)
    raise ShapeMismatch(
        f"Expected an object for {schema.name}",
        type_name=schema.name,
        path=ctx.path,
        fragment=value,
    )


def _converter(
    schema: ClassSchema,
    ctx: TransformContext,
    glob: GlobalContext,
    source: Source,
) -> Convert:
    def convert(prop: PropertyDescriptor, raw: object, key: str | None) -> object:
        return _bind_value(prop, raw, key, schema, ctx, glob, source)

    return convert


def _bind_value(
    prop: PropertyDescriptor,
    raw: object,
    key: str | None,
    schema: ClassSchema,
    ctx: TransformContext,
    glob: GlobalContext,
    source: Source,
) -> object:
    if prop.options.raw and ctx.enabled(Decorator.RAW_VALUE):
        return json.dumps(raw)
    hook = prop.options.deserialize if ctx.enabled(Decorator.CUSTOM) else None
    if hook is not None:
        raw = hook(raw)
    child = ctx.child(
        prop.type,
        f"{ctx.path}.{key or prop.wire_name}",
        prop=prop,
        parent_type=schema.cls,
    )
    return transform(raw, child, glob, key=key, parent=source)


def _bind_object(
    source: Source,
    schema: ClassSchema,
    options: ClassOptions,
    ctx: TransformContext,
    glob: GlobalContext,
) -> object:
    if ctx.enabled(Decorator.UNWRAPPED):
        _collapse_unwrapped(source, schema, ctx)
    source = _canonicalize(source, schema, options, ctx)
    _check_required(source, schema, ctx)

    creator = select_creator(schema, ctx)
    call = CreatorCall(
        creator, schema, source, ctx, lambda prop: _accepts_input(prop, options, ctx)
    )
    instance = call.invoke(source, _converter(schema, ctx, glob, source))

    identity = options.identity if ctx.enabled(Decorator.IDENTITY) else None
    consumed = set(call.consumed)
    if identity is not None:
        register(instance, source, identity, glob)
        if _lookup(schema, identity.property, ctx) is None:
            consumed.add(identity.property)
    consumed.update(_external_type_keys(schema, ctx))

    supplied = set(call.supplied)
    unknown: list[str] = []
    ignored_names = _ignore_list(options, ctx)
    for key, raw in list(source.items()):
        if key in consumed or key not in source:
            continue
        prop = _lookup(schema, key, ctx)
        if prop is None:
            if key in ignored_names:
                continue
            if schema.any_setter is not None and ctx.enabled(Decorator.ANY):
                getattr(instance, schema.any_setter)(key, raw)
            else:
                unknown.append(key)
            continue
        if prop.name in supplied or not _accepts_input(prop, options, ctx):
            continue
        bound = _apply_nulls(
            prop, _bind_value(prop, raw, key, schema, ctx, glob, source), schema, ctx
        )
        if bound is MISSING:
            continue
        assign(instance, prop.name, bound)
        supplied.add(prop.name)

    unknown = [key for key in unknown if key in source]
    if unknown and not _tolerates_unknown(options, ctx):
        raise UnknownProperties(
            unknown,
            type_name=schema.name,
            path=ctx.path,
            fragment=source,
        )

    if ctx.deser(DeserializationFeature.MAP_UNDEFINED_TO_NULL):
        parameters = {param.name for param in creator.parameters}
        for prop in schema.properties:
            if prop.name in supplied or prop.name in parameters:
                continue
            if _accepts_input(prop, options, ctx):
                assign(instance, prop.name, None)

    inject_values(instance, schema, supplied, ctx)
    link_references(instance, schema, ctx)
    return instance


# ---------------------------------------------------------------------------
# Property filtering
# ---------------------------------------------------------------------------


def _lookup(
    schema: ClassSchema, key: str, ctx: TransformContext
) -> PropertyDescriptor | None:
    prop = schema.find(
        key,
        naming=ctx.enabled(Decorator.NAMING),
        aliases=ctx.enabled(Decorator.ALIAS),
    )
    if prop is None:
        prop = schema.get_property(key)
    return prop


def _ignore_list(options: ClassOptions, ctx: TransformContext) -> frozenset[str]:
    ignore = options.ignore_properties
    if ignore is None or not ctx.enabled(Decorator.IGNORE):
        return frozenset()
    return frozenset(ignore.names)


def _type_ignored(prop: PropertyDescriptor, ctx: TransformContext) -> bool:
    leaf = prop.type.leaf
    return is_bean(leaf) and ctx.schema(leaf).options.ignore_type


def _accepts_input(
    prop: PropertyDescriptor, options: ClassOptions, ctx: TransformContext
) -> bool:
    if is_ignored(prop, ctx) or not prop.writable:
        return False
    ignore = options.ignore_properties
    if (
        ignore is not None
        and ctx.enabled(Decorator.IGNORE)
        and not ignore.allow_setters
        and (prop.name in ignore.names or prop.wire_name in ignore.names)
    ):
        return False
    if prop.options.back_reference and ctx.enabled(Decorator.REFERENCE):
        return False
    if _type_ignored(prop, ctx):
        return False
    return ctx.in_view(
        prop.views,
        default=ctx.deser(DeserializationFeature.DEFAULT_VIEW_INCLUSION),
    )


def _external_type_keys(schema: ClassSchema, ctx: TransformContext) -> set[str]:
    """Return discriminator keys that bean members read from this object."""

    if not ctx.enabled(Decorator.TYPE_INFO):
        return set()
    keys: set[str] = set()
    for prop in schema.properties:
        cls = prop.type.cls
        if not is_bean(cls):
            continue
        options = ctx.schema(cls).options
        pushed = prop.options.element_options
        if pushed is not None:
            options = options.with_fallback(pushed)
        info = options.type_info
        if info is not None and info.include is As.EXTERNAL_PROPERTY:
            keys.add(info.property)
    return keys


def _tolerates_unknown(options: ClassOptions, ctx: TransformContext) -> bool:
    ignore = options.ignore_properties
    if (
        ignore is not None
        and ignore.ignore_unknown is not None
        and ctx.enabled(Decorator.IGNORE)
    ):
        return ignore.ignore_unknown
    return not ctx.deser(DeserializationFeature.FAIL_ON_UNKNOWN_PROPERTIES)


def _check_required(
    source: Source, schema: ClassSchema, ctx: TransformContext
) -> None:
    for prop in schema.properties:
        if not prop.options.required or is_ignored(prop, ctx):
            continue
        if source_key(prop, source, ctx) is None:
            raise RequiredPropertyMissing(
                f"Required property {prop.wire_name!r} not found",
                type_name=schema.name,
                path=ctx.path,
                fragment=source,
            )


def _null_rejected(
    prop: PropertyDescriptor, schema: ClassSchema, ctx: TransformContext, where: str
) -> NullValueRejected:
    return NullValueRejected(
        f"Null value rejected for {prop.wire_name!r} at {where}",
        type_name=schema.name,
        path=ctx.path,
    )


def _apply_nulls(
    prop: PropertyDescriptor, value: object, schema: ClassSchema, ctx: TransformContext
) -> object:
    """Apply the ``nulls`` and ``content_nulls`` policies to a bound value.

    Content policies look at list and dict values only. Returns
    :data:`MISSING` when the property has to be skipped.
    """

    if value is None:
        match prop.options.nulls:
            case Nulls.FAIL:
                raise _null_rejected(prop, schema, ctx, "the property")
            case Nulls.SKIP:
                return MISSING
            case Nulls.SET:
                return None

    policy = prop.options.content_nulls
    if policy is Nulls.SET:
        return value
    if isinstance(value, list):
        items = cast(list[object], value)
        if policy is Nulls.FAIL:
            for index, item in enumerate(items):
                if item is None:
                    raise _null_rejected(prop, schema, ctx, f"index {index}")
            return value
        return [item for item in items if item is not None]
    if isinstance(value, dict):
        entries = cast(dict[object, object], value)
        if policy is Nulls.FAIL:
            for entry_key, item in entries.items():
                if item is None:
                    raise _null_rejected(prop, schema, ctx, f"key {entry_key!r}")
            return value
        return {k: item for k, item in entries.items() if item is not None}
    return value


# ---------------------------------------------------------------------------
# Key canonicalization
# ---------------------------------------------------------------------------


def _loose(name: str) -> str:
    return "".join(word.lower() for word in split_words(name))


def _canonicalize(
    source: Source, schema: ClassSchema, options: ClassOptions, ctx: TransformContext
) -> Source:
    """Rename keys that only match a property case-insensitively or loosely.

    Loose matching compares names with separators and case removed and is
    active for classes declaring a naming strategy.
    """

    insensitive = ctx.deser(DeserializationFeature.ACCEPT_CASE_INSENSITIVE_PROPERTIES)
    loose = options.naming is not None and ctx.enabled(Decorator.NAMING)
    if not (insensitive or loose):
        return source

    naming = ctx.enabled(Decorator.NAMING)
    lowered: dict[str, str] = {}
    normalized: dict[str, str] = {}
    for prop in schema.properties:
        primary = prop.key(naming=naming)
        for candidate in candidate_keys(prop, ctx):
            _ = lowered.setdefault(candidate.lower(), primary)
            _ = normalized.setdefault(_loose(candidate), primary)

    renamed: Source = {}
    for key, value in source.items():
        target: str | None = None
        if _lookup(schema, key, ctx) is None:
            if insensitive:
                target = lowered.get(key.lower())
            if target is None and loose:
                target = normalized.get(_loose(key))
        if target is not None and target not in source and target not in renamed:
            key = target
        renamed[key] = value
    return renamed


def _collapse_unwrapped(
    source: Source, schema: ClassSchema, ctx: TransformContext
) -> None:
    """Fold flattened keys of unwrapped properties back into nested objects."""

    naming = ctx.enabled(Decorator.NAMING)
    for prop in schema.properties:
        unwrapped = prop.options.unwrapped
        if unwrapped is None:
            continue
        nested = _gather(
            source, ctx.schema(prop.type.cls), unwrapped.prefix, unwrapped.suffix, ctx
        )
        if nested:
            source[prop.key(naming=naming)] = nested


def _gather(
    source: Source, schema: ClassSchema, prefix: str, suffix: str, ctx: TransformContext
) -> Source:
    naming = ctx.enabled(Decorator.NAMING)
    nested: Source = {}
    for prop in schema.properties:
        unwrapped = prop.options.unwrapped
        if unwrapped is not None:
            inner = _gather(
                source,
                ctx.schema(prop.type.cls),
                prefix + unwrapped.prefix,
                unwrapped.suffix + suffix,
                ctx,
            )
            if inner:
                nested[prop.key(naming=naming)] = inner
            continue
        for candidate in candidate_keys(prop, ctx):
            flattened = f"{prefix}{candidate}{suffix}"
            if flattened in source:
                nested[candidate] = source.pop(flattened)
                break
    return nested


__all__ = ["bind", "transform"]
