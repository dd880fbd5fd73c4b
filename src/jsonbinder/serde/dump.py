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

"""Serialize direction of the transform engine."""

# pyright: reportUnknownArgumentType=false, reportUnknownVariableType=false, reportUnknownMemberType=false

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any, Final, cast

from ..annotations import As, ClassOptions
from ..errors import SelfReferenceError
from ..features import Decorator, SerializationFeature
from ..logging import StructuredLogger, get_logger
from ..types import JSONValue
from ._coercers import MISSING, dump_boxed, dump_float, dump_key, null_default
from ._context import GlobalContext, TransformContext
from ._creators import is_ignored
from ._identity import id_for_dump
from ._polymorphism import type_id_for, write_type_info
from ._schema import ClassSchema, PropertyDescriptor
from ._types import BOXED, OBJECT, is_bean, is_collection, is_mapping, is_primitive

logger: StructuredLogger = get_logger(__name__, context={"component": "dump"})

_NOT_HANDLED: Final = object()


def write(value: object, ctx: TransformContext) -> JSONValue:
    """Encode an object graph into a JSON value tree."""

    return cast(JSONValue, serialize(value, ctx, GlobalContext()))


def serialize(
    value: object,
    ctx: TransformContext,
    glob: GlobalContext,
    *,
    key: str | None = None,
) -> object:
    cls = type(value) if value is not None else ctx.target.cls
    ctx = ctx.with_type_override(cls)

    for mapper in ctx.config.serializers or ():
        if mapper.applies(cls, value):
            logger.debug(
                "Custom serializer intercepted value.",
                event="mapper.intercepted",
                context={"direction": "stringify", "type": cls.__name__, "path": ctx.path},
            )
            return mapper.fn(key, value, ctx)

    if value is not None and is_bean(cls) and ctx.enabled(Decorator.CUSTOM):
        hook = ctx.options_for(ctx.schema(cls)).serialize
        if hook is not None:
            value = hook(value)

    if value is None:
        return _null(ctx)

    stages = (
        lambda: _dump_scalar(value, ctx),
        lambda: _dump_mapping(value, ctx, glob),
        lambda: _dump_collection(value, ctx, glob),
        lambda: _dump_bean(value, ctx, glob),
    )
    for stage in stages:
        result = stage()
        if result is not _NOT_HANDLED:
            return result
    return value


def _null(ctx: TransformContext) -> object:
    target = ctx.target
    if target.nullable or not is_primitive(target.cls):
        return None
    default = null_default(
        target.cls, lambda name: ctx.ser(SerializationFeature(name))
    )
    return None if default is MISSING else default


def _dump_scalar(value: object, ctx: TransformContext) -> object:
    if isinstance(value, (Enum, *BOXED)):
        return dump_boxed(
            value, timestamps=ctx.ser(SerializationFeature.WRITE_DATES_AS_TIMESTAMPS)
        )
    if isinstance(value, float):
        return dump_float(value, ctx.ser)
    if isinstance(value, bool | int | str):
        return value
    return _NOT_HANDLED


def _element_hook(ctx: TransformContext, attr: str) -> Any:
    if ctx.prop is None or not ctx.enabled(Decorator.CUSTOM):
        return None
    return getattr(ctx.prop.options, attr)


def _dump_mapping(value: object, ctx: TransformContext, glob: GlobalContext) -> object:
    if not isinstance(value, Mapping):
        return _NOT_HANDLED
    value_ref = ctx.target.arg(1) if is_mapping(ctx.target.cls) else OBJECT
    key_hook = _element_hook(ctx, "key_serialize")
    content_hook = _element_hook(ctx, "content_serialize")
    timestamps = ctx.ser(SerializationFeature.WRITE_DATES_AS_TIMESTAMPS)
    result: dict[str, object] = {}
    for raw_key, item in cast(Mapping[object, object], value).items():
        if key_hook is not None:
            raw_key = key_hook(raw_key)
        wire_key = dump_key(raw_key, timestamps=timestamps)
        if content_hook is not None:
            item = content_hook(item)
        result[wire_key] = serialize(
            item, ctx.child(value_ref, f"{ctx.path}.{wire_key}"), glob, key=wire_key
        )
    if ctx.ser(SerializationFeature.ORDER_MAP_ENTRIES_BY_KEYS):
        return dict(sorted(result.items()))
    return result


def _dump_collection(
    value: object, ctx: TransformContext, glob: GlobalContext
) -> object:
    if not is_collection(type(value)):
        return _NOT_HANDLED
    target = ctx.target
    typed = is_collection(target.cls)
    content_hook = _element_hook(ctx, "content_serialize")
    encoded: list[object] = []
    for index, item in enumerate(cast(Iterable[object], value)):
        if content_hook is not None:
            item = content_hook(item)
        if typed:
            element = target.arg(index if not target.variadic else 0)
        else:
            element = OBJECT
        encoded.append(
            serialize(item, ctx.child(element, f"{ctx.path}[{index}]"), glob)
        )
    return encoded


def _declared_base(value: object, ctx: TransformContext) -> type[Any]:
    declared = ctx.target.cls
    if is_bean(declared) and isinstance(value, declared):
        return declared
    return type(value)


def _type_options(value: object, base: type[Any], ctx: TransformContext) -> ClassOptions:
    declared = ctx.options_for(ctx.schema(base))
    if declared.type_info is not None:
        return declared
    return ctx.options_for(ctx.schema(type(value)))


def _dump_bean(value: object, ctx: TransformContext, glob: GlobalContext) -> object:
    cls = type(value)
    if not is_bean(cls):
        return _NOT_HANDLED
    schema = ctx.schema(cls)
    options = ctx.options_for(schema)

    identity = options.identity if ctx.enabled(Decorator.IDENTITY) else None
    object_id: object = None
    if identity is not None:
        object_id, first = id_for_dump(value, identity, schema, glob)
        if not first:
            return object_id
    if object_id is None and id(value) in glob.ancestors:
        if ctx.ser(SerializationFeature.FAIL_ON_SELF_REFERENCES):
            raise SelfReferenceError(
                "Direct self-reference leading to a cycle",
                type_name=schema.name,
                path=ctx.path,
            )
        return None

    glob.ancestors.append(id(value))
    try:
        value_prop = schema.value_property
        if value_prop is not None and ctx.enabled(Decorator.VALUE):
            body = serialize(
                getattr(value, value_prop.name),
                ctx.child(value_prop.type, ctx.path, prop=value_prop, parent_type=cls),
                glob,
            )
        else:
            properties = _dump_properties(value, schema, options, ctx, glob)
            if identity is not None and object_id is not None:
                properties = {identity.property: object_id, **properties}
            body = properties
    finally:
        _ = glob.ancestors.pop()

    base = _declared_base(value, ctx)
    type_options = _type_options(value, base, ctx)
    if type_options.type_info is not None and ctx.enabled(Decorator.TYPE_INFO):
        body = write_type_info(
            body, type_id_for(value, base, type_options), type_options.type_info
        )

    if ctx.root and ctx.ser(SerializationFeature.WRAP_ROOT_VALUE):
        root_name = options.root_name if ctx.enabled(Decorator.ROOT_NAME) else None
        body = {root_name or schema.name: body}
    return body


def _emits(
    prop: PropertyDescriptor, options: ClassOptions, ctx: TransformContext
) -> bool:
    if is_ignored(prop, ctx) or not prop.readable:
        return False
    ignore = options.ignore_properties
    if (
        ignore is not None
        and ctx.enabled(Decorator.IGNORE)
        and not ignore.allow_getters
        and (prop.name in ignore.names or prop.wire_name in ignore.names)
    ):
        return False
    if prop.options.back_reference and ctx.enabled(Decorator.REFERENCE):
        return False
    leaf = prop.type.leaf
    if is_bean(leaf) and ctx.schema(leaf).options.ignore_type:
        return False
    return ctx.in_view(
        prop.views,
        default=ctx.ser(SerializationFeature.DEFAULT_VIEW_INCLUSION),
    )


def _external_type_id(
    prop: PropertyDescriptor, child: object, ctx: TransformContext
) -> tuple[str, str] | None:
    if child is None or not is_bean(type(child)) or not ctx.enabled(Decorator.TYPE_INFO):
        return None
    declared = prop.type.cls
    base = declared if is_bean(declared) and isinstance(child, declared) else type(child)
    options = ctx.schema(base).options
    pushed = prop.options.element_options
    if pushed is not None:
        options = options.with_fallback(pushed)
    info = options.type_info
    if info is None or info.include is not As.EXTERNAL_PROPERTY:
        return None
    return info.property, type_id_for(child, base, options)


def _dump_properties(
    value: object,
    schema: ClassSchema,
    options: ClassOptions,
    ctx: TransformContext,
    glob: GlobalContext,
) -> dict[str, object]:
    naming = ctx.enabled(Decorator.NAMING)
    custom = ctx.enabled(Decorator.CUSTOM)
    body: dict[str, object] = {}
    for prop in schema.properties:
        if not _emits(prop, options, ctx):
            continue
        wire = prop.key(naming=naming)
        raw = getattr(value, prop.name, None)
        if prop.options.raw and ctx.enabled(Decorator.RAW_VALUE) and isinstance(raw, str):
            body[wire] = json.loads(raw)
            continue
        hook = prop.options.serialize if custom else None
        if hook is not None:
            raw = hook(raw)
        child = ctx.child(
            prop.type, f"{ctx.path}.{wire}", prop=prop, parent_type=schema.cls
        )
        encoded = serialize(raw, child, glob, key=wire)

        unwrapped = prop.options.unwrapped
        if unwrapped is not None and ctx.enabled(Decorator.UNWRAPPED):
            if isinstance(encoded, Mapping):
                for inner_key, inner in cast(Mapping[str, object], encoded).items():
                    body[f"{unwrapped.prefix}{inner_key}{unwrapped.suffix}"] = inner
            continue

        external = _external_type_id(prop, raw, ctx)
        if external is not None:
            body[external[0]] = external[1]
        body[wire] = encoded

    if schema.any_getter is not None and ctx.enabled(Decorator.ANY):
        extras = cast(Mapping[str, object], getattr(value, schema.any_getter)())
        for extra_key, extra in extras.items():
            body[extra_key] = serialize(
                extra,
                ctx.child(OBJECT, f"{ctx.path}.{extra_key}", parent_type=schema.cls),
                glob,
                key=extra_key,
            )
    return body


__all__ = ["serialize", "write"]
