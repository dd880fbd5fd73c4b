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

"""Creator selection and invocation for the deserialize direction."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from typing import Any

from ..annotations import CreatorMode
from ..errors import (
    MissingCreatorProperty,
    NullCreatorProperty,
    RequiredPropertyMissing,
)
from ..features import Decorator, DeserializationFeature
from ._coercers import MISSING
from ._context import TransformContext
from ._schema import ClassSchema, CreatorDescriptor, ParameterDescriptor, PropertyDescriptor

type Convert = Callable[[PropertyDescriptor, object, str | None], object]
"""Binds one raw argument: ``convert(prop, raw value, wire key)``."""


def select_creator(schema: ClassSchema, ctx: TransformContext) -> CreatorDescriptor:
    name = ctx.config.creator_name if ctx.enabled(Decorator.CREATOR) else None
    return schema.creator(name)


def candidate_keys(prop: PropertyDescriptor, ctx: TransformContext) -> list[str]:
    """Wire keys addressing ``prop`` in lookup order.

    The explicit (or naming-strategy) wire name comes first, then aliases in
    declaration order, then the attribute name itself.
    """

    keys = [prop.key(naming=ctx.enabled(Decorator.NAMING))]
    if ctx.enabled(Decorator.ALIAS):
        keys.extend(prop.options.aliases)
    keys.append(prop.name)
    return list(dict.fromkeys(keys))


def source_key(
    prop: PropertyDescriptor, source: Mapping[str, object], ctx: TransformContext
) -> str | None:
    for key in candidate_keys(prop, ctx):
        if key in source:
            return key
    return None


def is_ignored(prop: PropertyDescriptor, ctx: TransformContext) -> bool:
    return prop.options.ignore and ctx.enabled(Decorator.IGNORE)


def _injectable(
    prop: PropertyDescriptor, ctx: TransformContext
) -> tuple[bool, bool, object]:
    """Return ``(available, forced, value)`` for an injected property."""

    inject = prop.options.inject
    if inject is None or not ctx.enabled(Decorator.INJECT):
        return False, False, None
    injectables = ctx.config.injectable_values or {}
    key = inject.key or prop.name
    if key not in injectables:
        return False, False, None
    return True, not inject.use_input, injectables[key]


def _missing(param: ParameterDescriptor, ctx: TransformContext) -> object:
    if ctx.deser(DeserializationFeature.MAP_UNDEFINED_TO_NULL):
        return None
    if param.kind is inspect.Parameter.POSITIONAL_ONLY:
        return param.default if param.has_default else None
    return MISSING if param.has_default else None


class CreatorCall:
    """Arguments bound for one creator invocation.

    ``consumed`` holds the wire keys taken from the source object and
    ``supplied`` the attribute names whose values came from the input.
    """

    def __init__(
        self,
        descriptor: CreatorDescriptor,
        schema: ClassSchema,
        source: Mapping[str, object],
        ctx: TransformContext,
        accepts: Callable[[PropertyDescriptor], bool],
    ) -> None:
        super().__init__()
        self.descriptor = descriptor
        self.schema = schema
        self.source = source
        self.ctx = ctx
        self.accepts = accepts
        self.consumed: set[str] = set()
        self.supplied: set[str] = set()

    def invoke(self, whole: object, convert: Convert) -> object:
        fn = self.descriptor.resolve(self.schema.cls)
        match self.descriptor.mode:
            case CreatorMode.DELEGATING:
                return self._delegate(fn, whole, convert)
            case CreatorMode.PROPERTIES_OBJECT:
                return fn(self._bag(convert))
            case CreatorMode.STANDARD:
                if not self.descriptor.parameters:
                    return fn(whole) if self.descriptor.accepts_varargs else fn()
                args, kwargs = self._arguments(convert)
                return fn(*args, **kwargs)

    def _delegate(
        self, fn: Callable[..., object], whole: object, convert: Convert
    ) -> object:
        if not self.descriptor.parameters:
            return fn(whole) if self.descriptor.accepts_varargs else fn()
        if isinstance(whole, Mapping):
            self.consumed.update(self.source)
        return fn(convert(self.descriptor.parameters[0].prop, whole, None))

    def _bag(self, convert: Convert) -> dict[str, object]:
        bag: dict[str, object] = {}
        for prop in self.schema.properties:
            if not self.accepts(prop):
                continue
            key = source_key(prop, self.source, self.ctx)
            if key is None:
                if prop.options.required:
                    raise self._required(prop)
                continue
            bag[prop.name] = convert(prop, self.source[key], key)
            self.consumed.add(key)
            self.supplied.add(prop.name)
        return bag

    def _required(self, prop: PropertyDescriptor) -> RequiredPropertyMissing:
        return RequiredPropertyMissing(
            f"Required property {prop.wire_name!r} not found",
            type_name=self.schema.name,
            path=self.ctx.path,
            fragment=dict(self.source),
        )

    def _argument(self, param: ParameterDescriptor, convert: Convert) -> object:
        prop = param.prop
        if not self.accepts(prop):
            return _missing(param, self.ctx)

        available, forced, injected = _injectable(prop, self.ctx)
        if forced:
            return injected

        key = source_key(prop, self.source, self.ctx)
        if key is not None:
            self.consumed.add(key)
            self.supplied.add(prop.name)
            return convert(prop, self.source[key], key)
        if available:
            return injected
        if prop.options.required:
            raise self._required(prop)
        if self.descriptor.explicit and self.ctx.deser(
            DeserializationFeature.FAIL_ON_MISSING_CREATOR_PROPERTIES
        ):
            raise MissingCreatorProperty(
                f"Missing creator argument {param.name!r} at index {param.index}",
                type_name=self.schema.name,
                path=self.ctx.path,
                fragment=dict(self.source),
            )
        return _missing(param, self.ctx)

    def _arguments(self, convert: Convert) -> tuple[list[object], dict[str, Any]]:
        args: list[object] = []
        kwargs: dict[str, Any] = {}
        reject_nulls = self.descriptor.explicit and self.ctx.deser(
            DeserializationFeature.FAIL_ON_NULL_CREATOR_PROPERTIES
        )
        for param in self.descriptor.parameters:
            value = self._argument(param, convert)
            effective = param.default if value is MISSING else value
            if reject_nulls and effective is None:
                raise NullCreatorProperty(
                    f"Found null for creator argument {param.name!r} "
                    f"at index {param.index}",
                    type_name=self.schema.name,
                    path=self.ctx.path,
                    fragment=dict(self.source),
                )
            if param.kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            elif value is not MISSING:
                kwargs[param.name] = value
        return args, kwargs


__all__ = [
    "Convert",
    "CreatorCall",
    "candidate_keys",
    "is_ignored",
    "select_creator",
    "source_key",
]
