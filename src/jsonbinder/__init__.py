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

"""Declarative JSON binding for Python object graphs.

Classes describe their JSON shape with :class:`JsonProperty` markers and the
:func:`json_type` decorator; :func:`parse` and :func:`stringify` convert
between JSON text and instances, covering polymorphism, object identity,
views, creators, unwrapping, references and injection.
"""

from __future__ import annotations

from .annotations import (
    Access,
    As,
    ClassOptions,
    CreatorMode,
    IdentityInfo,
    IdGenerator,
    IgnoreProperties,
    Inject,
    JsonProperty,
    Naming,
    Nulls,
    SubType,
    TypeId,
    TypeIdResolver,
    TypeInfo,
    Unwrapped,
    any_getter,
    any_setter,
    creator,
    json_type,
)
from .errors import (
    BindError,
    IdentityTypeConflict,
    InvalidSubtype,
    MalformedJSON,
    MissingCreatorProperty,
    MissingTypeId,
    MultipleValueProviders,
    NullCreatorProperty,
    NullForPrimitive,
    NullValueRejected,
    RequiredPropertyMissing,
    RootNameMismatch,
    ScalarCoercionError,
    SchemaError,
    SelfReferenceError,
    ShapeMismatch,
    UnknownProperties,
    UnresolvedObjectIds,
)
from .features import Decorator, DeserializationFeature, SerializationFeature
from .serde import (
    DEFAULT_CACHE,
    Config,
    CustomMapper,
    ObjectMapper,
    SchemaCache,
    merge_contexts,
    parse,
    stringify,
)

__all__ = [
    "DEFAULT_CACHE",
    "Access",
    "As",
    "BindError",
    "ClassOptions",
    "Config",
    "CreatorMode",
    "CustomMapper",
    "Decorator",
    "DeserializationFeature",
    "IdGenerator",
    "IdentityInfo",
    "IdentityTypeConflict",
    "IgnoreProperties",
    "Inject",
    "InvalidSubtype",
    "JsonProperty",
    "MalformedJSON",
    "MissingCreatorProperty",
    "MissingTypeId",
    "MultipleValueProviders",
    "Naming",
    "NullCreatorProperty",
    "NullForPrimitive",
    "NullValueRejected",
    "Nulls",
    "ObjectMapper",
    "RequiredPropertyMissing",
    "RootNameMismatch",
    "ScalarCoercionError",
    "SchemaCache",
    "SchemaError",
    "SelfReferenceError",
    "SerializationFeature",
    "ShapeMismatch",
    "SubType",
    "TypeId",
    "TypeIdResolver",
    "TypeInfo",
    "UnknownProperties",
    "UnresolvedObjectIds",
    "Unwrapped",
    "any_getter",
    "any_setter",
    "creator",
    "json_type",
    "merge_contexts",
    "parse",
    "stringify",
]
