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

"""Feature flags toggling policy decisions of the binding engine.

Flags are :class:`~enum.StrEnum` members, so configuration mappings may use
either the member or its plain string name as key::

    Config(deserialization={DeserializationFeature.FAIL_ON_UNKNOWN_PROPERTIES: False})
    Config(deserialization={"FAIL_ON_UNKNOWN_PROPERTIES": False})
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType
from typing import Final

__all__ = [
    "DEFAULT_DESERIALIZATION_FEATURES",
    "DEFAULT_SERIALIZATION_FEATURES",
    "Decorator",
    "DeserializationFeature",
    "SerializationFeature",
]


class DeserializationFeature(StrEnum):
    FAIL_ON_UNKNOWN_PROPERTIES = "FAIL_ON_UNKNOWN_PROPERTIES"
    FAIL_ON_NULL_FOR_PRIMITIVES = "FAIL_ON_NULL_FOR_PRIMITIVES"
    FAIL_ON_MISSING_CREATOR_PROPERTIES = "FAIL_ON_MISSING_CREATOR_PROPERTIES"
    FAIL_ON_NULL_CREATOR_PROPERTIES = "FAIL_ON_NULL_CREATOR_PROPERTIES"
    FAIL_ON_INVALID_SUBTYPE = "FAIL_ON_INVALID_SUBTYPE"
    FAIL_ON_MISSING_TYPE_ID = "FAIL_ON_MISSING_TYPE_ID"
    FAIL_ON_UNRESOLVED_OBJECT_IDS = "FAIL_ON_UNRESOLVED_OBJECT_IDS"
    ACCEPT_CASE_INSENSITIVE_PROPERTIES = "ACCEPT_CASE_INSENSITIVE_PROPERTIES"
    ACCEPT_EMPTY_ARRAY_AS_NULL_OBJECT = "ACCEPT_EMPTY_ARRAY_AS_NULL_OBJECT"
    ACCEPT_EMPTY_STRING_AS_NULL_OBJECT = "ACCEPT_EMPTY_STRING_AS_NULL_OBJECT"
    ALLOW_COERCION_OF_SCALARS = "ALLOW_COERCION_OF_SCALARS"
    UNWRAP_ROOT_VALUE = "UNWRAP_ROOT_VALUE"
    MAP_UNDEFINED_TO_NULL = "MAP_UNDEFINED_TO_NULL"
    SET_DEFAULT_VALUE_FOR_PRIMITIVES_ON_NULL = (
        "SET_DEFAULT_VALUE_FOR_PRIMITIVES_ON_NULL"
    )
    SET_DEFAULT_VALUE_FOR_STRING_ON_NULL = "SET_DEFAULT_VALUE_FOR_STRING_ON_NULL"
    SET_DEFAULT_VALUE_FOR_NUMBER_ON_NULL = "SET_DEFAULT_VALUE_FOR_NUMBER_ON_NULL"
    SET_DEFAULT_VALUE_FOR_BOOLEAN_ON_NULL = "SET_DEFAULT_VALUE_FOR_BOOLEAN_ON_NULL"
    SET_DEFAULT_VALUE_FOR_BIGINT_ON_NULL = "SET_DEFAULT_VALUE_FOR_BIGINT_ON_NULL"
    DEFAULT_VIEW_INCLUSION = "DEFAULT_VIEW_INCLUSION"


class SerializationFeature(StrEnum):
    FAIL_ON_SELF_REFERENCES = "FAIL_ON_SELF_REFERENCES"
    ORDER_MAP_ENTRIES_BY_KEYS = "ORDER_MAP_ENTRIES_BY_KEYS"
    WRAP_ROOT_VALUE = "WRAP_ROOT_VALUE"
    WRITE_DATES_AS_TIMESTAMPS = "WRITE_DATES_AS_TIMESTAMPS"
    WRITE_NAN_AS_ZERO = "WRITE_NAN_AS_ZERO"
    WRITE_POSITIVE_INFINITY_AS_NUMBER_MAX_VALUE = (
        "WRITE_POSITIVE_INFINITY_AS_NUMBER_MAX_VALUE"
    )
    WRITE_NEGATIVE_INFINITY_AS_NUMBER_MIN_VALUE = (
        "WRITE_NEGATIVE_INFINITY_AS_NUMBER_MIN_VALUE"
    )
    SET_DEFAULT_VALUE_FOR_PRIMITIVES_ON_NULL = (
        "SET_DEFAULT_VALUE_FOR_PRIMITIVES_ON_NULL"
    )
    SET_DEFAULT_VALUE_FOR_STRING_ON_NULL = "SET_DEFAULT_VALUE_FOR_STRING_ON_NULL"
    SET_DEFAULT_VALUE_FOR_NUMBER_ON_NULL = "SET_DEFAULT_VALUE_FOR_NUMBER_ON_NULL"
    SET_DEFAULT_VALUE_FOR_BOOLEAN_ON_NULL = "SET_DEFAULT_VALUE_FOR_BOOLEAN_ON_NULL"
    SET_DEFAULT_VALUE_FOR_BIGINT_ON_NULL = "SET_DEFAULT_VALUE_FOR_BIGINT_ON_NULL"
    DEFAULT_VIEW_INCLUSION = "DEFAULT_VIEW_INCLUSION"


class Decorator(StrEnum):
    """Declaration families that ``Config.decorators_enabled`` can switch off."""

    ALIAS = "ALIAS"
    ANY = "ANY"
    CREATOR = "CREATOR"
    CUSTOM = "CUSTOM"
    IDENTITY = "IDENTITY"
    IGNORE = "IGNORE"
    INJECT = "INJECT"
    NAMING = "NAMING"
    RAW_VALUE = "RAW_VALUE"
    REFERENCE = "REFERENCE"
    ROOT_NAME = "ROOT_NAME"
    TYPE_INFO = "TYPE_INFO"
    UNWRAPPED = "UNWRAPPED"
    VALUE = "VALUE"
    VIEW = "VIEW"


DEFAULT_DESERIALIZATION_FEATURES: Final[Mapping[DeserializationFeature, bool]] = (
    MappingProxyType(
        {
            DeserializationFeature.FAIL_ON_UNKNOWN_PROPERTIES: True,
            DeserializationFeature.FAIL_ON_NULL_FOR_PRIMITIVES: False,
            DeserializationFeature.FAIL_ON_MISSING_CREATOR_PROPERTIES: False,
            DeserializationFeature.FAIL_ON_NULL_CREATOR_PROPERTIES: False,
            DeserializationFeature.FAIL_ON_INVALID_SUBTYPE: True,
            DeserializationFeature.FAIL_ON_MISSING_TYPE_ID: True,
            DeserializationFeature.FAIL_ON_UNRESOLVED_OBJECT_IDS: True,
            DeserializationFeature.ACCEPT_CASE_INSENSITIVE_PROPERTIES: False,
            DeserializationFeature.ACCEPT_EMPTY_ARRAY_AS_NULL_OBJECT: False,
            DeserializationFeature.ACCEPT_EMPTY_STRING_AS_NULL_OBJECT: False,
            DeserializationFeature.ALLOW_COERCION_OF_SCALARS: True,
            DeserializationFeature.UNWRAP_ROOT_VALUE: False,
            DeserializationFeature.MAP_UNDEFINED_TO_NULL: False,
            DeserializationFeature.SET_DEFAULT_VALUE_FOR_PRIMITIVES_ON_NULL: False,
            DeserializationFeature.SET_DEFAULT_VALUE_FOR_STRING_ON_NULL: False,
            DeserializationFeature.SET_DEFAULT_VALUE_FOR_NUMBER_ON_NULL: False,
            DeserializationFeature.SET_DEFAULT_VALUE_FOR_BOOLEAN_ON_NULL: False,
            DeserializationFeature.SET_DEFAULT_VALUE_FOR_BIGINT_ON_NULL: False,
            DeserializationFeature.DEFAULT_VIEW_INCLUSION: True,
        }
    )
)

DEFAULT_SERIALIZATION_FEATURES: Final[Mapping[SerializationFeature, bool]] = (
    MappingProxyType(
        {
            SerializationFeature.FAIL_ON_SELF_REFERENCES: True,
            SerializationFeature.ORDER_MAP_ENTRIES_BY_KEYS: False,
            SerializationFeature.WRAP_ROOT_VALUE: False,
            SerializationFeature.WRITE_DATES_AS_TIMESTAMPS: False,
            SerializationFeature.WRITE_NAN_AS_ZERO: False,
            SerializationFeature.WRITE_POSITIVE_INFINITY_AS_NUMBER_MAX_VALUE: False,
            SerializationFeature.WRITE_NEGATIVE_INFINITY_AS_NUMBER_MIN_VALUE: False,
            SerializationFeature.SET_DEFAULT_VALUE_FOR_PRIMITIVES_ON_NULL: False,
            SerializationFeature.SET_DEFAULT_VALUE_FOR_STRING_ON_NULL: False,
            SerializationFeature.SET_DEFAULT_VALUE_FOR_NUMBER_ON_NULL: False,
            SerializationFeature.SET_DEFAULT_VALUE_FOR_BOOLEAN_ON_NULL: False,
            SerializationFeature.SET_DEFAULT_VALUE_FOR_BIGINT_ON_NULL: False,
            SerializationFeature.DEFAULT_VIEW_INCLUSION: True,
        }
    )
)
