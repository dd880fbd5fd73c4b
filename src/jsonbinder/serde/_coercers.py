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

"""Scalar coercion, null defaulting and boxed value conversion."""

from __future__ import annotations

import json
import math
import re
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any, Final, cast
from uuid import UUID

from ..errors import ScalarCoercionError
from ..features import SerializationFeature

MISSING: Final[object] = object()

_BIGINT_LITERAL: Final = re.compile(r"^\s*[-+]?\d+n\s*$")
_TRUE_STRINGS: Final = frozenset({"true", "1"})
_FALSE_STRINGS: Final = frozenset({"false", "0"})

ZERO_VALUES: Final[Mapping[type[Any], object]] = {
    str: "",
    int: 0,
    float: 0.0,
    bool: False,
}


@dataclass(slots=True, frozen=True)
class TypeCoercer:
    """Bidirectional conversion between a boxed Python type and JSON.

    Attributes:
        parse: Converts a JSON scalar into the target type.
        dump: Converts the Python value back to a JSON scalar.
    """

    parse: Callable[[object], object]
    dump: Callable[[object], object] = str


def _parse_datetime(value: object) -> datetime:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    return datetime.fromisoformat(str(value))


def _parse_pattern(value: object) -> re.Pattern[str]:
    return re.compile(str(value))


def _dump_isoformat(value: object) -> str:
    return cast(datetime | date | time, value).isoformat()


def _dump_pattern(value: object) -> str:
    return cast(re.Pattern[str], value).pattern


BOXED_COERCERS: Final[Mapping[type[Any], TypeCoercer]] = {
    Decimal: TypeCoercer(parse=lambda value: Decimal(str(value))),
    UUID: TypeCoercer(parse=lambda value: UUID(str(value))),
    Path: TypeCoercer(parse=lambda value: Path(str(value))),
    datetime: TypeCoercer(parse=_parse_datetime, dump=_dump_isoformat),
    date: TypeCoercer(
        parse=lambda value: date.fromisoformat(str(value)), dump=_dump_isoformat
    ),
    time: TypeCoercer(
        parse=lambda value: time.fromisoformat(str(value)), dump=_dump_isoformat
    ),
    re.Pattern: TypeCoercer(parse=_parse_pattern, dump=_dump_pattern),
}


def _coercer_for(cls: type[Any]) -> TypeCoercer | None:
    for klass in cls.__mro__:
        coercer = BOXED_COERCERS.get(klass)
        if coercer is not None:
            return coercer
    return None


def parse_boxed(value: object, cls: type[Any], *, path: str) -> object:
    """Construct a boxed value (decimal, uuid, date, pattern, enum...)."""

    if isinstance(value, cls):
        return value
    try:
        if issubclass(cls, Enum):
            return _parse_enum(value, cls)
        coercer = _coercer_for(cls)
        if coercer is None:
            return value
        return coercer.parse(value)
    except (TypeError, ValueError, InvalidOperation, KeyError) as error:
        raise ScalarCoercionError(
            f"Cannot convert to {cls.__name__}: {error}",
            type_name=cls.__name__,
            path=path,
            fragment=value,
        ) from error


def _parse_enum(value: object, cls: type[Enum]) -> Enum:
    try:
        return cls(value)
    except ValueError:
        if isinstance(value, str) and value in cls.__members__:
            return cls[value]
        raise


def dump_boxed(value: object, *, timestamps: bool) -> object:
    if isinstance(value, Enum):
        return value.value
    if timestamps and isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    coercer = _coercer_for(type(value))
    if coercer is None:
        return value
    return coercer.dump(value)


def parse_bigint(value: str, *, path: str) -> int:
    """Parse ``"123"`` or the big-integer literal form ``"123n"``."""

    text = value.strip()
    if _BIGINT_LITERAL.match(text):
        text = text[:-1]
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return int(Decimal(text))
    except (InvalidOperation, ValueError, OverflowError) as error:
        raise ScalarCoercionError(
            f"Cannot convert {value!r} to int",
            type_name="int",
            path=path,
            fragment=value,
        ) from error


def coerce_scalar(value: object, cls: type[Any], *, path: str) -> object:
    """Convert ``value`` to primitive ``cls`` using the fixed coercion table.

    Only scalar inputs whose kind differs from the target are converted;
    containers and already matching scalars pass through unchanged.
    """

    if type(value) is cls or not isinstance(value, str | int | float | bool):
        return value

    if cls is str:
        return json.dumps(value) if not isinstance(value, str) else value
    if cls is bool:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        return bool(value)
    if cls is int:
        if isinstance(value, str):
            return parse_bigint(value, path=path)
        if isinstance(value, float) and not math.isfinite(value):
            raise ScalarCoercionError(
                "Cannot convert a non-finite number to int",
                type_name="int",
                path=path,
                fragment=value,
            )
        return int(value)
    if cls is float:
        try:
            return float(value)
        except ValueError as error:
            raise ScalarCoercionError(
                f"Cannot convert {value!r} to float",
                type_name="float",
                path=path,
                fragment=value,
            ) from error
    return value


def null_default(cls: type[Any], enabled: Callable[[str], bool]) -> object:
    """Return the zero value for primitive ``cls`` when a defaulting flag is on.

    ``int`` answers to both the number and the big-integer flag. Returns
    :data:`MISSING` when no flag applies.
    """

    if cls not in ZERO_VALUES:
        return MISSING
    kind_flags: dict[type[Any], tuple[str, ...]] = {
        str: ("SET_DEFAULT_VALUE_FOR_STRING_ON_NULL",),
        int: (
            "SET_DEFAULT_VALUE_FOR_NUMBER_ON_NULL",
            "SET_DEFAULT_VALUE_FOR_BIGINT_ON_NULL",
        ),
        float: ("SET_DEFAULT_VALUE_FOR_NUMBER_ON_NULL",),
        bool: ("SET_DEFAULT_VALUE_FOR_BOOLEAN_ON_NULL",),
    }
    names = ("SET_DEFAULT_VALUE_FOR_PRIMITIVES_ON_NULL", *kind_flags[cls])
    if any(enabled(name) for name in names):
        return ZERO_VALUES[cls]
    return MISSING


def dump_float(
    value: float, enabled: Callable[[SerializationFeature], bool]
) -> float | int | None:
    """Encode ``value``; non-finite values become ``None`` unless a flag maps them."""

    if math.isnan(value) and enabled(SerializationFeature.WRITE_NAN_AS_ZERO):
        return 0
    if value == math.inf and enabled(
        SerializationFeature.WRITE_POSITIVE_INFINITY_AS_NUMBER_MAX_VALUE
    ):
        return sys.float_info.max
    if value == -math.inf and enabled(
        SerializationFeature.WRITE_NEGATIVE_INFINITY_AS_NUMBER_MIN_VALUE
    ):
        return -sys.float_info.max
    return value if math.isfinite(value) else None


def parse_key(key: str, cls: type[Any], *, path: str) -> object:
    """Convert a JSON object key to the declared mapping key type."""

    if cls is str or cls is object:
        return key
    if cls in ZERO_VALUES:
        return coerce_scalar(key, cls, path=path)
    return parse_boxed(key, cls, path=path)


def dump_key(key: object, *, timestamps: bool) -> str:
    if isinstance(key, str):
        return key
    dumped = dump_boxed(key, timestamps=timestamps)
    if isinstance(dumped, bool):
        return "true" if dumped else "false"
    return str(dumped)


__all__ = [
    "BOXED_COERCERS",
    "MISSING",
    "ZERO_VALUES",
    "TypeCoercer",
    "coerce_scalar",
    "dump_boxed",
    "dump_float",
    "dump_key",
    "null_default",
    "parse_bigint",
    "parse_boxed",
    "parse_key",
]
