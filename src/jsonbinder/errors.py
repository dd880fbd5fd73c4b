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

"""Base exception hierarchy for :mod:`jsonbinder`."""

from __future__ import annotations

import json
from collections.abc import Iterable

__all__ = [
    "BindError",
    "IdentityTypeConflict",
    "InvalidSubtype",
    "MalformedJSON",
    "MissingCreatorProperty",
    "MissingTypeId",
    "MultipleValueProviders",
    "NullCreatorProperty",
    "NullForPrimitive",
    "NullValueRejected",
    "RequiredPropertyMissing",
    "RootNameMismatch",
    "ScalarCoercionError",
    "SchemaError",
    "SelfReferenceError",
    "ShapeMismatch",
    "UnknownProperties",
    "UnresolvedObjectIds",
]

_SNIPPET_LIMIT = 200
_NO_FRAGMENT = object()


def _render_snippet(fragment: object) -> str:
    try:
        rendered = json.dumps(fragment, default=repr, sort_keys=False)
    except (TypeError, ValueError):
        rendered = repr(fragment)
    if len(rendered) > _SNIPPET_LIMIT:
        return rendered[: _SNIPPET_LIMIT - 3] + "..."
    return rendered


class BindError(Exception):
    """Base class for all jsonbinder exceptions.

    Every error raised while binding JSON to objects (or objects to JSON)
    derives from this class so callers can handle the whole family with a
    single ``except`` clause. The failure location is attached as structured
    attributes and rendered into the message:

    Attributes:
        type_name: Name of the class being bound when the failure occurred.
        path: JSON path of the offending node (``$.owner.pets[1]``).
        snippet: Bounded JSON rendering of the offending input fragment.

    Example:
        Reporting a failed decode::

            try:
                order = parse(text, Config(main_type=Order))
            except BindError as error:
                logger.warning("Rejected payload at %s", error.path)

    Note:
        Subclasses also inherit from the closest built-in exception
        (``ValueError``, ``TypeError`` or ``LookupError``) so generic handlers
        keep working.
    """

    def __init__(
        self,
        message: str,
        *,
        type_name: str | None = None,
        path: str | None = None,
        fragment: object = _NO_FRAGMENT,
    ) -> None:
        self.message = message
        self.type_name = type_name
        self.path = path
        self.snippet = (
            None if fragment is _NO_FRAGMENT else _render_snippet(fragment)
        )
        super().__init__(self._render())

    def _render(self) -> str:
        details: list[str] = []
        if self.type_name is not None:
            details.append(f"type={self.type_name}")
        if self.path is not None:
            details.append(f"path={self.path}")
        if self.snippet is not None:
            details.append(f"input={self.snippet}")
        if not details:
            return self.message
        return f"{self.message} [{', '.join(details)}]"


class RequiredPropertyMissing(BindError, ValueError):
    """Raised when a property or creator parameter marked ``required`` is absent.

    The check applies identically to plain fields, accessor properties and
    creator parameters.
    """


class UnknownProperties(BindError, ValueError):
    """Raised when input keys do not map to any declared property.

    All offending keys of one object are reported together through
    :attr:`keys`, in input order.
    """

    def __init__(
        self,
        keys: Iterable[str],
        *,
        type_name: str | None = None,
        path: str | None = None,
        fragment: object = None,
    ) -> None:
        self.keys = tuple(keys)
        super().__init__(
            f"Unknown properties {list(self.keys)}",
            type_name=type_name,
            path=path,
            fragment=fragment,
        )


class InvalidSubtype(BindError, ValueError):
    """Raised when a discriminator does not match any known subtype.

    :attr:`known_ids` lists every discriminator accepted for the base type.
    """

    def __init__(
        self,
        type_id: object,
        known_ids: Iterable[str],
        *,
        type_name: str | None = None,
        path: str | None = None,
        fragment: object = None,
    ) -> None:
        self.type_id = type_id
        self.known_ids = tuple(known_ids)
        super().__init__(
            f"Unknown type id {type_id!r}; expected one of {list(self.known_ids)}",
            type_name=type_name,
            path=path,
            fragment=fragment,
        )


class MissingTypeId(BindError, ValueError):
    """Raised when a polymorphic value carries no discriminator."""


class ShapeMismatch(BindError, ValueError):
    """Raised when a value does not have the JSON shape its target requires.

    Typical causes are a wrapper object with more than one key, a wrapper
    array whose length is not one or two, or a scalar where an object was
    expected.
    """


class NullForPrimitive(BindError, ValueError):
    """Raised when ``null`` meets a primitive target and nulls are rejected."""


class NullCreatorProperty(BindError, ValueError):
    """Raised when a creator argument resolves to ``null`` and nulls are rejected."""


class MissingCreatorProperty(BindError, ValueError):
    """Raised when a creator argument is absent and missing arguments are rejected."""


class UnresolvedObjectIds(BindError, LookupError):
    """Raised at the end of a call when identity references never resolved.

    :attr:`ids` holds the scoped ids, sorted for stable reporting.
    """

    def __init__(self, ids: Iterable[str], *, type_name: str | None = None) -> None:
        self.ids = tuple(sorted(ids))
        super().__init__(
            f"Found unresolved object ids: {', '.join(self.ids)}",
            type_name=type_name,
        )


class IdentityTypeConflict(BindError, TypeError):
    """Raised when an object id is reused for an instance of an incompatible type."""


class RootNameMismatch(BindError, ValueError):
    """Raised when root unwrapping finds no single key matching the root name."""


class MultipleValueProviders(BindError, TypeError):
    """Raised at schema build time when a class declares several value properties."""


class MalformedJSON(BindError, ValueError):
    """Raised when the input text is not valid JSON.

    Decoding fails before any schema-driven processing begins.
    """


class NullValueRejected(BindError, ValueError):
    """Raised by a ``Nulls.FAIL`` policy on a property or its contents."""


class ScalarCoercionError(BindError, ValueError):
    """Raised when a scalar cannot be converted to its declared target type."""


class SelfReferenceError(BindError, ValueError):
    """Raised when encoding meets a cycle on a type without an identity strategy."""


class SchemaError(BindError, TypeError):
    """Raised when class metadata is inconsistent and no schema can be built."""


