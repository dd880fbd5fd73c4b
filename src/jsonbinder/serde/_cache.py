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

"""Process-wide memoization of class schemas."""

from __future__ import annotations

from typing import Any

from ..logging import StructuredLogger, get_logger
from ._schema import ClassSchema, build_schema

logger: StructuredLogger = get_logger(__name__, context={"component": "schema_cache"})


class SchemaCache:
    """Memoize :class:`ClassSchema` values keyed by class and context groups.

    Schemas are immutable once built, so concurrent readers may share them.
    Two threads racing on a cold entry each build an equivalent schema and the
    last write wins. Entries are only dropped through :meth:`register` or
    :meth:`clear`.
    """

    def __init__(self) -> None:
        super().__init__()
        self._entries: dict[tuple[type[Any], frozenset[str]], ClassSchema] = {}

    def get(
        self, cls: type[Any], groups: frozenset[str] = frozenset()
    ) -> ClassSchema:
        key = (cls, groups)
        schema = self._entries.get(key)
        if schema is None:
            schema = build_schema(cls, groups)
            self._entries[key] = schema
            logger.debug(
                "Built class schema.",
                event="schema.built",
                context={
                    "type": cls.__qualname__,
                    "groups": sorted(groups),
                    "properties": [prop.wire_name for prop in schema.properties],
                },
            )
        return schema

    def register(self, cls: type[Any]) -> None:
        """Drop every cached schema of ``cls`` so the next lookup rebuilds it."""

        for key in [key for key in self._entries if key[0] is cls]:
            _ = self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, cls: object) -> bool:
        return any(key[0] is cls for key in self._entries)


DEFAULT_CACHE = SchemaCache()

__all__ = ["DEFAULT_CACHE", "SchemaCache"]
