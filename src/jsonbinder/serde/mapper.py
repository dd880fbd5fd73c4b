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

"""Public entry points tying JSON text to the transform engine."""

from __future__ import annotations

import json
from typing import Any

from ..errors import MalformedJSON
from ..logging import StructuredLogger, get_logger
from ..types import JSONValue
from ._cache import DEFAULT_CACHE, SchemaCache
from ._context import Config, TransformContext, merge_contexts
from ._types import OBJECT, TypeRef, type_ref
from .dump import write
from .parse import bind

logger: StructuredLogger = get_logger(__name__, context={"component": "mapper"})


class ObjectMapper:
    """Reusable codec holding default configurations.

    ``parser_config`` and ``stringifier_config`` are merged underneath the
    configuration passed to each call. Mappers are cheap to create; the
    schema cache is shared process-wide unless ``cache`` is given.

    Example::

        mapper = ObjectMapper(
            parser_config=Config(deserialization={"FAIL_ON_UNKNOWN_PROPERTIES": False})
        )
        user = mapper.parse('{"id": 1}', Config(main_type=User))
    """

    def __init__(
        self,
        *,
        parser_config: Config | None = None,
        stringifier_config: Config | None = None,
        cache: SchemaCache | None = None,
    ) -> None:
        super().__init__()
        self.parser_config = parser_config
        self.stringifier_config = stringifier_config
        self._cache = cache if cache is not None else DEFAULT_CACHE

    @property
    def cache(self) -> SchemaCache:
        return self._cache

    def _context(self, config: Config, fallback: TypeRef) -> TransformContext:
        target = type_ref(config.main_type) if config.main_type is not None else fallback
        return TransformContext(config=config, cache=self._cache, target=target)

    def read_value(self, value: JSONValue, config: Config | None = None) -> Any:
        """Bind an already decoded JSON value tree."""

        merged = merge_contexts([self.parser_config, config])
        ctx = self._context(merged, OBJECT)
        result = bind(value, ctx)
        logger.debug(
            "Parsed JSON value.",
            event="parse.completed",
            context={"type": ctx.target.name, "result": type(result).__name__},
        )
        return result

    def parse(self, text: str | bytes | bytearray, config: Config | None = None) -> Any:
        """Decode ``text`` and bind it to ``config.main_type``.

        Raises :class:`~jsonbinder.errors.MalformedJSON` before any binding
        when ``text`` is not valid JSON.
        """

        try:
            tree: JSONValue = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as error:
            raise MalformedJSON(f"Malformed JSON: {error}") from error
        return self.read_value(tree, config)

    def write_value(self, value: object, config: Config | None = None) -> JSONValue:
        """Encode ``value`` into a JSON value tree."""

        merged = merge_contexts([self.stringifier_config, config])
        fallback = type_ref(type(value)) if value is not None else OBJECT
        ctx = self._context(merged, fallback)
        result = write(value, ctx)
        logger.debug(
            "Encoded object graph.",
            event="stringify.completed",
            context={"type": ctx.target.name},
        )
        return result

    def stringify(
        self,
        value: object,
        config: Config | None = None,
        *,
        indent: int | None = None,
    ) -> str:
        return json.dumps(
            self.write_value(value, config), indent=indent, ensure_ascii=False
        )


_DEFAULT_MAPPER = ObjectMapper()


def parse(text: str | bytes | bytearray, config: Config | None = None) -> Any:
    """Decode ``text`` with a shared default :class:`ObjectMapper`."""

    return _DEFAULT_MAPPER.parse(text, config)


def stringify(
    value: object, config: Config | None = None, *, indent: int | None = None
) -> str:
    """Encode ``value`` with a shared default :class:`ObjectMapper`."""

    return _DEFAULT_MAPPER.stringify(value, config, indent=indent)


__all__ = ["ObjectMapper", "parse", "stringify"]
