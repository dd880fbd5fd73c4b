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

"""Property naming strategies."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Final

from ..annotations import Naming

_WORD_BOUNDARY: Final = re.compile(
    r"[A-Z]+(?=[A-Z][a-z0-9])|[A-Z]?[a-z0-9]+|[A-Z]+|[0-9]+"
)


def split_words(name: str) -> list[str]:
    """Split ``name`` on separators and camel-case humps.

    >>> split_words("created_atUTC")
    ['created', 'at', 'UTC']
    """

    return _WORD_BOUNDARY.findall(name)


def _lower_camel(words: list[str]) -> str:
    if not words:
        return ""
    head, *tail = words
    return head.lower() + "".join(word.capitalize() for word in tail)


_STRATEGIES: Final[Mapping[Naming, Callable[[list[str]], str]]] = {
    Naming.SNAKE_CASE: lambda words: "_".join(word.lower() for word in words),
    Naming.KEBAB_CASE: lambda words: "-".join(word.lower() for word in words),
    Naming.LOWER_DOT_CASE: lambda words: ".".join(word.lower() for word in words),
    Naming.LOWER_CAMEL_CASE: _lower_camel,
    Naming.UPPER_CAMEL_CASE: lambda words: "".join(
        word.capitalize() for word in words
    ),
    Naming.LOWER_CASE: lambda words: "".join(word.lower() for word in words),
}


def apply_naming(strategy: Naming | None, name: str) -> str:
    """Return the wire name for property ``name`` under ``strategy``."""

    if strategy is None:
        return name
    words = split_words(name)
    if not words:
        return name
    return _STRATEGIES[strategy](words)


__all__ = ["apply_naming", "split_words"]
