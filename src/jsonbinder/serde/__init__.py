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

"""Bidirectional binding between JSON text and typed object graphs.

Core Functions
--------------
parse(text, config=None)
    Decode JSON text and bind it to ``config.main_type``.

stringify(value, config=None, *, indent=None)
    Encode an object graph into JSON text.

ObjectMapper(parser_config=..., stringifier_config=..., cache=...)
    Reusable codec with default configurations. ``read_value`` and
    ``write_value`` work on already decoded value trees.

merge_contexts(partials)
    Layer partial :class:`Config` values into the effective one.

Basic Usage
-----------
::

    from dataclasses import dataclass
    from typing import Annotated
    from jsonbinder import JsonProperty
    from jsonbinder.serde import Config, parse, stringify

    @dataclass
    class User:
        id: int
        email: Annotated[str, JsonProperty(name="mail", required=True)]

    user = parse('{"id": 1, "mail": "a@b.c"}', Config(main_type=User))
    assert stringify(user) == '{"id": 1, "mail": "a@b.c"}'

Features
--------
Behaviour switches live in :class:`~jsonbinder.features.DeserializationFeature`
and :class:`~jsonbinder.features.SerializationFeature`. Flags not set on a
call keep their documented defaults::

    Config(deserialization={"FAIL_ON_UNKNOWN_PROPERTIES": False})

Views and Context Groups
------------------------
``Config(views=(Public,))`` restricts binding to members declared for
``Public`` or one of its base classes. ``Config(context_groups=("admin",))``
activates declarations restricted to the ``admin`` group.

Custom Mappers
--------------
:class:`CustomMapper` entries intercept values by class or predicate before
the regular pipeline runs::

    Config(
        serializers=(CustomMapper(lambda key, value, ctx: value.isoformat(), cls=date),)
    )

Per-type Overrides
------------------
``Config(for_type={Animal: Config(deserialization={...})})`` merges the nested
configuration for every node whose class is ``Animal`` or a subclass.
"""

from __future__ import annotations

from ._cache import DEFAULT_CACHE, SchemaCache
from ._context import Config, CustomMapper, TransformContext, merge_contexts
from ._schema import ClassSchema, CreatorDescriptor, PropertyDescriptor
from ._types import TypeRef, type_identifier, type_ref
from .mapper import ObjectMapper, parse, stringify

__all__ = [
    "DEFAULT_CACHE",
    "ClassSchema",
    "Config",
    "CreatorDescriptor",
    "CustomMapper",
    "ObjectMapper",
    "PropertyDescriptor",
    "SchemaCache",
    "TransformContext",
    "TypeRef",
    "merge_contexts",
    "parse",
    "stringify",
    "type_identifier",
    "type_ref",
]
