# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#
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

"""Attribute definitions and key schemas.

Every key attribute used by the table or any of its indexes ends up in one
attribute definition list, so a name can only ever be bound to one type.
"""

from awslabs.dynamodb_global_table.errors import ConsistencyError
from awslabs.dynamodb_global_table.ordered_registry import OrderedRegistry
from awslabs.dynamodb_global_table.shared import Attribute, AttributeType, KeyType
from dataclasses import dataclass
from loguru import logger
from typing import Any, Dict, Iterable, List, Optional


@dataclass(frozen=True)
class KeySchemaEntry:
    """One element of a key schema."""

    attribute_name: str
    key_type: KeyType

    def render(self) -> Dict[str, Any]:
        """Render as a key schema element."""
        return {'attributeName': self.attribute_name, 'keyType': self.key_type.value}


class AttributeRegistry:
    """Tracks attribute name to type bindings across the whole resource."""

    def __init__(self):
        """Initialize an empty registry."""
        self._types: OrderedRegistry[AttributeType] = OrderedRegistry()

    def check(self, attributes: Iterable[Attribute]) -> None:
        """Validate attributes against recorded bindings without recording them.

        Attributes in the batch are also checked against each other.

        Args:
            attributes: Attributes that are about to be defined

        Raises:
            ConsistencyError: If a name is bound to a different type
        """
        pending: Dict[str, AttributeType] = {}
        for attribute in attributes:
            existing = self._types.get(attribute.name) or pending.get(attribute.name)
            if existing is not None and existing != attribute.type:
                raise ConsistencyError(
                    f'Unable to specify {attribute.name} as {attribute.type.value} '
                    f'because it was already defined as {existing.value}'
                )
            pending.setdefault(attribute.name, attribute.type)

    def define(self, attribute: Attribute) -> None:
        """Record attribute; redefining it with the same type is a no-op.

        Raises:
            ConsistencyError: If the name is already bound to a different type
        """
        self.check([attribute])
        if attribute.name not in self._types:
            self._types.add(attribute.name, attribute.type)
            logger.debug(
                f'Attribute defined. name: {attribute.name}, type: {attribute.type.value}'
            )

    def type_of(self, name: str) -> Optional[AttributeType]:
        """Return the type bound to name, or None."""
        return self._types.get(name)

    def definitions(self) -> List[Dict[str, Any]]:
        """Render attribute definitions in first-definition order."""
        return [
            {'attributeName': name, 'attributeType': self._types[name].value}
            for name in self._types.keys()
        ]

    def __len__(self) -> int:
        return len(self._types)


class KeySchemaBuilder:
    """Builds ordered key schemas and registers their attributes."""

    def __init__(self, attributes: AttributeRegistry):
        """Initialize the builder over the resource's attribute registry."""
        self.attributes = attributes

    def build(
        self, partition_key: Attribute, sort_key: Optional[Attribute] = None
    ) -> List[KeySchemaEntry]:
        """Register the key attributes and return [partition, sort?].

        Raises:
            ConsistencyError: If either attribute conflicts with a recorded type
        """
        keys = [partition_key] if sort_key is None else [partition_key, sort_key]
        self.attributes.check(keys)

        self.attributes.define(partition_key)
        schema = [KeySchemaEntry(partition_key.name, KeyType.PARTITION)]
        if sort_key is not None:
            self.attributes.define(sort_key)
            schema.append(KeySchemaEntry(sort_key.name, KeyType.SORT))
        return schema


def render_key_schema(schema: List[KeySchemaEntry]) -> List[Dict[str, Any]]:
    """Render a key schema."""
    return [entry.render() for entry in schema]
