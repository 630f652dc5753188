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

"""Secondary index definitions and the registry that validates them.

Global secondary indexes carry their own partition key, optional sort key and,
under provisioned billing, their own capacity. Local secondary indexes reuse the
table's partition key with a different sort key and share the table's
throughput. Index names are unique across both kinds.
"""

from awslabs.dynamodb_global_table.attributes import (
    KeySchemaBuilder,
    KeySchemaEntry,
    render_key_schema,
)
from awslabs.dynamodb_global_table.capacity import (
    BillingSpec,
    CapacitySpec,
    FixedCapacity,
    ProvisionedBilling,
    render_write_capacity,
    reject_capacity_fields,
)
from awslabs.dynamodb_global_table.errors import CapacityError, StructuralError
from awslabs.dynamodb_global_table.ordered_registry import OrderedRegistry
from awslabs.dynamodb_global_table.shared import (
    MAX_GSI_COUNT,
    MAX_LSI_COUNT,
    MAX_NON_KEY_ATTRIBUTES,
    Attribute,
    BillingMode,
    NonEmptyStr,
    ProjectionType,
    StrictModel,
    compact,
)
from awslabs.dynamodb_global_table.validation_utils import parse_props
from dataclasses import dataclass
from loguru import logger
from pydantic import model_validator
from typing import Any, Dict, List, Optional, Set, Union


class SecondaryIndexProps(StrictModel):
    """Properties shared by global and local secondary indexes."""

    index_name: NonEmptyStr
    projection_type: ProjectionType = ProjectionType.ALL
    non_key_attributes: Optional[List[NonEmptyStr]] = None

    def render_projection(self) -> Dict[str, Any]:
        """Render the index projection."""
        return compact(
            {
                'projectionType': self.projection_type.value,
                'nonKeyAttributes': list(self.non_key_attributes)
                if self.non_key_attributes is not None
                else None,
            }
        )


class GlobalSecondaryIndexProps(SecondaryIndexProps):
    """Properties of a global secondary index."""

    partition_key: Attribute
    sort_key: Optional[Attribute] = None
    read_capacity: Optional[CapacitySpec] = None
    write_capacity: Optional[CapacitySpec] = None
    contributor_insights: Optional[bool] = None


class LocalSecondaryIndexProps(SecondaryIndexProps):
    """Properties of a local secondary index."""

    sort_key: Attribute

    @model_validator(mode='before')
    @classmethod
    def _reject_capacity(cls, data: Any) -> Any:
        """Reject capacity; local secondary indexes share the table's throughput."""
        index_name = data.get('index_name') if isinstance(data, dict) else None
        reject_capacity_fields(data, f'on a local secondary index. index_name: {index_name}')
        return data


@dataclass
class GlobalSecondaryIndex:
    """A registered global secondary index."""

    props: GlobalSecondaryIndexProps
    key_schema: List[KeySchemaEntry]

    @property
    def index_name(self) -> str:
        """Return the index name."""
        return self.props.index_name


@dataclass
class LocalSecondaryIndex:
    """A registered local secondary index."""

    props: LocalSecondaryIndexProps
    key_schema: List[KeySchemaEntry]

    @property
    def index_name(self) -> str:
        """Return the index name."""
        return self.props.index_name


class SecondaryIndexRegistry:
    """Registers global and local secondary indexes in declaration order.

    Every check runs before anything is recorded, so a rejected index leaves
    the attribute definitions, the non-key attribute set and both index maps
    untouched.
    """

    def __init__(
        self,
        key_schema_builder: KeySchemaBuilder,
        billing: BillingSpec,
        table_partition_key: Attribute,
    ):
        """Initialize the registry.

        Args:
            key_schema_builder: Builder bound to the resource's attribute registry
            billing: Billing of the table, shared by every index
            table_partition_key: Partition key reused by local secondary indexes
        """
        self.key_schema_builder = key_schema_builder
        self.billing = billing
        self.table_partition_key = table_partition_key
        self.global_indexes: OrderedRegistry[GlobalSecondaryIndex] = OrderedRegistry()
        self.local_indexes: OrderedRegistry[LocalSecondaryIndex] = OrderedRegistry()
        self.non_key_attributes: Set[str] = set()

    @property
    def billing_mode(self) -> BillingMode:
        """Return the table billing mode."""
        return self.billing.billing_mode

    @property
    def has_index(self) -> bool:
        """Return True if at least one global or local secondary index exists."""
        return len(self.global_indexes) + len(self.local_indexes) > 0

    def add_global(
        self, props: Union[GlobalSecondaryIndexProps, Dict[str, Any]]
    ) -> GlobalSecondaryIndex:
        """Validate and register a global secondary index.

        Args:
            props: Index properties, as a model or a plain dict

        Returns:
            The registered index

        Raises:
            StructuralError: Duplicate name, too many indexes or invalid projection
            CapacityError: Capacity incompatible with the billing mode
            ConsistencyError: A key attribute conflicts with a recorded type
        """
        props = parse_props(GlobalSecondaryIndexProps, props)

        self._validate_index_name(props.index_name)

        if len(self.global_indexes) >= MAX_GSI_COUNT:
            raise StructuralError(
                f'You may not provide more than {MAX_GSI_COUNT} global secondary indexes to a Global Table'
            )

        self._validate_global_capacity(props)

        non_key_attributes = self._validate_projection(props)
        key_schema = self.key_schema_builder.build(props.partition_key, props.sort_key)
        self.non_key_attributes = non_key_attributes
        index = GlobalSecondaryIndex(props=props, key_schema=key_schema)
        self.global_indexes.add(props.index_name, index)

        logger.debug(
            f'Global secondary index added. index_name: {props.index_name}, '
            f'count: {len(self.global_indexes)}'
        )
        return index

    def add_local(
        self, props: Union[LocalSecondaryIndexProps, Dict[str, Any]]
    ) -> LocalSecondaryIndex:
        """Validate and register a local secondary index.

        Args:
            props: Index properties, as a model or a plain dict

        Returns:
            The registered index

        Raises:
            StructuralError: Duplicate name, too many indexes or invalid projection
            CapacityError: Capacity supplied for a local secondary index
            ConsistencyError: The sort key conflicts with a recorded type
        """
        props = parse_props(LocalSecondaryIndexProps, props)

        self._validate_index_name(props.index_name)

        if len(self.local_indexes) >= MAX_LSI_COUNT:
            raise StructuralError(
                f'You may not provide more than {MAX_LSI_COUNT} local secondary indexes to a Global Table'
            )

        non_key_attributes = self._validate_projection(props)
        key_schema = self.key_schema_builder.build(self.table_partition_key, props.sort_key)
        self.non_key_attributes = non_key_attributes
        index = LocalSecondaryIndex(props=props, key_schema=key_schema)
        self.local_indexes.add(props.index_name, index)

        logger.debug(
            f'Local secondary index added. index_name: {props.index_name}, '
            f'count: {len(self.local_indexes)}'
        )
        return index

    def render_global_indexes(self) -> List[Dict[str, Any]]:
        """Render global secondary indexes in registration order."""
        rendered = []
        for index in self.global_indexes.values():
            write_capacity = None
            if isinstance(self.billing, ProvisionedBilling):
                write_capacity = render_write_capacity(
                    index.props.write_capacity or self.billing.write_capacity
                )
            rendered.append(
                compact(
                    {
                        'indexName': index.index_name,
                        'keySchema': render_key_schema(index.key_schema),
                        'projection': index.props.render_projection(),
                        'writeCapacity': write_capacity,
                    }
                )
            )
        return rendered

    def render_local_indexes(self) -> List[Dict[str, Any]]:
        """Render local secondary indexes in registration order."""
        return [
            {
                'indexName': index.index_name,
                'keySchema': render_key_schema(index.key_schema),
                'projection': index.props.render_projection(),
            }
            for index in self.local_indexes.values()
        ]

    def _validate_index_name(self, index_name: str) -> None:
        if index_name in self.global_indexes or index_name in self.local_indexes:
            raise StructuralError(
                f'Duplicate secondary index name, {index_name}, is not allowed'
            )

    def _validate_global_capacity(self, props: GlobalSecondaryIndexProps) -> None:
        if self.billing_mode == BillingMode.ON_DEMAND:
            if props.read_capacity is not None or props.write_capacity is not None:
                raise CapacityError(
                    "You cannot configure 'readCapacity' or 'writeCapacity' on a global secondary index "
                    f'when the billing mode is {BillingMode.ON_DEMAND.value}. index_name: {props.index_name}'
                )
            return

        if props.read_capacity is None:
            raise CapacityError(
                "You must specify 'readCapacity' on a global secondary index when the billing mode "
                f'is {BillingMode.PROVISIONED.value}. index_name: {props.index_name}'
            )

        if isinstance(props.write_capacity, FixedCapacity):
            raise CapacityError(
                "You cannot configure 'writeCapacity' with FIXED capacity mode. "
                f'index_name: {props.index_name}'
            )

    def _validate_projection(self, props: SecondaryIndexProps) -> Set[str]:
        """Validate the projection and return the would-be non-key attribute set."""
        if props.projection_type == ProjectionType.INCLUDE and not props.non_key_attributes:
            raise StructuralError(
                f'Non-key attributes should be specified when using {ProjectionType.INCLUDE.value} '
                f'projection type. index_name: {props.index_name}'
            )

        if props.projection_type != ProjectionType.INCLUDE and props.non_key_attributes is not None:
            raise StructuralError(
                f'Non-key attributes should not be specified when not using {ProjectionType.INCLUDE.value} '
                f'projection type. index_name: {props.index_name}'
            )

        non_key_attributes = self.non_key_attributes | set(props.non_key_attributes or [])
        if len(non_key_attributes) > MAX_NON_KEY_ATTRIBUTES:
            raise StructuralError(
                f"The maximum number of 'nonKeyAttributes' across all secondary indexes is "
                f'{MAX_NON_KEY_ATTRIBUTES}. index_name: {props.index_name}'
            )
        return non_key_attributes
