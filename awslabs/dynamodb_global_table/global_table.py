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

"""The global table root aggregate.

A `GlobalTable` owns one attribute registry, the base key schema, the index
and replica registries, the billing configuration and the table-level
defaults. Indexes and replicas are added in any order; `render()` produces the
resource properties from the final state.

Example:
    table = GlobalTable(
        {
            'partition_key': {'name': 'pk', 'type': 'S'},
            'billing': {'mode': 'ON_DEMAND'},
            'contributor_insights': True,
        },
        DeploymentContext(region='us-east-1'),
    )
    table.add_replica({'region': 'us-west-2'})
    properties = table.render()
"""

from awslabs.dynamodb_global_table.attributes import (
    AttributeRegistry,
    KeySchemaBuilder,
    KeySchemaEntry,
)
from awslabs.dynamodb_global_table.capacity import (
    BillingSpec,
    FixedCapacity,
    OnDemandBilling,
    ProvisionedBilling,
)
from awslabs.dynamodb_global_table.encryption import KeyArn, TableEncryption
from awslabs.dynamodb_global_table.errors import (
    CapacityError,
    ConsistencyError,
    GlobalTableError,
    StructuralError,
    TokenReferenceError,
)
from awslabs.dynamodb_global_table.indexes import (
    GlobalSecondaryIndex,
    GlobalSecondaryIndexProps,
    LocalSecondaryIndex,
    LocalSecondaryIndexProps,
    SecondaryIndexRegistry,
)
from awslabs.dynamodb_global_table.renderer import GlobalTableRenderer
from awslabs.dynamodb_global_table.replicas import (
    ReplicaRegistry,
    ReplicaTableProps,
    TableOptions,
)
from awslabs.dynamodb_global_table.shared import Attribute, NonEmptyStr
from awslabs.dynamodb_global_table.tokens import DeploymentContext, Region
from awslabs.dynamodb_global_table.validation_utils import ValidationResult, parse_props
from dataclasses import dataclass
from loguru import logger
from pydantic import Field
from typing import Any, Dict, List, Optional, Union


_SUGGESTIONS = {
    ConsistencyError: 'Use one attribute type per attribute name across the table and its indexes',
    StructuralError: 'Check index names and replica key ARNs against the indexes and replicas defined on the table',
    CapacityError: 'Only configure capacity when the billing mode is PROVISIONED',
    TokenReferenceError: 'Use a concrete region instead of an unresolved token',
}


class GlobalTableProps(TableOptions):
    """Construction properties of a global table.

    The inherited table options are the defaults applied to every replica,
    including the one in the deployment region.
    """

    partition_key: Attribute
    sort_key: Optional[Attribute] = None
    table_name: Optional[NonEmptyStr] = None
    time_to_live_attribute: Optional[NonEmptyStr] = None
    billing: BillingSpec = Field(default_factory=OnDemandBilling)
    encryption: Optional[TableEncryption] = None
    replicas: List[ReplicaTableProps] = Field(default_factory=list)
    global_secondary_indexes: List[GlobalSecondaryIndexProps] = Field(default_factory=list)
    local_secondary_indexes: List[LocalSecondaryIndexProps] = Field(default_factory=list)


@dataclass
class ReplicaTableReference:
    """A single replica of a global table."""

    region: Region
    encryption_key_arn: Optional[KeyArn]
    grant_index_permissions: bool


class GlobalTable:
    """A DynamoDB table replicated across regions."""

    def __init__(
        self,
        props: Union[GlobalTableProps, Dict[str, Any]],
        context: Optional[DeploymentContext] = None,
    ):
        """Initialize the global table and add the indexes and replicas in props.

        Args:
            props: Table properties, as a model or a plain dict
            context: Deployment region and token detection; defaults to a
                region agnostic deployment

        Raises:
            GlobalTableError: An index or replica in props is rejected
        """
        props = parse_props(GlobalTableProps, props)
        self.props = props
        self.context = context or DeploymentContext()

        if isinstance(props.billing, ProvisionedBilling) and isinstance(
            props.billing.write_capacity, FixedCapacity
        ):
            raise CapacityError("You cannot configure 'writeCapacity' with FIXED capacity mode")

        self.attributes = AttributeRegistry()
        self.key_schema_builder = KeySchemaBuilder(self.attributes)
        self.key_schema: List[KeySchemaEntry] = self.key_schema_builder.build(
            props.partition_key, props.sort_key
        )
        self.indexes = SecondaryIndexRegistry(
            self.key_schema_builder, props.billing, props.partition_key
        )
        self.replicas = ReplicaRegistry(
            self.context,
            props.billing,
            self.indexes,
            defaults=TableOptions(
                contributor_insights=props.contributor_insights,
                deletion_protection=props.deletion_protection,
                point_in_time_recovery=props.point_in_time_recovery,
                table_class=props.table_class,
                kinesis_stream_arn=props.kinesis_stream_arn,
            ),
            encryption=props.encryption,
        )

        for index_props in props.global_secondary_indexes:
            self.add_global_secondary_index(index_props)
        for index_props in props.local_secondary_indexes:
            self.add_local_secondary_index(index_props)
        for replica_props in props.replicas:
            self.add_replica(replica_props)

        logger.info(
            f'Global table created. table_name: {props.table_name}, '
            f'billing_mode: {self.billing.billing_mode.value}, region: {self.context.region}'
        )

    @property
    def billing(self) -> BillingSpec:
        """Return the billing configuration."""
        return self.props.billing

    @property
    def table_name(self) -> Optional[str]:
        """Return the table name, if set."""
        return self.props.table_name

    @property
    def time_to_live_attribute(self) -> Optional[str]:
        """Return the TTL attribute name, if set."""
        return self.props.time_to_live_attribute

    @property
    def encryption(self) -> Optional[TableEncryption]:
        """Return the table encryption, if set."""
        return self.props.encryption

    @property
    def has_index(self) -> bool:
        """Return True if the table has a global or local secondary index."""
        return self.indexes.has_index

    def add_global_secondary_index(
        self, props: Union[GlobalSecondaryIndexProps, Dict[str, Any]]
    ) -> GlobalSecondaryIndex:
        """Add a global secondary index to the table."""
        return self.indexes.add_global(props)

    def add_local_secondary_index(
        self, props: Union[LocalSecondaryIndexProps, Dict[str, Any]]
    ) -> LocalSecondaryIndex:
        """Add a local secondary index to the table."""
        return self.indexes.add_local(props)

    def add_replica(self, props: Union[ReplicaTableProps, Dict[str, Any]]) -> ReplicaTableProps:
        """Add a replica table in another region."""
        return self.replicas.add(props)

    def replica(self, region: Region) -> ReplicaTableReference:
        """Return a reference to the replica in region.

        Args:
            region: Deployment region or the region of an explicit replica

        Returns:
            Reference carrying the replica's encryption key ARN

        Raises:
            TokenReferenceError: The deployment region or region is a token
            StructuralError: No replica exists in region
        """
        if self.context.region_agnostic:
            raise TokenReferenceError(
                'Replica tables cannot be referenced in a region agnostic deployment'
            )
        if self.context.is_unresolved(region):
            raise TokenReferenceError('Replica table region must not be a token')

        if region != self.context.region and self.replicas.get(region) is None:  # type: ignore[arg-type]
            raise StructuralError(f"Replica table does not exist in region '{region}'")

        encryption_key_arn = None
        if self.encryption is not None:
            encryption_key_arn = self.encryption.key_arn_for(region, self.context)

        return ReplicaTableReference(
            region=region,
            encryption_key_arn=encryption_key_arn,
            grant_index_permissions=self.has_index,
        )

    def render(self) -> Dict[str, Any]:
        """Render the resource properties.

        Raises:
            GlobalTableError: A deferred check failed against the final state
        """
        return GlobalTableRenderer(self).render()

    def validate(self) -> ValidationResult:
        """Run the deferred checks on every replica without raising.

        Returns:
            Result with one error per replica whose settings cannot be resolved
        """
        result = ValidationResult()
        for props in self.replicas.replicas.values() + [self.replicas.implicit_replica()]:
            try:
                self.replicas.resolve(props)
            except GlobalTableError as e:
                result.add_error(
                    f'replicas[{props.region}]', e.message, _SUGGESTIONS.get(type(e), '')
                )

        if result.is_valid:
            logger.debug(f'Global table validated. replicas: {len(self.replicas) + 1}')
        else:
            logger.warning(f'Global table validation failed. errors: {len(result.errors)}')
        return result
