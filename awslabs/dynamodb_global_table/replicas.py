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

"""Replica tables and settings inheritance.

A global table always has a replica in its deployment region. Additional
replicas are added per region and may override the table-level defaults.
Overrides are resolved at render time so that indexes declared after a replica
are still covered by it:

    replica setting > table-level default > index's own setting
"""

from awslabs.dynamodb_global_table.capacity import (
    BillingSpec,
    CapacitySpec,
    ProvisionedBilling,
    render_read_capacity,
)
from awslabs.dynamodb_global_table.encryption import TableEncryption
from awslabs.dynamodb_global_table.errors import (
    CapacityError,
    StructuralError,
    TokenReferenceError,
)
from awslabs.dynamodb_global_table.indexes import SecondaryIndexRegistry
from awslabs.dynamodb_global_table.ordered_registry import OrderedRegistry
from awslabs.dynamodb_global_table.shared import BillingMode, StrictModel, TableClass, compact
from awslabs.dynamodb_global_table.tokens import DeploymentContext
from awslabs.dynamodb_global_table.validation_utils import parse_props
from loguru import logger
from pydantic import Field, field_validator
from typing import Any, Dict, List, Optional, TypeVar, Union


T = TypeVar('T')


def coalesce(*layers: Optional[T]) -> Optional[T]:
    """Return the first layer that is set, most specific first."""
    for value in layers:
        if value is not None:
            return value
    return None


class TableOptions(StrictModel):
    """Settings shared by the table defaults and each replica's overrides."""

    contributor_insights: Optional[bool] = None
    deletion_protection: Optional[bool] = None
    point_in_time_recovery: Optional[bool] = None
    table_class: Optional[TableClass] = None
    kinesis_stream_arn: Optional[Any] = None  # Stream ARN or an opaque token


class ReplicaGlobalSecondaryIndexOptions(StrictModel):
    """Per-replica overrides for one global secondary index."""

    contributor_insights: Optional[bool] = None
    read_capacity: Optional[CapacitySpec] = None


class ReplicaTableProps(TableOptions):
    """Properties of a replica table."""

    region: Any  # Region name or an opaque token
    read_capacity: Optional[CapacitySpec] = None
    global_secondary_index_options: Dict[str, ReplicaGlobalSecondaryIndexOptions] = Field(
        default_factory=dict
    )

    @field_validator('region')
    @classmethod
    def _validate_region(cls, v: Any) -> Any:
        """Validate region is not empty."""
        if v is None or (isinstance(v, str) and not v):
            raise ValueError('region cannot be empty')
        return v


class ReplicaRegistry:
    """Registers replica tables by region and resolves their effective settings."""

    def __init__(
        self,
        context: DeploymentContext,
        billing: BillingSpec,
        indexes: SecondaryIndexRegistry,
        defaults: TableOptions,
        encryption: Optional[TableEncryption] = None,
    ):
        """Initialize the registry.

        Args:
            context: Deployment region and token detection
            billing: Billing of the table
            indexes: Index registry, read at resolution time
            defaults: Table-level settings applied to every replica unless overridden
            encryption: Table encryption, if configured
        """
        self.context = context
        self.billing = billing
        self.indexes = indexes
        self.defaults = defaults
        self.encryption = encryption
        self.replicas: OrderedRegistry[ReplicaTableProps] = OrderedRegistry()

    @property
    def billing_mode(self) -> BillingMode:
        """Return the table billing mode."""
        return self.billing.billing_mode

    def add(self, props: Union[ReplicaTableProps, Dict[str, Any]]) -> ReplicaTableProps:
        """Validate and register a replica table.

        Args:
            props: Replica properties, as a model or a plain dict

        Returns:
            The registered replica properties

        Raises:
            TokenReferenceError: The deployment region or the replica region is a token
            StructuralError: The region is the deployment region or already has a replica
            CapacityError: Read capacity configured under on-demand billing
        """
        props = parse_props(ReplicaTableProps, props)

        if self.context.region_agnostic:
            raise TokenReferenceError(
                'Replica Tables are not supported in a region agnostic deployment'
            )

        if self.context.is_unresolved(props.region):
            raise TokenReferenceError('Replica Table region must not be a token')

        if props.region == self.context.region:
            raise StructuralError(
                'A Replica Table in Global Table deployment region is configured by default '
                f'and cannot be added explicitly. region: {props.region}'
            )

        if props.region in self.replicas:
            raise StructuralError(f'Duplicate Replica Table region, {props.region}, is not allowed')

        if self.billing_mode == BillingMode.ON_DEMAND:
            if props.read_capacity is not None:
                raise CapacityError(
                    "You cannot provide 'readCapacity' on a Replica Table when the billing mode "
                    f'is {BillingMode.ON_DEMAND.value}. region: {props.region}'
                )
            for index_name, options in props.global_secondary_index_options.items():
                self._validate_index_read_capacity(index_name, options)

        self.replicas.add(props.region, props)
        logger.debug(f'Replica table added. region: {props.region}, count: {len(self.replicas)}')
        return props

    def get(self, region: str) -> Optional[ReplicaTableProps]:
        """Return the explicit replica in region, or None."""
        return self.replicas.get(region)

    def implicit_replica(self) -> ReplicaTableProps:
        """Return the replica in the deployment region, configured by table defaults only."""
        return ReplicaTableProps(region=self.context.region)

    def resolve_index_overrides(self, props: ReplicaTableProps) -> Optional[List[Dict[str, Any]]]:
        """Resolve replica settings for every global secondary index registered now.

        Args:
            props: Replica whose per-index overrides are resolved

        Returns:
            One entry per global secondary index in registration order, or None
            when the table has no global secondary index

        Raises:
            StructuralError: An override names an index that is not defined
            CapacityError: A read capacity override under on-demand billing
        """
        for index_name, options in props.global_secondary_index_options.items():
            if index_name not in self.indexes.global_indexes:
                raise StructuralError(
                    f'Cannot configure replica global secondary index, {index_name}, because it '
                    f'is not defined on the global table. region: {props.region}',
                    deferred=True,
                )
            self._validate_index_read_capacity(index_name, options, deferred=True)

        resolved = []
        for index in self.indexes.global_indexes.values():
            options = props.global_secondary_index_options.get(
                index.index_name, ReplicaGlobalSecondaryIndexOptions()
            )
            contributor_insights = coalesce(
                options.contributor_insights,
                self.defaults.contributor_insights,
                index.props.contributor_insights,
            )
            read_capacity = coalesce(options.read_capacity, index.props.read_capacity)
            resolved.append(
                compact(
                    {
                        'indexName': index.index_name,
                        'readCapacity': render_read_capacity(read_capacity)
                        if read_capacity is not None
                        else None,
                        'contributorInsightsSpecification': {'enabled': contributor_insights}
                        if contributor_insights is not None
                        else None,
                    }
                )
            )

        return resolved or None

    def resolve(self, props: ReplicaTableProps) -> Dict[str, Any]:
        """Merge table defaults with the replica's overrides into one replica entry.

        Raises:
            StructuralError: Dangling index override or missing replica key
            CapacityError: Index read capacity override under on-demand billing
            TokenReferenceError: Customer managed keys in a region agnostic deployment
        """
        contributor_insights = coalesce(props.contributor_insights, self.defaults.contributor_insights)
        point_in_time_recovery = coalesce(
            props.point_in_time_recovery, self.defaults.point_in_time_recovery
        )
        table_class = coalesce(props.table_class, self.defaults.table_class)
        kinesis_stream_arn = coalesce(props.kinesis_stream_arn, self.defaults.kinesis_stream_arn)

        return compact(
            {
                'region': props.region,
                'globalSecondaryIndexes': self.resolve_index_overrides(props),
                'deletionProtectionEnabled': coalesce(
                    props.deletion_protection, self.defaults.deletion_protection
                ),
                'tableClass': table_class.value if table_class is not None else None,
                'sseSpecification': self.encryption.render_replica(props.region, self.context)
                if self.encryption is not None
                else None,
                'kinesisStreamSpecification': {'streamArn': kinesis_stream_arn}
                if kinesis_stream_arn is not None
                else None,
                'contributorInsightsSpecification': {'enabled': contributor_insights}
                if contributor_insights is not None
                else None,
                'pointInTimeRecoverySpecification': {
                    'pointInTimeRecoveryEnabled': point_in_time_recovery
                }
                if point_in_time_recovery is not None
                else None,
                'readCapacity': self._resolve_read_capacity(props.read_capacity),
            }
        )

    def render(self) -> List[Dict[str, Any]]:
        """Render explicit replicas in registration order, then the deployment-region replica."""
        rendered = [self.resolve(props) for props in self.replicas.values()]
        rendered.append(self.resolve(self.implicit_replica()))
        return rendered

    def _resolve_read_capacity(self, read_capacity: Optional[CapacitySpec]) -> Optional[Dict[str, Any]]:
        if read_capacity is not None:
            return render_read_capacity(read_capacity)
        if isinstance(self.billing, ProvisionedBilling):
            return render_read_capacity(self.billing.read_capacity)
        return None

    def _validate_index_read_capacity(
        self, index_name: str, options: ReplicaGlobalSecondaryIndexOptions, deferred: bool = False
    ) -> None:
        if self.billing_mode == BillingMode.ON_DEMAND and options.read_capacity is not None:
            raise CapacityError(
                f"Cannot configure 'readCapacity' for replica global secondary index, {index_name}, "
                f'because billing mode is {BillingMode.ON_DEMAND.value}',
                deferred=deferred,
            )

    def __len__(self) -> int:
        return len(self.replicas)
