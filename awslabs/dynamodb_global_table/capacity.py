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

"""Capacity and billing models, and the capacity resolver.

Capacity is either FIXED (a static unit count) or AUTOSCALED (min/max bounds
with a target utilization). Billing is either ON_DEMAND or PROVISIONED with
read and write capacity. Whether capacity may be configured at all depends on
the billing mode. On-demand billing rejects capacity given to it directly; the
registries check the capacity of indexes and replicas.
"""

from awslabs.dynamodb_global_table.errors import CapacityError
from awslabs.dynamodb_global_table.shared import BillingMode, StrictModel
from pydantic import Field, PositiveInt, model_validator
from typing import Annotated, Any, Dict, Literal, Optional, Union
from typing_extensions import Self


# https://docs.aws.amazon.com/amazondynamodb/latest/developerguide/AutoScaling.html
DEFAULT_TARGET_UTILIZATION_PERCENT = 70
MIN_TARGET_UTILIZATION_PERCENT = 20
MAX_TARGET_UTILIZATION_PERCENT = 90

CAPACITY_FIELDS = ('read_capacity', 'write_capacity', 'readCapacity', 'writeCapacity')


def reject_capacity_fields(data: Any, context: str) -> None:
    """Raise if raw input data carries any capacity field.

    Args:
        data: Raw input passed to a model, usually a dict
        context: Why capacity is not allowed, appended to the error message

    Raises:
        CapacityError: A capacity field is present
    """
    if not isinstance(data, dict):
        return
    supplied = [name for name in CAPACITY_FIELDS if name in data]
    if supplied:
        raise CapacityError(
            f'You cannot configure capacity {context}. fields: {", ".join(supplied)}'
        )


class FixedCapacity(StrictModel):
    """Static throughput."""

    mode: Literal['FIXED'] = 'FIXED'
    units: PositiveInt


class AutoscaledCapacity(StrictModel):
    """Throughput scaled between bounds to hold a target utilization."""

    mode: Literal['AUTOSCALED'] = 'AUTOSCALED'
    min_capacity: PositiveInt
    max_capacity: PositiveInt
    seed_capacity: Optional[PositiveInt] = None
    target_utilization_percent: Annotated[
        int, Field(ge=MIN_TARGET_UTILIZATION_PERCENT, le=MAX_TARGET_UTILIZATION_PERCENT)
    ] = DEFAULT_TARGET_UTILIZATION_PERCENT

    @model_validator(mode='after')
    def _validate_bounds(self) -> Self:
        """Validate that the minimum does not exceed the maximum."""
        if self.min_capacity > self.max_capacity:
            raise ValueError(
                'min_capacity cannot exceed max_capacity. '
                f'min_capacity: {self.min_capacity}, max_capacity: {self.max_capacity}'
            )
        return self


CapacitySpec = Annotated[Union[FixedCapacity, AutoscaledCapacity], Field(discriminator='mode')]


def fixed(units: int) -> FixedCapacity:
    """Create a fixed capacity."""
    return FixedCapacity(units=units)


def autoscaled(
    min_capacity: int,
    max_capacity: int,
    seed_capacity: Optional[int] = None,
    target_utilization_percent: int = DEFAULT_TARGET_UTILIZATION_PERCENT,
) -> AutoscaledCapacity:
    """Create an autoscaled capacity."""
    return AutoscaledCapacity(
        min_capacity=min_capacity,
        max_capacity=max_capacity,
        seed_capacity=seed_capacity,
        target_utilization_percent=target_utilization_percent,
    )


class OnDemandBilling(StrictModel):
    """Pay-per-request billing; no capacity may be configured."""

    mode: Literal['ON_DEMAND'] = 'ON_DEMAND'

    @model_validator(mode='before')
    @classmethod
    def _reject_capacity(cls, data: Any) -> Any:
        """Reject read or write capacity under on-demand billing."""
        reject_capacity_fields(data, f'when the billing mode is {BillingMode.ON_DEMAND.value}')
        return data

    @property
    def billing_mode(self) -> BillingMode:
        """Return the billing mode."""
        return BillingMode.ON_DEMAND


class ProvisionedBilling(StrictModel):
    """Provisioned billing with table-level read and write capacity."""

    mode: Literal['PROVISIONED'] = 'PROVISIONED'
    read_capacity: CapacitySpec
    write_capacity: CapacitySpec

    @property
    def billing_mode(self) -> BillingMode:
        """Return the billing mode."""
        return BillingMode.PROVISIONED


BillingSpec = Annotated[Union[OnDemandBilling, ProvisionedBilling], Field(discriminator='mode')]


def on_demand() -> OnDemandBilling:
    """Create on-demand billing."""
    return OnDemandBilling()


def provisioned(read_capacity: CapacitySpec, write_capacity: CapacitySpec) -> ProvisionedBilling:
    """Create provisioned billing."""
    return ProvisionedBilling(read_capacity=read_capacity, write_capacity=write_capacity)


def _render_autoscaling(capacity: AutoscaledCapacity) -> Dict[str, Any]:
    settings: Dict[str, Any] = {
        'minCapacity': capacity.min_capacity,
        'maxCapacity': capacity.max_capacity,
    }
    if capacity.seed_capacity is not None:
        settings['seedCapacity'] = capacity.seed_capacity
    settings['targetTrackingScalingPolicyConfiguration'] = {
        'targetValue': capacity.target_utilization_percent,
    }
    return settings


def render_read_capacity(capacity: CapacitySpec) -> Dict[str, Any]:
    """Render read capacity settings.

    Args:
        capacity: Fixed or autoscaled capacity

    Returns:
        readCapacityUnits for fixed capacity, readCapacityAutoScalingSettings otherwise
    """
    if isinstance(capacity, FixedCapacity):
        return {'readCapacityUnits': capacity.units}
    return {'readCapacityAutoScalingSettings': _render_autoscaling(capacity)}


def render_write_capacity(capacity: AutoscaledCapacity) -> Dict[str, Any]:
    """Render write capacity settings.

    Write capacity is always autoscaled on a global table; callers reject
    fixed write capacity before it is recorded.

    Args:
        capacity: Autoscaled capacity

    Returns:
        writeCapacityAutoScalingSettings
    """
    return {'writeCapacityAutoScalingSettings': _render_autoscaling(capacity)}
