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

"""Render pass producing the global table resource properties."""

from awslabs.dynamodb_global_table.attributes import render_key_schema
from awslabs.dynamodb_global_table.capacity import ProvisionedBilling, render_write_capacity
from awslabs.dynamodb_global_table.shared import NEW_AND_OLD_IMAGES, compact
from loguru import logger
from typing import TYPE_CHECKING, Any, Dict, Optional


if TYPE_CHECKING:
    from awslabs.dynamodb_global_table.global_table import GlobalTable


class GlobalTableRenderer:
    """Reads the final state of a global table and renders it.

    Rendering never mutates the registries, so it can be repeated and yields
    the same structure as long as nothing was added in between.
    """

    def __init__(self, table: 'GlobalTable'):
        """Initialize the renderer over a global table."""
        self.table = table

    def render(self) -> Dict[str, Any]:
        """Render the resource properties in their fixed order.

        Returns:
            Properties dict; unset properties and empty index lists are omitted

        Raises:
            GlobalTableError: A deferred check failed against the final state
        """
        table = self.table
        logger.info(
            f'Rendering global table. global_indexes: {len(table.indexes.global_indexes)}, '
            f'local_indexes: {len(table.indexes.local_indexes)}, replicas: {len(table.replicas)}'
        )

        billing = table.billing
        write_capacity = None
        if isinstance(billing, ProvisionedBilling):
            write_capacity = render_write_capacity(billing.write_capacity)

        properties = compact(
            {
                'tableName': table.table_name,
                'keySchema': render_key_schema(table.key_schema),
                'attributeDefinitions': table.attributes.definitions(),
                'billingMode': billing.billing_mode.value,
                'writeCapacity': write_capacity,
                'globalSecondaryIndexes': table.indexes.render_global_indexes() or None,
                'localSecondaryIndexes': table.indexes.render_local_indexes() or None,
                'replicas': table.replicas.render(),
                'streamSpecification': self._render_stream_specification(),
                'sseSpecification': table.encryption.render()
                if table.encryption is not None
                else None,
                'timeToLiveSpecification': self._render_time_to_live(),
            }
        )

        logger.info(f'Global table rendered. replicas: {len(properties["replicas"])}')
        return properties

    def _render_stream_specification(self) -> Optional[Dict[str, Any]]:
        if len(self.table.replicas) > 0:
            return {'streamViewType': NEW_AND_OLD_IMAGES}
        return None

    def _render_time_to_live(self) -> Optional[Dict[str, Any]]:
        if self.table.time_to_live_attribute is None:
            return None
        return {'attributeName': self.table.time_to_live_attribute, 'enabled': True}
