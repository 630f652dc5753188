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

"""awslabs DynamoDB Global Table specification compiler."""

from awslabs.dynamodb_global_table.capacity import (
    AutoscaledCapacity,
    FixedCapacity,
    OnDemandBilling,
    ProvisionedBilling,
    autoscaled,
    fixed,
    on_demand,
    provisioned,
)
from awslabs.dynamodb_global_table.encryption import EncryptionType, TableEncryption
from awslabs.dynamodb_global_table.errors import (
    CapacityError,
    ConsistencyError,
    GlobalTableError,
    StructuralError,
    TokenReferenceError,
)
from awslabs.dynamodb_global_table.global_table import (
    GlobalTable,
    GlobalTableProps,
    ReplicaTableReference,
)
from awslabs.dynamodb_global_table.indexes import (
    GlobalSecondaryIndexProps,
    LocalSecondaryIndexProps,
)
from awslabs.dynamodb_global_table.replicas import (
    ReplicaGlobalSecondaryIndexOptions,
    ReplicaTableProps,
)
from awslabs.dynamodb_global_table.shared import (
    Attribute,
    AttributeType,
    BillingMode,
    ProjectionType,
    TableClass,
)
from awslabs.dynamodb_global_table.tokens import DeploymentContext, Token


__version__ = '0.1.0'

__all__ = [
    'Attribute',
    'AttributeType',
    'AutoscaledCapacity',
    'BillingMode',
    'CapacityError',
    'ConsistencyError',
    'DeploymentContext',
    'EncryptionType',
    'FixedCapacity',
    'GlobalSecondaryIndexProps',
    'GlobalTable',
    'GlobalTableError',
    'GlobalTableProps',
    'LocalSecondaryIndexProps',
    'OnDemandBilling',
    'ProjectionType',
    'ProvisionedBilling',
    'ReplicaGlobalSecondaryIndexOptions',
    'ReplicaTableProps',
    'ReplicaTableReference',
    'StructuralError',
    'TableClass',
    'TableEncryption',
    'Token',
    'TokenReferenceError',
    'autoscaled',
    'fixed',
    'on_demand',
    'provisioned',
]
