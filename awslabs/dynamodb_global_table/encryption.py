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

"""Server-side encryption settings for a global table.

KMS keys are referenced by ARN only; resolving or creating keys is left to the
caller. A customer managed key needs one key ARN per replica region, because
KMS keys are regional.
"""

from awslabs.dynamodb_global_table.errors import StructuralError, TokenReferenceError
from awslabs.dynamodb_global_table.shared import StrictModel
from awslabs.dynamodb_global_table.tokens import DeploymentContext, Region
from enum import Enum
from pydantic import Field, model_validator
from typing import Any, Dict, Optional
from typing_extensions import Self


KeyArn = Any  # ARN string or an opaque token


class EncryptionType(str, Enum):
    """Who owns the key used for server-side encryption."""

    DYNAMO_OWNED = 'AWS_OWNED'
    AWS_MANAGED = 'AWS_MANAGED'
    CUSTOMER_MANAGED = 'CUSTOMER_MANAGED'


class TableEncryption(StrictModel):
    """Encryption at rest for every replica of the global table."""

    type: EncryptionType = EncryptionType.DYNAMO_OWNED
    table_key_arn: Optional[KeyArn] = None
    replica_key_arns: Dict[str, KeyArn] = Field(default_factory=dict)

    @model_validator(mode='after')
    def _validate_keys(self) -> Self:
        """Validate that key ARNs are only given for customer managed keys."""
        if self.type == EncryptionType.CUSTOMER_MANAGED:
            if self.table_key_arn is None:
                raise ValueError('table_key_arn is required for a customer managed key')
        elif self.table_key_arn is not None or self.replica_key_arns:
            raise ValueError(
                f'key ARNs can only be provided for a customer managed key. type: {self.type.value}'
            )
        return self

    @classmethod
    def dynamo_owned_key(cls) -> 'TableEncryption':
        """Encrypt with a key owned by DynamoDB."""
        return cls(type=EncryptionType.DYNAMO_OWNED)

    @classmethod
    def aws_managed_key(cls) -> 'TableEncryption':
        """Encrypt with the AWS managed key for DynamoDB."""
        return cls(type=EncryptionType.AWS_MANAGED)

    @classmethod
    def customer_managed_key(
        cls, table_key_arn: KeyArn, replica_key_arns: Optional[Dict[str, KeyArn]] = None
    ) -> 'TableEncryption':
        """Encrypt with customer managed keys.

        Args:
            table_key_arn: Key used by the replica in the deployment region
            replica_key_arns: Region to key ARN for every other replica
        """
        return cls(
            type=EncryptionType.CUSTOMER_MANAGED,
            table_key_arn=table_key_arn,
            replica_key_arns=replica_key_arns or {},
        )

    def render(self) -> Dict[str, Any]:
        """Render the table-level SSE specification."""
        if self.type == EncryptionType.DYNAMO_OWNED:
            return {'sseEnabled': False}
        return {'sseEnabled': True, 'sseType': 'KMS'}

    def key_arn_for(self, region: Region, context: DeploymentContext) -> Optional[KeyArn]:
        """Return the key ARN used by the replica in region, or None."""
        if self.type != EncryptionType.CUSTOMER_MANAGED:
            return None
        if not context.region_agnostic and region == context.region:
            return self.table_key_arn
        return self.replica_key_arns.get(region)  # type: ignore[arg-type]

    def render_replica(self, region: Region, context: DeploymentContext) -> Optional[Dict[str, Any]]:
        """Render the SSE specification of the replica in region.

        Only customer managed keys carry per-replica settings.

        Raises:
            TokenReferenceError: If the deployment region is unresolved
            StructuralError: If the deployment region appears in replica_key_arns, or a
                replica region has no key
        """
        if self.type != EncryptionType.CUSTOMER_MANAGED:
            return None

        if context.region_agnostic:
            raise TokenReferenceError(
                'Replica SSE specification cannot be rendered in a region agnostic deployment',
                deferred=True,
            )

        if context.region in self.replica_key_arns:
            raise StructuralError(
                f"KMS key for the deployment region cannot be defined in replica_key_arns. region: '{context.region}'",
                deferred=True,
            )

        if region == context.region:
            return {'kmsMasterKeyId': self.table_key_arn}

        if region not in self.replica_key_arns:
            raise StructuralError(
                f"KMS key was not found in replica_key_arns. region: '{region}'",
                deferred=True,
            )

        return {'kmsMasterKeyId': self.replica_key_arns[region]}
