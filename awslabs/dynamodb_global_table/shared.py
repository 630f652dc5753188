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

"""Enums, limits and the attribute model shared across the global table modules."""

from enum import Enum
from pydantic import BaseModel, ConfigDict
from pydantic.types import StringConstraints
from typing import Annotated, Any, Dict


# AWS DynamoDB Limits
# Source: https://docs.aws.amazon.com/amazondynamodb/latest/developerguide/ServiceQuotas.html
MAX_GSI_COUNT = 20
MAX_LSI_COUNT = 5
MAX_NON_KEY_ATTRIBUTES = 100  # Distinct projected attributes across all indexes

NEW_AND_OLD_IMAGES = 'NEW_AND_OLD_IMAGES'


NonEmptyStr = Annotated[str, StringConstraints(min_length=1)]


class AttributeType(str, Enum):
    """DynamoDB key attribute types."""

    STRING = 'S'
    NUMBER = 'N'
    BINARY = 'B'


class KeyType(str, Enum):
    """Role of an attribute in a key schema."""

    PARTITION = 'HASH'
    SORT = 'RANGE'


class ProjectionType(str, Enum):
    """Which attributes are copied into a secondary index."""

    ALL = 'ALL'
    KEYS_ONLY = 'KEYS_ONLY'
    INCLUDE = 'INCLUDE'


class BillingMode(str, Enum):
    """Table billing modes."""

    ON_DEMAND = 'PAY_PER_REQUEST'
    PROVISIONED = 'PROVISIONED'


class TableClass(str, Enum):
    """Storage class of a table."""

    STANDARD = 'STANDARD'
    STANDARD_INFREQUENT_ACCESS = 'STANDARD_INFREQUENT_ACCESS'


class StrictModel(BaseModel):
    """Base for input models; unknown fields are rejected rather than ignored."""

    model_config = ConfigDict(extra='forbid')


class Attribute(StrictModel):
    """A key attribute (partition or sort key)."""

    name: NonEmptyStr
    type: AttributeType


def compact(properties: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unset (None) properties, keeping the order of the rest."""
    return {key: value for key, value in properties.items() if value is not None}
