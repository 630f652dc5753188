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

"""Shared fixtures for global table tests."""

import pytest
from awslabs.dynamodb_global_table.capacity import autoscaled, fixed, provisioned
from awslabs.dynamodb_global_table.tokens import DeploymentContext


DEPLOYMENT_REGION = 'us-east-1'


def gsi(name, partition_key=None, **kwargs):
    """Build global secondary index props keyed on a string attribute."""
    return {
        'index_name': name,
        'partition_key': {'name': partition_key or f'{name}pk', 'type': 'S'},
        **kwargs,
    }


def lsi(name, sort_key=None, **kwargs):
    """Build local secondary index props sorted on a string attribute."""
    return {
        'index_name': name,
        'sort_key': {'name': sort_key or f'{name}sk', 'type': 'S'},
        **kwargs,
    }


@pytest.fixture
def context():
    """Deployment context with a concrete region."""
    return DeploymentContext(region=DEPLOYMENT_REGION)


@pytest.fixture
def table_props():
    """Minimal on-demand table props."""
    return {'partition_key': {'name': 'pk', 'type': 'S'}}


@pytest.fixture
def provisioned_billing():
    """Provisioned billing with fixed reads and autoscaled writes."""
    return provisioned(read_capacity=fixed(10), write_capacity=autoscaled(1, 10))
