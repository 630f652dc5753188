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

"""Tests for the global table aggregate and its render pass."""

import pytest
from .conftest import DEPLOYMENT_REGION, gsi, lsi
from awslabs.dynamodb_global_table import (
    CapacityError,
    DeploymentContext,
    GlobalTable,
    StructuralError,
    TableEncryption,
    Token,
    TokenReferenceError,
    autoscaled,
    fixed,
    provisioned,
)
from awslabs.dynamodb_global_table.global_table import GlobalTableProps
from awslabs.dynamodb_global_table.tokens import AWS_REGION, is_unresolved
from awslabs.dynamodb_global_table.validation_utils import parse_props
from hypothesis import given, settings
from hypothesis import strategies as st
from loguru import logger
from pydantic import ValidationError


class TestTokens:
    """Tests for token detection and the deployment context."""

    def test_token_encoding(self):
        """Tokens encode as embedded strings."""
        assert str(Token(AWS_REGION)) == '${Token[AWS::Region]}'
        assert is_unresolved(Token(AWS_REGION))
        assert is_unresolved(f'prefix-{Token("Foo")}')
        assert not is_unresolved('us-east-1')
        assert not is_unresolved(None)

    def test_default_context_is_region_agnostic(self):
        """Without a region the deployment is region agnostic."""
        assert DeploymentContext().region_agnostic
        assert not DeploymentContext(region='us-east-1').region_agnostic

    def test_custom_token_detector(self):
        """Callers can supply their own token format."""
        context = DeploymentContext(
            region='us-east-1', token_detector=lambda value: str(value).startswith('{{')
        )
        assert context.is_unresolved('{{region}}')
        assert not context.region_agnostic


class TestRender:
    """Tests for the render pass."""

    def test_full_property_order(self, context):
        """Top-level properties render in a fixed order."""
        table = GlobalTable(
            {
                'table_name': 'orders',
                'partition_key': {'name': 'pk', 'type': 'S'},
                'sort_key': {'name': 'sk', 'type': 'N'},
                'time_to_live_attribute': 'expires_at',
                'billing': provisioned(fixed(10), autoscaled(1, 10)),
                'encryption': TableEncryption.aws_managed_key(),
                'local_secondary_indexes': [lsi('lsi1')],
            },
            context,
        )
        table.add_replica({'region': 'us-west-2'})
        table.add_global_secondary_index(gsi('gsi1', read_capacity=fixed(5)))

        rendered = table.render()
        assert list(rendered) == [
            'tableName',
            'keySchema',
            'attributeDefinitions',
            'billingMode',
            'writeCapacity',
            'globalSecondaryIndexes',
            'localSecondaryIndexes',
            'replicas',
            'streamSpecification',
            'sseSpecification',
            'timeToLiveSpecification',
        ]
        assert rendered['tableName'] == 'orders'
        assert rendered['billingMode'] == 'PROVISIONED'
        assert rendered['attributeDefinitions'] == [
            {'attributeName': 'pk', 'attributeType': 'S'},
            {'attributeName': 'sk', 'attributeType': 'N'},
            {'attributeName': 'lsi1sk', 'attributeType': 'S'},
            {'attributeName': 'gsi1pk', 'attributeType': 'S'},
        ]
        assert rendered['streamSpecification'] == {'streamViewType': 'NEW_AND_OLD_IMAGES'}
        assert rendered['timeToLiveSpecification'] == {
            'attributeName': 'expires_at',
            'enabled': True,
        }

    def test_fixed_table_write_capacity(self, table_props, context):
        """Table write capacity must be autoscaled."""
        with pytest.raises(CapacityError):
            GlobalTable({**table_props, 'billing': provisioned(fixed(10), fixed(10))}, context)

    def test_region_agnostic_implicit_replica(self, table_props):
        """The implicit replica carries the region token unchanged."""
        rendered = GlobalTable(table_props).render()
        assert rendered['replicas'] == [{'region': Token(AWS_REGION)}]

    @settings(max_examples=25, deadline=None)
    @given(
        regions=st.lists(st.sampled_from(['us-west-2', 'eu-west-1', 'ap-south-1']), unique=True),
        index_count=st.integers(min_value=0, max_value=3),
        contributor_insights=st.one_of(st.none(), st.booleans()),
    )
    def test_render_is_idempotent(self, regions, index_count, contributor_insights):
        """Rendering twice without mutation yields identical output."""
        table = GlobalTable(
            {
                'partition_key': {'name': 'pk', 'type': 'S'},
                'contributor_insights': contributor_insights,
            },
            DeploymentContext(region=DEPLOYMENT_REGION),
        )
        for region in regions:
            table.add_replica({'region': region})
        for i in range(index_count):
            table.add_global_secondary_index(gsi(f'gsi{i}'))

        assert table.render() == table.render()


class TestScenarios:
    """End-to-end scenarios."""

    def test_on_demand_without_replicas(self, table_props, context):
        """One implicit replica, no capacity, no stream."""
        assert GlobalTable(table_props, context).render() == {
            'keySchema': [{'attributeName': 'pk', 'keyType': 'HASH'}],
            'attributeDefinitions': [{'attributeName': 'pk', 'attributeType': 'S'}],
            'billingMode': 'PAY_PER_REQUEST',
            'replicas': [{'region': DEPLOYMENT_REGION}],
        }

    def test_provisioned_index_without_read_capacity(self, table_props, context):
        """The index is rejected before any replica is resolved."""
        table = GlobalTable({**table_props, 'billing': provisioned(fixed(10), autoscaled(1, 10))}, context)
        with pytest.raises(CapacityError):
            table.add_global_secondary_index(gsi('gsi1'))
        assert 'globalSecondaryIndexes' not in table.render()

    def test_contributor_insights_inheritance(self, table_props, context):
        """Per-index overrides beat the table default; the default beats nothing."""
        table = GlobalTable({**table_props, 'contributor_insights': True}, context)
        table.add_global_secondary_index(gsi('gsi1'))
        table.add_global_secondary_index(gsi('gsi2'))
        table.add_replica(
            {
                'region': 'us-west-2',
                'global_secondary_index_options': {'gsi2': {'contributor_insights': False}},
            }
        )

        replica, implicit = table.render()['replicas']
        assert replica['globalSecondaryIndexes'] == [
            {'indexName': 'gsi1', 'contributorInsightsSpecification': {'enabled': True}},
            {'indexName': 'gsi2', 'contributorInsightsSpecification': {'enabled': False}},
        ]
        assert implicit['globalSecondaryIndexes'] == [
            {'indexName': 'gsi1', 'contributorInsightsSpecification': {'enabled': True}},
            {'indexName': 'gsi2', 'contributorInsightsSpecification': {'enabled': True}},
        ]

    def test_override_of_missing_index(self, table_props, context):
        """An override declared before any index names an index that never appears."""
        table = GlobalTable(table_props, context)
        table.add_replica(
            {
                'region': 'us-west-2',
                'global_secondary_index_options': {'missing': {'contributor_insights': False}},
            }
        )
        table.add_global_secondary_index(gsi('gsi1'))
        with pytest.raises(StructuralError, match='missing'):
            table.render()

    def test_twenty_one_global_indexes(self, table_props, context):
        """The 21st index fails; the first 20 render."""
        table = GlobalTable(table_props, context)
        for i in range(20):
            table.add_global_secondary_index(gsi(f'gsi{i}'))
        with pytest.raises(StructuralError):
            table.add_global_secondary_index(gsi('gsi20'))
        assert [index['indexName'] for index in table.render()['globalSecondaryIndexes']] == [
            f'gsi{i}' for i in range(20)
        ]


class TestValidate:
    """Tests for non-raising validation."""

    def test_valid(self, table_props, context):
        """A consistent table validates cleanly."""
        table = GlobalTable(table_props, context)
        table.add_replica({'region': 'us-west-2'})
        result = table.validate()
        assert result.is_valid
        assert result.format('Global table is valid', 'Global table is invalid') == (
            '✅ Global table is valid'
        )

    def test_collects_deferred_errors_per_replica(self, table_props, context):
        """Each failing replica is reported once without raising."""
        table = GlobalTable(
            {**table_props, 'encryption': TableEncryption.customer_managed_key('arn:table')},
            context,
        )
        table.add_replica(
            {
                'region': 'us-west-2',
                'global_secondary_index_options': {'missing': {'contributor_insights': True}},
            }
        )
        table.add_replica({'region': 'eu-west-1'})

        result = table.validate()
        assert not result.is_valid
        assert [error.path for error in result.errors] == [
            'replicas[us-west-2]',
            'replicas[eu-west-1]',
        ]
        assert 'missing' in result.errors[0].message
        assert 'eu-west-1' in result.errors[1].message
        formatted = result.format('Global table is valid', 'Global table is invalid')
        assert formatted.startswith('❌ Global table is invalid:')
        assert '  • replicas[eu-west-1]: ' in formatted


class TestParseProps:
    """Tests for malformed input handling."""

    @pytest.fixture
    def error_messages(self):
        """Capture error log messages."""
        messages = []
        handler_id = logger.add(lambda message: messages.append(message.record['message']), level='ERROR')
        yield messages
        logger.remove(handler_id)

    def test_malformed_props_are_logged_and_raised(self, error_messages):
        """The pydantic error propagates after its readable form is logged."""
        with pytest.raises(ValidationError):
            parse_props(GlobalTableProps, {'partition_key': {'name': '', 'type': 'S'}})
        assert error_messages == [
            'Invalid GlobalTableProps. errors: partition_key.name: cannot be empty. name: '
        ]

    def test_valid_props(self, error_messages):
        """Valid input returns the model and logs nothing."""
        props = parse_props(GlobalTableProps, {'partition_key': {'name': 'pk', 'type': 'S'}})
        assert props.partition_key.name == 'pk'
        assert error_messages == []


class TestReplicaLookup:
    """Tests for replica references."""

    @pytest.fixture
    def table(self, table_props, context):
        """Customer managed table with one explicit replica."""
        table = GlobalTable(
            {
                **table_props,
                'encryption': TableEncryption.customer_managed_key(
                    'arn:table', {'us-west-2': 'arn:west'}
                ),
            },
            context,
        )
        table.add_replica({'region': 'us-west-2'})
        return table

    def test_deployment_region(self, table):
        """The deployment region replica uses the table key."""
        reference = table.replica(DEPLOYMENT_REGION)
        assert reference.region == DEPLOYMENT_REGION
        assert reference.encryption_key_arn == 'arn:table'
        assert reference.grant_index_permissions is False

    def test_explicit_replica(self, table):
        """An explicit replica uses its region's key."""
        table.add_local_secondary_index(lsi('lsi1'))
        reference = table.replica('us-west-2')
        assert reference.encryption_key_arn == 'arn:west'
        assert reference.grant_index_permissions is True

    def test_unknown_region(self, table):
        """No replica, no reference."""
        with pytest.raises(StructuralError):
            table.replica('eu-west-1')

    def test_token_region(self, table):
        """Token regions cannot be looked up."""
        with pytest.raises(TokenReferenceError):
            table.replica(Token('Region'))

    def test_region_agnostic(self, table_props):
        """A region agnostic deployment has no comparable region."""
        with pytest.raises(TokenReferenceError):
            GlobalTable(table_props).replica('us-west-2')
