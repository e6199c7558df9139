from unittest import mock

import pytest

from gas_suggestion_api.services.gas_service import GasService
from gas_suggestion_api.tests.fixtures import (
    RECIPIENT,
    SENDER,
    FakeNodeClient,
    dynamic_history,
)
from gas_suggestion_api.utils.errors import ExecutionReverted


@pytest.fixture()
def patch_node_client():
    def _patch(node_client):
        return mock.patch.object(GasService, 'get_node_client', return_value=node_client)
    return _patch


def test_health_check(api_client):
    response = api_client.get('/health_check')
    assert response.status_code == 200
    assert response.text == 'OK'


def test_suggest_dynamic(api_client, patch_node_client, dynamic_node_client):
    with patch_node_client(dynamic_node_client):
        response = api_client.post(
            '/v1/gas/1/suggest',
            json={'sender': SENDER, 'recipient': RECIPIENT, 'value': 1, 'tier': 'fast'},
        )
    assert response.status_code == 200
    assert response.headers['x-request-id']
    assert response.json() == {
        'fee_model': 'dynamic',
        'tier': 'fast',
        'gas_limit': 25200,
        'max_priority_fee': 5,
        'max_fee': 41,
        'base_fee': 30,
    }


def test_suggest_legacy(api_client, patch_node_client, legacy_node_client):
    with patch_node_client(legacy_node_client):
        response = api_client.post('/v1/gas/56/suggest', json={'sender': SENDER, 'recipient': RECIPIENT})
    assert response.status_code == 200
    body = response.json()
    assert body['fee_model'] == 'legacy'
    assert body['tier'] == 'normal'
    assert body['gas_price'] == 10
    assert 'max_fee' not in body


def test_suggest_reverted(api_client, patch_node_client):
    node_client = FakeNodeClient(
        history=dynamic_history(), errors={'estimate_gas': ExecutionReverted('execution reverted')}
    )
    with patch_node_client(node_client):
        response = api_client.post('/v1/gas/1/suggest', json={'sender': SENDER, 'recipient': RECIPIENT})
    assert response.status_code == 400
    assert response.json()['stage'] == 'gas_limit'
    assert response.json()['error_owner'] == 'user'


def test_suggest_unknown_tier(api_client):
    response = api_client.post('/v1/gas/1/suggest', json={'sender': SENDER, 'tier': 'ludicrous'})
    assert response.status_code == 422


def test_suggest_invalid_sender(api_client, patch_node_client, dynamic_node_client):
    with patch_node_client(dynamic_node_client):
        response = api_client.post('/v1/gas/1/suggest', json={'sender': '0x1234'})
    assert response.status_code == 400
    assert response.json()['stage'] == 'request'
    assert response.json()['error_owner'] == 'user'


def test_fee_model(api_client, patch_node_client, legacy_node_client):
    with patch_node_client(legacy_node_client):
        response = api_client.get('/v1/gas/56/fee-model')
    assert response.status_code == 200
    assert response.json() == {'chain_id': 56, 'fee_model': 'legacy'}
