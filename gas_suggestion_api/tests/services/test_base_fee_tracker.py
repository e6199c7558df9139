import pytest

from gas_suggestion_api.services.base_fee_tracker import (
    get_base_fee_snapshot,
    get_legacy_gas_price,
)
from gas_suggestion_api.tests.fixtures import FakeNodeClient, dynamic_history
from gas_suggestion_api.utils.errors import (
    NodeConnectionError,
    NodeRequestError,
    Stage,
)


@pytest.mark.asyncio()
async def test_legacy_gas_price():
    assert await get_legacy_gas_price(FakeNodeClient(gas_price=123)) == 123


@pytest.mark.asyncio()
async def test_legacy_gas_price_error():
    node_client = FakeNodeClient(errors={'gas_price': NodeConnectionError('timeout')})
    with pytest.raises(NodeRequestError) as exc_info:
        await get_legacy_gas_price(node_client)
    assert exc_info.value.stage is Stage.BASE_FEE


@pytest.mark.asyncio()
@pytest.mark.parametrize('concurrent', [True, False])
async def test_base_fee_snapshot(concurrent, config):
    base_fees = (10, 11, 12, 13, 14, 15, 16)
    node_client = FakeNodeClient(base_fee=16, history=dynamic_history(base_fees=base_fees))
    snapshot = await get_base_fee_snapshot(node_client, config, concurrent=concurrent)
    assert snapshot.latest == 16
    assert snapshot.window == list(base_fees[-config.BASE_FEE_WINDOW:])
    assert snapshot.is_rising


@pytest.mark.asyncio()
async def test_flat_base_fee_is_not_rising(dynamic_node_client, config):
    snapshot = await get_base_fee_snapshot(dynamic_node_client, config)
    assert not snapshot.is_rising
