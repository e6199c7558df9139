from unittest.mock import AsyncMock, Mock

import aiohttp
import pytest
from web3 import Web3
from web3.datastructures import AttributeDict
from web3.exceptions import ContractLogicError

from gas_suggestion_api.clients.blockchain.web3_client import Web3NodeClient
from gas_suggestion_api.models.gas_models import CallIntent
from gas_suggestion_api.tests.fixtures import RECIPIENT, SENDER
from gas_suggestion_api.utils.errors import (
    ExecutionReverted,
    NodeConnectionError,
    NodeRPCError,
)

INTENT = CallIntent(sender=SENDER, recipient=RECIPIENT, value=10**17)


async def _value(value):
    return value


@pytest.fixture()
def web3_client(config) -> Web3NodeClient:
    client = Web3NodeClient('http://localhost:8545', config)
    client.w3 = Mock()
    return client


@pytest.mark.asyncio()
async def test_fee_history(web3_client):
    web3_client.w3.eth.fee_history = AsyncMock(return_value=AttributeDict(
        {
            'oldestBlock': 13304966,
            'reward': [
                [1500000000, 1500000000, 3202574264],
                [1500000000, 2000000000, 6931501329],
                [1500000000, 1500000000, 1500000000],
                [1500000000, 1500000000, 2000000000]
            ],
            'baseFeePerGas': [56427293104, 53420243156, 59910824543, 59720412466, 61376457015],
            'gasUsedRatio': [0.2868372, 0.9860016027682301, 0.48728696666666665, 0.6109198333333333]
        }
    ))
    samples = await web3_client.fee_history(4, [10, 50, 90])
    web3_client.w3.eth.fee_history.assert_awaited_once_with(4, 'latest', [10, 50, 90])
    assert len(samples) == 4
    assert samples[0].block_number == 13304966
    assert samples[-1].base_fee == 59720412466
    assert samples[1].rewards == {10: 1500000000, 50: 2000000000, 90: 6931501329}


@pytest.mark.asyncio()
async def test_fee_history_without_rewards(web3_client):
    web3_client.w3.eth.fee_history = AsyncMock(return_value=AttributeDict({
        'oldestBlock': 100,
        'baseFeePerGas': [0, 0, 0],
        'gasUsedRatio': [0.1, 0.2],
    }))
    samples = await web3_client.fee_history(2, [])
    assert [sample.base_fee for sample in samples] == [0, 0]
    assert all(sample.rewards == {} for sample in samples)


@pytest.mark.asyncio()
async def test_fee_history_malformed(web3_client):
    web3_client.w3.eth.fee_history = AsyncMock(return_value=AttributeDict({'oldestBlock': 1}))
    with pytest.raises(NodeRPCError):
        await web3_client.fee_history(2, [])


@pytest.mark.asyncio()
async def test_fee_history_not_supported(web3_client):
    web3_client.w3.eth.fee_history = AsyncMock(
        side_effect=ValueError({'code': -32601, 'message': 'the method eth_feeHistory does not exist'})
    )
    with pytest.raises(NodeRPCError):
        await web3_client.fee_history(4, [])


@pytest.mark.asyncio()
async def test_gas_price(web3_client):
    web3_client.w3.eth.gas_price = _value(123)
    assert await web3_client.gas_price() == 123


@pytest.mark.asyncio()
async def test_latest_base_fee(web3_client):
    web3_client.w3.eth.get_block = AsyncMock(return_value=AttributeDict({'number': 1, 'baseFeePerGas': 30}))
    assert await web3_client.latest_base_fee() == 30
    web3_client.w3.eth.get_block.assert_awaited_once_with('latest')


@pytest.mark.asyncio()
async def test_latest_base_fee_on_legacy_block(web3_client):
    web3_client.w3.eth.get_block = AsyncMock(return_value=AttributeDict({'number': 1}))
    with pytest.raises(NodeRPCError):
        await web3_client.latest_base_fee()


@pytest.mark.asyncio()
async def test_estimate_gas(web3_client):
    web3_client.w3.eth.estimate_gas = AsyncMock(return_value=21000)
    assert await web3_client.estimate_gas(INTENT) == 21000
    web3_client.w3.eth.estimate_gas.assert_awaited_once_with({
        'from': Web3.to_checksum_address(SENDER),
        'to': Web3.to_checksum_address(RECIPIENT),
        'value': 10**17,
        'data': '0x',
    })


@pytest.mark.asyncio()
@pytest.mark.parametrize('error', [
    ContractLogicError('execution reverted: ERC20: transfer amount exceeds balance'),
    ValueError({'code': -32000, 'message': 'insufficient funds for gas * price + value'}),
])
async def test_estimate_gas_reverted(error, web3_client):
    web3_client.w3.eth.estimate_gas = AsyncMock(side_effect=error)
    with pytest.raises(ExecutionReverted):
        await web3_client.estimate_gas(INTENT)


@pytest.mark.asyncio()
async def test_connection_error_is_not_retried_by_default(web3_client):
    web3_client.w3.eth.estimate_gas = AsyncMock(side_effect=aiohttp.ClientConnectionError('refused'))
    with pytest.raises(NodeConnectionError):
        await web3_client.estimate_gas(INTENT)
    assert web3_client.w3.eth.estimate_gas.await_count == 1


@pytest.mark.asyncio()
async def test_connection_error_retries_when_configured(config):
    config = config.model_copy(update={'RPC_RETRY_ATTEMPTS': 2})
    web3_client = Web3NodeClient('http://localhost:8545', config)
    web3_client.w3 = Mock()
    web3_client.w3.eth.estimate_gas = AsyncMock(side_effect=[TimeoutError(), 21000])
    assert await web3_client.estimate_gas(INTENT) == 21000
    assert web3_client.w3.eth.estimate_gas.await_count == 2


@pytest.mark.asyncio()
async def test_rpc_error_is_never_retried(config):
    config = config.model_copy(update={'RPC_RETRY_ATTEMPTS': 3})
    web3_client = Web3NodeClient('http://localhost:8545', config)
    web3_client.w3 = Mock()
    web3_client.w3.eth.get_block = AsyncMock(side_effect=ValueError('header not found'))
    with pytest.raises(NodeRPCError):
        await web3_client.latest_base_fee()
    assert web3_client.w3.eth.get_block.await_count == 1
