from typing import Any, Awaitable, Callable, Sequence

import aiohttp
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, Web3Exception
from web3.middleware import ExtraDataToPOAMiddleware

from gas_suggestion_api.clients.blockchain.custom_http_provider import (
    AsyncCustomHTTPProvider,
)
from gas_suggestion_api.config import Config
from gas_suggestion_api.models.gas_models import CallIntent, FeeHistorySample
from gas_suggestion_api.utils.errors import (
    ExecutionReverted,
    NodeConnectionError,
    NodeRPCError,
)
from gas_suggestion_api.utils.logger import get_logger

# messages geth-like nodes use for eth_estimateGas on a failing call
REVERT_MARKERS = ('execution reverted', 'insufficient funds', 'out of gas', 'revert')

logger = get_logger(__name__)


class Web3NodeClient:
    """NodeClient implementation on top of AsyncWeb3."""

    # one aiohttp session per endpoint serves concurrent requests
    concurrent_safe = True

    def __init__(self, uri: str, config: Config):
        self.uri = uri
        self.retry_attempts = max(config.RPC_RETRY_ATTEMPTS, 1)
        self.w3 = AsyncWeb3(AsyncCustomHTTPProvider(endpoint_uri=uri, config=config))
        self.w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

    async def gas_price(self) -> int:
        return await self._request('eth_gasPrice', self._get_gas_price)

    async def latest_base_fee(self) -> int:
        return await self._request('eth_getBlockByNumber', self._get_latest_base_fee)

    async def fee_history(
        self, block_count: int, reward_percentiles: Sequence[int]
    ) -> list[FeeHistorySample]:
        return await self._request(
            'eth_feeHistory',
            lambda: self._get_fee_history(block_count, list(reward_percentiles)),
        )

    async def estimate_gas(self, intent: CallIntent) -> int:
        return await self._request(
            'eth_estimateGas',
            lambda: self._estimate_gas(intent),
            can_revert=True,
        )

    async def _get_gas_price(self) -> int:
        return int(await self.w3.eth.gas_price)

    async def _get_latest_base_fee(self) -> int:
        block = await self.w3.eth.get_block('latest')
        base_fee = block.get('baseFeePerGas')
        if base_fee is None:
            raise NodeRPCError(f'Latest block of {self.uri} has no baseFeePerGas')
        return int(base_fee)

    async def _get_fee_history(
        self, block_count: int, reward_percentiles: list[int]
    ) -> list[FeeHistorySample]:
        history = await self.w3.eth.fee_history(block_count, 'latest', reward_percentiles)
        # baseFeePerGas holds one extra entry, the base fee of the next block
        base_fees = history['baseFeePerGas']
        rewards = history.get('reward') or []
        oldest_block = history.get('oldestBlock')
        blocks = len(history.get('gasUsedRatio') or []) or max(len(base_fees) - 1, 0)
        if reward_percentiles and not rewards and blocks:
            logger.warning('Node %s not have reward data in fee history', self.uri)
        return [
            FeeHistorySample(
                block_number=oldest_block + i if oldest_block is not None else None,
                base_fee=base_fees[i],
                rewards=dict(zip(reward_percentiles, rewards[i])) if i < len(rewards) else {},
            )
            for i in range(min(blocks, len(base_fees)))
        ]

    async def _estimate_gas(self, intent: CallIntent) -> int:
        return int(await self.w3.eth.estimate_gas(intent.to_call_params()))

    async def _request(
        self,
        method: str,
        make_request: Callable[[], Awaitable[Any]],
        can_revert: bool = False,
    ) -> Any:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            retry=retry_if_exception_type(NodeConnectionError),
            reraise=True,
        ):
            with attempt:
                return await self._translate_errors(method, make_request, can_revert)

    async def _translate_errors(
        self,
        method: str,
        make_request: Callable[[], Awaitable[Any]],
        can_revert: bool,
    ) -> Any:
        try:
            return await make_request()
        except NodeRPCError:
            raise
        except ContractLogicError as e:
            if can_revert:
                raise ExecutionReverted(str(e)) from e
            raise NodeRPCError(f'{method} failed on {self.uri}: {e}') from e
        except (aiohttp.ClientError, TimeoutError, OSError) as e:
            raise NodeConnectionError(f'{method} failed on {self.uri}: {e!r}') from e
        except (Web3Exception, ValueError, KeyError, TypeError) as e:
            message = str(e)
            if can_revert and any(marker in message.lower() for marker in REVERT_MARKERS):
                raise ExecutionReverted(message) from e
            raise NodeRPCError(f'{method} failed on {self.uri}: {message}') from e
