"""
Custom implementation of the async HTTP provider.
Sessions are shared per endpoint and requests use the configured timeout.
Majority of the code was copied and adapted from Web3 library.
"""
import asyncio
import threading
from typing import Any

from aiohttp import ClientSession, ClientTimeout, TCPConnector
from eth_typing import URI
from lru import LRU
from web3 import AsyncHTTPProvider
from web3.types import RPCEndpoint, RPCResponse

from gas_suggestion_api.config import Config
from gas_suggestion_api.utils.logger import LogArgs, get_logger

_logger = get_logger(__name__)


def _on_async_session_evicted_from_cache(cache_key, session: ClientSession) -> None:
    asyncio.ensure_future(session.close())
    log_args = {
        LogArgs.web3_url: cache_key,
        LogArgs.cache_size: len(_async_session_cache),
    }
    _logger.info(
        f"Closed async http session: %({LogArgs.web3_url})s", log_args, extra=log_args
    )


_async_session_cache_lock = threading.Lock()
_async_session_cache = LRU(100, callback=_on_async_session_evicted_from_cache)


async def _get_async_session(endpoint_uri: URI) -> ClientSession:
    cache_key = endpoint_uri
    if cache_key not in _async_session_cache:
        connector = TCPConnector(limit=32)
        session = ClientSession(connector=connector, raise_for_status=True)
        # note: there is no retry support like in requests, see https://github.com/aio-libs/aiohttp/issues/3133
        with _async_session_cache_lock:
            _async_session_cache[cache_key] = session
            log_args = {
                LogArgs.web3_url: cache_key,
                LogArgs.cache_size: len(_async_session_cache),
            }
            _logger.info(
                f"Created async http session: %({LogArgs.web3_url})s",
                log_args,
                extra=log_args,
            )

    return _async_session_cache[cache_key]


async def close_async_sessions() -> None:
    """Close every cached session, used on application shutdown."""
    with _async_session_cache_lock:
        sessions = list(_async_session_cache.values())
        _async_session_cache.clear()
    for session in sessions:
        await session.close()


async def _async_make_post_request(
    endpoint_uri: URI,
    data: bytes,
    config: Config,
    **kwargs: Any,
) -> bytes:
    kwargs.setdefault("timeout", ClientTimeout(total=config.WEB3_TIMEOUT))
    session = await _get_async_session(endpoint_uri)
    async with session.post(endpoint_uri, data=data, **kwargs) as response:
        response.raise_for_status()
        return await response.read()


class AsyncCustomHTTPProvider(AsyncHTTPProvider):
    def __init__(self, endpoint_uri: URI, config: Config, *args: Any, **kwargs: Any):
        # retries are owned by the node client, the provider never retries on its own
        kwargs.setdefault("exception_retry_configuration", None)
        super().__init__(endpoint_uri, *args, **kwargs)
        self.config = config

    async def make_request(self, method: RPCEndpoint, params: Any) -> RPCResponse:
        self.logger.debug(
            "Making request HTTP. URI: %s, Method: %s", self.endpoint_uri, method
        )
        request_data = self.encode_rpc_request(method, params)
        raw_response = await _async_make_post_request(
            self.endpoint_uri,
            request_data,
            self.config,
            **self.get_request_kwargs(),
        )
        response = self.decode_rpc_response(raw_response)
        self.logger.debug(
            "Getting response HTTP. URI: %s, " "Method: %s, Response: %s",
            self.endpoint_uri,
            method,
            response,
        )
        return response
