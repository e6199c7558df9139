import logging
import time
from typing import Callable, Optional
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import Receive, Scope, Send

from gas_suggestion_api.utils.logger import (
    get_logger,
    set_correlation_id,
    set_session_id,
)


class RouteLoggerMiddleware(BaseHTTPMiddleware):
    """Logs every request with its duration and binds the request correlation id."""
    _cid_header: str = 'x-request-id'  # request correlation key header name
    _sid_header: str = 'x-session-id'  # session correlation key header name

    def __init__(
        self,
        app: FastAPI,
        *,
        logger: Optional[logging.LoggerAdapter] = None,
        skip_routes: Optional[list[str]] = None,
    ):
        self._logger = logger or get_logger(__name__)
        self._skip_routes = skip_routes or ['/health_check']
        super().__init__(app)

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        """Headers object is immutable, correlation header is added to the scope before dispatch"""
        if scope['type'] != 'http':
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        request_id = headers.get(self._cid_header)
        if request_id is None:
            request_id = uuid4().hex
            scope['headers'].append((self._cid_header.encode(), request_id.encode()))

        if self._sid_header in headers:
            set_session_id(headers[self._sid_header])

        set_correlation_id(request_id)
        await super().__call__(scope, receive, send)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if any(request.url.path.startswith(path) for path in self._skip_routes):
            return await call_next(request)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            log_args = {
                'request_method': request.method,
                'request_path': request.url.path,
                'response_status': 500,
            }
            self._logger.exception('Request failed with exception', log_args, extra=log_args)
            raise

        response.headers[self._cid_header] = request.headers[self._cid_header]
        log_args = {
            'request_method': request.method,
            'request_path': request.url.path,
            'request_duration': round(time.perf_counter() - start_time, 4),
            'response_status': response.status_code,
        }
        msg = f"Request {'successful' if response.status_code < 500 else 'failed'}"
        self._logger.info(msg, log_args, extra=log_args)
        return response
