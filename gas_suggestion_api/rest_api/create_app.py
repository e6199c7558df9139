from contextlib import asynccontextmanager

import pydantic
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from gas_suggestion_api.clients.blockchain.custom_http_provider import (
    close_async_sessions,
)
from gas_suggestion_api.config import Config
from gas_suggestion_api.rest_api import dependencies
from gas_suggestion_api.rest_api.middlewares import RouteLoggerMiddleware
from gas_suggestion_api.rest_api.routes.gas import gas_routes
from gas_suggestion_api.services.gas_service import GasService
from gas_suggestion_api.utils.errors import BaseGasSuggestionError
from gas_suggestion_api.utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_async_sessions()


def create_app(config: Config):
    app = FastAPI(
        title='Gas Suggestion API',
        description=(
            """API suggests gas limit and fee parameters for a pending call.
            It detects whether the chain uses EIP-1559 fees or a legacy gas price,
            reads the fee market from the chain node, applies the requested urgency tier
            and simulates the call to size the gas limit."""
        ),
        version=config.VERSION,
        docs_url='/',
        redoc_url='/docs',
        lifespan=lifespan,
    )

    # Setup and register dependencies.
    deps = dependencies.Dependencies(
        config=config,
        gas_service=GasService(config=config),
    )
    deps.register(app)

    # Setup and register middlewares and routes.
    register_cors(app, config)
    register_gzip(app)
    register_route(app)
    register_route_logging(app)

    # Common RFC 5741 Exceptions handling, https://tools.ietf.org/html/rfc5741#section-2
    @app.exception_handler(Exception)
    async def http_exception_handler(request: Request, exc):
        exception_dict = {
            "type": "Internal Server Error",
            "title": exc.__class__.__name__,
            "instance": f"{config.SERVER_HOST}{request.url.path}",
            "detail": f"{exc.__class__.__name__} at {str(exc)} when executing {request.method} request",
        }
        logger.error(
            "Exception when %s: %s",
            exception_dict["instance"],
            exception_dict["detail"],
        )
        return JSONResponse(exception_dict, status_code=500)

    @app.exception_handler(pydantic.ValidationError)
    async def handle_validation_error(
        request: Request, exc: pydantic.ValidationError
    ):  # pylint: disable=unused-argument
        """
        Handles validation errors.
        """
        return JSONResponse({"message": exc.errors(include_url=False, include_context=False)}, status_code=422)

    @app.exception_handler(BaseGasSuggestionError)
    async def handle_gas_suggestion_error(
        request: Request, exc: BaseGasSuggestionError
    ):  # pylint: disable=unused-argument
        return exc.to_http_exception()

    @app.get("/health_check", include_in_schema=False)
    def health_check():
        """
        Health check
        ---
        tags:
            - util
        responses:
            200:
                description: Returns "OK"
        """
        return Response("OK")

    return app


def register_cors(app: FastAPI, config: Config):
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_CREDENTIALS,
        allow_methods=config.CORS_METHODS,
        allow_headers=config.CORS_HEADERS,
    )


def register_gzip(app: FastAPI):
    app.add_middleware(GZipMiddleware, minimum_size=1000)


def register_route_logging(app: FastAPI):
    app.add_middleware(RouteLoggerMiddleware)


def register_route(app: FastAPI):
    app.include_router(gas_routes, prefix="/v1/gas", tags=["Gas"])
