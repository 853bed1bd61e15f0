"""FastAPI application creation and configuration.

This module creates and configures the FastAPI application instance.
It registers exception handlers, CORS and request-id middleware, and routes.

Middleware Ordering (Critical):
- Middleware runs in reverse order of registration
- CORSMiddleware is registered by create_app()
- RequestIDMiddleware is added LAST (add_request_id_middleware) so it runs FIRST
- Every response, preflights included, therefore carries X-Request-ID

HTTP Client Lifecycle:
- httpx.AsyncClient is created at startup, stored in app.state
- ProviderRouter wraps the shared client for connection pooling
- Client is closed gracefully at shutdown
- A router injected through create_app() is used as-is (tests)
"""

import json
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from luvv.api.routes import create_api_router
from luvv.config import get_settings
from luvv.db.session import create_session_factory
from luvv.errors import ApiError, ApiErrorCode
from luvv.logging import configure_logging, get_logger
from luvv.middleware.cors import CORSMiddleware
from luvv.middleware.request_id import RequestIDMiddleware
from luvv.responses import (
    api_error_handler,
    error_response,
    http_exception_handler,
    unhandled_exception_handler,
)
from luvv.services.gateway import GatewayConfig
from luvv.services.llm import (
    ProviderRouter,
    ProviderSpec,
    build_provider_specs,
    create_provider_router,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle resources.

    - Creates shared httpx.AsyncClient for connection pooling
    - Builds the ProviderRouter unless one was injected
    - Cleans up on shutdown
    """
    app.state.httpx_client = httpx.AsyncClient(
        timeout=httpx.Timeout(30.0, connect=5.0),
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
    )

    if app.state.provider_router is None:
        app.state.provider_router = create_provider_router(
            app.state.httpx_client,
            [spec.provider for spec in app.state.provider_specs],
        )

    logger.info(
        "provider_router_initialized",
        providers=[spec.tag for spec in app.state.provider_specs],
        policy=app.state.gateway_config.policy,
    )

    yield

    await app.state.httpx_client.aclose()
    logger.info("httpx_client_closed")


def create_app(
    session_factory: sessionmaker[Session] | None = None,
    provider_router: ProviderRouter | None = None,
    provider_specs: list[ProviderSpec] | None = None,
    gateway_config: GatewayConfig | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        session_factory: Session factory for requests and background writes.
            Defaults to the engine built from DATABASE_URL.
        provider_router: Pre-built router (for testing). Built at startup if None.
        provider_specs: Providers to try, in order. Defaults to settings.
        gateway_config: Retry/timeout limits. Defaults to settings.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    configure_logging(json_format=settings.log_json)

    app = FastAPI(
        title="Luvv API",
        description="Message-generation gateway for personalized Valentine's cards",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.session_factory = session_factory or create_session_factory()
    app.state.provider_router = provider_router
    app.state.provider_specs = (
        provider_specs if provider_specs is not None else build_provider_specs(settings)
    )
    app.state.gateway_config = gateway_config or GatewayConfig.from_settings(settings)

    # Register exception handlers
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors (including non-object bodies)."""
        return JSONResponse(
            status_code=400,
            content=error_response(ApiErrorCode.E_INVALID_REQUEST, "Invalid request body"),
        )

    @app.middleware("http")
    async def catch_json_decode_errors(request: Request, call_next):
        """Catch JSON decode errors before they reach route handlers."""
        if request.method in ("POST", "PUT", "PATCH"):
            content_type = request.headers.get("content-type", "")
            if "application/json" in content_type:
                body = await request.body()
                if body:
                    try:
                        json.loads(body)
                    except json.JSONDecodeError:
                        return JSONResponse(
                            status_code=400,
                            content=error_response(
                                ApiErrorCode.E_INVALID_REQUEST, "Malformed JSON body"
                            ),
                        )
        return await call_next(request)

    app.include_router(create_api_router())

    app.add_middleware(CORSMiddleware, allowed_origins=settings.cors_origin_list)
    logger.info("cors_middleware_enabled", origins=settings.cors_origin_list)

    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware to the app.

    This should be called AFTER all other middleware is added, so it runs FIRST.

    Args:
        app: The FastAPI application.
        log_requests: Whether to log access entries for each request.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")
