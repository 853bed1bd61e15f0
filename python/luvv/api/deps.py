"""FastAPI dependencies for route handlers.

Everything is read from app.state, which create_app() and the lifespan
populate, so tests can inject their own session factory, router and providers.
"""

from collections.abc import Generator

from fastapi import Request
from sqlalchemy.orm import Session, sessionmaker

from luvv.services.gateway import GatewayConfig
from luvv.services.llm import ProviderRouter, ProviderSpec

__all__ = [
    "get_db",
    "get_session_factory",
    "get_provider_router",
    "get_provider_specs",
    "get_gateway_config",
]


def get_session_factory(request: Request) -> sessionmaker[Session]:
    """Session factory shared by request handlers and background persistence."""
    return request.app.state.session_factory


def get_db(request: Request) -> Generator[Session, None, None]:
    """FastAPI dependency that provides a database session.

    Yields:
        A database session that is automatically closed after use.
    """
    db = get_session_factory(request)()
    try:
        yield db
    finally:
        db.close()


def get_provider_router(request: Request) -> ProviderRouter:
    """Get the shared provider router from app state.

    The router wraps the lifespan-managed httpx.AsyncClient.
    """
    return request.app.state.provider_router


def get_provider_specs(request: Request) -> list[ProviderSpec]:
    """Configured providers in PROVIDER_ORDER, keyless ones already dropped."""
    return request.app.state.provider_specs


def get_gateway_config(request: Request) -> GatewayConfig:
    return request.app.state.gateway_config
