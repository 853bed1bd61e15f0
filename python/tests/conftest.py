"""Pytest configuration and fixtures for Luvv tests.

Test isolation strategy:
- Every test gets its own in-memory SQLite database (schema via create_all)
- Provider HTTP is never live: adapters are scripted fakes, or respx mocks
- The app is built with injected session factory, router and providers
"""

import os
import sys
from collections.abc import Callable, Generator
from pathlib import Path

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["LUVV_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from luvv.app import add_request_id_middleware, create_app
from luvv.config import clear_settings_cache
from luvv.db.engine import create_db_engine
from luvv.db.models import Base
from luvv.db.session import create_session_factory
from luvv.services.gateway import GatewayConfig
from luvv.services.llm import LLMAdapter, ProviderRouter, ProviderSpec
from tests.helpers import FAST_CONFIG


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory database with the full schema."""
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Provide a database session bound to the per-test database."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_client(
    session_factory: sessionmaker[Session],
) -> Generator[Callable[..., TestClient], None, None]:
    """Factory for test clients wired to scripted adapters.

    Usage:
        client = make_client(adapters=[gemini], providers=[gemini_spec()])
    """
    clients: list[TestClient] = []

    def _make(
        adapters: list[LLMAdapter] | None = None,
        providers: list[ProviderSpec] | None = None,
        config: GatewayConfig = FAST_CONFIG,
    ) -> TestClient:
        router = ProviderRouter({adapter.name: adapter for adapter in adapters or []})
        app = create_app(
            session_factory=session_factory,
            provider_router=router,
            provider_specs=providers or [],
            gateway_config=config,
        )
        add_request_id_middleware(app, log_requests=False)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client: Callable[..., TestClient]) -> TestClient:
    """Test client with no providers configured (cache and safety net only)."""
    return make_client()


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset the settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
