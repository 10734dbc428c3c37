"""Pytest configuration and fixtures for chatsync tests.

Test isolation strategy:
- Every test gets its own data directory (tmp_path) holding one SQLite
  file per persistence domain
- The settings cache is cleared around every test
- The API client runs the real lifespan against the per-test databases
"""

import sys
from collections.abc import Generator
from pathlib import Path

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from chatsync.adapters import (
    BlobStoreAdapter,
    ConversationAdapter,
    LlmRegistryAdapter,
    MetricsAdapter,
    WorkspaceAdapter,
)
from chatsync.app import add_request_id_middleware, create_app
from chatsync.config import Domain, Settings, clear_settings_cache
from chatsync.db import create_domain_engines, create_session_factory, dispose_engines
from chatsync.db.schema import ensure_schema


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Never let cached settings leak between tests."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing every domain at a file under tmp_path."""
    return Settings(
        CHATSYNC_ENV="test",
        CHATSYNC_DATA_DIR=str(tmp_path),
        SQLITE_WAL=False,
        LOG_JSON=False,
        STORE_DEBOUNCE_MS=10,
        LLM_DEBOUNCE_MS=10,
        CHAT_DEBOUNCE_MS=10,
    )


@pytest.fixture
def engines(settings: Settings) -> Generator[dict[Domain, Engine], None, None]:
    """One engine per domain with the schema created."""
    engines = create_domain_engines(settings)
    ensure_schema(engines)
    yield engines
    dispose_engines(engines)


@pytest.fixture
def session_factories(engines: dict[Domain, Engine]) -> dict[Domain, sessionmaker[Session]]:
    return {domain: create_session_factory(engine) for domain, engine in engines.items()}


@pytest.fixture
def conversation_adapter(session_factories) -> ConversationAdapter:
    return ConversationAdapter(session_factories[Domain.CHATS])


@pytest.fixture
def blob_adapter(session_factories) -> BlobStoreAdapter:
    return BlobStoreAdapter(session_factories[Domain.BLOBS])


@pytest.fixture
def metrics_adapter(session_factories) -> MetricsAdapter:
    return MetricsAdapter(session_factories[Domain.METRICS])


@pytest.fixture
def llm_adapter(session_factories) -> LlmRegistryAdapter:
    return LlmRegistryAdapter(session_factories[Domain.LLMS])


@pytest.fixture
def workspace_adapter(session_factories) -> WorkspaceAdapter:
    return WorkspaceAdapter(session_factories[Domain.WORKSPACE])


@pytest.fixture
def client(settings: Settings) -> Generator[TestClient, None, None]:
    """Provide a FastAPI test client backed by per-test databases.

    The request-id middleware is installed as in production so every
    response carries X-Request-ID.
    """
    app = create_app(settings)
    add_request_id_middleware(app, log_requests=False)
    with TestClient(app) as client:
        yield client
