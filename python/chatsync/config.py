"""Application settings loaded from environment variables.

Environment Configuration:
    CHATSYNC_ENV: Deployment environment (local | test | staging | prod)
    CHATSYNC_DATA_DIR: Directory holding the per-domain SQLite files

Per-domain database URLs (each optional, derived from CHATSYNC_DATA_DIR):
    BLOBS_DATABASE_URL: Named blob store (preferences, feature flags)
    CHATS_DATABASE_URL: Conversations and their messages
    LLMS_DATABASE_URL: LLM services, models and domain assignments
    METRICS_DATABASE_URL: Usage events and per-service aggregates
    WORKSPACE_DATABASE_URL: Workspace to live-file associations

Persistence tuning:
    SQLITE_WAL: Enable write-ahead logging on file databases
    AUTO_CREATE_SCHEMA: Create missing tables at startup
    STORE_DEBOUNCE_MS / LLM_DEBOUNCE_MS / CHAT_DEBOUNCE_MS: Flush debounce windows

Client-side ports:
    CHATSYNC_API_URL: Base URL of the REST API used by HTTP-backed ports
    HTTP_TIMEOUT_S: Timeout applied by the shared httpx client

Launcher:
    API_HOST / API_PORT: Address uvicorn binds when started via apps/api/main.py

Logging:
    LOG_JSON: Render JSON log lines (console output when false)
    LOG_LEVEL: Root log level name

Note: every logical domain lives in its own database file. In staging/prod
the resolved URLs must all be distinct.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class Domain(str, Enum):
    """Logical persistence domains, one backing database each."""

    BLOBS = "blobs"
    CHATS = "chats"
    LLMS = "llms"
    METRICS = "metrics"
    WORKSPACE = "workspace"


class Settings(BaseSettings):
    """Application configuration.

    Settings are loaded from environment variables.
    Validation rules:
    - Database URLs default to sqlite files under CHATSYNC_DATA_DIR
    - In staging and prod every domain must resolve to its own database
    """

    chatsync_env: Environment = Field(default=Environment.LOCAL, alias="CHATSYNC_ENV")
    data_dir: Path = Field(default=Path("./data"), alias="CHATSYNC_DATA_DIR")

    blobs_database_url: str | None = Field(default=None, alias="BLOBS_DATABASE_URL")
    chats_database_url: str | None = Field(default=None, alias="CHATS_DATABASE_URL")
    llms_database_url: str | None = Field(default=None, alias="LLMS_DATABASE_URL")
    metrics_database_url: str | None = Field(default=None, alias="METRICS_DATABASE_URL")
    workspace_database_url: str | None = Field(default=None, alias="WORKSPACE_DATABASE_URL")

    sqlite_wal: bool = Field(default=True, alias="SQLITE_WAL")
    auto_create_schema: bool = Field(default=True, alias="AUTO_CREATE_SCHEMA")

    # Debounce windows for the persisted stores
    store_debounce_ms: int = Field(default=100, ge=0, alias="STORE_DEBOUNCE_MS")
    llm_debounce_ms: int = Field(default=100, ge=0, alias="LLM_DEBOUNCE_MS")
    chat_debounce_ms: int = Field(default=500, ge=0, alias="CHAT_DEBOUNCE_MS")

    # HTTP-backed storage ports
    api_url: str = Field(default="http://localhost:8000", alias="CHATSYNC_API_URL")
    http_timeout_s: float = Field(default=30.0, gt=0, alias="HTTP_TIMEOUT_S")

    # Launcher bind address
    api_host: str = Field(default="127.0.0.1", alias="API_HOST")
    api_port: int = Field(default=8000, ge=1, le=65535, alias="API_PORT")

    log_json: bool = Field(default=True, alias="LOG_JSON")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def validate_domain_isolation(self) -> "Settings":
        """Ensure each domain has its own database outside local/test."""
        if self.chatsync_env in (Environment.STAGING, Environment.PROD):
            urls = [self.database_url_for(domain) for domain in Domain]
            if len(set(urls)) != len(urls):
                raise ValueError(
                    "Each persistence domain requires its own database "
                    f"for CHATSYNC_ENV={self.chatsync_env.value}"
                )
        return self

    def database_url_for(self, domain: Domain) -> str:
        """Resolve the database URL for a domain.

        Explicit *_DATABASE_URL values win; otherwise a sqlite file named
        after the domain is placed in the data directory.
        """
        override = getattr(self, f"{domain.value}_database_url")
        if override:
            return override
        return f"sqlite:///{(self.data_dir / f'{domain.value}.db').as_posix()}"

    @property
    def database_urls(self) -> dict[Domain, str]:
        """All resolved database URLs keyed by domain."""
        return {domain: self.database_url_for(domain) for domain in Domain}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
