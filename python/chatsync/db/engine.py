"""SQLAlchemy engine creation and configuration.

One engine is created per persistence domain at application startup.
Each engine points at its own database file so that a damaged or
migrated domain never touches the others.
"""

from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url

from chatsync.config import Domain, Settings, get_settings


def _ensure_sqlite_parent_dir(database_url: str) -> None:
    """Create the directory holding a sqlite database file if needed."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return
    database = url.database
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    Path(database).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)


def create_db_engine(database_url: str, *, wal: bool = False) -> Engine:
    """Create a SQLAlchemy engine with the given URL.

    Args:
        database_url: SQLAlchemy connection string, e.g. sqlite:///data/chats.db.
        wal: Enable write-ahead logging on sqlite file databases.

    Returns:
        Configured SQLAlchemy engine.

    Note:
        Every sqlite connection gets PRAGMA foreign_keys=ON; cascading deletes
        of messages, fragments and models rely on it.
    """
    _ensure_sqlite_parent_dir(database_url)

    engine = create_engine(
        database_url,
        pool_pre_ping=True,
        echo=False,
    )

    if engine.dialect.name == "sqlite":
        is_memory = make_url(database_url).database in (None, "", ":memory:")

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            if wal and not is_memory:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return engine


def create_domain_engines(settings: Settings | None = None) -> dict[Domain, Engine]:
    """Create one engine per persistence domain.

    Args:
        settings: Application settings. If None, uses cached settings.

    Returns:
        Mapping of domain to its engine.
    """
    if settings is None:
        settings = get_settings()

    return {
        domain: create_db_engine(url, wal=settings.sqlite_wal)
        for domain, url in settings.database_urls.items()
    }


def dispose_engines(engines: dict[Domain, Engine]) -> None:
    """Close pooled connections of every domain engine."""
    for engine in engines.values():
        engine.dispose()
