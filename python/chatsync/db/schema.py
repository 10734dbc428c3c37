"""Runtime schema bootstrap.

Alembic owns schema evolution (see migrations/). At startup the service
can also create any missing tables directly from the ORM metadata so a
fresh data directory works without a separate migration step.
"""

from sqlalchemy.engine import Engine

from chatsync.config import Domain
from chatsync.db.models import DOMAIN_METADATA
from chatsync.logging import get_logger

logger = get_logger(__name__)


def ensure_schema(engines: dict[Domain, Engine]) -> None:
    """Create missing tables in every domain database.

    Existing tables are left untouched (CREATE TABLE IF NOT EXISTS semantics).

    Args:
        engines: Mapping of domain to its engine.
    """
    for domain, engine in engines.items():
        DOMAIN_METADATA[domain].create_all(engine, checkfirst=True)
        logger.info("schema_ensured", domain=domain.value)


def drop_schema(engines: dict[Domain, Engine]) -> None:
    """Drop every table of every domain database."""
    for domain, engine in engines.items():
        DOMAIN_METADATA[domain].drop_all(engine, checkfirst=True)
