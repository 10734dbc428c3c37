"""Database module for chatsync.

Provides per-domain engine creation, session management, transaction
helpers, ORM models and schema bootstrap.
"""

from chatsync.db.engine import create_db_engine, create_domain_engines, dispose_engines
from chatsync.db.models import DOMAIN_METADATA
from chatsync.db.schema import drop_schema, ensure_schema
from chatsync.db.session import create_session_factory, transaction, unit_of_work

__all__ = [
    # Engine and session
    "create_db_engine",
    "create_domain_engines",
    "dispose_engines",
    "create_session_factory",
    "transaction",
    "unit_of_work",
    # Schema
    "DOMAIN_METADATA",
    "ensure_schema",
    "drop_schema",
]
