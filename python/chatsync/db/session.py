"""Database session management and transaction helpers.

Provides:
- Session factories bound to a domain engine
- Transaction context manager for mutations
- Storage error translation for adapter units of work
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from chatsync.errors import StorageError
from chatsync.logging import get_logger

logger = get_logger(__name__)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory bound to an engine.

    Args:
        engine: SQLAlchemy engine of one persistence domain.

    Returns:
        Configured sessionmaker instance.
    """
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@contextmanager
def transaction(db: Session) -> Generator[None, None, None]:
    """Context manager for database transactions.

    Commits on success, rolls back on exception.

    Args:
        db: The database session to manage.

    Yields:
        None - operations should be performed on the db session.

    Raises:
        Re-raises any exception after rollback.

    Usage:
        with transaction(db):
            db.execute(...)
            db.execute(...)
        # Committed if no exception
    """
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise


@contextmanager
def unit_of_work(
    session_factory: sessionmaker[Session], operation: str
) -> Generator[Session, None, None]:
    """Open a session, run one transaction, and translate driver failures.

    SQLAlchemy errors are logged and re-raised as StorageError after the
    rollback; domain errors raised inside the block pass through untouched.

    Args:
        session_factory: Session factory of the target domain.
        operation: Short operation name used in logs and error messages.

    Yields:
        The open session.
    """
    db = session_factory()
    try:
        with transaction(db):
            yield db
    except SQLAlchemyError as exc:
        logger.error("storage_operation_failed", operation=operation, error=str(exc))
        raise StorageError(f"Failed to {operation}", details=str(exc)) from exc
    finally:
        db.close()
