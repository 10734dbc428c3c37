"""Named blob store adapter.

One row per name; the value is an opaque JSON document replaced whole on
every put. Backs preference and feature-flag stores.
"""

from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, sessionmaker

from chatsync.db.models import StoreRecord
from chatsync.db.session import unit_of_work
from chatsync.logging import get_logger
from chatsync.schemas.blobs import BlobValue, StoreEntry

logger = get_logger(__name__)


class BlobStoreAdapter:
    """Reads and writes named JSON blobs in the blob store database."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get(self, name: str) -> BlobValue | None:
        """Return the value and version stored under name, or None."""
        with unit_of_work(self._session_factory, f"read store {name}") as db:
            record = db.scalars(select(StoreRecord).where(StoreRecord.name == name)).first()
            if record is None:
                return None
            return BlobValue(value=record.data, version=record.version)

    def put(self, name: str, value: Any, version: int = 1) -> None:
        """Insert or replace the blob stored under name.

        Value, version and updated timestamp change together in a single
        upsert statement.
        """
        upsert = sqlite_insert(StoreRecord).values(name=name, data=value, version=version)
        upsert = upsert.on_conflict_do_update(
            index_elements=[StoreRecord.name],
            set_={
                "data": upsert.excluded.data,
                "version": upsert.excluded.version,
                "updated_at": func.current_timestamp(),
            },
        )
        with unit_of_work(self._session_factory, f"write store {name}") as db:
            db.execute(upsert)

        logger.debug("store_written", store=name, version=version)

    def delete(self, name: str) -> bool:
        """Delete the blob. Returns False when nothing was stored under name."""
        with unit_of_work(self._session_factory, f"delete store {name}") as db:
            result = db.execute(delete(StoreRecord).where(StoreRecord.name == name))
            return result.rowcount > 0

    def list_all(self) -> list[StoreEntry]:
        """List every blob, most recently updated first."""
        with unit_of_work(self._session_factory, "list stores") as db:
            records = db.scalars(
                select(StoreRecord).order_by(StoreRecord.updated_at.desc(), StoreRecord.id.desc())
            ).all()
            return [StoreEntry.model_validate(record) for record in records]
