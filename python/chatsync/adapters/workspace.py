"""Workspace association adapter.

Association rows (workspace_id, live_file_id) are authoritative. The
workspace_store row keeps a JSON snapshot of the whole state and is
rewritten from the rows inside every mutating transaction.
"""

from sqlalchemy import delete, func, literal, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, sessionmaker

from chatsync.db.models import WorkspaceLiveFileRecord, WorkspaceStoreRecord
from chatsync.db.session import unit_of_work
from chatsync.logging import get_logger
from chatsync.schemas.base import to_wire
from chatsync.schemas.workspace import WorkspaceState

logger = get_logger(__name__)

SNAPSHOT_ROW_ID = 1


def _read_state(db: Session) -> WorkspaceState:
    rows = db.execute(
        select(WorkspaceLiveFileRecord.workspace_id, WorkspaceLiveFileRecord.live_file_id)
        .order_by(WorkspaceLiveFileRecord.workspace_id, WorkspaceLiveFileRecord.id)
    ).all()
    files_by_workspace: dict[str, list[str]] = {}
    for workspace_id, live_file_id in rows:
        files_by_workspace.setdefault(workspace_id, []).append(live_file_id)
    return WorkspaceState(live_files_by_workspace=files_by_workspace)


def _write_snapshot(db: Session) -> None:
    snapshot = to_wire(_read_state(db))
    upsert = sqlite_insert(WorkspaceStoreRecord).values(id=SNAPSHOT_ROW_ID, store_data=snapshot)
    upsert = upsert.on_conflict_do_update(
        index_elements=[WorkspaceStoreRecord.id],
        set_={"store_data": upsert.excluded.store_data, "updated_at": func.current_timestamp()},
    )
    db.execute(upsert)


def _assign(db: Session, workspace_id: str, file_id: str) -> None:
    db.execute(
        sqlite_insert(WorkspaceLiveFileRecord)
        .values(workspace_id=workspace_id, live_file_id=file_id)
        .on_conflict_do_nothing()
    )


class WorkspaceAdapter:
    """Persists live-file assignments per workspace."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def save_store(self, state: WorkspaceState) -> None:
        """Replace every association with the given state."""
        with unit_of_work(self._session_factory, "save workspace store") as db:
            db.execute(delete(WorkspaceLiveFileRecord))
            for workspace_id, file_ids in state.live_files_by_workspace.items():
                for file_id in file_ids:
                    _assign(db, workspace_id, file_id)
            _write_snapshot(db)

    def load_store(self) -> WorkspaceState | None:
        """Current state, or None when nothing was ever saved."""
        with unit_of_work(self._session_factory, "load workspace store") as db:
            state = _read_state(db)
            if state.live_files_by_workspace:
                return state
            if db.get(WorkspaceStoreRecord, SNAPSHOT_ROW_ID) is None:
                return None
            return state

    def clear(self) -> None:
        with unit_of_work(self._session_factory, "clear workspace store") as db:
            db.execute(delete(WorkspaceLiveFileRecord))
            db.execute(delete(WorkspaceStoreRecord))
        logger.info("workspace_store_cleared")

    def remove_workspace(self, workspace_id: str) -> None:
        with unit_of_work(self._session_factory, "remove workspace") as db:
            db.execute(
                delete(WorkspaceLiveFileRecord).where(
                    WorkspaceLiveFileRecord.workspace_id == workspace_id
                )
            )
            _write_snapshot(db)

    def assign_live_file(self, workspace_id: str, file_id: str) -> None:
        """Assign a file to a workspace; assigning twice is a no-op."""
        with unit_of_work(self._session_factory, "assign live file") as db:
            _assign(db, workspace_id, file_id)
            _write_snapshot(db)

    def unassign_live_file(self, workspace_id: str, file_id: str) -> None:
        with unit_of_work(self._session_factory, "unassign live file") as db:
            db.execute(
                delete(WorkspaceLiveFileRecord).where(
                    WorkspaceLiveFileRecord.workspace_id == workspace_id,
                    WorkspaceLiveFileRecord.live_file_id == file_id,
                )
            )
            _write_snapshot(db)

    def unassign_live_file_from_all(self, file_id: str) -> None:
        with unit_of_work(self._session_factory, "unassign live file everywhere") as db:
            db.execute(
                delete(WorkspaceLiveFileRecord).where(
                    WorkspaceLiveFileRecord.live_file_id == file_id
                )
            )
            _write_snapshot(db)

    def get_workspace_files(self, workspace_id: str) -> list[str]:
        """Files of a workspace in assignment order."""
        with unit_of_work(self._session_factory, "read workspace files") as db:
            return list(
                db.scalars(
                    select(WorkspaceLiveFileRecord.live_file_id)
                    .where(WorkspaceLiveFileRecord.workspace_id == workspace_id)
                    .order_by(WorkspaceLiveFileRecord.id)
                ).all()
            )

    def copy_assignments(self, source_workspace_id: str, target_workspace_id: str) -> None:
        """Add every file of the source workspace to the target workspace."""
        copy = sqlite_insert(WorkspaceLiveFileRecord).from_select(
            ["workspace_id", "live_file_id"],
            select(literal(target_workspace_id), WorkspaceLiveFileRecord.live_file_id)
            .where(WorkspaceLiveFileRecord.workspace_id == source_workspace_id)
            .order_by(WorkspaceLiveFileRecord.id),
        )
        with unit_of_work(self._session_factory, "copy workspace assignments") as db:
            db.execute(copy.on_conflict_do_nothing())
            _write_snapshot(db)
