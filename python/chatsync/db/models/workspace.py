"""ORM models for the workspace associations database."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, Text, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class WorkspaceBase(DeclarativeBase):
    """Base class for the workspace associations database."""

    pass


class WorkspaceStoreRecord(WorkspaceBase):
    """Snapshot of the whole workspace state (single row, id=1)."""

    __tablename__ = "workspace_store"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    store_data: Mapped[Any] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )


class WorkspaceLiveFileRecord(WorkspaceBase):
    """Association of a live file with a workspace."""

    __tablename__ = "workspace_livefiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    workspace_id: Mapped[str] = mapped_column(Text, nullable=False)
    live_file_id: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("workspace_id", "live_file_id", name="uix_workspace_livefiles_pair"),
        Index("idx_workspace_livefiles_workspace", "workspace_id"),
        Index("idx_workspace_livefiles_file", "live_file_id"),
    )
