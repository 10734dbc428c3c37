"""Workspace association schemas."""

from typing import Annotated, Literal

from pydantic import Field

from chatsync.schemas.base import CamelModel


class WorkspaceState(CamelModel):
    """Live files assigned to each workspace."""

    live_files_by_workspace: dict[str, list[str]] = Field(default_factory=dict)


class WorkspaceFiles(CamelModel):
    workspace_id: str
    files: list[str]


# =============================================================================
# Request Schemas
# =============================================================================


class AssignFileOperation(CamelModel):
    operation: Literal["assign", "unassign"]
    file_id: str = Field(..., min_length=1)


class CopyAssignmentsOperation(CamelModel):
    operation: Literal["copy"]
    source_workspace_id: str = Field(..., min_length=1)


WorkspaceOperation = Annotated[
    AssignFileOperation | CopyAssignmentsOperation,
    Field(discriminator="operation"),
]
