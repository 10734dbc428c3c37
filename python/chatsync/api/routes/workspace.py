"""Workspace live-file association routes.

- GET /workspace: the whole association state
- POST /workspace: replace the whole association state
- DELETE /workspace: clear every association
- GET /workspace/{id}: files assigned to one workspace
- POST /workspace/{id}: {operation: assign | unassign, fileId} or
  {operation: copy, sourceWorkspaceId}
- DELETE /workspace/{id}: drop one workspace's associations
- DELETE /workspace/files/{file_id}: unassign a file from every workspace
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends
from pydantic import TypeAdapter

from chatsync.adapters import WorkspaceAdapter
from chatsync.api.deps import get_workspace_adapter
from chatsync.responses import success_response
from chatsync.schemas import to_wire
from chatsync.schemas.base import parse_operation
from chatsync.schemas.workspace import (
    AssignFileOperation,
    WorkspaceFiles,
    WorkspaceOperation,
    WorkspaceState,
)

router = APIRouter(tags=["workspace"])

Workspaces = Annotated[WorkspaceAdapter, Depends(get_workspace_adapter)]

WORKSPACE_OPERATIONS = ("assign", "unassign", "copy")
_operation_adapter = TypeAdapter(WorkspaceOperation)


@router.get("/workspace")
def get_workspace_state(workspaces: Workspaces) -> dict:
    state = workspaces.load_store() or WorkspaceState()
    return success_response(to_wire(state))


@router.post("/workspace")
def save_workspace_state(body: WorkspaceState, workspaces: Workspaces) -> dict:
    workspaces.save_store(body)
    return success_response(message="Workspace data saved successfully")


@router.delete("/workspace")
def clear_workspace_state(workspaces: Workspaces) -> dict:
    workspaces.clear()
    return success_response(message="Workspace data cleared successfully")


@router.delete("/workspace/files/{file_id}")
def unassign_file_everywhere(file_id: str, workspaces: Workspaces) -> dict:
    workspaces.unassign_live_file_from_all(file_id)
    return success_response(message=f"File {file_id} unassigned from all workspaces")


@router.get("/workspace/{workspace_id}")
def get_workspace_files(workspace_id: str, workspaces: Workspaces) -> dict:
    files = workspaces.get_workspace_files(workspace_id)
    return success_response(to_wire(WorkspaceFiles(workspace_id=workspace_id, files=files)))


@router.post("/workspace/{workspace_id}")
def apply_workspace_operation(
    workspace_id: str, workspaces: Workspaces, body: Annotated[Any, Body()]
) -> dict:
    """Assign, unassign or copy live files.

    Errors:
        E_INVALID_OPERATION (400): Unknown operation
        E_INVALID_REQUEST (400): fileId or sourceWorkspaceId missing
    """
    operation = parse_operation(_operation_adapter, body, WORKSPACE_OPERATIONS)

    if isinstance(operation, AssignFileOperation):
        if operation.operation == "assign":
            workspaces.assign_live_file(workspace_id, operation.file_id)
            message = f"File {operation.file_id} assigned to workspace {workspace_id}"
        else:
            workspaces.unassign_live_file(workspace_id, operation.file_id)
            message = f"File {operation.file_id} unassigned from workspace {workspace_id}"
        return success_response(message=message)

    workspaces.copy_assignments(operation.source_workspace_id, workspace_id)
    return success_response(
        message=f"Assignments copied from {operation.source_workspace_id} to {workspace_id}"
    )


@router.delete("/workspace/{workspace_id}")
def remove_workspace(workspace_id: str, workspaces: Workspaces) -> dict:
    workspaces.remove_workspace(workspace_id)
    return success_response(message=f"Workspace {workspace_id} removed successfully")
