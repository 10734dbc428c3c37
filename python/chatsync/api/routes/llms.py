"""LLM registry routes.

- GET /llms: the whole registry plus counts
- POST /llms: replace the whole registry
- DELETE /llms: clear the registry
- GET/PUT/DELETE /llms/{id}: one service or model; the id is resolved as
  a service first, then as a model, and the response names which via type
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends

from chatsync.adapters import LlmRegistryAdapter
from chatsync.api.deps import get_llm_adapter
from chatsync.errors import ApiErrorCode, NotFoundError
from chatsync.responses import success_response
from chatsync.schemas import to_wire
from chatsync.schemas.llms import SaveRegistryRequest

router = APIRouter(tags=["llms"])

Registry = Annotated[LlmRegistryAdapter, Depends(get_llm_adapter)]


def _not_found() -> NotFoundError:
    return NotFoundError(ApiErrorCode.E_LLM_NOT_FOUND, "Service or model not found")


@router.get("/llms")
def get_registry(registry: Registry) -> dict:
    loaded = registry.load()
    return success_response(
        {
            "services": [to_wire(s) for s in loaded.sources],
            "models": [to_wire(m) for m in loaded.llms],
            "confServiceId": loaded.conf_service_id,
            "assignments": {k: to_wire(a) for k, a in loaded.model_assignments.items()},
            "counts": loaded.counts(),
        }
    )


@router.post("/llms")
def save_registry(body: SaveRegistryRequest, registry: Registry) -> dict:
    """Replace the registry.

    Errors:
        E_INVALID_REQUEST (400): Missing llms, sources or modelAssignments,
            or a model/assignment referencing something not in the body
    """
    registry.save(body)
    return success_response(message="LLM store saved successfully", counts=body.counts())


@router.delete("/llms")
def clear_registry(registry: Registry) -> dict:
    registry.clear()
    return success_response(message="LLM store cleared successfully")


@router.get("/llms/{item_id}")
def get_registry_item(item_id: str, registry: Registry) -> dict:
    item = registry.find(item_id)
    if item is None:
        raise _not_found()
    if item.type == "service":
        data = {
            "service": to_wire(item.service),
            "models": [to_wire(m) for m in item.models],
            "modelCount": len(item.models),
        }
    else:
        data = {
            "model": to_wire(item.model),
            "service": to_wire(item.service) if item.service else None,
        }
    return success_response(data, type=item.type)


@router.put("/llms/{item_id}")
def update_registry_item(
    item_id: str,
    registry: Registry,
    fields: Annotated[dict[str, Any], Body()],
) -> dict:
    """Shallow-merge the body into a service or model (camelCase keys)."""
    item = registry.patch(item_id, fields)
    if item is None:
        raise _not_found()
    updated = item.service if item.type == "service" else item.model
    return success_response(
        to_wire(updated),
        message=f"{item.type.capitalize()} updated successfully",
        type=item.type,
    )


@router.delete("/llms/{item_id}")
def delete_registry_item(item_id: str, registry: Registry) -> dict:
    removal = registry.remove(item_id)
    if removal is None:
        raise _not_found()
    if removal.type == "service":
        data = {
            "deletedService": to_wire(removal.deleted),
            "modelsRemoved": removal.models_removed,
            "assignmentsRemoved": removal.assignments_removed,
        }
        message = "Service and associated models deleted successfully"
    else:
        data = {
            "deletedModel": to_wire(removal.deleted),
            "assignmentsRemoved": removal.assignments_removed,
        }
        message = "Model deleted successfully"
    return success_response(data, message=message, type=removal.type)
