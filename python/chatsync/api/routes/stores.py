"""Named blob store routes.

Routes are transport-only: each calls exactly one adapter method.

- GET /stores: list every stored blob
- POST /stores: create or replace a blob by name
- GET /stores/{name}: one blob's value, with its name and version
- PUT /stores/{name}: replace a blob's value
- DELETE /stores/{name}: delete a blob (404 if absent)
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from chatsync.adapters import BlobStoreAdapter
from chatsync.api.deps import get_blob_adapter
from chatsync.errors import ApiErrorCode, InvalidRequestError, NotFoundError
from chatsync.responses import success_response
from chatsync.schemas.blobs import CreateStoreRequest, UpdateStoreRequest

router = APIRouter(tags=["stores"])

Blobs = Annotated[BlobStoreAdapter, Depends(get_blob_adapter)]


def _require_data(data) -> None:
    if data is None:
        raise InvalidRequestError(message="Store data is required")


@router.get("/stores")
def list_stores(blobs: Blobs) -> dict:
    entries = blobs.list_all()
    return success_response([entry.model_dump(mode="json") for entry in entries])


@router.post("/stores")
def create_store(body: CreateStoreRequest, blobs: Blobs) -> dict:
    _require_data(body.data)
    blobs.put(body.name, body.data, body.version)
    return success_response(message=f"Store '{body.name}' saved successfully")


@router.get("/stores/{name}")
def get_store(name: str, blobs: Blobs) -> dict:
    """Return the blob value as data, with name and version alongside.

    Errors:
        E_STORE_NOT_FOUND (404): Nothing stored under name
    """
    blob = blobs.get(name)
    if blob is None:
        raise NotFoundError(ApiErrorCode.E_STORE_NOT_FOUND, f"Store '{name}' not found")
    return success_response(blob.value, name=name, version=blob.version)


@router.put("/stores/{name}")
def update_store(name: str, body: UpdateStoreRequest, blobs: Blobs) -> dict:
    _require_data(body.data)
    blobs.put(name, body.data, body.version)
    return success_response(message=f"Store '{name}' updated successfully")


@router.delete("/stores/{name}")
def delete_store(name: str, blobs: Blobs) -> dict:
    if not blobs.delete(name):
        raise NotFoundError(ApiErrorCode.E_STORE_NOT_FOUND, f"Store '{name}' not found")
    return success_response(message=f"Store '{name}' deleted successfully")
