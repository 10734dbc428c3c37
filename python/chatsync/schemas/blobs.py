"""Named blob store schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BlobValue(BaseModel):
    """Value of one named blob with its schema version."""

    value: Any
    version: int


class StoreEntry(BaseModel):
    """Listing row of the named blob store."""

    name: str
    data: Any
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Request Schemas
# =============================================================================


class CreateStoreRequest(BaseModel):
    """Body of POST /stores."""

    name: str = Field(..., min_length=1)
    data: Any
    version: int = 1


class UpdateStoreRequest(BaseModel):
    """Body of PUT /stores/{name}."""

    data: Any
    version: int = 1
