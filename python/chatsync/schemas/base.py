"""Shared pydantic base classes and helpers for wire-format models.

Aggregates travel over the REST contract and through the persisted
stores with camelCase keys; Python code uses snake_case attributes.
"""

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from chatsync.errors import ApiErrorCode, InvalidRequestError


def now_ms() -> int:
    """Current wall-clock time as integer epoch milliseconds."""
    return int(time.time() * 1000)


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def to_wire(model: BaseModel) -> dict[str, Any]:
    """Serialize a model to its JSON wire shape (camelCase keys)."""
    return model.model_dump(mode="json", by_alias=True)


def parse_operation(adapter: TypeAdapter, body: Any, operations: tuple[str, ...]) -> Any:
    """Validate an {"operation": ...} request body against a tagged union.

    Raises:
        InvalidRequestError: E_INVALID_OPERATION for an unknown operation,
            E_INVALID_REQUEST when the operation's fields are invalid.
    """
    operation = body.get("operation") if isinstance(body, dict) else None
    if operation not in operations:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_OPERATION,
            f"Invalid operation. Use: {', '.join(operations)}",
        )
    try:
        return adapter.validate_python(body)
    except ValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"][1:]) or operation
        raise InvalidRequestError(message=f"{field}: {error['msg']}") from exc
