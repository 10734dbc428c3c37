"""Usage metrics routes.

- GET /metrics: aggregates of every service
- POST /metrics: {operation: addCostEntry | saveStore | clear, ...}
- GET /metrics/{service_id}: one service's aggregate (404 if absent)
- DELETE /metrics/{service_id}: clears all metrics data; there is no
  per-service clear
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends
from pydantic import TypeAdapter

from chatsync.adapters import MetricsAdapter
from chatsync.api.deps import get_metrics_adapter
from chatsync.errors import ApiErrorCode, NotFoundError
from chatsync.responses import success_response
from chatsync.schemas import to_wire
from chatsync.schemas.base import parse_operation
from chatsync.schemas.metrics import (
    AddCostEntryOperation,
    MetricsOperation,
    SaveStoreOperation,
)

router = APIRouter(tags=["metrics"])

Metrics = Annotated[MetricsAdapter, Depends(get_metrics_adapter)]

METRICS_OPERATIONS = ("addCostEntry", "saveStore", "clear")
_operation_adapter = TypeAdapter(MetricsOperation)


@router.get("/metrics")
def list_metrics(metrics: Metrics) -> dict:
    aggregates = metrics.get_all_aggregates()
    return success_response(
        {"serviceMetrics": {sid: to_wire(agg) for sid, agg in aggregates.items()}}
    )


@router.post("/metrics")
def apply_metrics_operation(metrics: Metrics, body: Annotated[Any, Body()]) -> dict:
    """Record a cost event, save the metrics snapshot, or clear everything.

    Errors:
        E_INVALID_OPERATION (400): Unknown operation
        E_INVALID_REQUEST (400): serviceId or data missing
    """
    operation = parse_operation(_operation_adapter, body, METRICS_OPERATIONS)

    if isinstance(operation, AddCostEntryOperation):
        metrics.record_event(
            operation.service_id,
            operation.costs,
            operation.input_tokens,
            operation.output_tokens,
            operation.debug_cost_source,
        )
        return success_response(message="Cost entry added successfully")

    if isinstance(operation, SaveStoreOperation):
        metrics.save_store_data(operation.data)
        return success_response(message="Store data saved successfully")

    metrics.clear_all()
    return success_response(message="All metrics data cleared")


@router.get("/metrics/{service_id}")
def get_service_metrics(service_id: str, metrics: Metrics) -> dict:
    aggregate = metrics.get_aggregate(service_id)
    if aggregate is None:
        raise NotFoundError(ApiErrorCode.E_METRICS_NOT_FOUND, "Service metrics not found")
    return success_response(to_wire(aggregate), serviceId=service_id)


@router.delete("/metrics/{service_id}")
def clear_service_metrics(service_id: str, metrics: Metrics) -> dict:
    metrics.clear_all()
    return success_response(
        message="All metrics data cleared (service-specific clearing not implemented)",
        serviceId=service_id,
    )
