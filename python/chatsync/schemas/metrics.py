"""Usage metrics schemas.

Costs arrive in dollars under "$"-prefixed keys as produced by the chat
generation pipeline; they are stored as integer cents.
"""

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from chatsync.schemas.base import CamelModel

COST_CODES = Literal["free", "no-pricing", "no-tokens", "partial-msg", "partial-price"]


class CostBreakdown(BaseModel):
    """Cost of one generation."""

    cost: float | None = Field(default=None, alias="$c")
    cache_savings: float | None = Field(default=None, alias="$cdCache")
    code: str | None = Field(default=None, alias="$code")

    model_config = ConfigDict(populate_by_name=True)


class ServiceMetrics(CamelModel):
    """Running usage totals of one service, money in dollars."""

    total_costs: float = 0.0
    total_savings: float = 0.0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    usage_count: int = 0
    first_usage_date: int = 0
    last_usage_date: int = 0
    free_usages: int = 0
    no_pricing_usages: int = 0
    no_token_usages: int = 0
    partial_message_usages: int = 0
    partial_price_usages: int = 0


class MetricsEntryOut(BaseModel):
    """Raw event from the append-only log."""

    id: int
    service_id: str
    costs_cents: int | None
    savings_cents: int | None
    cost_code: str | None
    input_tokens: int
    output_tokens: int
    debug_cost_source: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Request Schemas
# =============================================================================


class AddCostEntryOperation(CamelModel):
    operation: Literal["addCostEntry"]
    service_id: str = Field(..., min_length=1)
    costs: CostBreakdown = Field(default_factory=CostBreakdown)
    input_tokens: int = 0
    output_tokens: int = 0
    debug_cost_source: str = ""


class SaveStoreOperation(CamelModel):
    operation: Literal["saveStore"]
    data: dict[str, Any] = Field(..., min_length=1)


class ClearOperation(CamelModel):
    operation: Literal["clear"]


MetricsOperation = Annotated[
    AddCostEntryOperation | SaveStoreOperation | ClearOperation,
    Field(discriminator="operation"),
]
