"""Append-only usage aggregator.

record_event appends the raw event to metrics_entries in its own
transaction, then folds it into the service's row in
service_metrics_aggregates with a read-modify-write:

    aggregate' = aggregate + event

(sum costs, savings and tokens; increment the usage count and the counter
matching the event's cost code; keep the first usage date, move the last).

The read-modify-write is not one atomic statement. Two concurrent events
for the same service can read the same aggregate and one increment is
lost. This is a known race and is left visible on purpose; fixing it
(single writer per service, or an atomic UPDATE ... SET x = x + ?) is a
deliberate follow-up.
"""

from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, sessionmaker

from chatsync.db.models import MetricsEntryRecord, MetricsStoreRecord, ServiceAggregateRecord
from chatsync.db.session import unit_of_work
from chatsync.logging import get_logger
from chatsync.schemas.base import now_ms
from chatsync.schemas.metrics import CostBreakdown, MetricsEntryOut, ServiceMetrics

logger = get_logger(__name__)

USD_TO_CENTS = 100
CENTS_TO_DOLLARS = 0.01

STORE_DATA_KEY = "metrics"

# Cost code -> aggregate counter column
COST_CODE_COUNTERS = {
    "free": "free_usages",
    "no-pricing": "no_pricing_usages",
    "no-tokens": "no_token_usages",
    "partial-msg": "partial_message_usages",
    "partial-price": "partial_price_usages",
}


def dollars_to_cents(amount: float | None) -> int | None:
    if amount is None:
        return None
    return round(amount * USD_TO_CENTS)


def _aggregate_to_metrics(record: ServiceAggregateRecord) -> ServiceMetrics:
    return ServiceMetrics(
        total_costs=record.total_costs_cents * CENTS_TO_DOLLARS,
        total_savings=record.total_savings_cents * CENTS_TO_DOLLARS,
        total_input_tokens=record.total_input_tokens,
        total_output_tokens=record.total_output_tokens,
        usage_count=record.usage_count,
        first_usage_date=record.first_usage_date,
        last_usage_date=record.last_usage_date,
        free_usages=record.free_usages,
        no_pricing_usages=record.no_pricing_usages,
        no_token_usages=record.no_token_usages,
        partial_message_usages=record.partial_message_usages,
        partial_price_usages=record.partial_price_usages,
    )


class MetricsAdapter:
    """Usage event log plus cached per-service aggregates."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def record_event(
        self,
        service_id: str | None,
        costs: CostBreakdown,
        input_tokens: int = 0,
        output_tokens: int = 0,
        debug_cost_source: str | None = None,
    ) -> None:
        """Append a usage event and fold it into the service aggregate.

        A None service id is ignored: no event row, no aggregate change.
        """
        if not service_id:
            return

        costs_cents = dollars_to_cents(costs.cost)
        savings_cents = dollars_to_cents(costs.cache_savings)

        with unit_of_work(self._session_factory, "append metrics entry") as db:
            db.add(
                MetricsEntryRecord(
                    service_id=service_id,
                    costs_cents=costs_cents,
                    savings_cents=savings_cents,
                    cost_code=costs.code,
                    input_tokens=input_tokens,
                    output_tokens=output_tokens,
                    debug_cost_source=debug_cost_source,
                )
            )

        self._update_aggregate(
            service_id,
            costs_cents or 0,
            savings_cents or 0,
            costs.code,
            input_tokens,
            output_tokens,
        )
        logger.debug("metrics_entry_recorded", service_id=service_id, cost_code=costs.code)

    def _update_aggregate(
        self,
        service_id: str,
        costs_cents: int,
        savings_cents: int,
        cost_code: str | None,
        input_tokens: int,
        output_tokens: int,
    ) -> None:
        now = now_ms()

        # Read step: create the zero-valued row if absent, then read it.
        with unit_of_work(self._session_factory, "read metrics aggregate") as db:
            db.execute(
                sqlite_insert(ServiceAggregateRecord)
                .values(service_id=service_id)
                .on_conflict_do_nothing(index_elements=[ServiceAggregateRecord.service_id])
            )
            current = db.get(ServiceAggregateRecord, service_id)

        values = {
            "total_costs_cents": current.total_costs_cents + costs_cents,
            "total_savings_cents": current.total_savings_cents + savings_cents,
            "total_input_tokens": current.total_input_tokens + input_tokens,
            "total_output_tokens": current.total_output_tokens + output_tokens,
            "usage_count": current.usage_count + 1,
            "first_usage_date": current.first_usage_date or now,
            "last_usage_date": now,
            "updated_at": func.current_timestamp(),
        }
        counter = COST_CODE_COUNTERS.get(cost_code or "")
        if counter is not None:
            values[counter] = getattr(current, counter) + 1

        # Write step: absolute values computed from the read above.
        with unit_of_work(self._session_factory, "write metrics aggregate") as db:
            db.execute(
                update(ServiceAggregateRecord)
                .where(ServiceAggregateRecord.service_id == service_id)
                .values(**values)
            )

    def get_aggregate(self, service_id: str) -> ServiceMetrics | None:
        with unit_of_work(self._session_factory, "read metrics aggregate") as db:
            record = db.get(ServiceAggregateRecord, service_id)
            if record is None:
                return None
            return _aggregate_to_metrics(record)

    def get_all_aggregates(self) -> dict[str, ServiceMetrics]:
        with unit_of_work(self._session_factory, "read metrics aggregates") as db:
            records = db.scalars(
                select(ServiceAggregateRecord).order_by(ServiceAggregateRecord.service_id)
            ).all()
            return {record.service_id: _aggregate_to_metrics(record) for record in records}

    def list_entries(
        self, service_id: str | None = None, limit: int = 100
    ) -> list[MetricsEntryOut]:
        """Raw events, newest first."""
        query = select(MetricsEntryRecord)
        if service_id is not None:
            query = query.where(MetricsEntryRecord.service_id == service_id)
        query = query.order_by(
            MetricsEntryRecord.created_at.desc(), MetricsEntryRecord.id.desc()
        ).limit(limit)

        with unit_of_work(self._session_factory, "list metrics entries") as db:
            return [MetricsEntryOut.model_validate(r) for r in db.scalars(query).all()]

    def save_store_data(self, data: dict[str, Any]) -> None:
        """Persist the client-side metrics store snapshot."""
        upsert = sqlite_insert(MetricsStoreRecord).values(key=STORE_DATA_KEY, data=data)
        upsert = upsert.on_conflict_do_update(
            index_elements=[MetricsStoreRecord.key],
            set_={"data": upsert.excluded.data, "updated_at": func.current_timestamp()},
        )
        with unit_of_work(self._session_factory, "save metrics store") as db:
            db.execute(upsert)

    def get_store_data(self) -> dict[str, Any] | None:
        with unit_of_work(self._session_factory, "read metrics store") as db:
            record = db.scalars(
                select(MetricsStoreRecord).where(MetricsStoreRecord.key == STORE_DATA_KEY)
            ).first()
            return record.data if record is not None else None

    def clear_all(self) -> None:
        """Remove every event, aggregate and snapshot."""
        with unit_of_work(self._session_factory, "clear metrics") as db:
            db.execute(delete(MetricsEntryRecord))
            db.execute(delete(ServiceAggregateRecord))
            db.execute(delete(MetricsStoreRecord))
        logger.info("metrics_cleared")
