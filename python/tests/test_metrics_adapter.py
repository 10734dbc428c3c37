"""Tests for the usage metrics adapter.

Tests cover:
- Dollar to cent conversion of costs and savings
- Aggregate folding and per-cost-code counters
- Events without a service id are ignored
- Store snapshot save/load and clear_all
- Lost updates under concurrent events for one service
"""

import threading

import pytest

from chatsync.adapters.metrics import dollars_to_cents
from chatsync.schemas.metrics import CostBreakdown


class TestDollarsToCents:
    @pytest.mark.parametrize(
        "dollars,cents",
        [(None, None), (0, 0), (0.01, 1), (1.234, 123), (1.235, 124), (10, 1000)],
    )
    def test_conversion(self, dollars, cents):
        assert dollars_to_cents(dollars) == cents


class TestRecordEvent:
    def test_first_event_creates_aggregate(self, metrics_adapter):
        """A single event seeds the aggregate with its own values."""
        metrics_adapter.record_event(
            "openai-1",
            CostBreakdown(cost=0.25, cache_savings=0.05),
            input_tokens=100,
            output_tokens=40,
        )

        aggregate = metrics_adapter.get_aggregate("openai-1")
        assert aggregate.total_costs == pytest.approx(0.25)
        assert aggregate.total_savings == pytest.approx(0.05)
        assert aggregate.total_input_tokens == 100
        assert aggregate.total_output_tokens == 40
        assert aggregate.usage_count == 1
        assert aggregate.first_usage_date == aggregate.last_usage_date > 0

    def test_events_accumulate(self, metrics_adapter):
        for _ in range(3):
            metrics_adapter.record_event(
                "openai-1", CostBreakdown(cost=0.1), input_tokens=10, output_tokens=5
            )

        aggregate = metrics_adapter.get_aggregate("openai-1")
        assert aggregate.total_costs == pytest.approx(0.3)
        assert aggregate.total_input_tokens == 30
        assert aggregate.usage_count == 3
        assert aggregate.first_usage_date <= aggregate.last_usage_date

    def test_cost_code_counters(self, metrics_adapter):
        """Each known cost code bumps its own counter; unknown codes bump none."""
        for code in ("free", "free", "no-pricing", "partial-msg", "mystery", None):
            metrics_adapter.record_event("svc", CostBreakdown(code=code))

        aggregate = metrics_adapter.get_aggregate("svc")
        assert aggregate.usage_count == 6
        assert aggregate.free_usages == 2
        assert aggregate.no_pricing_usages == 1
        assert aggregate.partial_message_usages == 1
        assert aggregate.no_token_usages == 0
        assert aggregate.partial_price_usages == 0

    def test_costs_parsed_from_dollar_keys(self, metrics_adapter):
        costs = CostBreakdown.model_validate({"$c": 1.5, "$cdCache": 0.5, "$code": "free"})
        metrics_adapter.record_event("svc", costs)

        entry = metrics_adapter.list_entries("svc")[0]
        assert entry.costs_cents == 150
        assert entry.savings_cents == 50
        assert entry.cost_code == "free"

    def test_missing_service_id_is_ignored(self, metrics_adapter):
        metrics_adapter.record_event(None, CostBreakdown(cost=1.0))
        metrics_adapter.record_event("", CostBreakdown(cost=1.0))

        assert metrics_adapter.get_all_aggregates() == {}
        assert metrics_adapter.list_entries() == []

    def test_services_aggregate_independently(self, metrics_adapter):
        metrics_adapter.record_event("a", CostBreakdown(cost=1.0))
        metrics_adapter.record_event("b", CostBreakdown(cost=2.0))

        aggregates = metrics_adapter.get_all_aggregates()
        assert list(aggregates) == ["a", "b"]
        assert aggregates["b"].total_costs == pytest.approx(2.0)


class TestEntries:
    def test_list_entries_newest_first_and_filtered(self, metrics_adapter):
        metrics_adapter.record_event("a", CostBreakdown(cost=0.01), debug_cost_source="first")
        metrics_adapter.record_event("b", CostBreakdown(cost=0.02))
        metrics_adapter.record_event("a", CostBreakdown(cost=0.03), debug_cost_source="third")

        entries = metrics_adapter.list_entries("a")
        assert [e.debug_cost_source for e in entries] == ["third", "first"]
        assert len(metrics_adapter.list_entries()) == 3
        assert len(metrics_adapter.list_entries(limit=1)) == 1


class TestStoreData:
    def test_save_and_get_store_data(self, metrics_adapter):
        assert metrics_adapter.get_store_data() is None

        metrics_adapter.save_store_data({"serviceMetrics": {"a": {"usageCount": 1}}})
        metrics_adapter.save_store_data({"serviceMetrics": {}})

        assert metrics_adapter.get_store_data() == {"serviceMetrics": {}}

    def test_clear_all_removes_everything(self, metrics_adapter):
        metrics_adapter.record_event("a", CostBreakdown(cost=1.0))
        metrics_adapter.save_store_data({"x": 1})

        metrics_adapter.clear_all()

        assert metrics_adapter.get_all_aggregates() == {}
        assert metrics_adapter.list_entries() == []
        assert metrics_adapter.get_store_data() is None


class TestConcurrentEvents:
    def test_two_sequential_events_sum(self, metrics_adapter):
        for _ in range(2):
            metrics_adapter.record_event("svc1", CostBreakdown(cost=0.05))

        aggregate = metrics_adapter.get_aggregate("svc1")
        assert aggregate.usage_count == 2
        assert aggregate.total_costs == pytest.approx(0.10)

    @pytest.mark.xfail(
        strict=False,
        reason="aggregate update is a non-atomic read-modify-write; increments can be lost",
    )
    def test_concurrent_events_for_one_service_all_counted(self, metrics_adapter):
        """Every event is logged, but the aggregate may miss increments."""
        per_thread = 25

        def worker():
            for _ in range(per_thread):
                metrics_adapter.record_event("svc", CostBreakdown(cost=0.01))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(metrics_adapter.list_entries("svc", limit=1000)) == 4 * per_thread
        assert metrics_adapter.get_aggregate("svc").usage_count == 4 * per_thread
