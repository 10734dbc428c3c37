"""ORM models for the usage metrics database.

metrics_entries is an append-only event log. service_metrics_aggregates is
a cached running summary per service, updated after every append and never
recomputed from the log on read. Money is stored as integer cents.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, Index, Integer, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class MetricsBase(DeclarativeBase):
    """Base class for the usage metrics database."""

    pass


class MetricsStoreRecord(MetricsBase):
    """Client-side metrics store snapshot, keyed by name."""

    __tablename__ = "metrics_store"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    data: Mapped[Any] = mapped_column(JSON, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
        nullable=False,
    )


class MetricsEntryRecord(MetricsBase):
    """One raw usage event. Rows are never updated."""

    __tablename__ = "metrics_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    service_id: Mapped[str] = mapped_column(Text, nullable=False)
    costs_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    savings_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cost_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    input_tokens: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    output_tokens: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    debug_cost_source: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )

    __table_args__ = (
        Index("idx_metrics_entries_service_id", "service_id"),
        Index("idx_metrics_entries_created_at", "created_at"),
    )


class ServiceAggregateRecord(MetricsBase):
    """Running totals for one service."""

    __tablename__ = "service_metrics_aggregates"

    service_id: Mapped[str] = mapped_column(Text, primary_key=True)
    total_costs_cents: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    total_savings_cents: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    total_input_tokens: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    total_output_tokens: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    first_usage_date: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default="0")
    last_usage_date: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default="0")
    free_usages: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    no_pricing_usages: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    no_token_usages: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    partial_message_usages: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default="0"
    )
    partial_price_usages: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
        nullable=False,
    )

    __table_args__ = (Index("idx_service_metrics_aggregates_last_usage", "last_usage_date"),)
