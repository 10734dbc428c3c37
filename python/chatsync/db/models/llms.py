"""ORM models for the LLM registry database.

Services own models (cascade); domain assignments point at a model
(cascade). The configured service id lives in llm_store_metadata.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class LlmsBase(DeclarativeBase):
    """Base class for the LLM registry database."""

    pass


class LlmServiceRecord(LlmsBase):
    """Configured vendor service (an OpenAI account, a local endpoint, ...)."""

    __tablename__ = "llm_services"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    vendor_id: Mapped[str] = mapped_column(Text, nullable=False)
    label: Mapped[str] = mapped_column(Text, nullable=False)
    setup: Mapped[Any] = mapped_column(JSON, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )

    __table_args__ = (Index("idx_llm_services_vendor_id", "vendor_id"),)


class LlmModelRecord(LlmsBase):
    """Model offered by a service, with user customizations."""

    __tablename__ = "llm_models"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    service_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey("llm_services.id", ondelete="CASCADE"),
        nullable=False,
    )
    vendor_id: Mapped[str] = mapped_column(Text, nullable=False)
    label: Mapped[str] = mapped_column(Text, nullable=False)
    created: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default="0")
    updated: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    context_tokens: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_output_tokens: Mapped[int | None] = mapped_column(Integer, nullable=True)
    training_data_cutoff: Mapped[str | None] = mapped_column(Text, nullable=True)
    interfaces: Mapped[list] = mapped_column(JSON, nullable=False)
    input_types: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    benchmark: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    pricing: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    initial_parameters: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    user_parameters: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    user_label: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="0")
    user_starred: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="0")
    position: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )

    __table_args__ = (
        Index("idx_llm_models_service_id", "service_id"),
        Index("idx_llm_models_vendor_id", "vendor_id"),
    )


class LlmAssignmentRecord(LlmsBase):
    """Model chosen for a domain (chat, fast, code, ...)."""

    __tablename__ = "llm_assignments"

    domain_id: Mapped[str] = mapped_column(Text, primary_key=True)
    model_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey("llm_models.id", ondelete="CASCADE"),
        nullable=False,
    )
    temperature: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_tokens: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )

    __table_args__ = (Index("idx_llm_assignments_model_id", "model_id"),)


class LlmStoreMetadataRecord(LlmsBase):
    """Registry-wide key/value settings."""

    __tablename__ = "llm_store_metadata"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
        nullable=False,
    )
