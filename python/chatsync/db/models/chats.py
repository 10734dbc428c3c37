"""ORM models for the conversations database.

A conversation owns its messages; a message owns its fragments and its
optional metadata, generator and user-flag rows. Every dependent table
cascades on delete at the database level, so deleting a conversation row
removes its whole tree.
"""

from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class ChatsBase(DeclarativeBase):
    """Base class for the conversations database."""

    pass


class ConversationRecord(ChatsBase):
    """Conversation root row."""

    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    user_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    auto_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="0")
    is_incognito: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="0")
    user_symbol: Mapped[str | None] = mapped_column(Text, nullable=True)
    system_purpose_id: Mapped[str] = mapped_column(Text, nullable=False)
    created: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    token_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_conversations_updated", "updated"),
        Index("idx_conversations_created", "created"),
    )

    messages: Mapped[list["MessageRecord"]] = relationship(
        back_populates="conversation",
        order_by=lambda: [MessageRecord.created, MessageRecord.message_order],
        passive_deletes=True,
    )


class MessageRecord(ChatsBase):
    """Message row; message_order breaks ties between equal creation times."""

    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    conversation_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(Text, nullable=False)
    purpose_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    token_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    created: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    message_order: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("role IN ('user', 'assistant', 'system')", name="ck_messages_role"),
        Index("idx_messages_conversation_created", "conversation_id", "created"),
    )

    conversation: Mapped["ConversationRecord"] = relationship(back_populates="messages")
    fragments: Mapped[list["FragmentRecord"]] = relationship(
        order_by="FragmentRecord.fragment_order",
        passive_deletes=True,
    )
    metadata_record: Mapped["MessageMetadataRecord | None"] = relationship(
        uselist=False, passive_deletes=True
    )
    generator: Mapped["MessageGeneratorRecord | None"] = relationship(
        uselist=False, passive_deletes=True
    )
    user_flags: Mapped[list["MessageUserFlagRecord"]] = relationship(
        order_by="MessageUserFlagRecord.id",
        passive_deletes=True,
    )


class MessageMetadataRecord(ChatsBase):
    """Opaque cross-references of a message."""

    __tablename__ = "message_metadata"

    message_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey("messages.id", ondelete="CASCADE"),
        primary_key=True,
    )
    in_reference_to: Mapped[list | None] = mapped_column(JSON, nullable=True)
    entangled: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )


class MessageGeneratorRecord(ChatsBase):
    """Which model produced a message and how."""

    __tablename__ = "message_generators"

    message_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey("messages.id", ondelete="CASCADE"),
        primary_key=True,
    )
    llm_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    llm_label: Mapped[str | None] = mapped_column(Text, nullable=True)
    llm_output_tokens: Mapped[int | None] = mapped_column(Integer, nullable=True)
    metrics: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )


class MessageUserFlagRecord(ChatsBase):
    """User flag on a message (starred, notify, ...)."""

    __tablename__ = "message_user_flags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey("messages.id", ondelete="CASCADE"),
        nullable=False,
    )
    flag_type: Mapped[str] = mapped_column(Text, nullable=False)
    flag_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )

    __table_args__ = (Index("idx_user_flags_message", "message_id"),)


class FragmentRecord(ChatsBase):
    """Ordered fragment of a message; the part payload is stored whole."""

    __tablename__ = "message_fragments"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    message_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey("messages.id", ondelete="CASCADE"),
        primary_key=True,
    )
    fragment_type: Mapped[str] = mapped_column(Text, nullable=False)
    fragment_order: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    part_type: Mapped[str] = mapped_column(Text, nullable=False)
    part_data: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "fragment_type IN ('content', 'attachment', 'void')",
            name="ck_message_fragments_type",
        ),
        Index("idx_fragments_order", "message_id", "fragment_order"),
    )
