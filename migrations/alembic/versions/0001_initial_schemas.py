"""Initial schemas - blobs, chats, llms, metrics, workspace

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the tables of every persistence domain. Each domain is applied
to its own database; cascading deletes require PRAGMA foreign_keys=ON,
which the chatsync engine factory enables on every connection.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

NOW = sa.text("CURRENT_TIMESTAMP")


def upgrade(engine_name: str) -> None:
    globals()[f"upgrade_{engine_name}"]()


def downgrade(engine_name: str) -> None:
    globals()[f"downgrade_{engine_name}"]()


# ==========================================================================
# blobs
# ==========================================================================


def upgrade_blobs() -> None:
    op.create_table(
        "stores",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("idx_stores_updated_at", "stores", ["updated_at"])


def downgrade_blobs() -> None:
    op.drop_index("idx_stores_updated_at", table_name="stores")
    op.drop_table("stores")


# ==========================================================================
# chats
# ==========================================================================


def upgrade_chats() -> None:
    op.create_table(
        "conversations",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("user_title", sa.Text(), nullable=True),
        sa.Column("auto_title", sa.Text(), nullable=True),
        sa.Column("is_archived", sa.Boolean(), server_default="0", nullable=False),
        sa.Column("is_incognito", sa.Boolean(), server_default="0", nullable=False),
        sa.Column("user_symbol", sa.Text(), nullable=True),
        sa.Column("system_purpose_id", sa.Text(), nullable=False),
        sa.Column("created", sa.BigInteger(), nullable=False),
        sa.Column("updated", sa.BigInteger(), nullable=True),
        sa.Column("token_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_conversations_updated", "conversations", ["updated"])
    op.create_index("idx_conversations_created", "conversations", ["created"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("conversation_id", sa.Text(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("purpose_id", sa.Text(), nullable=True),
        sa.Column("token_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created", sa.BigInteger(), nullable=False),
        sa.Column("updated", sa.BigInteger(), nullable=True),
        sa.Column("message_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"], ondelete="CASCADE"),
        sa.CheckConstraint("role IN ('user', 'assistant', 'system')", name="ck_messages_role"),
    )
    op.create_index(
        "idx_messages_conversation_created", "messages", ["conversation_id", "created"]
    )

    op.create_table(
        "message_metadata",
        sa.Column("message_id", sa.Text(), nullable=False),
        sa.Column("in_reference_to", sa.JSON(), nullable=True),
        sa.Column("entangled", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("message_id"),
        sa.ForeignKeyConstraint(["message_id"], ["messages.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "message_generators",
        sa.Column("message_id", sa.Text(), nullable=False),
        sa.Column("llm_id", sa.Text(), nullable=True),
        sa.Column("llm_label", sa.Text(), nullable=True),
        sa.Column("llm_output_tokens", sa.Integer(), nullable=True),
        sa.Column("metrics", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("message_id"),
        sa.ForeignKeyConstraint(["message_id"], ["messages.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "message_user_flags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("message_id", sa.Text(), nullable=False),
        sa.Column("flag_type", sa.Text(), nullable=False),
        sa.Column("flag_value", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["message_id"], ["messages.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_user_flags_message", "message_user_flags", ["message_id"])

    op.create_table(
        "message_fragments",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("message_id", sa.Text(), nullable=False),
        sa.Column("fragment_type", sa.Text(), nullable=False),
        sa.Column("fragment_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("part_type", sa.Text(), nullable=False),
        sa.Column("part_data", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id", "message_id"),
        sa.ForeignKeyConstraint(["message_id"], ["messages.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "fragment_type IN ('content', 'attachment', 'void')",
            name="ck_message_fragments_type",
        ),
    )
    op.create_index("idx_fragments_order", "message_fragments", ["message_id", "fragment_order"])


def downgrade_chats() -> None:
    op.drop_index("idx_fragments_order", table_name="message_fragments")
    op.drop_table("message_fragments")
    op.drop_index("idx_user_flags_message", table_name="message_user_flags")
    op.drop_table("message_user_flags")
    op.drop_table("message_generators")
    op.drop_table("message_metadata")
    op.drop_index("idx_messages_conversation_created", table_name="messages")
    op.drop_table("messages")
    op.drop_index("idx_conversations_created", table_name="conversations")
    op.drop_index("idx_conversations_updated", table_name="conversations")
    op.drop_table("conversations")


# ==========================================================================
# llms
# ==========================================================================


def upgrade_llms() -> None:
    op.create_table(
        "llm_services",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("vendor_id", sa.Text(), nullable=False),
        sa.Column("label", sa.Text(), nullable=False),
        sa.Column("setup", sa.JSON(), nullable=False),
        sa.Column("position", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_llm_services_vendor_id", "llm_services", ["vendor_id"])

    op.create_table(
        "llm_models",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("service_id", sa.Text(), nullable=False),
        sa.Column("vendor_id", sa.Text(), nullable=False),
        sa.Column("label", sa.Text(), nullable=False),
        sa.Column("created", sa.BigInteger(), server_default="0", nullable=False),
        sa.Column("updated", sa.BigInteger(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("context_tokens", sa.Integer(), nullable=True),
        sa.Column("max_output_tokens", sa.Integer(), nullable=True),
        sa.Column("training_data_cutoff", sa.Text(), nullable=True),
        sa.Column("interfaces", sa.JSON(), nullable=False),
        sa.Column("input_types", sa.JSON(), nullable=True),
        sa.Column("benchmark", sa.JSON(), nullable=True),
        sa.Column("pricing", sa.JSON(), nullable=True),
        sa.Column("initial_parameters", sa.JSON(), nullable=True),
        sa.Column("user_parameters", sa.JSON(), nullable=True),
        sa.Column("user_label", sa.Text(), nullable=True),
        sa.Column("user_hidden", sa.Boolean(), server_default="0", nullable=False),
        sa.Column("user_starred", sa.Boolean(), server_default="0", nullable=False),
        sa.Column("position", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["service_id"], ["llm_services.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_llm_models_service_id", "llm_models", ["service_id"])
    op.create_index("idx_llm_models_vendor_id", "llm_models", ["vendor_id"])

    op.create_table(
        "llm_assignments",
        sa.Column("domain_id", sa.Text(), nullable=False),
        sa.Column("model_id", sa.Text(), nullable=False),
        sa.Column("temperature", sa.Float(), nullable=True),
        sa.Column("max_tokens", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("domain_id"),
        sa.ForeignKeyConstraint(["model_id"], ["llm_models.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_llm_assignments_model_id", "llm_assignments", ["model_id"])

    op.create_table(
        "llm_store_metadata",
        sa.Column("key", sa.Text(), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )


def downgrade_llms() -> None:
    op.drop_table("llm_store_metadata")
    op.drop_index("idx_llm_assignments_model_id", table_name="llm_assignments")
    op.drop_table("llm_assignments")
    op.drop_index("idx_llm_models_vendor_id", table_name="llm_models")
    op.drop_index("idx_llm_models_service_id", table_name="llm_models")
    op.drop_table("llm_models")
    op.drop_index("idx_llm_services_vendor_id", table_name="llm_services")
    op.drop_table("llm_services")


# ==========================================================================
# metrics
# ==========================================================================


def upgrade_metrics() -> None:
    op.create_table(
        "metrics_store",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("key", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("key"),
    )

    op.create_table(
        "metrics_entries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("service_id", sa.Text(), nullable=False),
        sa.Column("costs_cents", sa.Integer(), nullable=True),
        sa.Column("savings_cents", sa.Integer(), nullable=True),
        sa.Column("cost_code", sa.Text(), nullable=True),
        sa.Column("input_tokens", sa.Integer(), server_default="0", nullable=False),
        sa.Column("output_tokens", sa.Integer(), server_default="0", nullable=False),
        sa.Column("debug_cost_source", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_metrics_entries_service_id", "metrics_entries", ["service_id"])
    op.create_index("idx_metrics_entries_created_at", "metrics_entries", ["created_at"])

    counter = {"server_default": "0", "nullable": False}
    op.create_table(
        "service_metrics_aggregates",
        sa.Column("service_id", sa.Text(), nullable=False),
        sa.Column("total_costs_cents", sa.Integer(), **counter),
        sa.Column("total_savings_cents", sa.Integer(), **counter),
        sa.Column("total_input_tokens", sa.Integer(), **counter),
        sa.Column("total_output_tokens", sa.Integer(), **counter),
        sa.Column("usage_count", sa.Integer(), **counter),
        sa.Column("first_usage_date", sa.BigInteger(), **counter),
        sa.Column("last_usage_date", sa.BigInteger(), **counter),
        sa.Column("free_usages", sa.Integer(), **counter),
        sa.Column("no_pricing_usages", sa.Integer(), **counter),
        sa.Column("no_token_usages", sa.Integer(), **counter),
        sa.Column("partial_message_usages", sa.Integer(), **counter),
        sa.Column("partial_price_usages", sa.Integer(), **counter),
        sa.Column("updated_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("service_id"),
    )
    op.create_index(
        "idx_service_metrics_aggregates_last_usage",
        "service_metrics_aggregates",
        ["last_usage_date"],
    )


def downgrade_metrics() -> None:
    op.drop_index(
        "idx_service_metrics_aggregates_last_usage", table_name="service_metrics_aggregates"
    )
    op.drop_table("service_metrics_aggregates")
    op.drop_index("idx_metrics_entries_created_at", table_name="metrics_entries")
    op.drop_index("idx_metrics_entries_service_id", table_name="metrics_entries")
    op.drop_table("metrics_entries")
    op.drop_table("metrics_store")


# ==========================================================================
# workspace
# ==========================================================================


def upgrade_workspace() -> None:
    op.create_table(
        "workspace_store",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("store_data", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "workspace_livefiles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("workspace_id", sa.Text(), nullable=False),
        sa.Column("live_file_id", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "workspace_id", "live_file_id", name="uix_workspace_livefiles_pair"
        ),
    )
    op.create_index(
        "idx_workspace_livefiles_workspace", "workspace_livefiles", ["workspace_id"]
    )
    op.create_index("idx_workspace_livefiles_file", "workspace_livefiles", ["live_file_id"])


def downgrade_workspace() -> None:
    op.drop_index("idx_workspace_livefiles_file", table_name="workspace_livefiles")
    op.drop_index("idx_workspace_livefiles_workspace", table_name="workspace_livefiles")
    op.drop_table("workspace_livefiles")
    op.drop_table("workspace_store")
