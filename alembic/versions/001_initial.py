"""Initial schema: tiers, users, variables, api_keys, promotion_history, usage_stats.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "tiers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("max_variables", sa.Integer(), nullable=False),
        sa.Column("max_variable_size_mb", sa.Integer(), nullable=False),
        sa.Column("max_requests_per_day", sa.Integer(), nullable=False),
        sa.Column("max_api_keys", sa.Integer(), nullable=False),
        sa.Column("price_monthly", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_tiers_id", "tiers", ["id"])

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="user"),
        sa.Column("tier_id", sa.Integer(), sa.ForeignKey("tiers.id"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_tier_id", "users", ["tier_id"])

    op.create_table(
        "variables",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("key", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("size_bytes", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("storage_path", sa.String(), nullable=False),
        sa.Column("is_encrypted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("user_id", "key", name="uq_variables_user_id_key"),
    )
    op.create_index("ix_variables_id", "variables", ["id"])
    op.create_index("ix_variables_user_id", "variables", ["user_id"])

    op.create_table(
        "api_keys",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("key_hash", sa.String(), nullable=False),
        sa.Column("prefix", sa.String(length=16), nullable=False),
        sa.Column("last_used_at", sa.DateTime(), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("permissions", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_api_keys_id", "api_keys", ["id"])
    op.create_index("ix_api_keys_user_id", "api_keys", ["user_id"])
    op.create_index("ix_api_keys_prefix", "api_keys", ["prefix"])

    op.create_table(
        "promotion_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("from_tier_id", sa.Integer(), sa.ForeignKey("tiers.id"), nullable=False),
        sa.Column("to_tier_id", sa.Integer(), sa.ForeignKey("tiers.id"), nullable=False),
        sa.Column("promoted_by", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_promotion_history_id", "promotion_history", ["id"])
    op.create_index("ix_promotion_history_user_id", "promotion_history", ["user_id"])

    op.create_table(
        "usage_stats",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("requests_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("variables_created", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("variables_updated", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("variables_deleted", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("variables_read", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_bytes_stored", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("total_bytes_transferred", sa.BigInteger(), nullable=False, server_default="0"),
        sa.UniqueConstraint("user_id", "date", name="uq_usage_stats_user_id_date"),
    )
    op.create_index("ix_usage_stats_id", "usage_stats", ["id"])
    op.create_index("ix_usage_stats_user_id", "usage_stats", ["user_id"])


def downgrade() -> None:
    op.drop_table("usage_stats")
    op.drop_table("promotion_history")
    op.drop_table("api_keys")
    op.drop_table("variables")
    op.drop_table("users")
    op.drop_table("tiers")
