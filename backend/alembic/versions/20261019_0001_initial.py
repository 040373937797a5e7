"""Initial schema for the proposal forecasting service.

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    proposal_status = sa.Enum("draft", "sent", "viewed", "approved", "declined", name="proposal_status")
    block_type = sa.Enum("rich_text", "pricing_table", "image", "video", "signature", name="block_type")
    pricing_item_type = sa.Enum("standard", "fixed", "quantity", "optional", name="pricing_item_type")
    # create_table emits CREATE TYPE for each enum on first use


    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "pipeline_stages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("probability", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("color", sa.String(length=20), nullable=False, server_default="#6366f1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "name", name="uq_pipeline_stages_user_name"),
        sa.CheckConstraint(
            "probability >= 0 AND probability <= 100",
            name="ck_pipeline_stages_probability_range",
        ),
    )
    op.create_index("ix_pipeline_stages_id", "pipeline_stages", ["id"])
    op.create_index("ix_pipeline_stages_user_id", "pipeline_stages", ["user_id"])

    op.create_table(
        "proposals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "pipeline_stage_id",
            sa.Integer(),
            sa.ForeignKey("pipeline_stages.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("status", proposal_status, nullable=False, server_default="draft"),
        sa.Column("estimated_value", sa.Numeric(24, 2), nullable=True),
        sa.Column("tax_rate", sa.Numeric(8, 3), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("first_viewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("declined_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "estimated_value IS NULL OR estimated_value >= 0",
            name="ck_proposals_estimated_value",
        ),
        sa.CheckConstraint("tax_rate IS NULL OR tax_rate >= 0", name="ck_proposals_tax_rate"),
    )
    op.create_index("ix_proposals_id", "proposals", ["id"])
    op.create_index("ix_proposals_user_id", "proposals", ["user_id"])
    op.create_index("ix_proposals_status", "proposals", ["status"])
    op.create_index("ix_proposals_approved_at", "proposals", ["approved_at"])

    op.create_table(
        "proposal_blocks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("proposal_id", sa.Integer(), sa.ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False),
        sa.Column("block_type", block_type, nullable=False, server_default="rich_text"),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_proposal_blocks_id", "proposal_blocks", ["id"])
    op.create_index("ix_proposal_blocks_proposal_id", "proposal_blocks", ["proposal_id"])

    op.create_table(
        "pricing_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("block_id", sa.Integer(), sa.ForeignKey("proposal_blocks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("item_type", pricing_item_type, nullable=False, server_default="standard"),
        sa.Column("price", sa.Numeric(24, 2), nullable=False, server_default="0"),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint("price >= 0", name="ck_pricing_items_price"),
    )
    op.create_index("ix_pricing_items_id", "pricing_items", ["id"])
    op.create_index("ix_pricing_items_block_id", "pricing_items", ["block_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=False),
        sa.Column("entity_id", sa.String(length=100), nullable=False),
        sa.Column("before_state", sa.JSON(), nullable=True),
        sa.Column("after_state", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_id", "audit_logs", ["id"])
    op.create_index("ix_audit_logs_actor_user_id", "audit_logs", ["actor_user_id"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("pricing_items")
    op.drop_table("proposal_blocks")
    op.drop_table("proposals")
    op.drop_table("pipeline_stages")
    op.drop_table("users")

    sa.Enum(name="pricing_item_type").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="block_type").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="proposal_status").drop(op.get_bind(), checkfirst=True)
