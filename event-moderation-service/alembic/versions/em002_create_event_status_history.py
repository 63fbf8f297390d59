"""create event status history table

Revision ID: em002
Revises: em001
Create Date: 2026-09-28 10:05:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "em002"
down_revision = "em001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "event_status_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.String(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("previous_status", sa.String(32), nullable=True),
        sa.Column("new_status", sa.String(32), nullable=False),
        sa.Column("previous_moderation_status", sa.String(32), nullable=True),
        sa.Column("new_moderation_status", sa.String(32), nullable=False),
        sa.Column("previous_is_published", sa.Boolean(), nullable=True),
        sa.Column("new_is_published", sa.Boolean(), nullable=True),
        sa.Column("change_reason", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),  # snapshot at time of change
        sa.Column("changed_by", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
    )

    op.create_index(
        "idx_status_history_event_created",
        "event_status_history",
        ["event_id", "created_at", "id"],
    )
    op.create_index("ix_event_status_history_changed_by", "event_status_history", ["changed_by"])


def downgrade() -> None:
    op.drop_index("ix_event_status_history_changed_by", "event_status_history")
    op.drop_index("idx_status_history_event_created", "event_status_history")
    op.drop_table("event_status_history")
