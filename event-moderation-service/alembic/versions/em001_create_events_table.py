"""create events table with moderation fields

Revision ID: em001
Revises:
Create Date: 2026-09-28 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "em001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("owner_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("venue_id", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("moderation_status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        # Required column: there is no fallback to is_published.
        sa.Column("organizer_wants_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("approved_by", sa.String(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status_changed_by", sa.String(), nullable=True),
        sa.Column("status_changed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
    )

    op.create_index("ix_events_owner_id", "events", ["owner_id"])
    op.create_index("ix_events_status", "events", ["status"])
    op.create_index("ix_events_moderation_status", "events", ["moderation_status"])


def downgrade() -> None:
    op.drop_index("ix_events_moderation_status", "events")
    op.drop_index("ix_events_status", "events")
    op.drop_index("ix_events_owner_id", "events")
    op.drop_table("events")
