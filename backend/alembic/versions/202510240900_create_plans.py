"""Create the plans table."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202510240900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "plans",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("time_type", sa.String(length=20), nullable=False, server_default=sa.text("'anytime'")),
        sa.Column("period_preset", sa.String(length=20), nullable=True),
        sa.Column("period_label", sa.Text(), nullable=True),
        sa.Column("deadline_preset", sa.String(length=20), nullable=True),
        sa.Column("custom_deadline_date", sa.DateTime(), nullable=True),
        sa.Column("period_start", sa.DateTime(), nullable=True),
        sa.Column("period_end", sa.DateTime(), nullable=True),
        sa.Column("deadline", sa.DateTime(), nullable=True),
        sa.Column("memo", sa.Text(), nullable=True),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_plans_created_at", "plans", ["created_at"], unique=False)
    op.create_index("ix_plans_active", "plans", ["is_completed", "is_archived"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_plans_active", table_name="plans")
    op.drop_index("ix_plans_created_at", table_name="plans")
    op.drop_table("plans")
