"""Add deleted_at to movement

Deleting a Pending movement now stamps ``deleted_at`` instead of removing
the row, so photos and discrepancies attached to it keep their owner.

The column is nullable; existing rows stay live.

Revision ID: c5d82b4e7a13
Revises: a1c4e2f09b7d
Create Date: 2026-10-17 15:40:02.114907

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "c5d82b4e7a13"
down_revision = "a1c4e2f09b7d"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Add the nullable deleted_at column."""
    with op.batch_alter_table("movement") as batch_op:
        batch_op.add_column(
            sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True)
        )


def downgrade() -> None:
    """Drop deleted_at."""
    with op.batch_alter_table("movement") as batch_op:
        batch_op.drop_column("deleted_at")
