"""create storage records table

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2025-07-02 10:14:03.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "1a2b3c4d5e6f"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "storage_records",
        sa.Column("record_type", sa.String(50), nullable=False),
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("record_type", "id"),
    )
    op.create_index(
        "ix_storage_records_type_created",
        "storage_records",
        ["record_type", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_storage_records_type_created", table_name="storage_records")
    op.drop_table("storage_records")
