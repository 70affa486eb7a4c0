"""Record collections table

Revision ID: 20240101_record_collections
Revises:
Create Date: 2024-01-01
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20240101_record_collections"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "record_collections",
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("payload", sa.Text(), nullable=False),
        sa.Column("record_count", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )


def downgrade():
    op.drop_table("record_collections")
