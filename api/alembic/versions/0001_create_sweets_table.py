"""create sweets table

Revision ID: 0001_create_sweets
Revises: None
Create Date: 2025-11-02
"""

from alembic import op
import sqlalchemy as sa


revision: str = "0001_create_sweets"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def upgrade() -> None:
    op.create_table(
        "sweets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(255), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("price > 0", name="ck_sweets_price_positive"),
        sa.CheckConstraint("quantity >= 0", name="ck_sweets_quantity_non_negative"),
    )


def downgrade() -> None:
    op.drop_table("sweets")
