"""create users table

Revision ID: 0002_create_users
Revises: 0001_create_sweets
Create Date: 2025-11-02
"""

from alembic import op
import sqlalchemy as sa


revision: str = "0002_create_users"
down_revision: str | None = "0001_create_sweets"
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )


def downgrade() -> None:
    op.drop_table("users")
