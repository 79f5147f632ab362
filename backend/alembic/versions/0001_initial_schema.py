"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the tables for the settlement service:
users (display identity) and expense_settlements.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True, unique=True),
        sa.Column("profile_pic", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- expense_settlements ---
    op.create_table(
        "expense_settlements",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(64), nullable=False),
        sa.Column("payer_id", sa.String(64), nullable=False),
        sa.Column("receiver_id", sa.String(64), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payer_confirmed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("receiver_confirmed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("payer_confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("receiver_confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "payer_id", "receiver_id", "amount", name="uq_settlement_natural_key"),
        sa.CheckConstraint("amount > 0", name="ck_settlement_amount_positive"),
    )
    op.create_index("ix_expense_settlements_event_id", "expense_settlements", ["event_id"])
    op.create_index("ix_expense_settlements_payer_id", "expense_settlements", ["payer_id"])
    op.create_index("ix_expense_settlements_receiver_id", "expense_settlements", ["receiver_id"])


def downgrade() -> None:
    op.drop_index("ix_expense_settlements_receiver_id", table_name="expense_settlements")
    op.drop_index("ix_expense_settlements_payer_id", table_name="expense_settlements")
    op.drop_index("ix_expense_settlements_event_id", table_name="expense_settlements")
    op.drop_table("expense_settlements")
    op.drop_table("users")
