"""Create the batch ledger tables: ledger_state, batches, batch_history.

Revision ID: 0001
Revises:
Create Date: 2026-10-17
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    op.create_table(
        "ledger_state",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("admin", sa.String(128), nullable=False),
        sa.Column("oracle", sa.String(128)),
        sa.Column("paused", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("batch_counter", sa.BigInteger(), nullable=False, server_default="0"),
        sa.CheckConstraint("id = 1", name="ck_ledger_state_singleton"),
    )

    op.create_table(
        "batches",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("manufacturer", sa.String(128), nullable=False),
        sa.Column("composition", sa.Text(), nullable=False),
        sa.Column("origin_timestamp", sa.BigInteger(), nullable=False),
        sa.Column("current_owner", sa.String(128), nullable=False),
        sa.Column("current_stage", sa.SmallInteger(), nullable=False),
        sa.Column("last_update", sa.BigInteger(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("next_history_index", sa.Integer(), nullable=False),
        sa.CheckConstraint("current_stage BETWEEN 0 AND 4", name="ck_batches_stage"),
        sa.CheckConstraint("next_history_index >= 1", name="ck_batches_next_history_index"),
    )
    op.create_index("ix_batches_current_owner", "batches", ["current_owner"])
    op.create_index("ix_batches_current_stage", "batches", ["current_stage"])

    op.create_table(
        "batch_history",
        sa.Column("batch_id", sa.BigInteger(), sa.ForeignKey("batches.id"), primary_key=True),
        sa.Column("sequence", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("stage", sa.SmallInteger(), nullable=False),
        sa.Column("owner", sa.String(128), nullable=False),
        sa.Column("recorded_at", sa.BigInteger(), nullable=False),
        sa.Column("metadata", sa.Text(), nullable=False, server_default=""),
    )
    op.create_index("ix_batch_history_recorded_at", "batch_history", ["recorded_at"])


def downgrade() -> None:
    op.drop_table("batch_history")
    op.drop_table("batches")
    op.drop_table("ledger_state")
