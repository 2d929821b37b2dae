"""add workers time_entries proof_of_work entry_edits

Revision ID: 3c1e5a9d2b70
Revises:
Create Date: 2026-03-02 09:14:22.401876

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1e5a9d2b70'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "workers",
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("contractor_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False, server_default=""),
        sa.Column("invite_token", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("joined_at", sa.DateTime(), nullable=True),
        sa.Column("tracking_mode", sa.String(), nullable=False, server_default="clock"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("client_id", "contractor_id", name="pk_workers"),
        sa.CheckConstraint("tracking_mode IN ('clock', 'timesheet')", name="ck_workers_tracking_mode"),
    )
    op.create_index("ix_workers_contractor_id", "workers", ["contractor_id"], unique=False)
    op.create_index("ix_workers_client_id", "workers", ["client_id"], unique=False)
    op.create_index("ix_workers_invite_token", "workers", ["invite_token"], unique=True)

    op.create_table(
        "time_entries",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("worker_id", sa.String(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("manual_hours", sa.Float(), nullable=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("client_notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("last_modified", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ["client_id", "worker_id"],
            ["workers.client_id", "workers.contractor_id"],
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(
            "status IN ('draft', 'submitted', 'approved', 'rejected')",
            name="ck_time_entries_status",
        ),
        sa.CheckConstraint(
            "manual_hours IS NULL OR manual_hours >= 0",
            name="ck_time_entries_manual_hours_nonnegative",
        ),
    )
    op.create_index("ix_time_entries_id", "time_entries", ["id"], unique=False)
    op.create_index("ix_time_entries_client_id", "time_entries", ["client_id"], unique=False)
    op.create_index("ix_time_entries_worker_id", "time_entries", ["worker_id"], unique=False)
    op.create_index("ix_time_entries_date", "time_entries", ["date"], unique=False)
    op.create_index("ix_time_entries_status", "time_entries", ["status"], unique=False)

    op.create_table(
        "proof_of_work",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("entry_id", sa.String(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("file_name", sa.String(), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(["entry_id"], ["time_entries.id"], ondelete="CASCADE"),
        sa.CheckConstraint("type IN ('screenshot', 'file', 'note')", name="ck_proof_of_work_type"),
    )
    op.create_index("ix_proof_of_work_id", "proof_of_work", ["id"], unique=False)
    op.create_index("ix_proof_of_work_entry_id", "proof_of_work", ["entry_id"], unique=False)

    op.create_table(
        "entry_edits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("entry_id", sa.String(), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("field", sa.String(), nullable=False),
        sa.Column("old_value", sa.String(), nullable=True),
        sa.Column("new_value", sa.String(), nullable=True),
        sa.Column("reason", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(["entry_id"], ["time_entries.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_entry_edits_entry_id", "entry_edits", ["entry_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_entry_edits_entry_id", table_name="entry_edits")
    op.drop_table("entry_edits")

    op.drop_index("ix_proof_of_work_entry_id", table_name="proof_of_work")
    op.drop_index("ix_proof_of_work_id", table_name="proof_of_work")
    op.drop_table("proof_of_work")

    op.drop_index("ix_time_entries_status", table_name="time_entries")
    op.drop_index("ix_time_entries_date", table_name="time_entries")
    op.drop_index("ix_time_entries_worker_id", table_name="time_entries")
    op.drop_index("ix_time_entries_client_id", table_name="time_entries")
    op.drop_index("ix_time_entries_id", table_name="time_entries")
    op.drop_table("time_entries")

    op.drop_index("ix_workers_invite_token", table_name="workers")
    op.drop_index("ix_workers_client_id", table_name="workers")
    op.drop_index("ix_workers_contractor_id", table_name="workers")
    op.drop_table("workers")
