"""unique_open_clock_session

Revision ID: 8f4b2d61e0a3
Revises: 3c1e5a9d2b70
Create Date: 2026-03-04 15:40:11.092314

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8f4b2d61e0a3'
down_revision: Union[str, Sequence[str], None] = '3c1e5a9d2b70'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_OPEN_SESSION = "start_time IS NOT NULL AND end_time IS NULL AND manual_hours IS NULL"


def upgrade() -> None:
    """Upgrade schema."""
    op.create_index(
        "uq_time_entries_open_session",
        "time_entries",
        ["client_id", "worker_id"],
        unique=True,
        postgresql_where=sa.text(_OPEN_SESSION),
        sqlite_where=sa.text(_OPEN_SESSION),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("uq_time_entries_open_session", table_name="time_entries")
