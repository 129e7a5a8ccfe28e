"""Allow one live appointment per barber and start time.

Revision ID: 20261016_0003
Revises: 20261016_0002
Create Date: 2026-10-16 10:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261016_0003"
down_revision: Union[str, Sequence[str], None] = "20261016_0002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

INDEX_NAME = "uq_appointments_barber_slot"
LIVE_ROWS = sa.text("status != 'canceled'")


def _index_names(table_name: str) -> set[str]:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    return {idx["name"] for idx in inspector.get_indexes(table_name)}


def upgrade() -> None:
    if INDEX_NAME in _index_names("appointments"):
        return
    op.create_index(
        INDEX_NAME,
        "appointments",
        ["barber_id", "scheduled_at"],
        unique=True,
        sqlite_where=LIVE_ROWS,
        postgresql_where=LIVE_ROWS,
    )


def downgrade() -> None:
    op.drop_index(INDEX_NAME, table_name="appointments")
