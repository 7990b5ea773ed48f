"""add submitter_sessions table

Revision ID: b84f2e6a0c13
Revises: 3a7e5c1d9b20
Create Date: 2026-10-17

Deployments may run without this table; entry then falls back to a
transient session held only in the cookie.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "b84f2e6a0c13"
down_revision: Union[str, Sequence[str], None] = "3a7e5c1d9b20"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    insp = inspect(op.get_bind())
    if "submitter_sessions" in set(insp.get_table_names()):
        return

    op.create_table(
        "submitter_sessions",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("submitter_name", sa.Text(), nullable=False),
        sa.Column("submitter_mobile", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("last_active_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index(
        "idx_submitter_sessions_identity",
        "submitter_sessions",
        ["submitter_name", "submitter_mobile", "last_active_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_submitter_sessions_identity", table_name="submitter_sessions")
    op.drop_table("submitter_sessions")
