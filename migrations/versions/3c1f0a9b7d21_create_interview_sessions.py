"""create interview_sessions

Revision ID: 3c1f0a9b7d21
Revises:
Create Date: 2026-10-19 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel

# revision identifiers, used by Alembic.
revision: str = '3c1f0a9b7d21'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "interview_sessions",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("owner_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("session_number", sa.Integer(), nullable=False),
        sa.Column("session_title", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("target_role", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("target_company", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("current_level", sa.Integer(), nullable=False),
        sa.Column("total_score", sa.Float(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        sa.Column("document", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_interview_sessions_owner_id"), "interview_sessions", ["owner_id"], unique=False)
    op.create_index(op.f("ix_interview_sessions_is_completed"), "interview_sessions", ["is_completed"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_interview_sessions_is_completed"), table_name="interview_sessions")
    op.drop_index(op.f("ix_interview_sessions_owner_id"), table_name="interview_sessions")
    op.drop_table("interview_sessions")
