"""Initial schema — quiz sessions and their answer logs.

Revision ID: 001_initial
Revises:
Create Date: 2025-09-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── 1. quiz_sessions ────────────────────────────────────────────
    op.create_table(
        "quiz_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String, nullable=False, server_default=""),
        sa.Column("type", sa.String, nullable=True),
        sa.Column(
            "status",
            sa.String,
            nullable=False,
            server_default="active",
            comment="active / completed",
        ),
        sa.Column(
            "questions",
            postgresql.JSONB,
            nullable=True,
            comment="Question snapshot captured at creation: [{id, question, answer, ...}]",
        ),
        sa.Column("total_points", sa.Integer, nullable=True),
        sa.Column("max_points", sa.Integer, nullable=True),
        sa.Column("total_actual_time_spent_seconds", sa.Float, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_quiz_sessions_user_id", "quiz_sessions", ["user_id"])
    op.create_index("ix_quiz_sessions_status", "quiz_sessions", ["status"])

    # ── 2. quiz_question_logs ───────────────────────────────────────
    op.create_table(
        "quiz_question_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "quiz_session_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("quiz_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("question_id", sa.String, nullable=True),
        sa.Column("total_points_possible", sa.Integer, nullable=True),
        sa.Column("time_spent", sa.Float, nullable=True, comment="seconds"),
        sa.Column("is_correct", sa.Boolean, nullable=True),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
    )
    op.create_index(
        "ix_quiz_question_logs_session_order",
        "quiz_question_logs",
        ["quiz_session_id", "answered_at", "created_at"],
    )


def downgrade() -> None:
    # Drop in reverse order (children / dependents first).
    op.drop_index(
        "ix_quiz_question_logs_session_order", table_name="quiz_question_logs"
    )
    op.drop_table("quiz_question_logs")

    op.drop_index("ix_quiz_sessions_status", table_name="quiz_sessions")
    op.drop_index("ix_quiz_sessions_user_id", table_name="quiz_sessions")
    op.drop_table("quiz_sessions")
