"""Suspicion verdict columns, per-answer audit flags, and review view.

Revision ID: 002_suspicion
Revises: 001_initial
Create Date: 2025-09-06 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "002_suspicion"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── 1. quiz_sessions: tier + score + summary ────────────────────
    op.add_column("quiz_sessions", sa.Column("suspicion_status", sa.String, nullable=True))
    op.add_column("quiz_sessions", sa.Column("suspicion_score", sa.Float, nullable=True))
    op.add_column(
        "quiz_sessions",
        sa.Column("suspicious_summary", postgresql.JSONB, nullable=True),
    )
    op.create_check_constraint(
        "ck_quiz_sessions_suspicion_status",
        "quiz_sessions",
        "suspicion_status IN ('green','amber','red')",
    )
    op.create_index(
        "ix_quiz_sessions_suspicion_status", "quiz_sessions", ["suspicion_status"]
    )

    # ── 2. quiz_question_logs: show-answer tracking + audit flags ───
    op.add_column(
        "quiz_question_logs",
        sa.Column(
            "show_answer_used",
            sa.Boolean,
            server_default="false",
            nullable=True,
        ),
    )
    op.add_column("quiz_question_logs", sa.Column("suspicious", sa.Boolean, nullable=True))
    op.add_column(
        "quiz_question_logs", sa.Column("suspicious_reason", sa.Text, nullable=True)
    )
    op.add_column(
        "quiz_question_logs", sa.Column("threshold_seconds", sa.Integer, nullable=True)
    )

    # ── 3. Review view with snapshot size ───────────────────────────
    op.execute(
        """
        CREATE OR REPLACE VIEW quiz_sessions_view AS
        SELECT
          qs.id,
          qs.user_id,
          qs.title,
          qs.type,
          qs.status,
          qs.created_at,
          qs.completed_at,
          qs.total_points,
          qs.max_points,
          qs.total_actual_time_spent_seconds,
          CASE
            WHEN qs.questions IS NOT NULL AND jsonb_typeof(qs.questions) = 'array'
            THEN jsonb_array_length(qs.questions)
            ELSE 0
          END AS questions_count,
          qs.suspicion_status,
          qs.suspicion_score,
          qs.suspicious_summary
        FROM quiz_sessions qs
        """
    )


def downgrade() -> None:
    op.execute("DROP VIEW IF EXISTS quiz_sessions_view")

    op.drop_column("quiz_question_logs", "threshold_seconds")
    op.drop_column("quiz_question_logs", "suspicious_reason")
    op.drop_column("quiz_question_logs", "suspicious")
    op.drop_column("quiz_question_logs", "show_answer_used")

    op.drop_index("ix_quiz_sessions_suspicion_status", table_name="quiz_sessions")
    op.drop_constraint(
        "ck_quiz_sessions_suspicion_status", "quiz_sessions", type_="check"
    )
    op.drop_column("quiz_sessions", "suspicious_summary")
    op.drop_column("quiz_sessions", "suspicion_score")
    op.drop_column("quiz_sessions", "suspicion_status")
