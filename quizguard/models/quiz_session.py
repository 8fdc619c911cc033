"""
Quizguard — QuizSession model (one quiz attempt plus its suspicion verdict).
"""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Float, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB, UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quizguard.database import Base


class QuizSession(Base):
    __tablename__ = "quiz_sessions"
    __table_args__ = (
        CheckConstraint(
            "suspicion_status IN ('green','amber','red')",
            name="ck_quiz_sessions_suspicion_status",
        ),
        Index("ix_quiz_sessions_status", "status"),
        Index("ix_quiz_sessions_suspicion_status", "suspicion_status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), index=True, nullable=False
    )
    title: Mapped[str] = mapped_column(String, nullable=False, default="")
    type: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(
        String,
        nullable=False,
        default="active",
        server_default="active",
        comment="active / completed",
    )
    questions: Mapped[list | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Question snapshot captured at creation: [{id, question, answer, ...}]",
    )
    total_points: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_points: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_actual_time_spent_seconds: Mapped[float | None] = mapped_column(
        Float, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # ── Suspicion verdict (full overwrite on every recompute) ──────
    suspicion_status: Mapped[str | None] = mapped_column(String, nullable=True)
    suspicion_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    suspicious_summary: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    # ── Relationships ──────────────────────────────────────────────
    question_logs: Mapped[list["QuizQuestionLog"]] = relationship(
        "QuizQuestionLog", back_populates="session", cascade="all, delete-orphan"
    )

    @property
    def questions_count(self) -> int:
        return len(self.questions) if isinstance(self.questions, list) else 0

    def __repr__(self) -> str:
        return (
            f"<QuizSession {self.id} status={self.status!r} "
            f"suspicion={self.suspicion_status!r}>"
        )
