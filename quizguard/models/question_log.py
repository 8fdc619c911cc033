"""
Quizguard — QuizQuestionLog model (one row per answered question).
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quizguard.database import Base


class QuizQuestionLog(Base):
    __tablename__ = "quiz_question_logs"
    __table_args__ = (
        Index(
            "ix_quiz_question_logs_session_order",
            "quiz_session_id",
            "answered_at",
            "created_at",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    quiz_session_id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("quiz_sessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    question_id: Mapped[str | None] = mapped_column(String, nullable=True)
    total_points_possible: Mapped[int | None] = mapped_column(Integer, nullable=True)
    time_spent: Mapped[float | None] = mapped_column(
        Float, nullable=True, comment="seconds"
    )
    is_correct: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    show_answer_used: Mapped[bool | None] = mapped_column(
        Boolean, default=False, server_default="false", nullable=True
    )
    answered_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=True
    )

    # ── Per-answer audit flags written alongside the session verdict ──
    suspicious: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    suspicious_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    threshold_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # ── Relationships ──────────────────────────────────────────────
    session: Mapped["QuizSession"] = relationship(
        "QuizSession", back_populates="question_logs"
    )

    def __repr__(self) -> str:
        return (
            f"<QuizQuestionLog session={self.quiz_session_id} "
            f"q={self.question_id!r} t={self.time_spent}>"
        )
