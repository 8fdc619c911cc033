"""
Quizguard — SessionStore: persistence boundary for suspicion scoring

Reads a completed session's answer log and frozen question snapshot, and
writes verdicts back.  Writes are always full overwrites of the three
session columns (``suspicion_status``, ``suspicion_score``,
``suspicious_summary``) plus the per-answer audit columns; nothing is ever
merged into a previous verdict.

All methods take an ``AsyncSession``; the caller owns commit/rollback.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Sequence

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quizguard.models.question_log import QuizQuestionLog
from quizguard.models.quiz_session import QuizSession
from quizguard.schemas.suspicion import (
    AnswerEvent,
    QuestionText,
    SessionSuspicionResult,
    SuspicionStatus,
)
from quizguard.services.suspicion_service import AnswerFlag, build_question_snapshot

logger = structlog.get_logger("quizguard.session_store")

COMPLETED_STATUS: str = "completed"


class SessionNotFoundError(LookupError):
    """Raised when a quiz session id does not exist."""

    def __init__(self, session_id: uuid.UUID) -> None:
        super().__init__(f"Quiz session {session_id} not found")
        self.session_id = session_id


class SessionStore:
    """Async data access for quiz sessions and their answer logs."""

    # ══════════════════════════════════════════════════════════════════════
    # Reads
    # ══════════════════════════════════════════════════════════════════════

    async def get_session(
        self, db_session: AsyncSession, session_id: uuid.UUID
    ) -> QuizSession:
        result = await db_session.execute(
            select(QuizSession).where(QuizSession.id == session_id)
        )
        quiz_session = result.scalar_one_or_none()
        if quiz_session is None:
            raise SessionNotFoundError(session_id)
        return quiz_session

    async def load_answer_events(
        self, db_session: AsyncSession, session_id: uuid.UUID
    ) -> list[AnswerEvent]:
        """Answer log for ``session_id`` in canonical session order."""
        stmt = (
            select(QuizQuestionLog)
            .where(QuizQuestionLog.quiz_session_id == session_id)
            .order_by(
                QuizQuestionLog.answered_at.asc().nulls_last(),
                QuizQuestionLog.created_at.asc().nulls_last(),
                QuizQuestionLog.id.asc(),
            )
        )
        result = await db_session.execute(stmt)
        return [self._to_event(row) for row in result.scalars().all()]

    async def load_question_snapshot(
        self, db_session: AsyncSession, session_id: uuid.UUID
    ) -> dict[str, QuestionText]:
        quiz_session = await self.get_session(db_session, session_id)
        return build_question_snapshot(quiz_session.questions)

    async def list_completed_session_ids(
        self, db_session: AsyncSession
    ) -> list[uuid.UUID]:
        result = await db_session.execute(
            select(QuizSession.id)
            .where(QuizSession.status == COMPLETED_STATUS)
            .order_by(QuizSession.completed_at.asc().nulls_last(), QuizSession.id)
        )
        return list(result.scalars().all())

    async def get_suspicion(
        self, db_session: AsyncSession, session_id: uuid.UUID
    ) -> SessionSuspicionResult | None:
        """The stored verdict, or ``None`` if the session was never scored."""
        quiz_session = await self.get_session(db_session, session_id)
        if quiz_session.suspicion_status is None or quiz_session.suspicious_summary is None:
            return None
        return SessionSuspicionResult.model_validate(
            {
                "status": quiz_session.suspicion_status,
                "score": quiz_session.suspicion_score or 0.0,
                "summary": quiz_session.suspicious_summary,
            }
        )

    async def list_sessions_by_suspicion(
        self,
        db_session: AsyncSession,
        status: SuspicionStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[QuizSession]:
        """Completed sessions for review tooling, newest completion first."""
        stmt = select(QuizSession).where(QuizSession.status == COMPLETED_STATUS)
        if status is not None:
            stmt = stmt.where(QuizSession.suspicion_status == status)
        stmt = (
            stmt.order_by(QuizSession.completed_at.desc().nulls_last())
            .limit(limit)
            .offset(offset)
        )
        result = await db_session.execute(stmt)
        return list(result.scalars().all())

    # ══════════════════════════════════════════════════════════════════════
    # Writes
    # ══════════════════════════════════════════════════════════════════════

    async def save_suspicion(
        self,
        db_session: AsyncSession,
        session_id: uuid.UUID,
        result: SessionSuspicionResult,
        answer_flags: Sequence[AnswerFlag] = (),
    ) -> None:
        """Overwrite the stored verdict for ``session_id``."""
        outcome = await db_session.execute(
            update(QuizSession)
            .where(QuizSession.id == session_id)
            .values(
                suspicion_status=result.status,
                suspicion_score=result.score,
                suspicious_summary=result.summary.model_dump(mode="json", by_alias=True),
            )
        )
        if outcome.rowcount == 0:
            raise SessionNotFoundError(session_id)

        for flag in answer_flags:
            if flag.log_id is None:
                continue
            await db_session.execute(
                update(QuizQuestionLog)
                .where(QuizQuestionLog.id == uuid.UUID(flag.log_id))
                .values(
                    suspicious=flag.suspicious,
                    suspicious_reason=flag.reason,
                    threshold_seconds=flag.threshold_seconds,
                )
            )

        logger.info(
            "suspicion_saved",
            session_id=str(session_id),
            status=result.status,
            score=result.score,
            flagged_answers=sum(1 for f in answer_flags if f.suspicious),
        )

    async def mark_completed(
        self, db_session: AsyncSession, session_id: uuid.UUID
    ) -> QuizSession:
        """Transition a session to ``completed``.

        Also refreshes ``total_actual_time_spent_seconds`` from the answer
        log when the logged total is positive and differs from what the
        session currently records.
        """
        quiz_session = await self.get_session(db_session, session_id)

        if quiz_session.status != COMPLETED_STATUS:
            quiz_session.status = COMPLETED_STATUS
            quiz_session.completed_at = datetime.now(timezone.utc)

        logged_seconds = await db_session.scalar(
            select(func.coalesce(func.sum(QuizQuestionLog.time_spent), 0)).where(
                QuizQuestionLog.quiz_session_id == session_id
            )
        )
        logged_seconds = float(logged_seconds or 0)
        current_seconds = float(quiz_session.total_actual_time_spent_seconds or 0)
        if logged_seconds > 0 and logged_seconds != current_seconds:
            logger.info(
                "session_time_refreshed_from_logs",
                session_id=str(session_id),
                logged_seconds=logged_seconds,
                previous_seconds=current_seconds,
            )
            quiz_session.total_actual_time_spent_seconds = logged_seconds

        await db_session.flush()
        return quiz_session

    # ══════════════════════════════════════════════════════════════════════
    # Helpers
    # ══════════════════════════════════════════════════════════════════════

    @staticmethod
    def _to_event(row: QuizQuestionLog) -> AnswerEvent:
        return AnswerEvent(
            id=str(row.id),
            question_id=row.question_id,
            points_possible=row.total_points_possible,
            time_spent_seconds=row.time_spent,
            is_correct=row.is_correct,
            show_answer_used=row.show_answer_used,
            answered_at=row.answered_at,
            created_at=row.created_at,
        )
