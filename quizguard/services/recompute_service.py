"""
Quizguard — SuspicionRecomputeService: batch and inline scoring triggers

Two triggers drive the shared ``SuspicionService``:

  1. **Batch** — ``recompute_all_completed`` rescores every completed
     session.  Sessions are independent, so they run concurrently (bounded
     by ``SUSPICION_BATCH_CONCURRENCY``), each in its own database session.
     A failure in one session is logged, rolled back and skipped; the run
     carries on and reports how many sessions succeeded.
  2. **Inline** — ``score_on_completion`` runs after a session is marked
     completed.  It is best-effort: a timeout or error is logged and
     swallowed, because the completion itself has already been committed
     and the batch path can always rescore later.

Every run is a full recompute followed by a full overwrite, so repeated or
concurrent runs for the same session are safe.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Iterable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quizguard.config import get_settings
from quizguard.database import async_session_factory
from quizguard.schemas.suspicion import SessionSuspicionResult
from quizguard.services.session_store import SessionStore
from quizguard.services.suspicion_service import SuspicionService

logger = structlog.get_logger("quizguard.recompute_service")


@dataclass
class RecomputeReport:
    """Outcome of a batch run."""

    processed: int = 0
    failed: int = 0
    failed_session_ids: list[uuid.UUID] = field(default_factory=list)


class SuspicionRecomputeService:
    """Reads, scores and writes back session verdicts.

    ``session_factory`` defaults to the application's
    ``async_session_factory``; tests inject their own.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        store: SessionStore | None = None,
        engine: SuspicionService | None = None,
        concurrency: int | None = None,
        inline_timeout_seconds: float | None = None,
    ) -> None:
        settings = get_settings()
        if concurrency is None:
            concurrency = settings.SUSPICION_BATCH_CONCURRENCY
        if inline_timeout_seconds is None:
            inline_timeout_seconds = settings.SUSPICION_INLINE_TIMEOUT_SECONDS
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        if inline_timeout_seconds <= 0:
            raise ValueError(
                f"inline_timeout_seconds must be > 0, got {inline_timeout_seconds}"
            )

        self._session_factory = (
            session_factory if session_factory is not None else async_session_factory
        )
        self._store = store if store is not None else SessionStore()
        self._engine = engine if engine is not None else SuspicionService()
        self._concurrency = concurrency
        self._inline_timeout = inline_timeout_seconds

    # ══════════════════════════════════════════════════════════════════════
    # Single session
    # ══════════════════════════════════════════════════════════════════════

    async def recompute_session(
        self,
        session_id: uuid.UUID,
        db_session: AsyncSession | None = None,
    ) -> SessionSuspicionResult:
        """Rescore one session and overwrite its stored verdict.

        When ``db_session`` is given the caller owns the transaction;
        otherwise a dedicated session is opened and committed here.
        """
        if db_session is not None:
            return await self._recompute(db_session, session_id)

        async with self._session_factory() as session:
            try:
                result = await self._recompute(session, session_id)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
        return result

    async def _recompute(
        self, db_session: AsyncSession, session_id: uuid.UUID
    ) -> SessionSuspicionResult:
        log = logger.bind(session_id=str(session_id))
        log.info("recompute_session_start")

        questions = await self._store.load_question_snapshot(db_session, session_id)
        events = await self._store.load_answer_events(db_session, session_id)

        result = self._engine.score_session(events, questions)
        flags = self._engine.flag_answers(events, questions)

        await self._store.save_suspicion(db_session, session_id, result, flags)

        log.info(
            "recompute_session_complete",
            status=result.status,
            score=result.score,
            total_questions=result.summary.total_questions,
        )
        return result

    # ══════════════════════════════════════════════════════════════════════
    # Batch trigger
    # ══════════════════════════════════════════════════════════════════════

    async def recompute_all_completed(self) -> int:
        """Rescore every completed session; return how many succeeded."""
        report = await self.recompute_all_completed_report()
        return report.processed

    async def recompute_all_completed_report(self) -> RecomputeReport:
        async with self._session_factory() as session:
            session_ids = await self._store.list_completed_session_ids(session)
        return await self.recompute_sessions(session_ids)

    async def recompute_sessions(
        self, session_ids: Iterable[uuid.UUID]
    ) -> RecomputeReport:
        """Rescore the given sessions concurrently with per-session isolation."""
        session_ids = list(session_ids)
        semaphore = asyncio.Semaphore(self._concurrency)

        logger.info(
            "recompute_batch_start",
            sessions=len(session_ids),
            concurrency=self._concurrency,
        )

        async def _guarded(session_id: uuid.UUID) -> bool:
            async with semaphore:
                try:
                    await self.recompute_session(session_id)
                except Exception:
                    logger.exception(
                        "recompute_session_failed",
                        session_id=str(session_id),
                    )
                    return False
                return True

        outcomes = await asyncio.gather(*(_guarded(sid) for sid in session_ids))

        report = RecomputeReport()
        for session_id, ok in zip(session_ids, outcomes):
            if ok:
                report.processed += 1
            else:
                report.failed += 1
                report.failed_session_ids.append(session_id)

        logger.info(
            "recompute_batch_complete",
            processed=report.processed,
            failed=report.failed,
        )
        return report

    # ══════════════════════════════════════════════════════════════════════
    # Inline trigger
    # ══════════════════════════════════════════════════════════════════════

    async def score_on_completion(
        self, session_id: uuid.UUID
    ) -> SessionSuspicionResult | None:
        """Best-effort scoring right after completion.  Never raises."""
        try:
            return await asyncio.wait_for(
                self.recompute_session(session_id),
                timeout=self._inline_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "inline_scoring_timeout",
                session_id=str(session_id),
                timeout=self._inline_timeout,
            )
        except Exception:
            logger.exception("inline_scoring_failed", session_id=str(session_id))
        return None
