"""
Quizguard — Quiz Sessions API

  - Completing a session (schedules best-effort inline suspicion scoring)
  - Reading a session's stored suspicion verdict
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from quizguard.api.deps import get_recompute_service, get_session_store
from quizguard.database import get_db
from quizguard.schemas.suspicion import SessionCompleteResponse
from quizguard.services.recompute_service import SuspicionRecomputeService
from quizguard.services.session_store import SessionNotFoundError, SessionStore

logger = structlog.get_logger("quizguard.api.sessions")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST /{session_id}/complete — Mark a session completed
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/{session_id}/complete",
    response_model=SessionCompleteResponse,
    summary="Mark a quiz session completed",
)
async def complete_session(
    session_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    recompute: SuspicionRecomputeService = Depends(get_recompute_service),
) -> SessionCompleteResponse:
    """Commit the completion, then score the session in the background.

    Scoring is not on the acknowledgement path: the response is sent as
    soon as the completion is committed, and a scoring failure never
    undoes it.
    """
    log = logger.bind(session_id=str(session_id))
    log.info("complete_session_start")

    try:
        quiz_session = await store.mark_completed(db, session_id)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Quiz session {session_id} not found.",
        )
    await db.commit()

    background_tasks.add_task(recompute.score_on_completion, session_id)

    log.info("complete_session_committed", scoring="scheduled")
    return SessionCompleteResponse(
        session_id=quiz_session.id,
        status=quiz_session.status,
        completed_at=quiz_session.completed_at,
        total_actual_time_spent_seconds=quiz_session.total_actual_time_spent_seconds,
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /{session_id}/suspicion — Stored verdict
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{session_id}/suspicion",
    summary="Get a session's suspicion verdict",
)
async def get_session_suspicion(
    session_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> dict:
    """Return ``{status, score, summary}`` with the camelCase summary keys."""
    try:
        result = await store.get_suspicion(db, session_id)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Quiz session {session_id} not found.",
        )

    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Quiz session {session_id} has not been scored yet.",
        )
    return result.to_wire()
