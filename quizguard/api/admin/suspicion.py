"""
Quizguard — Admin Suspicion API

Endpoints for downstream review tooling:
  - Recomputing every completed session (batch trigger)
  - Recomputing a single session
  - Listing completed sessions by suspicion tier
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from quizguard.api.deps import get_recompute_service, get_session_store
from quizguard.database import get_db
from quizguard.schemas.suspicion import (
    RecomputeResponse,
    SessionSuspicionListItem,
    SuspicionStatus,
)
from quizguard.services.recompute_service import SuspicionRecomputeService
from quizguard.services.session_store import SessionNotFoundError, SessionStore

logger = structlog.get_logger("quizguard.api.admin.suspicion")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST /recompute — Rescore all completed sessions
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/recompute",
    response_model=RecomputeResponse,
    summary="Recompute suspicion for all completed sessions",
)
async def recompute_all(
    recompute: SuspicionRecomputeService = Depends(get_recompute_service),
) -> RecomputeResponse:
    """Run the batch trigger.  Individual session failures are skipped and
    reported, never fatal to the run."""
    report = await recompute.recompute_all_completed_report()
    logger.info(
        "recompute_all_complete",
        processed=report.processed,
        failed=report.failed,
    )
    return RecomputeResponse(
        processed=report.processed,
        failed=report.failed,
        failed_session_ids=report.failed_session_ids,
    )


# ──────────────────────────────────────────────────────────────────────────────
# POST /sessions/{session_id}/recompute — Rescore one session
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/sessions/{session_id}/recompute",
    summary="Recompute suspicion for one session",
)
async def recompute_one(
    session_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    recompute: SuspicionRecomputeService = Depends(get_recompute_service),
) -> dict:
    try:
        result = await recompute.recompute_session(session_id, db_session=db)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Quiz session {session_id} not found.",
        )
    return result.to_wire()


# ──────────────────────────────────────────────────────────────────────────────
# GET /sessions — Review listing
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/sessions",
    response_model=list[SessionSuspicionListItem],
    summary="List completed sessions by suspicion tier",
)
async def list_sessions(
    suspicion_status: Optional[SuspicionStatus] = Query(
        None,
        alias="status",
        description="Filter by tier: green, amber, red",
    ),
    limit: int = Query(50, ge=1, le=200, description="Max items to return"),
    offset: int = Query(0, ge=0, description="Number of items to skip"),
    db: AsyncSession = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> list[SessionSuspicionListItem]:
    sessions = await store.list_sessions_by_suspicion(
        db, status=suspicion_status, limit=limit, offset=offset
    )
    logger.info("list_sessions", status=suspicion_status, count=len(sessions))
    return [SessionSuspicionListItem.model_validate(s) for s in sessions]
