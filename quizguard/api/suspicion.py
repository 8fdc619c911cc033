"""
Quizguard — Stateless Suspicion Scoring API

Scores a posted answer log against its question set without touching the
database.  This is the same ``SuspicionService`` the batch and inline
triggers use.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends

from quizguard.api.deps import get_suspicion_service
from quizguard.schemas.suspicion import ScoreRequest
from quizguard.services.suspicion_service import SuspicionService

logger = structlog.get_logger("quizguard.api.suspicion")

router = APIRouter()


@router.post("/score", summary="Score an answer log")
async def score_answers(
    payload: ScoreRequest,
    engine: SuspicionService = Depends(get_suspicion_service),
) -> dict:
    result = engine.score_payload(payload.answers, payload.questions)
    logger.info(
        "score_answers",
        answers=len(payload.answers),
        status=result.status,
        score=result.score,
    )
    return result.to_wire()
