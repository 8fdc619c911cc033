"""
Quizguard — Main API Router

Aggregates all sub-routers under a single prefix so that ``quizguard.main``
can mount the entire API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from quizguard.api import sessions, suspicion
from quizguard.api.admin import suspicion as admin_suspicion

router = APIRouter()

router.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])
router.include_router(suspicion.router, prefix="/suspicion", tags=["Suspicion"])
router.include_router(
    admin_suspicion.router, prefix="/admin/suspicion", tags=["Admin - Suspicion"]
)
