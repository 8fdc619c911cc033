"""
Quizguard — Shared service singletons for the API layer.

Routes receive these through ``Depends`` so tests can swap them with
``app.dependency_overrides``.
"""

from __future__ import annotations

from quizguard.services.recompute_service import SuspicionRecomputeService
from quizguard.services.session_store import SessionStore
from quizguard.services.suspicion_service import SuspicionService

_suspicion_service: SuspicionService | None = None
_session_store: SessionStore | None = None
_recompute_service: SuspicionRecomputeService | None = None


def get_suspicion_service() -> SuspicionService:
    global _suspicion_service
    if _suspicion_service is None:
        _suspicion_service = SuspicionService()
    return _suspicion_service


def get_session_store() -> SessionStore:
    global _session_store
    if _session_store is None:
        _session_store = SessionStore()
    return _session_store


def get_recompute_service() -> SuspicionRecomputeService:
    global _recompute_service
    if _recompute_service is None:
        _recompute_service = SuspicionRecomputeService(
            store=get_session_store(),
            engine=get_suspicion_service(),
        )
    return _recompute_service
