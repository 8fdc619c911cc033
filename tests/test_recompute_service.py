"""Tests for SuspicionRecomputeService — batch and inline triggers."""
import asyncio
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from quizguard.services.recompute_service import RecomputeReport, SuspicionRecomputeService
from quizguard.services.session_store import SessionNotFoundError


def _fake_session_factory():
    """A stand-in for ``async_sessionmaker`` yielding one shared mock session."""
    db = AsyncMock()
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=db)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    return factory, db


def _fake_store(events):
    store = MagicMock()
    store.load_question_snapshot = AsyncMock(return_value={})
    store.load_answer_events = AsyncMock(return_value=events)
    store.save_suspicion = AsyncMock()
    store.list_completed_session_ids = AsyncMock(return_value=[])
    return store


@pytest.fixture
def session_factory():
    return _fake_session_factory()


@pytest.fixture
def store(log_factory):
    return _fake_store(log_factory([1] * 10))


@pytest.fixture
def service(session_factory, store):
    factory, _ = session_factory
    return SuspicionRecomputeService(
        session_factory=factory,
        store=store,
        concurrency=2,
        inline_timeout_seconds=0.05,
    )


class TestConstruction:
    """Explicit limits are honoured, never silently replaced."""

    @pytest.mark.parametrize("concurrency", [0, -2])
    def test_non_positive_concurrency_rejected(self, session_factory, store, concurrency):
        factory, _ = session_factory
        with pytest.raises(ValueError):
            SuspicionRecomputeService(session_factory=factory, store=store, concurrency=concurrency)

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_non_positive_inline_timeout_rejected(self, session_factory, store, timeout):
        factory, _ = session_factory
        with pytest.raises(ValueError):
            SuspicionRecomputeService(
                session_factory=factory, store=store, inline_timeout_seconds=timeout
            )

    def test_defaults_come_from_settings(self, session_factory, store):
        factory, _ = session_factory
        settings = MagicMock(SUSPICION_BATCH_CONCURRENCY=3, SUSPICION_INLINE_TIMEOUT_SECONDS=7.5)
        with patch("quizguard.services.recompute_service.get_settings", return_value=settings):
            service = SuspicionRecomputeService(session_factory=factory, store=store)
        assert service._concurrency == 3
        assert service._inline_timeout == 7.5


class TestRecomputeSession:
    """Tests for rescoring a single session."""

    @pytest.mark.asyncio
    async def test_scores_and_overwrites(self, service, store, session_factory, session_id):
        _, db = session_factory
        result = await service.recompute_session(session_id)

        assert result.status == "red"
        assert result.score == 0.25
        store.save_suspicion.assert_awaited_once()
        args = store.save_suspicion.await_args.args
        assert args[0] is db
        assert args[1] == session_id
        assert args[2] == result
        assert len(args[3]) == 10
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rolls_back_on_failure(self, service, store, session_factory, session_id):
        _, db = session_factory
        store.load_question_snapshot.side_effect = SessionNotFoundError(session_id)

        with pytest.raises(SessionNotFoundError):
            await service.recompute_session(session_id)

        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()
        store.save_suspicion.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_caller_owned_session_not_committed(self, service, session_factory, session_id):
        factory, _ = session_factory
        caller_db = AsyncMock()

        await service.recompute_session(session_id, db_session=caller_db)

        factory.assert_not_called()
        caller_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_log_writes_baseline(self, session_factory, session_id):
        factory, _ = session_factory
        store = _fake_store(events=[])
        service = SuspicionRecomputeService(session_factory=factory, store=store, concurrency=1)

        result = await service.recompute_session(session_id)

        assert result.status == "green"
        assert result.score == 0.0
        assert result.summary.total_questions == 0

    @pytest.mark.asyncio
    async def test_rerun_is_idempotent(self, service, store, session_id):
        first = await service.recompute_session(session_id)
        second = await service.recompute_session(session_id)

        assert first == second
        saved = [call.args[2] for call in store.save_suspicion.await_args_list]
        assert saved[0].model_dump_json() == saved[1].model_dump_json()


class TestBatchRecompute:
    """Tests for the batch trigger."""

    @pytest.mark.asyncio
    async def test_failure_is_isolated(self, service, store):
        good_a, bad, good_b = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()

        async def _snapshot(db, session_id):
            if session_id == bad:
                raise RuntimeError("corrupt question set")
            return {}

        store.load_question_snapshot.side_effect = _snapshot

        report = await service.recompute_sessions([good_a, bad, good_b])

        assert report == RecomputeReport(processed=2, failed=1, failed_session_ids=[bad])
        saved_ids = {call.args[1] for call in store.save_suspicion.await_args_list}
        assert saved_ids == {good_a, good_b}

    @pytest.mark.asyncio
    async def test_returns_processed_count(self, service, store):
        store.list_completed_session_ids.return_value = [uuid.uuid4() for _ in range(5)]

        processed = await service.recompute_all_completed()

        assert processed == 5
        assert store.save_suspicion.await_count == 5

    @pytest.mark.asyncio
    async def test_no_completed_sessions(self, service, store):
        report = await service.recompute_all_completed_report()
        assert report == RecomputeReport()
        store.save_suspicion.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, service, store):
        in_flight = 0
        peak = 0

        async def _snapshot(db, session_id):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return {}

        store.load_question_snapshot.side_effect = _snapshot

        report = await service.recompute_sessions([uuid.uuid4() for _ in range(6)])

        assert report.processed == 6
        assert peak <= 2


class TestInlineScoring:
    """Tests for the best-effort completion hook."""

    @pytest.mark.asyncio
    async def test_returns_result(self, service, session_id):
        result = await service.score_on_completion(session_id)
        assert result is not None
        assert result.status == "red"

    @pytest.mark.asyncio
    async def test_error_is_swallowed(self, service, store, session_id):
        store.save_suspicion.side_effect = RuntimeError("database unavailable")
        assert await service.score_on_completion(session_id) is None

    @pytest.mark.asyncio
    async def test_timeout_is_swallowed(self, service, store, session_id):
        async def _slow(db, session_id):
            await asyncio.sleep(1)
            return {}

        store.load_question_snapshot.side_effect = _slow

        assert await service.score_on_completion(session_id) is None
        store.save_suspicion.assert_not_awaited()
