"""Shared pytest fixtures for Quizguard tests."""
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from quizguard.schemas.suspicion import AnswerEvent

SESSION_START = datetime(2025, 9, 6, 9, 0, 0, tzinfo=timezone.utc)


def make_event(index=0, **overrides):
    """An answered question ``index`` steps into the session.

    Defaults to a correct, slow, 1-point answer on question ``q{index}`` so
    that tests only spell out the fields they care about.
    """
    fields = {
        "id": str(uuid.UUID(int=index + 1)),
        "question_id": f"q{index}",
        "points_possible": 1,
        "time_spent_seconds": 30,
        "is_correct": True,
        "show_answer_used": False,
        "answered_at": SESSION_START + timedelta(seconds=40 * index),
    }
    fields.update(overrides)
    return AnswerEvent(**fields)


def make_log(times, **overrides):
    """One event per entry of ``times``, in session order."""
    return [
        make_event(i, time_spent_seconds=t, **overrides)
        for i, t in enumerate(times)
    ]


@pytest.fixture
def event_factory():
    return make_event


@pytest.fixture
def log_factory():
    return make_log


@pytest.fixture
def empty_snapshot():
    return {}


@pytest.fixture
def wordy_questions():
    """Stored question set: q0 totals 14 words, q1 totals 4 words."""
    return [
        {
            "id": "q0",
            "question": "Which organelle is known as the powerhouse of the cell?",
            "answer": "Mitochondria produce ATP energy",
        },
        {
            "id": "q1",
            "question": "Capital of France?",
            "answer": "Paris",
        },
    ]


@pytest.fixture
def session_id():
    return uuid.uuid4()
