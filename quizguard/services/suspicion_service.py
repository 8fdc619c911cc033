"""
Quizguard — SuspicionService: the one shared suspicion scoring entry point

Both the batch recompute driver and the inline completion hook (and the
stateless ``/suspicion/score`` endpoint) call ``SuspicionService`` so that
there is exactly one implementation of the formula.  A call:

  1. puts the answer log into its canonical order (``answered_at``, then
     ``created_at``, then ``id``; missing values last),
  2. normalises it into feature records against the session's frozen
     question snapshot,
  3. folds the records into counters, streak and window flags,
  4. synthesises the weighted score, tier and summary.

The computation is a pure function of ``(events, questions)``: it performs
no I/O and re-running it on unchanged input yields an identical result.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Sequence

import structlog

from quizguard.schemas.suspicion import (
    AnswerEvent,
    QuestionSnapshot,
    QuestionText,
    SessionSuspicionResult,
)
from quizguard.services.event_normalizer import EventNormalizer
from quizguard.services.score_synthesizer import ScoreSynthesizer
from quizguard.services.signal_accumulator import SignalAccumulator

logger = structlog.get_logger("quizguard.suspicion_service")


# ── Canonical ordering ───────────────────────────────────────────────────────

def _timestamp(value: datetime | None) -> float:
    if value is None:
        return 0.0
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def _order_key(event: AnswerEvent) -> tuple:
    return (
        event.answered_at is None,
        _timestamp(event.answered_at),
        event.created_at is None,
        _timestamp(event.created_at),
        event.id is None,
        event.id or "",
    )


def order_answer_events(events: Iterable[AnswerEvent]) -> list[AnswerEvent]:
    """Return the events in session order.

    ``answered_at`` ascending, ties broken by ``created_at`` and then by
    ``id``; absent values sort last.  The sort is stable, so events that
    carry none of the three keep their relative input order.
    """
    return sorted(events, key=_order_key)


# ── Question snapshot ────────────────────────────────────────────────────────

def build_question_snapshot(raw: Any) -> dict[str, QuestionText]:
    """Build a ``QuestionSnapshot`` from a session's stored question set.

    Accepts the stored JSON array (``[{id, question, answer, ...}]``) or an
    already keyed ``{id: {question, answer}}`` mapping.  Entries without an
    id are skipped, the first entry for a repeated id wins, and non-string
    text is treated as empty.
    """
    snapshot: dict[str, QuestionText] = {}

    if isinstance(raw, Mapping):
        items = [
            (key, value)
            for key, value in raw.items()
            if isinstance(value, Mapping)
        ]
    elif isinstance(raw, (list, tuple)):
        items = [
            (entry.get("id"), entry)
            for entry in raw
            if isinstance(entry, Mapping)
        ]
    else:
        items = []

    for question_id, entry in items:
        if question_id is None:
            continue
        key = str(question_id)
        if key in snapshot:
            continue
        snapshot[key] = QuestionText(
            question=entry.get("question"),
            answer=entry.get("answer"),
        )
    return snapshot


# ── Per-answer audit flags ───────────────────────────────────────────────────

@dataclass(frozen=True)
class AnswerFlag:
    """Explanatory per-answer annotation; never feeds the session score."""

    log_id: str | None
    suspicious: bool
    reason: str | None
    threshold_seconds: int


class SuspicionService:
    """Runs the Normalizer -> Accumulator -> Synthesizer pipeline."""

    def __init__(self) -> None:
        self._normalizer = EventNormalizer()
        self._synthesizer = ScoreSynthesizer()

    def score_session(
        self,
        events: Sequence[AnswerEvent],
        questions: QuestionSnapshot,
    ) -> SessionSuspicionResult:
        """Compute the verdict for one session's complete answer log."""
        ordered = order_answer_events(events)
        records = self._normalizer.normalize(ordered, questions)
        signals = SignalAccumulator.fold(records)
        result = self._synthesizer.synthesize(signals)

        logger.debug(
            "score_session_complete",
            total=signals.total,
            status=result.status,
            score=result.score,
        )
        return result

    def flag_answers(
        self,
        events: Sequence[AnswerEvent],
        questions: QuestionSnapshot,
    ) -> list[AnswerFlag]:
        """Per-answer audit flags, in session order."""
        ordered = order_answer_events(events)
        records = self._normalizer.normalize(ordered, questions)

        flags: list[AnswerFlag] = []
        for event, record in zip(ordered, records):
            signals = record.triggered_signals()
            flags.append(
                AnswerFlag(
                    log_id=event.id,
                    suspicious=bool(signals),
                    reason=",".join(signals) if signals else None,
                    threshold_seconds=record.min_expected_seconds,
                )
            )
        return flags

    def score_payload(
        self,
        answers: Sequence[AnswerEvent],
        questions: Any,
    ) -> SessionSuspicionResult:
        """Score an answer log against a raw (unparsed) question set."""
        return self.score_session(answers, build_question_snapshot(questions))
