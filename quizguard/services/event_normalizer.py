"""
Quizguard — EventNormalizer: answer log -> per-answer feature records

First stage of the suspicion engine.  Every ``AnswerEvent`` maps to exactly
one ``FeatureRecord`` (order-preserving, nothing dropped).  The record
carries the timing, correctness, point value, show-answer usage and the
combined question+answer word count, plus the expected-time heuristic:

    minExpectedSeconds = max(2, 2 * points)
    expectedSeconds    = minExpectedSeconds + 0.2 * wordCount

The per-answer predicates that the accumulator counts are defined on the
record itself so that the session counters and the per-answer audit flags
can never disagree.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import Iterable

import structlog

from quizguard.schemas.suspicion import AnswerEvent, QuestionSnapshot

logger = structlog.get_logger("quizguard.event_normalizer")

# ── Constants ────────────────────────────────────────────────────────────────

MIN_EXPECTED_FLOOR_SECONDS: int = 2
SECONDS_PER_POINT: int = 2
SECONDS_PER_WORD = Fraction(1, 5)

ULTRA_FAST_SECONDS: int = 2
ZERO_ONE_SECONDS: int = 1
FAST3_SECONDS: int = 3
HIGH_POINT_MIN: int = 4
WORDY_MIN_WORDS: int = 14
TIME_RATIO_LOW_MAX = Fraction(3, 10)


def count_words(text: str | None) -> int:
    """Number of whitespace-delimited tokens; empty or missing text is 0."""
    if not text:
        return 0
    return len(text.split())


@dataclass(frozen=True)
class FeatureRecord:
    """Derived, per-answer view consumed by the ``SignalAccumulator``."""

    points: int
    time: float
    correct: bool
    show_answer_used: bool
    word_count: int

    @property
    def min_expected_seconds(self) -> int:
        return max(MIN_EXPECTED_FLOOR_SECONDS, SECONDS_PER_POINT * self.points)

    @property
    def expected_seconds(self) -> Fraction:
        return self.min_expected_seconds + SECONDS_PER_WORD * self.word_count

    # ── Per-answer predicates ──────────────────────────────────────────

    @property
    def is_fast2(self) -> bool:
        return self.time <= ULTRA_FAST_SECONDS

    @property
    def is_fast3(self) -> bool:
        return self.time <= FAST3_SECONDS

    @property
    def is_fast_correct(self) -> bool:
        return self.correct and 0 < self.time < self.min_expected_seconds

    @property
    def is_ultra_fast(self) -> bool:
        return self.correct and self.time <= ULTRA_FAST_SECONDS

    @property
    def is_zero_one(self) -> bool:
        return self.correct and self.time <= ZERO_ONE_SECONDS

    @property
    def is_show_answer_fast(self) -> bool:
        return self.show_answer_used and self.correct and self.time <= ULTRA_FAST_SECONDS

    @property
    def is_high_point_ultra_fast(self) -> bool:
        return self.correct and self.points >= HIGH_POINT_MIN and self.time <= FAST3_SECONDS

    @property
    def is_wordy_ultra_fast(self) -> bool:
        return (
            self.correct
            and self.word_count >= WORDY_MIN_WORDS
            and self.time <= ULTRA_FAST_SECONDS
        )

    @property
    def is_time_ratio_low(self) -> bool:
        expected = self.expected_seconds
        if not self.correct or expected <= 0:
            return False
        # compare on the recorded decimal, not the float's binary expansion
        return Fraction(str(self.time)) / expected <= TIME_RATIO_LOW_MAX

    def triggered_signals(self) -> list[str]:
        """Names of the per-answer predicates this record satisfies."""
        checks = (
            ("fastCorrect", self.is_fast_correct),
            ("ultraFast", self.is_ultra_fast),
            ("zeroOne", self.is_zero_one),
            ("showAnswerFast", self.is_show_answer_fast),
            ("highPointUltraFast", self.is_high_point_ultra_fast),
            ("wordyUltraFast", self.is_wordy_ultra_fast),
            ("timeRatioLow", self.is_time_ratio_low),
        )
        return [name for name, hit in checks if hit]


class EventNormalizer:
    """Maps an ordered answer log onto index-aligned ``FeatureRecord`` objects.

    A ``question_id`` that is absent from the snapshot contributes zero
    words rather than failing the computation.
    """

    def normalize(
        self,
        events: Iterable[AnswerEvent],
        questions: QuestionSnapshot,
    ) -> list[FeatureRecord]:
        records = [self.normalize_one(event, questions) for event in events]
        logger.debug("normalize_complete", records=len(records))
        return records

    def normalize_one(
        self,
        event: AnswerEvent,
        questions: QuestionSnapshot,
    ) -> FeatureRecord:
        return FeatureRecord(
            points=event.points_possible,
            time=event.time_spent_seconds,
            correct=event.is_correct,
            show_answer_used=event.show_answer_used,
            word_count=self._word_count(event.question_id, questions),
        )

    @staticmethod
    def _word_count(question_id: str | None, questions: QuestionSnapshot) -> int:
        if question_id is None:
            return 0
        entry = questions.get(question_id)
        if entry is None:
            return 0
        return count_words(entry.question) + count_words(entry.answer)
