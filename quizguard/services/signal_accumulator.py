"""
Quizguard — SignalAccumulator: single forward pass over feature records

Second stage of the suspicion engine.  Folds the ordered ``FeatureRecord``
sequence into:

  1. **Running counters** — one per per-answer predicate, plus ``total``
     and the ``fast2Total`` / ``fast2Correct`` pair used for the
     speed-accuracy signal.
  2. **Streak tracker** — the longest run of consecutive answers at
     ``time <= 2``.  Order-dependent.
  3. **Sliding window** — a bounded deque of the last ``WINDOW_SIZE``
     records, re-scanned after every push.  Two sticky density flags are
     raised when the trailing window holds too many fast answers:

       * ``windowFast3OrLessDense``:   >= 8 records with ``time <= 3``
       * ``windowHighValueFastDense``: >= 3 records with
         ``points >= 6 and time <= 3``

     Once raised, a flag stays raised for the remainder of the session.

Every trailing window of up to ``WINDOW_SIZE`` records is examined, which
covers every window of that many consecutive records in the session.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterable

import structlog

from quizguard.services.event_normalizer import FeatureRecord

logger = structlog.get_logger("quizguard.signal_accumulator")

# ── Constants ────────────────────────────────────────────────────────────────

WINDOW_SIZE: int = 10
WINDOW_FAST3_MIN_COUNT: int = 8
WINDOW_HIGH_VALUE_MIN_COUNT: int = 3
HIGH_VALUE_MIN_POINTS: int = 6


@dataclass
class AccumulatedSignals:
    """Final state of the fold, handed to the ``ScoreSynthesizer``."""

    total: int = 0
    fast_correct: int = 0
    ultra_fast: int = 0
    zero_one: int = 0
    show_answer_fast: int = 0
    high_point_ultra_fast: int = 0
    wordy_ultra_fast: int = 0
    time_ratio_low: int = 0
    fast2_total: int = 0
    fast2_correct: int = 0
    max_streak: int = 0
    window_fast3_dense: bool = False
    window_high_value_fast_dense: bool = False


class SignalAccumulator:
    """Left fold over ``FeatureRecord`` objects.

    Usage::

        acc = SignalAccumulator()
        for record in records:
            acc.push(record)
        signals = acc.signals

    or simply ``SignalAccumulator.fold(records)``.
    """

    def __init__(self, window_size: int = WINDOW_SIZE) -> None:
        self._signals = AccumulatedSignals()
        self._current_streak = 0
        self._window: deque[FeatureRecord] = deque(maxlen=window_size)

    @classmethod
    def fold(cls, records: Iterable[FeatureRecord]) -> AccumulatedSignals:
        acc = cls()
        for record in records:
            acc.push(record)
        logger.debug(
            "fold_complete",
            total=acc.signals.total,
            max_streak=acc.signals.max_streak,
        )
        return acc.signals

    @property
    def signals(self) -> AccumulatedSignals:
        return self._signals

    @property
    def current_streak(self) -> int:
        return self._current_streak

    def push(self, record: FeatureRecord) -> None:
        """Consume the next record in session order."""
        self._count(record)
        self._track_streak(record)
        self._window.append(record)
        self._scan_window()

    # ══════════════════════════════════════════════════════════════════════
    # Counters
    # ══════════════════════════════════════════════════════════════════════

    def _count(self, record: FeatureRecord) -> None:
        s = self._signals
        s.total += 1

        if record.is_fast_correct:
            s.fast_correct += 1
        if record.is_ultra_fast:
            s.ultra_fast += 1
        if record.is_zero_one:
            s.zero_one += 1
        if record.is_show_answer_fast:
            s.show_answer_fast += 1
        if record.is_high_point_ultra_fast:
            s.high_point_ultra_fast += 1
        if record.is_wordy_ultra_fast:
            s.wordy_ultra_fast += 1
        if record.is_time_ratio_low:
            s.time_ratio_low += 1

        if record.is_fast2:
            s.fast2_total += 1
            if record.correct:
                s.fast2_correct += 1

    # ══════════════════════════════════════════════════════════════════════
    # Streak
    # ══════════════════════════════════════════════════════════════════════

    def _track_streak(self, record: FeatureRecord) -> None:
        if record.is_fast2:
            self._current_streak += 1
        else:
            self._current_streak = 0
        if self._current_streak > self._signals.max_streak:
            self._signals.max_streak = self._current_streak

    # ══════════════════════════════════════════════════════════════════════
    # Sliding window
    # ══════════════════════════════════════════════════════════════════════

    def _scan_window(self) -> None:
        s = self._signals
        if s.window_fast3_dense and s.window_high_value_fast_dense:
            return

        fast3 = 0
        high_value_fast = 0
        for record in self._window:
            if record.is_fast3:
                fast3 += 1
                if record.points >= HIGH_VALUE_MIN_POINTS:
                    high_value_fast += 1

        if fast3 >= WINDOW_FAST3_MIN_COUNT:
            s.window_fast3_dense = True
        if high_value_fast >= WINDOW_HIGH_VALUE_MIN_COUNT:
            s.window_high_value_fast_dense = True
