"""
Quizguard — ScoreSynthesizer: accumulated signals -> verdict

Third stage of the suspicion engine.  The score is a fixed weighted sum:

    score = 0.30 * wordyUltraFastRate
          + 0.25 * highPointUltraFastRate
          + 0.20 * timeRatioLowRate
          + 0.15 * speedAccuracyFlag
          + 0.10 * streakOrBlockFlag

capped at 1, and the tier is ``red`` at >= 0.25, ``amber`` at >= 0.15,
``green`` otherwise.  Rates enter the score at full precision; the summary
reports them rounded half-up to 3 decimals.  All arithmetic is done on
exact fractions so that a score sitting on a threshold always lands in the
higher tier.
"""

from __future__ import annotations

import math
from fractions import Fraction

from quizguard.schemas.suspicion import (
    SessionSuspicionResult,
    SuspicionStatus,
    SuspicionSummary,
)
from quizguard.services.signal_accumulator import AccumulatedSignals

# ── Policy constants ─────────────────────────────────────────────────────────

WEIGHT_WORDY_ULTRA_FAST = Fraction(30, 100)
WEIGHT_HIGH_POINT_ULTRA_FAST = Fraction(25, 100)
WEIGHT_TIME_RATIO_LOW = Fraction(20, 100)
WEIGHT_SPEED_ACCURACY = Fraction(15, 100)
WEIGHT_STREAK_OR_BLOCK = Fraction(10, 100)

RED_THRESHOLD = Fraction(25, 100)
AMBER_THRESHOLD = Fraction(15, 100)

FAST2_SHARE_MIN = Fraction(3, 10)
FAST2_ACCURACY_MIN = Fraction(9, 10)
STREAK_MIN: int = 5

SUMMARY_DECIMALS: int = 3


def ratio(numerator: int, denominator: int) -> Fraction:
    """``numerator / denominator`` as an exact fraction, 0 for an empty denominator."""
    if denominator <= 0:
        return Fraction(0)
    return Fraction(numerator, denominator)


def round_half_up(value: Fraction, decimals: int = SUMMARY_DECIMALS) -> float:
    scale = 10 ** decimals
    return math.floor(value * scale + Fraction(1, 2)) / scale


class ScoreSynthesizer:
    """Combines ``AccumulatedSignals`` into a ``SessionSuspicionResult``."""

    def synthesize(self, signals: AccumulatedSignals) -> SessionSuspicionResult:
        total = signals.total

        wordy_rate = ratio(signals.wordy_ultra_fast, total)
        high_point_rate = ratio(signals.high_point_ultra_fast, total)
        time_ratio_rate = ratio(signals.time_ratio_low, total)
        fast2_share = ratio(signals.fast2_total, total)
        fast2_accuracy = ratio(signals.fast2_correct, signals.fast2_total)

        speed_accuracy_flag = self._speed_accuracy_flag(fast2_share, fast2_accuracy)
        streak_or_block_flag = self._streak_or_block_flag(signals)

        score = (
            WEIGHT_WORDY_ULTRA_FAST * wordy_rate
            + WEIGHT_HIGH_POINT_ULTRA_FAST * high_point_rate
            + WEIGHT_TIME_RATIO_LOW * time_ratio_rate
            + WEIGHT_SPEED_ACCURACY * speed_accuracy_flag
            + WEIGHT_STREAK_OR_BLOCK * streak_or_block_flag
        )
        score = min(score, Fraction(1))

        summary = SuspicionSummary(
            fast_correct_rate=round_half_up(ratio(signals.fast_correct, total)),
            ultra_fast_rate=round_half_up(ratio(signals.ultra_fast, total)),
            zero_one_rate=round_half_up(ratio(signals.zero_one, total)),
            show_answer_fast_rate=round_half_up(ratio(signals.show_answer_fast, total)),
            high_point_ultra_fast_rate=round_half_up(high_point_rate),
            wordy_ultra_fast_rate=round_half_up(wordy_rate),
            time_ratio_low_rate=round_half_up(time_ratio_rate),
            fast2_share=round_half_up(fast2_share),
            fast2_accuracy=round_half_up(fast2_accuracy),
            max_consecutive_fast2_or_less=signals.max_streak,
            window_fast3_or_less_dense=signals.window_fast3_dense,
            window_high_value_fast_dense=signals.window_high_value_fast_dense,
            total_questions=total,
        )

        return SessionSuspicionResult(
            status=self.classify(score),
            score=float(score),
            summary=summary,
        )

    @staticmethod
    def classify(score: Fraction | float) -> SuspicionStatus:
        """Map a score onto its tier using the fixed thresholds."""
        if score >= RED_THRESHOLD:
            return "red"
        if score >= AMBER_THRESHOLD:
            return "amber"
        return "green"

    @staticmethod
    def _speed_accuracy_flag(fast2_share: Fraction, fast2_accuracy: Fraction) -> int:
        return int(fast2_share >= FAST2_SHARE_MIN and fast2_accuracy >= FAST2_ACCURACY_MIN)

    @staticmethod
    def _streak_or_block_flag(signals: AccumulatedSignals) -> int:
        return int(
            signals.max_streak >= STREAK_MIN
            or signals.window_fast3_dense
            or signals.window_high_value_fast_dense
        )
