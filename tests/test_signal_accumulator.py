"""Unit tests for SignalAccumulator — counters, streak, and sliding window."""
from quizguard.services.event_normalizer import FeatureRecord
from quizguard.services.signal_accumulator import AccumulatedSignals, SignalAccumulator


def record(time, points=1, correct=True, show_answer_used=False, word_count=0):
    return FeatureRecord(
        points=points,
        time=time,
        correct=correct,
        show_answer_used=show_answer_used,
        word_count=word_count,
    )


def records(times, **kwargs):
    return [record(t, **kwargs) for t in times]


class TestCounters:
    """Tests for the running counters."""

    def test_empty_fold_is_all_zero(self):
        assert SignalAccumulator.fold([]) == AccumulatedSignals()

    def test_total_counts_every_record(self):
        signals = SignalAccumulator.fold(records([30, 1, 0, 5]))
        assert signals.total == 4

    def test_fast2_counts_include_incorrect_answers(self):
        signals = SignalAccumulator.fold(
            [record(1, correct=True), record(2, correct=False), record(2.5, correct=True)]
        )
        assert signals.fast2_total == 2
        assert signals.fast2_correct == 1

    def test_predicate_counters(self):
        signals = SignalAccumulator.fold(
            [
                record(1, show_answer_used=True),   # fastCorrect, ultraFast, zeroOne, showAnswerFast
                record(3, points=5),                # fastCorrect (3 < 10), highPointUltraFast, timeRatioLow
                record(1.5, word_count=14),         # fastCorrect, ultraFast, wordyUltraFast
                record(30),                         # nothing
            ]
        )
        assert signals.fast_correct == 3
        assert signals.ultra_fast == 2
        assert signals.zero_one == 1
        assert signals.show_answer_fast == 1
        assert signals.high_point_ultra_fast == 1
        assert signals.wordy_ultra_fast == 1
        assert signals.time_ratio_low == 1


class TestStreak:
    """Tests for the longest run of answers at <= 2 seconds."""

    def test_longest_run(self):
        signals = SignalAccumulator.fold(records([1, 1, 3, 1, 1, 1, 5, 2]))
        assert signals.max_streak == 3

    def test_streak_boundary_inclusive(self):
        signals = SignalAccumulator.fold(records([2, 2, 2.0, 2.01]))
        assert signals.max_streak == 3

    def test_current_streak_resets(self):
        acc = SignalAccumulator()
        for r in records([1, 1, 9]):
            acc.push(r)
        assert acc.current_streak == 0
        assert acc.signals.max_streak == 2

    def test_whole_session_streak(self):
        signals = SignalAccumulator.fold(records([0.5] * 25))
        assert signals.max_streak == 25


class TestSlidingWindow:
    """Tests for the sticky window density flags."""

    def test_eight_fast_in_ten_sets_flag(self):
        signals = SignalAccumulator.fold(records([1] * 8 + [10] * 2))
        assert signals.window_fast3_dense is True

    def test_seven_fast_in_ten_does_not(self):
        signals = SignalAccumulator.fold(records([3] * 7 + [10] * 3))
        assert signals.window_fast3_dense is False

    def test_short_session_uses_whole_log(self):
        signals = SignalAccumulator.fold(records([1] * 8))
        assert signals.window_fast3_dense is True

    def test_fast_answers_spread_beyond_window(self):
        # Eight fast answers overall, but never more than four in any ten.
        signals = SignalAccumulator.fold(records([1] * 4 + [10] * 6 + [1] * 4))
        assert signals.window_fast3_dense is False

    def test_raw_time_used_in_window(self):
        signals = SignalAccumulator.fold(records([3.4] * 10))
        assert signals.window_fast3_dense is False

    def test_high_value_fast_sets_flag(self):
        signals = SignalAccumulator.fold(
            [record(3, points=6), record(20), record(2, points=8), record(20), record(1, points=6)]
        )
        assert signals.window_high_value_fast_dense is True

    def test_high_value_fast_requires_six_points(self):
        signals = SignalAccumulator.fold(records([1, 1, 1], points=5))
        assert signals.window_high_value_fast_dense is False

    def test_high_value_fast_counts_incorrect_answers(self):
        signals = SignalAccumulator.fold(records([1, 1, 1], points=6, correct=False))
        assert signals.window_high_value_fast_dense is True

    def test_high_value_spread_beyond_window(self):
        spread = (
            [record(1, points=6)] + records([20] * 9)
            + [record(1, points=6)] + records([20] * 9)
            + [record(1, points=6)]
        )
        signals = SignalAccumulator.fold(spread)
        assert signals.window_high_value_fast_dense is False

    def test_flags_are_sticky(self):
        acc = SignalAccumulator()
        for r in records([1] * 8) + [record(2, points=6)] * 3:
            acc.push(r)
        assert acc.signals.window_fast3_dense is True
        assert acc.signals.window_high_value_fast_dense is True

        for r in records([60] * 30):
            acc.push(r)
            assert acc.signals.window_fast3_dense is True
            assert acc.signals.window_high_value_fast_dense is True

    def test_window_is_bounded(self):
        acc = SignalAccumulator()
        for r in records([1] * 50):
            acc.push(r)
        assert len(acc._window) == 10
