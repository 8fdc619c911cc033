"""Unit tests for EventNormalizer — answer events to feature records."""
from fractions import Fraction

import pytest
from pydantic import ValidationError

from quizguard.schemas.suspicion import AnswerEvent, QuestionText
from quizguard.services.event_normalizer import EventNormalizer, FeatureRecord, count_words
from quizguard.services.suspicion_service import build_question_snapshot


@pytest.fixture
def normalizer():
    return EventNormalizer()


class TestCountWords:
    """Tests for whitespace tokenisation."""

    def test_missing_text_is_zero(self):
        assert count_words(None) == 0
        assert count_words("") == 0

    def test_whitespace_only_is_zero(self):
        assert count_words("   \t\n ") == 0

    def test_runs_of_whitespace_collapse(self):
        assert count_words("  alpha   beta\tgamma\n delta ") == 4


class TestAnswerEventDefaults:
    """Tests for boundary recovery and validation."""

    def test_null_fields_take_defaults(self):
        event = AnswerEvent(
            question_id="q1",
            points_possible=None,
            time_spent_seconds=None,
            is_correct=None,
            show_answer_used=None,
        )
        assert event.points_possible == 1
        assert event.time_spent_seconds == 0.0
        assert event.is_correct is False
        assert event.show_answer_used is False

    def test_camel_case_payload_accepted(self):
        event = AnswerEvent.model_validate(
            {"questionId": 7, "pointsPossible": 3, "timeSpentSeconds": 4.5, "isCorrect": True}
        )
        assert event.question_id == "7"
        assert event.points_possible == 3
        assert event.time_spent_seconds == 4.5
        assert event.is_correct is True

    def test_negative_time_rejected(self):
        with pytest.raises(ValidationError):
            AnswerEvent(time_spent_seconds=-1)

    def test_non_positive_points_rejected(self):
        with pytest.raises(ValidationError):
            AnswerEvent(points_possible=0)

    def test_non_numeric_time_rejected(self):
        with pytest.raises(ValidationError):
            AnswerEvent(time_spent_seconds="fast")


class TestExpectedTime:
    """Tests for the expected-time heuristic."""

    def test_min_expected_floor(self):
        record = FeatureRecord(points=1, time=5, correct=True, show_answer_used=False, word_count=0)
        assert record.min_expected_seconds == 2

    def test_min_expected_scales_with_points(self):
        record = FeatureRecord(points=5, time=5, correct=True, show_answer_used=False, word_count=0)
        assert record.min_expected_seconds == 10

    def test_expected_adds_reading_time(self):
        record = FeatureRecord(points=1, time=5, correct=True, show_answer_used=False, word_count=14)
        assert record.expected_seconds == Fraction(24, 5)  # 2 + 0.2 * 14


class TestNormalize:
    """Tests for the full event -> record mapping."""

    def test_word_count_combines_question_and_answer(self, normalizer, event_factory, wordy_questions):
        snapshot = build_question_snapshot(wordy_questions)
        records = normalizer.normalize(
            [event_factory(0, question_id="q0"), event_factory(1, question_id="q1")],
            snapshot,
        )
        assert [r.word_count for r in records] == [14, 4]

    def test_unmatched_question_has_zero_words(self, normalizer, event_factory, wordy_questions):
        snapshot = build_question_snapshot(wordy_questions)
        records = normalizer.normalize([event_factory(0, question_id="missing")], snapshot)
        assert records[0].word_count == 0

    def test_missing_question_id_has_zero_words(self, normalizer, event_factory, wordy_questions):
        snapshot = build_question_snapshot(wordy_questions)
        records = normalizer.normalize([event_factory(0, question_id=None)], snapshot)
        assert records[0].word_count == 0

    def test_total_and_order_preserving(self, normalizer, log_factory):
        events = log_factory([5, 1, 9, 0, 2])
        records = normalizer.normalize(events, {})
        assert len(records) == len(events)
        assert [r.time for r in records] == [5, 1, 9, 0, 2]

    def test_fields_copied(self, normalizer, event_factory):
        event = event_factory(0, points_possible=4, time_spent_seconds=2.5, is_correct=False, show_answer_used=True)
        record = normalizer.normalize_one(event, {})
        assert record.points == 4
        assert record.time == 2.5
        assert record.correct is False
        assert record.show_answer_used is True


class TestPredicates:
    """Tests for the per-answer predicates."""

    def test_zero_time_is_not_fast_correct(self):
        record = FeatureRecord(points=1, time=0, correct=True, show_answer_used=False, word_count=0)
        assert not record.is_fast_correct
        assert record.is_ultra_fast
        assert record.is_zero_one

    def test_fast_correct_below_min_expected(self):
        record = FeatureRecord(points=3, time=5, correct=True, show_answer_used=False, word_count=0)
        assert record.is_fast_correct  # 0 < 5 < 6

    def test_incorrect_answers_never_count(self):
        record = FeatureRecord(points=6, time=0.5, correct=False, show_answer_used=True, word_count=20)
        assert record.triggered_signals() == []
        assert record.is_fast2
        assert record.is_fast3

    def test_time_ratio_boundary_inclusive(self):
        # expected = 10, time = 3 -> ratio exactly 0.3
        record = FeatureRecord(points=5, time=3, correct=True, show_answer_used=False, word_count=0)
        assert record.is_time_ratio_low

    @pytest.mark.parametrize(
        "time,points,word_count",
        [
            (0.66, 1, 1),   # 0.66 / 2.2
            (0.78, 1, 3),   # 0.78 / 2.6
            (1.26, 1, 11),  # 1.26 / 4.2
            (1.26, 2, 1),   # 1.26 / 4.2
        ],
    )
    def test_time_ratio_boundary_with_decimal_times(self, time, points, word_count):
        record = FeatureRecord(
            points=points, time=time, correct=True, show_answer_used=False, word_count=word_count
        )
        assert record.is_time_ratio_low

    def test_decimal_boundary_through_normalizer(self, normalizer, event_factory):
        event = event_factory(0, question_id="q", time_spent_seconds=0.66)
        record = normalizer.normalize_one(event, {"q": QuestionText(question="Hello")})
        assert record.word_count == 1
        assert record.is_time_ratio_low

    def test_time_ratio_above_boundary(self):
        record = FeatureRecord(points=5, time=3.01, correct=True, show_answer_used=False, word_count=0)
        assert not record.is_time_ratio_low

    def test_high_point_ultra_fast(self):
        record = FeatureRecord(points=4, time=3, correct=True, show_answer_used=False, word_count=0)
        assert record.is_high_point_ultra_fast
        assert not FeatureRecord(
            points=3, time=1, correct=True, show_answer_used=False, word_count=0
        ).is_high_point_ultra_fast

    def test_wordy_ultra_fast_needs_fourteen_words(self):
        wordy = FeatureRecord(points=1, time=2, correct=True, show_answer_used=False, word_count=14)
        short = FeatureRecord(points=1, time=2, correct=True, show_answer_used=False, word_count=13)
        assert wordy.is_wordy_ultra_fast
        assert not short.is_wordy_ultra_fast

    def test_show_answer_fast(self):
        record = FeatureRecord(points=1, time=2, correct=True, show_answer_used=True, word_count=0)
        assert record.is_show_answer_fast

    def test_triggered_signal_names(self):
        record = FeatureRecord(points=1, time=1, correct=True, show_answer_used=True, word_count=0)
        assert record.triggered_signals() == [
            "fastCorrect",
            "ultraFast",
            "zeroOne",
            "showAnswerFast",
        ]
