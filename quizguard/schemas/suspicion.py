"""
Quizguard — Suspicion scoring boundary types.

``AnswerEvent`` is where malformed input is either recovered (null/missing
fields take their documented defaults) or rejected with a
``pydantic.ValidationError`` before it reaches the pure engine.  The output
models carry the camelCase field names that every persisted or transmitted
verdict must use.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

SuspicionStatus = Literal["green", "amber", "red"]


class AnswerEvent(BaseModel):
    """One answered question, as read from the session's answer log."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "frozen": True,
    }

    id: Optional[str] = None
    question_id: Optional[str] = None
    points_possible: int = Field(1, ge=1)
    time_spent_seconds: float = Field(0.0, ge=0, allow_inf_nan=False)
    is_correct: bool = False
    show_answer_used: bool = False
    answered_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_validator("id", "question_id", mode="before")
    @classmethod
    def _identifier_as_text(cls, v: Any) -> Any:
        if isinstance(v, (int, uuid.UUID)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("points_possible", mode="before")
    @classmethod
    def _default_points(cls, v: Any) -> Any:
        return 1 if v is None else v

    @field_validator("time_spent_seconds", mode="before")
    @classmethod
    def _default_time(cls, v: Any) -> Any:
        return 0.0 if v is None else v

    @field_validator("is_correct", "show_answer_used", mode="before")
    @classmethod
    def _default_flag(cls, v: Any) -> Any:
        return False if v is None else v


class QuestionText(BaseModel):
    """Question and answer text of one snapshot entry."""

    model_config = {"frozen": True}

    question: str = ""
    answer: str = ""

    @field_validator("question", "answer", mode="before")
    @classmethod
    def _text_or_empty(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""


# question id -> text, frozen at session creation
QuestionSnapshot = Mapping[str, QuestionText]


class SuspicionSummary(BaseModel):
    """Human-auditable breakdown of a verdict.  Rates are rounded to 3 places."""

    model_config = {"populate_by_name": True}

    fast_correct_rate: float = Field(0.0, alias="fastCorrectRate")
    ultra_fast_rate: float = Field(0.0, alias="ultraFastRate")
    zero_one_rate: float = Field(0.0, alias="zeroOneRate")
    show_answer_fast_rate: float = Field(0.0, alias="showAnswerFastRate")
    high_point_ultra_fast_rate: float = Field(0.0, alias="highPointUltraFastRate")
    wordy_ultra_fast_rate: float = Field(0.0, alias="wordyUltraFastRate")
    time_ratio_low_rate: float = Field(0.0, alias="timeRatioLowRate")
    fast2_share: float = Field(0.0, alias="fast2Share")
    fast2_accuracy: float = Field(0.0, alias="fast2Accuracy")
    max_consecutive_fast2_or_less: int = Field(0, alias="maxConsecutiveFast2OrLess")
    window_fast3_or_less_dense: bool = Field(False, alias="windowFast3OrLessDense")
    window_high_value_fast_dense: bool = Field(False, alias="windowHighValueFastDense")
    total_questions: int = Field(0, alias="totalQuestions")


class SessionSuspicionResult(BaseModel):
    """Verdict for one session: tier, score in [0, 1], and summary."""

    model_config = {"populate_by_name": True}

    status: SuspicionStatus
    score: float = Field(ge=0.0, le=1.0)
    summary: SuspicionSummary

    def to_wire(self) -> dict[str, Any]:
        """Return the camelCase dict used for storage and transport."""
        return self.model_dump(mode="json", by_alias=True)


# ── API request / response models ─────────────────────────────────────────────

class ScoreRequest(BaseModel):
    """Stateless scoring payload: an answer log plus its question snapshot."""

    answers: list[AnswerEvent] = Field(default_factory=list)
    questions: list[dict[str, Any]] = Field(default_factory=list)


class SessionCompleteResponse(BaseModel):
    session_id: uuid.UUID
    status: str
    completed_at: Optional[datetime] = None
    total_actual_time_spent_seconds: Optional[float] = None
    suspicion_scoring: str = "scheduled"


class RecomputeResponse(BaseModel):
    model_config = {"populate_by_name": True}

    processed: int
    failed: int
    failed_session_ids: list[uuid.UUID] = Field(
        default_factory=list, alias="failedSessionIds"
    )


class SessionSuspicionListItem(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    status: str
    completed_at: Optional[datetime] = None
    questions_count: int
    suspicion_status: Optional[SuspicionStatus] = None
    suspicion_score: Optional[float] = None
    suspicious_summary: Optional[dict] = None

    model_config = {"from_attributes": True}
