"""
Typed requests and results exchanged with the response/prompt protocol.

PromptRequest and ParsedResult are tagged unions discriminated by ``kind``.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class InterviewMode(str, Enum):
    PRACTICE = "practice"
    TIMED = "timed"
    SURPRISE = "surprise"
    FAANG = "faang"
    STARTUP = "startup"
    BEHAVIORAL = "behavioral"

    @property
    def display_name(self) -> str:
        return _MODE_DETAILS[self][0]

    @property
    def description(self) -> str:
        return _MODE_DETAILS[self][1]

    @property
    def seconds_per_question(self) -> int:
        return _MODE_DETAILS[self][2]

    @property
    def difficulty(self) -> str:
        return _MODE_DETAILS[self][3]

    @property
    def is_time_limited(self) -> bool:
        return self.seconds_per_question > 0

    @property
    def formatted_time_limit(self) -> str:
        if not self.is_time_limited:
            return "No time limit"
        return f"{self.seconds_per_question // 60} min per question"

    @classmethod
    def from_name(cls, name: str) -> "InterviewMode":
        key = name.strip().upper().replace(" MODE", "").replace(" ", "_")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(
                f"Unknown interview mode '{name}'. Use one of: {', '.join(m.value for m in cls)}"
            )


# mode -> (display name, description, seconds per question, difficulty)
_MODE_DETAILS = {
    InterviewMode.PRACTICE: ("Practice Mode", "Unlimited time, hints available, relaxed environment. Perfect for beginners.", 0, "Easy"),
    InterviewMode.TIMED: ("Timed Mode", "Strict time limits per question. Simulates real interview pressure.", 120, "Medium"),
    InterviewMode.SURPRISE: ("Surprise Mode", "Random questions without preview. Tests your adaptability.", 90, "Medium"),
    InterviewMode.FAANG: ("FAANG Mode", "Tech giant style: algorithms, system design, and behavioral questions.", 180, "Hard"),
    InterviewMode.STARTUP: ("Startup Mode", "Fast-paced, culture fit, and versatile skills assessment.", 90, "Medium"),
    InterviewMode.BEHAVIORAL: ("Behavioral Mode", "STAR method focus, leadership principles, and soft skills.", 150, "Easy"),
}


DIFFICULTY_LABELS = {
    1: "Very Easy",
    2: "Easy",
    3: "Medium",
    4: "Hard",
    5: "Very Hard",
}


# ---------------------------------------------------------------------------
# Session data supplied by the interactive layer
# ---------------------------------------------------------------------------

class AnsweredQuestion(BaseModel):
    question: str
    category: str = "General"
    answer: Optional[str] = None
    duration_seconds: Optional[int] = None


class SessionSummary(BaseModel):
    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    mode: InterviewMode = InterviewMode.PRACTICE
    session_date: datetime = Field(default_factory=_utcnow)
    duration_seconds: int = 0
    questions: list[AnsweredQuestion] = []

    @field_validator("mode", mode="before")
    @classmethod
    def _mode_from_name(cls, value):
        if isinstance(value, str):
            return InterviewMode.from_name(value)
        return value

    @property
    def answered_count(self) -> int:
        return sum(1 for q in self.questions if q.answer)

    @property
    def completion_rate(self) -> int:
        """Percentage of questions answered, rounded down."""
        if not self.questions:
            return 0
        return int(self.answered_count / len(self.questions) * 100)


# ---------------------------------------------------------------------------
# PromptRequest variants
# ---------------------------------------------------------------------------

class QuestionGenerationRequest(BaseModel):
    kind: Literal["question_generation"] = "question_generation"
    resume_text: str
    job_text: str
    mode: InterviewMode = InterviewMode.PRACTICE
    count: int = Field(default=5, ge=1, le=50)
    difficulty_level: Optional[int] = Field(default=None, ge=1, le=5)
    focus_areas: list[str] = []

    @field_validator("mode", mode="before")
    @classmethod
    def _mode_from_name(cls, value):
        if isinstance(value, str):
            return InterviewMode.from_name(value)
        return value

    @property
    def difficulty_label(self) -> str:
        if self.difficulty_level is None:
            return self.mode.difficulty
        return DIFFICULTY_LABELS[self.difficulty_level]


class AnswerEvaluationRequest(BaseModel):
    kind: Literal["answer_evaluation"] = "answer_evaluation"
    question_text: str
    question_category: str = "General"
    answer_text: str


class ResumeAnalysisRequest(BaseModel):
    kind: Literal["resume_analysis"] = "resume_analysis"
    resume_text: str
    job_text: str


class SessionAnalyticsRequest(BaseModel):
    kind: Literal["session_analytics"] = "session_analytics"
    session_summary: SessionSummary


PromptRequest = Annotated[
    Union[
        QuestionGenerationRequest,
        AnswerEvaluationRequest,
        ResumeAnalysisRequest,
        SessionAnalyticsRequest,
    ],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# ParsedResult variants
# ---------------------------------------------------------------------------

class Question(BaseModel):
    text: str
    category: str = "General"
    difficulty: str = "Medium"
    time_limit_seconds: int = 0


class QuestionList(BaseModel):
    kind: Literal["question_list"] = "question_list"
    questions: list[Question] = []
    degraded_fields: list[str] = []


class AnswerScore(BaseModel):
    kind: Literal["answer_score"] = "answer_score"
    score: float = 7.0
    feedback: str = ""
    word_count: int = 0
    filler_word_count: int = 0
    degraded_fields: list[str] = []

    @field_validator("score")
    @classmethod
    def _clamp_score(cls, value: float) -> float:
        return clamp(value, 0.0, 10.0)

    @property
    def filler_word_rate(self) -> float:
        if self.word_count == 0:
            return 0.0
        return self.filler_word_count / self.word_count * 100


class ResumeMatch(BaseModel):
    kind: Literal["resume_match"] = "resume_match"
    score: int = 75
    overall_feedback: str = ""
    strengths: list[str] = []
    weaknesses: list[str] = []
    suggestions: list[str] = []
    matching_skills: list[str] = []
    missing_skills: list[str] = []
    degraded_fields: list[str] = []

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value) -> int:
        return int(round(clamp(float(value), 0, 100)))

    @property
    def match_level(self) -> str:
        if self.score >= 90:
            return "Excellent Match"
        if self.score >= 75:
            return "Strong Match"
        if self.score >= 60:
            return "Good Match"
        if self.score >= 40:
            return "Fair Match"
        return "Weak Match"


class SessionAnalytics(BaseModel):
    kind: Literal["session_analytics"] = "session_analytics"
    session_id: str = ""
    session_date: datetime = Field(default_factory=_utcnow)
    mode: Optional[InterviewMode] = None
    overall_score: float = 7.0
    subscores: dict[str, float] = {}
    performance_level: str = "Good"
    strengths: list[str] = []
    weaknesses: list[str] = []
    suggestions: list[str] = []
    narrative: str = ""
    generated_by: Optional[str] = None
    degraded_fields: list[str] = []

    @field_validator("mode", mode="before")
    @classmethod
    def _mode_from_name(cls, value):
        if isinstance(value, str):
            return InterviewMode.from_name(value)
        return value

    @field_validator("overall_score")
    @classmethod
    def _clamp_overall(cls, value: float) -> float:
        return clamp(value, 0.0, 10.0)

    @field_validator("subscores")
    @classmethod
    def _clamp_subscores(cls, value: dict[str, float]) -> dict[str, float]:
        return {category: clamp(score, 0.0, 10.0) for category, score in value.items()}

    @property
    def score_level(self) -> str:
        if self.overall_score >= 9.0:
            return "Excellent"
        if self.overall_score >= 8.0:
            return "Very Good"
        if self.overall_score >= 7.0:
            return "Good"
        if self.overall_score >= 6.0:
            return "Fair"
        return "Needs Improvement"

    def improvement_over(self, previous: Optional["SessionAnalytics"]) -> float:
        if previous is None:
            return 0.0
        return self.overall_score - previous.overall_score


ParsedResult = Annotated[
    Union[QuestionList, AnswerScore, ResumeMatch, SessionAnalytics],
    Field(discriminator="kind"),
]
