"""
Turn a model reply into a typed result.

Parsing is total. Each field is extracted independently; a field that cannot
be extracted takes its documented default and is named in
``degraded_fields``. If parsing itself blows up, the result is rebuilt
entirely from defaults with the raw reply as its feedback text.
"""

from decimal import Decimal
from typing import List, Optional, Union, assert_never

import structlog

from interview_coach.models.types import (
    AnswerEvaluationRequest,
    AnswerScore,
    ParsedResult,
    PromptRequest,
    Question,
    QuestionGenerationRequest,
    QuestionList,
    ResumeAnalysisRequest,
    ResumeMatch,
    SessionAnalytics,
    SessionAnalyticsRequest,
)
from interview_coach.protocol import grammar as g
from interview_coach.protocol.answer_metrics import count_filler_words, count_words
from interview_coach.protocol.extract import (
    categorize_question,
    extract_list,
    extract_number,
    extract_numbered_lines,
    extract_section,
    normalize_labels,
)

logger = structlog.get_logger(__name__)


def _field_name(label: str) -> str:
    return label.rstrip(":").lower()


class _Extractor:
    """Applies extraction rules to one reply and records what had to be defaulted."""

    def __init__(self, raw: str):
        self.raw = raw or ""
        self.text = normalize_labels(self.raw)
        self.degraded: List[str] = []

    def number(self, label: str, default: float) -> float:
        value = extract_number(self.text, label)
        if value is None:
            self.degraded.append(_field_name(label))
            return default
        return value

    def section(self, label: str, default: str) -> str:
        value = extract_section(self.text, label)
        if not value:
            self.degraded.append(_field_name(label))
            return default
        return value

    def items(self, label: str, placeholder: Optional[tuple] = None) -> List[str]:
        value = extract_list(self.text, label)
        if value is None or (placeholder and not value):
            self.degraded.append(_field_name(label))
            return list(placeholder or ())
        return value


def _parse_questions(request: QuestionGenerationRequest, raw: str) -> QuestionList:
    lines = extract_numbered_lines(normalize_labels(raw))
    questions = [
        Question(
            text=text,
            category=categorize_question(text),
            difficulty=request.difficulty_label,
            time_limit_seconds=request.mode.seconds_per_question,
        )
        for text in lines
    ]
    return QuestionList(questions=questions, degraded_fields=[] if questions else ["questions"])


def _parse_answer(request: AnswerEvaluationRequest, raw: str) -> AnswerScore:
    ex = _Extractor(raw)
    score = ex.number(g.SCORE, g.DEFAULT_ANSWER_SCORE)
    feedback = ex.section(g.FEEDBACK, ex.raw)
    return AnswerScore(
        score=score,
        feedback=feedback,
        word_count=count_words(request.answer_text),
        filler_word_count=count_filler_words(request.answer_text),
        degraded_fields=ex.degraded,
    )


def _parse_resume(request: ResumeAnalysisRequest, raw: str) -> ResumeMatch:
    ex = _Extractor(raw)
    score = ex.number(g.MATCH_SCORE, g.DEFAULT_MATCH_SCORE)
    return ResumeMatch(
        score=score,
        overall_feedback=ex.section(g.OVERALL_FEEDBACK, ex.raw),
        strengths=ex.items(g.STRENGTHS),
        weaknesses=ex.items(g.WEAKNESSES),
        suggestions=ex.items(g.SUGGESTIONS),
        matching_skills=ex.items(g.MATCHING_SKILLS),
        missing_skills=ex.items(g.MISSING_SKILLS),
        degraded_fields=ex.degraded,
    )


def _parse_analytics(request: SessionAnalyticsRequest, raw: str) -> SessionAnalytics:
    ex = _Extractor(raw)
    summary = request.session_summary
    overall = ex.number(g.OVERALL_SCORE, g.DEFAULT_ANALYTICS_SCORE)
    subscores = {
        category: ex.number(label, g.DEFAULT_ANALYTICS_SCORE)
        for label, category in g.SUBSCORE_LABELS.items()
    }
    return SessionAnalytics(
        session_id=summary.session_id,
        session_date=summary.session_date,
        mode=summary.mode,
        overall_score=overall,
        subscores=subscores,
        performance_level=ex.section(g.PERFORMANCE_LEVEL, g.DEFAULT_PERFORMANCE_LEVEL),
        strengths=ex.items(g.STRENGTHS, g.PLACEHOLDER_STRENGTHS),
        weaknesses=ex.items(g.WEAKNESSES, g.PLACEHOLDER_WEAKNESSES),
        narrative=ex.section(g.DETAILED_FEEDBACK, ex.raw),
        suggestions=ex.items(g.IMPROVEMENT_SUGGESTIONS),
        degraded_fields=ex.degraded,
    )


def fallback_result(request: PromptRequest, raw: str) -> ParsedResult:
    """Result built purely from defaults, with the raw reply folded into the free-text field."""
    raw = raw or ""
    if isinstance(request, QuestionGenerationRequest):
        return QuestionList(degraded_fields=["questions"])
    elif isinstance(request, AnswerEvaluationRequest):
        return AnswerScore(
            score=g.DEFAULT_ANSWER_SCORE,
            feedback=raw,
            word_count=count_words(request.answer_text),
            filler_word_count=count_filler_words(request.answer_text),
            degraded_fields=[_field_name(g.SCORE), _field_name(g.FEEDBACK)],
        )
    elif isinstance(request, ResumeAnalysisRequest):
        return ResumeMatch(
            score=g.DEFAULT_MATCH_SCORE,
            overall_feedback=raw,
            degraded_fields=["all"],
        )
    elif isinstance(request, SessionAnalyticsRequest):
        summary = request.session_summary
        return SessionAnalytics(
            session_id=summary.session_id,
            session_date=summary.session_date,
            mode=summary.mode,
            overall_score=g.DEFAULT_ANALYTICS_SCORE,
            subscores={category: g.DEFAULT_ANALYTICS_SCORE for category in g.SUBSCORE_LABELS.values()},
            performance_level=g.DEFAULT_PERFORMANCE_LEVEL,
            strengths=list(g.PLACEHOLDER_STRENGTHS),
            weaknesses=list(g.PLACEHOLDER_WEAKNESSES),
            narrative=raw,
            degraded_fields=["all"],
        )
    else:
        assert_never(request)


def parse(request: PromptRequest, raw: str) -> ParsedResult:
    """
    Parse a model reply for the given request.

    Args:
        request: The request the reply answers
        raw: Reply text exactly as returned by the provider

    Returns:
        ParsedResult: Always fully populated; never raises for any reply text
    """
    try:
        if isinstance(request, QuestionGenerationRequest):
            result = _parse_questions(request, raw)
        elif isinstance(request, AnswerEvaluationRequest):
            result = _parse_answer(request, raw)
        elif isinstance(request, ResumeAnalysisRequest):
            result = _parse_resume(request, raw)
        elif isinstance(request, SessionAnalyticsRequest):
            result = _parse_analytics(request, raw)
        else:
            assert_never(request)
    except Exception:
        logger.warning("Reply parsing failed, using fallback", request_kind=request.kind, exc_info=True)
        return fallback_result(request, raw)

    if result.degraded_fields:
        logger.warning("Reply parsed with defaults", request_kind=request.kind, degraded_fields=result.degraded_fields)
    return result


def _bullets(items: List[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def _number(value: Union[int, float]) -> str:
    # Positional notation only; the extraction pattern does not read exponents
    return format(Decimal(repr(value)), "f")


def build_canonical_reply(result: ParsedResult) -> str:
    """Render a result using exactly the label grammar the templates request."""
    if isinstance(result, QuestionList):
        return "\n".join(f"{number}. {q.text}" for number, q in enumerate(result.questions, start=1))
    elif isinstance(result, AnswerScore):
        return f"{g.SCORE} {_number(result.score)}\n\n{g.FEEDBACK}\n{result.feedback}\n"
    elif isinstance(result, ResumeMatch):
        return (
            f"{g.MATCH_SCORE} {_number(result.score)}\n\n"
            f"{g.OVERALL_FEEDBACK}\n{result.overall_feedback}\n\n"
            f"{g.STRENGTHS}\n{_bullets(result.strengths)}\n\n"
            f"{g.WEAKNESSES}\n{_bullets(result.weaknesses)}\n\n"
            f"{g.SUGGESTIONS}\n{_bullets(result.suggestions)}\n\n"
            f"{g.MATCHING_SKILLS}\n{_bullets(result.matching_skills)}\n\n"
            f"{g.MISSING_SKILLS}\n{_bullets(result.missing_skills)}\n"
        )
    elif isinstance(result, SessionAnalytics):
        subscore_lines = "\n".join(
            f"{label} {_number(result.subscores.get(category, g.DEFAULT_ANALYTICS_SCORE))}"
            for label, category in g.SUBSCORE_LABELS.items()
        )
        return (
            f"{g.OVERALL_SCORE} {_number(result.overall_score)}\n\n"
            f"{subscore_lines}\n\n"
            f"{g.PERFORMANCE_LEVEL} {result.performance_level}\n\n"
            f"{g.STRENGTHS}\n{_bullets(result.strengths)}\n\n"
            f"{g.WEAKNESSES}\n{_bullets(result.weaknesses)}\n\n"
            f"{g.DETAILED_FEEDBACK}\n{result.narrative}\n\n"
            f"{g.IMPROVEMENT_SUGGESTIONS}\n{_bullets(result.suggestions)}\n"
        )
    else:
        assert_never(result)
