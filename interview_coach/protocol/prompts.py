"""
Prompt templates for every request kind.

Each template spells out the exact section labels the reply must echo.
Inlined payloads (resume, job description, answers) share whatever room the
character ceiling leaves after the fixed instructions, so the format
instructions are never the part that gets cut.
"""

from typing import Callable, Dict, List, NamedTuple, Tuple, assert_never

from interview_coach.llm.provider import truncate_prompt
from interview_coach.models.types import (
    AnswerEvaluationRequest,
    PromptRequest,
    QuestionGenerationRequest,
    ResumeAnalysisRequest,
    SessionAnalyticsRequest,
)
from interview_coach.protocol import grammar as g

DEFAULT_MAX_PROMPT_CHARS = 50_000


class RenderedPrompt(NamedTuple):
    text: str
    truncated_fields: List[str]

    @property
    def truncated(self) -> bool:
        return bool(self.truncated_fields)


def _render_resume_analysis(request: ResumeAnalysisRequest, payload: Dict[str, str]) -> str:
    return (
        "You are an expert career coach and recruiter. Analyze this resume against the job description.\n\n"
        "JOB DESCRIPTION:\n"
        f"{payload['job_text']}\n\n"
        "RESUME:\n"
        f"{payload['resume_text']}\n\n"
        "Provide a comprehensive analysis in this format:\n\n"
        f"{g.MATCH_SCORE} [0-100]\n\n"
        f"{g.OVERALL_FEEDBACK}\n"
        "[Detailed assessment in 2-3 sentences]\n\n"
        f"{g.STRENGTHS}\n"
        "- [Strength 1]\n"
        "- [Strength 2]\n"
        "- [Strength 3]\n\n"
        f"{g.WEAKNESSES}\n"
        "- [Weakness 1]\n"
        "- [Weakness 2]\n"
        "- [Weakness 3]\n\n"
        f"{g.SUGGESTIONS}\n"
        "- [Suggestion 1]\n"
        "- [Suggestion 2]\n"
        "- [Suggestion 3]\n\n"
        f"{g.MATCHING_SKILLS}\n"
        "- [Skill 1]\n"
        "- [Skill 2]\n\n"
        f"{g.MISSING_SKILLS}\n"
        "- [Skill 1]\n"
        "- [Skill 2]"
    )


def _render_question_generation(request: QuestionGenerationRequest, payload: Dict[str, str]) -> str:
    guidelines = [
        "- Mix of technical, behavioral, and situational questions",
        "- Questions should be specific to the candidate's background and job requirements",
        f"- Difficulty level: {request.difficulty_label}",
    ]
    if request.focus_areas:
        guidelines.append(f"- Emphasize these areas the candidate needs to practice: {', '.join(request.focus_areas)}")
    guidelines.extend([
        "- Format: Number each question (1., 2., 3., etc.)",
        "- Make questions realistic and relevant",
    ])

    return (
        f"You are an experienced interviewer. Generate {request.count} interview questions "
        f"for {request.mode.display_name}.\n\n"
        "JOB DESCRIPTION:\n"
        f"{payload['job_text']}\n\n"
        "CANDIDATE'S RESUME:\n"
        f"{payload['resume_text']}\n\n"
        "Guidelines:\n"
        + "\n".join(guidelines)
        + "\n\nGenerate the questions now:"
    )


def _render_answer_evaluation(request: AnswerEvaluationRequest, payload: Dict[str, str]) -> str:
    return (
        "Evaluate this interview answer on a scale of 0-10:\n\n"
        f"Question ({request.question_category}): {payload['question_text']}\n\n"
        f"Candidate's Answer: {payload['answer_text']}\n\n"
        "Provide evaluation in this format:\n\n"
        f"{g.SCORE} [0-10]\n\n"
        f"{g.FEEDBACK}\n"
        "What was good:\n"
        "- [Point 1]\n"
        "- [Point 2]\n\n"
        "What could be improved:\n"
        "- [Point 1]\n"
        "- [Point 2]\n\n"
        "Specific suggestions:\n"
        "- [Suggestion 1]\n"
        "- [Suggestion 2]"
    )


def _session_transcript(request: SessionAnalyticsRequest) -> str:
    lines = []
    for number, item in enumerate(request.session_summary.questions, start=1):
        lines.append(f"Q{number} ({item.category}): {item.question}")
        if item.answer:
            lines.append(f"Answer: {item.answer}")
            if item.duration_seconds is not None:
                lines.append(f"Duration: {item.duration_seconds} seconds")
        else:
            lines.append("Answer: [Not answered]")
        lines.append("")
    return "\n".join(lines)


def _render_session_analytics(request: SessionAnalyticsRequest, payload: Dict[str, str]) -> str:
    summary = request.session_summary
    return (
        "You are an expert interview coach. Analyze this interview session and provide comprehensive feedback.\n\n"
        "INTERVIEW SESSION DETAILS:\n"
        f"Mode: {summary.mode.display_name}\n"
        f"Duration: {summary.duration_seconds // 60} minutes\n"
        f"Questions: {len(summary.questions)}\n"
        f"Answered: {summary.answered_count}\n\n"
        "QUESTIONS AND ANSWERS:\n"
        f"{payload['transcript']}\n"
        "Provide comprehensive analytics in this exact format:\n\n"
        f"{g.OVERALL_SCORE} [0-10]\n\n"
        f"{g.TECHNICAL_SCORE} [0-10]\n"
        f"{g.BEHAVIORAL_SCORE} [0-10]\n"
        f"{g.COMMUNICATION_SCORE} [0-10]\n"
        f"{g.CONFIDENCE_SCORE} [0-10]\n\n"
        f"{g.PERFORMANCE_LEVEL} [Excellent/Good/Needs Improvement]\n\n"
        f"{g.STRENGTHS}\n"
        "- [Strength 1]\n"
        "- [Strength 2]\n"
        "- [Strength 3]\n\n"
        f"{g.WEAKNESSES}\n"
        "- [Weakness 1]\n"
        "- [Weakness 2]\n"
        "- [Weakness 3]\n\n"
        f"{g.DETAILED_FEEDBACK}\n"
        "[Comprehensive analysis of the interview performance]\n\n"
        f"{g.IMPROVEMENT_SUGGESTIONS}\n"
        "- [Suggestion 1]\n"
        "- [Suggestion 2]\n"
        "- [Suggestion 3]"
    )


def _template_for(request: PromptRequest) -> Tuple[Callable[..., str], Dict[str, str]]:
    """Pick the renderer and the inlined payload fields for a request."""
    if isinstance(request, QuestionGenerationRequest):
        return _render_question_generation, {
            "job_text": request.job_text,
            "resume_text": request.resume_text,
        }
    elif isinstance(request, AnswerEvaluationRequest):
        return _render_answer_evaluation, {
            "question_text": request.question_text,
            "answer_text": request.answer_text,
        }
    elif isinstance(request, ResumeAnalysisRequest):
        return _render_resume_analysis, {
            "job_text": request.job_text,
            "resume_text": request.resume_text,
        }
    elif isinstance(request, SessionAnalyticsRequest):
        return _render_session_analytics, {"transcript": _session_transcript(request)}
    else:
        assert_never(request)


def _fit_payload(payload: Dict[str, str], budget: int) -> Tuple[Dict[str, str], List[str]]:
    """
    Share a character budget between payload fields.

    Short fields keep their full text and hand unused room to longer ones.
    Returns the fitted fields and the names of those that were cut.
    """
    fitted = {}
    truncated = []
    remaining = max(budget, 0)
    pending = sorted(payload.items(), key=lambda item: len(item[1] or ""))

    for index, (name, text) in enumerate(pending):
        text = text or ""
        share = remaining // (len(pending) - index)
        if len(text) <= share:
            fitted[name] = text
        else:
            fitted[name] = truncate_prompt(text, share)
            truncated.append(name)
        remaining -= len(fitted[name])

    return fitted, sorted(truncated)


def render_prompt(request: PromptRequest, max_chars: int = DEFAULT_MAX_PROMPT_CHARS) -> RenderedPrompt:
    """
    Render the prompt for a request and report which payload fields were cut.

    Args:
        request: Any PromptRequest variant
        max_chars: Ceiling for the whole prompt in characters

    Returns:
        RenderedPrompt with the prompt text and truncated field names
    """
    render, payload = _template_for(request)
    overhead = len(render(request, {name: "" for name in payload}))
    fitted, truncated = _fit_payload(payload, max_chars - overhead)
    return RenderedPrompt(render(request, fitted), truncated)


def build_prompt(request: PromptRequest, max_chars: int = DEFAULT_MAX_PROMPT_CHARS) -> str:
    """Build the prompt text for a request. Pure: no I/O, no logging."""
    return render_prompt(request, max_chars).text
