"""
Interview engine: build prompt -> generate -> parse -> adapt.

Wires the provider manager, the prompt protocol and the adaptive context
registry together. Every operation is a blocking call that can also be run
on the engine's small worker pool through ``submit``.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

import structlog

from interview_coach.adaptive.context import AdaptiveContext, ContextRegistry
from interview_coach.adaptive.store import ContextStore, JsonContextStore
from interview_coach.config.reliability import OperationTimer
from interview_coach.config.settings import Settings
from interview_coach.llm.manager import ProviderManager
from interview_coach.llm.provider import Provider, build_providers
from interview_coach.models.types import (
    AnswerEvaluationRequest,
    AnswerScore,
    InterviewMode,
    ParsedResult,
    PromptRequest,
    QuestionGenerationRequest,
    QuestionList,
    ResumeAnalysisRequest,
    ResumeMatch,
    SessionAnalytics,
    SessionAnalyticsRequest,
    SessionSummary,
)
from interview_coach.protocol.parser import parse
from interview_coach.protocol.prompts import render_prompt

logger = structlog.get_logger(__name__)

T = TypeVar("T")

INPUT_TRUNCATED = "input_truncated"


class InterviewEngine:
    """Runs interview operations against the active provider."""

    def __init__(
        self,
        settings: Settings,
        manager: ProviderManager,
        registry: ContextRegistry,
    ):
        self.settings = settings
        self.manager = manager
        self.registry = registry
        self._executor = ThreadPoolExecutor(
            max_workers=settings.worker_threads,
            thread_name_prefix="interview-worker",
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        providers: Optional[Sequence[Provider]] = None,
        store: Optional[ContextStore] = None,
    ) -> "InterviewEngine":
        """
        Build an engine with every configured provider and try the preferred one.

        Args:
            settings: Validated settings
            providers: Providers to register (default: one per provider kind)
            store: Context persistence (default: JSON files under settings.data_dir)
        """
        manager = ProviderManager()
        manager.configure(
            providers if providers is not None else build_providers(settings),
            settings.preferred_provider,
        )
        registry = ContextRegistry(
            store if store is not None else JsonContextStore(settings.data_dir),
            settings.adaptive_policy(),
        )
        return cls(settings, manager, registry)

    def run(self, request: PromptRequest) -> ParsedResult:
        """
        Execute one request end to end.

        Raises:
            NoProviderSelectedError: If no provider is active
            ProviderError: If the provider call fails
        """
        rendered = render_prompt(request, self.settings.max_prompt_chars)
        if rendered.truncated:
            logger.warning(
                "Request input truncated to fit the prompt limit",
                request_kind=request.kind,
                fields=rendered.truncated_fields,
                limit=self.settings.max_prompt_chars,
            )

        with OperationTimer("interview operation", request_kind=request.kind, prompt_chars=len(rendered.text)):
            raw, provider_name = self.manager.generate_attributed(rendered.text)

        result = parse(request, raw)
        if rendered.truncated:
            result.degraded_fields.append(INPUT_TRUNCATED)
        if isinstance(result, SessionAnalytics):
            result.generated_by = provider_name
        return result

    def generate_questions(
        self,
        resume_text: str,
        job_text: str,
        mode: InterviewMode = InterviewMode.PRACTICE,
        count: int = 5,
        user_id: Optional[str] = None,
    ) -> QuestionList:
        """Generate questions, pitched at the user's adaptive difficulty when a user is given."""
        difficulty_level = None
        focus_areas: List[str] = []
        if user_id is not None:
            context = self.registry.get(user_id)
            difficulty_level = context.difficulty_level
            focus_areas = list(context.focus_areas)

        request = QuestionGenerationRequest(
            resume_text=resume_text,
            job_text=job_text,
            mode=mode,
            count=count,
            difficulty_level=difficulty_level,
            focus_areas=focus_areas,
        )
        return self.run(request)

    def evaluate_answer(self, question_text: str, answer_text: str, category: str = "General") -> AnswerScore:
        request = AnswerEvaluationRequest(
            question_text=question_text,
            question_category=category,
            answer_text=answer_text,
        )
        return self.run(request)

    def analyze_resume(self, resume_text: str, job_text: str) -> ResumeMatch:
        return self.run(ResumeAnalysisRequest(resume_text=resume_text, job_text=job_text))

    def generate_analytics(self, summary: SessionSummary, user_id: Optional[str] = None) -> SessionAnalytics:
        """Score a finished session and, for a known user, fold it into their profile."""
        logger.info("Generating analytics", session_id=summary.session_id, questions=len(summary.questions))
        analytics = self.run(SessionAnalyticsRequest(session_summary=summary))
        if user_id is not None:
            self.registry.record_session(user_id, analytics)
        return analytics

    def profile(self, user_id: str) -> AdaptiveContext:
        return self.registry.get(user_id)

    def submit(self, operation: Callable[..., T], *args, **kwargs) -> "Future[T]":
        """
        Run an operation on the worker pool.

        Returns:
            Future handle; ``cancel()`` works until the task starts, and
            provider errors surface from ``result()``
        """
        return self._executor.submit(operation, *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
        self.manager.close()

    def __enter__(self) -> "InterviewEngine":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
