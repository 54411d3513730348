"""
Shared sample data and fakes for the test suite.

Contains realistic resume / job texts, model replies in the label grammar,
and a scripted provider that never touches the network.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from interview_coach.llm.provider import Provider, ProviderError, ProviderErrorKind, ProviderKind
from interview_coach.models.types import AnsweredQuestion, SessionAnalytics, SessionSummary


def sample_resume_text():
    """Sample resume for a backend engineer."""
    return """
JORDAN LEE
Backend Engineer
Email: jordan.lee@email.com

SUMMARY
Backend engineer with 6 years building Python services and data pipelines.

SKILLS
- Python, Go, SQL
- PostgreSQL, Redis, Kafka
- AWS (ECS, Lambda, S3), Docker, Terraform

EXPERIENCE
Senior Backend Engineer | ShopCo | 2021 - Present
- Led migration of the order service to an event-driven design, cutting p99 latency by 35%
- Built the internal rate-limiting library used by 20+ services

Backend Engineer | DataWorks | 2018 - 2021
- Implemented ETL jobs processing 500GB/day with Airflow and Spark
"""


def sample_job_text():
    """Sample job description matching the resume above."""
    return """
Senior Python Engineer - Payments Platform

We are looking for a senior engineer to design and operate high-throughput payment APIs.

Requirements:
- 5+ years of Python in production
- Experience with PostgreSQL and message queues (Kafka, SQS)
- Kubernetes and observability tooling (Prometheus, Grafana)
- Strong communication and mentoring skills
"""


ANSWER_REPLY = """SCORE: 8

FEEDBACK:
What was good:
- Clear structure using the STAR method
- Concrete metrics

What could be improved:
- Mention trade-offs considered
"""

RESUME_REPLY = """MATCH_SCORE: 82

OVERALL_FEEDBACK:
Strong Python and data background that lines up with the payments platform role.

STRENGTHS:
- Production Python experience
- Event-driven architecture
- Kafka

WEAKNESSES:
- No Kubernetes experience listed
- Observability tooling not mentioned

SUGGESTIONS:
- Add monitoring work to the resume
- Highlight mentoring

MATCHING_SKILLS:
- Python
- PostgreSQL
- Kafka

MISSING_SKILLS:
- Kubernetes
- Prometheus
"""

ANALYTICS_REPLY = """**OVERALL_SCORE:** 6.5

TECHNICAL_SCORE: 8.0
BEHAVIORAL_SCORE: 5.5
COMMUNICATION_SCORE: 6.0
CONFIDENCE_SCORE: 7.5

PERFORMANCE_LEVEL: Good

STRENGTHS:
- Solid system design answers
- Good use of examples

WEAKNESSES:
- Behavioral answers lacked structure

DETAILED_FEEDBACK:
The candidate handled technical questions well but rushed through behavioral ones.

IMPROVEMENT_SUGGESTIONS:
- Practice the STAR method
- Slow down when answering
"""

QUESTIONS_REPLY = """Here are your questions:

1. How would you implement idempotency for a payment API?
2) Tell me about a time you disagreed with a teammate.
3. What draws you to payments?
"""


def make_summary(
    session_id: str = "session-1",
    answered: int = 2,
    unanswered: int = 1,
    session_date: Optional[datetime] = None,
) -> SessionSummary:
    questions = [
        AnsweredQuestion(
            question=f"Question {i + 1}?",
            category="Technical" if i % 2 == 0 else "Behavioral",
            answer=f"Answer number {i + 1}",
            duration_seconds=60 + i,
        )
        for i in range(answered)
    ]
    questions += [
        AnsweredQuestion(question=f"Unanswered {i + 1}?", category="General")
        for i in range(unanswered)
    ]
    return SessionSummary(
        session_id=session_id,
        mode="timed",
        session_date=session_date or datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc),
        duration_seconds=900,
        questions=questions,
    )


def make_analytics(
    overall: float,
    subscores: Optional[dict] = None,
    day: int = 0,
    session_id: Optional[str] = None,
) -> SessionAnalytics:
    """Analytics for a session ``day`` days after 2024-05-01."""
    return SessionAnalytics(
        session_id=session_id or f"session-{day}",
        session_date=datetime(2024, 5, 1, tzinfo=timezone.utc) + timedelta(days=day),
        overall_score=overall,
        subscores=subscores or {},
    )


class FakeProvider(Provider):
    """Scripted provider: returns queued replies and reports a fixed availability."""

    def __init__(
        self,
        kind: ProviderKind = ProviderKind.OLLAMA,
        model: str = "fake-model",
        replies: Optional[List[str]] = None,
        available: bool = True,
        error: Optional[ProviderError] = None,
    ):
        super().__init__(model)
        self.kind = kind
        self.replies = list(replies or [])
        self.available = available
        self.error = error
        self.prompts: List[str] = []
        self.probe_count = 0
        self.closed = False

    @property
    def name(self) -> str:
        return f"Fake {self.kind.value} ({self.model})"

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.replies.pop(0) if self.replies else ""

    def is_available(self) -> bool:
        self.probe_count += 1
        return self.available

    def close(self) -> None:
        self.closed = True


def unreachable(provider_name: str = "Fake") -> ProviderError:
    return ProviderError(ProviderErrorKind.UNREACHABLE, provider_name, "connection refused")
