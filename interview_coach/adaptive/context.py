"""
Per-user adaptive profile: smoothed skill levels, focus areas and difficulty.

``update_after_session`` is pure in-memory arithmetic; persisting the result
is the caller's job (see ``ContextRegistry`` and the stores in
``interview_coach.adaptive.store``).
"""

import threading
from collections import defaultdict
from datetime import datetime
from typing import TYPE_CHECKING, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field

from interview_coach.config.settings import AdaptivePolicy
from interview_coach.models.types import DIFFICULTY_LABELS, SessionAnalytics, clamp

if TYPE_CHECKING:
    from interview_coach.adaptive.store import ContextStore

logger = structlog.get_logger(__name__)

__all__ = [
    "AdaptiveContext",
    "AdaptivePolicy",
    "ContextRegistry",
    "adapt_difficulty",
    "blend_skill_levels",
    "select_focus_areas",
    "update_after_session",
]


class AdaptiveContext(BaseModel):
    user_id: str
    historical_analytics: List[SessionAnalytics] = []
    skill_levels: Dict[str, float] = {}
    focus_areas: List[str] = []
    difficulty_level: int = Field(default=3, ge=1, le=5)
    last_session_date: Optional[datetime] = None

    @classmethod
    def fresh(cls, user_id: str, policy: Optional[AdaptivePolicy] = None) -> "AdaptiveContext":
        policy = policy or AdaptivePolicy()
        return cls(user_id=user_id, difficulty_level=policy.initial_difficulty)

    @property
    def difficulty_label(self) -> str:
        return DIFFICULTY_LABELS[self.difficulty_level]

    @property
    def session_count(self) -> int:
        return len(self.historical_analytics)

    @property
    def latest(self) -> Optional[SessionAnalytics]:
        return self.historical_analytics[-1] if self.historical_analytics else None


def blend_skill_levels(
    skill_levels: Dict[str, float],
    subscores: Dict[str, float],
    blend_factor: float,
) -> Dict[str, float]:
    """Fold new category scores into the smoothed levels; first observations are taken as-is."""
    blended = dict(skill_levels)
    for category, score in subscores.items():
        score = clamp(score, 0.0, 10.0)
        old = blended.get(category)
        if old is None:
            blended[category] = score
        else:
            blended[category] = old * (1 - blend_factor) + score * blend_factor
    return blended


def select_focus_areas(skill_levels: Dict[str, float], threshold: float, limit: int) -> List[str]:
    weak = [(score, category) for category, score in skill_levels.items() if score < threshold]
    return [category for _score, category in sorted(weak)[:limit]]


def adapt_difficulty(context: AdaptiveContext, policy: AdaptivePolicy) -> int:
    """
    Next difficulty from the average overall score of the newest sessions.

    Sessions are ordered by date, newest first; ties keep insertion order.
    """
    history = context.historical_analytics
    if not history:
        return context.difficulty_level

    newest_first = sorted(
        enumerate(history),
        key=lambda pair: (pair[1].session_date.timestamp(), pair[0]),
        reverse=True,
    )
    recent = [analytics for _index, analytics in newest_first[: policy.window]]
    average = sum(a.overall_score for a in recent) / len(recent)

    level = context.difficulty_level
    if average >= policy.increase_threshold:
        level += 1
    elif average < policy.decrease_threshold:
        level -= 1
    return int(clamp(level, policy.min_difficulty, policy.max_difficulty))


def update_after_session(
    context: AdaptiveContext,
    analytics: SessionAnalytics,
    policy: Optional[AdaptivePolicy] = None,
) -> AdaptiveContext:
    """
    Record one session's analytics and recompute the derived profile.

    Args:
        context: Profile to update (mutated in place)
        analytics: Parsed session analytics; out-of-range scores are clamped
        policy: Adaptation thresholds (default: AdaptivePolicy())

    Returns:
        The same context, for chaining
    """
    policy = policy or AdaptivePolicy()
    analytics = analytics.model_copy(
        update={
            "overall_score": clamp(analytics.overall_score, 0.0, 10.0),
            "subscores": {c: clamp(s, 0.0, 10.0) for c, s in analytics.subscores.items()},
        }
    )

    previous_level = context.difficulty_level
    context.historical_analytics.append(analytics)
    context.last_session_date = analytics.session_date
    context.skill_levels = blend_skill_levels(context.skill_levels, analytics.subscores, policy.skill_blend_factor)
    context.focus_areas = select_focus_areas(
        context.skill_levels,
        policy.competence_threshold,
        policy.max_focus_areas,
    )
    context.difficulty_level = adapt_difficulty(context, policy)

    logger.info(
        "Adaptive context updated",
        user_id=context.user_id,
        sessions=context.session_count,
        difficulty_level=context.difficulty_level,
        previous_difficulty=previous_level,
        focus_areas=context.focus_areas,
    )
    return context


class ContextRegistry:
    """
    Process-lifetime cache of adaptive contexts, one per user.

    Contexts load lazily from the store on first access. Updates for the same
    user are serialized; the updated context is saved before the lock is released.
    """

    def __init__(self, store: "ContextStore", policy: Optional[AdaptivePolicy] = None):
        self.store = store
        self.policy = policy or AdaptivePolicy()
        self._contexts: Dict[str, AdaptiveContext] = {}
        self._locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._registry_lock = threading.Lock()

    def _user_lock(self, user_id: str) -> threading.Lock:
        with self._registry_lock:
            return self._locks[user_id]

    def _load(self, user_id: str) -> AdaptiveContext:
        context = self._contexts.get(user_id)
        if context is None:
            context = self.store.load(user_id)
            if context is None:
                logger.info("Creating fresh adaptive context", user_id=user_id)
                context = AdaptiveContext.fresh(user_id, self.policy)
            self._contexts[user_id] = context
        return context

    def get(self, user_id: str) -> AdaptiveContext:
        with self._user_lock(user_id):
            return self._load(user_id)

    def record_session(self, user_id: str, analytics: SessionAnalytics) -> AdaptiveContext:
        """Apply a session to the user's context and persist it."""
        with self._user_lock(user_id):
            context = self._load(user_id)
            update_after_session(context, analytics, self.policy)
            self.store.save(context)
            return context
