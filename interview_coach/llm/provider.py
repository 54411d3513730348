"""
LLM provider abstraction with a local (Ollama) and a cloud (Bedrock) backend.

Providers turn a text prompt into a text completion. Transport, auth and
payload differences stay inside each provider; callers only see
``generate``, ``is_available`` and ``name``.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, assert_never

import structlog

from interview_coach.config.reliability import run_probe
from interview_coach.protocol.grammar import TRUNCATION_NOTICE

if TYPE_CHECKING:
    from interview_coach.config.settings import Settings

logger = structlog.get_logger(__name__)

CANARY_PROMPT = "Hello, this is a test. Please respond with 'Test successful'."

# Leave headroom below the ceiling for the truncation notice
TRUNCATION_HEADROOM = 100


class LLMProviderError(Exception):
    """Base exception for LLM provider errors."""
    pass


class ProviderErrorKind(str, Enum):
    UNREACHABLE = "unreachable"
    AUTH_FAILURE = "auth_failure"
    QUOTA_EXCEEDED = "quota_exceeded"
    MALFORMED_RESPONSE = "malformed_response"


class ProviderError(LLMProviderError):
    """A provider call failed at the transport or backend level."""

    def __init__(self, kind: ProviderErrorKind, provider: str, message: str):
        self.kind = kind
        self.provider = provider
        self.message = message
        super().__init__(f"{provider}: {message}")


class NoProviderSelectedError(LLMProviderError):
    """Raised when generate is called with no active provider."""

    def __init__(self, message: str = "No AI provider is selected. Switch to an available provider first."):
        super().__init__(message)


class ProviderKind(str, Enum):
    OLLAMA = "ollama"
    BEDROCK = "bedrock"


def truncate_prompt(prompt: Optional[str], max_chars: int) -> str:
    """
    Cut a prompt down to the backend input ceiling.

    Args:
        prompt: Prompt text (None is treated as empty)
        max_chars: Hard character ceiling

    Returns:
        The prompt unchanged, or its head followed by a truncation notice
    """
    if prompt is None:
        return ""
    if len(prompt) <= max_chars:
        return prompt

    if max_chars <= TRUNCATION_HEADROOM:
        return prompt[:max_chars]
    return prompt[: max_chars - TRUNCATION_HEADROOM] + TRUNCATION_NOTICE


class Provider(ABC):
    """A backend that turns a prompt into a completion."""

    kind: ProviderKind

    def __init__(self, model: str, probe_attempts: int = 1):
        self.model = model
        self.probe_attempts = probe_attempts

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable display identifier including the model id."""

    @property
    def key(self) -> str:
        return self.kind.value

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """
        Generate a completion.

        Raises:
            ProviderError: On transport, auth, quota or payload failures
        """

    def _probe(self) -> None:
        """Cheap liveness check; raises ProviderError when the backend is unusable."""
        reply = self.generate(CANARY_PROMPT)
        if not reply or not reply.strip():
            raise ProviderError(ProviderErrorKind.MALFORMED_RESPONSE, self.name, "Empty reply to canary prompt")

    def is_available(self) -> bool:
        try:
            run_probe(self._probe, (ProviderError,), max_attempts=self.probe_attempts)
        except ProviderError as e:
            logger.warning("Provider unavailable", provider=self.name, reason=e.kind.value, error=e.message)
            return False
        logger.debug("Provider available", provider=self.name)
        return True

    def close(self) -> None:
        """Release transport resources. Nothing to release by default."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.model!r})"


def build_provider(kind: ProviderKind, settings: "Settings") -> Provider:
    """Instantiate one provider from settings."""
    # Imported here: the concrete modules import this one
    from interview_coach.llm.bedrock import BedrockProvider
    from interview_coach.llm.ollama import OllamaProvider

    if kind is ProviderKind.OLLAMA:
        return OllamaProvider.from_settings(settings)
    elif kind is ProviderKind.BEDROCK:
        return BedrockProvider.from_settings(settings)
    else:
        assert_never(kind)


def build_providers(settings: "Settings") -> List[Provider]:
    """Instantiate every configured provider, in declaration order."""
    return [build_provider(kind, settings) for kind in ProviderKind]
