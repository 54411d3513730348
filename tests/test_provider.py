"""
Tests for the provider base class and factory helpers.
"""

import logging
from unittest.mock import patch

import pytest

from interview_coach.config.settings import Settings
from interview_coach.llm.bedrock import BedrockProvider
from interview_coach.llm.ollama import OllamaProvider
from interview_coach.llm.provider import (
    CANARY_PROMPT,
    TRUNCATION_HEADROOM,
    Provider,
    ProviderError,
    ProviderErrorKind,
    ProviderKind,
    build_provider,
    build_providers,
    truncate_prompt,
)
from interview_coach.protocol.grammar import TRUNCATION_NOTICE


class ScriptedProvider(Provider):
    """Uses the base-class probe; each generate call consumes one scripted outcome."""

    kind = ProviderKind.OLLAMA

    def __init__(self, outcomes, probe_attempts=1):
        super().__init__("scripted", probe_attempts=probe_attempts)
        self.outcomes = list(outcomes)
        self.prompts = []

    @property
    def name(self):
        return "Scripted"

    def generate(self, prompt):
        self.prompts.append(prompt)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def failure(kind=ProviderErrorKind.UNREACHABLE):
    return ProviderError(kind, "Scripted", "down")


NO_WAIT = {"max_attempts": 3, "min_wait": 0, "max_wait": 0, "multiplier": 0}


class TestTruncatePrompt:
    """Test the prompt ceiling helper."""

    def test_short_prompt_unchanged(self):
        """Test short prompts are unchanged."""
        assert truncate_prompt("hello", 1_000) == "hello"

    def test_none_is_empty(self):
        """Test None becomes an empty prompt."""
        assert truncate_prompt(None, 1_000) == ""

    def test_long_prompt_gets_notice(self):
        """Test long prompts are cut with a notice."""
        result = truncate_prompt("x" * 2_000, 1_000)

        assert result == "x" * (1_000 - TRUNCATION_HEADROOM) + TRUNCATION_NOTICE
        assert len(result) <= 1_000

    def test_tiny_ceiling_hard_cut(self):
        """Test a ceiling smaller than the notice cuts hard."""
        assert truncate_prompt("x" * 500, 50) == "x" * 50


class TestAvailability:
    """Test the base-class liveness probe."""

    def test_canary_reply_means_available(self):
        """Test a canary reply means available."""
        provider = ScriptedProvider(["Test successful"])

        assert provider.is_available() is True
        assert provider.prompts == [CANARY_PROMPT]

    def test_blank_reply_means_unavailable(self):
        """Test a blank reply means unavailable."""
        assert ScriptedProvider(["   "]).is_available() is False

    def test_error_means_unavailable(self):
        """Test provider errors mean unavailable."""
        assert ScriptedProvider([failure(ProviderErrorKind.AUTH_FAILURE)]).is_available() is False

    def test_probe_retried_up_to_attempts(self):
        """Test the availability check retries up to its attempts."""
        provider = ScriptedProvider([failure(), failure(), "ok"], probe_attempts=3)

        with patch("interview_coach.config.reliability.PROBE_RETRY", NO_WAIT):
            assert provider.is_available() is True

        assert len(provider.prompts) == 3

    def test_probe_gives_up(self):
        """Test the availability check gives up after its attempts."""
        provider = ScriptedProvider([failure(), failure()], probe_attempts=2)

        with patch("interview_coach.config.reliability.PROBE_RETRY", NO_WAIT):
            assert provider.is_available() is False

        assert len(provider.prompts) == 2

    def test_retry_logged_through_structlog(self):
        """Retry notices go through the module structlog logger."""
        provider = ScriptedProvider([failure(), "ok"], probe_attempts=2)

        with patch("interview_coach.config.reliability.PROBE_RETRY", NO_WAIT), \
                patch("interview_coach.config.reliability.logger") as logger:
            assert provider.is_available() is True

        logger.log.assert_called_once()
        assert logger.log.call_args.args[0] == logging.WARNING

    def test_non_provider_errors_propagate(self):
        """Test other errors propagate."""
        provider = ScriptedProvider([RuntimeError("bug")])

        with pytest.raises(RuntimeError):
            provider.is_available()


class TestErrors:
    """Test provider error formatting."""

    def test_message_includes_provider(self):
        """Test the message names the provider."""
        error = ProviderError(ProviderErrorKind.QUOTA_EXCEEDED, "AWS Bedrock (claude)", "Throttled")

        assert str(error) == "AWS Bedrock (claude): Throttled"
        assert error.kind == ProviderErrorKind.QUOTA_EXCEEDED


class TestFactory:
    """Test construction from settings."""

    def test_build_each_kind(self):
        """Test building each provider kind."""
        settings = Settings()

        assert isinstance(build_provider(ProviderKind.OLLAMA, settings), OllamaProvider)
        assert isinstance(build_provider(ProviderKind.BEDROCK, settings), BedrockProvider)

    def test_build_all_in_order(self):
        """Test building all providers in order."""
        providers = build_providers(Settings())

        assert [p.key for p in providers] == ["ollama", "bedrock"]
