"""
Application settings for the interview coach.

Settings are an explicit value built once at startup and passed to the
components that need them. Environment variables (optionally from a .env
file) override the defaults declared on the model.
"""

import os
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

import structlog
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator, model_validator

logger = structlog.get_logger(__name__)

PROVIDER_KINDS = ("ollama", "bedrock")


class SettingsValidationError(Exception):
    """Raised when configuration values are missing or inconsistent."""
    pass


class AdaptivePolicy(BaseModel):
    """Tunable constants of the difficulty/skill adaptation loop."""

    model_config = ConfigDict(frozen=True)

    increase_threshold: float = 8.5
    decrease_threshold: float = 6.0
    skill_blend_factor: float = 0.5
    competence_threshold: float = 7.0
    window: int = 3
    max_focus_areas: int = 3
    min_difficulty: int = 1
    max_difficulty: int = 5
    initial_difficulty: int = 3


class Settings(BaseModel):
    """Validated configuration for providers, prompts and adaptation."""

    model_config = ConfigDict(frozen=True)

    preferred_provider: str = "ollama"

    # Local inference endpoint
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2:latest"
    ollama_connect_timeout: float = 60.0
    ollama_read_timeout: float = 300.0

    # Cloud endpoint
    bedrock_model: str = "anthropic.claude-3-5-sonnet-20241022-v2:0"
    bedrock_region: str = "us-east-1"
    bedrock_access_key_id: Optional[str] = None
    bedrock_secret_access_key: Optional[SecretStr] = None
    bedrock_session_token: Optional[SecretStr] = None
    bedrock_connect_timeout: float = 10.0
    bedrock_read_timeout: float = 120.0
    bedrock_max_tokens: int = 1000
    bedrock_temperature: float = 0.7
    bedrock_top_p: float = 0.9

    max_prompt_chars: int = Field(default=50_000, ge=1_000)
    probe_attempts: int = Field(default=2, ge=1, le=5)

    difficulty_increase_threshold: float = 8.5
    difficulty_decrease_threshold: float = 6.0
    skill_blend_factor: float = 0.5
    competence_threshold: float = 7.0
    difficulty_window: int = Field(default=3, ge=1)
    max_focus_areas: int = Field(default=3, ge=1)

    data_dir: Path = Path("data")
    worker_threads: int = Field(default=2, ge=1)
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("preferred_provider")
    @classmethod
    def _known_provider(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in PROVIDER_KINDS:
            raise ValueError(
                f"unknown provider '{value}', expected one of: {', '.join(PROVIDER_KINDS)}"
            )
        return value

    @field_validator(
        "ollama_connect_timeout",
        "ollama_read_timeout",
        "bedrock_connect_timeout",
        "bedrock_read_timeout",
    )
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeouts must be positive")
        return value

    @field_validator("skill_blend_factor")
    @classmethod
    def _blend_in_range(cls, value: float) -> float:
        if not 0.0 < value <= 1.0:
            raise ValueError("skill_blend_factor must be in (0, 1]")
        return value

    @model_validator(mode="after")
    def _thresholds_ordered(self) -> "Settings":
        if self.difficulty_decrease_threshold >= self.difficulty_increase_threshold:
            raise ValueError(
                "difficulty_decrease_threshold must be lower than difficulty_increase_threshold"
            )
        return self

    @property
    def has_explicit_bedrock_credentials(self) -> bool:
        return bool(self.bedrock_access_key_id and self.bedrock_secret_access_key)

    def adaptive_policy(self) -> AdaptivePolicy:
        return AdaptivePolicy(
            increase_threshold=self.difficulty_increase_threshold,
            decrease_threshold=self.difficulty_decrease_threshold,
            skill_blend_factor=self.skill_blend_factor,
            competence_threshold=self.competence_threshold,
            window=self.difficulty_window,
            max_focus_areas=self.max_focus_areas,
        )


# Environment variable -> (settings field, description)
ENV_VARS: Dict[str, Tuple[str, str]] = {
    "AI_PREFERRED_SERVICE": ("preferred_provider", "Provider activated at startup (ollama|bedrock)"),
    "AI_OLLAMA_URL": ("ollama_url", "Base URL of the local inference server"),
    "AI_OLLAMA_MODEL": ("ollama_model", "Local model identifier"),
    "AI_OLLAMA_CONNECT_TIMEOUT": ("ollama_connect_timeout", "Local connect timeout (seconds)"),
    "AI_OLLAMA_READ_TIMEOUT": ("ollama_read_timeout", "Local read timeout (seconds)"),
    "AI_BEDROCK_MODEL": ("bedrock_model", "Cloud model identifier"),
    "AI_BEDROCK_REGION": ("bedrock_region", "Cloud region"),
    "AI_BEDROCK_ACCESS_KEY_ID": ("bedrock_access_key_id", "Explicit access key id (optional)"),
    "AI_BEDROCK_SECRET_ACCESS_KEY": ("bedrock_secret_access_key", "Explicit secret key (optional)"),
    "AI_BEDROCK_SESSION_TOKEN": ("bedrock_session_token", "Explicit session token (optional)"),
    "AI_BEDROCK_CONNECT_TIMEOUT": ("bedrock_connect_timeout", "Cloud connect timeout (seconds)"),
    "AI_BEDROCK_READ_TIMEOUT": ("bedrock_read_timeout", "Cloud read timeout (seconds)"),
    "AI_BEDROCK_MAX_TOKENS": ("bedrock_max_tokens", "Completion token cap"),
    "AI_MAX_PROMPT_CHARS": ("max_prompt_chars", "Prompt length ceiling in characters"),
    "AI_PROBE_ATTEMPTS": ("probe_attempts", "Liveness probe attempts"),
    "ADAPTIVE_INCREASE_THRESHOLD": ("difficulty_increase_threshold", "Average score that raises difficulty"),
    "ADAPTIVE_DECREASE_THRESHOLD": ("difficulty_decrease_threshold", "Average score that lowers difficulty"),
    "ADAPTIVE_SKILL_BLEND": ("skill_blend_factor", "Weight of the newest category score"),
    "ADAPTIVE_COMPETENCE_THRESHOLD": ("competence_threshold", "Score below which a category is a focus area"),
    "INTERVIEW_COACH_DATA_DIR": ("data_dir", "Directory for stored profiles"),
    "INTERVIEW_COACH_WORKERS": ("worker_threads", "Background worker threads"),
    "LOG_LEVEL": ("log_level", "Log level"),
    "LOG_JSON": ("log_json", "Emit JSON log lines (true/false)"),
}

_SECRET_FIELDS = {"bedrock_access_key_id", "bedrock_secret_access_key", "bedrock_session_token"}


def load_settings(env: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        env: Mapping to read instead of os.environ (used by tests)
        dotenv: Load a .env file into the process environment first

    Returns:
        Settings: Validated settings

    Raises:
        SettingsValidationError: If any value is invalid
    """
    if env is None:
        if dotenv:
            load_dotenv()
        env = os.environ

    values = {}
    for var_name, (field_name, _description) in ENV_VARS.items():
        raw = env.get(var_name)
        if raw is None or not raw.strip():
            continue
        values[field_name] = raw.strip()
        if field_name in _SECRET_FIELDS:
            logger.debug("Configuration value present", variable=var_name)
        else:
            logger.debug("Configuration value", variable=var_name, value=values[field_name])

    try:
        settings = Settings(**values)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(part) for part in err['loc']) or 'settings'}: {err['msg']}"
            for err in e.errors()
        ]
        message = "Invalid configuration:\n" + "\n".join(f"  - {p}" for p in problems)
        logger.error("Configuration validation failed", problems=problems)
        raise SettingsValidationError(message) from e

    logger.info(
        "Configuration loaded",
        preferred_provider=settings.preferred_provider,
        ollama_model=settings.ollama_model,
        bedrock_model=settings.bedrock_model,
        explicit_bedrock_credentials=settings.has_explicit_bedrock_credentials,
    )
    return settings
