"""
AWS Bedrock provider using the InvokeModel API.

Credentials resolve in priority order: explicit configuration, then the
AWS_* environment variables, then boto3's default credential chain
(shared config files, SSO, instance roles).
"""

import json
import os
import threading
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
    ReadTimeoutError,
)

from interview_coach.config.reliability import CLOUD_TIMEOUTS, log_api_call
from interview_coach.llm.provider import (
    Provider,
    ProviderError,
    ProviderErrorKind,
    ProviderKind,
    truncate_prompt,
)

if TYPE_CHECKING:
    from interview_coach.config.settings import Settings

logger = structlog.get_logger(__name__)

DEFAULT_MAX_PROMPT_CHARS = 50_000

ANTHROPIC_VERSION = "bedrock-2023-05-31"

AVAILABLE_MODELS = [
    "anthropic.claude-3-5-sonnet-20241022-v2:0",
    "anthropic.claude-3-haiku-20240307-v1:0",
    "anthropic.claude-3-opus-20240229-v1:0",
    "amazon.titan-text-express-v1",
    "amazon.titan-text-lite-v1",
]

_AUTH_CODES = {
    "AccessDeniedException",
    "UnrecognizedClientException",
    "ExpiredTokenException",
    "InvalidSignatureException",
    "IncompleteSignature",
    "MissingAuthenticationToken",
}
_QUOTA_CODES = {
    "ThrottlingException",
    "ServiceQuotaExceededException",
    "TooManyRequestsException",
}
_UNREACHABLE_CODES = {
    "ServiceUnavailableException",
    "ModelNotReadyException",
    "ModelTimeoutException",
    "InternalServerException",
}


class ModelFamily(str, Enum):
    ANTHROPIC = "anthropic"
    TITAN = "titan"

    @classmethod
    def for_model(cls, model_id: str) -> "ModelFamily":
        # Cross-region inference profiles prefix the id, e.g. "us.anthropic.claude-..."
        if "amazon.titan" in model_id:
            return cls.TITAN
        return cls.ANTHROPIC


class BedrockCredentials:
    """Resolved credential material and where it came from."""

    def __init__(
        self,
        source: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        session_token: Optional[str] = None,
    ):
        self.source = source
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.session_token = session_token

    def session_kwargs(self) -> Dict[str, str]:
        if self.source == "default":
            return {}
        kwargs = {
            "aws_access_key_id": self.access_key_id,
            "aws_secret_access_key": self.secret_access_key,
        }
        if self.session_token:
            kwargs["aws_session_token"] = self.session_token
        return kwargs


def resolve_credentials(
    access_key_id: Optional[str] = None,
    secret_access_key: Optional[str] = None,
    session_token: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> BedrockCredentials:
    """
    Pick credentials: explicit values, then environment, then the default chain.

    Args:
        access_key_id: Explicitly configured key id
        secret_access_key: Explicitly configured secret
        session_token: Explicitly configured session token
        env: Environment mapping (default: os.environ)

    Returns:
        BedrockCredentials describing the chosen source
    """
    if access_key_id and secret_access_key:
        return BedrockCredentials("explicit", access_key_id, secret_access_key, session_token)

    env = os.environ if env is None else env
    env_key = env.get("AWS_ACCESS_KEY_ID")
    env_secret = env.get("AWS_SECRET_ACCESS_KEY")
    if env_key and env_secret:
        return BedrockCredentials("environment", env_key, env_secret, env.get("AWS_SESSION_TOKEN") or None)

    return BedrockCredentials("default")


def _anthropic_body(prompt: str, max_tokens: int, temperature: float, top_p: float) -> Dict[str, Any]:
    return {
        "anthropic_version": ANTHROPIC_VERSION,
        "max_tokens": max_tokens,
        "messages": [{"role": "user", "content": prompt}],
    }


def _titan_body(prompt: str, max_tokens: int, temperature: float, top_p: float) -> Dict[str, Any]:
    return {
        "inputText": prompt,
        "textGenerationConfig": {
            "maxTokenCount": max_tokens,
            "temperature": temperature,
            "topP": top_p,
        },
    }


def _anthropic_text(data: Dict[str, Any]) -> Optional[str]:
    content = data.get("content")
    if isinstance(content, list) and content and isinstance(content[0], dict):
        text = content[0].get("text")
        if isinstance(text, str):
            return text
    return None


def _titan_text(data: Dict[str, Any]) -> Optional[str]:
    results = data.get("results")
    if isinstance(results, list) and results and isinstance(results[0], dict):
        text = results[0].get("outputText")
        if isinstance(text, str):
            return text
    return None


PAYLOAD_SHAPES: Dict[ModelFamily, tuple[Callable[..., Dict[str, Any]], Callable[[Dict[str, Any]], Optional[str]]]] = {
    ModelFamily.ANTHROPIC: (_anthropic_body, _anthropic_text),
    ModelFamily.TITAN: (_titan_body, _titan_text),
}


class BedrockProvider(Provider):
    """Managed-model endpoint reached through signed bedrock-runtime requests."""

    kind = ProviderKind.BEDROCK

    def __init__(
        self,
        model: str,
        region: str = "us-east-1",
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        session_token: Optional[str] = None,
        max_prompt_chars: int = DEFAULT_MAX_PROMPT_CHARS,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        top_p: float = 0.9,
        connect_timeout: Optional[float] = None,
        read_timeout: Optional[float] = None,
        probe_attempts: int = 1,
        client: Any = None,
    ) -> None:
        super().__init__(model, probe_attempts=probe_attempts)
        self.region = region
        self.family = ModelFamily.for_model(model)
        self.max_prompt_chars = max_prompt_chars
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.top_p = top_p
        self.connect_timeout = connect_timeout or CLOUD_TIMEOUTS["connect"]
        self.read_timeout = read_timeout or CLOUD_TIMEOUTS["read"]
        self._credentials = resolve_credentials(access_key_id, secret_access_key, session_token)
        self._client = client
        self._client_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: "Settings", **kwargs) -> "BedrockProvider":
        secret = settings.bedrock_secret_access_key
        token = settings.bedrock_session_token
        return cls(
            model=settings.bedrock_model,
            region=settings.bedrock_region,
            access_key_id=settings.bedrock_access_key_id,
            secret_access_key=secret.get_secret_value() if secret else None,
            session_token=token.get_secret_value() if token else None,
            max_prompt_chars=settings.max_prompt_chars,
            max_tokens=settings.bedrock_max_tokens,
            temperature=settings.bedrock_temperature,
            top_p=settings.bedrock_top_p,
            connect_timeout=settings.bedrock_connect_timeout,
            read_timeout=settings.bedrock_read_timeout,
            probe_attempts=settings.probe_attempts,
            **kwargs
        )

    @property
    def name(self) -> str:
        return f"AWS Bedrock ({self.model})"

    @property
    def credential_source(self) -> str:
        return self._credentials.source

    @property
    def client(self):
        # Built lazily so constructing the provider never touches the network
        with self._client_lock:
            if self._client is None:
                logger.info(
                    "Creating Bedrock client",
                    model=self.model,
                    region=self.region,
                    credential_source=self._credentials.source,
                )
                session = boto3.Session(region_name=self.region, **self._credentials.session_kwargs())
                self._client = session.client(
                    "bedrock-runtime",
                    config=Config(
                        connect_timeout=self.connect_timeout,
                        read_timeout=self.read_timeout,
                        retries={"total_max_attempts": 1, "mode": "standard"},
                    ),
                )
            return self._client

    def _error(self, kind: ProviderErrorKind, message: str, cause: Optional[Exception] = None) -> ProviderError:
        logger.error("Bedrock request failed", provider=self.name, reason=kind.value, error=message)
        error = ProviderError(kind, self.name, message)
        error.__cause__ = cause
        return error

    def _classify_client_error(self, error: ClientError) -> ProviderError:
        details = error.response.get("Error", {})
        code = details.get("Code", "")
        message = details.get("Message", str(error))
        if code in _AUTH_CODES:
            kind = ProviderErrorKind.AUTH_FAILURE
        elif code in _QUOTA_CODES:
            kind = ProviderErrorKind.QUOTA_EXCEEDED
        elif code in _UNREACHABLE_CODES:
            kind = ProviderErrorKind.UNREACHABLE
        else:
            kind = ProviderErrorKind.MALFORMED_RESPONSE
        return self._error(kind, f"{code or 'ClientError'}: {message}", error)

    def generate(self, prompt: str) -> str:
        """
        Invoke the configured model once.

        Prompts longer than ``max_prompt_chars`` are truncated with a notice.

        Raises:
            ProviderError: classified from the botocore failure or payload shape
        """
        if prompt is not None and len(prompt) > self.max_prompt_chars:
            logger.warning(
                "Prompt too long, truncating",
                provider=self.name,
                prompt_chars=len(prompt),
                limit=self.max_prompt_chars,
            )
        processed = truncate_prompt(prompt, self.max_prompt_chars)

        build_body, read_text = PAYLOAD_SHAPES[self.family]
        body = build_body(processed, self.max_tokens, self.temperature, self.top_p)

        try:
            with log_api_call(self.name, "bedrock-runtime:InvokeModel", request_size=len(processed), family=self.family.value):
                response = self.client.invoke_model(
                    modelId=self.model,
                    body=json.dumps(body),
                    contentType="application/json",
                    accept="application/json",
                )
                raw = response["body"].read()
        except ClientError as e:
            raise self._classify_client_error(e)
        except (NoCredentialsError, PartialCredentialsError) as e:
            raise self._error(ProviderErrorKind.AUTH_FAILURE, f"AWS credentials not usable: {e}", e)
        except (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError) as e:
            raise self._error(ProviderErrorKind.UNREACHABLE, str(e), e)
        except BotoCoreError as e:
            raise self._error(ProviderErrorKind.UNREACHABLE, f"Bedrock call failed: {e}", e)

        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise self._error(ProviderErrorKind.MALFORMED_RESPONSE, "Response body is not valid JSON", e)

        text = read_text(data) if isinstance(data, dict) else None
        if text is None:
            raise self._error(
                ProviderErrorKind.MALFORMED_RESPONSE,
                f"Unexpected response format for {self.family.value} model",
            )
        return text

    def available_models(self) -> list[str]:
        return list(AVAILABLE_MODELS)

    def close(self) -> None:
        with self._client_lock:
            if self._client is not None:
                self._client.close()
                self._client = None
