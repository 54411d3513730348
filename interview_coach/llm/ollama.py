"""Local inference provider speaking the Ollama chat API."""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import httpx
import structlog

from interview_coach.config.reliability import get_http_client, local_http_timeout, log_api_call
from interview_coach.llm.provider import Provider, ProviderError, ProviderErrorKind, ProviderKind

if TYPE_CHECKING:
    from interview_coach.config.settings import Settings

logger = structlog.get_logger(__name__)


class OllamaProvider(Provider):
    """Interact with a local Ollama model server. No credentials required."""

    kind = ProviderKind.OLLAMA

    def __init__(
        self,
        model: str,
        base_url: str = "http://localhost:11434",
        connect_timeout: Optional[float] = None,
        read_timeout: Optional[float] = None,
        probe_attempts: int = 1,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(model, probe_attempts=probe_attempts)
        self.base_url = base_url.rstrip("/")
        self.client = get_http_client(
            self.base_url,
            timeout=local_http_timeout(connect_timeout, read_timeout),
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: "Settings", **kwargs) -> "OllamaProvider":
        return cls(
            model=settings.ollama_model,
            base_url=settings.ollama_url,
            connect_timeout=settings.ollama_connect_timeout,
            read_timeout=settings.ollama_read_timeout,
            probe_attempts=settings.probe_attempts,
            **kwargs
        )

    @property
    def name(self) -> str:
        return f"Ollama ({self.model})"

    def _fail(self, kind: ProviderErrorKind, message: str, cause: Optional[Exception] = None) -> ProviderError:
        logger.error("Ollama request failed", provider=self.name, reason=kind.value, error=message)
        error = ProviderError(kind, self.name, message)
        error.__cause__ = cause
        return error

    def _post_json(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.client.post(path, json=payload)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise self._fail(ProviderErrorKind.UNREACHABLE, f"Request timed out: {e}", e)
        except httpx.HTTPStatusError as e:
            body = e.response.text[:500] if e.response is not None else ""
            raise self._fail(
                ProviderErrorKind.UNREACHABLE,
                f"Ollama request failed: {e.response.status_code} - {body or 'No error details'}",
                e,
            )
        except httpx.HTTPError as e:
            raise self._fail(ProviderErrorKind.UNREACHABLE, f"Cannot reach {self.base_url}: {e}", e)

        try:
            data = response.json()
        except ValueError as e:
            raise self._fail(ProviderErrorKind.MALFORMED_RESPONSE, "Response body is not valid JSON", e)
        if not isinstance(data, dict):
            raise self._fail(ProviderErrorKind.MALFORMED_RESPONSE, "Response body is not a JSON object")
        return data

    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        """
        Send one non-streaming chat request.

        Args:
            prompt: User message content
            system: Optional system message placed before the prompt

        Returns:
            str: The model's reply text

        Raises:
            ProviderError: UNREACHABLE on timeouts/network/non-2xx,
                MALFORMED_RESPONSE on undecodable or unexpected bodies
        """
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self.model,
            "stream": False,
            "messages": messages,
        }

        with log_api_call(self.name, f"{self.base_url}/api/chat", request_size=len(prompt)):
            data = self._post_json("/api/chat", payload)

        message = data.get("message")
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"]

        # Older servers answer in the /api/generate shape
        if isinstance(data.get("response"), str):
            return data["response"]

        raise self._fail(
            ProviderErrorKind.MALFORMED_RESPONSE,
            "Response missing 'message.content' and 'response' fields",
        )

    def list_models(self) -> List[str]:
        """Names of the models installed on the server."""
        try:
            response = self.client.get("/api/tags")
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise self._fail(ProviderErrorKind.UNREACHABLE, f"Cannot list models: {e}", e)
        except ValueError as e:
            raise self._fail(ProviderErrorKind.MALFORMED_RESPONSE, "Model list is not valid JSON", e)

        models = data.get("models") if isinstance(data, dict) else None
        if not isinstance(models, list):
            raise self._fail(ProviderErrorKind.MALFORMED_RESPONSE, "Model list missing 'models' array")
        return [m["name"] for m in models if isinstance(m, dict) and "name" in m]

    def _probe(self) -> None:
        installed = self.list_models()
        wanted = self.model if ":" in self.model else f"{self.model}:latest"
        if self.model not in installed and wanted not in installed:
            raise ProviderError(
                ProviderErrorKind.UNREACHABLE,
                self.name,
                f"Model '{self.model}' is not installed (run: ollama pull {self.model})",
            )

    def close(self) -> None:
        self.client.close()
