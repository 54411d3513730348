"""
Provider manager: the single source of truth for which backend answers.

Switching is explicit. A failed switch leaves the current provider in place
and ``generate`` never falls back to another provider on its own.
"""

import threading
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from interview_coach.llm.provider import NoProviderSelectedError, Provider

logger = structlog.get_logger(__name__)


class ProviderManager:
    """Holds every configured provider and routes generate calls to the active one."""

    def __init__(self, providers: Optional[Iterable[Provider]] = None):
        self._providers: Dict[str, Provider] = {}
        self._active: Optional[Provider] = None
        self._lock = threading.RLock()
        if providers is not None:
            self._register(providers)

    def _register(self, providers: Iterable[Provider]) -> None:
        registered: Dict[str, Provider] = {}
        for provider in providers:
            if provider.key in registered:
                raise ValueError(f"Duplicate provider '{provider.key}'")
            registered[provider.key] = provider
        self._providers = registered

    def configure(self, providers: Iterable[Provider], preferred: str) -> bool:
        """
        Register providers and try to activate the preferred one.

        Args:
            providers: Providers in display order
            preferred: Key or display name of the provider to activate

        Returns:
            True if the preferred provider is now active. Otherwise no
            provider is active; another one is never picked implicitly.
        """
        with self._lock:
            self._register(providers)
            self._active = None

        logger.info("Providers configured", providers=self.names(), preferred=preferred)
        if self.switch_to(preferred):
            return True

        logger.warning("Preferred provider unavailable, none active", preferred=preferred)
        return False

    @property
    def providers(self) -> List[Provider]:
        with self._lock:
            return list(self._providers.values())

    def names(self) -> List[str]:
        return [provider.name for provider in self.providers]

    def find(self, name: str) -> Optional[Provider]:
        """Look a provider up by key ("ollama") or display name, case-insensitively."""
        wanted = name.strip().lower()
        for provider in self.providers:
            if wanted in (provider.key, provider.name.lower()):
                return provider
        return None

    @property
    def active(self) -> Optional[Provider]:
        with self._lock:
            return self._active

    @property
    def active_name(self) -> str:
        active = self.active
        return active.name if active is not None else "None"

    def switch_to(self, name: str) -> bool:
        """
        Activate a provider if its liveness probe succeeds.

        Returns:
            bool: True on success; False leaves the active provider unchanged
        """
        provider = self.find(name)
        if provider is None:
            logger.warning("Unknown provider requested", requested=name, known=self.names())
            return False

        # Probe outside the lock so an in-flight generate is not blocked by it
        if not provider.is_available():
            logger.warning("Switch refused, provider unavailable", provider=provider.name, active=self.active_name)
            return False

        with self._lock:
            previous = self._active
            self._active = provider

        logger.info(
            "Switched provider",
            provider=provider.name,
            previous=previous.name if previous is not None else None,
        )
        return True

    def generate(self, prompt: str) -> str:
        """
        Route a prompt to the active provider.

        Raises:
            NoProviderSelectedError: If no provider is active
            ProviderError: Propagated unchanged from the active provider
        """
        text, _provider_name = self.generate_attributed(prompt)
        return text

    def generate_attributed(self, prompt: str) -> Tuple[str, str]:
        """Like ``generate`` but also returns the name of the provider that answered."""
        with self._lock:
            provider = self._active
        if provider is None:
            raise NoProviderSelectedError()
        # A switch during the call does not affect it; the call finishes on this provider
        return provider.generate(prompt), provider.name

    def test_all(self) -> Dict[str, bool]:
        """Probe every provider without touching the active one."""
        results = {provider.name: provider.is_available() for provider in self.providers}
        logger.info("Provider diagnostics", results=results)
        return results

    def list_available(self) -> List[str]:
        # Not cached: local servers start and stop, networks flap
        return [provider.name for provider in self.providers if provider.is_available()]

    def close(self) -> None:
        for provider in self.providers:
            provider.close()
