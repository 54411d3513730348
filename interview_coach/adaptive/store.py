"""
Persistence boundary for adaptive contexts.

The engine only needs ``load(user_id)`` and ``save(context)``; the storage
format belongs to the store.
"""

import hashlib
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

import orjson
import structlog
from pydantic import ValidationError

from interview_coach.adaptive.context import AdaptiveContext
from interview_coach.utils.io import ensure_dir, load_json, safe_filename, save_json

logger = structlog.get_logger(__name__)


class ContextStore(Protocol):
    def load(self, user_id: str) -> Optional[AdaptiveContext]:
        ...

    def save(self, context: AdaptiveContext) -> None:
        ...


class JsonContextStore:
    """One indented JSON document per user under ``<data_dir>/contexts``."""

    def __init__(self, data_dir: Union[str, Path]):
        self.directory = ensure_dir(Path(data_dir) / "contexts")

    def path_for(self, user_id: str) -> Path:
        name = safe_filename(user_id)
        if name != user_id:
            # Sanitizing is lossy; the digest keeps distinct ids in distinct files
            digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()[:12]
            name = f"{name}_{digest}"
        return self.directory / f"{name}_context.json"

    def load(self, user_id: str) -> Optional[AdaptiveContext]:
        path = self.path_for(user_id)
        if not path.exists():
            return None

        try:
            context = AdaptiveContext.model_validate(load_json(path))
        except (orjson.JSONDecodeError, ValidationError, OSError) as e:
            # A damaged profile must not block a session; start over instead
            logger.error("Stored context unreadable, ignoring it", user_id=user_id, path=str(path), error=str(e))
            return None

        if context.user_id != user_id:
            logger.error(
                "Stored context belongs to another user, ignoring it",
                user_id=user_id,
                stored_user_id=context.user_id,
                path=str(path),
            )
            return None

        logger.info("Context loaded", user_id=user_id, sessions=context.session_count)
        return context

    def save(self, context: AdaptiveContext) -> None:
        path = self.path_for(context.user_id)
        save_json(path, context.model_dump(mode="json"))
        logger.info("Context saved", user_id=context.user_id, path=str(path))


class InMemoryContextStore:
    """Keeps serialized copies, so later mutations of a saved context are not visible."""

    def __init__(self):
        self._documents: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def load(self, user_id: str) -> Optional[AdaptiveContext]:
        with self._lock:
            document = self._documents.get(user_id)
        return AdaptiveContext.model_validate(document) if document is not None else None

    def save(self, context: AdaptiveContext) -> None:
        with self._lock:
            self._documents[context.user_id] = context.model_dump(mode="json")

    def __contains__(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._documents
