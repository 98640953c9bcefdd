from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol

from pydantic import ValidationError

from interview_backend.app.config import settings
from interview_backend.app.schemas.interview import InterviewSession, NavigationState

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "interview_session_"
APP_STATE_KEY = "interview_app_state"


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class LocalJsonStorage:
    """One JSON document per key under ``root``."""

    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = Path(root or settings.SESSION_STORAGE_DIR)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in key)
        return self.root / f"{safe}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class MemoryStorage:
    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


def get_storage() -> KeyValueStorage:
    backend = (settings.STORAGE_BACKEND or "local").lower()
    if backend == "memory":
        return MemoryStorage()
    if backend == "local":
        return LocalJsonStorage()
    raise RuntimeError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")


class RestoreStatus(str, Enum):
    FRESH = "fresh"
    EXPIRED = "expired"
    DISCARDED = "discarded"
    RESTORED = "restored"


@dataclass
class RestoreOutcome:
    status: RestoreStatus
    session: Optional[InterviewSession] = None

    @property
    def restored(self) -> bool:
        return self.status == RestoreStatus.RESTORED


class SessionStore:
    """
    Durable snapshots of in-progress interviews.

    Only sessions that are started and not completed are written. Writes are
    best effort: a storage failure is logged and reported as ``False`` so the
    interview itself keeps going.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        *,
        ttl_seconds: Optional[float] = None,
        autosave_interval: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.storage = storage if storage is not None else get_storage()
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.SESSION_TTL_HOURS * 3600
        self.autosave_interval = (
            autosave_interval if autosave_interval is not None else settings.AUTOSAVE_INTERVAL_SECONDS
        )
        self._clock = clock
        self._last_saved: Dict[str, float] = {}

    @staticmethod
    def key_for(candidate_id: str) -> str:
        return f"{SESSION_KEY_PREFIX}{candidate_id}"

    def save(self, session: InterviewSession) -> bool:
        if not session.is_active:
            return False
        now = self._clock()
        snapshot = session.model_copy(update={"last_active_at": now})
        try:
            self.storage.set(self.key_for(session.candidate_id), snapshot.model_dump_json(by_alias=True))
        except OSError as exc:
            logger.error(f"Failed to save session {session.candidate_id}: {exc}")
            return False
        self._last_saved[session.candidate_id] = now
        return True

    def heartbeat(self, session: InterviewSession) -> bool:
        """Periodic save; a no-op until the autosave interval has passed."""
        if not session.is_active:
            return False
        last = self._last_saved.get(session.candidate_id)
        if last is not None and self._clock() - last < self.autosave_interval:
            return False
        return self.save(session)

    def load(self, candidate_id: str) -> RestoreOutcome:
        key = self.key_for(candidate_id)
        try:
            raw = self.storage.get(key)
        except OSError as exc:
            logger.error(f"Failed to read session {candidate_id}: {exc}")
            return RestoreOutcome(RestoreStatus.FRESH)
        if raw is None:
            return RestoreOutcome(RestoreStatus.FRESH)

        try:
            session = InterviewSession.model_validate_json(raw)
        except (ValidationError, ValueError) as exc:
            logger.warning(f"Discarding unreadable session snapshot {key}: {exc}")
            self.clear(candidate_id)
            return RestoreOutcome(RestoreStatus.DISCARDED)

        if self._clock() - session.last_active_at > self.ttl_seconds:
            logger.info(f"Session snapshot {key} expired, starting fresh")
            self.clear(candidate_id)
            return RestoreOutcome(RestoreStatus.EXPIRED)

        if session.interview_completed or not session.interview_started:
            self.clear(candidate_id)
            return RestoreOutcome(RestoreStatus.DISCARDED)

        logger.info(
            f"Restoring session {candidate_id} at question {session.current_question_index + 1}"
        )
        return RestoreOutcome(RestoreStatus.RESTORED, session)

    def clear(self, candidate_id: str) -> None:
        self._last_saved.pop(candidate_id, None)
        try:
            self.storage.remove(self.key_for(candidate_id))
        except OSError as exc:
            logger.error(f"Failed to clear session {candidate_id}: {exc}")

    def save_navigation(self, state: NavigationState) -> None:
        try:
            self.storage.set(APP_STATE_KEY, state.model_dump_json(by_alias=True))
        except OSError as exc:
            logger.error(f"Failed to save navigation state: {exc}")

    def load_navigation(self) -> NavigationState:
        try:
            raw = self.storage.get(APP_STATE_KEY)
        except OSError as exc:
            logger.error(f"Failed to read navigation state: {exc}")
            return NavigationState()
        if not raw:
            return NavigationState()
        try:
            return NavigationState.model_validate_json(raw)
        except (ValidationError, ValueError):
            logger.warning("Discarding unreadable navigation state")
            return NavigationState()
