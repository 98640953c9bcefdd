from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol

from interview_backend.app.schemas.interview import InterviewSession

logger = logging.getLogger(__name__)

UNLOAD_PROMPT = "You have an active interview. Are you sure you want to leave?"
FULLSCREEN_WARNING = "\n\n⚠️ Warning: Candidate exited fullscreen during the interview."


class FullscreenController(Protocol):
    @property
    def is_fullscreen(self) -> bool:
        ...

    def enter(self) -> None:
        ...

    def exit(self) -> None:
        ...


class HeadlessFullscreen:
    """Records requests; used when no presentation layer is attached."""

    def __init__(self) -> None:
        self.requests: List[str] = []
        self._active = False

    @property
    def is_fullscreen(self) -> bool:
        return self._active

    def enter(self) -> None:
        self.requests.append("enter")
        self._active = True

    def exit(self) -> None:
        self.requests.append("exit")
        self._active = False


def get_fullscreen_controller() -> FullscreenController:
    return HeadlessFullscreen()


class IntegrityMonitor:
    """Watches for fullscreen exits and page unloads while the interview runs."""

    def __init__(
        self,
        session: InterviewSession,
        save: Callable[[], bool],
        fullscreen: Optional[FullscreenController] = None,
    ) -> None:
        self.session = session
        self._save = save
        self.fullscreen = fullscreen or HeadlessFullscreen()

    def on_fullscreen_exit(self) -> bool:
        """Latch the warning. Returns True only when the latch changed."""
        if not self.session.is_active or self.session.exited_fullscreen:
            return False
        self.session.exited_fullscreen = True
        logger.warning(f"Candidate {self.session.candidate_id} exited fullscreen")
        return True

    def on_unload(self) -> Optional[str]:
        if not self.session.is_active:
            return None
        self._save()
        return UNLOAD_PROMPT

    def request_fullscreen(self) -> None:
        try:
            self.fullscreen.enter()
        except Exception as exc:
            logger.warning(f"Fullscreen request failed: {exc}")

    def release_fullscreen(self) -> None:
        try:
            if self.fullscreen.is_fullscreen:
                self.fullscreen.exit()
        except Exception as exc:
            logger.warning(f"Fullscreen exit failed: {exc}")

    def annotate(self, summary: str) -> str:
        if self.session.exited_fullscreen:
            return summary + FULLSCREEN_WARNING
        return summary
