"""Per-visitor form sessions"""
import threading
from typing import Callable, Dict, Optional

from services.waitlist_service import WaitlistFormController
from utils.logger import log_debug


class FormSessionRegistry:
    """Keeps one independent form controller per browser session"""

    def __init__(self, factory: Optional[Callable[[], WaitlistFormController]] = None):
        self._factory = factory or WaitlistFormController
        self._controllers: Dict[str, WaitlistFormController] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> WaitlistFormController:
        """Get the controller for a session, creating it on first use"""
        if not session_id:
            raise ValueError("Session ID required")

        with self._lock:
            controller = self._controllers.get(session_id)
            if controller is None:
                controller = self._factory()
                self._controllers[session_id] = controller
                log_debug(f"Created form for session {session_id[:8]}")
            return controller

    def find(self, session_id: Optional[str]) -> Optional[WaitlistFormController]:
        """Get the controller for a session without creating one"""
        if not session_id:
            return None
        with self._lock:
            return self._controllers.get(session_id)

    def discard(self, session_id: str) -> bool:
        """Close and forget a session's form. Returns False if there was none."""
        with self._lock:
            controller = self._controllers.pop(session_id, None)
        if controller is None:
            return False
        controller.close()
        return True

    def close_all(self):
        with self._lock:
            controllers = list(self._controllers.values())
            self._controllers.clear()
        for controller in controllers:
            controller.close()

    def __contains__(self, session_id):
        with self._lock:
            return session_id in self._controllers

    def __len__(self):
        with self._lock:
            return len(self._controllers)
