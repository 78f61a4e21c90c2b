"""In-memory store for the lifecycle of interview conversations."""
from __future__ import annotations

import logging
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_all
from datetime import datetime, timezone
from typing import Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from observability import log_event
from persona_builder import InterviewConfig
from tavus_gateway import StartedInterview

logger = logging.getLogger(__name__)

SessionStatus = Literal["idle", "loading", "active", "ended", "error"]

Launcher = Callable[[InterviewConfig], StartedInterview]
EndNotifier = Callable[[str], None]


class ConversationSession(BaseModel):
    session_id: str
    status: SessionStatus = "idle"
    conversation_id: Optional[str] = None
    conversation_url: Optional[str] = None
    error: Optional[str] = None
    start_time: Optional[datetime] = None
    config: Optional[InterviewConfig] = None
    document_ids: List[str] = Field(default_factory=list)


class SessionStateError(RuntimeError):
    """Raised when an operation is not allowed from the session's current status."""

    def __init__(self, session_id: str, operation: str, status: str) -> None:
        super().__init__(f"Cannot {operation} session {session_id} while {status}")
        self.session_id = session_id
        self.operation = operation
        self.status = status


class SessionStore:
    """Holds conversation sessions and applies the start/end/reset transitions.

    idle -> loading -> active | error, active -> ended, ended | error -> idle.
    Sessions stay in memory until ``remove``; a session that is loading or
    active cannot be removed.
    The lock only guards the mapping; two overlapping ``start`` calls on the
    same session are not serialized and the later write wins.
    """

    def __init__(self, *, max_workers: int = 4) -> None:
        self._sessions: Dict[str, ConversationSession] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="end-notify")
        self._pending: set[Future] = set()

    def create(self) -> ConversationSession:
        session = ConversationSession(session_id=str(uuid.uuid4()))
        self._put(session)
        return session

    def get(self, session_id: str) -> ConversationSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise KeyError(session_id)
        return session

    def start(self, session_id: str, config: InterviewConfig, launch: Launcher) -> ConversationSession:
        """Launch the conversation; failures move the session to ``error`` and re-raise."""
        session = self.get(session_id)
        if session.status not in ("idle", "loading"):
            raise SessionStateError(session_id, "start", session.status)
        self._put(session.model_copy(update={"status": "loading", "error": None, "config": config}))
        try:
            started = launch(config)
        except Exception as exc:
            self._put(self.get(session_id).model_copy(update={"status": "error", "error": str(exc) or "Unknown error"}))
            log_event("session.error", None, session_id=session_id, outcome=type(exc).__name__)
            raise
        active = self.get(session_id).model_copy(
            update={
                "status": "active",
                "conversation_id": started.conversation_id,
                "conversation_url": started.conversation_url,
                "document_ids": list(started.document_ids),
                "error": None,
                "start_time": datetime.now(timezone.utc),
            }
        )
        self._put(active)
        log_event("session.active", started.conversation_id, session_id=session_id)
        return active

    def end(self, session_id: str, notify: Optional[EndNotifier] = None) -> tuple[ConversationSession, Optional[Future]]:
        """Mark the session ended and notify the provider in the background.

        The returned future is the handle of the notification; its failure is
        logged and never changes the session.
        """
        session = self.get(session_id)
        if session.status != "active":
            raise SessionStateError(session_id, "end", session.status)
        ended = session.model_copy(update={"status": "ended"})
        self._put(ended)
        handle: Optional[Future] = None
        if notify is not None and ended.conversation_id:
            handle = self._executor.submit(self._notify_end, notify, ended.conversation_id)
            with self._lock:
                self._pending.add(handle)
            handle.add_done_callback(self._forget)
        return ended, handle

    def reset(self, session_id: str) -> ConversationSession:
        session = self.get(session_id)
        if session.status not in ("idle", "ended", "error"):
            raise SessionStateError(session_id, "reset", session.status)
        fresh = ConversationSession(session_id=session_id)
        self._put(fresh)
        return fresh

    def remove(self, session_id: str) -> ConversationSession:
        session = self.get(session_id)
        if session.status in ("loading", "active"):
            raise SessionStateError(session_id, "remove", session.status)
        with self._lock:
            self._sessions.pop(session_id, None)
        return session

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def pending_notifications(self) -> int:
        with self._lock:
            return len(self._pending)

    def wait_for_notifications(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            pending = list(self._pending)
        wait_all(pending, timeout=timeout)

    def shutdown(self, *, wait: bool = False) -> None:
        """Cancel queued end notifications and stop the worker pool."""
        self._executor.shutdown(wait=wait, cancel_futures=True)

    def _put(self, session: ConversationSession) -> None:
        with self._lock:
            self._sessions[session.session_id] = session

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    @staticmethod
    def _notify_end(notify: EndNotifier, conversation_id: str) -> None:
        try:
            notify(conversation_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("End-of-conversation notification failed for %s: %s", conversation_id, exc)
