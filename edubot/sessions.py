"""
In-process store of assistant sessions, keyed by session id.

The store is bounded: sessions idle for longer than ``idle_ttl`` seconds
are dropped, and once ``max_sessions`` is reached the least recently used
session makes room for the new one.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Optional

from .assistant import AssistantSession
from .config import config

logger = logging.getLogger(__name__)


class SessionStore:
    """Creates sessions on first use and hands back the same one afterwards."""

    def __init__(
        self,
        factory: Optional[Callable[[str], AssistantSession]] = None,
        max_sessions: Optional[int] = None,
        idle_ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            factory: Builds a session for an unknown id.
            max_sessions: Most sessions kept at once (defaults to config).
            idle_ttl: Seconds without use before a session is dropped
                (defaults to config; 0 disables expiry).
            clock: Monotonic time source.
        """
        self._factory = factory or (lambda session_id: AssistantSession(session_id=session_id))
        self.max_sessions = (
            max_sessions if max_sessions is not None else config.assistant.max_sessions
        )
        if self.max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.idle_ttl = idle_ttl if idle_ttl is not None else config.assistant.session_ttl
        self._clock = clock
        # session id -> (session, last use), least recently used first
        self._sessions: "OrderedDict[str, tuple[AssistantSession, float]]" = OrderedDict()
        self._lock = threading.Lock()

    def _expire(self, now: float) -> None:
        if not self.idle_ttl:
            return
        while self._sessions:
            session_id, (_, last_used) = next(iter(self._sessions.items()))
            if now - last_used <= self.idle_ttl:
                break
            self._sessions.popitem(last=False)
            logger.debug("Expired idle session %s", session_id)

    def _touch(self, session_id: str, session: AssistantSession, now: float) -> None:
        self._sessions[session_id] = (session, now)
        self._sessions.move_to_end(session_id)

    def get_or_create(self, session_id: str) -> AssistantSession:
        with self._lock:
            now = self._clock()
            self._expire(now)
            entry = self._sessions.get(session_id)
            if entry is not None:
                session = entry[0]
            else:
                while len(self._sessions) >= self.max_sessions:
                    evicted, _ = self._sessions.popitem(last=False)
                    logger.info("Session limit reached, evicted %s", evicted)
                session = self._factory(session_id)
                logger.debug("Created session %s", session_id)
            self._touch(session_id, session, now)
            return session

    def get(self, session_id: str) -> Optional[AssistantSession]:
        with self._lock:
            now = self._clock()
            self._expire(now)
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            self._touch(session_id, entry[0], now)
            return entry[0]

    def drop(self, session_id: str) -> bool:
        """Forget a session; returns False if it did not exist."""
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            self._expire(self._clock())
            return len(self._sessions)
