"""Viewer session manager: one presentation-shell state per connected map client."""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from busmap import config
from busmap.catalog import RouteCatalog
from busmap.models import Effect, ViewerState
from busmap.viewer import close_detail, reduce

logger = logging.getLogger("busmap.sessions")


@dataclass
class ViewerSession:
    """Tracks UI state for one map client."""
    session_id: str
    state: ViewerState = field(default_factory=ViewerState)
    event_count: int = 0
    started_at: float = field(default_factory=time.time)
    last_event_at: float = 0.0

    @property
    def last_active_at(self) -> float:
        return max(self.started_at, self.last_event_at)


class ViewerSessionManager:
    """Manages all active viewer sessions."""

    def __init__(self, max_age_sec: float = config.SESSION_MAX_AGE_SEC):
        self.sessions: dict[str, ViewerSession] = {}
        self.max_age_sec = max_age_sec

    def create_session(self) -> ViewerSession:
        self.cleanup_stale_sessions()
        session_id = str(uuid.uuid4())[:12]
        session = ViewerSession(session_id=session_id)
        self.sessions[session_id] = session
        logger.info(f"Viewer session created: {session_id}")
        return session

    def get_session(self, session_id: str) -> Optional[ViewerSession]:
        return self.sessions.get(session_id)

    def dispatch(self, session_id: str, event, catalog: RouteCatalog) -> Optional[list[Effect]]:
        """Reduce one event into the session's state. None if the session is unknown."""
        session = self.sessions.get(session_id)
        if not session:
            return None

        session.state, effects = reduce(session.state, event, catalog)
        session.event_count += 1
        session.last_event_at = time.time()
        return effects

    def end_session(self, session_id: str) -> Optional[list[Effect]]:
        """Drop a session. Returns the effects needed to leave the page clean."""
        session = self.sessions.pop(session_id, None)
        if not session:
            return None

        session.state, effects = close_detail(session.state)
        logger.info(f"Viewer session ended: {session_id} after {session.event_count} events")
        return effects

    def get_active_sessions_count(self) -> int:
        return len(self.sessions)

    def cleanup_stale_sessions(self, max_age_sec: Optional[float] = None) -> int:
        """Remove sessions idle for longer than max_age_sec. Returns count removed."""
        if max_age_sec is None:
            max_age_sec = self.max_age_sec
        now = time.time()
        stale = [
            sid for sid, s in self.sessions.items()
            if now - s.last_active_at > max_age_sec
        ]
        for sid in stale:
            del self.sessions[sid]
        if stale:
            logger.info(f"Cleaned up {len(stale)} stale viewer sessions")
        return len(stale)
