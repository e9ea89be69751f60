"""Per-session taint tracker ownership for taintgate.

Each session gets its own TaintTracker and lock. Nothing is shared
across sessions and nothing is persisted.
"""

import logging
import threading
from typing import Optional

from .config import TaintConfig
from .taint.tracker import TaintTracker

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default"


class SessionRegistry:
    """Maps session ids to independent taint trackers."""

    def __init__(self, config: Optional[TaintConfig] = None):
        """Initialize the registry.

        Args:
            config: TaintConfig used for every tracker created here.
        """
        self.config = config or TaintConfig()
        self._trackers: dict[str, TaintTracker] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _entry(self, session_id: Optional[str]) -> tuple[TaintTracker, threading.Lock]:
        key = session_id or DEFAULT_SESSION
        with self._guard:
            if key not in self._trackers:
                self._trackers[key] = TaintTracker(self.config)
                self._locks[key] = threading.Lock()
                logger.debug(f"Created taint tracker for session={key}")
            return self._trackers[key], self._locks[key]

    def get(self, session_id: Optional[str] = None) -> TaintTracker:
        """Get or create the tracker for a session."""
        return self._entry(session_id)[0]

    def lock(self, session_id: Optional[str] = None) -> threading.Lock:
        """Get the lock that serializes mutations for a session."""
        return self._entry(session_id)[1]

    def __contains__(self, session_id: str) -> bool:
        with self._guard:
            return session_id in self._trackers

    def session_ids(self) -> list[str]:
        with self._guard:
            return list(self._trackers)

    def reset(self, session_id: Optional[str] = None) -> TaintTracker:
        """Reset a session's tracker to the initial level."""
        tracker, lock = self._entry(session_id)
        with lock:
            tracker.reset()
        return tracker

    def drop(self, session_id: str) -> bool:
        """Discard a finished session.

        Returns:
            True if the session existed
        """
        with self._guard:
            self._locks.pop(session_id, None)
            existed = self._trackers.pop(session_id, None) is not None
        if existed:
            logger.debug(f"Dropped taint tracker for session={session_id}")
        return existed

    def summary(self, session_id: Optional[str] = None) -> dict:
        """Get a status summary for a session.

        Args:
            session_id: Session identifier

        Returns:
            Summary dictionary with level, tier and recent events
        """
        key = session_id or DEFAULT_SESSION
        state = self.get(key).snapshot()
        return {
            "session_id": key,
            "level": state.level,
            "tier": state.tier.value,
            "event_count": len(state.events),
            "recent_events": [e.to_dict() for e in state.events[-5:]],
        }
