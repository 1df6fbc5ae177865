"""
Live Session Registry

Keeps the API's assessment controllers in memory, keyed by session token,
with bounded size and time-based expiry:
- completed sessions expire a short while after their last access
- any session expires after a longer idle period
- when full, the least recently used entry is evicted (completed first)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from adaptive_career_assessment.assessment_controller import AssessmentController
from adaptive_career_assessment.assessment_state import AssessmentStatus

logger = logging.getLogger(__name__)


@dataclass
class RegisteredSession:
    """Registry entry."""
    controller: AssessmentController
    last_access: datetime

    @property
    def is_completed(self) -> bool:
        return self.controller.state.status == AssessmentStatus.COMPLETED


class SessionRegistry:
    """In-memory controller map with TTL cleanup and LRU eviction."""

    def __init__(
        self,
        completed_ttl_minutes: float = 30,
        idle_ttl_minutes: float = 240,
        max_sessions: int = 1000,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize the registry.

        Args:
            completed_ttl_minutes: Lifetime of a completed session after its last access
            idle_ttl_minutes: Lifetime of any session after its last access
            max_sessions: Maximum number of sessions kept
            clock: Time source (datetime.now by default)
        """
        self.completed_ttl = timedelta(minutes=completed_ttl_minutes)
        self.idle_ttl = timedelta(minutes=idle_ttl_minutes)
        self.max_sessions = max_sessions
        self.clock = clock
        self.sessions: Dict[str, RegisteredSession] = {}

    def __len__(self) -> int:
        return len(self.sessions)

    def _cleanup_expired(self):
        """Remove expired sessions."""
        now = self.clock()
        expired_keys = [
            key for key, entry in self.sessions.items()
            if now - entry.last_access > (self.completed_ttl if entry.is_completed else self.idle_ttl)
        ]
        for key in expired_keys:
            del self.sessions[key]
        if expired_keys:
            logger.info(f"🧹 [SessionRegistry] Expired {len(expired_keys)} session(s)")

    def _evict_oldest(self):
        """Evict the least recently used session, completed ones first."""
        oldest_key = min(
            self.sessions.keys(),
            key=lambda k: (not self.sessions[k].is_completed, self.sessions[k].last_access)
        )
        del self.sessions[oldest_key]
        logger.warning(f"⚠️ [SessionRegistry] Registry full, evicted session {oldest_key[:8]}...")

    def add(self, session_id: str, controller: AssessmentController):
        """Register a controller under its session token."""
        self._cleanup_expired()
        if session_id not in self.sessions and len(self.sessions) >= self.max_sessions:
            self._evict_oldest()
        self.sessions[session_id] = RegisteredSession(controller=controller, last_access=self.clock())

    def get(self, session_id: str) -> Optional[AssessmentController]:
        """Look up a controller and refresh its last access time."""
        self._cleanup_expired()
        entry = self.sessions.get(session_id)
        if entry is None:
            return None
        entry.last_access = self.clock()
        return entry.controller

    def pop(self, session_id: str) -> Optional[AssessmentController]:
        """Remove and return a controller."""
        entry = self.sessions.pop(session_id, None)
        return entry.controller if entry else None

    def clear(self):
        self.sessions.clear()
