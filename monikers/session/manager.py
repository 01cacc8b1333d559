"""
Session Manager - Creates and tracks live games.

Games are in-memory only:
- Created when a client asks for a new game
- Hold their own GameActor (and its turn timer)
- Removed when ended or when stale

Nothing is persisted across process restarts.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import time
import uuid

from ..engine_core.rules import GameRules
from ..engine_core.state import MachineState
from .actor import GameActor, TimerFactory
from .timer import TurnTimer

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """A live game and its bookkeeping."""
    session_id: str
    actor: GameActor
    created_at: float
    last_event_at: float = 0.0

    def is_active(self) -> bool:
        """A game is active until it reaches game over."""
        return self.actor.snapshot.state != MachineState.GAME_OVER

    def touch(self) -> None:
        self.last_event_at = time.time()


class SessionManager:
    """
    Manages live games.

    Responsibilities:
    - Create games with their rules and timer factory
    - Look games up by id
    - Stop timers and forget games when they end
    """

    def __init__(self, timer_factory: TimerFactory = TurnTimer):
        self._sessions: dict[str, Session] = {}
        self._timer_factory = timer_factory

    def create_session(self, rules: GameRules | None = None) -> Session:
        """Create a new game sitting in the lobby."""
        session_id = str(uuid.uuid4())
        actor = GameActor(
            rules=rules,
            timer_factory=self._timer_factory,
            game_id=session_id,
        )
        now = time.time()
        session = Session(
            session_id=session_id,
            actor=actor,
            created_at=now,
            last_event_at=now,
        )
        self._sessions[session_id] = session
        logger.info("Created game %s", session_id)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a game by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a game and release its timer.

        Returns False if there was no such game.
        """
        session = self._sessions.pop(session_id, None)
        if not session:
            return False
        session.actor.stop()
        logger.info("Ended game %s (%s)", session_id, reason)
        return True

    def list_sessions(self) -> list[str]:
        return list(self._sessions)

    def list_active_sessions(self) -> list[str]:
        """List IDs of games that have not finished."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_idle_seconds: int = 3600) -> int:
        """
        End games that have seen no event for max_idle_seconds.

        Returns how many were removed.
        """
        current_time = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if current_time - session.last_event_at > max_idle_seconds
        ]
        for session_id in stale:
            self.end_session(session_id, reason="stale")
        return len(stale)
