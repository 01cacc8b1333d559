"""
Session Module - Runs live games.

A session is one game from lobby to game over:
- The GameActor applies events and notifies subscribers
- The TurnTimer ticks while a turn is being played
- The SessionManager keeps games by id

Sessions are EPHEMERAL: no persistence, state ends with the process.
"""

from .timer import TurnTimer
from .actor import GameActor
from .manager import SessionManager, Session

__all__ = [
    "TurnTimer",
    "GameActor",
    "SessionManager",
    "Session",
]
