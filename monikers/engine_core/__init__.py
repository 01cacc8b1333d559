"""
Engine Core - Deterministic game state machine and deck handling.

The engine is the runtime-free part that:
1. Holds the GameContext (teams, decks, scores, countdown)
2. Defines the legal state graph (lobby -> rounds -> game over)
3. Applies Deck Engine operations on transitions
4. Reports every state entered so a runtime can supervise the timer
"""

from .state import (
    Card, Team, Round, ROUNDS, ROUND_COUNT, DEFAULT_SECONDS,
    GameContext, MachineState, MachineSnapshot,
)
from .event import (
    Event, EventType, AddTeam, RemoveTeam, SetSeconds, SetCards, StartGame,
    StartTurn, Guess, Skip, NextCard, EndTurn, Tick, TimeUp, Reset,
)
from .rules import GameRules
from .reducer import Reducer, TransitionResult, apply_event

__all__ = [
    "Card",
    "Team",
    "Round",
    "ROUNDS",
    "ROUND_COUNT",
    "DEFAULT_SECONDS",
    "GameContext",
    "MachineState",
    "MachineSnapshot",
    "Event",
    "EventType",
    "AddTeam",
    "RemoveTeam",
    "SetSeconds",
    "SetCards",
    "StartGame",
    "StartTurn",
    "Guess",
    "Skip",
    "NextCard",
    "EndTurn",
    "Tick",
    "TimeUp",
    "Reset",
    "GameRules",
    "Reducer",
    "TransitionResult",
    "apply_event",
]
