"""
Event System - The closed set of inputs the machine recognizes.

Events come from:
1. Players (team management, card list, start/guess/skip/end turn)
2. The turn timer (tick, time up)
3. The boundary (reset)

Each kind is its own frozen dataclass; `Event` is the union of them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

from .state import Card


class EventType(Enum):
    """Types of events in the system."""
    # Lobby
    ADD_TEAM = "ADD_TEAM"
    REMOVE_TEAM = "REMOVE_TEAM"
    SET_SECONDS = "SET_SECONDS"
    SET_CARDS = "SET_CARDS"
    START_GAME = "START_GAME"

    # Turn flow
    START_TURN = "START_TURN"
    GUESS = "GUESS"
    SKIP = "SKIP"
    NEXT_CARD = "NEXT_CARD"
    END_TURN = "END_TURN"

    # Timer
    TICK = "TICK"
    TIME_UP = "TIME_UP"

    RESET = "RESET"


@dataclass(frozen=True)
class AddTeam:
    type: ClassVar[EventType] = EventType.ADD_TEAM
    id: str
    name: str


@dataclass(frozen=True)
class RemoveTeam:
    type: ClassVar[EventType] = EventType.REMOVE_TEAM
    id: str


@dataclass(frozen=True)
class SetSeconds:
    type: ClassVar[EventType] = EventType.SET_SECONDS
    seconds: int


@dataclass(frozen=True)
class SetCards:
    type: ClassVar[EventType] = EventType.SET_CARDS
    cards: tuple[Card, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class StartGame:
    type: ClassVar[EventType] = EventType.START_GAME


@dataclass(frozen=True)
class StartTurn:
    type: ClassVar[EventType] = EventType.START_TURN


@dataclass(frozen=True)
class Guess:
    type: ClassVar[EventType] = EventType.GUESS


@dataclass(frozen=True)
class Skip:
    type: ClassVar[EventType] = EventType.SKIP


@dataclass(frozen=True)
class NextCard:
    type: ClassVar[EventType] = EventType.NEXT_CARD


@dataclass(frozen=True)
class EndTurn:
    type: ClassVar[EventType] = EventType.END_TURN


@dataclass(frozen=True)
class Tick:
    type: ClassVar[EventType] = EventType.TICK
    remaining: int


@dataclass(frozen=True)
class TimeUp:
    type: ClassVar[EventType] = EventType.TIME_UP


@dataclass(frozen=True)
class Reset:
    type: ClassVar[EventType] = EventType.RESET


Event = Union[
    AddTeam, RemoveTeam, SetSeconds, SetCards, StartGame,
    StartTurn, Guess, Skip, NextCard, EndTurn,
    Tick, TimeUp, Reset,
]

EVENT_CLASSES: dict[EventType, type] = {
    cls.type: cls
    for cls in (
        AddTeam, RemoveTeam, SetSeconds, SetCards, StartGame,
        StartTurn, Guess, Skip, NextCard, EndTurn,
        Tick, TimeUp, Reset,
    )
}
