"""
Game State - The immutable context the machine operates on.

Design principles:
- Immutable: all mutations return a new context (dataclasses.replace)
- Comparable: two snapshots are equal when their fields are equal
- Display-agnostic: views only read snapshots, never write them
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class Card:
    """
    A card in play.

    Cards are immutable. The catalog owns where they come from;
    the machine only moves references between decks.
    """
    id: str
    text: str
    weight: int = 1
    description: str | None = None

    @property
    def score(self) -> int:
        """Points credited for a correct guess (weight, default 1)."""
        return self.weight if self.weight else 1


@dataclass(frozen=True)
class Team:
    """A team. Insertion order in the context is turn order."""
    id: str
    name: str
    score: int = 0

    def with_points(self, points: int) -> Team:
        return replace(self, score=self.score + points)


@dataclass(frozen=True)
class Round:
    """One of the fixed rounds and the clue style it allows."""
    index: int
    rule: str

    @property
    def number(self) -> int:
        return self.index + 1


ROUNDS: tuple[Round, ...] = (
    Round(index=0, rule="Describe freely (no saying the name)"),
    Round(index=1, rule="One-word clue"),
    Round(index=2, rule="Charades only"),
)

ROUND_COUNT = len(ROUNDS)
DEFAULT_SECONDS = 45


class MachineState(Enum):
    """
    Hierarchical state paths.

    Values are dotted paths so a parent ("rounds", "rounds.turn")
    can be matched by prefix.
    """
    LOBBY = "lobby"
    ROUND_SETUP = "rounds.round_setup"
    PREPARE = "rounds.turn.prepare"
    PLAYING = "rounds.turn.playing"
    TURN_END = "rounds.turn.turn_end"
    HANDOFF = "rounds.turn.handoff"
    ROUND_END = "rounds.turn.round_end"
    BETWEEN_ROUNDS = "rounds.between_rounds"
    GAME_OVER = "game_over"

    @property
    def is_transient(self) -> bool:
        """Transient states are passed through within a single event."""
        return self in TRANSIENT_STATES

    def matches(self, path: str) -> bool:
        """Check if this state is `path` or a descendant of it."""
        own = self.value.split(".")
        wanted = path.split(".")
        return own[:len(wanted)] == wanted


TRANSIENT_STATES = frozenset({
    MachineState.PREPARE,
    MachineState.TURN_END,
    MachineState.ROUND_END,
})


@dataclass(frozen=True)
class GameContext:
    """
    Complete game context at a point in time.

    Invariant: every card assigned to the current round is in exactly
    one of round_deck, current_card or round_won.
    """
    teams: tuple[Team, ...] = ()
    all_cards: tuple[Card, ...] = ()
    round_index: int = 0
    round_deck: tuple[Card, ...] = ()
    round_won: tuple[Card, ...] = ()
    current_team_index: int = 0
    current_card: Card | None = None
    turn_seconds: int = DEFAULT_SECONDS
    remaining_seconds: int = DEFAULT_SECONDS

    @property
    def current_team(self) -> Team | None:
        """Get the team whose turn it is."""
        if not self.teams:
            return None
        return self.teams[self.current_team_index % len(self.teams)]

    @property
    def current_round(self) -> Round:
        return ROUNDS[self.round_index]

    @property
    def cards_left(self) -> int:
        """Cards still to be guessed this round, including the one in play."""
        return len(self.round_deck) + (1 if self.current_card is not None else 0)

    @property
    def cards_in_round(self) -> int:
        return self.cards_left + len(self.round_won)

    def get_team(self, team_id: str) -> Team | None:
        """Get team by ID."""
        for t in self.teams:
            if t.id == team_id:
                return t
        return None

    def winners(self) -> list[Team]:
        """Teams sharing the highest score. Ties produce joint winners."""
        if not self.teams:
            return []
        best = max(t.score for t in self.teams)
        return [t for t in self.teams if t.score == best]

    def _copy_with(self, **kwargs: Any) -> GameContext:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)


@dataclass(frozen=True)
class MachineSnapshot:
    """What observers see: the settled state path and its context."""
    state: MachineState = MachineState.LOBBY
    context: GameContext = field(default_factory=GameContext)

    def matches(self, path: str) -> bool:
        return self.state.matches(path)
