"""
Game Rules - The static rule set a machine is built with.

Rules are read-only. They are not part of the context and do not
change while a game is running.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import random

from .state import Round, ROUNDS, DEFAULT_SECONDS
from .deck import SKIP_PENALTY_SECONDS


@dataclass(frozen=True)
class GameRules:
    rounds: tuple[Round, ...] = ROUNDS
    default_seconds: int = DEFAULT_SECONDS
    min_seconds: int = 10
    max_seconds: int = 120
    skip_penalty: int = SKIP_PENALTY_SECONDS
    min_teams: int = 2

    # Pass-and-play: START_GAME drops straight into the first turn
    # instead of waiting in round setup.
    pass_and_play: bool = True

    rng: random.Random = field(default_factory=random.Random, compare=False)

    @property
    def round_count(self) -> int:
        return len(self.rounds)

    def clamp_seconds(self, seconds: int) -> int:
        """Clamp a requested turn length into the allowed bounds."""
        return max(self.min_seconds, min(self.max_seconds, int(seconds)))
