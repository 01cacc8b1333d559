"""
Pytest fixtures for Monikers tests.
"""

import random

import pytest

from ..engine_core.event import AddTeam, SetCards, SetSeconds, Tick, TimeUp
from ..engine_core.reducer import Reducer
from ..engine_core.rules import GameRules
from ..engine_core.state import Card, GameContext, MachineSnapshot, MachineState
from ..session.actor import GameActor


class ManualTimer:
    """
    Timer driven by the test instead of the clock.

    Mirrors TurnTimer: a tick with the full duration on start,
    nothing at all once stopped.
    """

    def __init__(self, seconds, send):
        self.seconds = seconds
        self.remaining = seconds
        self.send = send
        self.started = False
        self.stopped = False
        self.synced = []

    def start(self):
        self.started = True
        self.send(Tick(remaining=self.remaining))

    def stop(self):
        self.stopped = True

    def sync(self, remaining):
        self.remaining = max(0, remaining)
        self.synced.append(remaining)

    def tick(self, seconds=1):
        """Let `seconds` pass."""
        for _ in range(seconds):
            if self.stopped:
                return
            self.remaining = max(0, self.remaining - 1)
            self.send(Tick(remaining=self.remaining))
            if self.remaining == 0:
                self.stopped = True
                self.send(TimeUp())
                return


def make_cards(count, weights=None):
    weights = weights or {}
    return tuple(
        Card(id=f"c{i}", text=f"Card {i}", weight=weights.get(i, 1))
        for i in range(1, count + 1)
    )


@pytest.fixture
def rules() -> GameRules:
    """Rules with a seeded shuffle."""
    return GameRules(rng=random.Random(1234))


@pytest.fixture
def reducer(rules) -> Reducer:
    return Reducer(rules=rules)


@pytest.fixture
def five_cards() -> tuple[Card, ...]:
    return make_cards(5)


@pytest.fixture
def lobby_ready(reducer, five_cards) -> MachineSnapshot:
    """Lobby with two teams, five cards and 45 seconds: ready to start."""
    snapshot = reducer.initial_snapshot()
    for event in (
        AddTeam(id="t1", name="Owls"),
        AddTeam(id="t2", name="Foxes"),
        SetCards(cards=five_cards),
        SetSeconds(seconds=45),
    ):
        snapshot = reducer.apply(snapshot, event).snapshot
    return snapshot


@pytest.fixture
def playing_context(five_cards) -> GameContext:
    """Mid-turn context: one card in play, the rest in the deck."""
    return GameContext(
        teams=(),
        all_cards=five_cards,
        round_deck=five_cards[1:],
        current_card=five_cards[0],
        turn_seconds=45,
        remaining_seconds=45,
    )


@pytest.fixture
def timers() -> list:
    """Every ManualTimer created by `timer_factory`, in order."""
    return []


@pytest.fixture
def timer_factory(timers):
    def factory(seconds, send):
        timer = ManualTimer(seconds, send)
        timers.append(timer)
        return timer
    return factory


@pytest.fixture
def actor(rules, timer_factory) -> GameActor:
    return GameActor(rules=rules, timer_factory=timer_factory, game_id="test_game")


@pytest.fixture
def ready_actor(actor, five_cards) -> GameActor:
    """Actor in the lobby with two teams and five cards."""
    actor.send(AddTeam(id="t1", name="Owls"))
    actor.send(AddTeam(id="t2", name="Foxes"))
    actor.send(SetCards(cards=five_cards))
    assert actor.snapshot.state == MachineState.LOBBY
    return actor
