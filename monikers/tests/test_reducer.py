"""
Tests for the reducer (state machine transitions).

Tests:
- Lobby events and the start guard
- Turn flow (guess, skip, end turn, timer events)
- Round and game completion
- Reset from every state
- Deck conservation over random play
"""

import random

import pytest

from ..engine_core.event import (
    AddTeam, RemoveTeam, SetSeconds, SetCards, StartGame, StartTurn,
    Guess, Skip, NextCard, EndTurn, Tick, TimeUp, Reset, EventType,
)
from ..engine_core.reducer import Reducer, apply_event
from ..engine_core.rules import GameRules
from ..engine_core.state import GameContext, MachineState
from .conftest import make_cards


def run(reducer, snapshot, *events):
    for event in events:
        snapshot = reducer.apply(snapshot, event).snapshot
    return snapshot


class TestLobby:
    """Tests for lobby events."""

    def test_initial_snapshot(self, reducer):
        snapshot = reducer.initial_snapshot()
        assert snapshot.state == MachineState.LOBBY
        assert snapshot.context.turn_seconds == 45
        assert snapshot.context.remaining_seconds == 45

    def test_add_and_remove_team(self, reducer):
        snapshot = run(
            reducer, reducer.initial_snapshot(),
            AddTeam(id="a", name="A"),
            AddTeam(id="b", name="B"),
            RemoveTeam(id="a"),
        )
        assert [t.id for t in snapshot.context.teams] == ["b"]

    def test_duplicate_team_id_ignored(self, reducer):
        snapshot = run(
            reducer, reducer.initial_snapshot(),
            AddTeam(id="a", name="A"),
            AddTeam(id="a", name="Again"),
        )
        assert len(snapshot.context.teams) == 1
        assert snapshot.context.teams[0].name == "A"

    def test_remove_unknown_team_is_no_op(self, lobby_ready, reducer):
        result = reducer.apply(lobby_ready, RemoveTeam(id="nope"))
        assert result.snapshot == lobby_ready
        assert not result.changed

    @pytest.mark.parametrize("requested,expected", [(5, 10), (10, 10), (60, 60), (120, 120), (500, 120)])
    def test_seconds_are_clamped(self, reducer, requested, expected):
        snapshot = run(reducer, reducer.initial_snapshot(), SetSeconds(seconds=requested))
        assert snapshot.context.turn_seconds == expected
        assert snapshot.context.remaining_seconds == expected

    def test_start_needs_two_teams(self, reducer, five_cards):
        snapshot = run(
            reducer, reducer.initial_snapshot(),
            AddTeam(id="a", name="A"),
            SetCards(cards=five_cards),
        )
        result = reducer.apply(snapshot, StartGame())

        assert result.snapshot == snapshot
        assert not result.handled
        assert "teams" in result.rejected

    def test_start_needs_cards(self, reducer):
        snapshot = run(
            reducer, reducer.initial_snapshot(),
            AddTeam(id="a", name="A"),
            AddTeam(id="b", name="B"),
        )
        result = reducer.apply(snapshot, StartGame())

        assert result.snapshot.state == MachineState.LOBBY
        assert "empty" in result.rejected

    def test_turn_events_ignored_in_lobby(self, lobby_ready, reducer):
        for event in (StartTurn(), Guess(), Skip(), NextCard(), EndTurn(), Tick(remaining=3), TimeUp()):
            result = reducer.apply(lobby_ready, event)
            assert result.snapshot == lobby_ready
            assert not result.handled


class TestStartGame:
    """Tests for leaving the lobby."""

    def test_pass_and_play_starts_first_turn(self, lobby_ready, reducer):
        result = reducer.apply(lobby_ready, StartGame())
        ctx = result.snapshot.context

        assert result.snapshot.state == MachineState.PLAYING
        assert result.entered == [
            MachineState.ROUND_SETUP,
            MachineState.PREPARE,
            MachineState.PLAYING,
        ]
        assert ctx.current_card is not None
        assert len(ctx.round_deck) == 4
        assert ctx.round_won == ()
        assert ctx.remaining_seconds == 45
        assert ctx.current_team_index == 0

    def test_round_setup_waits_without_pass_and_play(self, lobby_ready):
        reducer = Reducer(rules=GameRules(pass_and_play=False, rng=random.Random(1)))
        snapshot = reducer.apply(lobby_ready, StartGame()).snapshot

        assert snapshot.state == MachineState.ROUND_SETUP
        assert len(snapshot.context.round_deck) == 5
        assert snapshot.context.current_card is None

        snapshot = reducer.apply(snapshot, StartTurn()).snapshot
        assert snapshot.state == MachineState.PLAYING
        assert snapshot.context.current_card is not None

    def test_lobby_events_ignored_once_started(self, lobby_ready, reducer):
        snapshot = reducer.apply(lobby_ready, StartGame()).snapshot
        for event in (AddTeam(id="x", name="X"), RemoveTeam(id="t1"), SetSeconds(seconds=90)):
            assert reducer.apply(snapshot, event).snapshot == snapshot


class TestPlaying:
    """Tests for events during a turn."""

    @pytest.fixture
    def playing(self, lobby_ready, reducer):
        return reducer.apply(lobby_ready, StartGame()).snapshot

    def test_guess_scores_and_draws(self, playing, reducer):
        card = playing.context.current_card
        snapshot = reducer.apply(playing, Guess()).snapshot

        assert snapshot.context.teams[0].score == 1
        assert snapshot.context.teams[1].score == 0
        assert snapshot.context.round_won == (card,)
        assert snapshot.context.current_card is not None
        assert snapshot.context.current_card != card

    def test_weighted_guess(self, reducer):
        heavy = make_cards(2, weights={1: 3, 2: 3})
        snapshot = run(
            reducer, reducer.initial_snapshot(),
            AddTeam(id="a", name="A"), AddTeam(id="b", name="B"),
            SetCards(cards=heavy), StartGame(), Guess(),
        )
        assert [t.score for t in snapshot.context.teams] == [3, 0]

    def test_skip_penalty_floors_at_zero(self, playing, reducer):
        snapshot = run(reducer, playing, Tick(remaining=3), Skip())

        assert snapshot.state == MachineState.PLAYING
        assert snapshot.context.remaining_seconds == 0

    def test_skip_requeues_card(self, playing, reducer):
        card = playing.context.current_card
        snapshot = reducer.apply(playing, Skip()).snapshot

        assert snapshot.context.round_deck[-1] == card
        assert snapshot.context.remaining_seconds == 40

    def test_next_card_is_no_op_with_card_in_play(self, playing, reducer):
        result = reducer.apply(playing, NextCard())
        assert result.handled
        assert not result.changed

    def test_tick_overwrites_remaining(self, playing, reducer):
        snapshot = run(reducer, playing, Tick(remaining=30), Tick(remaining=29))
        assert snapshot.context.remaining_seconds == 29

    def test_tick_is_clamped(self, playing, reducer):
        assert reducer.apply(playing, Tick(remaining=-4)).snapshot.context.remaining_seconds == 0
        assert reducer.apply(playing, Tick(remaining=999)).snapshot.context.remaining_seconds == 45

    def test_end_turn_hands_off_to_next_team(self, playing, reducer):
        result = reducer.apply(run(reducer, playing, Tick(remaining=10)), EndTurn())
        snapshot = result.snapshot

        assert snapshot.state == MachineState.HANDOFF
        assert result.entered == [MachineState.TURN_END, MachineState.HANDOFF]
        assert snapshot.context.current_team_index == 1
        assert snapshot.context.remaining_seconds == 45

    def test_time_up_hands_off(self, playing, reducer):
        snapshot = run(reducer, playing, Tick(remaining=0), TimeUp())
        assert snapshot.state == MachineState.HANDOFF
        assert snapshot.context.current_team_index == 1

    def test_start_turn_from_handoff(self, playing, reducer):
        snapshot = run(reducer, playing, Guess(), EndTurn())
        deck_before = {c.id for c in snapshot.context.round_deck}
        if snapshot.context.current_card:
            deck_before.add(snapshot.context.current_card.id)

        snapshot = reducer.apply(snapshot, StartTurn()).snapshot
        deck_after = {c.id for c in snapshot.context.round_deck}
        deck_after.add(snapshot.context.current_card.id)

        assert snapshot.state == MachineState.PLAYING
        assert snapshot.context.current_team.id == "t2"
        assert deck_after == deck_before

    def test_timer_events_ignored_in_handoff(self, playing, reducer):
        handoff = reducer.apply(playing, EndTurn()).snapshot
        for event in (Tick(remaining=3), TimeUp(), Guess(), Skip()):
            assert reducer.apply(handoff, event).snapshot == handoff

    def test_rotation_fairness(self, reducer, five_cards):
        """Three teams, three turn ends: back to the first team."""
        snapshot = run(
            reducer, reducer.initial_snapshot(),
            AddTeam(id="a", name="A"), AddTeam(id="b", name="B"), AddTeam(id="c", name="C"),
            SetCards(cards=five_cards), StartGame(),
        )
        seen = []
        for _ in range(3):
            snapshot = run(reducer, snapshot, EndTurn())
            seen.append(snapshot.context.current_team_index)
            snapshot = run(reducer, snapshot, StartTurn())

        assert seen == [1, 2, 0]


class TestRoundCompletion:
    """Tests for round and game completion."""

    def guess_out(self, reducer, snapshot):
        while snapshot.state == MachineState.PLAYING:
            snapshot = reducer.apply(snapshot, Guess()).snapshot
        return snapshot

    def test_empty_deck_goes_between_rounds(self, lobby_ready, reducer):
        playing = reducer.apply(lobby_ready, StartGame()).snapshot
        for _ in range(4):
            playing = reducer.apply(playing, Guess()).snapshot

        result = reducer.apply(playing, Guess())
        snapshot = result.snapshot

        assert result.entered == [MachineState.ROUND_END, MachineState.BETWEEN_ROUNDS]
        assert snapshot.state == MachineState.BETWEEN_ROUNDS
        assert snapshot.context.round_index == 1
        assert len(snapshot.context.round_deck) == 5
        assert snapshot.context.round_won == ()
        assert snapshot.context.current_team_index == 1

    def test_round_index_steps_by_one(self, lobby_ready, reducer):
        snapshot = reducer.apply(lobby_ready, StartGame()).snapshot
        indexes = [snapshot.context.round_index]
        for _ in range(2):
            snapshot = self.guess_out(reducer, snapshot)
            indexes.append(snapshot.context.round_index)
            snapshot = reducer.apply(snapshot, StartTurn()).snapshot

        assert indexes == [0, 1, 2]

    def test_final_round_ends_game(self, lobby_ready, reducer):
        snapshot = reducer.apply(lobby_ready, StartGame()).snapshot
        for _ in range(2):
            snapshot = self.guess_out(reducer, snapshot)
            assert snapshot.state == MachineState.BETWEEN_ROUNDS
            snapshot = reducer.apply(snapshot, StartTurn()).snapshot

        snapshot = self.guess_out(reducer, snapshot)

        assert snapshot.state == MachineState.GAME_OVER
        assert snapshot.context.round_index == 2
        assert sum(t.score for t in snapshot.context.teams) == 15

    def test_game_over_accepts_only_reset(self, lobby_ready, reducer):
        snapshot = reducer.apply(lobby_ready, StartGame()).snapshot
        for _ in range(3):
            snapshot = self.guess_out(reducer, snapshot)
            if snapshot.state == MachineState.BETWEEN_ROUNDS:
                snapshot = reducer.apply(snapshot, StartTurn()).snapshot
        assert snapshot.state == MachineState.GAME_OVER

        for event in (StartTurn(), Guess(), StartGame(), AddTeam(id="z", name="Z")):
            assert reducer.apply(snapshot, event).snapshot == snapshot

        assert reducer.apply(snapshot, Reset()).snapshot.state == MachineState.LOBBY


class TestReset:
    """RESET from every reachable state."""

    def expected_context(self, turn_seconds, all_cards):
        return GameContext(
            all_cards=all_cards,
            turn_seconds=turn_seconds,
            remaining_seconds=turn_seconds,
        )

    @pytest.mark.parametrize("events", [
        [],
        [StartGame()],
        [StartGame(), Guess(), Skip()],
        [StartGame(), EndTurn()],
        [StartGame()] + [Guess()] * 5,
        [StartGame()] + [Guess()] * 5 + [StartTurn()] + [Guess()] * 5 + [StartTurn()] + [Guess()] * 5,
    ])
    def test_reset_returns_to_lobby(self, lobby_ready, reducer, events):
        snapshot = run(reducer, lobby_ready, *events)
        result = reducer.apply(snapshot, Reset())

        assert result.snapshot.state == MachineState.LOBBY
        assert result.snapshot.context == self.expected_context(45, lobby_ready.context.all_cards)

    def test_reset_keeps_configured_seconds(self, lobby_ready, reducer):
        snapshot = run(reducer, lobby_ready, SetSeconds(seconds=90), StartGame(), Tick(remaining=50), Reset())
        assert snapshot.context.turn_seconds == 90
        assert snapshot.context.remaining_seconds == 90

    def test_reset_twice_is_stable(self, lobby_ready, reducer):
        once = run(reducer, lobby_ready, StartGame(), Reset())
        twice = reducer.apply(once, Reset())
        assert twice.snapshot == once
        assert not twice.changed


class TestDispatch:
    """Tests for dispatch coverage."""

    def test_every_event_type_has_a_handler(self, reducer):
        assert reducer.handled_events() == set(EventType)

    def test_apply_event_convenience(self, lobby_ready):
        result = apply_event(lobby_ready, StartGame(), GameRules(rng=random.Random(1)))
        assert result.snapshot.state == MachineState.PLAYING

    def test_inputs_are_not_mutated(self, lobby_ready, reducer):
        before = lobby_ready
        copy = before.context._copy_with()
        reducer.apply(before, StartGame())
        assert before.context == copy
        assert before.state == MachineState.LOBBY


class TestConservation:
    """Deck conservation and index bounds over random play."""

    EVENTS = [
        StartTurn(), Guess(), Guess(), Guess(), Skip(), NextCard(),
        EndTurn(), TimeUp(), Tick(remaining=7), Tick(remaining=2),
    ]

    @pytest.mark.parametrize("seed", range(10))
    def test_cards_never_lost_or_duplicated(self, seed, five_cards):
        rng = random.Random(seed)
        reducer = Reducer(rules=GameRules(rng=random.Random(seed)))
        snapshot = run(
            reducer, reducer.initial_snapshot(),
            AddTeam(id="a", name="A"), AddTeam(id="b", name="B"), AddTeam(id="c", name="C"),
            SetCards(cards=five_cards), StartGame(),
        )
        last_round = 0

        for _ in range(300):
            snapshot = reducer.apply(snapshot, rng.choice(self.EVENTS)).snapshot
            ctx = snapshot.context

            ids = [c.id for c in ctx.round_deck] + [c.id for c in ctx.round_won]
            if ctx.current_card is not None:
                ids.append(ctx.current_card.id)
            assert sorted(ids) == sorted(c.id for c in five_cards)
            assert ctx.cards_in_round == len(five_cards)

            assert 0 <= ctx.current_team_index < len(ctx.teams)
            assert 0 <= ctx.remaining_seconds <= ctx.turn_seconds
            assert ctx.round_index in (last_round, last_round + 1)
            last_round = ctx.round_index
            assert not snapshot.state.is_transient

            if snapshot.state == MachineState.GAME_OVER:
                break
