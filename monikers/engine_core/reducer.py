"""
Reducer - The game state machine.

The reducer is the single point of state change.
All context changes go through Reducer.apply().

Design principles:
- Pure function: (snapshot, event) -> new snapshot
- An event with no handler in the current state is ignored
- Guards route control flow; actions never fail
- Transient states (prepare, turn_end, round_end) are passed through
  within the same event, so a settled snapshot never rests in them

State graph:

    lobby --START_GAME--> rounds.round_setup --START_TURN--> turn.prepare
    turn.prepare ---------> turn.playing
    turn.playing --END_TURN/TIME_UP--> turn.turn_end --> turn.handoff
    turn.handoff --START_TURN--> turn.prepare
    turn.playing (deck empty) --> turn.round_end
    turn.round_end --> game_over | between_rounds
    between_rounds --START_TURN--> turn.prepare
    * --RESET--> lobby
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import logging

from . import deck
from .event import (
    Event, EventType, AddTeam, RemoveTeam, SetSeconds, SetCards, Tick,
)
from .rules import GameRules
from .state import GameContext, MachineSnapshot, MachineState, Team

logger = logging.getLogger(__name__)

Handler = Callable[[GameContext, Event], "tuple[MachineState | None, GameContext]"]


@dataclass
class TransitionResult:
    """
    Result of applying an event.

    Contains:
    - The settled snapshot
    - Whether any handler ran (False when ignored or guard-rejected)
    - Every state entered on the way, in order
    """
    snapshot: MachineSnapshot
    handled: bool = False
    changed: bool = False
    entered: list[MachineState] = field(default_factory=list)
    rejected: str | None = None


@dataclass
class Reducer:
    """
    Reducer applies events to machine snapshots.

    Stateless - all state is in the snapshot.
    Rules provide the bounds and the shuffling rng.
    """
    rules: GameRules = field(default_factory=GameRules)

    def initial_snapshot(self) -> MachineSnapshot:
        """Snapshot of a fresh machine sitting in the lobby."""
        return MachineSnapshot(
            state=MachineState.LOBBY,
            context=GameContext(
                turn_seconds=self.rules.default_seconds,
                remaining_seconds=self.rules.default_seconds,
            ),
        )

    def apply(self, snapshot: MachineSnapshot, event: Event) -> TransitionResult:
        """
        Apply an event to a snapshot.

        Returns a TransitionResult with the settled snapshot. Never raises
        for game-level conditions.
        """
        handler = self._get_handler(snapshot.state, event.type)
        if handler is None:
            return TransitionResult(snapshot=snapshot)

        rejection = self._check_guard(snapshot, event)
        if rejection:
            logger.debug("%s rejected in %s: %s", event.type.value, snapshot.state.value, rejection)
            return TransitionResult(snapshot=snapshot, rejected=rejection)

        target, ctx = handler(snapshot.context, event)
        entered: list[MachineState] = []
        state = snapshot.state
        if target is not None:
            state, ctx = self._enter(target, ctx, entered)
        state, ctx = self._settle(state, ctx, entered)

        new_snapshot = MachineSnapshot(state=state, context=ctx)
        return TransitionResult(
            snapshot=new_snapshot,
            handled=True,
            changed=new_snapshot != snapshot,
            entered=entered,
        )

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _get_handler(self, state: MachineState, event_type: EventType) -> Handler | None:
        """Get the handler for an event in a state. RESET is accepted everywhere."""
        if event_type == EventType.RESET:
            return self._handle_reset
        return self._handlers().get(state, {}).get(event_type)

    def _handlers(self) -> dict[MachineState, dict[EventType, Handler]]:
        return {
            MachineState.LOBBY: {
                EventType.ADD_TEAM: self._handle_add_team,
                EventType.REMOVE_TEAM: self._handle_remove_team,
                EventType.SET_SECONDS: self._handle_set_seconds,
                EventType.SET_CARDS: self._handle_set_cards,
                EventType.START_GAME: self._handle_start_game,
            },
            MachineState.ROUND_SETUP: {
                EventType.START_TURN: self._handle_start_turn,
            },
            MachineState.PLAYING: {
                EventType.TICK: self._handle_tick,
                EventType.TIME_UP: self._handle_end_turn,
                EventType.NEXT_CARD: self._handle_next_card,
                EventType.GUESS: self._handle_guess,
                EventType.SKIP: self._handle_skip,
                EventType.END_TURN: self._handle_end_turn,
            },
            MachineState.HANDOFF: {
                EventType.START_TURN: self._handle_start_turn,
            },
            MachineState.BETWEEN_ROUNDS: {
                EventType.START_TURN: self._handle_start_turn,
            },
        }

    def handled_events(self) -> set[EventType]:
        """Every event type some state reacts to."""
        types = {EventType.RESET}
        for table in self._handlers().values():
            types.update(table)
        return types

    def _check_guard(self, snapshot: MachineSnapshot, event: Event) -> str | None:
        """
        Check the guard on a transition.

        Returns the reason for rejection, None if allowed.
        """
        if event.type == EventType.START_GAME:
            ctx = snapshot.context
            if len(ctx.teams) < self.rules.min_teams:
                return f"need at least {self.rules.min_teams} teams"
            if not ctx.all_cards:
                return "card list is empty"
        return None

    # =========================================================================
    # State entry and eventless transitions
    # =========================================================================

    def _enter(
        self, state: MachineState, ctx: GameContext, entered: list[MachineState]
    ) -> tuple[MachineState, GameContext]:
        """Enter a state and run its entry actions."""
        entered.append(state)
        rng = self.rules.rng

        if state == MachineState.ROUND_SETUP:
            ctx = deck.reset_timer(deck.seed_first_round(ctx, rng))
        elif state == MachineState.PREPARE:
            ctx = deck.reshuffle_deck(ctx, rng)
            ctx = deck.reset_timer(deck.draw_next(ctx))
        elif state == MachineState.TURN_END:
            ctx = deck.reset_timer(deck.rotate_team(ctx))
        elif state == MachineState.ROUND_END:
            ctx = deck.rotate_team(ctx)
        elif state == MachineState.BETWEEN_ROUNDS:
            ctx = deck.advance_round(ctx, rng, self.rules.round_count)

        return state, ctx

    def _settle(
        self, state: MachineState, ctx: GameContext, entered: list[MachineState]
    ) -> tuple[MachineState, GameContext]:
        """Follow eventless transitions until the machine rests."""
        while True:
            target = self._eventless_target(state, ctx)
            if target is None:
                return state, ctx
            state, ctx = self._enter(target, ctx, entered)

    def _eventless_target(self, state: MachineState, ctx: GameContext) -> MachineState | None:
        if state == MachineState.ROUND_SETUP and self.rules.pass_and_play:
            return MachineState.PREPARE
        if state == MachineState.PREPARE:
            return MachineState.PLAYING
        if state == MachineState.PLAYING and deck.round_complete(ctx):
            return MachineState.ROUND_END
        if state == MachineState.TURN_END:
            return MachineState.HANDOFF
        if state == MachineState.ROUND_END:
            if deck.is_final_round(ctx, self.rules.round_count):
                return MachineState.GAME_OVER
            return MachineState.BETWEEN_ROUNDS
        return None

    # =========================================================================
    # Lobby handlers
    # =========================================================================

    def _handle_add_team(self, ctx: GameContext, event: AddTeam):
        if ctx.get_team(event.id) is not None:
            return None, ctx
        team = Team(id=event.id, name=event.name)
        return None, ctx._copy_with(teams=ctx.teams + (team,))

    def _handle_remove_team(self, ctx: GameContext, event: RemoveTeam):
        teams = tuple(t for t in ctx.teams if t.id != event.id)
        return None, ctx._copy_with(teams=teams)

    def _handle_set_seconds(self, ctx: GameContext, event: SetSeconds):
        seconds = self.rules.clamp_seconds(event.seconds)
        return None, ctx._copy_with(turn_seconds=seconds, remaining_seconds=seconds)

    def _handle_set_cards(self, ctx: GameContext, event: SetCards):
        return None, ctx._copy_with(all_cards=tuple(event.cards))

    def _handle_start_game(self, ctx: GameContext, event: Event):
        return MachineState.ROUND_SETUP, ctx

    # =========================================================================
    # Turn handlers
    # =========================================================================

    def _handle_start_turn(self, ctx: GameContext, event: Event):
        return MachineState.PREPARE, ctx

    def _handle_tick(self, ctx: GameContext, event: Tick):
        remaining = max(0, min(ctx.turn_seconds, event.remaining))
        return None, ctx._copy_with(remaining_seconds=remaining)

    def _handle_next_card(self, ctx: GameContext, event: Event):
        return None, deck.draw_next(ctx)

    def _handle_guess(self, ctx: GameContext, event: Event):
        return None, deck.draw_next(deck.resolve_guess(ctx))

    def _handle_skip(self, ctx: GameContext, event: Event):
        ctx = deck.resolve_skip(ctx, self.rules.skip_penalty)
        return None, deck.draw_next(ctx)

    def _handle_end_turn(self, ctx: GameContext, event: Event):
        return MachineState.TURN_END, ctx

    def _handle_reset(self, ctx: GameContext, event: Event):
        return MachineState.LOBBY, deck.reset_context(ctx)


def apply_event(snapshot: MachineSnapshot, event: Event, rules: GameRules | None = None) -> TransitionResult:
    """
    Convenience function to apply an event.

    Creates a Reducer and applies the event.
    """
    reducer = Reducer(rules=rules or GameRules())
    return reducer.apply(snapshot, event)
