"""
Deck Engine - Pure operations over the game context.

Every function takes a context and returns a new one. None of them
fail: no current card, no teams or an empty deck are valid inputs
and simply leave the context unchanged.

Invariant: a card is in exactly one of round_deck, current_card and
round_won. Only seed_first_round and reset_context change which cards
belong to the round.
"""

from __future__ import annotations
from typing import Sequence, TypeVar
import random

from .state import GameContext, ROUND_COUNT

T = TypeVar("T")

SKIP_PENALTY_SECONDS = 5


def shuffle(items: Sequence[T], rng: random.Random | None = None) -> tuple[T, ...]:
    """Return a uniformly random permutation (Fisher-Yates)."""
    rng = rng or random
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return tuple(shuffled)


def draw_next(ctx: GameContext) -> GameContext:
    """Put the head of the deck in play, unless a card already is."""
    if ctx.current_card is not None or not ctx.round_deck:
        return ctx
    return ctx._copy_with(
        current_card=ctx.round_deck[0],
        round_deck=ctx.round_deck[1:],
    )


def resolve_guess(ctx: GameContext) -> GameContext:
    """Credit the active team with the card's score and bank the card."""
    card = ctx.current_card
    if card is None:
        return ctx

    teams = ctx.teams
    if teams:
        i = ctx.current_team_index % len(teams)
        teams = tuple(
            t.with_points(card.score) if idx == i else t
            for idx, t in enumerate(teams)
        )

    return ctx._copy_with(
        teams=teams,
        current_card=None,
        round_won=ctx.round_won + (card,),
    )


def resolve_skip(ctx: GameContext, penalty: int = SKIP_PENALTY_SECONDS) -> GameContext:
    """Send the card to the back of the deck and charge the clock."""
    if ctx.current_card is None:
        return ctx
    return ctx._copy_with(
        current_card=None,
        round_deck=ctx.round_deck + (ctx.current_card,),
        remaining_seconds=max(0, ctx.remaining_seconds - penalty),
    )


def advance_round(
    ctx: GameContext,
    rng: random.Random | None = None,
    round_count: int = ROUND_COUNT,
) -> GameContext:
    """Move to the next round, reusing this round's cards as its deck."""
    next_index = ctx.round_index + 1
    if next_index >= round_count:
        return ctx
    return ctx._copy_with(
        round_index=next_index,
        round_deck=shuffle(ctx.round_won, rng),
        round_won=(),
        current_card=None,
        remaining_seconds=ctx.turn_seconds,
    )


def seed_first_round(ctx: GameContext, rng: random.Random | None = None) -> GameContext:
    """Deal the whole catalog as round one's deck. Later rounds are untouched."""
    if ctx.round_index != 0:
        return ctx
    return ctx._copy_with(
        round_deck=shuffle(ctx.all_cards, rng),
        round_won=(),
        current_card=None,
    )


def reshuffle_deck(ctx: GameContext, rng: random.Random | None = None) -> GameContext:
    """Shuffle what is left of the deck before a turn."""
    return ctx._copy_with(round_deck=shuffle(ctx.round_deck, rng))


def next_team_index(ctx: GameContext) -> int:
    if not ctx.teams:
        return 0
    return (ctx.current_team_index + 1) % len(ctx.teams)


def rotate_team(ctx: GameContext) -> GameContext:
    return ctx._copy_with(current_team_index=next_team_index(ctx))


def reset_timer(ctx: GameContext) -> GameContext:
    return ctx._copy_with(remaining_seconds=ctx.turn_seconds)


def reset_context(ctx: GameContext) -> GameContext:
    """Clear teams, decks and counters. Keeps turn length and catalog."""
    return GameContext(
        all_cards=ctx.all_cards,
        turn_seconds=ctx.turn_seconds,
        remaining_seconds=ctx.turn_seconds,
    )


def round_complete(ctx: GameContext) -> bool:
    """The deck is empty and nothing is in play."""
    return not ctx.round_deck and ctx.current_card is None


def is_final_round(ctx: GameContext, round_count: int = ROUND_COUNT) -> bool:
    return ctx.round_index >= round_count - 1
