"""
API Service - Business logic layer between the API and the engine.

The service:
1. Creates and ends games
2. Validates client events and forwards them to the game's actor
3. Serves cards from the catalog
4. Formats snapshots for clients

This layer is framework-agnostic (can be used with FastAPI, a CLI, tests).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable
import logging
import random

from pydantic import ValidationError

from ..catalog import CardCatalog, ALL_CATEGORIES, to_cards
from ..engine_core.rules import GameRules
from ..engine_core.state import DEFAULT_SECONDS, MachineSnapshot
from ..engine_core.event import SetSeconds
from ..session import SessionManager, Session
from .schemas import (
    CardInfo,
    CatalogCardsResponse,
    CategoryListResponse,
    CreateGameRequest,
    ErrorCode,
    ErrorResponse,
    GameListResponse,
    GameSnapshotResponse,
    parse_event,
)

logger = logging.getLogger(__name__)


@dataclass
class GameService:
    """
    Main service for game clients.

    Usage:
        service = GameService()
        game = service.create_game(CreateGameRequest())
        service.send_event(game.game_id, {"type": "ADD_TEAM", "name": "Owls"})
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    catalog: CardCatalog = field(default_factory=CardCatalog.default)
    default_seconds: int = DEFAULT_SECONDS
    max_idle_seconds: int = 3600

    def create_game(self, request: CreateGameRequest) -> GameSnapshotResponse:
        """Create a new game in the lobby, first ending games left idle."""
        self.reap_stale_games()
        rules = GameRules(pass_and_play=request.pass_and_play)
        session = self.session_manager.create_session(rules=rules)

        seconds = request.turn_seconds or self.default_seconds
        if seconds != rules.default_seconds:
            session.actor.send(SetSeconds(seconds=seconds))

        return self._snapshot_response(session)

    def get_game(self, game_id: str) -> GameSnapshotResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if not session:
            return self._not_found(game_id)
        return self._snapshot_response(session)

    def send_event(self, game_id: str, payload: dict[str, Any]) -> GameSnapshotResponse | ErrorResponse:
        """
        Validate a client event and apply it.

        Events the machine ignores in its current state are not errors:
        the unchanged snapshot is returned.
        """
        session = self.session_manager.get_session(game_id)
        if not session:
            return self._not_found(game_id)

        try:
            event = parse_event(payload)
        except ValidationError as e:
            return ErrorResponse(
                error="Invalid event",
                error_code=ErrorCode.VALIDATION_ERROR,
                details={"errors": e.errors(include_url=False, include_context=False)},
            )

        session.touch()
        session.actor.send(event)
        logger.debug("Game %s: %s -> %s", game_id, event.type.value, session.actor.snapshot.state.value)
        return self._snapshot_response(session)

    def end_game(self, game_id: str, reason: str = "user_ended") -> bool:
        return self.session_manager.end_session(game_id, reason)

    def reap_stale_games(self) -> int:
        """End games with no client event for max_idle_seconds."""
        removed = self.session_manager.cleanup_stale_sessions(self.max_idle_seconds)
        if removed:
            logger.info("Reaped %d idle game(s)", removed)
        return removed

    def list_games(self) -> GameListResponse:
        games = self.session_manager.list_sessions()
        return GameListResponse(games=games, count=len(games))

    def subscribe(
        self, game_id: str, callback: Callable[[GameSnapshotResponse], None]
    ) -> Callable[[], None] | None:
        """
        Push a formatted snapshot to `callback` after every transition.

        Returns the unsubscribe function, or None for an unknown game.
        """
        session = self.session_manager.get_session(game_id)
        if not session:
            return None

        def on_snapshot(snapshot: MachineSnapshot) -> None:
            callback(GameSnapshotResponse.from_snapshot(game_id, snapshot))

        return session.actor.subscribe(on_snapshot)

    # =========================================================================
    # Catalog
    # =========================================================================

    def list_categories(self) -> CategoryListResponse:
        categories = [ALL_CATEGORIES] + self.catalog.categories()
        return CategoryListResponse(categories=categories, count=len(categories))

    def catalog_cards(
        self,
        category: str = ALL_CATEGORIES,
        count: int = 20,
        rng: random.Random | None = None,
    ) -> CatalogCardsResponse:
        """
        Cards for a new deck.

        "All" draws `count` random cards; a named category returns every
        card in it.
        """
        if category == ALL_CATEGORIES:
            entries = self.catalog.random_entries(count, rng=rng)
        else:
            entries = self.catalog.by_category(category)
        cards = [CardInfo.model_validate(c) for c in to_cards(entries)]
        return CatalogCardsResponse(category=category, cards=cards, count=len(cards))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _snapshot_response(self, session: Session) -> GameSnapshotResponse:
        return GameSnapshotResponse.from_snapshot(session.session_id, session.actor.snapshot)

    def _not_found(self, game_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Game {game_id} not found",
            error_code=ErrorCode.GAME_NOT_FOUND,
        )
