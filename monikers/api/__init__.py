"""
API Module - Client interface.

Exposes live games over REST and WebSocket. A client:
1. Creates a game
2. Sends lobby events (teams, cards, seconds) and starts it
3. Sends turn events (guess, skip, end turn, start turn)
4. Renders the snapshot pushed after every transition

All state is in memory and scoped to a game.
"""

from .schemas import (
    # Requests
    CreateGameRequest,
    CardRequest,
    EventRequest,
    parse_event,
    # Responses
    GameSnapshotResponse,
    GameListResponse,
    EndGameResponse,
    CategoryListResponse,
    CatalogCardsResponse,
    ErrorResponse,
    HealthResponse,
    # Shared
    CardInfo,
    TeamInfo,
    RoundInfo,
    ErrorCode,
)
from .service import GameService
from .app import create_app

__all__ = [
    # Requests
    "CreateGameRequest",
    "CardRequest",
    "EventRequest",
    "parse_event",
    # Responses
    "GameSnapshotResponse",
    "GameListResponse",
    "EndGameResponse",
    "CategoryListResponse",
    "CatalogCardsResponse",
    "ErrorResponse",
    "HealthResponse",
    # Shared
    "CardInfo",
    "TeamInfo",
    "RoundInfo",
    "ErrorCode",
    # Service
    "GameService",
    "create_app",
]
