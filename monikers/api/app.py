"""
FastAPI Application - REST and WebSocket API for game clients.

Endpoints:
    POST   /api/v1/games                 Create a game (lobby)
    GET    /api/v1/games                 List live games
    GET    /api/v1/games/{id}            Get game snapshot
    DELETE /api/v1/games/{id}            End game
    POST   /api/v1/games/{id}/events     Send an event
    GET    /api/v1/catalog/categories    List card categories
    GET    /api/v1/catalog/cards         Draw cards for a deck
    WS     /api/v1/games/{id}/ws         Snapshot on every transition

Turn timers run on the server's event loop: once a turn starts, TICK
and TIME_UP events are generated server-side and pushed over the
WebSocket. Clients never need to send them.
"""

from typing import Annotated, Any, Optional, Union
import asyncio
import contextlib
import json
import logging

from ..config import EnvironmentSettings, get_env_settings

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
REAP_INTERVAL_SECONDS = 60


def create_app(service=None, settings: Optional[EnvironmentSettings] = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional GameService instance (creates new if not provided)
        settings: Optional settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    from fastapi import Body, FastAPI, Query, WebSocket, WebSocketDisconnect
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse

    from ..catalog import ALL_CATEGORIES, CardCatalog
    from .service import GameService
    from .schemas import (
        CatalogCardsResponse,
        CategoryListResponse,
        CreateGameRequest,
        EndGameResponse,
        ErrorCode,
        ErrorResponse,
        GameListResponse,
        GameSnapshotResponse,
        HealthResponse,
    )

    settings = settings or get_env_settings()

    if service is None:
        catalog = (
            CardCatalog.load(settings.catalog_path)
            if settings.catalog_path else CardCatalog.default()
        )
        service = GameService(catalog=catalog, default_seconds=settings.turn_seconds)
    game_service = service

    @contextlib.asynccontextmanager
    async def lifespan(app):
        reaper = asyncio.create_task(reap_idle_games())
        try:
            yield
        finally:
            reaper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reaper

    async def reap_idle_games() -> None:
        while True:
            await asyncio.sleep(REAP_INTERVAL_SECONDS)
            game_service.reap_stale_games()

    app = FastAPI(
        title="Monikers Game API",
        description="""
Turn-based party guessing game: teams clue cards from a shared deck over
three rounds (free description, one word, charades) against a countdown.

## Flow

1. `POST /games`, then send `ADD_TEAM` (x2+), `SET_CARDS`, `SET_SECONDS`
2. `START_GAME` begins the first turn
3. During a turn send `GUESS` / `SKIP` / `END_TURN`
4. Between turns and rounds send `START_TURN`
5. `RESET` returns to the lobby at any time

Events that are not allowed in the current state are ignored and the
unchanged snapshot is returned.
        """,
        version=API_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def error_to_response(error: ErrorResponse) -> JSONResponse:
        status = {
            ErrorCode.GAME_NOT_FOUND: 404,
            ErrorCode.VALIDATION_ERROR: 422,
        }.get(error.error_code, 500)
        return make_error_response(error.error_code, error.error, status, error.details)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=GameSnapshotResponse,
        tags=["Games"],
        summary="Create a new game",
    )
    async def create_game(
        request: Annotated[Optional[CreateGameRequest], Body()] = None,
    ) -> GameSnapshotResponse:
        """Create a game sitting in the lobby."""
        return game_service.create_game(request or CreateGameRequest())

    @app.get(
        "/api/v1/games",
        response_model=GameListResponse,
        tags=["Games"],
        summary="List live games",
    )
    async def list_games() -> GameListResponse:
        return game_service.list_games()

    @app.get(
        "/api/v1/games/{game_id}",
        response_model=GameSnapshotResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Get game snapshot",
    )
    async def get_game(game_id: str) -> Union[GameSnapshotResponse, JSONResponse]:
        response = game_service.get_game(game_id)
        if isinstance(response, ErrorResponse):
            return error_to_response(response)
        return response

    @app.delete(
        "/api/v1/games/{game_id}",
        response_model=EndGameResponse,
        tags=["Games"],
        summary="End a game",
    )
    async def end_game(
        game_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> EndGameResponse:
        """End a game, stop its timer and forget it."""
        success = game_service.end_game(game_id, reason)
        return EndGameResponse(success=success, game_id=game_id)

    @app.post(
        "/api/v1/games/{game_id}/events",
        response_model=GameSnapshotResponse,
        responses={
            404: {"model": ErrorResponse},
            422: {"model": ErrorResponse, "description": "Malformed event"},
        },
        tags=["Games"],
        summary="Send an event to a game",
    )
    async def send_event(
        game_id: str,
        payload: Annotated[dict[str, Any], Body(description='Event, e.g. {"type": "GUESS"}')],
    ) -> Union[GameSnapshotResponse, JSONResponse]:
        """
        Apply one event and return the settled snapshot.

        Must be called from the server's event loop so a started turn
        can schedule its timer.
        """
        response = game_service.send_event(game_id, payload)
        if isinstance(response, ErrorResponse):
            return error_to_response(response)
        return response

    # =========================================================================
    # Catalog Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/catalog/categories",
        response_model=CategoryListResponse,
        tags=["Catalog"],
        summary="List card categories",
    )
    async def list_categories() -> CategoryListResponse:
        return game_service.list_categories()

    @app.get(
        "/api/v1/catalog/cards",
        response_model=CatalogCardsResponse,
        tags=["Catalog"],
        summary="Draw cards for a deck",
    )
    async def catalog_cards(
        category: Annotated[str, Query(description="Category name or All")] = ALL_CATEGORIES,
        count: Annotated[int, Query(description="Deck size for All", ge=1, le=200)] = 20,
    ) -> CatalogCardsResponse:
        return game_service.catalog_cards(category=category, count=count)

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/games/{game_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, game_id: str):
        """
        WebSocket for real-time updates.

        Messages from server:
        - snapshot: game changed (sent on connect and every transition)
        - pong: reply to ping
        - error: bad message or unknown game

        Messages from client:
        - ping: keep-alive
        - any event, e.g. {"type": "GUESS"}
        """
        await websocket.accept()

        initial = game_service.get_game(game_id)
        if isinstance(initial, ErrorResponse):
            await websocket.send_json({"type": "error", "payload": initial.model_dump(mode="json")})
            await websocket.close()
            return

        outbox: asyncio.Queue = asyncio.Queue()
        unsubscribe = game_service.subscribe(
            game_id,
            lambda snapshot: outbox.put_nowait(
                {"type": "snapshot", "payload": snapshot.model_dump(mode="json")}
            ),
        )

        async def pump() -> None:
            while True:
                message = await outbox.get()
                await websocket.send_json(message)

        sender = asyncio.create_task(pump())
        await websocket.send_json({"type": "snapshot", "payload": initial.model_dump(mode="json")})

        try:
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    outbox.put_nowait({"type": "error", "payload": {"message": "Invalid JSON"}})
                    continue

                if not isinstance(message, dict):
                    outbox.put_nowait({"type": "error", "payload": {"message": "Expected an object"}})
                    continue

                if message.get("type") == "ping":
                    outbox.put_nowait({"type": "pong"})
                    continue

                response = game_service.send_event(game_id, message)
                if isinstance(response, ErrorResponse):
                    outbox.put_nowait({"type": "error", "payload": response.model_dump(mode="json")})
        except WebSocketDisconnect:
            logger.debug("WebSocket for game %s disconnected", game_id)
        finally:
            if unsubscribe:
                unsubscribe()
            sender.cancel()
            try:
                await sender
            except asyncio.CancelledError:
                pass
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug("WebSocket sender for game %s stopped: %s", game_id, e)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="monikers",
            version=API_VERSION,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Monikers Game API",
            "version": API_VERSION,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app
