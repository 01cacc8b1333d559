"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a client (browser, phone) and
the game server. Snapshots are read-only views of the machine; events
are the only way a client changes a game.

Error Codes:
- GAME_NOT_FOUND: Game does not exist or has ended
- VALIDATION_ERROR: Event or request body is malformed
- INTERNAL_ERROR: Unexpected server error
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union
import uuid

from pydantic import BaseModel, Field, TypeAdapter

from ..engine_core import event as ev
from ..engine_core.state import Card, MachineSnapshot


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """Card information for display."""
    id: str
    text: str
    weight: int = 1
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class TeamInfo(BaseModel):
    """Team information for the scoreboard."""
    id: str
    name: str
    score: int = 0
    is_current_turn: bool = False


class RoundInfo(BaseModel):
    """The round being played and its clue rule."""
    index: int
    number: int
    rule: str


class GameSnapshotResponse(BaseModel):
    """
    Everything a view needs to render one screen.

    `state` is the dotted machine path, e.g. "rounds.turn.playing".
    """
    game_id: str
    state: str
    round: RoundInfo
    teams: list[TeamInfo] = Field(default_factory=list)
    current_team: Optional[TeamInfo] = None
    current_card: Optional[CardInfo] = None
    cards_left: int = 0
    round_deck_count: int = 0
    round_won_count: int = 0
    catalog_size: int = 0
    turn_seconds: int
    remaining_seconds: int
    winners: list[TeamInfo] = Field(default_factory=list)

    api_version: str = "v1"

    @classmethod
    def from_snapshot(cls, game_id: str, snapshot: MachineSnapshot) -> "GameSnapshotResponse":
        ctx = snapshot.context
        current = ctx.current_team

        def team_info(team) -> TeamInfo:
            return TeamInfo(
                id=team.id,
                name=team.name,
                score=team.score,
                is_current_turn=current is not None and team.id == current.id,
            )

        return cls(
            game_id=game_id,
            state=snapshot.state.value,
            round=RoundInfo(
                index=ctx.round_index,
                number=ctx.current_round.number,
                rule=ctx.current_round.rule,
            ),
            teams=[team_info(t) for t in ctx.teams],
            current_team=team_info(current) if current else None,
            current_card=CardInfo.model_validate(ctx.current_card) if ctx.current_card else None,
            cards_left=ctx.cards_left,
            round_deck_count=len(ctx.round_deck),
            round_won_count=len(ctx.round_won),
            catalog_size=len(ctx.all_cards),
            turn_seconds=ctx.turn_seconds,
            remaining_seconds=ctx.remaining_seconds,
            winners=(
                [team_info(t) for t in ctx.winners()]
                if snapshot.matches("game_over") else []
            ),
        )


# =============================================================================
# Event Requests
# =============================================================================

class CardRequest(BaseModel):
    """A card submitted with SET_CARDS. The id is generated if omitted."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    text: str = Field(..., min_length=1)
    weight: int = Field(1, ge=1)
    description: Optional[str] = None

    def to_card(self) -> Card:
        return Card(id=self.id, text=self.text, weight=self.weight, description=self.description)


class AddTeamRequest(BaseModel):
    type: Literal["ADD_TEAM"]
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = Field(..., min_length=1)

    def to_event(self) -> ev.Event:
        return ev.AddTeam(id=self.id, name=self.name)


class RemoveTeamRequest(BaseModel):
    type: Literal["REMOVE_TEAM"]
    id: str

    def to_event(self) -> ev.Event:
        return ev.RemoveTeam(id=self.id)


class SetSecondsRequest(BaseModel):
    type: Literal["SET_SECONDS"]
    seconds: int

    def to_event(self) -> ev.Event:
        return ev.SetSeconds(seconds=self.seconds)


class SetCardsRequest(BaseModel):
    type: Literal["SET_CARDS"]
    cards: list[CardRequest] = Field(default_factory=list)

    def to_event(self) -> ev.Event:
        return ev.SetCards(cards=tuple(c.to_card() for c in self.cards))


class TickRequest(BaseModel):
    type: Literal["TICK"]
    remaining: int

    def to_event(self) -> ev.Event:
        return ev.Tick(remaining=self.remaining)


class SimpleEventRequest(BaseModel):
    """Events that carry no payload."""
    type: Literal[
        "START_GAME", "START_TURN", "GUESS", "SKIP",
        "NEXT_CARD", "END_TURN", "TIME_UP", "RESET",
    ]

    def to_event(self) -> ev.Event:
        return ev.EVENT_CLASSES[ev.EventType(self.type)]()


EventRequest = Annotated[
    Union[
        AddTeamRequest,
        RemoveTeamRequest,
        SetSecondsRequest,
        SetCardsRequest,
        TickRequest,
        SimpleEventRequest,
    ],
    Field(discriminator="type"),
]

event_request_adapter = TypeAdapter(EventRequest)


def parse_event(payload: object) -> ev.Event:
    """
    Parse a wire message like {"type": "TICK", "remaining": 12}.

    Raises pydantic's ValidationError (a ValueError) for an unknown type,
    a missing or invalid field, or a payload that is not an object.
    """
    return event_request_adapter.validate_python(payload).to_event()


# =============================================================================
# Game Requests / Responses
# =============================================================================

class CreateGameRequest(BaseModel):
    """Options for a new game."""
    turn_seconds: Optional[int] = Field(None, description="Clamped to 10..120")
    pass_and_play: bool = Field(
        True, description="Start the first turn right after START_GAME"
    )


class GameListResponse(BaseModel):
    """Response listing live games."""
    games: list[str]
    count: int


class EndGameResponse(BaseModel):
    """Response after ending a game."""
    success: bool
    game_id: str


class ErrorResponse(BaseModel):
    """Error body returned with 4xx/5xx responses."""
    error: str
    error_code: ErrorCode
    details: Optional[dict] = None


# =============================================================================
# Catalog Responses
# =============================================================================

class CategoryListResponse(BaseModel):
    categories: list[str]
    count: int


class CatalogCardsResponse(BaseModel):
    """Cards drawn from the catalog, ready to submit with SET_CARDS."""
    category: str
    cards: list[CardInfo]
    count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
