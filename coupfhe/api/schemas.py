"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between hosts and the engine.
Sealed handles never leave the engine: players are described by
coins, sealed slot count and revealed roles only.

Error categories:
- validation: illegal request (400)
- economic: cannot pay (402)
- conflict: game lifecycle conflict (409)
- not_found: unknown game (404)
- capability: ledger or confidential store unavailable (503)
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.catalog import ActionKind, Role
from ..engine_core.state import ActionInstance, ActionStatus, GamePhase, GameState


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    ECONOMIC = "economic"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    CAPABILITY = "capability"
    INTERNAL = "internal"


# =============================================================================
# Shared Models
# =============================================================================

class PlayerInfo(BaseModel):
    """Public view of a player."""
    player_id: str
    coins: int
    sealed_count: int
    revealed_roles: list[Role] = Field(default_factory=list)
    alive: bool
    is_current_turn: bool = False


class ActionInfo(BaseModel):
    """Public view of an action instance."""
    action_id: str
    actor: str
    kind: ActionKind
    target: Optional[str] = None
    timestamp: float
    status: ActionStatus
    claimed_role: Optional[Role] = None
    challenger: Optional[str] = None
    blocker: Optional[str] = None
    block_role: Optional[Role] = None
    block_challenger: Optional[str] = None
    deadline: Optional[float] = None
    outcome: Optional[str] = None

    @classmethod
    def from_instance(cls, action: ActionInstance) -> "ActionInfo":
        return cls(
            action_id=action.action_id,
            actor=action.actor,
            kind=action.kind,
            target=action.target,
            timestamp=action.timestamp,
            status=action.status,
            claimed_role=action.claimed_role,
            challenger=action.challenger,
            blocker=action.blocker,
            block_role=action.block_role,
            block_challenger=action.block_challenger,
            deadline=action.deadline,
            outcome=action.outcome,
        )


# =============================================================================
# Requests
# =============================================================================

class CreateGameRequest(BaseModel):
    game_id: Optional[str] = Field(
        default=None,
        pattern=r"^[A-Za-z0-9_-]+$",
        max_length=64,
        description="Leave empty for a generated id",
    )
    max_players: Optional[int] = Field(default=None, ge=2)
    allow_mid_game_join: Optional[bool] = None
    decision_window_seconds: Optional[float] = Field(default=None, gt=0)


class JoinRequest(BaseModel):
    player_id: str = Field(min_length=1)


class SubmitActionRequest(BaseModel):
    actor: str
    kind: ActionKind
    target: Optional[str] = None
    exchange_slots: Optional[list[int]] = Field(
        default=None, description="Exchange only: sealed slots to re-deal"
    )


class ChallengeRequest(BaseModel):
    challenger: str
    action_id: Optional[str] = None


class BlockRequest(BaseModel):
    blocker: str
    role: Role
    action_id: Optional[str] = None


class AllowRequest(BaseModel):
    player_id: str
    action_id: Optional[str] = None


class LossPreferenceRequest(BaseModel):
    slot: int = Field(ge=0, le=1)


# =============================================================================
# Responses
# =============================================================================

class GameStateResponse(BaseModel):
    game_id: str
    phase: GamePhase
    players: list[PlayerInfo] = Field(default_factory=list)
    current_player_id: Optional[str] = None
    winner: Optional[str] = None
    open_action: Optional[ActionInfo] = None
    awaiting_responses_from: list[str] = Field(default_factory=list)
    action_count: int = 0
    api_version: str = "v1"

    @classmethod
    def from_state(cls, state: GameState, awaiting: list[str]) -> "GameStateResponse":
        current = state.current_player
        players = [
            PlayerInfo(
                player_id=p.player_id,
                coins=p.coins,
                sealed_count=p.sealed_count,
                revealed_roles=p.revealed_roles,
                alive=p.alive,
                is_current_turn=current is not None and current.player_id == p.player_id,
            )
            for p in state.players
        ]
        open_action = state.open_action
        return cls(
            game_id=state.game_id,
            phase=state.phase,
            players=players,
            current_player_id=current.player_id if current else None,
            winner=state.winner,
            open_action=ActionInfo.from_instance(open_action) if open_action else None,
            awaiting_responses_from=awaiting,
            action_count=len(state.action_log),
        )


class ActionResultResponse(BaseModel):
    action: Optional[ActionInfo] = None
    state_changes: list[str] = Field(default_factory=list)
    winner: Optional[str] = None
    game: GameStateResponse


class ActionLogResponse(BaseModel):
    game_id: str
    actions: list[ActionInfo] = Field(default_factory=list)
    count: int = 0


class LegalActionsResponse(BaseModel):
    player_id: str
    actions: list[SubmitActionRequest] = Field(default_factory=list)


class GameListResponse(BaseModel):
    games: list[str] = Field(default_factory=list)
    count: int = 0


class EndGameResponse(BaseModel):
    success: bool
    game_id: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: str
    category: ErrorCategory
    details: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    environment: str
    ledger_available: bool = True
