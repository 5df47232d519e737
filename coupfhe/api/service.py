"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine calls
2. Runs every call under the game's lock
3. Turns engine errors into ErrorResponse values

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable
import logging

from pydantic import ValidationError as PydanticValidationError

from .. import __version__
from ..config import COUP_ENV, EngineConfig
from ..engine_core.action import Action, ActionResult
from ..engine_core.errors import (
    CapabilityError, CoupError, EconomicError, GameNotFound,
    StateConflictError, ValidationError,
)
from ..engine_core.game import GameMachine
from ..session import GameManager
from .schemas import (
    ActionInfo,
    ActionLogResponse,
    ActionResultResponse,
    AllowRequest,
    BlockRequest,
    ChallengeRequest,
    CreateGameRequest,
    ErrorCategory,
    ErrorResponse,
    GameListResponse,
    GameStateResponse,
    HealthResponse,
    JoinRequest,
    LegalActionsResponse,
    LossPreferenceRequest,
    SubmitActionRequest,
)

logger = logging.getLogger(__name__)


def error_category(error: CoupError) -> ErrorCategory:
    if isinstance(error, GameNotFound):
        return ErrorCategory.NOT_FOUND
    if isinstance(error, ValidationError):
        return ErrorCategory.VALIDATION
    if isinstance(error, EconomicError):
        return ErrorCategory.ECONOMIC
    if isinstance(error, StateConflictError):
        return ErrorCategory.CONFLICT
    if isinstance(error, CapabilityError):
        return ErrorCategory.CAPABILITY
    return ErrorCategory.INTERNAL


def to_error_response(error: CoupError) -> ErrorResponse:
    return ErrorResponse(
        error=str(error),
        error_code=error.error_code,
        category=error_category(error),
    )


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()
        game = service.create_game(CreateGameRequest())
        service.join(game.game_id, JoinRequest(player_id="alice"))
    """
    manager: GameManager = field(default_factory=GameManager)

    # =========================================================================
    # Health
    # =========================================================================

    def health(self) -> HealthResponse:
        ledger_available = self.manager.ledger_available()
        return HealthResponse(
            status="ok" if ledger_available else "degraded",
            version=__version__,
            environment=COUP_ENV,
            ledger_available=ledger_available,
        )

    # =========================================================================
    # Games
    # =========================================================================

    def create_game(self, request: CreateGameRequest) -> GameStateResponse | ErrorResponse:
        overrides = request.model_dump(exclude={"game_id"}, exclude_none=True)
        try:
            config = None
            if overrides:
                config = EngineConfig.model_validate({**self.manager.config.model_dump(), **overrides})
            game_id = self.manager.create_game(request.game_id, config=config)
        except PydanticValidationError as e:
            return ErrorResponse(
                error=str(e), error_code="INVALID_CONFIG", category=ErrorCategory.VALIDATION,
            )
        except CoupError as e:
            return to_error_response(e)
        return self.get_game(game_id)

    def get_game(self, game_id: str) -> GameStateResponse | ErrorResponse:
        return self._call(game_id, self._state_response)

    def list_games(self) -> GameListResponse:
        games = self.manager.list_games()
        return GameListResponse(games=games, count=len(games))

    def end_game(self, game_id: str) -> bool:
        return self.manager.remove_game(game_id)

    def get_action_log(self, game_id: str, newest_first: bool = True) -> ActionLogResponse | ErrorResponse:
        def op(game: GameMachine):
            actions = [ActionInfo.from_instance(a) for a in game.action_log(newest_first=newest_first)]
            return ActionLogResponse(game_id=game_id, actions=actions, count=len(actions))
        return self._call(game_id, op)

    def legal_actions(self, game_id: str, player_id: str) -> LegalActionsResponse | ErrorResponse:
        def op(game: GameMachine):
            actions = [
                SubmitActionRequest(
                    actor=a.actor, kind=a.kind, target=a.target, exchange_slots=a.exchange_slots,
                )
                for a in game.legal_actions(player_id)
            ]
            return LegalActionsResponse(player_id=player_id, actions=actions)
        return self._call(game_id, op)

    # =========================================================================
    # Lobby
    # =========================================================================

    def join(self, game_id: str, request: JoinRequest) -> GameStateResponse | ErrorResponse:
        def op(game: GameMachine):
            game.join(request.player_id)
            return self._state_response(game)
        return self._call(game_id, op)

    def start(self, game_id: str) -> GameStateResponse | ErrorResponse:
        def op(game: GameMachine):
            game.start()
            return self._state_response(game)
        return self._call(game_id, op)

    def set_loss_preference(
        self, game_id: str, player_id: str, request: LossPreferenceRequest
    ) -> GameStateResponse | ErrorResponse:
        def op(game: GameMachine):
            game.set_loss_preference(player_id, request.slot)
            return self._state_response(game)
        return self._call(game_id, op)

    # =========================================================================
    # Turn actions and responses
    # =========================================================================

    def submit_action(self, game_id: str, request: SubmitActionRequest) -> ActionResultResponse | ErrorResponse:
        action = Action(
            actor=request.actor,
            kind=request.kind,
            target=request.target,
            exchange_slots=request.exchange_slots,
        )
        return self._call(game_id, lambda game: self._result_response(game, game.submit_action(action)))

    def challenge(self, game_id: str, request: ChallengeRequest) -> ActionResultResponse | ErrorResponse:
        return self._call(
            game_id,
            lambda game: self._result_response(
                game, game.submit_challenge(request.challenger, request.action_id)
            ),
        )

    def block(self, game_id: str, request: BlockRequest) -> ActionResultResponse | ErrorResponse:
        return self._call(
            game_id,
            lambda game: self._result_response(
                game, game.submit_block(request.blocker, request.role, request.action_id)
            ),
        )

    def allow(self, game_id: str, request: AllowRequest) -> ActionResultResponse | ErrorResponse:
        return self._call(
            game_id,
            lambda game: self._result_response(game, game.allow(request.player_id, request.action_id)),
        )

    def expire(self, game_id: str) -> ActionResultResponse | ErrorResponse:
        """Close the open decision window if its deadline has passed."""
        def op(game: GameMachine):
            result = game.resolve_expired()
            if result is None:
                return ActionResultResponse(game=self._state_response(game))
            return self._result_response(game, result)
        return self._call(game_id, op)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _call(self, game_id: str, operation: Callable[[GameMachine], Any]):
        try:
            return self.manager.run(game_id, operation)
        except CoupError as e:
            logger.debug("Game %s rejected request: %s", game_id, e)
            return to_error_response(e)

    def _state_response(self, game: GameMachine) -> GameStateResponse:
        return GameStateResponse.from_state(game.snapshot(), game.eligible_responders())

    def _result_response(self, game: GameMachine, result: ActionResult) -> ActionResultResponse:
        return ActionResultResponse(
            action=ActionInfo.from_instance(result.action) if result.action else None,
            state_changes=result.state_changes,
            winner=result.winner,
            game=self._state_response(game),
        )
