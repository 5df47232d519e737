"""
FastAPI Application - REST wrapper around the engine.

Endpoints:
    GET    /api/v1/health                                Health probe
    POST   /api/v1/games                                 Create game
    GET    /api/v1/games                                 List games
    GET    /api/v1/games/{id}                            Game state
    DELETE /api/v1/games/{id}                            Forget game
    POST   /api/v1/games/{id}/players                    Join
    POST   /api/v1/games/{id}/players/{pid}/loss-preference
    GET    /api/v1/games/{id}/players/{pid}/legal-actions
    POST   /api/v1/games/{id}/start                      Lobby -> Active
    POST   /api/v1/games/{id}/actions                    Submit turn action
    GET    /api/v1/games/{id}/actions                    Action log
    POST   /api/v1/games/{id}/challenge                  Challenge action or block
    POST   /api/v1/games/{id}/block                      Block action
    POST   /api/v1/games/{id}/allow                      Decline to respond
    POST   /api/v1/games/{id}/expire                     Apply decision-window timeout

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Union

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import ALLOWED_ORIGINS, COUP_LEDGER_DIR, COUP_STORE_KEY, EngineConfig
from .schemas import (
    # Request models
    AllowRequest,
    BlockRequest,
    ChallengeRequest,
    CreateGameRequest,
    JoinRequest,
    LossPreferenceRequest,
    SubmitActionRequest,
    # Response models
    ActionLogResponse,
    ActionResultResponse,
    EndGameResponse,
    ErrorCategory,
    ErrorResponse,
    GameListResponse,
    GameStateResponse,
    HealthResponse,
    LegalActionsResponse,
)
from .service import APIService

STATUS_BY_CATEGORY = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.ECONOMIC: 402,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.CAPABILITY: 503,
    ErrorCategory.INTERNAL: 500,
}

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Illegal request"},
    402: {"model": ErrorResponse, "description": "Insufficient funds"},
    404: {"model": ErrorResponse, "description": "Game not found"},
    409: {"model": ErrorResponse, "description": "Game lifecycle conflict"},
    503: {"model": ErrorResponse, "description": "Ledger or confidential store unavailable"},
}


def default_service() -> APIService:
    """Build the service from COUP_* environment settings."""
    from ..confidential import KeyedConfidentialStore
    from ..ledger import FileLedger
    from ..session import GameManager

    def file_ledger(game_id: str) -> FileLedger:
        return FileLedger.for_game(COUP_LEDGER_DIR, game_id)

    manager = GameManager(
        ledger_factory=file_ledger if COUP_LEDGER_DIR else None,
        store=KeyedConfidentialStore(COUP_STORE_KEY),
        config=EngineConfig.from_env(),
    )
    return APIService(manager=manager)


def create_app(service: APIService | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (built from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="CoupFHE Engine API",
        description="Rule engine for Coup with sealed roles.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or default_service()

    def respond(response):
        """Pass models through; turn ErrorResponse into a JSON error with its status."""
        if isinstance(response, ErrorResponse):
            return JSONResponse(
                status_code=STATUS_BY_CATEGORY[response.category],
                content=response.model_dump(mode="json"),
            )
        return response

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        return api_service.health()

    # =========================================================================
    # Games
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=GameStateResponse,
        responses=ERROR_RESPONSES,
        tags=["Games"],
        summary="Create a game",
    )
    async def create_game(body: CreateGameRequest) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.create_game(body))

    @app.get("/api/v1/games", response_model=GameListResponse, tags=["Games"])
    async def list_games() -> GameListResponse:
        return api_service.list_games()

    @app.get(
        "/api/v1/games/{game_id}",
        response_model=GameStateResponse,
        responses=ERROR_RESPONSES,
        tags=["Games"],
    )
    async def get_game(game_id: str) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.get_game(game_id))

    @app.delete("/api/v1/games/{game_id}", response_model=EndGameResponse, tags=["Games"])
    async def end_game(game_id: str) -> EndGameResponse:
        return EndGameResponse(success=api_service.end_game(game_id), game_id=game_id)

    # =========================================================================
    # Lobby
    # =========================================================================

    @app.post(
        "/api/v1/games/{game_id}/players",
        response_model=GameStateResponse,
        responses=ERROR_RESPONSES,
        tags=["Lobby"],
    )
    async def join(game_id: str, body: JoinRequest) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.join(game_id, body))

    @app.post(
        "/api/v1/games/{game_id}/start",
        response_model=GameStateResponse,
        responses=ERROR_RESPONSES,
        tags=["Lobby"],
    )
    async def start(game_id: str) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.start(game_id))

    @app.post(
        "/api/v1/games/{game_id}/players/{player_id}/loss-preference",
        response_model=GameStateResponse,
        responses=ERROR_RESPONSES,
        tags=["Lobby"],
        summary="Choose which sealed slot to give up next",
    )
    async def loss_preference(
        game_id: str, player_id: str, body: LossPreferenceRequest
    ) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.set_loss_preference(game_id, player_id, body))

    @app.get(
        "/api/v1/games/{game_id}/players/{player_id}/legal-actions",
        response_model=LegalActionsResponse,
        responses=ERROR_RESPONSES,
        tags=["Turns"],
    )
    async def legal_actions(game_id: str, player_id: str) -> Union[LegalActionsResponse, JSONResponse]:
        return respond(api_service.legal_actions(game_id, player_id))

    # =========================================================================
    # Turns
    # =========================================================================

    @app.post(
        "/api/v1/games/{game_id}/actions",
        response_model=ActionResultResponse,
        responses=ERROR_RESPONSES,
        tags=["Turns"],
    )
    async def submit_action(game_id: str, body: SubmitActionRequest) -> Union[ActionResultResponse, JSONResponse]:
        return respond(api_service.submit_action(game_id, body))

    @app.get(
        "/api/v1/games/{game_id}/actions",
        response_model=ActionLogResponse,
        responses=ERROR_RESPONSES,
        tags=["Turns"],
    )
    async def action_log(
        game_id: str,
        newest_first: Annotated[bool, Query(description="Sort newest first")] = True,
    ) -> Union[ActionLogResponse, JSONResponse]:
        return respond(api_service.get_action_log(game_id, newest_first))

    @app.post(
        "/api/v1/games/{game_id}/challenge",
        response_model=ActionResultResponse,
        responses=ERROR_RESPONSES,
        tags=["Responses"],
    )
    async def challenge(game_id: str, body: ChallengeRequest) -> Union[ActionResultResponse, JSONResponse]:
        return respond(api_service.challenge(game_id, body))

    @app.post(
        "/api/v1/games/{game_id}/block",
        response_model=ActionResultResponse,
        responses=ERROR_RESPONSES,
        tags=["Responses"],
    )
    async def block(game_id: str, body: BlockRequest) -> Union[ActionResultResponse, JSONResponse]:
        return respond(api_service.block(game_id, body))

    @app.post(
        "/api/v1/games/{game_id}/allow",
        response_model=ActionResultResponse,
        responses=ERROR_RESPONSES,
        tags=["Responses"],
    )
    async def allow(game_id: str, body: AllowRequest) -> Union[ActionResultResponse, JSONResponse]:
        return respond(api_service.allow(game_id, body))

    @app.post(
        "/api/v1/games/{game_id}/expire",
        response_model=ActionResultResponse,
        responses=ERROR_RESPONSES,
        tags=["Responses"],
        summary="Resolve the open action if its decision window has expired",
    )
    async def expire(game_id: str) -> Union[ActionResultResponse, JSONResponse]:
        return respond(api_service.expire(game_id))

    return app
