"""
API Module - HTTP interface for hosts.

Hosts:
1. Create a game and let players join
2. Start it once enough players are in
3. Submit turn actions, challenges, blocks and allows
4. Read the public game state and action log

Sealed roles never cross this boundary.
"""

from .schemas import (
    # Requests
    CreateGameRequest,
    JoinRequest,
    SubmitActionRequest,
    ChallengeRequest,
    BlockRequest,
    AllowRequest,
    LossPreferenceRequest,
    # Responses
    GameStateResponse,
    ActionResultResponse,
    ActionLogResponse,
    ErrorResponse,
    # Shared
    PlayerInfo,
    ActionInfo,
)
from .service import APIService

__all__ = [
    "CreateGameRequest",
    "JoinRequest",
    "SubmitActionRequest",
    "ChallengeRequest",
    "BlockRequest",
    "AllowRequest",
    "LossPreferenceRequest",
    "GameStateResponse",
    "ActionResultResponse",
    "ActionLogResponse",
    "ErrorResponse",
    "PlayerInfo",
    "ActionInfo",
    "APIService",
]
