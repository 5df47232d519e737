"""
Engine Core - The Coup rule engine.

The engine:
1. Tracks per-player coins and sealed/revealed role slots
2. Validates turn actions against the action catalog
3. Resolves challenges and blocks through ownership proofs
4. Advances turns, eliminates players and ends the game
"""

from .catalog import Role, ROLES, ActionKind, ActionSpec, ACTION_CATALOG, get_action_spec
from .state import (
    GamePhase, GameState, PlayerState, ActionInstance, ActionStatus,
    SealedSlot, RevealedSlot, RoleSlot,
)
from .action import Action, ActionResult
from .registry import PlayerRegistry
from .resolver import ChallengeResolver
from .game import GameMachine
from .action_generator import ActionGenerator, legal_actions

__all__ = [
    "Role",
    "ROLES",
    "ActionKind",
    "ActionSpec",
    "ACTION_CATALOG",
    "get_action_spec",
    "GamePhase",
    "GameState",
    "PlayerState",
    "ActionInstance",
    "ActionStatus",
    "SealedSlot",
    "RevealedSlot",
    "RoleSlot",
    "Action",
    "ActionResult",
    "PlayerRegistry",
    "ChallengeResolver",
    "GameMachine",
    "ActionGenerator",
    "legal_actions",
]
