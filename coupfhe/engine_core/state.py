"""
Game State - The records the engine owns for one game.

Design principles:
- Plain dataclasses, mutated only on a working copy
- A committed state is never touched; the engine swaps in a new one
- Serializable: every field maps onto a ledger record
- Role identities never live here, only sealed handles
"""

from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .catalog import ActionKind, Role


class GamePhase(Enum):
    """High-level game phases."""
    LOBBY = "Lobby"
    ACTIVE = "Active"
    FINISHED = "Finished"


class ActionStatus(Enum):
    """Lifecycle of an action instance."""
    PENDING = "Pending"
    CHALLENGED = "Challenged"
    BLOCKED = "Blocked"
    RESOLVED_SUCCESS = "Resolved-Success"
    RESOLVED_FAILURE = "Resolved-Failure"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self.rank == 2


_STATUS_RANK = {
    ActionStatus.PENDING: 0,
    ActionStatus.CHALLENGED: 1,
    ActionStatus.BLOCKED: 1,
    ActionStatus.RESOLVED_SUCCESS: 2,
    ActionStatus.RESOLVED_FAILURE: 2,
}


# =============================================================================
# Role slots
# =============================================================================

@dataclass(frozen=True)
class SealedSlot:
    """A hidden role. Only the owner can open the handle."""
    handle: str

    @property
    def is_sealed(self) -> bool:
        return True


@dataclass(frozen=True)
class RevealedSlot:
    """A role that lost influence. Public and permanent."""
    role: Role

    @property
    def is_sealed(self) -> bool:
        return False


RoleSlot = Union[SealedSlot, RevealedSlot]

SLOTS_PER_PLAYER = 2


# =============================================================================
# Players
# =============================================================================

@dataclass
class PlayerState:
    """
    State for a single player.

    A player always has exactly two slots. They are alive while
    at least one of them is still sealed.
    """
    player_id: str
    coins: int = 0
    slots: list[RoleSlot] = field(default_factory=list)

    @property
    def sealed_indexes(self) -> list[int]:
        return [i for i, slot in enumerate(self.slots) if slot.is_sealed]

    @property
    def sealed_count(self) -> int:
        return len(self.sealed_indexes)

    @property
    def revealed_roles(self) -> list[Role]:
        return [slot.role for slot in self.slots if not slot.is_sealed]

    @property
    def alive(self) -> bool:
        return self.sealed_count > 0


# =============================================================================
# Actions
# =============================================================================

@dataclass
class ActionInstance:
    """
    An attempted move and its dispute trail.

    Only the status and the dispute fields change after the action
    is appended to the log, and status only moves forward.
    """
    action_id: str
    actor: str
    kind: ActionKind
    timestamp: float
    target: str | None = None
    status: ActionStatus = ActionStatus.PENDING

    # Dispute trail
    claimed_role: Role | None = None
    challenger: str | None = None
    blocker: str | None = None
    block_role: Role | None = None
    block_challenger: str | None = None
    passed_by: list[str] = field(default_factory=list)

    # Decision window
    deadline: float | None = None

    # Exchange: sealed slots the actor wants re-dealt (None = all)
    exchange_slots: list[int] | None = None

    # Why it ended the way it did
    outcome: str | None = None

    def set_status(self, status: ActionStatus) -> None:
        if status.rank < self.status.rank or self.status.is_terminal:
            raise ValueError(
                f"Action {self.action_id}: cannot move from "
                f"{self.status.value} to {status.value}"
            )
        self.status = status

    @property
    def is_resolved(self) -> bool:
        return self.status.is_terminal


# =============================================================================
# Game
# =============================================================================

@dataclass
class GameState:
    """
    Complete game state at a point in time.

    This is the canonical state the engine operates on.
    All state changes go through the GameMachine.
    """
    game_id: str
    phase: GamePhase = GamePhase.LOBBY
    players: list[PlayerState] = field(default_factory=list)
    turn_index: int = 0
    action_log: list[ActionInstance] = field(default_factory=list)
    winner: str | None = None

    # player_id -> slot index the player gives up first
    loss_preferences: dict[str, int] = field(default_factory=dict)

    @property
    def current_player(self) -> PlayerState | None:
        if not self.players or self.phase != GamePhase.ACTIVE:
            return None
        return self.players[self.turn_index]

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def alive_players(self) -> list[PlayerState]:
        return [p for p in self.players if p.alive]

    @property
    def open_action(self) -> ActionInstance | None:
        """The latest action if it is still unresolved."""
        if self.action_log and not self.action_log[-1].is_resolved:
            return self.action_log[-1]
        return None

    def get_player(self, player_id: str) -> PlayerState | None:
        """Get player by ID."""
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def get_action(self, action_id: str) -> ActionInstance | None:
        for action in self.action_log:
            if action.action_id == action_id:
                return action
        return None

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)
