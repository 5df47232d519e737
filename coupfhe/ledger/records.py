"""
Ledger Records - Typed, versioned shapes of everything the engine persists.

Records are Pydantic models encoded as UTF-8 JSON. Roles and statuses
are stored as their enum tags, so an invalid tag fails to load
instead of producing an invalid state.
"""

from __future__ import annotations
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, NonNegativeInt

from ..engine_core.catalog import ActionKind, Role
from ..engine_core.state import (
    ActionInstance, ActionStatus, GamePhase, PlayerState,
    RevealedSlot, SealedSlot,
)


# =============================================================================
# Player
# =============================================================================

class SealedSlotRecord(BaseModel):
    kind: Literal["sealed"] = "sealed"
    handle: str


class RevealedSlotRecord(BaseModel):
    kind: Literal["revealed"] = "revealed"
    role: Role


SlotRecord = Annotated[
    Union[SealedSlotRecord, RevealedSlotRecord],
    Field(discriminator="kind"),
]


class PlayerRecord(BaseModel):
    """Stored under player_{id}. Alive is derived, never stored."""
    coins: NonNegativeInt
    slots: list[SlotRecord] = Field(min_length=2, max_length=2)

    @property
    def role_handles(self) -> list[str]:
        return [s.handle for s in self.slots if isinstance(s, SealedSlotRecord)]

    @property
    def revealed(self) -> list[Role]:
        return [s.role for s in self.slots if isinstance(s, RevealedSlotRecord)]

    @classmethod
    def from_state(cls, player: PlayerState) -> PlayerRecord:
        slots: list[SealedSlotRecord | RevealedSlotRecord] = []
        for slot in player.slots:
            if isinstance(slot, SealedSlot):
                slots.append(SealedSlotRecord(handle=slot.handle))
            else:
                slots.append(RevealedSlotRecord(role=slot.role))
        return cls(coins=player.coins, slots=slots)

    def to_state(self, player_id: str) -> PlayerState:
        slots = [
            SealedSlot(handle=s.handle) if isinstance(s, SealedSlotRecord)
            else RevealedSlot(role=s.role)
            for s in self.slots
        ]
        return PlayerState(player_id=player_id, coins=self.coins, slots=slots)


# =============================================================================
# Action
# =============================================================================

class ActionRecord(BaseModel):
    """Stored under action_{id}."""
    actor: str
    action_kind: ActionKind
    target: Optional[str] = None
    timestamp: float
    status: ActionStatus

    claimed_role: Optional[Role] = None
    challenger: Optional[str] = None
    blocker: Optional[str] = None
    block_role: Optional[Role] = None
    block_challenger: Optional[str] = None
    passed_by: list[str] = Field(default_factory=list)
    deadline: Optional[float] = None
    exchange_slots: Optional[list[int]] = None
    outcome: Optional[str] = None

    @classmethod
    def from_state(cls, action: ActionInstance) -> ActionRecord:
        return cls(
            actor=action.actor,
            action_kind=action.kind,
            target=action.target,
            timestamp=action.timestamp,
            status=action.status,
            claimed_role=action.claimed_role,
            challenger=action.challenger,
            blocker=action.blocker,
            block_role=action.block_role,
            block_challenger=action.block_challenger,
            passed_by=list(action.passed_by),
            deadline=action.deadline,
            exchange_slots=action.exchange_slots,
            outcome=action.outcome,
        )

    def to_state(self, action_id: str) -> ActionInstance:
        return ActionInstance(
            action_id=action_id,
            actor=self.actor,
            kind=self.action_kind,
            timestamp=self.timestamp,
            target=self.target,
            status=self.status,
            claimed_role=self.claimed_role,
            challenger=self.challenger,
            blocker=self.blocker,
            block_role=self.block_role,
            block_challenger=self.block_challenger,
            passed_by=list(self.passed_by),
            deadline=self.deadline,
            exchange_slots=self.exchange_slots,
            outcome=self.outcome,
        )


# =============================================================================
# Game metadata
# =============================================================================

class GameMetaRecord(BaseModel):
    """Stored under game_meta: what is needed to resume the turn machine."""
    game_id: str
    phase: GamePhase
    turn_index: NonNegativeInt = 0
    winner: Optional[str] = None
    loss_preferences: dict[str, int] = Field(default_factory=dict)


def encode(record: BaseModel) -> bytes:
    return record.model_dump_json().encode("utf-8")
