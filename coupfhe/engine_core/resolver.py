"""
Challenge & Block Resolver - Adjudicates disputes over a claimed action.

Per action:
    Pending -> Challenged | Blocked | (unopposed) -> Resolved-Success | Resolved-Failure

Rules:
- Only role-claiming actions can be challenged; any block can be.
- A challenge is settled at once by an ownership proof through the
  confidential store. The loser of the challenge loses one influence.
- A proven role goes back to the deck and is replaced by a fresh
  sealed role.
- A block that nobody challenges stops the action. Upfront costs
  are never refunded.
- When every eligible responder allows (or the window expires)
  a pending action resolves unopposed.

All methods mutate a GameState working copy; the GameMachine commits it.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING
import logging

from .catalog import ActionKind, ActionSpec, Role, STEAL_AMOUNT, get_action_spec
from .errors import IllegalResponse, RoleNotHeld, UnknownPlayer
from .state import ActionInstance, ActionStatus, GameState

if TYPE_CHECKING:
    from ..config import EngineConfig
    from .registry import PlayerRegistry

logger = logging.getLogger(__name__)


# Outcome tags recorded on resolved actions
UNOPPOSED = "unopposed"
CHALLENGE_LOST = "challenge_lost"  # claim proven, challenger lost influence
BLUFF_CAUGHT = "bluff_caught"
BLOCKED = "blocked"
BLOCK_UPHELD = "block_upheld"  # block proven, challenger lost influence
BLOCK_BLUFF_CAUGHT = "block_bluff_caught"


@dataclass
class ChallengeResolver:
    """
    Runs the challenge/block sub-protocol for one action at a time.
    """
    registry: PlayerRegistry
    config: EngineConfig

    # =========================================================================
    # Entry points
    # =========================================================================

    def open(self, state: GameState, action: ActionInstance, now: float):
        """Start the decision window, or resolve at once if no one can respond."""
        spec = get_action_spec(action.kind)
        if not spec.contestable or not self.eligible_responders(state, action):
            self._apply_effect(state, action, spec)
            self._finish(action, ActionStatus.RESOLVED_SUCCESS, UNOPPOSED)
            return
        action.deadline = self._deadline(now)

    def challenge(self, state: GameState, action: ActionInstance, challenger: str):
        self._require_responder(state, action, challenger)
        spec = get_action_spec(action.kind)

        if action.status == ActionStatus.PENDING:
            if not spec.challengeable:
                raise IllegalResponse(f"{action.kind.value} claims no role")
            self._challenge_action(state, action, spec, challenger)
        elif action.status == ActionStatus.BLOCKED:
            if action.block_challenger is not None:
                raise IllegalResponse("The block has already been challenged")
            self._challenge_block(state, action, spec, challenger)
        else:
            raise IllegalResponse(f"Cannot challenge a {action.status.value} action")

    def block(self, state: GameState, action: ActionInstance, blocker: str, role: Role, now: float):
        self._require_responder(state, action, blocker)
        spec = get_action_spec(action.kind)

        if action.status != ActionStatus.PENDING:
            raise IllegalResponse(f"Cannot block a {action.status.value} action")
        if role not in spec.blockable_by:
            raise IllegalResponse(f"{role.value} cannot block {action.kind.value}")
        if spec.requires_target and self.config.target_only_blocks and blocker != action.target:
            raise IllegalResponse(f"Only {action.target} may block {action.kind.value}")

        action.set_status(ActionStatus.BLOCKED)
        action.blocker = blocker
        action.block_role = role
        # A fresh window opens for challenging the block
        action.passed_by = []
        action.deadline = self._deadline(now)
        logger.info("%s blocks %s with %s", blocker, action.action_id, role.value)

        if not self.eligible_responders(state, action):
            self.close_window(state, action)

    def allow(self, state: GameState, action: ActionInstance, player_id: str):
        """A responder declines to respond."""
        self._require_responder(state, action, player_id)
        if player_id not in action.passed_by:
            action.passed_by.append(player_id)

        waiting = [p for p in self.eligible_responders(state, action) if p not in action.passed_by]
        if not waiting:
            self.close_window(state, action)

    def close_window(self, state: GameState, action: ActionInstance):
        """Nobody responded in time: the action, or its block, stands."""
        if action.status == ActionStatus.PENDING:
            self._apply_effect(state, action, get_action_spec(action.kind))
            self._finish(action, ActionStatus.RESOLVED_SUCCESS, UNOPPOSED)
        elif action.status == ActionStatus.BLOCKED:
            self._finish(action, ActionStatus.RESOLVED_FAILURE, BLOCKED)
        else:
            raise IllegalResponse(f"Action {action.action_id} has no open window")

    def eligible_responders(self, state: GameState, action: ActionInstance) -> list[str]:
        """Players who may still challenge, block or allow."""
        if action.is_resolved:
            return []

        spec = get_action_spec(action.kind)
        if action.status == ActionStatus.BLOCKED:
            if action.block_challenger is not None:
                return []
            return [p.player_id for p in state.alive_players if p.player_id != action.blocker]

        others = [p.player_id for p in state.alive_players if p.player_id != action.actor]
        if spec.challengeable:
            return others
        # Only a block is possible
        if spec.requires_target and self.config.target_only_blocks:
            return [p for p in others if p == action.target]
        return others

    # =========================================================================
    # Challenges
    # =========================================================================

    def _challenge_action(
        self, state: GameState, action: ActionInstance, spec: ActionSpec, challenger: str
    ):
        action.set_status(ActionStatus.CHALLENGED)
        action.challenger = challenger
        action.claimed_role = spec.requires_role
        logger.info("%s challenges %s's %s", challenger, action.actor, action.kind.value)

        try:
            slot = self.registry.force_reveal_specific(state, action.actor, spec.requires_role)
        except RoleNotHeld:
            self.registry.reveal_one(state, action.actor)
            self._finish(action, ActionStatus.RESOLVED_FAILURE, BLUFF_CAUGHT)
            return

        self.registry.reveal_one(state, challenger)
        self.registry.reshuffle_slot(state, action.actor, slot)
        self._apply_effect(state, action, spec)
        self._finish(action, ActionStatus.RESOLVED_SUCCESS, CHALLENGE_LOST)

    def _challenge_block(
        self, state: GameState, action: ActionInstance, spec: ActionSpec, challenger: str
    ):
        action.block_challenger = challenger
        logger.info("%s challenges %s's block", challenger, action.blocker)

        try:
            slot = self.registry.force_reveal_specific(state, action.blocker, action.block_role)
        except RoleNotHeld:
            self.registry.reveal_one(state, action.blocker)
            self._apply_effect(state, action, spec)
            self._finish(action, ActionStatus.RESOLVED_SUCCESS, BLOCK_BLUFF_CAUGHT)
            return

        self.registry.reveal_one(state, challenger)
        self.registry.reshuffle_slot(state, action.blocker, slot)
        self._finish(action, ActionStatus.RESOLVED_FAILURE, BLOCK_UPHELD)

    # =========================================================================
    # Effects
    # =========================================================================

    def _apply_effect(self, state: GameState, action: ActionInstance, spec: ActionSpec):
        actor = self.registry.require(state, action.actor)
        if not actor.alive:
            return

        if spec.cost and not spec.upfront:
            self.registry.spend_coins(state, action.actor, spec.cost)
        if spec.coins_gained:
            self.registry.credit_coins(state, action.actor, spec.coins_gained)

        if action.kind in (ActionKind.COUP, ActionKind.ASSASSINATE):
            target = self.registry.require(state, action.target)
            if target.alive:
                self.registry.reveal_one(state, action.target)
        elif action.kind == ActionKind.STEAL:
            target = self.registry.require(state, action.target)
            if target.alive:
                amount = min(STEAL_AMOUNT, target.coins)
                self.registry.spend_coins(state, action.target, amount)
                self.registry.credit_coins(state, action.actor, amount)
        elif action.kind == ActionKind.EXCHANGE:
            sealed = actor.sealed_indexes
            slots = None
            if action.exchange_slots is not None:
                slots = [s for s in action.exchange_slots if s in sealed]
            self.registry.exchange(state, action.actor, slots)

    def _finish(self, action: ActionInstance, status: ActionStatus, outcome: str):
        action.set_status(status)
        action.outcome = outcome
        action.deadline = None
        logger.info(
            "%s %s by %s resolved %s (%s)",
            action.action_id, action.kind.value, action.actor, status.value, outcome,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_responder(self, state: GameState, action: ActionInstance, player_id: str):
        player = state.get_player(player_id)
        if player is None:
            raise UnknownPlayer(f"Player {player_id} not found")
        if action.is_resolved:
            raise IllegalResponse(f"Action {action.action_id} is already resolved")
        if player_id not in self.eligible_responders(state, action):
            raise IllegalResponse(f"{player_id} cannot respond to {action.action_id} now")
        if player_id in action.passed_by:
            raise IllegalResponse(f"{player_id} already allowed {action.action_id}")

    def _deadline(self, now: float) -> float | None:
        window = self.config.decision_window_seconds
        return None if window is None else now + window
