"""
Player Registry - Coins and role custody for every player.

The registry mutates a GameState working copy in place.
Roles are dealt through the confidential store, so the registry
only ever holds handles; it opens them only for ownership proofs.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, TYPE_CHECKING
import logging

from .catalog import Role
from .errors import (
    AlreadyJoined, GameFull, GamePhaseError, InsufficientFunds,
    InvalidSlot, NoSealedRoles, RoleNotHeld, UnknownPlayer,
)
from .state import (
    GamePhase, GameState, PlayerState, RevealedSlot, SealedSlot, SLOTS_PER_PLAYER,
)

if TYPE_CHECKING:
    from ..config import EngineConfig
    from ..confidential import ConfidentialValueStore

logger = logging.getLogger(__name__)

RoleDealer = Callable[[], Role]


@dataclass
class PlayerRegistry:
    """
    Owns per-player economic and role-custody rules.

    The dealer draws one role uniformly from the full set each call;
    duplicates across and within hands are legal.
    """
    store: ConfidentialValueStore
    dealer: RoleDealer
    config: EngineConfig

    # =========================================================================
    # Membership
    # =========================================================================

    def join(self, state: GameState, player_id: str) -> PlayerState:
        if state.get_player(player_id) is not None:
            raise AlreadyJoined(f"{player_id} already joined")

        if state.phase == GamePhase.FINISHED:
            raise GamePhaseError("Game is finished")
        if state.phase == GamePhase.ACTIVE and not self.config.allow_mid_game_join:
            raise GamePhaseError("Game already started")

        cap = self.config.max_players
        if cap is not None and state.num_players >= cap:
            raise GameFull(f"Game is full ({cap} players)")

        slots = [
            SealedSlot(handle=self.store.seal(player_id, self.dealer()))
            for _ in range(SLOTS_PER_PLAYER)
        ]
        player = PlayerState(
            player_id=player_id,
            coins=self.config.starting_coins,
            slots=slots,
        )
        state.players.append(player)
        logger.info("%s joined game %s", player_id, state.game_id)
        return player

    def require(self, state: GameState, player_id: str) -> PlayerState:
        player = state.get_player(player_id)
        if player is None:
            raise UnknownPlayer(f"Player {player_id} not found")
        return player

    # =========================================================================
    # Coins
    # =========================================================================

    def spend_coins(self, state: GameState, player_id: str, n: int):
        player = self.require(state, player_id)
        if player.coins < n:
            raise InsufficientFunds(f"{player_id} has {player.coins} coins, needs {n}")
        player.coins -= n

    def credit_coins(self, state: GameState, player_id: str, n: int):
        self.require(state, player_id).coins += n

    # =========================================================================
    # Influence
    # =========================================================================

    def sealed_role_count(self, state: GameState, player_id: str) -> int:
        return self.require(state, player_id).sealed_count

    def is_alive(self, state: GameState, player_id: str) -> bool:
        return self.require(state, player_id).alive

    def reveal_one(self, state: GameState, player_id: str, slot: int | None = None) -> Role:
        """
        Lose one influence.

        The slot is the losing player's pick: an explicit slot, else the
        player's recorded preference, else their first sealed slot.
        """
        player = self.require(state, player_id)
        sealed = player.sealed_indexes
        if not sealed:
            raise NoSealedRoles(f"{player_id} has no sealed roles")

        if slot is None:
            preferred = state.loss_preferences.get(player_id)
            slot = preferred if preferred in sealed else sealed[0]
        elif slot not in sealed:
            raise InvalidSlot(f"Slot {slot} of {player_id} is not sealed")

        role = self.store.reveal(player_id, player.slots[slot].handle)
        player.slots[slot] = RevealedSlot(role=role)
        state.loss_preferences.pop(player_id, None)

        logger.info("%s lost influence (%s)", player_id, role.value)
        if not player.alive:
            logger.info("%s was eliminated", player_id)
        return role

    def force_reveal_specific(self, state: GameState, player_id: str, role: Role) -> int:
        """
        Prove that a sealed slot holds role.

        Slots are compared one at a time and the search stops at the
        first match, so non-matching slots stay hidden. Returns the
        proven slot index.
        """
        player = self.require(state, player_id)
        for index in player.sealed_indexes:
            if self.store.unseal_and_compare(player_id, player.slots[index].handle, role):
                return index
        raise RoleNotHeld(f"{player_id} does not hold {role.value}")

    def reshuffle_slot(self, state: GameState, player_id: str, slot: int):
        """Return a shown role to the deck and deal a fresh sealed one."""
        player = self.require(state, player_id)
        if slot not in player.sealed_indexes:
            raise InvalidSlot(f"Slot {slot} of {player_id} is not sealed")
        player.slots[slot] = SealedSlot(handle=self.store.seal(player_id, self.dealer()))

    def exchange(self, state: GameState, player_id: str, slots: list[int] | None = None) -> list[int]:
        """Re-deal the chosen sealed slots (all of them by default)."""
        player = self.require(state, player_id)
        sealed = player.sealed_indexes
        chosen = sealed if slots is None else sorted(set(slots))
        for slot in chosen:
            if slot not in sealed:
                raise InvalidSlot(f"Slot {slot} of {player_id} is not sealed")
        for slot in chosen:
            player.slots[slot] = SealedSlot(handle=self.store.seal(player_id, self.dealer()))
        return chosen

    def peek_roles(self, state: GameState, player_id: str) -> list[Role]:
        """Owner view of their own hand, slot by slot."""
        player = self.require(state, player_id)
        return [
            self.store.reveal(player_id, slot.handle) if slot.is_sealed else slot.role
            for slot in player.slots
        ]
