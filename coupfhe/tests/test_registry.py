"""
Tests for the player registry: membership, coins and influence.
"""

import pytest

from ..config import EngineConfig
from ..engine_core.catalog import ROLES, Role
from ..engine_core.errors import (
    AlreadyJoined, GameFull, GamePhaseError, InsufficientFunds, InvalidSlot,
    NoSealedRoles, RoleNotHeld, UnknownPlayer,
)
from ..engine_core.game import GameMachine
from ..engine_core.registry import PlayerRegistry
from ..engine_core.state import GamePhase, GameState, RevealedSlot
from .conftest import ScriptedDealer


@pytest.fixture
def state():
    return GameState(game_id="registry")


def make_registry(store, roles=(), config=None, fallback=Role.CONTESSA):
    return PlayerRegistry(
        store=store,
        dealer=ScriptedDealer(roles, fallback=fallback),
        config=config or EngineConfig(),
    )


class TestMembership:
    """Tests for joining."""

    def test_join_deals_two_sealed_slots(self, store, state):
        registry = make_registry(store, [Role.DUKE, Role.CAPTAIN])
        player = registry.join(state, "alice")

        assert player.coins == 2
        assert player.sealed_count == 2
        assert player.alive
        assert registry.peek_roles(state, "alice") == [Role.DUKE, Role.CAPTAIN]

    def test_join_twice(self, store, state):
        registry = make_registry(store)
        registry.join(state, "alice")
        with pytest.raises(AlreadyJoined):
            registry.join(state, "alice")

    def test_game_full(self, store, state):
        registry = make_registry(store, config=EngineConfig(max_players=2))
        registry.join(state, "alice")
        registry.join(state, "bob")
        with pytest.raises(GameFull):
            registry.join(state, "carol")
        assert state.num_players == 2

    def test_unlimited_players(self, store, state):
        registry = make_registry(store, config=EngineConfig(max_players=None))
        for i in range(10):
            registry.join(state, f"p{i}")
        assert state.num_players == 10

    def test_join_after_finish(self, store, state):
        registry = make_registry(store, config=EngineConfig(allow_mid_game_join=True))
        state.phase = GamePhase.FINISHED
        with pytest.raises(GamePhaseError):
            registry.join(state, "alice")

    def test_require_unknown(self, store, state):
        with pytest.raises(UnknownPlayer):
            make_registry(store).require(state, "ghost")


class TestCoins:
    """Tests for spending and crediting coins."""

    def test_spend_and_credit(self, store, state):
        registry = make_registry(store)
        registry.join(state, "alice")
        registry.credit_coins(state, "alice", 5)
        registry.spend_coins(state, "alice", 7)
        assert state.get_player("alice").coins == 0

    def test_overspend(self, store, state):
        registry = make_registry(store)
        registry.join(state, "alice")
        with pytest.raises(InsufficientFunds):
            registry.spend_coins(state, "alice", 3)
        assert state.get_player("alice").coins == 2


class TestInfluence:
    """Tests for revealing, proving and re-dealing roles."""

    @pytest.fixture
    def registry(self, store, state):
        registry = make_registry(store, [Role.DUKE, Role.CAPTAIN], fallback=Role.AMBASSADOR)
        registry.join(state, "alice")
        return registry

    def test_reveal_first_sealed_by_default(self, registry, state):
        assert registry.reveal_one(state, "alice") == Role.DUKE
        player = state.get_player("alice")
        assert player.slots[0] == RevealedSlot(role=Role.DUKE)
        assert registry.sealed_role_count(state, "alice") == 1

    def test_reveal_uses_preference_once(self, registry, state):
        state.loss_preferences["alice"] = 1
        assert registry.reveal_one(state, "alice") == Role.CAPTAIN
        assert "alice" not in state.loss_preferences

    def test_reveal_explicit_slot(self, registry, state):
        registry.reveal_one(state, "alice", slot=1)
        with pytest.raises(InvalidSlot):
            registry.reveal_one(state, "alice", slot=1)

    def test_reveal_until_eliminated(self, registry, state):
        registry.reveal_one(state, "alice")
        registry.reveal_one(state, "alice")
        assert not registry.is_alive(state, "alice")
        with pytest.raises(NoSealedRoles):
            registry.reveal_one(state, "alice")

    def test_force_reveal_specific(self, registry, state):
        assert registry.force_reveal_specific(state, "alice", Role.CAPTAIN) == 1
        with pytest.raises(RoleNotHeld):
            registry.force_reveal_specific(state, "alice", Role.CONTESSA)
        assert state.get_player("alice").sealed_count == 2

    def test_force_reveal_skips_revealed_slots(self, registry, state):
        registry.reveal_one(state, "alice", slot=0)
        with pytest.raises(RoleNotHeld):
            registry.force_reveal_specific(state, "alice", Role.DUKE)

    def test_reshuffle_slot(self, registry, state):
        old = state.get_player("alice").slots[0]
        registry.reshuffle_slot(state, "alice", 0)
        assert state.get_player("alice").slots[0] != old
        assert registry.peek_roles(state, "alice") == [Role.AMBASSADOR, Role.CAPTAIN]

    def test_exchange_chosen_slots(self, registry, state):
        assert registry.exchange(state, "alice", [0]) == [0]
        assert registry.peek_roles(state, "alice") == [Role.AMBASSADOR, Role.CAPTAIN]

    def test_exchange_rejects_revealed_slot(self, registry, state):
        registry.reveal_one(state, "alice", slot=0)
        with pytest.raises(InvalidSlot):
            registry.exchange(state, "alice", [0, 1])
        assert registry.peek_roles(state, "alice") == [Role.DUKE, Role.CAPTAIN]


class TestDefaultDealer:
    """The game's own dealer draws uniformly from all roles, with replacement."""

    def test_every_role_dealt_and_hands_repeat(self, store):
        game = GameMachine("deal", store=store, config=EngineConfig(seed=5, max_players=None))
        players = [f"p{i}" for i in range(50)]
        for player_id in players:
            game.join(player_id)

        hands = [game.peek_roles(player_id) for player_id in players]
        dealt = [role for hand in hands for role in hand]
        assert set(dealt) == set(ROLES)
        assert any(first == second for first, second in hands)
