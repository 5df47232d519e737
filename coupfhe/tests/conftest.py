"""
Pytest fixtures for CoupFHE tests.
"""

import pytest

from ..config import EngineConfig
from ..confidential import KeyedConfidentialStore
from ..engine_core.catalog import Role
from ..engine_core.errors import StoreUnavailable
from ..engine_core.game import GameMachine
from ..ledger import GameRepository, InMemoryLedger


class ScriptedDealer:
    """Deals roles in a fixed order, then keeps dealing the fallback role."""

    def __init__(self, roles, fallback: Role = Role.CONTESSA):
        self.roles = list(roles)
        self.fallback = fallback

    def __call__(self) -> Role:
        if self.roles:
            return self.roles.pop(0)
        return self.fallback


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FlakyStore(KeyedConfidentialStore):
    """A store whose comparisons can be switched off to simulate an outage."""

    def __init__(self, secret_key):
        super().__init__(secret_key)
        self.failing = False

    def unseal_and_compare(self, owner_id, handle, claimed):
        if self.failing:
            raise StoreUnavailable("Confidential store is unavailable")
        return super().unseal_and_compare(owner_id, handle, claimed)


@pytest.fixture
def store() -> FlakyStore:
    return FlakyStore(b"test-secret")


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_game(store, ledger, clock):
    """
    Build a game whose hands are known.

    hands maps player id -> (first slot role, second slot role),
    in join order. Re-dealt roles come from the dealer's fallback.
    """
    def factory(hands, config=None, start=True, fallback=Role.CONTESSA):
        roles = [role for hand in hands.values() for role in hand]
        game = GameMachine(
            game_id="test_game",
            store=store,
            config=config or EngineConfig(),
            repository=GameRepository(ledger),
            dealer=ScriptedDealer(roles, fallback=fallback),
            clock=clock,
        )
        for player_id in hands:
            game.join(player_id)
        if start:
            game.start()
        return game
    return factory


def player(game: GameMachine, player_id: str):
    """The committed state of one player."""
    return game.snapshot().get_player(player_id)
