"""
Tests for the GameManager.
"""

import threading

import pytest

from ..config import EngineConfig
from ..engine_core.action import Action
from ..engine_core.errors import GameNotFound, StateConflictError
from ..engine_core.state import GamePhase
from ..session import GameManager


@pytest.fixture
def manager(store):
    return GameManager(store=store)


class TestGameManager:
    """Tests for creating, finding and removing games."""

    def test_create_with_generated_id(self, manager):
        game_id = manager.create_game()
        assert game_id in manager.list_games()
        with manager.locked(game_id) as game:
            assert game.phase == GamePhase.LOBBY

    def test_duplicate_id(self, manager):
        manager.create_game("g1")
        with pytest.raises(StateConflictError):
            manager.create_game("g1")

    def test_unknown_game(self, manager):
        with pytest.raises(GameNotFound):
            manager.get_game("missing")

    def test_per_game_config(self, manager):
        manager.create_game("g1", config=EngineConfig(max_players=3))
        assert manager.get_game("g1").game.config.max_players == 3

    def test_remove(self, manager):
        manager.create_game("g1")
        assert manager.remove_game("g1")
        assert not manager.remove_game("g1")
        assert manager.list_games() == []

    def test_run(self, manager):
        manager.create_game("g1")
        player = manager.run("g1", lambda game: game.join("alice"))
        assert player.player_id == "alice"

    def test_expire_decision_windows(self, store):
        manager = GameManager(store=store, config=EngineConfig(decision_window_seconds=5))
        manager.create_game("g1")
        manager.create_game("g2")
        for game_id in ("g1", "g2"):
            with manager.locked(game_id) as game:
                game.join("alice")
                game.join("bob")
                game.start()
        with manager.locked("g1") as game:
            pending = game.submit_action(Action.tax("alice"))

        assert manager.expire_decision_windows(pending.action.deadline - 1) == []
        assert manager.expire_decision_windows(pending.action.deadline + 1) == ["g1"]
        with manager.locked("g1") as game:
            assert game.snapshot().get_player("alice").coins == 5


class TestConcurrency:
    """Concurrent submissions are serialized per game."""

    def test_concurrent_joins(self, manager):
        manager.create_game("g1", config=EngineConfig(max_players=None))
        errors = []

        def join(player_id):
            try:
                manager.run("g1", lambda game: game.join(player_id))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=join, args=(f"p{i}",)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        state = manager.get_game("g1").game.snapshot()
        assert sorted(p.player_id for p in state.players) == sorted(f"p{i}" for i in range(20))

    def test_only_one_submission_wins(self, manager):
        manager.create_game("g1")
        with manager.locked("g1") as game:
            game.join("alice")
            game.join("bob")
            game.start()

        results, errors = [], []

        def submit():
            try:
                results.append(manager.run("g1", lambda game: game.submit_action(Action.tax("alice"))))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=submit) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 1
        assert len(errors) == 4
        assert len(manager.get_game("g1").game.action_log()) == 1
