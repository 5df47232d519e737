"""
Tests for the API service and the FastAPI app.
"""

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError as PydanticValidationError

from ..api import APIService
from ..api import app as app_module
from ..api.app import create_app
from ..api.schemas import (
    AllowRequest,
    BlockRequest,
    ChallengeRequest,
    CreateGameRequest,
    ErrorCategory,
    ErrorResponse,
    GameStateResponse,
    JoinRequest,
    SubmitActionRequest,
)
from ..config import EngineConfig
from ..engine_core.catalog import ActionKind, Role
from ..engine_core.state import ActionStatus, GamePhase
from ..ledger import InMemoryLedger
from ..session import GameManager


@pytest.fixture
def service(store):
    return APIService(manager=GameManager(store=store))


@pytest.fixture
def started(service):
    """A started two-player game; returns its id."""
    game = service.create_game(CreateGameRequest(game_id="g1"))
    service.join(game.game_id, JoinRequest(player_id="alice"))
    service.join(game.game_id, JoinRequest(player_id="bob"))
    service.start(game.game_id)
    return game.game_id


class TestAPIService:
    """Tests for the framework-agnostic service."""

    def test_create_and_start(self, service, started):
        state = service.get_game(started)
        assert isinstance(state, GameStateResponse)
        assert state.phase == GamePhase.ACTIVE
        assert state.current_player_id == "alice"
        assert [p.sealed_count for p in state.players] == [2, 2]

    def test_create_with_overrides(self, service):
        state = service.create_game(CreateGameRequest(game_id="g2", max_players=3))
        assert state.game_id == "g2"
        assert service.manager.get_game("g2").game.config.max_players == 3

    def test_invalid_overrides(self, store):
        service = APIService(manager=GameManager(store=store, config=EngineConfig(min_players=4)))
        response = service.create_game(CreateGameRequest(game_id="g2", max_players=3))
        assert isinstance(response, ErrorResponse)
        assert response.error_code == "INVALID_CONFIG"
        assert service.manager.list_games() == []

    def test_unknown_game(self, service):
        response = service.get_game("missing")
        assert isinstance(response, ErrorResponse)
        assert response.category == ErrorCategory.NOT_FOUND
        assert response.error_code == "GAME_NOT_FOUND"

    def test_not_your_turn(self, service, started):
        response = service.submit_action(started, SubmitActionRequest(actor="bob", kind=ActionKind.INCOME))
        assert response.category == ErrorCategory.VALIDATION
        assert response.error_code == "NOT_YOUR_TURN"

    def test_insufficient_funds(self, service, started):
        response = service.submit_action(
            started, SubmitActionRequest(actor="alice", kind=ActionKind.COUP, target="bob")
        )
        assert response.category == ErrorCategory.ECONOMIC

    def test_duplicate_join(self, service, started):
        response = service.join(started, JoinRequest(player_id="alice"))
        assert response.category == ErrorCategory.CONFLICT

    def test_challenge_flow(self, service, started):
        pending = service.submit_action(started, SubmitActionRequest(actor="alice", kind=ActionKind.TAX))
        assert pending.action.status == ActionStatus.PENDING
        assert pending.game.awaiting_responses_from == ["bob"]

        result = service.challenge(
            started, ChallengeRequest(challenger="bob", action_id=pending.action.action_id)
        )
        assert result.action.status in (ActionStatus.RESOLVED_SUCCESS, ActionStatus.RESOLVED_FAILURE)
        assert result.game.open_action is None
        assert result.game.current_player_id == "bob"
        assert sum(p.sealed_count for p in result.game.players) == 3

    def test_block_and_allow(self, service, started):
        service.submit_action(started, SubmitActionRequest(actor="alice", kind=ActionKind.FOREIGN_AID))
        blocked = service.block(started, BlockRequest(blocker="bob", role=Role.DUKE))
        assert blocked.action.status == ActionStatus.BLOCKED
        assert blocked.action.blocker == "bob"

        result = service.allow(started, AllowRequest(player_id="alice"))
        assert result.action.status == ActionStatus.RESOLVED_FAILURE
        assert result.game.players[0].coins == 2

    def test_action_log_and_legal_actions(self, service, started):
        service.submit_action(started, SubmitActionRequest(actor="alice", kind=ActionKind.INCOME))
        log = service.get_action_log(started)
        assert log.count == 1
        assert log.actions[0].kind == ActionKind.INCOME

        legal = service.legal_actions(started, "bob")
        kinds = {a.kind for a in legal.actions}
        assert ActionKind.INCOME in kinds
        assert ActionKind.COUP not in kinds

    def test_sealed_handles_never_exposed(self, service, started):
        dumped = service.get_game(started).model_dump_json()
        assert "handle" not in dumped

    def test_expire_without_deadline(self, service, started):
        service.submit_action(started, SubmitActionRequest(actor="alice", kind=ActionKind.TAX))
        response = service.expire(started)
        assert response.action is None
        assert response.game.open_action is not None


class TestHTTP:
    """Tests for status codes and routing."""

    @pytest.fixture
    def client(self, service):
        return TestClient(create_app(service))

    def _start(self, client):
        assert client.post("/api/v1/games", json={"game_id": "g1"}).status_code == 200
        client.post("/api/v1/games/g1/players", json={"player_id": "alice"})
        client.post("/api/v1/games/g1/players", json={"player_id": "bob"})
        assert client.post("/api/v1/games/g1/start").status_code == 200

    def test_health(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_unknown_game_is_404(self, client):
        response = client.get("/api/v1/games/nope")
        assert response.status_code == 404
        assert response.json()["error_code"] == "GAME_NOT_FOUND"

    def test_not_your_turn_is_400(self, client):
        self._start(client)
        response = client.post("/api/v1/games/g1/actions", json={"actor": "bob", "kind": "Income"})
        assert response.status_code == 400
        assert response.json()["category"] == "validation"

    def test_coup_without_coins_is_402(self, client):
        self._start(client)
        response = client.post(
            "/api/v1/games/g1/actions", json={"actor": "alice", "kind": "Coup", "target": "bob"}
        )
        assert response.status_code == 402

    def test_duplicate_game_is_409(self, client):
        self._start(client)
        assert client.post("/api/v1/games", json={"game_id": "g1"}).status_code == 409

    def test_unknown_kind_is_422(self, client):
        self._start(client)
        response = client.post("/api/v1/games/g1/actions", json={"actor": "alice", "kind": "Swindle"})
        assert response.status_code == 422

    def test_turn_over_http(self, client):
        self._start(client)
        response = client.post("/api/v1/games/g1/actions", json={"actor": "alice", "kind": "Income"})
        assert response.status_code == 200
        body = response.json()
        assert body["action"]["status"] == "Resolved-Success"
        assert body["game"]["current_player_id"] == "bob"

        log = client.get("/api/v1/games/g1/actions").json()
        assert log["count"] == 1

    def test_end_game(self, client):
        self._start(client)
        assert client.delete("/api/v1/games/g1").json() == {"success": True, "game_id": "g1"}
        assert client.get("/api/v1/games").json()["count"] == 0


class TestGameIds:
    """Game ids never escape the ledger root."""

    def test_request_rejects_path_like_id(self):
        with pytest.raises(PydanticValidationError):
            CreateGameRequest(game_id="../escaped")

    def test_path_like_id_is_422(self, service):
        client = TestClient(create_app(service))
        response = client.post("/api/v1/games", json={"game_id": "../escaped"})
        assert response.status_code == 422
        assert service.manager.list_games() == []

    def test_file_ledgers_stay_under_root(self, tmp_path, monkeypatch):
        root = tmp_path / "ledgers"
        monkeypatch.setattr(app_module, "COUP_LEDGER_DIR", str(root))
        service = app_module.default_service()

        service.manager.create_game("../escaped")
        service.manager.create_game("..")

        assert not (tmp_path / "escaped").exists()
        created = list(root.iterdir())
        assert len(created) == 2
        assert all(p.is_dir() for p in created)


class TestHealth:
    """Health reports ledger reachability."""

    @pytest.fixture
    def shared_ledger(self):
        return InMemoryLedger()

    @pytest.fixture
    def ledger_service(self, store, shared_ledger):
        def factory(game_id):
            return shared_ledger
        return APIService(manager=GameManager(store=store, ledger_factory=factory))

    def test_healthy(self, ledger_service):
        ledger_service.create_game(CreateGameRequest(game_id="g1"))
        health = ledger_service.health()
        assert health.status == "ok"
        assert health.ledger_available

    def test_outage_reported(self, ledger_service, shared_ledger):
        ledger_service.create_game(CreateGameRequest(game_id="g1"))
        shared_ledger.available = False

        health = ledger_service.health()
        assert health.status == "degraded"
        assert not health.ledger_available

        body = TestClient(create_app(ledger_service)).get("/api/v1/health").json()
        assert body["ledger_available"] is False
