"""
Game Repository - Maps GameState onto ledger keys.

Key namespaces (owned by the engine):
    player_{id}     PlayerRecord
    game_players    JSON list of player ids, join order
    action_{id}     ActionRecord
    game_actions    JSON list of action ids, log order
    game_meta       GameMetaRecord

The ledger has no transactions. Records are written before the
id lists and the metadata, so a reader following the lists never
finds a dangling id.
"""

from __future__ import annotations
import json
import logging

from pydantic import ValidationError as RecordError

from ..engine_core.errors import LedgerUnavailable
from ..engine_core.state import GameState
from .ledger import Ledger
from .records import ActionRecord, GameMetaRecord, PlayerRecord, encode

logger = logging.getLogger(__name__)

PLAYERS_KEY = "game_players"
ACTIONS_KEY = "game_actions"
META_KEY = "game_meta"


def player_key(player_id: str) -> str:
    return f"player_{player_id}"


def action_key(action_id: str) -> str:
    return f"action_{action_id}"


class GameRepository:
    """
    Persists and restores one game through a Ledger.

    Usage:
        repo = GameRepository(ledger)
        repo.save(new_state, previous=old_state)
        state = repo.load()
    """

    def __init__(self, ledger: Ledger):
        self.ledger = ledger

    def save(self, state: GameState, previous: GameState | None = None):
        """
        Write everything that changed between previous and state.

        Raises LedgerUnavailable if any write fails.
        """
        old_players = {}
        old_actions = {}
        if previous is not None:
            old_players = {p.player_id: PlayerRecord.from_state(p) for p in previous.players}
            old_actions = {a.action_id: ActionRecord.from_state(a) for a in previous.action_log}

        for action in state.action_log:
            record = ActionRecord.from_state(action)
            if old_actions.get(action.action_id) != record:
                self.ledger.set(action_key(action.action_id), encode(record))

        for player in state.players:
            record = PlayerRecord.from_state(player)
            if old_players.get(player.player_id) != record:
                self.ledger.set(player_key(player.player_id), encode(record))

        player_ids = [p.player_id for p in state.players]
        if previous is None or player_ids != [p.player_id for p in previous.players]:
            self.ledger.set(PLAYERS_KEY, json.dumps(player_ids).encode("utf-8"))

        action_ids = [a.action_id for a in state.action_log]
        if previous is None or action_ids != [a.action_id for a in previous.action_log]:
            self.ledger.set(ACTIONS_KEY, json.dumps(action_ids).encode("utf-8"))

        meta = GameMetaRecord(
            game_id=state.game_id,
            phase=state.phase,
            turn_index=state.turn_index,
            winner=state.winner,
            loss_preferences=dict(state.loss_preferences),
        )
        self.ledger.set(META_KEY, encode(meta))

    def load(self) -> GameState | None:
        """
        Rebuild a game from the ledger.

        Returns None when no game has been stored.
        """
        raw_meta = self.ledger.get(META_KEY)
        if raw_meta is None:
            return None

        try:
            meta = GameMetaRecord.model_validate_json(raw_meta)
            players = [
                self._load_record(player_key(pid), PlayerRecord).to_state(pid)
                for pid in self._load_ids(PLAYERS_KEY)
            ]
            actions = [
                self._load_record(action_key(aid), ActionRecord).to_state(aid)
                for aid in self._load_ids(ACTIONS_KEY)
            ]
        except (RecordError, ValueError) as e:
            raise LedgerUnavailable(f"Ledger holds an unreadable game: {e}") from e

        logger.info(
            "Restored game %s: %d players, %d actions",
            meta.game_id, len(players), len(actions),
        )
        return GameState(
            game_id=meta.game_id,
            phase=meta.phase,
            players=players,
            turn_index=meta.turn_index,
            action_log=actions,
            winner=meta.winner,
            loss_preferences=dict(meta.loss_preferences),
        )

    def _load_ids(self, key: str) -> list[str]:
        raw = self.ledger.get(key)
        if not raw or not raw.strip():
            return []
        ids = json.loads(raw.decode("utf-8"))
        if not isinstance(ids, list):
            raise ValueError(f"{key} is not a list")
        return [str(i) for i in ids]

    def _load_record(self, key: str, model):
        raw = self.ledger.get(key)
        if raw is None:
            raise ValueError(f"Missing record {key}")
        return model.model_validate_json(raw)
