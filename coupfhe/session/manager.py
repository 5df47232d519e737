"""
Game Manager - Creates, restores and serializes access to games.

CONCURRENCY:
- One GameMachine per game id, owned by the manager
- One lock per game: every mutation and every query runs under it
- Queries return copies, so a reader never sees a half-applied mutation
- Arrival order at the lock is commit order

PERSISTENCE:
- Each game gets its own Ledger from the ledger factory
- A game found in its ledger is restored instead of recreated
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator
import logging
import threading
import time
import uuid

from ..config import EngineConfig
from ..confidential import ConfidentialValueStore, KeyedConfidentialStore
from ..engine_core.errors import GameNotFound, StateConflictError
from ..engine_core.game import GameMachine
from ..ledger import GameRepository, InMemoryLedger, Ledger

logger = logging.getLogger(__name__)

LedgerFactory = Callable[[str], Ledger]


@dataclass
class GameHandle:
    """A managed game and its lock."""
    game: GameMachine
    created_at: float
    lock: threading.RLock = field(default_factory=threading.RLock)
    metadata: dict[str, Any] = field(default_factory=dict)


class GameManager:
    """
    Owns every live game.

    Usage:
        manager = GameManager()
        game_id = manager.create_game()
        with manager.locked(game_id) as game:
            game.join("alice")
    """

    def __init__(
        self,
        store: ConfidentialValueStore | None = None,
        ledger_factory: LedgerFactory | None = None,
        config: EngineConfig | None = None,
    ):
        self.store = store or KeyedConfidentialStore()
        self.ledger_factory = ledger_factory or (lambda game_id: InMemoryLedger())
        self.config = config or EngineConfig()
        self._games: dict[str, GameHandle] = {}
        self._registry_lock = threading.Lock()

    def create_game(self, game_id: str | None = None, config: EngineConfig | None = None) -> str:
        """
        Create a new game, or restore it if its ledger already holds one.

        Returns the game id.
        """
        game_id = game_id or str(uuid.uuid4())
        with self._registry_lock:
            if game_id in self._games:
                raise StateConflictError(f"Game {game_id} already exists")

            repository = GameRepository(self.ledger_factory(game_id))
            state = repository.load()
            game = GameMachine(
                game_id=game_id,
                store=self.store,
                config=config or self.config,
                repository=repository,
                state=state,
            )
            self._games[game_id] = GameHandle(game=game, created_at=time.time())

        if state is None:
            logger.info("Created game %s", game_id)
        return game_id

    def get_game(self, game_id: str) -> GameHandle:
        with self._registry_lock:
            handle = self._games.get(game_id)
        if handle is None:
            raise GameNotFound(f"Game {game_id} not found")
        return handle

    @contextmanager
    def locked(self, game_id: str) -> Iterator[GameMachine]:
        """Exclusive access to one game."""
        handle = self.get_game(game_id)
        with handle.lock:
            yield handle.game

    def run(self, game_id: str, operation: Callable[[GameMachine], Any]) -> Any:
        """Run one operation under the game's lock."""
        with self.locked(game_id) as game:
            return operation(game)

    def remove_game(self, game_id: str) -> bool:
        """Forget a game. Its ledger records are left in place."""
        with self._registry_lock:
            handle = self._games.pop(game_id, None)
        if handle is None:
            return False
        logger.info("Removed game %s", game_id)
        return True

    def list_games(self) -> list[str]:
        with self._registry_lock:
            return list(self._games)

    def ledger_available(self) -> bool:
        """Whether every live game's ledger reports itself reachable."""
        with self._registry_lock:
            games = [handle.game for handle in self._games.values()]
        return all(
            game.repository is None or game.repository.ledger.is_available()
            for game in games
        )

    def expire_decision_windows(self, now: float | None = None) -> list[str]:
        """
        Close every decision window whose deadline has passed.

        Returns ids of the games that changed. Hosts call this periodically.
        """
        changed = []
        for game_id in self.list_games():
            try:
                with self.locked(game_id) as game:
                    if game.resolve_expired(now) is not None:
                        changed.append(game_id)
            except GameNotFound:
                continue
        return changed
