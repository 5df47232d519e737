"""
Ledger - Durable key -> bytes storage consumed by the engine.

The ledger:
- Stores opaque blobs by key
- Has no transactions; the engine writes records one by one
- Reports outages as LedgerUnavailable

Backends:
- InMemoryLedger: dict-backed, for tests and single-process hosts
- FileLedger: one file per key on local disk
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import quote
import os

from ..engine_core.errors import LedgerUnavailable


class Ledger(ABC):
    """Key-value capability. Values are bytes."""

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the stored value, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Store a value, replacing any previous one."""

    def is_available(self) -> bool:
        return True


class InMemoryLedger(Ledger):
    """
    Dict-backed ledger.

    `available` can be switched off to simulate an outage.
    """

    def __init__(self):
        self._data: dict[str, bytes] = {}
        self.available = True

    def get(self, key: str) -> bytes | None:
        self._check()
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._check()
        self._data[key] = bytes(value)

    def is_available(self) -> bool:
        return self.available

    def keys(self) -> list[str]:
        return list(self._data)

    def _check(self):
        if not self.available:
            raise LedgerUnavailable("Ledger is unavailable")


class FileLedger(Ledger):
    """
    File-based ledger.

    Usage:
        ledger = FileLedger("~/.coupfhe/games/my-game")
        ledger.set("game_players", b'["alice"]')
        ledger.get("game_players")
    """

    def __init__(self, ledger_dir: str | Path | None = None):
        if ledger_dir is None:
            ledger_dir = Path.home() / ".coupfhe" / "ledger"
        self.ledger_dir = Path(ledger_dir).expanduser()

        # Ensure ledger directory exists
        try:
            self.ledger_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LedgerUnavailable(f"Cannot create ledger at {self.ledger_dir}: {e}") from e

    @classmethod
    def for_game(cls, root: str | Path, game_id: str) -> FileLedger:
        """
        Ledger for one game under a shared root.

        The game id becomes a single directory name: separators and
        dots are percent-encoded, so no id can leave the root.
        """
        name = quote(game_id, safe="").replace(".", "%2E")
        return cls(Path(root).expanduser() / name)

    def get(self, key: str) -> bytes | None:
        path = self._get_path(key)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            raise LedgerUnavailable(f"Cannot read {key}: {e}") from e

    def set(self, key: str, value: bytes) -> None:
        path = self._get_path(key)
        tmp_path = path.with_suffix(".tmp")
        try:
            tmp_path.write_bytes(value)
            os.replace(tmp_path, path)
        except OSError as e:
            raise LedgerUnavailable(f"Cannot write {key}: {e}") from e

    def is_available(self) -> bool:
        return self.ledger_dir.is_dir() and os.access(self.ledger_dir, os.W_OK)

    def _get_path(self, key: str) -> Path:
        """Keys are percent-encoded so any id is a safe file name."""
        return self.ledger_dir / f"{quote(key, safe='')}.bin"
