"""
Ledger Module - Persistence of game records.

The engine writes typed records through the Ledger capability and
can rebuild a game from them. How the ledger is backed is up to
the host.
"""

from .ledger import Ledger, InMemoryLedger, FileLedger
from .records import PlayerRecord, ActionRecord, GameMetaRecord
from .repository import GameRepository

__all__ = [
    "Ledger",
    "InMemoryLedger",
    "FileLedger",
    "PlayerRecord",
    "ActionRecord",
    "GameMetaRecord",
    "GameRepository",
]
