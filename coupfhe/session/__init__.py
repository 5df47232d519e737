"""
Session Module - Hosts many games in one process.

Each game is an exclusively owned resource behind its own lock.
"""

from .manager import GameManager, GameHandle

__all__ = [
    "GameManager",
    "GameHandle",
]
