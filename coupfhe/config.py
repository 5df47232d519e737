"""
Configuration for the Coup engine and its host.

Rule knobs live in EngineConfig. Hosts build it directly or
from COUP_* environment variables.
"""

from __future__ import annotations
from typing import Optional
import os

from pydantic import BaseModel, Field, model_validator


class EngineConfig(BaseModel):
    """Per-game rule configuration."""

    # Lobby
    min_players: int = Field(default=2, ge=2)
    max_players: Optional[int] = Field(default=6, ge=2)
    allow_mid_game_join: bool = False

    # Economy
    starting_coins: int = Field(default=2, ge=0)
    forced_coup_threshold: Optional[int] = Field(default=10, ge=7)

    # Responses
    target_only_blocks: bool = True
    # Seconds other players have to respond. None: windows only close
    # when every eligible responder has allowed the action.
    decision_window_seconds: Optional[float] = Field(default=None, gt=0)

    # Deterministic dealing when set
    seed: Optional[int] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_bounds(self) -> EngineConfig:
        if self.max_players is not None and self.max_players < self.min_players:
            raise ValueError("max_players must be >= min_players")
        return self

    @classmethod
    def from_env(cls, prefix: str = "COUP_") -> EngineConfig:
        """Build a config from environment variables, falling back to defaults."""
        values = {}
        for name in cls.model_fields:
            raw = os.getenv(prefix + name.upper())
            if raw is None:
                continue
            if raw.strip().lower() in {"", "none", "null"}:
                values[name] = None
            else:
                values[name] = raw.strip()
        return cls.model_validate(values)


# Host configuration
COUP_ENV = os.getenv("COUP_ENV", "development")
COUP_LEDGER_DIR = os.getenv("COUP_LEDGER_DIR", None)
COUP_STORE_KEY = os.getenv("COUP_STORE_KEY", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
