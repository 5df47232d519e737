"""
Action Generator - Enumerates every legal turn action for a player.

Used by:
1. The simulator to pick moves
2. UIs to show available actions

Role-claiming actions are always listed, since bluffing is legal.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .action import Action
from .catalog import ACTION_CATALOG, ActionKind
from .state import GamePhase, GameState

if TYPE_CHECKING:
    from ..config import EngineConfig


@dataclass
class ActionGenerator:
    """
    Generates legal actions for the current game state.
    """
    config: EngineConfig

    def generate(self, state: GameState, player_id: str) -> list[Action]:
        """
        Generate all legal actions for player_id.

        Empty unless it is that player's turn and nothing is unresolved.
        """
        if state.phase != GamePhase.ACTIVE or state.open_action is not None:
            return []

        player = state.current_player
        if player is None or player.player_id != player_id or not player.alive:
            return []

        targets = [p.player_id for p in state.alive_players if p.player_id != player_id]

        threshold = self.config.forced_coup_threshold
        if threshold is not None and player.coins >= threshold:
            return [Action.coup(player_id, t) for t in targets]

        actions = []
        for kind, spec in ACTION_CATALOG.items():
            if player.coins < spec.cost:
                continue
            if spec.requires_target:
                actions.extend(Action(actor=player_id, kind=kind, target=t) for t in targets)
            elif kind == ActionKind.EXCHANGE:
                actions.append(Action.exchange(player_id))
            else:
                actions.append(Action(actor=player_id, kind=kind))
        return actions


def legal_actions(state: GameState, player_id: str, config: EngineConfig) -> list[Action]:
    """
    Convenience function to list legal actions.
    """
    return ActionGenerator(config=config).generate(state, player_id)
