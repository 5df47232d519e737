"""
Action System - Submissions and results.

An Action is what a caller asks for on their turn. The GameMachine
validates it, logs it as an ActionInstance and drives it through the
resolver. Every mutating call returns an ActionResult.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .catalog import ActionKind
from .state import ActionInstance, ActionStatus


@dataclass
class Action:
    """
    A turn action to be submitted.

    Role claims are implicit in the kind; bluffing is legal.
    """
    actor: str
    kind: ActionKind
    target: str | None = None
    exchange_slots: list[int] | None = None  # Exchange only; None = all sealed slots

    @classmethod
    def income(cls, actor: str) -> Action:
        return cls(actor=actor, kind=ActionKind.INCOME)

    @classmethod
    def foreign_aid(cls, actor: str) -> Action:
        return cls(actor=actor, kind=ActionKind.FOREIGN_AID)

    @classmethod
    def coup(cls, actor: str, target: str) -> Action:
        return cls(actor=actor, kind=ActionKind.COUP, target=target)

    @classmethod
    def tax(cls, actor: str) -> Action:
        return cls(actor=actor, kind=ActionKind.TAX)

    @classmethod
    def assassinate(cls, actor: str, target: str) -> Action:
        return cls(actor=actor, kind=ActionKind.ASSASSINATE, target=target)

    @classmethod
    def steal(cls, actor: str, target: str) -> Action:
        return cls(actor=actor, kind=ActionKind.STEAL, target=target)

    @classmethod
    def exchange(cls, actor: str, slots: list[int] | None = None) -> Action:
        return cls(actor=actor, kind=ActionKind.EXCHANGE, exchange_slots=slots)


@dataclass
class ActionResult:
    """
    Result of a committed mutation.

    Contains:
    - The action instance as committed (a copy)
    - Whether it is still waiting for responses
    - Human-readable changes for presentation layers
    - The winner, if the mutation ended the game
    """
    action: ActionInstance | None
    state_changes: list[str] = field(default_factory=list)
    winner: str | None = None

    @property
    def status(self) -> ActionStatus | None:
        return self.action.status if self.action else None

    @property
    def awaiting_responses(self) -> bool:
        return self.action is not None and not self.action.is_resolved
