"""
Action Catalog - Roles and the static table of legal actions.

Each row says what an action costs, which role it claims,
whether it needs a target, and who may block it.
The effects themselves are applied by the resolver.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class Role(Enum):
    """The five role cards. The value is the persisted tag."""
    DUKE = "Duke"
    ASSASSIN = "Assassin"
    CAPTAIN = "Captain"
    AMBASSADOR = "Ambassador"
    CONTESSA = "Contessa"


ROLES: tuple[Role, ...] = tuple(Role)


class ActionKind(Enum):
    """The seven turn actions."""
    INCOME = "Income"
    FOREIGN_AID = "Foreign Aid"
    COUP = "Coup"
    TAX = "Tax"
    ASSASSINATE = "Assassinate"
    STEAL = "Steal"
    EXCHANGE = "Exchange"


@dataclass(frozen=True)
class ActionSpec:
    """
    One row of the catalog.

    upfront: cost is paid at submission and never refunded,
    otherwise it is paid on successful resolution.
    """
    kind: ActionKind
    cost: int = 0
    requires_role: Role | None = None
    requires_target: bool = False
    blockable_by: frozenset[Role] = field(default_factory=frozenset)
    upfront: bool = False
    coins_gained: int = 0
    description: str = ""

    @property
    def challengeable(self) -> bool:
        return self.requires_role is not None

    @property
    def blockable(self) -> bool:
        return bool(self.blockable_by)

    @property
    def contestable(self) -> bool:
        """Whether anyone can respond at all."""
        return self.challengeable or self.blockable


ACTION_CATALOG: dict[ActionKind, ActionSpec] = {
    ActionKind.INCOME: ActionSpec(
        kind=ActionKind.INCOME,
        coins_gained=1,
        description="Take 1 coin",
    ),
    ActionKind.FOREIGN_AID: ActionSpec(
        kind=ActionKind.FOREIGN_AID,
        blockable_by=frozenset({Role.DUKE}),
        coins_gained=2,
        description="Take 2 coins",
    ),
    ActionKind.COUP: ActionSpec(
        kind=ActionKind.COUP,
        cost=7,
        requires_target=True,
        upfront=True,
        description="Pay 7, target loses one influence",
    ),
    ActionKind.TAX: ActionSpec(
        kind=ActionKind.TAX,
        requires_role=Role.DUKE,
        coins_gained=3,
        description="Take 3 coins",
    ),
    ActionKind.ASSASSINATE: ActionSpec(
        kind=ActionKind.ASSASSINATE,
        cost=3,
        requires_role=Role.ASSASSIN,
        requires_target=True,
        blockable_by=frozenset({Role.CONTESSA}),
        upfront=True,
        description="Pay 3, target loses one influence",
    ),
    ActionKind.STEAL: ActionSpec(
        kind=ActionKind.STEAL,
        requires_role=Role.CAPTAIN,
        requires_target=True,
        blockable_by=frozenset({Role.CAPTAIN, Role.AMBASSADOR}),
        description="Take up to 2 coins from target",
    ),
    ActionKind.EXCHANGE: ActionSpec(
        kind=ActionKind.EXCHANGE,
        requires_role=Role.AMBASSADOR,
        description="Swap sealed roles for fresh ones",
    ),
}

STEAL_AMOUNT = 2


def get_action_spec(kind: ActionKind) -> ActionSpec:
    return ACTION_CATALOG[kind]
