"""
Game State Machine - Turn lifecycle, commits and end of game.

Lobby -> Active -> Finished

Every mutation:
1. Clones the committed GameState into a working copy
2. Validates and applies the request on the copy
3. Advances the turn / ends the game if the action resolved
4. Persists the copy through the repository (if any)
5. Swaps the copy in as the committed state

If any step raises, the working copy is dropped, so a failed request
never leaves a half-applied game behind.
"""

from __future__ import annotations
from copy import deepcopy
from typing import Callable, TYPE_CHECKING
import logging
import random
import string
import time

from ..config import EngineConfig
from .action import Action, ActionResult
from .catalog import ActionKind, ROLES, Role, get_action_spec
from .errors import (
    ActionInProgress, CapabilityError, GameOver, GamePhaseError, IllegalResponse,
    InsufficientFunds, InvalidSlot, MustCoup, NotYourTurn, TargetError,
    UnknownAction, ValidationError,
)
from .registry import PlayerRegistry, RoleDealer
from .resolver import ChallengeResolver
from .state import ActionInstance, GamePhase, GameState, PlayerState

if TYPE_CHECKING:
    from ..confidential import ConfidentialValueStore
    from ..ledger import GameRepository

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


class GameMachine:
    """
    Orchestrates one game.

    Not thread-safe on its own: the GameManager serializes calls
    per game. Reads return copies.

    Usage:
        game = GameMachine("g1", store=KeyedConfidentialStore())
        game.join("alice")
        game.join("bob")
        game.start()
        game.submit_action(Action.income("alice"))
    """

    def __init__(
        self,
        game_id: str,
        store: ConfidentialValueStore,
        config: EngineConfig | None = None,
        repository: GameRepository | None = None,
        dealer: RoleDealer | None = None,
        clock: Callable[[], float] = time.time,
        state: GameState | None = None,
    ):
        self.config = config or EngineConfig()
        self._rng = random.Random(self.config.seed)
        self.registry = PlayerRegistry(store=store, dealer=dealer or self._deal, config=self.config)
        self.resolver = ChallengeResolver(registry=self.registry, config=self.config)
        self.repository = repository
        self.clock = clock
        self._state = state if state is not None else GameState(game_id=game_id)

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def game_id(self) -> str:
        return self._state.game_id

    @property
    def phase(self) -> GamePhase:
        return self._state.phase

    def snapshot(self) -> GameState:
        """A consistent deep copy of the committed state."""
        return self._state.clone()

    def action_log(self, newest_first: bool = False) -> list[ActionInstance]:
        log = deepcopy(self._state.action_log)
        if newest_first:
            log.sort(key=lambda a: a.timestamp, reverse=True)
        return log

    def legal_actions(self, player_id: str) -> list[Action]:
        from .action_generator import legal_actions
        return legal_actions(self._state, player_id, self.config)

    def eligible_responders(self) -> list[str]:
        """Players the open action is still waiting on."""
        action = self._state.open_action
        if action is None:
            return []
        return [
            p for p in self.resolver.eligible_responders(self._state, action)
            if p not in action.passed_by
        ]

    def peek_roles(self, player_id: str) -> list[Role]:
        """Owner-only view of a hand, opened through the confidential store."""
        return self.registry.peek_roles(self._state, player_id)

    # =========================================================================
    # Lobby
    # =========================================================================

    def join(self, player_id: str) -> PlayerState:
        def apply(state: GameState):
            return deepcopy(self.registry.join(state, player_id))
        return self._commit(apply)

    def start(self) -> GameState:
        def apply(state: GameState):
            if state.phase != GamePhase.LOBBY:
                raise GamePhaseError(f"Cannot start a game in {state.phase.value}")
            if state.num_players < self.config.min_players:
                raise GamePhaseError(
                    f"Need at least {self.config.min_players} players, have {state.num_players}"
                )
            state.phase = GamePhase.ACTIVE
            state.turn_index = 0
            logger.info("Game %s started with %d players", state.game_id, state.num_players)
            return None
        self._commit(apply)
        return self.snapshot()

    def set_loss_preference(self, player_id: str, slot: int):
        """Record which sealed slot a player gives up next time they lose influence."""
        def apply(state: GameState):
            player = self.registry.require(state, player_id)
            if slot not in player.sealed_indexes:
                raise InvalidSlot(f"Slot {slot} of {player_id} is not sealed")
            state.loss_preferences[player_id] = slot
            return None
        self._commit(apply)

    # =========================================================================
    # Turn actions
    # =========================================================================

    def submit_action(self, action: Action) -> ActionResult:
        def apply(state: GameState):
            now = self.clock()
            self._validate_action(state, action)
            spec = get_action_spec(action.kind)

            instance = ActionInstance(
                action_id=self._new_action_id(state, now),
                actor=action.actor,
                kind=action.kind,
                timestamp=now,
                target=action.target,
                claimed_role=spec.requires_role,
                exchange_slots=list(action.exchange_slots) if action.exchange_slots is not None else None,
            )
            # Upfront cost is the commitment, paid even if the claim is a bluff
            if spec.upfront:
                self.registry.spend_coins(state, action.actor, spec.cost)
            state.action_log.append(instance)
            logger.info("%s submits %s (%s)", action.actor, action.kind.value, instance.action_id)

            self.resolver.open(state, instance, now)
            return self._end_turn_if_resolved(state, instance)
        return self._commit(apply)

    def submit_challenge(self, challenger: str, action_id: str | None = None) -> ActionResult:
        def apply(state: GameState):
            instance = self._open_action(state, action_id)
            self.resolver.challenge(state, instance, challenger)
            return self._end_turn_if_resolved(state, instance)
        return self._commit(apply)

    def submit_block(self, blocker: str, role: Role, action_id: str | None = None) -> ActionResult:
        def apply(state: GameState):
            instance = self._open_action(state, action_id)
            self.resolver.block(state, instance, blocker, role, self.clock())
            return self._end_turn_if_resolved(state, instance)
        return self._commit(apply)

    def allow(self, player_id: str, action_id: str | None = None) -> ActionResult:
        def apply(state: GameState):
            instance = self._open_action(state, action_id)
            self.resolver.allow(state, instance, player_id)
            return self._end_turn_if_resolved(state, instance)
        return self._commit(apply)

    def resolve_expired(self, now: float | None = None) -> ActionResult | None:
        """
        Close the open decision window if its deadline has passed.

        Hosts call this on their own schedule; the engine keeps no timers.
        """
        if now is None:
            now = self.clock()
        action = self._state.open_action
        if action is None or action.deadline is None or now < action.deadline:
            return None

        def apply(state: GameState):
            instance = state.open_action
            logger.info("Decision window for %s expired", instance.action_id)
            self.resolver.close_window(state, instance)
            return self._end_turn_if_resolved(state, instance)
        return self._commit(apply)

    # =========================================================================
    # Validation
    # =========================================================================

    def _validate_action(self, state: GameState, action: Action):
        if state.phase == GamePhase.FINISHED:
            raise GameOver(f"Game is over, {state.winner} won")
        if state.phase != GamePhase.ACTIVE:
            raise GamePhaseError("Game has not started")

        actor = self.registry.require(state, action.actor)
        if state.open_action is not None:
            raise ActionInProgress(f"Action {state.open_action.action_id} is still unresolved")
        if state.current_player.player_id != action.actor or not actor.alive:
            raise NotYourTurn(f"Not {action.actor}'s turn")

        spec = get_action_spec(action.kind)
        if spec.requires_target:
            if action.target is None:
                raise TargetError(f"{action.kind.value} needs a target")
            if action.target == action.actor:
                raise TargetError("Cannot target yourself")
            target = state.get_player(action.target)
            if target is None or not target.alive:
                raise TargetError(f"{action.target} is not a live player")
        elif action.target is not None:
            raise TargetError(f"{action.kind.value} takes no target")

        if actor.coins < spec.cost:
            raise InsufficientFunds(f"{action.kind.value} costs {spec.cost}, {action.actor} has {actor.coins}")

        threshold = self.config.forced_coup_threshold
        if threshold is not None and actor.coins >= threshold and action.kind != ActionKind.COUP:
            raise MustCoup(f"{action.actor} has {actor.coins} coins and must Coup")

        if action.exchange_slots is not None:
            if action.kind != ActionKind.EXCHANGE:
                raise ValidationError("Only Exchange takes exchange slots")
            for slot in action.exchange_slots:
                if slot not in actor.sealed_indexes:
                    raise InvalidSlot(f"Slot {slot} of {action.actor} is not sealed")

    def _open_action(self, state: GameState, action_id: str | None) -> ActionInstance:
        if state.phase == GamePhase.FINISHED:
            raise GameOver(f"Game is over, {state.winner} won")
        if action_id is not None and state.get_action(action_id) is None:
            raise UnknownAction(f"Action {action_id} not found")

        instance = state.open_action
        if instance is None or (action_id is not None and instance.action_id != action_id):
            raise IllegalResponse("No unresolved action to respond to")
        return instance

    # =========================================================================
    # Turn and end of game
    # =========================================================================

    def _end_turn_if_resolved(self, state: GameState, instance: ActionInstance) -> ActionResult:
        changes = []
        if instance.is_resolved:
            changes.append(f"{instance.kind.value} by {instance.actor}: {instance.status.value}")
            alive = state.alive_players
            if len(alive) == 1:
                state.phase = GamePhase.FINISHED
                state.winner = alive[0].player_id
                changes.append(f"{state.winner} wins")
                logger.info("Game %s finished, winner %s", state.game_id, state.winner)
            else:
                state.turn_index = self._next_turn_index(state)
                changes.append(f"Next player: {state.current_player.player_id}")
        return ActionResult(action=deepcopy(instance), state_changes=changes, winner=state.winner)

    @staticmethod
    def _next_turn_index(state: GameState) -> int:
        n = state.num_players
        for step in range(1, n + 1):
            index = (state.turn_index + step) % n
            if state.players[index].alive:
                return index
        return state.turn_index

    # =========================================================================
    # Commit
    # =========================================================================

    def _commit(self, apply):
        working = self._state.clone()
        try:
            result = apply(working)
            if self.repository is not None:
                self.repository.save(working, previous=self._state)
        except CapabilityError as e:
            logger.warning("Game %s: capability failure, nothing committed: %s", self.game_id, e)
            raise
        self._state = working
        return result

    def _deal(self) -> Role:
        return self._rng.choice(ROLES)

    def _new_action_id(self, state: GameState, now: float) -> str:
        while True:
            suffix = "".join(self._rng.choices(_ID_ALPHABET, k=6))
            action_id = f"{int(now * 1000)}-{suffix}"
            if state.get_action(action_id) is None:
                return action_id
