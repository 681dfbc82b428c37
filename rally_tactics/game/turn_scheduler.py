"""
Turn scheduling for a match.

This module owns round and turn progression: it builds the turn order,
hands out turns, lets a full counter gauge interrupt the normal order,
forces exhausted combatants to rest and detects the end of the match.
Actions taken on a turn are delegated to the combat and movement resolvers.
"""
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from ..core.config import BalanceConfig
from ..core.data import (
    ActionChoice,
    ActionStatus,
    CombatState,
    DefenseChoice,
    MovementType,
    TurnKind,
    Vector2,
    ACTION_CHOICE_NAMES,
    MOVEMENT_TYPE_NAMES,
)
from ..core.dice import RandomSource
from ..core.errors import CombatContractError, require
from ..core.events import CombatEnded, CombatStarted, LogMessage, RoundStarted, TurnGranted
from .combat.outcomes import AttackOutcome, DefenseOutcome, EvadeResult
from .entities.combatant import Combatant, CombatStatus, to_combat_status
from .movement.movement_resolver import MovementEnvelope

if TYPE_CHECKING:
    from ..core.events import EventManager
    from .combat.combat_resolver import CombatResolver
    from .movement.movement_resolver import MovementResolver


@dataclass(frozen=True)
class TurnGrant:
    """The answer to "whose turn is it and what may they do"."""
    success: bool
    message: str
    actor: Optional[Combatant] = None
    kind: TurnKind = TurnKind.NORMAL
    available_actions: tuple[ActionChoice, ...] = ()
    round_number: int = 0
    forced_rest: int = 0

    @property
    def is_interrupt(self) -> bool:
        return self.kind == TurnKind.COUNTER_INTERRUPT

    @classmethod
    def failure(cls, message: str, round_number: int = 0) -> "TurnGrant":
        return cls(success=False, message=message, round_number=round_number)


@dataclass(frozen=True)
class ActionResult:
    """Uniform result of every action taken through the scheduler."""
    status: ActionStatus
    message: str
    action: Optional[ActionChoice] = None
    actor: Optional[Combatant] = None
    target: Optional[Combatant] = None
    attack_outcome: Optional[AttackOutcome] = None
    defense_outcome: Optional[DefenseOutcome] = None
    movement_envelope: Optional[MovementEnvelope] = None
    defensive_stance: bool = False
    stamina_restored: int = 0
    game_ended: bool = False
    winner: Optional[Combatant] = None

    @property
    def succeeded(self) -> bool:
        """True unless the action failed outright."""
        return self.status != ActionStatus.FAILED


@dataclass(frozen=True)
class TurnLogEntry:
    """One entry of the scheduler's bounded turn history."""
    round_number: int
    actor_name: str
    kind: TurnKind
    action: Optional[ActionChoice]
    message: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "round": self.round_number,
            "actor": self.actor_name,
            "kind": self.kind.name,
            "action": self.action.name if self.action else None,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


class TurnScheduler:
    """Drives round and turn progression for one match."""

    def __init__(
        self,
        combat_resolver: "CombatResolver",
        movement_resolver: "MovementResolver",
        dice: RandomSource,
        config: Optional[BalanceConfig] = None,
        event_manager: Optional["EventManager"] = None,
    ):
        """Initialize the scheduler.

        Args:
            combat_resolver: Resolver for attacks and defenses
            movement_resolver: Resolver for movement envelopes
            dice: Source used to shuffle the turn order
            config: Balance configuration (defaults apply if omitted)
            event_manager: Optional bus for turn events and log messages
        """
        self.combat_resolver = require(combat_resolver, "combat_resolver")
        self.movement_resolver = require(movement_resolver, "movement_resolver")
        self.dice = require(dice, "dice")
        self.config = config or BalanceConfig()
        self.event_manager = event_manager

        self.participants: list[Combatant] = []
        self._state = CombatState.INACTIVE
        self._round_number = 0
        self._turn_queue: deque[Combatant] = deque()
        self._winner: Optional[Combatant] = None

        # Current turn
        self._current_grant: Optional[TurnGrant] = None
        self._actions_taken = 0
        self._max_actions = self.config.turns.max_actions_base
        self._turn_over = False
        self._pending_counter = False
        self._pending_attack: Optional[tuple[AttackOutcome, Combatant]] = None
        self._pending_envelope: Optional[MovementEnvelope] = None
        self._pending_evasion: Optional[MovementEnvelope] = None

        self._turn_history: deque[TurnLogEntry] = deque(maxlen=self.config.logging.turn_history_capacity)

    # ============== Properties ==============

    @property
    def state(self) -> CombatState:
        return self._state

    @property
    def round_number(self) -> int:
        return self._round_number

    @property
    def winner(self) -> Optional[Combatant]:
        return self._winner

    @property
    def current_actor(self) -> Optional[Combatant]:
        return self._current_grant.actor if self._current_grant else None

    @property
    def current_grant(self) -> Optional[TurnGrant]:
        return self._current_grant

    @property
    def pending_attack(self) -> Optional[AttackOutcome]:
        """Attack waiting for the defender's choice, if any."""
        return self._pending_attack[0] if self._pending_attack else None

    @property
    def actions_remaining(self) -> int:
        if self._current_grant is None or self._turn_over:
            return 0
        return max(0, self._max_actions - self._actions_taken)

    # ============== Match Lifecycle ==============

    def start_combat(self, participants: list[Combatant]) -> None:
        """Begin a match with the living members of participants.

        Raises:
            CombatContractError: If a match is already running, any participant
                is None, or fewer than two participants are alive
        """
        require(participants, "participants")
        if self._state == CombatState.ACTIVE:
            raise CombatContractError("Combat is already in progress")
        for participant in participants:
            require(participant, "participant")

        living = [p for p in participants if p.is_alive]
        if len(living) < 2:
            raise CombatContractError(f"Combat needs at least two living participants, got {len(living)}")

        self.participants = self.dice.shuffled(living)
        self._state = CombatState.ACTIVE
        self._winner = None
        self._round_number = 0
        self._turn_queue.clear()
        self._turn_history.clear()
        self._clear_turn()

        self._publish(CombatStarted(0, tuple(self.participants)))
        order = ", ".join(p.name for p in self.participants)
        self._emit_log(f"Combat started: {order}", "SYSTEM")
        self._start_round()

    def check_win_condition(self) -> bool:
        """End the match if at most one participant is still alive.

        Returns:
            True if the match is over
        """
        if self._state == CombatState.ENDED:
            return True
        if self._state != CombatState.ACTIVE:
            return False

        living = self.get_living_participants()
        if len(living) > 1:
            return False
        if living:
            self._end_combat(living[0], f"{living[0].name} is the last one standing")
        else:
            self._end_combat(None, "No combatants remain")
        return True

    def _end_combat(self, winner: Optional[Combatant], reason: str) -> None:
        self._state = CombatState.ENDED
        self._winner = winner
        self._turn_queue.clear()
        self._clear_turn()
        self._publish(CombatEnded(self._round_number, winner, reason))
        self._emit_log(f"Combat ended: {reason}", "SYSTEM")

    def _start_round(self) -> None:
        self._round_number += 1
        self.combat_resolver.round_number = self._round_number
        self.movement_resolver.round_number = self._round_number
        living = self.get_living_participants()
        self._turn_queue.extend(living)
        self._publish(RoundStarted(self._round_number, len(living)))
        self._emit_log(f"Round {self._round_number} begins ({len(living)} combatants)")

    # ============== Turn Progression ==============

    def next_turn(self) -> TurnGrant:
        """Grant the next turn.

        A combatant with a full counter gauge preempts the normal order; the
        gauge is emptied as the interrupt is granted. Otherwise the next
        living combatant in the round's queue acts, resting first if out of
        stamina.
        """
        if self._state != CombatState.ACTIVE:
            return TurnGrant.failure("Combat is not active", self._round_number)
        if self._pending_attack is not None:
            return TurnGrant.failure("The pending attack must be resolved first", self._round_number)
        if self.check_win_condition():
            return TurnGrant.failure("Combat is over", self._round_number)

        self._clear_turn()

        for participant in self.participants:
            if participant.is_alive and participant.counter.consume_counter():
                self._pending_counter = True
                return self._grant(
                    participant,
                    TurnKind.COUNTER_INTERRUPT,
                    (ActionChoice.ATTACK,),
                    f"{participant.name} interrupts with a counter-attack!",
                )

        skip_attempts = 0
        while True:
            if not self._turn_queue:
                self._start_round()

            candidate = self._turn_queue.popleft()
            if not candidate.is_alive:
                skip_attempts += 1
                if skip_attempts > self.config.turns.max_skip_attempts:
                    self._end_combat(None, f"Skipped {skip_attempts} defeated combatants in a row")
                    return TurnGrant.failure("Combat ended after too many skipped turns", self._round_number)
                continue

            forced_rest = 0
            if candidate.current_stamina == 0:
                forced_rest = candidate.restore_stamina(self.config.turns.forced_rest_restore)
                self._emit_log(f"{candidate.name} is exhausted and rests (+{forced_rest} stamina)")

            return self._grant(
                candidate,
                TurnKind.NORMAL,
                self.get_available_actions(candidate),
                f"{candidate.name}'s turn",
                forced_rest,
            )

    def _grant(
        self,
        actor: Combatant,
        kind: TurnKind,
        actions: tuple[ActionChoice, ...],
        message: str,
        forced_rest: int = 0,
    ) -> TurnGrant:
        grant = TurnGrant(
            success=True,
            message=message,
            actor=actor,
            kind=kind,
            available_actions=actions,
            round_number=self._round_number,
            forced_rest=forced_rest,
        )
        self._current_grant = grant
        self._record(actor, kind, None, message)
        self._publish(TurnGranted(self._round_number, actor, kind, forced_rest))
        self._emit_log(message)
        return grant

    def _clear_turn(self) -> None:
        self._current_grant = None
        self._actions_taken = 0
        self._max_actions = self.config.turns.max_actions_base
        self._turn_over = False
        self._pending_counter = False
        self._pending_attack = None
        # Rolled envelopes only live for the turn that produced them
        for envelope in (self._pending_envelope, self._pending_evasion):
            if envelope is not None:
                envelope.expire()
        self._pending_envelope = None
        self._pending_evasion = None

    def get_available_actions(self, combatant: Combatant) -> tuple[ActionChoice, ...]:
        """Actions the combatant can currently afford. Rest is always available."""
        costs = self.config.stamina_costs
        stamina = combatant.current_stamina
        actions = []
        if stamina >= costs.attack:
            actions.append(ActionChoice.ATTACK)
        if stamina >= costs.defend:
            actions.append(ActionChoice.BLOCK)
        if stamina >= costs.move:
            actions.append(ActionChoice.MOVE)
        actions.append(ActionChoice.REST)
        return tuple(actions)

    # ============== Actions ==============

    def execute_action(
        self,
        action: ActionChoice,
        target: Optional[Any] = None,
        movement_type: MovementType = MovementType.SIMPLE,
    ) -> ActionResult:
        """Perform an action for the current actor.

        Args:
            action: The chosen action
            target: Combatant for ATTACK, optional Vector2 destination for MOVE
            movement_type: SIMPLE or DASH for MOVE

        Returns:
            ActionResult describing the outcome. An attack returns
            REQUIRES_TARGET_RESPONSE until resolve_pending_attack is called;
            a move without destination returns REQUIRES_DESTINATION until
            complete_movement is called.

        Raises:
            CombatContractError: If action is None or not an ActionChoice, or
                movement_type is not simple or dash
        """
        require(action, "action")
        if not isinstance(action, ActionChoice):
            raise CombatContractError(f"action must be an ActionChoice, got {action!r}")
        if self._state != CombatState.ACTIVE:
            return self._failure(action, "Combat is not active")
        if self._current_grant is None:
            return self._failure(action, "No turn in progress; call next_turn first")
        if self._pending_attack is not None:
            return self._failure(action, "The pending attack must be resolved first")
        if self.actions_remaining == 0:
            return self._failure(action, f"{self.current_actor.name} has no actions left this turn")
        if action not in self._current_grant.available_actions:
            return self._failure(
                action, f"{ACTION_CHOICE_NAMES[action]} is not available to {self.current_actor.name} this turn"
            )

        if action != ActionChoice.MOVE and self._pending_envelope is not None:
            self._pending_envelope.expire()
            self._pending_envelope = None
        if action == ActionChoice.ATTACK:
            if self._current_grant.is_interrupt:
                return self._execute_counter(target)
            return self._execute_attack(target)
        if action == ActionChoice.BLOCK:
            return self._execute_block()
        if action == ActionChoice.MOVE:
            return self._execute_move(target, movement_type)
        return self._execute_rest()

    def _execute_attack(self, target: Optional[Combatant]) -> ActionResult:
        actor = self.current_actor
        problem = self._target_problem(actor, target)
        if problem:
            return self._failure(ActionChoice.ATTACK, problem, target)
        if not self.combat_resolver.is_in_attack_range(actor, target):
            return self._failure(
                ActionChoice.ATTACK, f"{target.name} at {target.position} is out of range of {actor.name}", target
            )

        outcome = self.combat_resolver.execute_attack(actor, target)
        if not outcome.success:
            return self._failure(ActionChoice.ATTACK, outcome.message, target, attack_outcome=outcome)

        self._actions_taken += 1
        self._pending_attack = (outcome, target)
        self._record(actor, TurnKind.NORMAL, ActionChoice.ATTACK, outcome.message)
        return ActionResult(
            status=ActionStatus.REQUIRES_TARGET_RESPONSE,
            message=outcome.message,
            action=ActionChoice.ATTACK,
            actor=actor,
            target=target,
            attack_outcome=outcome,
        )

    def _execute_counter(self, target: Optional[Combatant]) -> ActionResult:
        actor = self.current_actor
        if not self._pending_counter:
            return self._failure(ActionChoice.ATTACK, f"{actor.name}'s counter-attack has already been used", target)
        problem = self._target_problem(actor, target)
        if problem:
            return self._failure(ActionChoice.ATTACK, problem, target)

        outcome = self.combat_resolver.execute_counter_attack(actor, target, gauge_consumed=True)
        if not outcome.success:
            return self._failure(ActionChoice.ATTACK, outcome.message, target, attack_outcome=outcome)

        self._pending_counter = False
        self._actions_taken += 1
        self._turn_over = True
        self._record(actor, TurnKind.COUNTER_INTERRUPT, ActionChoice.ATTACK, outcome.message)
        ended = self.check_win_condition()
        return ActionResult(
            status=ActionStatus.SUCCESS,
            message=outcome.message,
            action=ActionChoice.ATTACK,
            actor=actor,
            target=target,
            attack_outcome=outcome,
            game_ended=ended,
            winner=self._winner,
        )

    def _execute_block(self) -> ActionResult:
        actor = self.current_actor
        cost = self.config.stamina_costs.defend
        if not actor.use_stamina(cost):
            return self._failure(ActionChoice.BLOCK, f"{actor.name} needs {cost} stamina to block")

        self._actions_taken += 1
        message = f"{actor.name} takes a defensive stance"
        self._record(actor, TurnKind.NORMAL, ActionChoice.BLOCK, message)
        self._emit_log(message)
        return ActionResult(
            status=ActionStatus.SUCCESS,
            message=message,
            action=ActionChoice.BLOCK,
            actor=actor,
            defensive_stance=True,
        )

    def _execute_move(self, destination: Optional[Vector2], movement_type: MovementType) -> ActionResult:
        """Roll a movement once per MOVE action and keep it until it is used.

        Repeating MOVE before the rolled envelope is executed reuses that
        envelope instead of rolling again.
        """
        actor = self.current_actor
        if destination is not None and not isinstance(destination, Vector2):
            return self._failure(ActionChoice.MOVE, "Movement destination must be a grid position")

        envelope = self._pending_envelope
        if envelope is not None and envelope.kind != movement_type:
            return self._failure(
                ActionChoice.MOVE,
                f"{actor.name} already rolled a {MOVEMENT_TYPE_NAMES[envelope.kind]} move this turn",
                movement_envelope=envelope,
            )
        if envelope is None:
            cost = self.config.stamina_costs.move
            if actor.current_stamina < cost:
                return self._failure(ActionChoice.MOVE, f"{actor.name} needs {cost} stamina to move")
            envelope = self.movement_resolver.calculate_movement(actor, movement_type)
            self._pending_envelope = envelope

        if destination is None:
            return ActionResult(
                status=ActionStatus.REQUIRES_DESTINATION,
                message=f"{actor.name} may move up to {envelope.max_distance} tiles",
                action=ActionChoice.MOVE,
                actor=actor,
                movement_envelope=envelope,
            )
        return self._finish_move(envelope, destination)

    def complete_movement(self, destination: Vector2) -> ActionResult:
        """Execute the envelope from a MOVE that returned REQUIRES_DESTINATION.

        A rejected destination keeps the envelope, and the same roll, for
        another attempt this turn.

        Raises:
            CombatContractError: If destination is None
        """
        require(destination, "destination")
        if self._state != CombatState.ACTIVE:
            return self._failure(ActionChoice.MOVE, "Combat is not active")
        if self._current_grant is None:
            return self._failure(ActionChoice.MOVE, "No turn in progress; call next_turn first")
        if self._pending_envelope is None:
            return self._failure(ActionChoice.MOVE, "No movement is waiting for a destination")
        return self._finish_move(self._pending_envelope, destination)

    def _finish_move(self, envelope: MovementEnvelope, destination: Vector2) -> ActionResult:
        actor = envelope.character
        outcome = self.movement_resolver.execute_movement(envelope, destination)
        if not outcome.success:
            return self._failure(ActionChoice.MOVE, outcome.message, movement_envelope=envelope)

        self._pending_envelope = None
        self._actions_taken += 1
        if envelope.allows_second_action:
            self._max_actions = max(self._max_actions, self.config.turns.max_actions_after_move)
        else:
            self._turn_over = True
        self._record(actor, TurnKind.NORMAL, ActionChoice.MOVE, outcome.message)
        return ActionResult(
            status=ActionStatus.SUCCESS,
            message=outcome.message,
            action=ActionChoice.MOVE,
            actor=actor,
            movement_envelope=envelope,
        )

    def _execute_rest(self) -> ActionResult:
        actor = self.current_actor
        restored = actor.restore_stamina(self.config.rest_stamina_restore)
        self._actions_taken += 1
        message = f"{actor.name} rests (+{restored} stamina)"
        self._record(actor, TurnKind.NORMAL, ActionChoice.REST, message)
        self._emit_log(message)
        return ActionResult(
            status=ActionStatus.SUCCESS,
            message=message,
            action=ActionChoice.REST,
            actor=actor,
            stamina_restored=restored,
        )

    def resolve_pending_attack(self, choice: DefenseChoice) -> ActionResult:
        """Apply the defender's choice to the attack declared this turn.

        A successful evade attaches an evasion envelope. The defender spends
        it through complete_evasion, at no stamina cost, before the turn
        ends; next_turn expires it.

        Raises:
            CombatContractError: If choice is None
        """
        require(choice, "choice")
        if self._pending_attack is None:
            return self._failure(None, "No attack is waiting for a defense")

        outcome, defender = self._pending_attack
        self._pending_attack = None
        defense = self.combat_resolver.resolve_defense(defender, outcome, choice)

        envelope = None
        if isinstance(defense, EvadeResult) and defense.evaded:
            envelope = self.movement_resolver.calculate_evasion_movement(defender, defense)
            self._pending_evasion = envelope

        self._record(defender, TurnKind.NORMAL, None, defense.message)
        ended = self.check_win_condition()
        return ActionResult(
            status=ActionStatus.SUCCESS,
            message=defense.message,
            action=ActionChoice.ATTACK,
            actor=self.current_actor,
            target=defender,
            attack_outcome=outcome,
            defense_outcome=defense,
            movement_envelope=envelope,
            game_ended=ended,
            winner=self._winner,
        )

    def complete_evasion(self, destination: Vector2) -> ActionResult:
        """Move the defender with the envelope earned by this turn's evade.

        A rejected destination keeps the envelope for another attempt. The
        envelope expires when the turn ends.

        Raises:
            CombatContractError: If destination is None
        """
        require(destination, "destination")
        if self._state != CombatState.ACTIVE:
            return self._failure(None, "Combat is not active")
        envelope = self._pending_evasion
        if envelope is None:
            return self._failure(None, "No evasion movement is available")

        outcome = self.movement_resolver.execute_movement(envelope, destination)
        if not outcome.success:
            return self._failure(None, outcome.message, movement_envelope=envelope)

        self._pending_evasion = None
        defender = envelope.character
        self._record(defender, TurnKind.NORMAL, None, outcome.message)
        return ActionResult(
            status=ActionStatus.SUCCESS,
            message=outcome.message,
            actor=defender,
            movement_envelope=envelope,
        )

    def _target_problem(self, actor: Combatant, target: Optional[Combatant]) -> Optional[str]:
        if target is None:
            return "Attack requires a target"
        if not isinstance(target, Combatant):
            return "Attack target must be a combatant"
        if target is actor:
            return f"{actor.name} cannot target themselves"
        if target not in self.participants:
            return f"{target.name} is not part of this combat"
        if not target.is_alive:
            return f"{target.name} is already defeated"
        return None

    def _failure(
        self,
        action: Optional[ActionChoice],
        message: str,
        target: Optional[Combatant] = None,
        attack_outcome: Optional[AttackOutcome] = None,
        movement_envelope: Optional[MovementEnvelope] = None,
    ) -> ActionResult:
        self._emit_log(message, "TURN", "WARNING")
        return ActionResult(
            status=ActionStatus.FAILED,
            message=message,
            action=action,
            actor=self.current_actor,
            target=target,
            attack_outcome=attack_outcome,
            movement_envelope=movement_envelope,
        )

    # ============== Queries ==============

    def get_living_participants(self) -> list[Combatant]:
        """Living participants in turn order."""
        return [p for p in self.participants if p.is_alive]

    def get_turn_history(self, count: int = 20) -> list[TurnLogEntry]:
        """Return the most recent turn log entries, oldest first."""
        if count <= 0:
            return []
        return list(self._turn_history)[-count:]

    def get_combat_status(self) -> list[CombatStatus]:
        """Read-only status of every participant."""
        return [to_combat_status(p, self.config.stamina_costs) for p in self.participants]

    # ============== History & Events ==============

    def _record(self, actor: Combatant, kind: TurnKind, action: Optional[ActionChoice], message: str) -> None:
        self._turn_history.append(TurnLogEntry(self._round_number, actor.name, kind, action, message))

    def _publish(self, event) -> None:
        if self.event_manager is not None:
            self.event_manager.publish(event, source="TurnScheduler")

    def _emit_log(self, message: str, category: str = "TURN", level: str = "INFO") -> None:
        """Emit a log message event."""
        self._publish(
            LogMessage(
                round_number=self._round_number,
                message=message,
                category=category,
                level=level,
                source="TurnScheduler",
            )
        )
