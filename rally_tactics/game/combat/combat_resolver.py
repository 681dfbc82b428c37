"""
Combat resolution for attacks, defenses and counter-attacks.

This module is the rules engine of a duel: it rolls the dice, charges
stamina, applies damage and feeds the counter gauge. Gameplay failures are
returned as outcome objects; only caller mistakes raise.
"""
from collections import deque
from typing import TYPE_CHECKING, Optional

from ...core.config import BalanceConfig
from ...core.data import CombatAction, DefenseChoice, DEFENSE_CHOICE_NAMES
from ...core.dice import DiceResult, RandomSource
from ...core.errors import CombatContractError, require
from ...core.events import (
    AttackDeclared,
    CombatantDefeated,
    CounterAttackExecuted,
    DefenseResolved,
    LogMessage,
)
from .outcomes import (
    AbsorbResult,
    AttackOutcome,
    BlockResult,
    CombatLogEntry,
    DefenseOutcome,
    EvadeResult,
)

if TYPE_CHECKING:
    from ...core.events import EventManager
    from ..entities.combatant import Combatant


class CombatResolver:
    """Resolves attacks and the defender's response to them."""

    def __init__(
        self,
        dice: RandomSource,
        config: Optional[BalanceConfig] = None,
        event_manager: Optional["EventManager"] = None,
    ):
        """Initialize the resolver.

        Args:
            dice: Source of all combat rolls
            config: Balance configuration (defaults apply if omitted)
            event_manager: Optional bus for combat events and log messages
        """
        self.dice = require(dice, "dice")
        self.config = config or BalanceConfig()
        self.event_manager = event_manager
        self.round_number = 0
        self._combat_log: deque[CombatLogEntry] = deque(maxlen=self.config.logging.combat_log_capacity)

    # ============== Attacks ==============

    def execute_attack(self, attacker: "Combatant", defender: "Combatant") -> AttackOutcome:
        """Declare an attack and roll its damage.

        Stamina is charged here, but the defender's health is untouched
        until resolve_defense is called with the returned outcome.

        Args:
            attacker: Combatant making the attack
            defender: Combatant being attacked

        Returns:
            Successful outcome holding the base damage, or a failed outcome
            with the reason and no state change

        Raises:
            CombatContractError: If either combatant is None
        """
        require(attacker, "attacker")
        require(defender, "defender")
        cost = self.config.stamina_costs.attack

        if not attacker.is_alive:
            return self._attack_failure(f"{attacker.name} is defeated and cannot attack")
        if not defender.is_alive:
            return self._attack_failure(f"{defender.name} is already defeated")
        if attacker is defender:
            return self._attack_failure(f"{attacker.name} cannot attack themselves")
        if not attacker.use_stamina(cost):
            return self._attack_failure(
                f"{attacker.name} needs {cost} stamina to attack (has {attacker.current_stamina})"
            )

        roll = self.dice.roll_two("attack")
        base_damage = roll.total + attacker.attack
        outcome = AttackOutcome(
            success=True,
            message=f"{attacker.name} attacks {defender.name}: {roll} + {attacker.attack} ATK = {base_damage}",
            attacker_id=attacker.combatant_id,
            attacker_name=attacker.name,
            defender_id=defender.combatant_id,
            defender_name=defender.name,
            roll=roll,
            base_damage=base_damage,
        )

        self._record(CombatAction.ATTACK, attacker.name, defender.name, roll, base_damage, outcome.message)
        self._publish(AttackDeclared(self.round_number, attacker, defender, outcome))
        self._emit_log(outcome.message)
        return outcome

    def execute_counter_attack(
        self,
        counter_attacker: "Combatant",
        target: "Combatant",
        gauge_consumed: bool = False,
    ) -> AttackOutcome:
        """Discharge a full counter gauge as an unblockable attack.

        The counter costs no stamina and skips the defense step: damage is
        applied to the target immediately.

        Args:
            counter_attacker: Owner of the gauge
            target: Combatant receiving the damage
            gauge_consumed: True when the caller already emptied the gauge
                (the scheduler does so when granting an interrupt turn)

        Raises:
            CombatContractError: If either combatant is None
        """
        require(counter_attacker, "counter_attacker")
        require(target, "target")

        if not counter_attacker.is_alive:
            return self._attack_failure(f"{counter_attacker.name} is defeated and cannot counter", True)
        if not target.is_alive:
            return self._attack_failure(f"{target.name} is already defeated", True)
        if counter_attacker is target:
            return self._attack_failure(f"{counter_attacker.name} cannot counter themselves", True)
        if not gauge_consumed and not counter_attacker.counter.consume_counter():
            return self._attack_failure(
                f"{counter_attacker.name}'s counter is not ready ({counter_attacker.counter.current}/"
                f"{counter_attacker.counter.maximum})",
                True,
            )

        roll = self.dice.roll_two("counter")
        base_damage = roll.total + counter_attacker.attack
        dealt = target.take_damage(base_damage)
        outcome = AttackOutcome(
            success=True,
            message=(f"{counter_attacker.name} counter-attacks {target.name}: {roll} + "
                     f"{counter_attacker.attack} ATK = {base_damage} unblockable damage"),
            attacker_id=counter_attacker.combatant_id,
            attacker_name=counter_attacker.name,
            defender_id=target.combatant_id,
            defender_name=target.name,
            roll=roll,
            base_damage=base_damage,
            is_counter_attack=True,
            damage_applied=dealt,
        )

        self._record(CombatAction.COUNTER_ATTACK, counter_attacker.name, target.name, roll, dealt, outcome.message)
        self._publish(CounterAttackExecuted(self.round_number, counter_attacker, target, outcome))
        self._emit_log(outcome.message, "COUNTER")
        self._check_defeated(target)
        return outcome

    def is_in_attack_range(self, attacker: "Combatant", target: "Combatant") -> bool:
        """Check if target is within attack range, diagonals included."""
        require(attacker, "attacker")
        require(target, "target")
        return attacker.position.chebyshev_distance_to(target.position) <= self.config.attack_range

    # ============== Defense ==============

    def resolve_defense(
        self,
        defender: "Combatant",
        attack_outcome: AttackOutcome,
        choice: DefenseChoice,
    ) -> DefenseOutcome:
        """Apply the defender's response to a declared attack.

        Block and evade degrade to absorb when the defender cannot pay for
        them. In every branch the final damage is applied to the defender.

        Args:
            defender: The combatant named by the attack outcome
            attack_outcome: Successful, non-counter outcome from execute_attack
            choice: Block, evade or absorb

        Returns:
            BlockResult, EvadeResult or AbsorbResult

        Raises:
            CombatContractError: If an argument is None, the outcome failed or
                was a counter-attack, or the defender does not match it
        """
        require(defender, "defender")
        require(attack_outcome, "attack_outcome")
        require(choice, "choice")
        if not attack_outcome.success:
            raise CombatContractError("Cannot defend against a failed attack")
        if attack_outcome.is_counter_attack:
            raise CombatContractError("Counter-attacks cannot be defended")
        if attack_outcome.defender_id != defender.combatant_id:
            raise CombatContractError(
                f"{defender.name} is not the defender of this attack ({attack_outcome.defender_name})"
            )

        if choice == DefenseChoice.BLOCK:
            if defender.use_stamina(self.config.stamina_costs.defend):
                result = self._resolve_block(defender, attack_outcome.base_damage)
            else:
                result = self._resolve_absorb(defender, attack_outcome.base_damage, degraded_from=choice)
        elif choice == DefenseChoice.EVADE:
            if defender.use_stamina(self.config.stamina_costs.evade):
                result = self._resolve_evade(defender, attack_outcome.base_damage)
            else:
                result = self._resolve_absorb(defender, attack_outcome.base_damage, degraded_from=choice)
        elif choice == DefenseChoice.ABSORB:
            result = self._resolve_absorb(defender, attack_outcome.base_damage)
        else:
            raise CombatContractError(f"Unknown defense choice: {choice}")

        self._publish(DefenseResolved(self.round_number, defender, result.choice, result))
        self._emit_log(result.message, "DEFENSE")
        self._check_defeated(defender)
        return result

    def _resolve_block(self, defender: "Combatant", base_damage: int) -> BlockResult:
        roll = self.dice.roll_two("block")
        total_defense = roll.total + defender.defense
        final_damage = max(0, base_damage - total_defense)
        counter_built = defender.counter.add_counter(total_defense - base_damage)
        defender.take_damage(final_damage)

        message = f"{defender.name} blocks: {roll} + {defender.defense} DEF = {total_defense}, takes {final_damage}"
        if counter_built:
            message += f" (counter +{counter_built} -> {defender.counter.current}/{defender.counter.maximum})"
        self._record(CombatAction.BLOCK, defender.name, None, roll, final_damage, message)
        if defender.counter.is_ready:
            self._emit_log(f"{defender.name}'s counter is READY", "COUNTER")

        return BlockResult(
            defender_id=defender.combatant_id,
            defender_name=defender.name,
            incoming_damage=base_damage,
            final_damage=final_damage,
            counter_ready=defender.counter.is_ready,
            message=message,
            roll=roll,
            total_defense=total_defense,
            damage_blocked=base_damage - final_damage,
            counter_built=counter_built,
        )

    def _resolve_evade(self, defender: "Combatant", base_damage: int) -> EvadeResult:
        roll = self.dice.roll_two("evade")
        total_evasion = roll.total + defender.movement
        evaded = total_evasion > base_damage
        final_damage = 0 if evaded else base_damage
        defender.take_damage(final_damage)

        if evaded:
            message = (f"{defender.name} evades: {roll} + {defender.movement} MOV = {total_evasion}, "
                       f"may reposition up to {total_evasion}")
        else:
            message = (f"{defender.name} fails to evade: {roll} + {defender.movement} MOV = {total_evasion}, "
                       f"takes {final_damage}")
        self._record(CombatAction.EVADE, defender.name, None, roll, final_damage, message)

        return EvadeResult(
            defender_id=defender.combatant_id,
            defender_name=defender.name,
            incoming_damage=base_damage,
            final_damage=final_damage,
            counter_ready=defender.counter.is_ready,
            message=message,
            roll=roll,
            total_evasion=total_evasion,
            evaded=evaded,
            movement_distance=total_evasion if evaded else 0,
        )

    def _resolve_absorb(
        self,
        defender: "Combatant",
        base_damage: int,
        degraded_from: Optional[DefenseChoice] = None,
    ) -> AbsorbResult:
        defender.take_damage(base_damage)
        if degraded_from is None:
            message = f"{defender.name} absorbs {base_damage} damage"
        else:
            message = (f"{defender.name} cannot afford to {DEFENSE_CHOICE_NAMES[degraded_from].lower()} "
                       f"and absorbs {base_damage} damage")
        self._record(CombatAction.ABSORB, defender.name, None, None, base_damage, message)

        return AbsorbResult(
            defender_id=defender.combatant_id,
            defender_name=defender.name,
            incoming_damage=base_damage,
            final_damage=base_damage,
            counter_ready=defender.counter.is_ready,
            message=message,
            degraded_from=degraded_from,
        )

    # ============== History & Events ==============

    def get_combat_history(self, count: int = 10) -> list[CombatLogEntry]:
        """Return the most recent combat log entries, oldest first."""
        if count <= 0:
            return []
        return list(self._combat_log)[-count:]

    def _record(
        self,
        action: CombatAction,
        actor_name: str,
        target_name: Optional[str],
        roll: Optional[DiceResult],
        damage: int,
        description: str,
    ) -> None:
        self._combat_log.append(CombatLogEntry(action, actor_name, target_name, roll, damage, description))

    def _attack_failure(self, reason: str, is_counter_attack: bool = False) -> AttackOutcome:
        self._emit_log(reason, "COMBAT", "WARNING")
        return AttackOutcome.failed(reason, is_counter_attack)

    def _check_defeated(self, combatant: "Combatant") -> None:
        if not combatant.is_alive:
            self._publish(CombatantDefeated(self.round_number, combatant))
            self._emit_log(f"{combatant.name} has been defeated!")

    def _publish(self, event) -> None:
        if self.event_manager is not None:
            self.event_manager.publish(event, source="CombatResolver")

    def _emit_log(self, message: str, category: str = "COMBAT", level: str = "INFO") -> None:
        """Emit a log message event."""
        self._publish(
            LogMessage(
                round_number=self.round_number,
                message=message,
                category=category,
                level=level,
                source="CombatResolver",
            )
        )
