#!/usr/bin/env python3
"""
Automatic duel between two combatants.

Plays a seeded match with a simple policy and prints the combat log as it
happens. Useful for eyeballing balance changes in assets/config/balance.yaml.
"""

import argparse
from typing import Optional

from rally_tactics.core.config import load_balance_config
from rally_tactics.core.data import ActionChoice, ActionStatus, CombatState, DefenseChoice, MovementType, Vector2
from rally_tactics.core.dice import DiceRoller
from rally_tactics.core.errors import ConfigError
from rally_tactics.core.events import EventManager
from rally_tactics.game.combat import CombatResolver
from rally_tactics.game.entities import Combatant, create_combatant
from rally_tactics.game.managers import LogManager
from rally_tactics.game.movement import MovementResolver
from rally_tactics.game.turn_scheduler import TurnScheduler


def choose_defense(defender: Combatant, scheduler: TurnScheduler) -> DefenseChoice:
    costs = scheduler.config.stamina_costs
    if defender.movement > defender.defense and defender.current_stamina >= costs.evade:
        return DefenseChoice.EVADE
    if defender.current_stamina >= costs.defend:
        return DefenseChoice.BLOCK
    return DefenseChoice.ABSORB


def closest_to(positions, target: Vector2) -> Optional[Vector2]:
    candidates = [p for p in positions if p != target]
    if not candidates:
        return None
    return min(candidates, key=lambda p: (p.chebyshev_distance_to(target), p.y, p.x))


def attack(scheduler: TurnScheduler, actor: Combatant, opponent: Combatant) -> bool:
    result = scheduler.execute_action(ActionChoice.ATTACK, target=opponent)
    if result.status != ActionStatus.REQUIRES_TARGET_RESPONSE:
        return result.succeeded

    response = scheduler.resolve_pending_attack(choose_defense(opponent, scheduler))
    envelope = response.movement_envelope
    if envelope is not None and envelope.valid_positions:
        # Evaders jump as far from the attacker as the envelope allows
        retreat = max(envelope.valid_positions, key=lambda p: (p.chebyshev_distance_to(actor.position), p.y, p.x))
        scheduler.complete_evasion(retreat)
    return response.succeeded


def move_toward(scheduler: TurnScheduler, opponent: Combatant) -> bool:
    result = scheduler.execute_action(ActionChoice.MOVE, movement_type=MovementType.SIMPLE)
    if result.status != ActionStatus.REQUIRES_DESTINATION:
        return False
    destination = closest_to(result.movement_envelope.valid_positions, opponent.position)
    return destination is not None and scheduler.complete_movement(destination).succeeded


def play_turn(scheduler: TurnScheduler, grant, opponent: Combatant) -> None:
    """Spend one granted turn: close the distance, then attack if possible."""
    actor = grant.actor
    if grant.is_interrupt:
        scheduler.execute_action(ActionChoice.ATTACK, target=opponent)
        return

    costs = scheduler.config.stamina_costs
    while scheduler.actions_remaining > 0 and scheduler.state == CombatState.ACTIVE:
        in_range = scheduler.combat_resolver.is_in_attack_range(actor, opponent)
        acted = False
        if in_range and ActionChoice.ATTACK in grant.available_actions and actor.current_stamina >= costs.attack:
            acted = attack(scheduler, actor, opponent)
        elif not in_range and ActionChoice.MOVE in grant.available_actions and actor.current_stamina >= costs.move:
            acted = move_toward(scheduler, opponent)

        if not acted and scheduler.actions_remaining > 0:
            scheduler.execute_action(ActionChoice.REST)
            return


def flush_log(event_manager: EventManager, log_manager: LogManager) -> None:
    event_manager.process_events()
    for line in log_manager.get_formatted_messages():
        print(line)
    log_manager.clear()


def main():
    parser = argparse.ArgumentParser(description="Run an automatic duel")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible dice")
    parser.add_argument("--config", default=None, help="Path to a balance YAML file")
    parser.add_argument("--max-turns", type=int, default=500, help="Stop after this many turns")
    args = parser.parse_args()

    try:
        config = load_balance_config(args.config)
    except ConfigError as e:
        print(f"Invalid balance config: {e}")
        for error in e.errors:
            print(f"  - {error}")
        raise SystemExit(1)

    dice = DiceRoller(args.seed)
    event_manager = EventManager()
    log_manager = LogManager(event_manager, max_messages=config.logging.log_buffer_capacity)
    combat_resolver = CombatResolver(dice, config, event_manager)
    movement_resolver = MovementResolver(dice, config=config, event_manager=event_manager)
    scheduler = TurnScheduler(combat_resolver, movement_resolver, dice, config, event_manager)

    knight = create_combatant("Knight", config, position=Vector2(2, 2), strength=6, endurance=6, agility=2)
    rogue = create_combatant("Rogue", config, position=Vector2(12, 12), strength=4, endurance=2, agility=7)
    scheduler.start_combat([knight, rogue])

    for _ in range(args.max_turns):
        grant = scheduler.next_turn()
        if not grant.success:
            break
        opponent = rogue if grant.actor is knight else knight
        play_turn(scheduler, grant, opponent)
        flush_log(event_manager, log_manager)

    flush_log(event_manager, log_manager)
    print()
    for status in scheduler.get_combat_status():
        print(f"{status.name}: HP {status.health}/{status.max_health}, "
              f"ST {status.stamina}/{status.max_stamina}, counter {status.counter}/{status.max_counter}")
    if scheduler.winner is not None:
        print(f"Winner: {scheduler.winner.name} after {scheduler.round_number} rounds")
    else:
        print("No winner")


if __name__ == "__main__":
    main()
