"""
Integration tests for a full match.

Wires the dice, resolvers, scheduler, event bus and log manager together
and plays scripted and seeded duels through the public API only.
"""
import pytest

from rally_tactics.core.config import load_balance_config
from rally_tactics.core.data import ActionChoice, ActionStatus, CombatState, DefenseChoice, TurnKind, Vector2
from rally_tactics.core.dice import DiceRoller
from rally_tactics.core.events import EventManager, EventType
from rally_tactics.game.combat import CombatResolver
from rally_tactics.game.entities import create_combatant
from rally_tactics.game.managers import LogCategory, LogManager
from rally_tactics.game.movement import MovementResolver
from rally_tactics.game.turn_scheduler import TurnScheduler
from tests.test_utils import CombatantBuilder, record_events


def build_match(dice, config=None):
    event_manager = EventManager()
    log_manager = LogManager(event_manager)
    combat = CombatResolver(dice, config, event_manager)
    movement = MovementResolver(dice, config=config, event_manager=event_manager)
    scheduler = TurnScheduler(combat, movement, dice, config, event_manager)
    return scheduler, event_manager, log_manager


@pytest.mark.integration
class TestScriptedDuel:
    """A duel where every roll is known in advance."""

    def test_block_counter_sequence(self, dice):
        scheduler, event_manager, log_manager = build_match(dice)
        hero = CombatantBuilder("Hero").with_stats(strength=3, endurance=2).with_counter(4).at(5, 5).build()
        brute = CombatantBuilder("Brute").with_stats(strength=2).at(5, 6).build()
        scheduler.start_combat([hero, brute])
        defeats = record_events(event_manager, EventType.COMBATANT_DEFEATED)

        # Hero rests, Brute attacks and Hero blocks with over-defense
        assert scheduler.next_turn().actor is hero
        scheduler.execute_action(ActionChoice.REST)
        assert scheduler.next_turn().actor is brute
        dice.queue((1, 1), (5, 5))
        attack = scheduler.execute_action(ActionChoice.ATTACK, target=hero)
        assert attack.status == ActionStatus.REQUIRES_TARGET_RESPONSE
        block = scheduler.resolve_pending_attack(DefenseChoice.BLOCK)
        assert block.defense_outcome.counter_ready

        # The full gauge interrupts before the next normal turn
        interrupt = scheduler.next_turn()
        assert interrupt.actor is hero
        assert interrupt.kind == TurnKind.COUNTER_INTERRUPT
        brute.health.current = 10
        dice.queue((6, 6))
        counter = scheduler.execute_action(ActionChoice.ATTACK, target=brute)

        assert counter.game_ended
        assert scheduler.state == CombatState.ENDED
        assert scheduler.winner is hero

        event_manager.process_events()
        assert [e.combatant for e in defeats] == [brute]
        assert log_manager.get_messages(categories={LogCategory.COUNTER})
        assert any("defeated" in m.text for m in log_manager.get_messages())

    def test_move_then_attack(self, dice):
        scheduler, event_manager, _ = build_match(dice)
        runner = CombatantBuilder("Runner").with_stats(strength=4, agility=1).at(0, 0).build()
        target = CombatantBuilder("Target").with_stats(agility=0).at(4, 0).build()
        scheduler.start_combat([runner, target])
        moves = record_events(event_manager, EventType.COMBATANT_MOVED)

        scheduler.next_turn()
        dice.queue((2,))
        pending = scheduler.execute_action(ActionChoice.MOVE)
        assert Vector2(0, 3) in pending.movement_envelope.valid_positions
        assert scheduler.complete_movement(Vector2(0, 3)).succeeded

        dice.queue((3, 3), (1, 1))
        scheduler.execute_action(ActionChoice.ATTACK, target=target)
        result = scheduler.resolve_pending_attack(DefenseChoice.EVADE)

        assert result.defense_outcome.final_damage == 10
        assert target.current_health == 90
        event_manager.process_events()
        assert len(moves) == 1


@pytest.mark.integration
class TestSeededDuel:
    """Automatic duels driven by the numpy dice roller."""

    def play(self, seed, max_turns=2000):
        config = load_balance_config()
        dice = DiceRoller(seed)
        scheduler, event_manager, log_manager = build_match(dice, config)
        left = create_combatant("Left", config, position=Vector2(7, 7), strength=6, endurance=4)
        right = create_combatant("Right", config, position=Vector2(7, 8), strength=5, endurance=5)
        scheduler.start_combat([left, right])

        for _ in range(max_turns):
            grant = scheduler.next_turn()
            if not grant.success:
                break
            opponent = right if grant.actor is left else left
            if ActionChoice.ATTACK in grant.available_actions:
                result = scheduler.execute_action(ActionChoice.ATTACK, target=opponent)
                if result.status == ActionStatus.REQUIRES_TARGET_RESPONSE:
                    scheduler.resolve_pending_attack(DefenseChoice.BLOCK)
            else:
                scheduler.execute_action(ActionChoice.REST)
            event_manager.process_events()
        return scheduler, left, right, log_manager

    def test_duel_finishes_with_a_winner(self):
        scheduler, left, right, log_manager = self.play(seed=2024)

        assert scheduler.state == CombatState.ENDED
        assert scheduler.winner in (left, right)
        assert not (left.is_alive and right.is_alive)
        assert len(log_manager.messages) > 0

    def test_same_seed_same_result(self):
        first = self.play(seed=99)
        second = self.play(seed=99)

        assert first[0].winner.name == second[0].winner.name
        assert first[0].round_number == second[0].round_number
        assert first[1].current_health == second[1].current_health
