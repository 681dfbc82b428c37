"""
Unit tests for the TurnScheduler.

Tests match lifecycle, turn order, counter interrupts, forced rest, the
per-turn action budget and win detection.
"""
import pytest

from rally_tactics.core.data import (
    ActionChoice,
    ActionStatus,
    CombatState,
    DefenseChoice,
    MovementType,
    TurnKind,
    Vector2,
)
from rally_tactics.core.errors import CombatContractError
from rally_tactics.core.events import EventType
from rally_tactics.game.combat import BlockResult
from tests.test_utils import CombatantBuilder, record_events

ALL_ACTIONS = (ActionChoice.ATTACK, ActionChoice.BLOCK, ActionChoice.MOVE, ActionChoice.REST)


@pytest.fixture
def started(scheduler, duelists):
    """Scheduler with the attacker/defender duel in progress."""
    scheduler.start_combat(duelists)
    return scheduler


class TestStartCombat:
    """Test match start-up."""

    def test_start_combat(self, scheduler, duelists):
        scheduler.start_combat(duelists)

        assert scheduler.state == CombatState.ACTIVE
        assert scheduler.round_number == 1
        assert scheduler.participants == duelists
        assert scheduler.current_actor is None
        assert scheduler.winner is None

    def test_one_living_and_one_dead_rejected(self, scheduler, attacker):
        corpse = CombatantBuilder("Corpse").dead().build()

        with pytest.raises(CombatContractError):
            scheduler.start_combat([attacker, corpse])
        assert scheduler.state == CombatState.INACTIVE

    def test_dead_participants_filtered(self, scheduler, duelists):
        corpse = CombatantBuilder("Corpse").dead().build()

        scheduler.start_combat(duelists + [corpse])

        assert corpse not in scheduler.participants

    def test_empty_and_none_rejected(self, scheduler, attacker):
        with pytest.raises(CombatContractError):
            scheduler.start_combat([])
        with pytest.raises(CombatContractError):
            scheduler.start_combat(None)
        with pytest.raises(CombatContractError):
            scheduler.start_combat([attacker, None])

    def test_cannot_start_twice(self, started, duelists):
        with pytest.raises(CombatContractError):
            started.start_combat(duelists)

    def test_start_events(self, scheduler, event_manager, duelists):
        events = record_events(event_manager, EventType.COMBAT_STARTED, EventType.ROUND_STARTED)

        scheduler.start_combat(duelists)
        event_manager.process_events()

        assert [e.event_type for e in events] == [EventType.COMBAT_STARTED, EventType.ROUND_STARTED]
        assert events[0].participants == tuple(duelists)
        assert events[1].living_count == 2


class TestNextTurn:
    """Test normal turn progression."""

    def test_not_active(self, scheduler):
        grant = scheduler.next_turn()

        assert not grant.success
        assert grant.actor is None

    def test_turn_order_and_rounds(self, started, attacker, defender):
        first = started.next_turn()
        second = started.next_turn()
        third = started.next_turn()

        assert [first.actor, second.actor, third.actor] == [attacker, defender, attacker]
        assert [first.round_number, second.round_number, third.round_number] == [1, 1, 2]
        assert first.kind == TurnKind.NORMAL
        assert started.current_actor is attacker

    def test_all_actions_with_full_stamina(self, started):
        assert started.next_turn().available_actions == ALL_ACTIONS

    @pytest.mark.parametrize("stamina,expected", [
        (3, ALL_ACTIONS),
        (2, (ActionChoice.BLOCK, ActionChoice.MOVE, ActionChoice.REST)),
        (1, (ActionChoice.MOVE, ActionChoice.REST)),
    ])
    def test_actions_gated_by_stamina(self, started, attacker, stamina, expected):
        attacker.stamina.current = stamina

        assert started.next_turn().available_actions == expected

    def test_forced_rest(self, started, attacker):
        attacker.stamina.current = 0

        grant = started.next_turn()

        assert grant.success
        assert grant.actor is attacker
        assert grant.forced_rest == 5
        assert attacker.current_stamina == 5
        assert grant.available_actions == ALL_ACTIONS

    def test_dead_combatant_skipped(self, scheduler, attacker, defender):
        third = CombatantBuilder("Third").build()
        scheduler.start_combat([attacker, third, defender])
        scheduler.next_turn()
        third.take_damage(third.max_health)

        assert scheduler.next_turn().actor is defender

    def test_turn_granted_event(self, started, event_manager, attacker):
        events = record_events(event_manager, EventType.TURN_GRANTED)

        started.next_turn()
        event_manager.process_events()

        assert len(events) == 1
        assert events[0].actor is attacker
        assert events[0].kind == TurnKind.NORMAL


class TestSkipAttempts:
    """Test the liveness fallback for long runs of defeated combatants."""

    def build_match(self, scheduler, dead_count):
        first = CombatantBuilder("First").build()
        fallen = [CombatantBuilder(f"Fallen {i}").build() for i in range(dead_count)]
        last = CombatantBuilder("Last").build()
        scheduler.start_combat([first] + fallen + [last])
        scheduler.next_turn()
        for combatant in fallen:
            combatant.take_damage(combatant.max_health)
        return last

    def test_ten_skips_allowed(self, scheduler):
        last = self.build_match(scheduler, 10)

        assert scheduler.next_turn().actor is last

    def test_exceeding_skip_cap_ends_combat(self, scheduler):
        self.build_match(scheduler, 11)

        grant = scheduler.next_turn()

        assert not grant.success
        assert scheduler.state == CombatState.ENDED
        assert scheduler.winner is None


class TestCounterInterrupt:
    """Test counter-interrupt precedence."""

    def test_ready_gauge_preempts_normal_order(self, started, attacker, defender):
        started.next_turn()
        defender.counter.add_counter(6)

        grant = started.next_turn()

        assert grant.actor is defender
        assert grant.kind == TurnKind.COUNTER_INTERRUPT
        assert grant.is_interrupt
        assert grant.available_actions == (ActionChoice.ATTACK,)
        assert defender.counter.current == 0

    def test_normal_order_resumes_after_interrupt(self, started, attacker, defender):
        started.next_turn()
        defender.counter.add_counter(6)
        started.next_turn()

        grant = started.next_turn()

        assert grant.actor is defender
        assert grant.kind == TurnKind.NORMAL

    def test_first_ready_in_participant_order_wins(self, started, attacker, defender):
        attacker.counter.add_counter(6)
        defender.counter.add_counter(6)

        first = started.next_turn()
        second = started.next_turn()

        assert (first.actor, first.kind) == (attacker, TurnKind.COUNTER_INTERRUPT)
        assert (second.actor, second.kind) == (defender, TurnKind.COUNTER_INTERRUPT)

    def test_dead_combatant_never_interrupts(self, scheduler, attacker, defender):
        third = CombatantBuilder("Third").build()
        scheduler.start_combat([third, attacker, defender])
        third.counter.add_counter(6)
        third.take_damage(third.max_health)

        grant = scheduler.next_turn()

        assert grant.kind == TurnKind.NORMAL
        assert third.counter.is_ready

    def test_counter_attack_execution(self, started, dice, attacker, defender):
        defender.counter.add_counter(6)
        defender.stamina.current = 0
        started.next_turn()
        dice.queue((2, 2))

        result = started.execute_action(ActionChoice.ATTACK, target=attacker)

        assert result.status == ActionStatus.SUCCESS
        assert result.attack_outcome.is_counter_attack
        assert attacker.current_health == attacker.max_health - 14
        assert defender.current_stamina == 0

    def test_counter_attack_ignores_range(self, started, dice, attacker, defender):
        defender.position = Vector2(15, 15)
        defender.counter.add_counter(6)
        started.next_turn()
        dice.queue((1, 1))

        assert started.execute_action(ActionChoice.ATTACK, target=attacker).status == ActionStatus.SUCCESS

    def test_counter_attack_runs_once(self, started, dice, attacker, defender):
        defender.counter.add_counter(6)
        started.next_turn()
        dice.queue((1, 1))
        started.execute_action(ActionChoice.ATTACK, target=attacker)

        again = started.execute_action(ActionChoice.ATTACK, target=attacker)

        assert again.status == ActionStatus.FAILED
        assert attacker.current_health == attacker.max_health - 12

    def test_unused_interrupt_loses_charge(self, started, defender):
        defender.counter.add_counter(6)
        started.next_turn()
        started.next_turn()

        assert defender.counter.current == 0


class TestAttackAction:
    """Test attacks taken through the scheduler."""

    def test_attack_requires_target_response(self, started, dice, attacker, defender):
        started.next_turn()
        dice.queue((2, 3))

        result = started.execute_action(ActionChoice.ATTACK, target=defender)

        assert result.status == ActionStatus.REQUIRES_TARGET_RESPONSE
        assert result.attack_outcome.base_damage == 8
        assert started.pending_attack is result.attack_outcome
        assert attacker.current_stamina == 7
        assert defender.current_health == defender.max_health

    def test_resolve_pending_attack(self, started, dice, defender):
        started.next_turn()
        dice.queue((2, 3), (4, 4))
        started.execute_action(ActionChoice.ATTACK, target=defender)

        result = started.resolve_pending_attack(DefenseChoice.BLOCK)

        assert result.status == ActionStatus.SUCCESS
        assert isinstance(result.defense_outcome, BlockResult)
        assert result.defense_outcome.final_damage == 0
        assert defender.counter.current == 2
        assert started.pending_attack is None

    def test_next_turn_blocked_while_attack_pending(self, started, dice, defender):
        started.next_turn()
        dice.queue((2, 3))
        started.execute_action(ActionChoice.ATTACK, target=defender)

        assert not started.next_turn().success

    def test_resolve_without_pending_attack(self, started):
        started.next_turn()

        assert started.resolve_pending_attack(DefenseChoice.ABSORB).status == ActionStatus.FAILED

    def test_out_of_range(self, started, attacker, defender, dice):
        defender.position = Vector2(5, 7)
        started.next_turn()

        result = started.execute_action(ActionChoice.ATTACK, target=defender)

        assert result.status == ActionStatus.FAILED
        assert "out of range" in result.message
        assert attacker.current_stamina == 10
        assert dice.history == []

    def test_diagonal_is_in_range(self, started, dice, defender):
        defender.position = Vector2(6, 6)
        started.next_turn()
        dice.queue((1, 1))

        assert started.execute_action(ActionChoice.ATTACK, target=defender).succeeded

    @pytest.mark.parametrize("target_kind", ["none", "self", "outsider", "position"])
    def test_invalid_targets(self, started, attacker, target_kind):
        targets = {
            "none": None,
            "self": attacker,
            "outsider": CombatantBuilder("Outsider").at(5, 6).build(),
            "position": Vector2(6, 5),
        }
        started.next_turn()

        result = started.execute_action(ActionChoice.ATTACK, target=targets[target_kind])

        assert result.status == ActionStatus.FAILED
        assert attacker.current_stamina == 10

    def test_unavailable_action(self, started, attacker, defender):
        attacker.stamina.current = 2
        started.next_turn()

        result = started.execute_action(ActionChoice.ATTACK, target=defender)

        assert result.status == ActionStatus.FAILED
        assert "not available" in result.message

    def test_evade_attaches_evasion_envelope(self, started, dice, defender):
        started.next_turn()
        dice.queue((1, 1), (6, 6))
        started.execute_action(ActionChoice.ATTACK, target=defender)

        result = started.resolve_pending_attack(DefenseChoice.EVADE)

        envelope = result.movement_envelope
        assert envelope.kind == MovementType.EVASION
        assert envelope.character is defender
        assert envelope.max_distance == 14
        moved = started.complete_evasion(Vector2(6, 12))
        assert moved.status == ActionStatus.SUCCESS
        assert moved.actor is defender
        assert defender.position == Vector2(6, 12)
        assert defender.current_stamina == 9

    def test_evasion_destination_retry(self, started, dice, defender):
        started.next_turn()
        dice.queue((1, 1), (6, 6))
        started.execute_action(ActionChoice.ATTACK, target=defender)
        started.resolve_pending_attack(DefenseChoice.EVADE)

        assert started.complete_evasion(Vector2(15, 15)).status == ActionStatus.FAILED
        assert started.complete_evasion(Vector2(6, 12)).status == ActionStatus.SUCCESS
        assert started.complete_evasion(Vector2(6, 11)).status == ActionStatus.FAILED
        assert defender.position == Vector2(6, 12)

    def test_saved_evasion_envelope_expires_next_turn(self, started, dice, defender):
        started.next_turn()
        dice.queue((1, 1), (6, 6))
        started.execute_action(ActionChoice.ATTACK, target=defender)
        saved = started.resolve_pending_attack(DefenseChoice.EVADE).movement_envelope

        started.next_turn()

        outcome = started.movement_resolver.execute_movement(saved, Vector2(6, 12))
        assert not outcome.success
        assert saved.expired
        assert defender.position == Vector2(6, 5)
        assert started.complete_evasion(Vector2(6, 12)).status == ActionStatus.FAILED

    def test_complete_evasion_without_evade(self, started):
        started.next_turn()

        assert started.complete_evasion(Vector2(6, 6)).status == ActionStatus.FAILED


class TestActionBudget:
    """Test the per-turn action limit."""

    def test_one_action_by_default(self, started):
        started.next_turn()
        started.execute_action(ActionChoice.REST)

        result = started.execute_action(ActionChoice.REST)

        assert result.status == ActionStatus.FAILED
        assert started.actions_remaining == 0

    def test_simple_move_allows_second_action(self, started, dice, attacker, defender):
        started.next_turn()
        dice.queue((1,))

        move = started.execute_action(ActionChoice.MOVE, target=Vector2(5, 4))

        assert move.status == ActionStatus.SUCCESS
        assert attacker.position == Vector2(5, 4)
        assert attacker.current_stamina == 9
        assert started.actions_remaining == 1

        dice.queue((1, 1))
        attack = started.execute_action(ActionChoice.ATTACK, target=defender)
        assert attack.status == ActionStatus.REQUIRES_TARGET_RESPONSE
        assert started.actions_remaining == 0

    def test_dash_ends_turn(self, started, dice, attacker):
        started.next_turn()
        dice.queue((1, 1))

        dash = started.execute_action(ActionChoice.MOVE, target=Vector2(5, 0), movement_type=MovementType.DASH)

        assert dash.status == ActionStatus.SUCCESS
        assert started.actions_remaining == 0
        assert started.execute_action(ActionChoice.REST).status == ActionStatus.FAILED

    def test_move_without_destination(self, started, dice, attacker):
        started.next_turn()
        dice.queue((2,))

        pending = started.execute_action(ActionChoice.MOVE)

        assert pending.status == ActionStatus.REQUIRES_DESTINATION
        assert pending.movement_envelope.max_distance == 12
        assert attacker.current_stamina == 10

        done = started.complete_movement(Vector2(0, 5))
        assert done.status == ActionStatus.SUCCESS
        assert attacker.position == Vector2(0, 5)
        assert attacker.current_stamina == 9
        assert started.actions_remaining == 1

    def test_complete_movement_without_pending(self, started):
        started.next_turn()

        assert started.complete_movement(Vector2(1, 1)).status == ActionStatus.FAILED

    def test_failed_destination_keeps_the_roll(self, started, dice, attacker):
        started.next_turn()
        dice.queue((1,))

        for _ in range(3):
            result = started.execute_action(ActionChoice.MOVE, target=Vector2(15, 15))
            assert result.status == ActionStatus.FAILED
            assert result.movement_envelope.max_distance == 11

        assert len(dice.history) == 1
        assert attacker.position == Vector2(5, 5)
        assert attacker.current_stamina == 10
        assert started.actions_remaining == 1

        # Scripted dice are empty, so this can only succeed on the first roll
        retry = started.execute_action(ActionChoice.MOVE, target=Vector2(5, 4))
        assert retry.status == ActionStatus.SUCCESS
        assert attacker.position == Vector2(5, 4)
        assert len(dice.history) == 1

    def test_repeated_move_without_destination_keeps_the_roll(self, started, dice):
        started.next_turn()
        dice.queue((1,))

        first = started.execute_action(ActionChoice.MOVE)
        second = started.execute_action(ActionChoice.MOVE)

        assert first.status == second.status == ActionStatus.REQUIRES_DESTINATION
        assert second.movement_envelope is first.movement_envelope
        assert second.movement_envelope.max_distance == 11
        assert len(dice.history) == 1

    def test_switching_move_kind_after_roll(self, started, dice):
        started.next_turn()
        dice.queue((1,))
        started.execute_action(ActionChoice.MOVE)

        dash = started.execute_action(ActionChoice.MOVE, movement_type=MovementType.DASH)

        assert dash.status == ActionStatus.FAILED
        assert "already rolled" in dash.message
        assert len(dice.history) == 1

    def test_other_action_abandons_rolled_move(self, started, dice, attacker):
        started.next_turn()
        dice.queue((1,))
        envelope = started.execute_action(ActionChoice.MOVE).movement_envelope

        assert started.execute_action(ActionChoice.REST).status == ActionStatus.SUCCESS

        assert envelope.expired
        assert started.complete_movement(Vector2(5, 4)).status == ActionStatus.FAILED
        assert attacker.position == Vector2(5, 5)

    def test_rolled_move_expires_with_turn(self, started, dice, attacker):
        started.next_turn()
        dice.queue((1,))
        envelope = started.execute_action(ActionChoice.MOVE).movement_envelope

        started.next_turn()

        assert not started.movement_resolver.execute_movement(envelope, Vector2(5, 4)).success
        assert attacker.position == Vector2(5, 5)
        assert attacker.current_stamina == 10

    def test_evasion_move_type_rejected(self, started):
        started.next_turn()

        with pytest.raises(CombatContractError):
            started.execute_action(ActionChoice.MOVE, target=Vector2(5, 6), movement_type=MovementType.EVASION)

    def test_action_without_turn(self, started):
        assert started.execute_action(ActionChoice.REST).status == ActionStatus.FAILED

    def test_action_must_be_action_choice(self, started):
        started.next_turn()

        with pytest.raises(CombatContractError):
            started.execute_action("ATTACK")


class TestBlockAndRest:
    """Test the non-attack turn actions."""

    def test_block_takes_defensive_stance(self, started, attacker):
        started.next_turn()

        result = started.execute_action(ActionChoice.BLOCK)

        assert result.status == ActionStatus.SUCCESS
        assert result.defensive_stance
        assert attacker.current_stamina == 8

    def test_rest_restores_stamina(self, started, attacker):
        started.next_turn()

        result = started.execute_action(ActionChoice.REST)

        assert result.stamina_restored == 5
        assert attacker.current_stamina == 15

    def test_rest_restores_only_missing_stamina(self, started, attacker):
        attacker.stamina.current = 18
        started.next_turn()

        assert started.execute_action(ActionChoice.REST).stamina_restored == 2
        assert attacker.current_stamina == 20


class TestWinCondition:
    """Test end-of-match detection."""

    def test_lethal_attack_ends_combat(self, started, dice, attacker, defender):
        defender.health.current = 5
        started.next_turn()
        dice.queue((6, 6))
        started.execute_action(ActionChoice.ATTACK, target=defender)

        result = started.resolve_pending_attack(DefenseChoice.ABSORB)

        assert result.game_ended
        assert result.winner is attacker
        assert started.state == CombatState.ENDED
        assert started.winner is attacker
        assert not started.next_turn().success

    def test_lethal_counter_ends_combat(self, started, dice, attacker, defender):
        attacker.health.current = 3
        defender.counter.add_counter(6)
        started.next_turn()
        dice.queue((1, 1))

        result = started.execute_action(ActionChoice.ATTACK, target=attacker)

        assert result.game_ended
        assert result.winner is defender

    def test_explicit_check(self, started, defender, attacker):
        assert not started.check_win_condition()

        defender.take_damage(defender.max_health)

        assert started.check_win_condition()
        assert started.winner is attacker

    def test_no_survivors(self, started, attacker, defender):
        attacker.take_damage(attacker.max_health)
        defender.take_damage(defender.max_health)

        assert started.check_win_condition()
        assert started.winner is None

    def test_next_turn_detects_external_defeat(self, started, defender):
        defender.take_damage(defender.max_health)

        assert not started.next_turn().success
        assert started.state == CombatState.ENDED

    def test_combat_ended_event(self, started, event_manager, attacker, defender):
        events = record_events(event_manager, EventType.COMBAT_ENDED)
        defender.take_damage(defender.max_health)
        started.check_win_condition()
        event_manager.process_events()

        assert len(events) == 1
        assert events[0].winner is attacker


class TestSchedulerQueries:
    """Test read-only queries."""

    def test_living_participants(self, started, attacker, defender):
        defender.take_damage(defender.max_health)

        assert started.get_living_participants() == [attacker]

    def test_turn_history(self, started):
        started.next_turn()
        started.execute_action(ActionChoice.REST)
        started.next_turn()

        history = started.get_turn_history()

        assert [entry.action for entry in history] == [None, ActionChoice.REST, None]
        assert [entry.actor_name for entry in history] == ["Attacker", "Attacker", "Defender"]
        assert len(started.get_turn_history(count=1)) == 1

    def test_combat_status(self, started, attacker):
        statuses = started.get_combat_status()

        assert [s.name for s in statuses] == ["Attacker", "Defender"]
        assert statuses[0].stamina == attacker.current_stamina
