"""
Basic test fixtures for the rally tactics test suite.

Provides a default configuration, scripted dice and pre-wired resolvers so
tests can focus on a single rule at a time.
"""

import sys
import os
import pytest

# Add the project root to the Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from rally_tactics.core.config import BalanceConfig
from rally_tactics.core.data import Vector2
from rally_tactics.core.events import EventManager
from rally_tactics.game.combat import CombatResolver
from rally_tactics.game.movement import MovementResolver
from rally_tactics.game.turn_scheduler import TurnScheduler
from tests.test_utils import ScriptedDice, CombatantBuilder


@pytest.fixture
def config():
    """Default balance configuration."""
    return BalanceConfig()


@pytest.fixture
def dice():
    """Scripted dice with an empty queue; tests push the rolls they need."""
    return ScriptedDice()


@pytest.fixture
def event_manager():
    """Create an event manager for testing."""
    return EventManager(enable_debug_logging=False)


@pytest.fixture
def combat_resolver(dice, config, event_manager):
    """Combat resolver wired to the scripted dice."""
    return CombatResolver(dice, config, event_manager)


@pytest.fixture
def movement_resolver(dice, config, event_manager):
    """Movement resolver on the default 16x16 arena."""
    return MovementResolver(dice, config=config, event_manager=event_manager)


@pytest.fixture
def scheduler(combat_resolver, movement_resolver, dice, config, event_manager):
    """Turn scheduler sharing dice and bus with both resolvers."""
    return TurnScheduler(combat_resolver, movement_resolver, dice, config, event_manager)


@pytest.fixture
def attacker():
    """Attacker with ATK 3 and 10 stamina, standing at (5,5)."""
    return CombatantBuilder("Attacker").with_stats(strength=3).with_stamina(10).at(5, 5).build()


@pytest.fixture
def defender():
    """Defender with DEF 2, MOV 2 and 10 stamina, adjacent to the attacker."""
    return (CombatantBuilder("Defender")
            .with_stats(endurance=2, agility=2)
            .with_stamina(10)
            .at(5, 6)
            .build())


@pytest.fixture
def duelists(attacker, defender):
    """The attacker and defender as a participant list."""
    return [attacker, defender]


@pytest.fixture
def center():
    """Arena center used by movement tests."""
    return Vector2(8, 8)
