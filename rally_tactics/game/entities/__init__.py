"""Entity definitions.

This package contains the participant model:
- counter_gauge.py: The bounded "badminton streak" counter
- resources.py: Bounded pools backing health and stamina
- combatant.py: Combatant and its CombatStatus projection
- combatant_factory.py: Creation from configured defaults
"""

from .counter_gauge import CounterGauge, DEFAULT_COUNTER_MAXIMUM
from .resources import ResourcePool
from .combatant import Combatant, CombatantStats, CombatStatus, to_combat_status
from .combatant_factory import create_combatant

__all__ = [
    "CounterGauge",
    "DEFAULT_COUNTER_MAXIMUM",
    "ResourcePool",
    "Combatant",
    "CombatantStats",
    "CombatStatus",
    "to_combat_status",
    "create_combatant",
]
