"""Combat rules.

- outcomes.py: Attack outcomes and the block/evade/absorb result union
- combat_resolver.py: Attack, defense and counter-attack resolution
"""

from .outcomes import (
    AttackOutcome,
    DefenseResult,
    BlockResult,
    EvadeResult,
    AbsorbResult,
    DefenseOutcome,
    CombatLogEntry,
)
from .combat_resolver import CombatResolver

__all__ = [
    "AttackOutcome",
    "DefenseResult",
    "BlockResult",
    "EvadeResult",
    "AbsorbResult",
    "DefenseOutcome",
    "CombatLogEntry",
    "CombatResolver",
]
