"""Combatant creation from configured defaults."""

from typing import Optional

from ...core.data import Vector2
from ...core.config import BalanceConfig
from .combatant import Combatant, CombatantStats


def create_combatant(
    name: str,
    config: Optional[BalanceConfig] = None,
    position: Optional[Vector2] = None,
    combatant_id: Optional[str] = None,
    **stat_overrides: int,
) -> Combatant:
    """Create a combatant using the configured character defaults.

    Every base attribute starts at ``characters.stat_value``; keyword
    arguments such as ``strength=4`` override individual attributes.

    Args:
        name: Display name
        config: Balance configuration (defaults apply if omitted)
        position: Starting position
        combatant_id: Optional fixed id
        **stat_overrides: Attribute values keyed by CombatantStats field name

    Raises:
        ValueError: If an override names an unknown attribute
    """
    config = config or BalanceConfig()
    defaults = config.characters

    base = {name: defaults.stat_value for name in CombatantStats.__dataclass_fields__}
    unknown = sorted(set(stat_overrides) - set(base))
    if unknown:
        raise ValueError(f"Unknown stat overrides: {', '.join(unknown)}")
    base.update(stat_overrides)

    return Combatant(
        name=name,
        stats=CombatantStats(**base),
        max_health=defaults.health,
        max_stamina=defaults.stamina,
        position=position,
        counter_maximum=config.counter_maximum,
        combatant_id=combatant_id,
    )
