"""Combatant entity and its read-only status projection.

A Combatant owns every piece of mutable match state for one participant:
health, stamina, position and the counter gauge. Resolvers and the scheduler
hold references to combatants and mutate them in place.
"""

from dataclasses import dataclass, asdict
from typing import Any, Optional
import uuid

from ...core.data import Vector2
from ...core.config import StaminaCosts
from .counter_gauge import CounterGauge, DEFAULT_COUNTER_MAXIMUM
from .resources import ResourcePool


@dataclass
class CombatantStats:
    """Base attributes.

    Only strength, endurance and agility feed combat (ATK, DEF and MOV
    respectively). The remaining three are carried for future abilities.
    """
    strength: int = 10
    endurance: int = 10
    agility: int = 10
    charisma: int = 10
    intelligence: int = 10
    wisdom: int = 10

    def __post_init__(self):
        for name, value in asdict(self).items():
            if value < 0:
                raise ValueError(f"{name} cannot be negative")


class Combatant:
    """A match participant.

    Property Access Patterns:
    1. **Core properties**: combatant.current_health, combatant.is_alive
    2. **Derived stats**: combatant.attack, combatant.defense, combatant.movement
    3. **Owned state**: combatant.counter, combatant.position

    Examples:
        hero = Combatant("Hero", CombatantStats(strength=4), max_health=30)
        hero.take_damage(12)
        if hero.use_stamina(3):
            ...
    """

    def __init__(
        self,
        name: str,
        stats: Optional[CombatantStats] = None,
        max_health: int = 100,
        max_stamina: int = 20,
        position: Optional[Vector2] = None,
        counter_maximum: int = DEFAULT_COUNTER_MAXIMUM,
        combatant_id: Optional[str] = None,
    ):
        """Initialize a combatant at full health and stamina.

        Args:
            name: Display name
            stats: Base attributes (defaults to all 10s)
            max_health: Maximum and starting health
            max_stamina: Maximum and starting stamina
            position: Starting grid position (defaults to the origin)
            counter_maximum: Capacity of the owned counter gauge
            combatant_id: Optional fixed id (a uuid4 string otherwise)
        """
        self.combatant_id = combatant_id or str(uuid.uuid4())
        self.name = name
        self.stats = stats or CombatantStats()
        self.health = ResourcePool(max_health)
        self.stamina = ResourcePool(max_stamina)
        self.position = position if position is not None else Vector2(0, 0)
        self.counter = CounterGauge(counter_maximum)

    # ============== Core Properties ==============

    @property
    def current_health(self) -> int:
        return self.health.current

    @property
    def max_health(self) -> int:
        return self.health.maximum

    @property
    def current_stamina(self) -> int:
        return self.stamina.current

    @property
    def max_stamina(self) -> int:
        return self.stamina.maximum

    @property
    def is_alive(self) -> bool:
        """Check if combatant is alive."""
        return self.health.current > 0

    @property
    def can_act(self) -> bool:
        """Alive and with stamina left to spend."""
        return self.is_alive and self.stamina.current > 0

    # ============== Derived Combat Stats ==============

    @property
    def attack(self) -> int:
        return self.stats.strength

    @property
    def defense(self) -> int:
        return self.stats.endurance

    @property
    def movement(self) -> int:
        return self.stats.agility

    # ============== Resource Management ==============

    def take_damage(self, damage: int) -> int:
        """Apply damage, flooring health at zero.

        Returns:
            Damage actually dealt
        """
        return self.health.drain(damage)

    def heal(self, amount: int) -> int:
        """Restore health up to the maximum."""
        return self.health.restore(amount)

    def use_stamina(self, amount: int) -> bool:
        """Spend stamina if the full amount is available."""
        return self.stamina.spend(amount)

    def restore_stamina(self, amount: int) -> int:
        """Recover stamina up to the maximum."""
        return self.stamina.restore(amount)

    # ============== Serialization ==============

    def to_dict(self) -> dict[str, Any]:
        """Plain-data snapshot of every field."""
        return {
            "id": self.combatant_id,
            "name": self.name,
            "stats": asdict(self.stats),
            "health": self.health.to_dict(),
            "stamina": self.stamina.to_dict(),
            "position": {"x": self.position.x, "y": self.position.y},
            "counter": self.counter.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Combatant":
        """Rebuild a combatant saved with to_dict."""
        counter = CounterGauge.from_dict(data["counter"])
        combatant = cls(
            name=data["name"],
            stats=CombatantStats(**data["stats"]),
            max_health=data["health"]["maximum"],
            max_stamina=data["stamina"]["maximum"],
            position=Vector2(data["position"]["y"], data["position"]["x"]),
            counter_maximum=counter.maximum,
            combatant_id=data["id"],
        )
        combatant.health = ResourcePool(data["health"]["maximum"], data["health"]["current"])
        combatant.stamina = ResourcePool(data["stamina"]["maximum"], data["stamina"]["current"])
        combatant.counter = counter
        return combatant

    def __repr__(self) -> str:
        return f"Combatant({self.name!r}, id={self.combatant_id[:8]})"

    def __str__(self) -> str:
        return (f"{self.name} (HP: {self.current_health}/{self.max_health}, "
                f"SP: {self.current_stamina}/{self.max_stamina})")


@dataclass(frozen=True)
class CombatStatus:
    """Read-only view of a combatant for display and diagnostics."""
    combatant_id: str
    name: str
    health: int
    max_health: int
    stamina: int
    max_stamina: int
    counter: int
    max_counter: int
    position: Vector2
    can_attack: bool
    can_defend: bool
    can_move: bool

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    @property
    def counter_ready(self) -> bool:
        return self.counter >= self.max_counter

    @property
    def health_percentage(self) -> float:
        return self.health / self.max_health if self.max_health > 0 else 0.0

    @property
    def stamina_percentage(self) -> float:
        return self.stamina / self.max_stamina if self.max_stamina > 0 else 0.0

    @property
    def counter_percentage(self) -> float:
        return self.counter / self.max_counter if self.max_counter > 0 else 0.0

    def __str__(self) -> str:
        counter = " [COUNTER READY!]" if self.counter_ready else f" (Counter: {self.counter}/{self.max_counter})"
        return f"{self.name}: {self.health}/{self.max_health} HP, {self.stamina}/{self.max_stamina} SP{counter}"


def to_combat_status(combatant: Combatant, costs: Optional[StaminaCosts] = None) -> CombatStatus:
    """Project a combatant into an immutable CombatStatus.

    Args:
        combatant: The live combatant
        costs: Stamina costs used for the affordability flags (defaults apply if omitted)
    """
    costs = costs or StaminaCosts()
    stamina = combatant.current_stamina
    return CombatStatus(
        combatant_id=combatant.combatant_id,
        name=combatant.name,
        health=combatant.current_health,
        max_health=combatant.max_health,
        stamina=stamina,
        max_stamina=combatant.max_stamina,
        counter=combatant.counter.current,
        max_counter=combatant.counter.maximum,
        position=Vector2(combatant.position.y, combatant.position.x),
        can_attack=stamina >= costs.attack,
        can_defend=stamina >= costs.defend,
        can_move=stamina >= costs.move,
    )
