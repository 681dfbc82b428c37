"""Result types produced by the combat resolver.

Defense outcomes form a tagged union: every defender choice has its own
result class carrying only the fields that choice produces, while sharing
the common damage and counter bookkeeping through DefenseResult.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union

from ...core.data import DefenseChoice, CombatAction
from ...core.dice import DiceResult


@dataclass(frozen=True)
class AttackOutcome:
    """Result of an attack or counter-attack declaration.

    For a normal attack ``base_damage`` is pending until the defender
    responds. For a counter-attack it has already been applied and
    ``damage_applied`` holds the amount actually dealt.
    """
    success: bool
    message: str
    attacker_id: Optional[str] = None
    attacker_name: Optional[str] = None
    defender_id: Optional[str] = None
    defender_name: Optional[str] = None
    roll: Optional[DiceResult] = None
    base_damage: int = 0
    is_counter_attack: bool = False
    damage_applied: int = 0

    @classmethod
    def failed(cls, reason: str, is_counter_attack: bool = False) -> "AttackOutcome":
        """Create a failure outcome carrying only the reason."""
        return cls(success=False, message=reason, is_counter_attack=is_counter_attack)


@dataclass(frozen=True)
class DefenseResult(ABC):
    """Fields shared by every defense outcome."""
    defender_id: str
    defender_name: str
    incoming_damage: int
    final_damage: int
    counter_ready: bool
    message: str

    @property
    @abstractmethod
    def choice(self) -> DefenseChoice:
        """The defense this result answers."""

    @property
    def damage_prevented(self) -> int:
        return self.incoming_damage - self.final_damage


@dataclass(frozen=True)
class BlockResult(DefenseResult):
    """Defender paid to block; over-defense fed the counter gauge."""
    roll: Optional[DiceResult] = None
    total_defense: int = 0
    damage_blocked: int = 0
    counter_built: int = 0

    @property
    def choice(self) -> DefenseChoice:
        return DefenseChoice.BLOCK


@dataclass(frozen=True)
class EvadeResult(DefenseResult):
    """Defender paid to evade; success grants a free reposition."""
    roll: Optional[DiceResult] = None
    total_evasion: int = 0
    evaded: bool = False
    movement_distance: int = 0

    @property
    def choice(self) -> DefenseChoice:
        return DefenseChoice.EVADE


@dataclass(frozen=True)
class AbsorbResult(DefenseResult):
    """Defender took the full hit.

    ``degraded_from`` names the paid choice that could not be afforded, or is
    None when absorbing was chosen deliberately.
    """
    degraded_from: Optional[DefenseChoice] = None

    @property
    def choice(self) -> DefenseChoice:
        return DefenseChoice.ABSORB


DefenseOutcome = Union[BlockResult, EvadeResult, AbsorbResult]


@dataclass(frozen=True)
class CombatLogEntry:
    """One entry of the resolver's bounded combat history."""
    action: CombatAction
    actor_name: str
    target_name: Optional[str]
    roll: Optional[DiceResult]
    damage: int
    description: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.name,
            "actor": self.actor_name,
            "target": self.target_name,
            "roll": self.roll.to_dict() if self.roll else None,
            "damage": self.damage,
            "description": self.description,
            "timestamp": self.timestamp.isoformat(),
        }
