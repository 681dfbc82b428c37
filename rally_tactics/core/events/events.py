"""Combat events and log messages.

This module defines the events the resolvers and the scheduler publish
through the EventManager.

Event Design Principles:
- Events are immutable dataclasses with rich object payloads
- All events carry the round number they happened in
- Events use proper enums instead of magic strings
"""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING
from abc import ABC
from enum import Enum, auto

from ..data import TurnKind, DefenseChoice, MovementType

if TYPE_CHECKING:
    from ..data import Vector2
    from ...game.entities.combatant import Combatant
    from ...game.combat.outcomes import AttackOutcome, DefenseOutcome


class EventType(Enum):
    """Types of events that subscribers can listen for."""
    # Turn flow
    COMBAT_STARTED = auto()
    ROUND_STARTED = auto()
    TURN_GRANTED = auto()
    COMBAT_ENDED = auto()

    # Combat
    ATTACK_DECLARED = auto()
    DEFENSE_RESOLVED = auto()
    COUNTER_ATTACK_EXECUTED = auto()
    COMBATANT_DEFEATED = auto()

    # Movement
    COMBATANT_MOVED = auto()

    # Logging
    LOG_MESSAGE = auto()


@dataclass(frozen=True)
class GameEvent(ABC):
    """Base class for all events."""
    round_number: int
    event_type: EventType = field(init=False)


@dataclass(frozen=True)
class CombatStarted(GameEvent):
    """Event emitted when a match begins."""
    participants: tuple["Combatant", ...]

    def __post_init__(self):
        # Set event_type since dataclass frozen=True prevents normal assignment
        object.__setattr__(self, 'event_type', EventType.COMBAT_STARTED)


@dataclass(frozen=True)
class RoundStarted(GameEvent):
    """Event emitted when a new round's queue is built."""
    living_count: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ROUND_STARTED)


@dataclass(frozen=True)
class TurnGranted(GameEvent):
    """Event emitted when a combatant receives a turn."""
    actor: "Combatant"
    kind: TurnKind
    forced_rest: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.TURN_GRANTED)


@dataclass(frozen=True)
class CombatEnded(GameEvent):
    """Event emitted when the match is over."""
    winner: Optional["Combatant"]
    reason: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.COMBAT_ENDED)


@dataclass(frozen=True)
class AttackDeclared(GameEvent):
    """Event emitted when an attack is rolled and awaits a defense."""
    attacker: "Combatant"
    defender: "Combatant"
    outcome: "AttackOutcome"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ATTACK_DECLARED)


@dataclass(frozen=True)
class DefenseResolved(GameEvent):
    """Event emitted when a defender's choice has been applied."""
    defender: "Combatant"
    choice: DefenseChoice
    outcome: "DefenseOutcome"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.DEFENSE_RESOLVED)


@dataclass(frozen=True)
class CounterAttackExecuted(GameEvent):
    """Event emitted when a counter-attack lands."""
    attacker: "Combatant"
    target: "Combatant"
    outcome: "AttackOutcome"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.COUNTER_ATTACK_EXECUTED)


@dataclass(frozen=True)
class CombatantDefeated(GameEvent):
    """Event emitted when a combatant's health reaches zero."""
    combatant: "Combatant"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.COMBATANT_DEFEATED)


@dataclass(frozen=True)
class CombatantMoved(GameEvent):
    """Event emitted when a combatant changes position."""
    combatant: "Combatant"  # combatant.position holds the destination
    from_position: "Vector2"
    movement_type: MovementType
    distance: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.COMBATANT_MOVED)


@dataclass(frozen=True)
class LogMessage(GameEvent):
    """Event carrying a log line for the LogManager."""
    message: str
    category: str = "SYSTEM"
    level: str = "INFO"
    source: str = "unknown"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LOG_MESSAGE)
