"""Centralized game enums and constants.

This module contains the enums shared by the resolvers, the scheduler and
the logging layer, providing a single source of truth for choices, turn kinds
and action names.
"""

from enum import Enum, auto


class DefenseChoice(Enum):
    """How a defender responds to an incoming attack."""
    BLOCK = auto()   # Pay stamina, roll 2d6 + DEF, build counter on over-defense
    EVADE = auto()   # Pay stamina, roll 2d6 + MOV, dodge and reposition on success
    ABSORB = auto()  # Free, take the full hit, counter untouched


class MovementType(Enum):
    """Kinds of movement envelopes."""
    SIMPLE = auto()   # 1d6 + MOV, allows a second action
    DASH = auto()     # 2d6 + MOV, ends the turn
    EVASION = auto()  # Free reposition granted by a successful evade


class TurnKind(Enum):
    """Types of turns handed out by the scheduler."""
    NORMAL = auto()
    COUNTER_INTERRUPT = auto()


class ActionChoice(Enum):
    """Actions a combatant can take on their turn."""
    ATTACK = auto()
    BLOCK = auto()
    MOVE = auto()
    REST = auto()


class ActionStatus(Enum):
    """Results of executing a turn action."""
    SUCCESS = auto()                   # Action completed
    FAILED = auto()                    # Gameplay failure, nothing changed
    REQUIRES_TARGET_RESPONSE = auto()  # Attack waits for the defender's choice
    REQUIRES_DESTINATION = auto()      # Movement envelope waits for a tile


class CombatState(Enum):
    """Lifecycle of a match."""
    INACTIVE = auto()
    ACTIVE = auto()
    ENDED = auto()


class CombatAction(Enum):
    """Entries recorded in the combat history."""
    ATTACK = auto()
    BLOCK = auto()
    EVADE = auto()
    ABSORB = auto()
    COUNTER_ATTACK = auto()


DEFENSE_CHOICE_NAMES = {
    DefenseChoice.BLOCK: "Block",
    DefenseChoice.EVADE: "Evade",
    DefenseChoice.ABSORB: "Absorb",
}

ACTION_CHOICE_NAMES = {
    ActionChoice.ATTACK: "Attack",
    ActionChoice.BLOCK: "Block",
    ActionChoice.MOVE: "Move",
    ActionChoice.REST: "Rest",
}

MOVEMENT_TYPE_NAMES = {
    MovementType.SIMPLE: "Simple Move",
    MovementType.DASH: "Dash",
    MovementType.EVASION: "Evasive Move",
}
