"""Core data structures and definitions.

This package contains fundamental data types and game definitions:
- data_structures.py: Vector2 grid coordinates and arena bounds
- game_enums.py: Centralized enums for defense choices, turn kinds and actions
"""

from .data_structures import Vector2, ArenaBounds
from .game_enums import (
    DefenseChoice,
    MovementType,
    TurnKind,
    ActionChoice,
    ActionStatus,
    CombatState,
    CombatAction,
    DEFENSE_CHOICE_NAMES,
    ACTION_CHOICE_NAMES,
    MOVEMENT_TYPE_NAMES,
)

__all__ = [
    "Vector2",
    "ArenaBounds",
    "DefenseChoice",
    "MovementType",
    "TurnKind",
    "ActionChoice",
    "ActionStatus",
    "CombatState",
    "CombatAction",
    "DEFENSE_CHOICE_NAMES",
    "ACTION_CHOICE_NAMES",
    "MOVEMENT_TYPE_NAMES",
]
