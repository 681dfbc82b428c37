"""Event system for publisher-subscriber communication.

This package contains the event-driven plumbing:
- event_manager.py: Publisher-subscriber event routing
- events.py: Event definitions published by the combat core
"""

from .event_manager import EventManager, EventPriority, QueuedEvent
from .events import (
    GameEvent,
    EventType,
    CombatStarted,
    RoundStarted,
    TurnGranted,
    CombatEnded,
    AttackDeclared,
    DefenseResolved,
    CounterAttackExecuted,
    CombatantDefeated,
    CombatantMoved,
    LogMessage,
)

__all__ = [
    "EventManager",
    "EventPriority",
    "QueuedEvent",
    "GameEvent",
    "EventType",
    "CombatStarted",
    "RoundStarted",
    "TurnGranted",
    "CombatEnded",
    "AttackDeclared",
    "DefenseResolved",
    "CounterAttackExecuted",
    "CombatantDefeated",
    "CombatantMoved",
    "LogMessage",
]
