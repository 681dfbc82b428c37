"""Managers that observe the combat core through the event bus."""

from .log_manager import LogManager, LogEntry, LogCategory, LogLevel

__all__ = [
    "LogManager",
    "LogEntry",
    "LogCategory",
    "LogLevel",
]
