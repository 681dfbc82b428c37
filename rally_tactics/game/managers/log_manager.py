"""
Combat log collection.

Resolvers and the scheduler publish LogMessage events rather than holding a
reference to a logger. LogManager subscribes to those events, tags each line
with a category and level, and keeps the most recent ones for display.
"""
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Optional, TypeVar, TYPE_CHECKING

if TYPE_CHECKING:
    from ...core.events import EventManager, LogMessage


class LogCategory(Enum):
    """What a log line is about."""
    SYSTEM = auto()     # Match setup and teardown
    COMBAT = auto()     # Attacks and their rolls
    DEFENSE = auto()    # Block, evade and absorb results
    COUNTER = auto()    # Counter gauge and counter-attacks
    MOVEMENT = auto()   # Movement envelopes and moves
    TURN = auto()       # Rounds, grants and actions
    DEBUG = auto()
    WARNING = auto()
    ERROR = auto()


class LogLevel(Enum):
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


CATEGORY_TAGS = {
    LogCategory.SYSTEM: "SYS",
    LogCategory.COMBAT: "CBT",
    LogCategory.DEFENSE: "DEF",
    LogCategory.COUNTER: "CTR",
    LogCategory.MOVEMENT: "MOV",
    LogCategory.TURN: "TRN",
    LogCategory.DEBUG: "DBG",
    LogCategory.WARNING: "WRN",
    LogCategory.ERROR: "ERR",
}

E = TypeVar("E", bound=Enum)


def _lookup(enum_type: type[E], name: Optional[str], fallback: E) -> E:
    """Resolve an event's category or level string, tolerating unknown names."""
    if not isinstance(name, str):
        return fallback
    return enum_type.__members__.get(name.upper(), fallback)


@dataclass
class LogEntry:
    """One stored log line."""
    text: str
    category: LogCategory
    level: LogLevel = LogLevel.INFO
    source: str = "unknown"
    round_number: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def format(self, include_timestamp: bool = False, include_category: bool = True) -> str:
        """Render as "[HH:MM:SS] [TAG] text", with either prefix optional."""
        prefix = ""
        if include_timestamp:
            prefix += f"[{self.timestamp:%H:%M:%S}] "
        if include_category:
            prefix += f"[{CATEGORY_TAGS.get(self.category, '???')}] "
        return prefix + self.text


class LogManager:
    """Bounded, filterable store of combat log lines.

    Entries arrive as LogMessage events from the bus or through the direct
    helpers below. Filtering happens on read: disabling a category or raising
    the level hides entries without discarding them.
    """

    def __init__(
        self,
        event_manager: Optional["EventManager"] = None,
        max_messages: int = 1000,
        default_level: LogLevel = LogLevel.INFO,
    ):
        """Initialize the log manager.

        Args:
            event_manager: Bus to collect LogMessage events from (optional)
            max_messages: Capacity of the ring buffer; oldest entries drop first
            default_level: Minimum level returned by get_messages
        """
        self.messages: deque[LogEntry] = deque(maxlen=max_messages)
        self.log_level = default_level
        self.enabled_categories = set(LogCategory)
        self.event_manager = event_manager

        if self.event_manager is not None:
            from ...core.events import EventType
            self.event_manager.subscribe(
                EventType.LOG_MESSAGE, self._on_log_message, subscriber_name="LogManager"
            )

    def _on_log_message(self, event: "LogMessage") -> None:
        self.messages.append(
            LogEntry(
                text=event.message,
                category=_lookup(LogCategory, event.category, LogCategory.SYSTEM),
                level=_lookup(LogLevel, event.level, LogLevel.INFO),
                source=event.source,
                round_number=event.round_number,
            )
        )

    # ============== Direct Logging ==============

    def log(
        self,
        text: str,
        category: LogCategory = LogCategory.SYSTEM,
        level: LogLevel = LogLevel.INFO,
    ) -> None:
        """Append an entry without going through the event bus."""
        self.messages.append(LogEntry(text=text, category=category, level=level, source="LogManager"))

    def system(self, text: str) -> None:
        self.log(text, LogCategory.SYSTEM)

    def combat(self, text: str) -> None:
        self.log(text, LogCategory.COMBAT)

    def defense(self, text: str) -> None:
        self.log(text, LogCategory.DEFENSE)

    def counter(self, text: str) -> None:
        self.log(text, LogCategory.COUNTER)

    def movement(self, text: str) -> None:
        self.log(text, LogCategory.MOVEMENT)

    def turn(self, text: str) -> None:
        self.log(text, LogCategory.TURN)

    # These three carry their own level as well as their category
    def debug(self, text: str) -> None:
        self.log(text, LogCategory.DEBUG, LogLevel.DEBUG)

    def warning(self, text: str) -> None:
        self.log(text, LogCategory.WARNING, LogLevel.WARNING)

    def error(self, text: str) -> None:
        self.log(text, LogCategory.ERROR, LogLevel.ERROR)

    # ============== Reading ==============

    def _visible(self, entry: LogEntry, categories: Optional[set[LogCategory]]) -> bool:
        if entry.category not in self.enabled_categories:
            return False
        if categories and entry.category not in categories:
            return False
        return entry.level.value >= self.log_level.value

    def get_messages(
        self,
        count: Optional[int] = None,
        categories: Optional[set[LogCategory]] = None,
    ) -> list[LogEntry]:
        """Visible entries, oldest first.

        Args:
            count: Keep only the most recent count entries (None for all)
            categories: Restrict to these categories (None for every enabled one)
        """
        visible = [entry for entry in self.messages if self._visible(entry, categories)]
        if count is not None:
            return visible[-count:] if count > 0 else []
        return visible

    def get_formatted_messages(self, count: Optional[int] = None) -> list[str]:
        return [entry.format() for entry in self.get_messages(count)]

    def count_by_category(self) -> dict[LogCategory, int]:
        """Number of stored entries per category, hidden ones included."""
        return dict(Counter(entry.category for entry in self.messages))

    def clear(self) -> None:
        self.messages.clear()

    # ============== Filters ==============

    def enable_category(self, category: LogCategory) -> None:
        self.enabled_categories.add(category)

    def disable_category(self, category: LogCategory) -> None:
        self.enabled_categories.discard(category)

    def set_log_level(self, level: LogLevel) -> None:
        self.log_level = level

    def is_debug_enabled(self) -> bool:
        return LogCategory.DEBUG in self.enabled_categories and self.log_level == LogLevel.DEBUG

    def toggle_debug(self) -> None:
        """Switch between showing everything and hiding debug output."""
        if self.is_debug_enabled():
            self.disable_category(LogCategory.DEBUG)
            self.set_log_level(LogLevel.INFO)
        else:
            self.enable_category(LogCategory.DEBUG)
            self.set_log_level(LogLevel.DEBUG)
