"""
Event bus connecting the combat core to its observers.

Resolvers and the scheduler publish domain events and log messages here; the
log manager and any driver subscribe by event type. Nothing in the core
depends on who is listening.
"""

import heapq
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .events import GameEvent, EventType


class EventPriority(Enum):
    """Delivery order for queued events. Lower values are delivered first."""
    CRITICAL = 0
    HIGH = 1
    NORMAL = 2
    LOW = 3


@dataclass
class QueuedEvent:
    """An event waiting in the queue, with its delivery metadata."""
    event: "GameEvent"
    priority: EventPriority = EventPriority.NORMAL
    sequence: int = 0
    timestamp: datetime = field(default_factory=datetime.now)
    source: Optional[str] = None

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.priority.value, self.sequence)

    def __lt__(self, other: "QueuedEvent") -> bool:
        return self.sort_key < other.sort_key

    def describe(self) -> dict[str, Any]:
        return {
            'event_type': type(self.event).__name__,
            'round': self.event.round_number,
            'priority': self.priority.name,
            'source': self.source,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass
class BusCounters:
    published: int = 0
    processed: int = 0
    subscriber_errors: int = 0


EventSubscriber = Callable[["GameEvent"], None]


def _subscriber_name(subscriber: EventSubscriber) -> str:
    return getattr(subscriber, '__name__', type(subscriber).__name__)


class EventManager:
    """Publish/subscribe bus with a priority queue and a bounded delivery history.

    publish() only queues; nothing is delivered until process_events() runs.
    publish_immediate() bypasses the queue. A subscriber that raises is
    counted and reported to the debug callback, and the remaining subscribers
    still receive the event.
    """

    def __init__(self, enable_debug_logging: bool = False, history_size: int = 1000):
        """Initialize the bus.

        Args:
            enable_debug_logging: Report bus activity to the debug callback
            history_size: Number of delivered events kept for inspection
        """
        self.enable_debug_logging = enable_debug_logging

        self._by_type: dict["EventType", list[EventSubscriber]] = defaultdict(list)
        self._catch_all: list[EventSubscriber] = []
        self._heap: list[QueuedEvent] = []
        self._delivered: deque[QueuedEvent] = deque(maxlen=history_size)
        self._counters = BusCounters()
        self._debug_callback: Optional[Callable[[str], None]] = None

    # ============== Debugging ==============

    def set_debug_callback(self, callback: Optional[Callable[[str], None]]) -> None:
        """Route bus diagnostics to callback (e.g. LogManager.debug)."""
        self._debug_callback = callback

    def _trace(self, message: str) -> None:
        if self.enable_debug_logging and self._debug_callback is not None:
            self._debug_callback(f"[EVENT] {message}")

    # ============== Subscriptions ==============

    def subscribe(
        self,
        event_type: "EventType",
        subscriber: EventSubscriber,
        subscriber_name: Optional[str] = None
    ) -> None:
        """Deliver events of event_type to subscriber."""
        self._by_type[event_type].append(subscriber)
        self._trace(f"{subscriber_name or _subscriber_name(subscriber)} listens to {event_type.name}")

    def subscribe_all(self, subscriber: EventSubscriber, subscriber_name: Optional[str] = None) -> None:
        """Deliver every event to subscriber."""
        self._catch_all.append(subscriber)
        self._trace(f"{subscriber_name or _subscriber_name(subscriber)} listens to every event")

    def unsubscribe(self, event_type: "EventType", subscriber: EventSubscriber) -> bool:
        """Stop delivering event_type to subscriber.

        Returns:
            False if the subscriber was not registered for that type
        """
        listeners = self._by_type.get(event_type, [])
        if subscriber not in listeners:
            return False
        listeners.remove(subscriber)
        self._trace(f"{_subscriber_name(subscriber)} stopped listening to {event_type.name}")
        return True

    # ============== Publishing ==============

    def _wrap(self, event: "GameEvent", priority: EventPriority, source: str) -> QueuedEvent:
        self._counters.published += 1
        return QueuedEvent(event, priority, self._counters.published, source=source)

    def publish(
        self,
        event: "GameEvent",
        priority: EventPriority = EventPriority.NORMAL,
        source: Optional[str] = None
    ) -> None:
        """Queue event for the next process_events() call.

        Args:
            event: Event to deliver
            priority: Delivery priority relative to other queued events
            source: Name of the publishing component, kept for diagnostics
        """
        queued = self._wrap(event, priority, source or "unknown")
        heapq.heappush(self._heap, queued)
        self._trace(f"queued {type(event).__name__} from {queued.source} at {priority.name}")

    def publish_immediate(self, event: "GameEvent", source: Optional[str] = None) -> None:
        """Deliver event now, ahead of anything queued."""
        self._deliver(self._wrap(event, EventPriority.CRITICAL, source or "immediate"))

    def process_events(self, max_events: Optional[int] = None) -> int:
        """Deliver queued events in priority order, then publish order.

        Events queued by subscribers during delivery are delivered in the
        same call.

        Args:
            max_events: Stop after this many deliveries (None drains the queue)

        Returns:
            Number of events delivered
        """
        delivered = 0
        while self._heap and (max_events is None or delivered < max_events):
            self._deliver(heapq.heappop(self._heap))
            delivered += 1
        return delivered

    def _deliver(self, queued: QueuedEvent) -> None:
        event = queued.event
        self._delivered.append(queued)
        self._counters.processed += 1
        self._trace(f"delivering {type(event).__name__} from {queued.source} (round {event.round_number})")

        # Copy so subscribers may (un)subscribe while handling
        listeners = list(self._by_type.get(event.event_type, ())) + list(self._catch_all)
        for subscriber in listeners:
            try:
                subscriber(event)
            except Exception as e:
                self._counters.subscriber_errors += 1
                self._trace(f"subscriber {_subscriber_name(subscriber)} failed: {e}")

    # ============== Inspection ==============

    def clear_queue(self) -> int:
        """Drop every queued event.

        Returns:
            How many events were dropped
        """
        dropped = len(self._heap)
        self._heap.clear()
        self._trace(f"dropped {dropped} queued events")
        return dropped

    def has_queued_events(self) -> bool:
        return bool(self._heap)

    def get_statistics(self) -> dict[str, Any]:
        return {
            'events_published': self._counters.published,
            'events_processed': self._counters.processed,
            'events_queued': len(self._heap),
            'subscriber_errors': self._counters.subscriber_errors,
            'subscribers_count': sum(len(listeners) for listeners in self._by_type.values()),
            'universal_subscribers_count': len(self._catch_all),
            'event_history_size': len(self._delivered),
        }

    def get_recent_events(self, count: int = 10) -> list[dict[str, Any]]:
        """Describe the last count delivered events, oldest first."""
        if count <= 0:
            return []
        return [queued.describe() for queued in list(self._delivered)[-count:]]
