"""Counter gauge for the "badminton streak" mechanic.

The gauge fills from over-defense while blocking. Once full, its owner is
owed one free, unblockable counter-attack.
"""

from typing import Any

DEFAULT_COUNTER_MAXIMUM = 6


class CounterGauge:
    """Bounded counter in the range 0..maximum."""

    def __init__(self, maximum: int = DEFAULT_COUNTER_MAXIMUM, current: int = 0):
        """Initialize the gauge.

        Args:
            maximum: Capacity of the gauge, fixed for its lifetime
            current: Starting value, clamped into 0..maximum

        Raises:
            ValueError: If maximum is below 1
        """
        if maximum < 1:
            raise ValueError(f"Counter maximum must be at least 1, got {maximum}")
        self._maximum = maximum
        self._current = max(0, min(maximum, current))

    @property
    def current(self) -> int:
        return self._current

    @property
    def maximum(self) -> int:
        return self._maximum

    @property
    def is_ready(self) -> bool:
        """True when the gauge is full."""
        return self._current == self._maximum

    @property
    def fill_percentage(self) -> float:
        """Fill level from 0.0 to 1.0."""
        return self._current / self._maximum

    def add_counter(self, amount: int) -> int:
        """Add points from over-defense.

        Non-positive amounts are ignored so the gauge can never be drained
        through this method.

        Returns:
            Points actually added after clamping
        """
        if amount <= 0:
            return 0
        before = self._current
        self._current = min(self._maximum, self._current + amount)
        return self._current - before

    def consume_counter(self) -> bool:
        """Empty a full gauge.

        Returns:
            True if the gauge was ready and has been reset, False otherwise
        """
        if not self.is_ready:
            return False
        self._current = 0
        return True

    def reset(self) -> None:
        """Unconditionally empty the gauge."""
        self._current = 0

    def to_dict(self) -> dict[str, Any]:
        return {"current": self._current, "maximum": self._maximum}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CounterGauge":
        """Restore a gauge saved with to_dict.

        Raises:
            ValueError: If the stored value lies outside 0..maximum
        """
        maximum = int(data.get("maximum", DEFAULT_COUNTER_MAXIMUM))
        current = int(data.get("current", 0))
        if not 0 <= current <= maximum:
            raise ValueError(f"Counter value {current} outside 0..{maximum}")
        return cls(maximum=maximum, current=current)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CounterGauge):
            return NotImplemented
        return self._current == other._current and self._maximum == other._maximum

    def __repr__(self) -> str:
        return f"CounterGauge({self._current}/{self._maximum})"

    def __str__(self) -> str:
        return f"Counter: {self._current}/{self._maximum}" + (" [READY!]" if self.is_ready else "")
