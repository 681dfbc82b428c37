"""Bounded resource pools for health and stamina."""

from typing import Any, Optional

from ...core.errors import CombatContractError


class ResourcePool:
    """A current/maximum pair that never leaves 0..maximum.

    Used for both health and stamina. All mutating methods reject negative
    amounts; an oversized drain simply empties the pool.
    """

    def __init__(self, maximum: int, current: Optional[int] = None):
        """Initialize the pool.

        Args:
            maximum: Capacity of the pool
            current: Starting value (defaults to full)
        """
        if maximum < 0:
            raise ValueError("Maximum cannot be negative")
        self.maximum = maximum
        self.current = maximum if current is None else current
        if not 0 <= self.current <= self.maximum:
            raise ValueError(f"Current value {self.current} outside 0..{self.maximum}")

    @property
    def is_empty(self) -> bool:
        return self.current == 0

    @property
    def percent(self) -> float:
        """Fill level from 0.0 to 1.0."""
        if self.maximum <= 0:
            return 0.0
        return self.current / self.maximum

    def drain(self, amount: int) -> int:
        """Remove up to amount, flooring at zero.

        Returns:
            Amount actually removed
        """
        if amount < 0:
            raise CombatContractError("Drain amount cannot be negative")
        old = self.current
        self.current = max(0, self.current - amount)
        return old - self.current

    def spend(self, amount: int) -> bool:
        """Remove exactly amount if affordable; otherwise change nothing."""
        if amount < 0:
            raise CombatContractError("Spend amount cannot be negative")
        if self.current < amount:
            return False
        self.current -= amount
        return True

    def restore(self, amount: int) -> int:
        """Add up to amount, capping at maximum.

        Returns:
            Amount actually restored
        """
        if amount < 0:
            raise CombatContractError("Restore amount cannot be negative")
        old = self.current
        self.current = min(self.maximum, self.current + amount)
        return self.current - old

    def to_dict(self) -> dict[str, Any]:
        return {"current": self.current, "maximum": self.maximum}
