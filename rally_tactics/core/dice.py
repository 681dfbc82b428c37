"""Dice rolling for combat and movement.

All randomness in the core flows through a RandomSource instance handed to
each resolver at construction. DiceRoller is the numpy-backed implementation
and accepts a seed for reproducible matches.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import numpy as np

DIE_SIDES = 6


@dataclass(frozen=True)
class DiceResult:
    """Outcome of a single roll of one or two six-sided dice."""
    dice: tuple[int, ...]
    roll_type: str = "generic"

    def __post_init__(self):
        if len(self.dice) not in (1, 2):
            raise ValueError(f"Expected one or two dice, got {len(self.dice)}")
        for value in self.dice:
            if not 1 <= value <= DIE_SIDES:
                raise ValueError(f"Die value {value} outside 1..{DIE_SIDES}")

    @property
    def total(self) -> int:
        """Sum of all dice."""
        return sum(self.dice)

    @property
    def die1(self) -> int:
        return self.dice[0]

    @property
    def die2(self) -> Optional[int]:
        return self.dice[1] if len(self.dice) > 1 else None

    @property
    def is_single(self) -> bool:
        """True for a 1d6 roll."""
        return len(self.dice) == 1

    def to_dict(self) -> dict:
        return {"dice": list(self.dice), "roll_type": self.roll_type}

    def __str__(self) -> str:
        if self.is_single:
            return f"[{self.die1}] = {self.total}"
        return f"[{self.die1}+{self.die2}] = {self.total}"


class RandomSource(ABC):
    """Capability that produces dice outcomes."""

    @abstractmethod
    def roll_one(self, roll_type: str = "generic") -> DiceResult:
        """Roll 1d6."""
        pass

    @abstractmethod
    def roll_two(self, roll_type: str = "generic") -> DiceResult:
        """Roll 2d6."""
        pass

    def shuffled(self, items: list) -> list:
        """Return items in turn order. The base source keeps the given order."""
        return list(items)


class DiceRoller(RandomSource):
    """Random source backed by a numpy Generator.

    Args:
        seed: Optional seed; the same seed replays the same sequence of rolls
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def _roll_dice(self, count: int) -> tuple[int, ...]:
        values = self._rng.integers(1, DIE_SIDES + 1, size=count)
        return tuple(int(v) for v in values)

    def roll_one(self, roll_type: str = "generic") -> DiceResult:
        return DiceResult(self._roll_dice(1), roll_type)

    def roll_two(self, roll_type: str = "generic") -> DiceResult:
        return DiceResult(self._roll_dice(2), roll_type)

    def shuffled(self, items: list) -> list:
        """Return a new list with items in a seeded random order."""
        order = self._rng.permutation(len(items))
        return [items[int(i)] for i in order]
