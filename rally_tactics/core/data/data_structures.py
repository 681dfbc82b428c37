"""Grid coordinates and the arena they live in.

Positions are (y, x) so they index straight into the row-major numpy grids
the movement resolver builds. They are displayed as (x,y), the way players
read a board.
"""

from dataclasses import dataclass
from typing import Iterator, Optional
import math

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class Vector2:
    """Immutable grid position. Row (y) first, column (x) second."""
    y: int
    x: int

    def __add__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.y + other.y, self.x + other.x)

    def __sub__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.y - other.y, self.x - other.x)

    def __iter__(self) -> Iterator[int]:
        return iter((self.y, self.x))

    def __repr__(self) -> str:
        return f"Vector2({self.y}, {self.x})"

    def __str__(self) -> str:
        return f"({self.x},{self.y})"

    # ============== Distances ==============

    def distance_to(self, other: "Vector2") -> float:
        """Straight-line distance."""
        return math.hypot(self.y - other.y, self.x - other.x)

    def manhattan_distance_to(self, other: "Vector2") -> int:
        """Orthogonal steps between the two cells. Used for movement."""
        return abs(self.y - other.y) + abs(self.x - other.x)

    def chebyshev_distance_to(self, other: "Vector2") -> int:
        """King-move steps between the two cells. Used for attack range."""
        return max(abs(self.y - other.y), abs(self.x - other.x))

    # ============== Conversions ==============

    @classmethod
    def from_tuple(cls, coords: tuple[int, int]) -> "Vector2":
        y, x = coords
        return cls(y, x)

    @classmethod
    def from_list(cls, coords: list[int]) -> "Vector2":
        if len(coords) < 2:
            raise ValueError(f"Need [y, x], got {coords!r}")
        return cls(coords[0], coords[1])

    @classmethod
    def from_numpy(cls, arr: NDArray[np.int16]) -> "Vector2":
        """Build from a shape (2,) array row such as those in a position mask."""
        if arr.shape != (2,):
            raise ValueError(f"Expected an array of shape (2,), got {arr.shape}")
        return cls(int(arr[0]), int(arr[1]))

    def to_tuple(self) -> tuple[int, int]:
        return (self.y, self.x)

    def to_list(self) -> list[int]:
        return [self.y, self.x]


@dataclass(frozen=True)
class ArenaBounds:
    """Rectangular arena with cells 0 <= x < width and 0 <= y < height."""
    width: int
    height: int

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise ValueError(f"Arena must be at least 1x1, got {self.width}x{self.height}")

    def contains(self, position: Vector2) -> bool:
        return 0 <= position.x < self.width and 0 <= position.y < self.height

    def grid_around(
        self, center: Vector2, radius: int
    ) -> Optional[tuple[NDArray[np.int_], NDArray[np.int_]]]:
        """Coordinate grids for the square of the given radius around center.

        The square is clipped to the arena, so every cell in the returned
        (y_coords, x_coords) pair is in bounds.

        Returns:
            np.mgrid arrays, or None if the square misses the arena entirely
        """
        y_min = max(0, center.y - radius)
        y_max = min(self.height - 1, center.y + radius)
        x_min = max(0, center.x - radius)
        x_max = min(self.width - 1, center.x + radius)
        if y_min > y_max or x_min > x_max:
            return None
        y_coords, x_coords = np.mgrid[y_min : y_max + 1, x_min : x_max + 1]
        return y_coords, x_coords
