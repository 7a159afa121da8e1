"""Integer lattice points and numpy conversions.

Scanner detections are exact integer triples. They live in hash sets for
membership tests and are converted to Nx3 integer arrays whenever a whole
detection set has to be rotated or differenced at once.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np


@dataclass(frozen=True, order=True)
class Point:
    """Exact integer point (x, y, z)."""
    x: int
    y: int
    z: int = 0

    def __add__(self, other: 'Point') -> 'Point':
        return Point(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: 'Point') -> 'Point':
        return Point(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> 'Point':
        return Point(-self.x, -self.y, -self.z)

    def manhattan(self, other: 'Point') -> int:
        """L1 distance to another point."""
        return abs(self.x - other.x) + abs(self.y - other.y) + abs(self.z - other.z)

    def to_tuple(self) -> tuple[int, int, int]:
        return (self.x, self.y, self.z)

    @classmethod
    def from_iterable(cls, values: Iterable[int]) -> 'Point':
        """Create from any 3-element sequence (tuple, list, numpy row)."""
        x, y, z = (int(v) for v in values)
        return cls(x, y, z)


ORIGIN = Point(0, 0, 0)


def points_to_array(points: Iterable[Point]) -> np.ndarray:
    """Convert points to an Nx3 int64 array.

    Duplicates are dropped and rows are sorted, so the result is reproducible
    for a given set of points.
    """
    rows = [p.to_tuple() for p in sorted(set(points))]
    if not rows:
        return np.zeros((0, 3), dtype=np.int64)
    return np.array(rows, dtype=np.int64)


def array_to_points(array: np.ndarray) -> frozenset[Point]:
    """Convert an Nx3 integer array back to a set of points."""
    return frozenset(Point(int(x), int(y), int(z)) for x, y, z in array)
