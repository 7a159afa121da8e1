"""Discrete rotations of the 3D integer lattice.

A scanner can be mounted facing along any of the six axis directions with any
of four "up" directions, which gives 24 orientations. Each is a signed
permutation matrix with determinant +1 (the rotation group of the cube).
Mirror images (determinant -1) are not physical orientations and are excluded.

Rotation labels are stable: index 0 is the identity, and the remaining indices
follow the order of ``itertools.permutations`` over the axes combined with
``itertools.product`` over the signs.
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple

import numpy as np

from .geometry import Point, array_to_points, points_to_array

Matrix3 = Tuple[Tuple[int, int, int], Tuple[int, int, int], Tuple[int, int, int]]


@dataclass(frozen=True)
class Rotation:
    """One of the 24 proper rotations, stored as an integer 3x3 matrix."""
    index: int
    matrix: Matrix3

    @property
    def as_array(self) -> np.ndarray:
        return np.array(self.matrix, dtype=np.int64)

    @property
    def is_identity(self) -> bool:
        return self.index == 0

    def apply_to_point(self, point: Point) -> Point:
        """Rotate a single point."""
        x, y, z = point.to_tuple()
        return Point(*(row[0] * x + row[1] * y + row[2] * z for row in self.matrix))

    def apply_to_array(self, points: np.ndarray) -> np.ndarray:
        """Rotate an Nx3 array of points (row vectors)."""
        return points @ self.as_array.T

    def inverse(self) -> 'Rotation':
        """Rotation undoing this one (the matrix transpose)."""
        return _lookup(self.as_array.T)

    def compose(self, other: 'Rotation') -> 'Rotation':
        """Rotation equivalent to applying ``other`` first, then ``self``."""
        return _lookup(self.as_array @ other.as_array)


def _generate() -> tuple[Rotation, ...]:
    matrices = []
    for perm in itertools.permutations(range(3)):
        for signs in itertools.product((1, -1), repeat=3):
            m = np.zeros((3, 3), dtype=np.int64)
            for row, (col, sign) in enumerate(zip(perm, signs)):
                m[row, col] = sign
            if round(np.linalg.det(m)) == 1:
                matrices.append(m)
    return tuple(
        Rotation(index=i, matrix=tuple(tuple(int(v) for v in row) for row in m))
        for i, m in enumerate(matrices)
    )


_ROTATIONS = _generate()
_BY_MATRIX = {r.matrix: r for r in _ROTATIONS}


def _lookup(matrix: np.ndarray) -> Rotation:
    key = tuple(tuple(int(v) for v in row) for row in matrix)
    try:
        return _BY_MATRIX[key]
    except KeyError:
        raise ValueError(f"Not a lattice rotation: {key}") from None


class OrientationSet:
    """The 24 lattice rotations and helpers to apply them to detection sets."""

    def __len__(self) -> int:
        return len(_ROTATIONS)

    def __iter__(self) -> Iterator[Rotation]:
        return self.rotations()

    @property
    def identity(self) -> Rotation:
        return _ROTATIONS[0]

    def rotations(self) -> Iterator[Rotation]:
        """Yield all 24 rotations, identity first, in a fixed order."""
        return iter(_ROTATIONS)

    def get(self, index: int) -> Rotation:
        """Return the rotation with the given label."""
        if not 0 <= index < len(_ROTATIONS):
            raise ValueError(f"Rotation index out of range: {index}")
        return _ROTATIONS[index]

    def find(self, matrix) -> Rotation:
        """Look up the rotation for a 3x3 matrix (nested sequence or array)."""
        return _lookup(np.asarray(matrix))

    def apply(self, rotation: Rotation, points: Iterable[Point]) -> frozenset[Point]:
        """Rotate every point of a detection set.

        Rotations are bijections, so the result has the same cardinality.
        """
        array = points_to_array(points)
        if len(array) == 0:
            return frozenset()
        return array_to_points(rotation.apply_to_array(array))
