"""Pairwise registration of a candidate scanner against a reference set.

For each of the 24 lattice rotations the candidate detections are rotated and
every reference point is differenced against every rotated candidate point.
A translation that maps k candidate points onto reference points occurs
exactly k times among those differences, because both sets hold unique
points. Counting occurrences with a numpy histogram turns the search into one
vectorised pass per rotation instead of testing every translation separately.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

import numpy as np

from .geometry import Point, array_to_points, points_to_array
from .orientation import OrientationSet, Rotation


@dataclass(frozen=True)
class Alignment:
    """Result of a successful registration.

    ``rotation`` is applied to the candidate first, then ``translation`` is
    added, which maps candidate coordinates into the reference frame.
    """
    rotation: Rotation
    translation: Point
    overlap: int

    def __iter__(self) -> Iterator:
        # Unpacks as (rotation, translation)
        return iter((self.rotation, self.translation))


@dataclass
class PairRegistrar:
    """Exact lattice registration between two point sets.

    Parameters:
        min_overlap: Minimum number of coincident points to accept an alignment
        orientations: Rotation set to search
    """

    min_overlap: int = 12
    orientations: OrientationSet = field(default_factory=OrientationSet)

    def __post_init__(self):
        if self.min_overlap < 1:
            raise ValueError(f"min_overlap must be at least 1, got {self.min_overlap}")

    def try_register(
        self,
        reference: Iterable[Point],
        candidate: Iterable[Point],
        min_overlap: int | None = None
    ) -> Optional[Alignment]:
        """Find a rotation and translation aligning ``candidate`` onto ``reference``.

        Args:
            reference: Points in the target frame (e.g. the global beacon set)
            candidate: Detections in the candidate scanner's local frame
            min_overlap: Override for the registrar's threshold

        Returns:
            Alignment for the first rotation with a qualifying translation,
            or None if no rotation gives enough coincident points
        """
        threshold = self.min_overlap if min_overlap is None else min_overlap
        if threshold < 1:
            raise ValueError(f"min_overlap must be at least 1, got {threshold}")

        reference_array = points_to_array(reference)
        candidate_array = points_to_array(candidate)

        if len(reference_array) < threshold or len(candidate_array) < threshold:
            return None

        for rotation in self.orientations.rotations():
            rotated = rotation.apply_to_array(candidate_array)
            found = self._best_offset(reference_array, rotated, threshold)
            if found is not None:
                translation, overlap = found
                return Alignment(rotation=rotation, translation=translation, overlap=overlap)

        return None

    def _best_offset(
        self,
        reference: np.ndarray,
        rotated: np.ndarray,
        threshold: int
    ) -> Optional[tuple[Point, int]]:
        """Most frequent reference-minus-candidate offset, if it meets the threshold."""
        offsets = (reference[:, None, :] - rotated[None, :, :]).reshape(-1, 3)
        unique, counts = np.unique(offsets, axis=0, return_counts=True)

        # unique rows are sorted, so argmax picks the smallest offset on ties
        best = int(np.argmax(counts))
        if counts[best] < threshold:
            return None
        return Point.from_iterable(unique[best]), int(counts[best])

    def count_overlap(
        self,
        reference: Iterable[Point],
        candidate: Iterable[Point],
        rotation: Rotation,
        translation: Point
    ) -> int:
        """Number of candidate points landing on reference points under a transform."""
        reference_set = frozenset(reference)
        return len(self.transform(candidate, rotation, translation) & reference_set)

    def transform(
        self,
        points: Iterable[Point],
        rotation: Rotation,
        translation: Point
    ) -> frozenset[Point]:
        """Rotate then translate a detection set."""
        array = points_to_array(points)
        if len(array) == 0:
            return frozenset()
        moved = rotation.apply_to_array(array) + np.array(translation.to_tuple(), dtype=np.int64)
        return array_to_points(moved)

    def validate_alignment(
        self,
        reference: Iterable[Point],
        candidate: Iterable[Point],
        alignment: Alignment,
        min_overlap: int | None = None
    ) -> dict:
        """Re-check an alignment against the threshold.

        Args:
            reference: Points in the target frame
            candidate: Detections in the candidate scanner's local frame
            alignment: Alignment to check
            min_overlap: Threshold the alignment was found with, when it
                differs from the registrar's

        Returns:
            Dict with validation status and details
        """
        threshold = self.min_overlap if min_overlap is None else min_overlap
        if threshold < 1:
            raise ValueError(f"min_overlap must be at least 1, got {threshold}")

        overlap = self.count_overlap(
            reference, candidate, alignment.rotation, alignment.translation
        )
        issues = []
        if overlap < threshold:
            issues.append(f"Low overlap: {overlap} < {threshold}")
        if overlap != alignment.overlap:
            issues.append(f"Overlap mismatch: recorded {alignment.overlap}, measured {overlap}")

        return {
            'valid': len(issues) == 0,
            'overlap': overlap,
            'rotation_index': alignment.rotation.index,
            'translation': alignment.translation.to_tuple(),
            'issues': issues,
        }
