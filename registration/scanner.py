"""Scanner frames and the merged beacon map.

A scanner starts out PENDING with only its local detections. Once an
alignment against the global map is found it becomes RESOLVED, and its
position and rotation are fixed for the rest of the run.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Set

from .geometry import ORIGIN, Point
from .orientation import OrientationSet, Rotation


class ScannerStatus(Enum):
    """Registration state of a scanner."""
    PENDING = "pending"
    RESOLVED = "resolved"


@dataclass
class ScannerFrame:
    """One scanner's detections, plus its pose in the global frame once known."""
    scanner_id: int
    detections: frozenset[Point]
    status: ScannerStatus = ScannerStatus.PENDING
    position: Optional[Point] = None
    rotation: Optional[Rotation] = None

    def __post_init__(self):
        self.detections = frozenset(self.detections)

    @classmethod
    def from_coordinates(cls, scanner_id: int, coordinates: Iterable[Iterable[int]]) -> 'ScannerFrame':
        """Build a pending scanner from raw (x, y, z) triples."""
        return cls(
            scanner_id=scanner_id,
            detections=frozenset(Point.from_iterable(c) for c in coordinates),
        )

    @property
    def is_resolved(self) -> bool:
        return self.status is ScannerStatus.RESOLVED

    def resolve(self, rotation: Rotation, position: Point) -> None:
        """Fix the scanner's pose. A scanner can only be resolved once."""
        if self.is_resolved:
            raise ValueError(f"Scanner {self.scanner_id} is already resolved")
        self.rotation = rotation
        self.position = position
        self.status = ScannerStatus.RESOLVED

    def global_detections(self) -> frozenset[Point]:
        """Detections expressed in the global frame."""
        if not self.is_resolved:
            raise ValueError(f"Scanner {self.scanner_id} is not resolved")
        rotated = OrientationSet().apply(self.rotation, self.detections)
        return frozenset(p + self.position for p in rotated)


@dataclass
class GlobalMap:
    """Beacons in the root scanner's frame and the scanners placed so far."""
    beacons: Set[Point] = field(default_factory=set)
    resolved_scanners: List[ScannerFrame] = field(default_factory=list)

    @classmethod
    def seeded(cls, root: ScannerFrame) -> 'GlobalMap':
        """Create a map anchored at ``root``, which becomes the origin."""
        global_map = cls()
        root.resolve(OrientationSet().identity, ORIGIN)
        global_map._add(root)
        return global_map

    @property
    def root(self) -> ScannerFrame:
        return self.resolved_scanners[0]

    def snapshot(self) -> frozenset[Point]:
        """Immutable copy of the current beacons for read-only matching."""
        return frozenset(self.beacons)

    def merge(self, scanner: ScannerFrame, rotation: Rotation, translation: Point) -> int:
        """Resolve ``scanner`` with the given alignment and add its beacons.

        Returns:
            Number of beacons that were not already in the map
        """
        scanner.resolve(rotation, translation)
        return self._add(scanner)

    def _add(self, scanner: ScannerFrame) -> int:
        before = len(self.beacons)
        self.beacons |= scanner.global_detections()
        self.resolved_scanners.append(scanner)
        return len(self.beacons) - before
