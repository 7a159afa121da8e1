"""Read-only queries over a converged global map."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import numpy as np
from scipy.spatial.distance import pdist

from .errors import InsufficientData
from .geometry import Point
from .scanner import GlobalMap


@dataclass
class GlobalMapSummary:
    """Beacon and scanner statistics for a registered map."""
    global_map: GlobalMap

    def beacon_count(self) -> int:
        """Number of distinct beacons."""
        return len(self.global_map.beacons)

    def scanner_positions(self) -> Dict[int, Point]:
        """Global position of each resolved scanner, keyed by id."""
        return {s.scanner_id: s.position for s in self.global_map.resolved_scanners}

    def max_scanner_distance(self) -> int:
        """Largest Manhattan distance between any two resolved scanners.

        Raises:
            InsufficientData: if fewer than two scanners are resolved
        """
        positions = [s.position.to_tuple() for s in self.global_map.resolved_scanners]
        if len(positions) < 2:
            raise InsufficientData(
                f"Need at least 2 resolved scanners, have {len(positions)}"
            )
        distances = pdist(np.array(positions, dtype=np.int64), metric="cityblock")
        return int(round(distances.max()))

    def to_dict(self) -> dict:
        """Summary as plain Python types for JSON output."""
        scanners = [
            {
                "id": s.scanner_id,
                "position": list(s.position.to_tuple()),
                "rotation": s.rotation.index,
                "detections": len(s.detections),
            }
            for s in self.global_map.resolved_scanners
        ]
        result = {
            "beacon_count": self.beacon_count(),
            "scanner_count": len(scanners),
            "scanners": scanners,
            "max_scanner_distance": None,
        }
        if len(scanners) >= 2:
            result["max_scanner_distance"] = self.max_scanner_distance()
        return result
