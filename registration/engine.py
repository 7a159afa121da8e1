"""Registration of all scanners into the root scanner's frame.

The engine keeps a work queue of pending scanners. Each pass tries every
queued scanner against the beacons found so far; a scanner that does not match
yet goes back on the queue, since a scanner resolved later in the same pass
may supply the missing overlap. The run ends when the queue is empty, or fails
with StalledRegistration when a whole pass makes no progress.
"""
from __future__ import annotations

import logging
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Deque, List, Optional, Sequence

from .errors import StalledRegistration
from .pair_registrar import Alignment, PairRegistrar
from .scanner import GlobalMap, ScannerFrame

logger = logging.getLogger(__name__)


@dataclass
class RegistrationEngine:
    """Drives pairwise registration to a fixpoint.

    Parameters:
        registrar: Pairwise matcher (holds min_overlap)
        max_workers: Attempts per pass run in a thread pool when > 1
        max_passes: Upper bound on passes; defaults to the number of pending scanners
    """

    registrar: PairRegistrar = field(default_factory=PairRegistrar)
    max_workers: int = 1
    max_passes: Optional[int] = None

    def run(self, scanners: Sequence[ScannerFrame], root_id: int | None = None) -> GlobalMap:
        """Resolve every scanner relative to the root.

        The input frames are only marked resolved when the whole run succeeds.
        After a StalledRegistration they are all still pending.

        Args:
            scanners: All scanners, pending, in input order
            root_id: Scanner that defines the global frame (default: first scanner)

        Returns:
            GlobalMap with merged beacons and scanners in resolution order

        Raises:
            StalledRegistration: if some scanners cannot be connected to the root
            ValueError: on empty input, duplicate ids, an unknown root id or
                scanners that are already resolved
        """
        if len(scanners) == 0:
            raise ValueError("No scanners to register")

        ids = [s.scanner_id for s in scanners]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate scanner ids: {sorted(i for i in set(ids) if ids.count(i) > 1)}")

        already = sorted(s.scanner_id for s in scanners if s.is_resolved)
        if already:
            raise ValueError(f"Scanners already resolved: {already}")

        if root_id is not None and root_id not in ids:
            raise ValueError(f"Root scanner {root_id} not found")

        global_map = self._register(
            [replace(s) for s in scanners],
            ids[0] if root_id is None else root_id
        )

        # Commit poses to the caller's frames
        frames = {s.scanner_id: s for s in scanners}
        for placed in global_map.resolved_scanners:
            frames[placed.scanner_id].resolve(placed.rotation, placed.position)
        global_map.resolved_scanners = [
            frames[placed.scanner_id] for placed in global_map.resolved_scanners
        ]
        return global_map

    def _register(self, scanners: List[ScannerFrame], root_id: int) -> GlobalMap:
        root = next(s for s in scanners if s.scanner_id == root_id)

        global_map = GlobalMap.seeded(root)
        logger.info(
            f"Root scanner {root.scanner_id}: {len(global_map.beacons)} beacons"
        )

        pending: Deque[ScannerFrame] = deque(s for s in scanners if s is not root)
        max_passes = self.max_passes if self.max_passes is not None else len(pending)

        passes = 0
        while pending:
            if passes >= max_passes:
                logger.warning(f"Pass limit {max_passes} reached with {len(pending)} scanners pending")
                raise StalledRegistration((s.scanner_id for s in pending), passes)
            passes += 1

            if self.max_workers > 1:
                resolved = self._parallel_pass(global_map, pending)
            else:
                resolved = self._sequential_pass(global_map, pending)

            logger.debug(f"Pass {passes}: resolved {resolved}, {len(pending)} pending")

            if resolved == 0:
                logger.warning(
                    f"No progress in pass {passes}; unresolved: "
                    f"{sorted(s.scanner_id for s in pending)}"
                )
                raise StalledRegistration((s.scanner_id for s in pending), passes)

        logger.info(
            f"Registered {len(global_map.resolved_scanners)} scanners in {passes} passes, "
            f"{len(global_map.beacons)} beacons"
        )
        return global_map

    def _sequential_pass(self, global_map: GlobalMap, pending: Deque[ScannerFrame]) -> int:
        """One pass where each attempt sees the beacons merged so far."""
        resolved = 0
        for _ in range(len(pending)):
            scanner = pending.popleft()
            alignment = self.registrar.try_register(global_map.beacons, scanner.detections)
            if alignment is None:
                logger.debug(f"Scanner {scanner.scanner_id}: no match yet")
                pending.append(scanner)
                continue
            self._merge(global_map, scanner, alignment)
            resolved += 1
        return resolved

    def _parallel_pass(self, global_map: GlobalMap, pending: Deque[ScannerFrame]) -> int:
        """One pass where all attempts run against a single beacon snapshot.

        Results are collected before any merge, then applied in queue order.
        """
        snapshot = global_map.snapshot()
        batch: List[ScannerFrame] = list(pending)
        pending.clear()

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            alignments = list(executor.map(
                lambda s: self.registrar.try_register(snapshot, s.detections),
                batch
            ))

        resolved = 0
        for scanner, alignment in zip(batch, alignments):
            if alignment is None:
                logger.debug(f"Scanner {scanner.scanner_id}: no match yet")
                pending.append(scanner)
                continue
            self._merge(global_map, scanner, alignment)
            resolved += 1
        return resolved

    def _merge(self, global_map: GlobalMap, scanner: ScannerFrame, alignment: Alignment) -> None:
        added = global_map.merge(scanner, alignment.rotation, alignment.translation)
        logger.info(
            f"Scanner {scanner.scanner_id} resolved at {alignment.translation.to_tuple()} "
            f"(rotation {alignment.rotation.index}, overlap {alignment.overlap}, "
            f"+{added} beacons)"
        )


def register_scanners(
    scanners: Sequence[ScannerFrame],
    min_overlap: int = 12,
    root_id: int | None = None
) -> GlobalMap:
    """Register scanners with default engine settings.

    Args:
        scanners: All scanners, pending
        min_overlap: Coincident points needed to accept an alignment
        root_id: Scanner that defines the global frame (default: first)

    Returns:
        Converged GlobalMap
    """
    engine = RegistrationEngine(registrar=PairRegistrar(min_overlap=min_overlap))
    return engine.run(scanners, root_id=root_id)
