"""Registration pipeline for multi-scanner beacon reports.

This module runs the complete registration:
1. Load the scanner report
2. Register every scanner into the root scanner's frame
3. Summarize the merged beacon map

Usage:
    python -m registration.pipeline --report scans/report.txt
    python -m registration.pipeline --report scans/report.txt --min-overlap 12 --workers 4

The summary is printed as JSON; the exit code is non-zero on failure.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import List, Optional, Dict, Any

from .config import MappingConfig, load_config
from .engine import RegistrationEngine
from .errors import RegistrationError
from .pair_registrar import PairRegistrar
from .report_io import ReportFormatError, load_report
from .scanner import GlobalMap, ScannerFrame
from .summary import GlobalMapSummary

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Result of the registration pipeline."""

    success: bool
    report_path: str

    # Registration stats
    num_scanners: int = 0
    num_resolved: int = 0
    num_detections_total: int = 0
    beacon_count: int = 0
    max_scanner_distance: Optional[int] = None
    root_scanner_id: Optional[int] = None

    # Per-scanner poses in resolution order
    scanners: List[Dict[str, Any]] = field(default_factory=list)

    # Issues and warnings
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    # Timing
    processing_time_sec: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass
class MappingPipeline:
    """Loads a report, registers its scanners and summarizes the result."""

    config: MappingConfig = field(default_factory=MappingConfig)

    # Data
    scanners: List[ScannerFrame] = field(default_factory=list)
    global_map: Optional[GlobalMap] = None

    # Result tracking
    result: PipelineResult = field(default_factory=lambda: PipelineResult(
        success=False, report_path=""
    ))

    def load_report(self, report_path: Path | str) -> bool:
        """Load scanners from a report file.

        Returns:
            True if loading successful
        """
        report_path = Path(report_path)
        self.result.report_path = str(report_path)

        if not report_path.exists():
            self.result.errors.append(f"Report not found: {report_path}")
            return False

        try:
            self.scanners = load_report(report_path)
        except ReportFormatError as e:
            self.result.errors.append(f"Invalid report: {e}")
            return False

        if len(self.scanners) == 0:
            self.result.errors.append("No scanners found in report")
            return False

        min_overlap = self.config.registration.min_overlap
        for scanner in self.scanners:
            if len(scanner.detections) < min_overlap:
                self.result.warnings.append(
                    f"Scanner {scanner.scanner_id} has only {len(scanner.detections)} "
                    f"detections (minimum overlap: {min_overlap})"
                )
            self.result.num_detections_total += len(scanner.detections)

        self.result.num_scanners = len(self.scanners)
        return True

    def register_scanners(self) -> bool:
        """Register all scanners into a single frame.

        Returns:
            True if every scanner was resolved
        """
        if len(self.scanners) == 0:
            self.result.errors.append("No scanners loaded")
            return False

        settings = self.config.registration

        try:
            engine = RegistrationEngine(
                registrar=PairRegistrar(min_overlap=settings.min_overlap),
                max_workers=settings.max_workers,
                max_passes=settings.max_passes,
            )
            self.global_map = engine.run(self.scanners, root_id=settings.root_scanner_id)
        except (RegistrationError, ValueError, TypeError) as e:
            logger.error(f"Registration failed: {e}")
            self.result.errors.append(str(e))
            return False

        self.result.root_scanner_id = self.global_map.root.scanner_id
        self.result.num_resolved = len(self.global_map.resolved_scanners)
        return True

    def summarize(self) -> bool:
        """Fill the result with beacon and scanner statistics.

        Returns:
            True if a summary was produced
        """
        if self.global_map is None:
            self.result.errors.append("No registered map to summarize")
            return False

        summary = GlobalMapSummary(self.global_map).to_dict()
        self.result.beacon_count = summary["beacon_count"]
        self.result.max_scanner_distance = summary["max_scanner_distance"]
        self.result.scanners = summary["scanners"]

        if summary["max_scanner_distance"] is None:
            self.result.warnings.append("Only one scanner; no scanner distance available")
        return True

    def run(self, report_path: Path | str) -> PipelineResult:
        """Run the complete pipeline.

        Args:
            report_path: Path to the scanner report

        Returns:
            PipelineResult with processing outcomes
        """
        start_time = time.time()

        self.scanners = []
        self.global_map = None
        self.result = PipelineResult(success=False, report_path=str(report_path))

        logger.info(f"Loading report from {report_path}...")
        if not self.load_report(report_path):
            return self.result
        logger.info(
            f"Found {self.result.num_scanners} scanners, "
            f"{self.result.num_detections_total} detections"
        )

        logger.info("Registering scanners...")
        if not self.register_scanners():
            self.result.processing_time_sec = time.time() - start_time
            return self.result

        self.summarize()
        logger.info(
            f"{self.result.beacon_count} beacons, "
            f"max scanner distance {self.result.max_scanner_distance}"
        )

        self.result.processing_time_sec = time.time() - start_time
        self.result.success = len(self.result.errors) == 0
        return self.result


def run(report_path: str, config: MappingConfig | None = None) -> PipelineResult:
    """Run the pipeline and print the summary to stdout.

    Args:
        report_path: Path to the scanner report
        config: Optional configuration (defaults if omitted)
    """
    pipeline = MappingPipeline(config=config or MappingConfig())
    result = pipeline.run(report_path)
    print(json.dumps(result.to_dict(), indent=2))
    return result


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Register overlapping scanner reports into one beacon map"
    )
    parser.add_argument(
        "--report",
        required=True,
        help="Path to scanner report file"
    )
    parser.add_argument(
        "--config",
        help="Path to JSON configuration file"
    )
    parser.add_argument(
        "--min-overlap",
        type=int,
        help="Coincident beacons needed to accept an alignment"
    )
    parser.add_argument(
        "--root",
        type=int,
        help="Scanner id defining the global frame (default: first in report)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Thread pool size for registration attempts"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        logger.error(f"Invalid config: {e}")
        result = PipelineResult(
            success=False, report_path=str(args.report), errors=[f"Invalid config: {e}"]
        )
        print(json.dumps(result.to_dict(), indent=2))
        return 1

    if args.min_overlap is not None:
        config.registration.min_overlap = args.min_overlap
    if args.root is not None:
        config.registration.root_scanner_id = args.root
    if args.workers is not None:
        config.registration.max_workers = args.workers

    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format
    )
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    result = run(args.report, config)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
