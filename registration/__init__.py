"""Scanner registration package.

This package merges beacon detections from several scanners, each in its own
rotated and translated frame, into a single map anchored at a root scanner.

Modules:
- geometry: Integer points and numpy conversions
- orientation: The 24 lattice rotations
- scanner: Scanner frames and the global beacon map
- pair_registrar: Exact pairwise alignment search
- engine: Work-queue registration of all scanners
- summary: Beacon count and scanner distance queries
- report_io: Scanner report reader/writer
- config: JSON-backed configuration
- pipeline: Load, register and summarize a report
"""

from .geometry import Point, ORIGIN, points_to_array, array_to_points
from .orientation import OrientationSet, Rotation
from .scanner import ScannerFrame, ScannerStatus, GlobalMap
from .pair_registrar import PairRegistrar, Alignment
from .engine import RegistrationEngine, register_scanners
from .summary import GlobalMapSummary
from .errors import RegistrationError, StalledRegistration, InsufficientData
from .report_io import ReportFormatError, parse_report, load_report, format_report, write_report
from .config import MappingConfig, RegistrationConfig, LoggingConfig, load_config
from .pipeline import MappingPipeline, PipelineResult, run

__all__ = [
    # Geometry
    "Point",
    "ORIGIN",
    "points_to_array",
    "array_to_points",
    # Orientation
    "OrientationSet",
    "Rotation",
    # Scanners
    "ScannerFrame",
    "ScannerStatus",
    "GlobalMap",
    # Registration
    "PairRegistrar",
    "Alignment",
    "RegistrationEngine",
    "register_scanners",
    # Summary
    "GlobalMapSummary",
    # Errors
    "RegistrationError",
    "StalledRegistration",
    "InsufficientData",
    # Report I/O
    "ReportFormatError",
    "parse_report",
    "load_report",
    "format_report",
    "write_report",
    # Config
    "MappingConfig",
    "RegistrationConfig",
    "LoggingConfig",
    "load_config",
    # Pipeline
    "MappingPipeline",
    "PipelineResult",
    "run",
]
