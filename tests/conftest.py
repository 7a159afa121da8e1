"""Pytest configuration and shared fixtures."""

import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

DATA_DIR = Path(__file__).parent / "data"


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--slow",
        action="store_true",
        default=False,
        help="Run slow tests (large synthetic fields)",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (run with --slow)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --slow flag is provided."""
    if config.getoption("--slow"):
        return

    skip_slow = pytest.mark.skip(reason="need --slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def five_scanner_report():
    """Path to the five-scanner reference report."""
    return DATA_DIR / "five_scanners.txt"


@pytest.fixture
def five_scanners(five_scanner_report):
    """Fresh, pending scanners from the reference report."""
    from registration.report_io import load_report
    return load_report(five_scanner_report)


@pytest.fixture
def five_scanner_positions():
    """Known scanner positions in scanner 0's frame."""
    from registration.geometry import Point
    return {
        0: Point(0, 0, 0),
        1: Point(68, -1246, -43),
        2: Point(1105, -1205, 1229),
        3: Point(-92, -2380, -20),
        4: Point(-20, -1133, 1061),
    }


@pytest.fixture
def planar_pair():
    """Three-point reference and candidate offset by (5, 2, 0)."""
    from registration.geometry import Point
    reference = frozenset([Point(0, 2, 0), Point(4, 1, 0), Point(3, 3, 0)])
    candidate = frozenset([Point(-1, -1, 0), Point(-5, 0, 0), Point(-2, 1, 0)])
    return reference, candidate


@pytest.fixture
def orientations():
    from registration.orientation import OrientationSet
    return OrientationSet()


@pytest.fixture
def registrar():
    from registration.pair_registrar import PairRegistrar
    return PairRegistrar(min_overlap=12)
