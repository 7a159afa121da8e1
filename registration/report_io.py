"""Reading and writing scanner reports.

A report is a sequence of blank-line separated blocks, one per scanner:

    --- scanner 0 ---
    404,-588,-901
    528,-643,409

The first integer token of the header is the scanner id. Each following line
is one detection as ``x,y,z``; ``x,y`` lines are accepted with z = 0.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List

from .scanner import ScannerFrame

_INT_TOKEN = re.compile(r"-?\d+")


class ReportFormatError(ValueError):
    """Malformed scanner report."""

    def __init__(self, message: str, line_number: int | None = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


def parse_report(text: str) -> List[ScannerFrame]:
    """Parse report text into pending scanners, in file order."""
    scanners: List[ScannerFrame] = []
    scanner_id = None
    coordinates: list = []

    def flush():
        if scanner_id is not None:
            scanners.append(ScannerFrame.from_coordinates(scanner_id, coordinates))

    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            flush()
            scanner_id, coordinates = None, []
            continue

        if scanner_id is None:
            # Header line
            match = _INT_TOKEN.search(line)
            if match is None or "," in line:
                raise ReportFormatError(f"expected scanner header, got {line!r}", line_number)
            scanner_id = int(match.group())
            continue

        fields = line.split(",")
        if len(fields) not in (2, 3):
            raise ReportFormatError(f"expected 'x,y,z', got {line!r}", line_number)
        try:
            values = [int(f) for f in fields]
        except ValueError:
            raise ReportFormatError(f"non-integer coordinate in {line!r}", line_number) from None
        if len(values) == 2:
            values.append(0)
        coordinates.append(values)

    flush()
    return scanners


def load_report(path: Path | str) -> List[ScannerFrame]:
    """Load a report file."""
    path = Path(path)
    with open(path) as f:
        return parse_report(f.read())


def format_report(scanners: Iterable[ScannerFrame]) -> str:
    """Render scanners in report format, detections in sorted order."""
    blocks = []
    for scanner in scanners:
        lines = [f"--- scanner {scanner.scanner_id} ---"]
        lines.extend(f"{p.x},{p.y},{p.z}" for p in sorted(scanner.detections))
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n"


def write_report(scanners: Iterable[ScannerFrame], path: Path | str) -> None:
    """Write scanners to a report file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(format_report(scanners))
