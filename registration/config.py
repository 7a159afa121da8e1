"""Configuration settings for scanner registration."""

from dataclasses import dataclass, field
from typing import Optional
import json
import os


@dataclass
class RegistrationConfig:
    """Matching and engine settings."""
    min_overlap: int = 12  # coincident beacons needed to accept an alignment
    root_scanner_id: Optional[int] = None  # None: first scanner in the report
    max_workers: int = 1  # > 1 fans attempts out to a thread pool
    max_passes: Optional[int] = None  # None: number of pending scanners


@dataclass
class LoggingConfig:
    """Logging output settings."""
    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _as_int(name: str, value) -> Optional[int]:
    # All registration settings are integers or null
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"Invalid {name}: {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"Invalid {name}: {value!r}")
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Invalid {name}: {value!r}") from None


@dataclass
class MappingConfig:
    """Main configuration."""
    registration: RegistrationConfig = field(default_factory=RegistrationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: str) -> "MappingConfig":
        """Load configuration from JSON file."""
        with open(path) as f:
            data = json.load(f)

        config = cls()
        if "registration" in data:
            for k, v in data["registration"].items():
                if hasattr(config.registration, k):
                    setattr(config.registration, k, _as_int(f"registration.{k}", v))
        if "logging" in data:
            for k, v in data["logging"].items():
                if hasattr(config.logging, k):
                    setattr(config.logging, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "registration": {
                "min_overlap": self.registration.min_overlap,
                "root_scanner_id": self.registration.root_scanner_id,
                "max_workers": self.registration.max_workers,
                "max_passes": self.registration.max_passes,
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
            },
        }

    def save(self, path: str):
        """Save configuration to JSON file."""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)


# Default config file locations
DEFAULT_CONFIG_PATHS = [
    "/etc/scanner-registration/mapping.json",
    os.path.expanduser("~/.config/scanner-registration/mapping.json"),
    "./mapping_config.json",
]


def load_config(path: Optional[str] = None) -> MappingConfig:
    """Load configuration from file or return defaults."""
    if path and os.path.exists(path):
        return MappingConfig.from_file(path)

    for p in DEFAULT_CONFIG_PATHS:
        if os.path.exists(p):
            return MappingConfig.from_file(p)

    return MappingConfig()
