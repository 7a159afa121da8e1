"""Exceptions raised by the registration package."""
from __future__ import annotations

from typing import Iterable


class RegistrationError(Exception):
    """Base class for registration failures."""


class StalledRegistration(RegistrationError):
    """A full pass over the pending scanners resolved nothing.

    The input does not have enough overlap to connect every scanner to the
    root, so no further progress is possible.
    """

    def __init__(self, unresolved_ids: Iterable[int], passes: int = 0):
        self.unresolved_ids = tuple(sorted(unresolved_ids))
        self.passes = passes
        ids = ", ".join(str(i) for i in self.unresolved_ids)
        super().__init__(
            f"Registration stalled after {passes} passes; unresolved scanners: {ids}"
        )


class InsufficientData(RegistrationError):
    """A summary query needs more resolved scanners than are available."""
