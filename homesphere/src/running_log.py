"""
Pydantic model for the per-device audit trail.

A RunningLog entry is created only by Device mutation methods and is frozen
after creation. Severity carries the integer codes of the household data
format (0 = INFO, 1 = WARN, 2 = ERROR).

CHANGELOG:
- 2026-10-05: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class Severity(StrEnum):
    """Severity of a RunningLog entry."""

    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @property
    def code(self) -> int:
        return _SEVERITY_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> Severity:
        """Return the severity for an integer code.

        Raises:
            ValueError: If *code* is not 0, 1 or 2.
        """
        for severity, value in _SEVERITY_CODES.items():
            if value == code:
                return severity
        raise ValueError(f"Invalid severity code: {code}")


_SEVERITY_CODES: dict[Severity, int] = {
    Severity.INFO: 0,
    Severity.WARN: 1,
    Severity.ERROR: 2,
}


class RunningLog(BaseModel):
    """A single immutable audit entry attached to a device.

    Attributes:
        timestamp: Wall-clock instant the entry was created.
        event: Short event label (e.g. ``"power on"``).
        severity: INFO, WARN or ERROR.
        note: Free-text detail.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    event: str
    severity: Severity
    note: str = ""
