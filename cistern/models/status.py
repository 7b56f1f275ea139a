"""
Build Status
============
The fixed status vocabulary shared by workflows and builds.

Decoding is total: any raw value outside the nine known strings becomes
``BuildStatus.UNKNOWN``. A single odd status never fails a whole page.
"""
from enum import Enum


class BuildStatus(str, Enum):
    SUCCESS = "success"
    RUNNING = "running"
    NOT_RUN = "not_run"
    FAILED = "failed"
    ERROR = "error"
    FAILING = "failing"
    ON_HOLD = "on_hold"
    CANCELED = "canceled"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN


def classify_status(raw) -> BuildStatus:
    """Map a raw workflow status string onto a BuildStatus (never raises)."""
    if isinstance(raw, BuildStatus):
        return raw
    return BuildStatus(raw)
