"""
Status Display
==============
Presentation values for BuildStatus, kept out of the aggregation core.

The core only carries the enum value. Anything a renderer needs (labels,
icon names, the overall "worst" status for a summary icon) is looked up here.

Severity order (highest first):
    failed / error > failing > running > on_hold > canceled / not_run / unknown > success
"""
from typing import Iterable

from cistern.models.status import BuildStatus


# ---------------------------------------------------------------------------
# Severity Table
# ---------------------------------------------------------------------------
STATUS_SEVERITY: dict[BuildStatus, int] = {
    BuildStatus.FAILED:   5,
    BuildStatus.ERROR:    5,
    BuildStatus.FAILING:  4,
    BuildStatus.RUNNING:  3,
    BuildStatus.ON_HOLD:  2,
    BuildStatus.CANCELED: 1,
    BuildStatus.NOT_RUN:  1,
    BuildStatus.UNKNOWN:  1,
    BuildStatus.SUCCESS:  0,
}


# ---------------------------------------------------------------------------
# Labels and Symbols
# ---------------------------------------------------------------------------
_DISPLAY_NAMES: dict[BuildStatus, str] = {
    BuildStatus.SUCCESS:  "Success",
    BuildStatus.RUNNING:  "Running",
    BuildStatus.NOT_RUN:  "Not Run",
    BuildStatus.FAILED:   "Failed",
    BuildStatus.ERROR:    "Error",
    BuildStatus.FAILING:  "Failing",
    BuildStatus.ON_HOLD:  "On Hold",
    BuildStatus.CANCELED: "Canceled",
    BuildStatus.UNKNOWN:  "Unknown",
}

_SYMBOLS: dict[BuildStatus, str] = {
    BuildStatus.SUCCESS:  "checkmark.circle.fill",
    BuildStatus.RUNNING:  "arrow.triangle.2.circlepath.circle.fill",
    BuildStatus.FAILED:   "xmark.circle.fill",
    BuildStatus.ERROR:    "xmark.circle.fill",
    BuildStatus.FAILING:  "xmark.circle.fill",
    BuildStatus.ON_HOLD:  "pause.circle.fill",
    BuildStatus.CANCELED: "minus.circle.fill",
    BuildStatus.NOT_RUN:  "minus.circle.fill",
    BuildStatus.UNKNOWN:  "circle.dotted",
}

STALE_SYMBOL = "circle.dotted"


def severity(status: BuildStatus) -> int:
    return STATUS_SEVERITY[status]


def display_name(status: BuildStatus) -> str:
    return _DISPLAY_NAMES[status]


def status_symbol(status: BuildStatus) -> str:
    return _SYMBOLS[status]


def worst_status(statuses: Iterable[BuildStatus]) -> BuildStatus:
    """
    Return the most severe status in ``statuses``.

    Ties keep the first occurrence. Empty input yields UNKNOWN.
    """
    worst = None
    for status in statuses:
        if worst is None or severity(status) > severity(worst):
            worst = status
    return worst if worst is not None else BuildStatus.UNKNOWN
