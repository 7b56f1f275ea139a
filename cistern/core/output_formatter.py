"""
Output Formatter
================
Deterministic display strings for builds, durations and poller status.

DETERMINISM CONTRACT:
  - This module NEVER performs I/O.
  - This module NEVER reads the clock; callers pass ``now``.
  - Given the same inputs, it ALWAYS returns the exact same string.

The formatter OUTPUTS build titles as:
    {project_name} • {branch} • {workflow_name} {duration}
"""
from datetime import datetime
from typing import Iterable, List, Optional

from cistern.core.constants import (
    BULLET,
    ELLIPSIS,
    MAX_BRANCH_LENGTH,
    MAX_DISPLAYED_BUILDS,
    STALE_THRESHOLD,
)
from cistern.models.build import BuildView


# ---------------------------------------------------------------------------
# Durations and intervals
# ---------------------------------------------------------------------------
def format_duration(seconds: float) -> str:
    """``M:SS`` below an hour, ``H:MM:SS`` above."""
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_interval(seconds: float) -> str:
    """Poll interval label: ``45s``, ``5m``, ``2m 30s`` or ``1h``."""
    secs = int(round(seconds))
    if secs < 60:
        return f"{secs}s"
    if secs < 3600:
        mins, remain = divmod(secs, 60)
        return f"{mins}m" if remain == 0 else f"{mins}m {remain}s"
    return "1h"


def last_updated_string(last_updated: Optional[datetime], now: datetime) -> str:
    if last_updated is None:
        return "Last updated: Never"

    seconds = int((now - last_updated).total_seconds())
    if seconds < 5:
        return "Last updated: Just now"
    if seconds < 60:
        return f"Last updated: {seconds}s ago"
    return f"Last updated: {seconds // 60}m ago"


# ---------------------------------------------------------------------------
# Build titles
# ---------------------------------------------------------------------------
def truncate_branch(branch: str, max_length: int = MAX_BRANCH_LENGTH) -> str:
    if len(branch) > max_length:
        return branch[: max_length - 1] + ELLIPSIS
    return branch


def format_build_title(build: BuildView, now: datetime) -> str:
    branch = truncate_branch(build.branch)
    duration = format_duration(build.duration(now))
    return f"{build.project_name} {BULLET} {branch} {BULLET} {build.workflow_name} {duration}"


def format_notification_body(build: BuildView, now: Optional[datetime] = None, with_duration: bool = False) -> str:
    body = f"{build.project_name} {BULLET} {build.branch} {BULLET} {build.workflow_name}"
    if with_duration:
        body += f" ({format_duration(build.duration(now))})"
    return body


# ---------------------------------------------------------------------------
# Display selection
# ---------------------------------------------------------------------------
def displayed_builds(builds: Iterable[BuildView], limit: int = MAX_DISPLAYED_BUILDS) -> List[BuildView]:
    """All running builds, then as many others as still fit under ``limit``."""
    builds = list(builds)
    running = [b for b in builds if b.is_running]
    others = [b for b in builds if not b.is_running]
    return running + others[: max(0, limit - len(running))]


def is_stale(builds: Iterable[BuildView], now: datetime) -> bool:
    """No running builds and nothing stopped within the stale threshold."""
    builds = list(builds)
    if any(b.is_running for b in builds):
        return False
    stops = [b.stopped_at for b in builds if b.stopped_at is not None]
    if not stops:
        return True
    return now - max(stops) > STALE_THRESHOLD
