"""
Result Assembler
================
Produces the final, display-ordered build list and tracks status
transitions between cycles.

Ordering:
    running builds first, then everything else; each group sorted by
    (project_name, branch, workflow_name). Sorting an assembled list again
    changes nothing.

Transitions:
    started  — previous status was not running (or the key is new), now running
    finished — previous status was running, now anything else
The tracked status map is replaced by the new cycle's map after every diff.
"""
import logging
from typing import Dict, Iterable, List

from cistern.models.build import BuildKey, BuildView, TransitionEvents
from cistern.models.status import BuildStatus

logger = logging.getLogger(__name__)


def sort_builds(builds: Iterable[BuildView]) -> List[BuildView]:
    return sorted(builds, key=lambda b: b.sort_key)


def assemble(running: Iterable[BuildView], other: Iterable[BuildView]) -> List[BuildView]:
    return sort_builds(running) + sort_builds(other)


class TransitionTracker:
    """
    Remembers the previous cycle's statuses to detect start/finish events.

    A key with no previous status counts as not running, so a build that is
    already running on the first cycle is reported as started.
    """

    def __init__(self) -> None:
        self._statuses: Dict[BuildKey, BuildStatus] = {}

    def diff(self, builds: Iterable[BuildView]) -> TransitionEvents:
        events = TransitionEvents()
        new_statuses: Dict[BuildKey, BuildStatus] = {}

        for build in builds:
            previous = self._statuses.get(build.key)
            new_statuses[build.key] = build.status

            if build.is_running and previous != BuildStatus.RUNNING:
                events.started.append(build)
            elif not build.is_running and previous == BuildStatus.RUNNING:
                events.finished.append(build)

        self._statuses = new_statuses
        if not events.is_empty:
            logger.info(
                "Transitions: %d started, %d finished",
                len(events.started), len(events.finished),
            )
        return events
