"""
Poll State
TypedDict snapshot published by the poller and read by the API.
The poller never mutates a published snapshot; it swaps in a new one.
"""
from datetime import datetime
from typing import List, Optional, TypedDict

from cistern.models.build import BuildView


class PollState(TypedDict):
    # Latest published result
    builds: List[BuildView]
    last_updated: Optional[datetime]

    # In-flight cycle
    is_loading: bool
    loading_count: int          # pipelines whose workflows were fetched so far

    # Failure signal of the last cycle (user-facing message), None on success
    error: Optional[str]

    # Telemetry
    cycles_completed: int
    cycles_failed: int
    cycles_superseded: int


def initial_state() -> PollState:
    return PollState(
        builds=[],
        last_updated=None,
        is_loading=False,
        loading_count=0,
        error=None,
        cycles_completed=0,
        cycles_failed=0,
        cycles_superseded=0,
    )
