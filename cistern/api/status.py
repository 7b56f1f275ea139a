"""
GET /status
Poller status for the summary icon: loading progress, freshness, overall
worst status and the last failure message.
"""
from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from cistern.core.output_formatter import displayed_builds, is_stale, last_updated_string
from cistern.core.status_display import STALE_SYMBOL, display_name, status_symbol, worst_status
from cistern.models.timestamps import utcnow

router = APIRouter()


class StatusResponse(BaseModel):
    has_token: bool
    is_loading: bool
    loading_count: int
    loading_label: str
    last_updated: str
    overall_status: str
    overall_label: str
    symbol: str
    has_running_builds: bool
    is_stale: bool
    build_count: int
    error: Optional[str] = None
    cycles_completed: int
    cycles_failed: int


@router.get("/status", response_model=StatusResponse)
async def get_status(request: Request):
    poller = request.app.state.poller
    state = poller.state
    now = utcnow()

    visible = displayed_builds(state["builds"])
    overall = worst_status(b.status for b in visible)
    has_running = any(b.is_running for b in visible)
    stale = is_stale(visible, now)

    count = state["loading_count"]
    return StatusResponse(
        has_token=poller.token_store.has_token(),
        is_loading=state["is_loading"],
        loading_count=count,
        loading_label=f"Loading... ({count})" if count > 0 else "Loading...",
        last_updated=last_updated_string(state["last_updated"], now),
        overall_status=overall.value,
        overall_label=display_name(overall),
        symbol=STALE_SYMBOL if stale else status_symbol(overall),
        has_running_builds=has_running,
        is_stale=stale,
        build_count=len(state["builds"]),
        error=state["error"],
        cycles_completed=state["cycles_completed"],
        cycles_failed=state["cycles_failed"],
    )
