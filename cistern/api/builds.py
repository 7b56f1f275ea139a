"""
GET /builds
Returns the builds of the last successful cycle, ready for display.

GET /notifications
Recent build started / finished notifications.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from cistern.core.output_formatter import displayed_builds, format_build_title, format_duration
from cistern.core.status_display import display_name, status_symbol
from cistern.models.build import BuildView
from cistern.models.timestamps import utcnow

router = APIRouter()


class BuildItem(BaseModel):
    title: str
    project_slug: str
    project_name: str
    branch: str
    workflow_name: str
    pipeline_number: int
    status: str
    status_label: str
    symbol: str
    duration: str
    web_url: str
    started_at: Optional[datetime] = None
    stopped_at: Optional[datetime] = None


class NotificationItem(BaseModel):
    title: str
    body: str
    url: str
    sent_at: datetime


def to_item(build: BuildView, now: datetime) -> BuildItem:
    return BuildItem(
        title=format_build_title(build, now),
        project_slug=build.project_slug,
        project_name=build.project_name,
        branch=build.branch,
        workflow_name=build.workflow_name,
        pipeline_number=build.pipeline_number,
        status=build.status.value,
        status_label=display_name(build.status),
        symbol=status_symbol(build.status),
        duration=format_duration(build.duration(now)),
        web_url=build.web_url,
        started_at=build.started_at,
        stopped_at=build.stopped_at,
    )


@router.get("/builds", response_model=List[BuildItem])
async def get_builds(request: Request, include_all: bool = Query(False, alias="all")):
    """Displayed builds; ``?all=true`` returns the full cycle result."""
    builds = request.app.state.poller.state["builds"]
    if not include_all:
        builds = displayed_builds(builds)
    now = utcnow()
    return [to_item(b, now) for b in builds]


@router.get("/notifications", response_model=List[NotificationItem])
async def get_notifications(request: Request):
    return [
        NotificationItem(title=n.title, body=n.body, url=n.url, sent_at=n.sent_at)
        for n in reversed(request.app.state.poller.notifier.history())
    ]
