"""
Build Notifier
==============
Delivers build start/finish transitions.

Delivery goes through the ``cistern.notifications`` logger; anything that
wants desktop popups, chat messages or webhooks attaches a handler there.
Each notification is also kept in a short in-memory history for the API.
"""
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, List, Optional

from cistern.core.output_formatter import format_notification_body
from cistern.models.build import BuildView, TransitionEvents
from cistern.models.status import BuildStatus
from cistern.models.timestamps import utcnow

logger = logging.getLogger("cistern.notifications")

_HISTORY_LIMIT = 50


@dataclass(frozen=True)
class Notification:
    identifier: str
    title: str
    body: str
    url: str
    sent_at: datetime


def finished_title(status: BuildStatus) -> str:
    if status == BuildStatus.SUCCESS:
        return "Build Succeeded"
    if status in (BuildStatus.FAILED, BuildStatus.ERROR, BuildStatus.FAILING):
        return "Build Failed"
    if status == BuildStatus.CANCELED:
        return "Build Canceled"
    return "Build Finished"


def _identifier(build: BuildView, suffix: str) -> str:
    return f"build-{build.project_slug}-{build.branch}-{build.workflow_name}-{suffix}"


class BuildNotifier:

    def __init__(self, history_limit: int = _HISTORY_LIMIT) -> None:
        self._history: Deque[Notification] = deque(maxlen=history_limit)

    def build_started(self, build: BuildView, now: Optional[datetime] = None) -> Notification:
        return self._send(Notification(
            identifier=_identifier(build, "started"),
            title="Build Started",
            body=format_notification_body(build),
            url=build.web_url,
            sent_at=now or utcnow(),
        ))

    def build_finished(self, build: BuildView, now: Optional[datetime] = None) -> Notification:
        now = now or utcnow()
        return self._send(Notification(
            identifier=_identifier(build, "finished"),
            title=finished_title(build.status),
            body=format_notification_body(build, now, with_duration=True),
            url=build.web_url,
            sent_at=now,
        ))

    def notify(self, events: TransitionEvents, now: Optional[datetime] = None) -> List[Notification]:
        sent = [self.build_started(b, now) for b in events.started]
        sent += [self.build_finished(b, now) for b in events.finished]
        return sent

    def history(self) -> List[Notification]:
        return list(self._history)

    def _send(self, notification: Notification) -> Notification:
        logger.info("%s: %s %s", notification.title, notification.body, notification.url)
        self._history.append(notification)
        return notification
