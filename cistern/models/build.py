"""
Build Model
===========
BuildView is the unit the service displays: one workflow's current status,
keyed by (project_slug, branch, workflow_name).

Fields:
    project_slug        — "<vcs>/<org>/<repo>"
    project_name        — "<org>/<repo>"
    branch              — pipeline branch ("unknown" when absent)
    workflow_name       — workflow name inside the pipeline
    pipeline_number     — pipeline number used in the web URL
    status              — BuildStatus
    web_url             — link to the pipeline on app.circleci.com
    completed_duration  — frozen duration in seconds (finished builds only)
    started_at          — start instant (running builds only)
    stopped_at          — stop instant (finished builds only)

Exactly one of completed_duration / started_at is set. Consumers compute
elapsed time for running builds live from started_at.
"""
from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from cistern.models.pipeline import Pipeline
from cistern.models.status import BuildStatus
from cistern.models.timestamps import utcnow
from cistern.models.workflow import Workflow

BuildKey = Tuple[str, str, str]


class BuildView(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_slug: str
    project_name: str
    branch: str
    workflow_name: str
    pipeline_number: int
    status: BuildStatus
    web_url: str
    completed_duration: Optional[float] = None
    started_at: Optional[datetime] = None
    stopped_at: Optional[datetime] = None

    @property
    def key(self) -> BuildKey:
        return (self.project_slug, self.branch, self.workflow_name)

    @property
    def sort_key(self) -> Tuple[str, str, str]:
        return (self.project_name, self.branch, self.workflow_name)

    @property
    def is_running(self) -> bool:
        return self.status == BuildStatus.RUNNING

    def duration(self, now: Optional[datetime] = None) -> float:
        if self.completed_duration is not None:
            return self.completed_duration
        if self.started_at is not None:
            return ((now or utcnow()) - self.started_at).total_seconds()
        return 0.0

    @classmethod
    def from_workflow(cls, workflow: Workflow, pipeline: Pipeline) -> "BuildView":
        """Classify a workflow of ``pipeline`` into a build."""
        stopped_at = workflow.stopped_at
        if workflow.status == BuildStatus.RUNNING:
            stopped_at = None

        if stopped_at is not None:
            completed_duration = workflow.duration()
            started_at = None
        else:
            completed_duration = None
            started_at = workflow.created_at

        return cls(
            project_slug=pipeline.project_slug,
            project_name=pipeline.project_name,
            branch=pipeline.branch,
            workflow_name=workflow.name,
            pipeline_number=pipeline.number,
            status=workflow.status,
            web_url=pipeline.web_url,
            completed_duration=completed_duration,
            started_at=started_at,
            stopped_at=stopped_at,
        )


class TransitionEvents(BaseModel):
    """Builds that started or finished between two consecutive cycles."""
    started: List[BuildView] = []
    finished: List[BuildView] = []

    @property
    def is_empty(self) -> bool:
        return not self.started and not self.finished
