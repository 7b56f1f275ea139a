"""
Pipeline Model
==============
Pydantic models for GET /pipeline responses.

A pipeline is one triggered run of a project's configuration. It is the
only unit the API lists chronologically (newest first).

Derived fields:
    branch        — vcs.branch, or "unknown" when the payload has no VCS info
    project_name  — "<org>/<repo>" taken from "<vcs>/<org>/<repo>"
    web_url       — https://app.circleci.com/pipelines/{project_slug}/{number}
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from cistern.core.constants import UNKNOWN_BRANCH, WEB_PIPELINE_URL
from cistern.models.timestamps import parse_timestamp


class PipelineActor(BaseModel):
    model_config = ConfigDict(frozen=True)

    login: str
    avatar_url: Optional[str] = None


class PipelineTrigger(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    actor: Optional[PipelineActor] = None


class PipelineVCS(BaseModel):
    model_config = ConfigDict(frozen=True)

    branch: Optional[str] = None
    revision: Optional[str] = None


class Pipeline(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    project_slug: str
    number: int
    created_at: datetime
    trigger: Optional[PipelineTrigger] = None
    vcs: Optional[PipelineVCS] = None

    @field_validator("created_at", mode="before")
    @classmethod
    def decode_created_at(cls, v):
        return parse_timestamp(v)

    @property
    def branch(self) -> str:
        if self.vcs and self.vcs.branch:
            return self.vcs.branch
        return UNKNOWN_BRANCH

    @property
    def project_name(self) -> str:
        parts = self.project_slug.split("/")
        if len(parts) >= 3:
            return f"{parts[1]}/{parts[2]}"
        return self.project_slug

    @property
    def web_url(self) -> str:
        return WEB_PIPELINE_URL.format(project_slug=self.project_slug, number=self.number)


class PipelinePage(BaseModel):
    items: List[Pipeline] = []
    next_page_token: Optional[str] = None
