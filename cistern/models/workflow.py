"""
Workflow Model
Pydantic models for GET /pipeline/{id}/workflow responses.

A workflow with no stopped_at is still running; its duration keeps growing.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from cistern.models.status import BuildStatus, classify_status
from cistern.models.timestamps import parse_timestamp, utcnow


class Workflow(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    status: BuildStatus
    created_at: datetime
    stopped_at: Optional[datetime] = None
    pipeline_id: str
    pipeline_number: Optional[int] = None

    @field_validator("status", mode="before")
    @classmethod
    def decode_status(cls, v):
        return classify_status(v)

    @field_validator("created_at", "stopped_at", mode="before")
    @classmethod
    def decode_timestamps(cls, v):
        if v is None:
            return None
        return parse_timestamp(v)

    def duration(self, now: Optional[datetime] = None) -> float:
        """Seconds from creation to stop (or to ``now`` while running)."""
        end = self.stopped_at or now or utcnow()
        return (end - self.created_at).total_seconds()


class WorkflowPage(BaseModel):
    items: List[Workflow] = []
    next_page_token: Optional[str] = None
