"""
Shared builders for CircleCI payloads and a scripted in-memory client.
"""
from datetime import datetime, timedelta, timezone

import httpx

from cistern.core.errors import CircleCIError
from cistern.models.organization import Organization
from cistern.models.pipeline import Pipeline
from cistern.models.workflow import Workflow
from cistern.services.circleci_client import CircleCIClient
from cistern.services.token_store import TokenStore

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    """CircleCI style timestamp with milliseconds."""
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def pipeline_json(pid, project_slug="gh/acme/web", branch="main", created_at=NOW, number=1):
    data = {
        "id": pid,
        "project_slug": project_slug,
        "number": number,
        "created_at": iso(created_at),
        "trigger": {"type": "webhook", "actor": {"login": "dev", "avatar_url": None}},
    }
    if branch is not None:
        data["vcs"] = {"branch": branch, "revision": "abc123"}
    return data


def workflow_json(wid, name="build-test", status="success", created_at=NOW, stopped_at=None,
                  pipeline_id="p1", pipeline_number=1):
    return {
        "id": wid,
        "name": name,
        "status": status,
        "created_at": iso(created_at),
        "stopped_at": iso(stopped_at) if stopped_at else None,
        "pipeline_id": pipeline_id,
        "pipeline_number": pipeline_number,
    }


def make_pipeline(pid, **kwargs) -> Pipeline:
    return Pipeline.model_validate(pipeline_json(pid, **kwargs))


def make_workflow(wid, **kwargs) -> Workflow:
    return Workflow.model_validate(workflow_json(wid, **kwargs))


def mock_client(handler, token="test-token") -> CircleCIClient:
    """CircleCIClient whose HTTP layer is an httpx.MockTransport."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CircleCIClient(TokenStore(token), base_url="https://circleci.test/api/v2", http_client=http_client)


class FakeCircleCI:
    """
    Scripted stand-in for CircleCIClient.

    ``pipelines`` maps org slug → list of Pipeline (or an exception to raise).
    ``workflows`` maps pipeline id → list of Workflow (or an exception).
    """

    def __init__(self, orgs=None, pipelines=None, workflows=None):
        self.orgs = orgs
        self.pipelines = pipelines or {}
        self.workflows = workflows or {}
        self.collaboration_calls = 0
        self.pipeline_calls = []
        self.workflow_calls = []

    async def fetch_collaborations(self):
        self.collaboration_calls += 1
        if isinstance(self.orgs, CircleCIError):
            raise self.orgs
        return [Organization(name=slug.split("/")[-1], vcs_type="github", slug=slug) for slug in self.orgs or []]

    async def fetch_pipelines(self, org_slug, max_age, now=None):
        self.pipeline_calls.append(org_slug)
        result = self.pipelines.get(org_slug, [])
        if isinstance(result, Exception):
            raise result
        return list(result)

    async def fetch_workflows(self, pipeline_id):
        self.workflow_calls.append(pipeline_id)
        result = self.workflows.get(pipeline_id, [])
        if isinstance(result, Exception):
            raise result
        return list(result)

    async def aclose(self):
        pass


def hours(n) -> timedelta:
    return timedelta(hours=n)
