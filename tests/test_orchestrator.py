"""
Orchestrator Tests
==================
Runs whole poll cycles against a scripted client.
"""
import asyncio
from datetime import timedelta

import pytest

from cistern.core.errors import NetworkError, UnauthorizedError
from cistern.models.status import BuildStatus
from cistern.pipeline.orchestrator import CycleConfig, fetch_all_pipelines, fetch_latest_builds
from cistern.services.settings_store import PollSettings

from helpers import NOW, FakeCircleCI, hours, make_pipeline, make_workflow


def test_end_to_end_latest_pipeline_per_branch():
    """Two pipelines on one branch: only the newest one's workflows show."""
    client = FakeCircleCI(
        orgs=["gh/acme"],
        pipelines={"gh/acme": [
            make_pipeline("new", project_slug="gh/acme/web", branch="main", created_at=NOW, number=12),
            make_pipeline("old", project_slug="gh/acme/web", branch="main", created_at=NOW - hours(2), number=11),
        ]},
        workflows={
            "new": [make_workflow("w1", name="build-test", status="running",
                                  created_at=NOW - timedelta(minutes=1), pipeline_id="new")],
            "old": [make_workflow("w0", name="build-test", status="failed",
                                  created_at=NOW - hours(2), stopped_at=NOW - hours(1), pipeline_id="old")],
        },
    )

    builds = asyncio.run(fetch_latest_builds(client, CycleConfig(), now=NOW))

    assert client.workflow_calls == ["new"]
    assert len(builds) == 1
    build = builds[0]
    assert build.status == BuildStatus.RUNNING
    assert build.pipeline_number == 12
    assert build.started_at == NOW - timedelta(minutes=1)
    assert build.completed_duration is None
    assert build.web_url == "https://app.circleci.com/pipelines/gh/acme/web/12"


def test_organization_filter_skips_collaborations():
    client = FakeCircleCI(orgs=["gh/other"], pipelines={"gh/acme": []})

    builds = asyncio.run(fetch_latest_builds(client, CycleConfig(organization_filter="gh/acme"), now=NOW))

    assert builds == []
    assert client.collaboration_calls == 0
    assert client.pipeline_calls == ["gh/acme"]


def test_all_collaborations_are_polled_without_filter():
    client = FakeCircleCI(orgs=["gh/acme", "gh/beta"])

    asyncio.run(fetch_latest_builds(client, CycleConfig(), now=NOW))

    assert client.collaboration_calls == 1
    assert sorted(client.pipeline_calls) == ["gh/acme", "gh/beta"]


def test_failing_organization_is_isolated():
    client = FakeCircleCI(
        orgs=["gh/acme", "gh/broken"],
        pipelines={
            "gh/acme": [make_pipeline("p1", project_slug="gh/acme/web")],
            "gh/broken": NetworkError(),
        },
        workflows={"p1": [make_workflow("w1", stopped_at=NOW, pipeline_id="p1")]},
    )

    builds = asyncio.run(fetch_latest_builds(client, CycleConfig(), now=NOW))

    assert [b.project_slug for b in builds] == ["gh/acme/web"]


def test_resolution_failure_fails_the_cycle():
    client = FakeCircleCI(orgs=UnauthorizedError())

    with pytest.raises(UnauthorizedError):
        asyncio.run(fetch_latest_builds(client, CycleConfig(), now=NOW))
    assert client.pipeline_calls == []


def test_progress_is_forwarded():
    client = FakeCircleCI(
        orgs=["gh/acme"],
        pipelines={"gh/acme": [
            make_pipeline("p1", branch="a"),
            make_pipeline("p2", branch="b", created_at=NOW - hours(1)),
        ]},
    )
    progress = []

    asyncio.run(fetch_latest_builds(client, CycleConfig(), on_progress=progress.append, now=NOW))

    assert progress == [1, 2]


def test_fetch_all_pipelines_concatenates_orgs():
    client = FakeCircleCI(pipelines={
        "gh/a": [make_pipeline("a1"), make_pipeline("a2")],
        "gh/b": [make_pipeline("b1")],
    })

    pipelines = asyncio.run(fetch_all_pipelines(client, ["gh/a", "gh/b"], timedelta(days=7), 1, NOW))

    assert sorted(p.id for p in pipelines) == ["a1", "a2", "b1"]


def test_cycle_config_from_settings():
    cfg = CycleConfig.from_settings(PollSettings(organization="gh/acme", poll_interval=30))
    assert cfg.organization_filter == "gh/acme"
    assert cfg.max_displayed_non_running == 10
    assert cfg.workflow_recency_window == timedelta(hours=24)
