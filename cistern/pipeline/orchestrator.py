"""
Cycle Orchestrator
==================
Runs one complete poll cycle:

    resolve orgs → fetch pipelines per org → newest per (project, branch)
    → workflows → ordered build list

Failure Isolation:
    - A failed pipeline listing for one organization is logged and skipped.
    - A failed workflow listing for one pipeline is logged and skipped.
    - A failed organization resolution propagates: the cycle fails.

Per-organization listings run concurrently, bounded by
``CycleConfig.fetch_concurrency``.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from cistern.core import config
from cistern.core.errors import CircleCIError
from cistern.models.build import BuildView
from cistern.models.pipeline import Pipeline
from cistern.models.timestamps import utcnow
from cistern.pipeline.aggregator import ProgressCallback, aggregate_workflows
from cistern.pipeline.assembler import assemble
from cistern.pipeline.dedup import latest_per_branch
from cistern.pipeline.org_resolver import resolve_organizations
from cistern.services.circleci_client import CircleCIClient
from cistern.services.settings_store import PollSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleConfig:
    """Everything one cycle needs besides the client, passed explicitly."""
    organization_filter: Optional[str] = None
    max_pipeline_age: timedelta = config.MAX_PIPELINE_AGE
    workflow_recency_window: timedelta = config.WORKFLOW_RECENCY_WINDOW
    max_displayed_non_running: int = config.MAX_DISPLAYED_NON_RUNNING
    fetch_concurrency: int = config.FETCH_CONCURRENCY

    @classmethod
    def from_settings(cls, settings: PollSettings) -> "CycleConfig":
        return cls(organization_filter=settings.organization)


async def fetch_all_pipelines(
    client: CircleCIClient,
    org_slugs: Sequence[str],
    max_age: timedelta,
    concurrency: int,
    now: datetime,
) -> List[Pipeline]:
    """Fetch pipelines for every org; a failing org contributes nothing."""
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def fetch_one(org_slug: str) -> List[Pipeline]:
        async with semaphore:
            try:
                return await client.fetch_pipelines(org_slug, max_age, now=now)
            except CircleCIError as e:
                logger.warning("Failed to fetch pipelines for %s: %s", org_slug, e)
                return []

    results = await asyncio.gather(*(fetch_one(slug) for slug in org_slugs))

    pipelines: List[Pipeline] = []
    for org_pipelines in results:
        pipelines.extend(org_pipelines)
    return pipelines


async def fetch_latest_builds(
    client: CircleCIClient,
    cycle_config: CycleConfig,
    on_progress: Optional[ProgressCallback] = None,
    now: Optional[datetime] = None,
) -> List[BuildView]:
    """
    Run one poll cycle and return the display-ordered builds.

    Parameters
    ----------
    client : CircleCIClient
        Authenticated API client.
    cycle_config : CycleConfig
        Organization filter, time windows and caps for this cycle.
    on_progress : callable, optional
        Called with the number of pipelines whose workflows were fetched.
    now : datetime, optional
        Reference instant for every age comparison in the cycle.

    Returns
    -------
    list[BuildView]
        Running builds first, then at most ``max_displayed_non_running``
        others, each group sorted by (project_name, branch, workflow_name).

    Raises
    ------
    CircleCIError
        If the organizations to poll cannot be resolved.
    """
    now = now or utcnow()

    org_slugs = await resolve_organizations(client, cycle_config.organization_filter)
    pipelines = await fetch_all_pipelines(
        client,
        org_slugs,
        cycle_config.max_pipeline_age,
        cycle_config.fetch_concurrency,
        now,
    )
    latest = latest_per_branch(pipelines)
    logger.info(
        "Fetched %d pipelines across %d organizations, %d after dedup",
        len(pipelines), len(org_slugs), len(latest),
    )

    aggregated = await aggregate_workflows(
        client,
        latest,
        cycle_config.workflow_recency_window,
        cycle_config.max_displayed_non_running,
        on_progress=on_progress,
        now=now,
    )
    return assemble(aggregated.running, aggregated.other)
