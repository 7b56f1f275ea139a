"""
Workflow Aggregator
===================
Turns the deduplicated, newest-first pipeline list into builds.

For each pipeline, in order:
    1. Early stop — once ``max_non_running`` non-running builds are held and
       the pipeline is older than the workflow recency window, stop. Older
       pipelines could only add more non-running builds (running builds on
       pipelines that old are rare, and missing them is an accepted trade-off).
    2. Fetch the pipeline's workflows. A failed fetch is logged and skipped.
    3. For every workflow inside the recency window, the first occurrence of
       (project_slug, branch, workflow_name) wins. Running builds are always
       kept; other builds are kept only while fewer than ``max_non_running``
       are held. Overflow is dropped, never swapped in.

Workflow fetches are sequential so the early-stop rule is exact.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence, Set

from cistern.core.errors import CircleCIError
from cistern.models.build import BuildKey, BuildView
from cistern.models.pipeline import Pipeline
from cistern.models.timestamps import utcnow
from cistern.services.circleci_client import CircleCIClient

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


@dataclass
class AggregatedBuilds:
    """Builds collected from one cycle, still unsorted."""
    running: List[BuildView] = field(default_factory=list)
    other: List[BuildView] = field(default_factory=list)
    fetched_count: int = 0
    failed_pipelines: List[str] = field(default_factory=list)


async def aggregate_workflows(
    client: CircleCIClient,
    pipelines: Sequence[Pipeline],
    workflow_recency_window: timedelta,
    max_non_running: int,
    on_progress: Optional[ProgressCallback] = None,
    now: Optional[datetime] = None,
) -> AggregatedBuilds:
    cutoff = (now or utcnow()) - workflow_recency_window
    result = AggregatedBuilds()
    seen: Set[BuildKey] = set()

    for pipeline in pipelines:
        if len(result.other) >= max_non_running and pipeline.created_at < cutoff:
            logger.debug(
                "Stopping at pipeline %s (%s): non-running cap reached and pipeline is old",
                pipeline.id, pipeline.created_at.isoformat(),
            )
            break

        try:
            workflows = await client.fetch_workflows(pipeline.id)
        except CircleCIError as e:
            logger.warning("Failed to fetch workflows for pipeline %s: %s", pipeline.id, e)
            result.failed_pipelines.append(pipeline.id)
            continue

        result.fetched_count += 1
        if on_progress is not None:
            on_progress(result.fetched_count)

        for workflow in workflows:
            if workflow.created_at <= cutoff:
                continue

            key = (pipeline.project_slug, pipeline.branch, workflow.name)
            if key in seen:
                continue
            seen.add(key)

            build = BuildView.from_workflow(workflow, pipeline)
            if build.is_running:
                result.running.append(build)
            elif len(result.other) < max_non_running:
                result.other.append(build)

    logger.info(
        "Aggregated %d running and %d other builds from %d pipelines (%d failed)",
        len(result.running), len(result.other), result.fetched_count, len(result.failed_pipelines),
    )
    return result
