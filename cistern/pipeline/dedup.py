"""
Pipeline Deduplicator
=====================
Collapses the pipelines of every organization to the newest one per
(project_slug, branch).

The output is sorted newest first. The workflow aggregator's early-stop
rule depends on that order.
"""
from typing import Dict, Iterable, List, Tuple

from cistern.models.pipeline import Pipeline

PipelineKey = Tuple[str, str]


def latest_per_branch(pipelines: Iterable[Pipeline]) -> List[Pipeline]:
    latest: Dict[PipelineKey, Pipeline] = {}
    for pipeline in pipelines:
        key = (pipeline.project_slug, pipeline.branch)
        current = latest.get(key)
        if current is None or pipeline.created_at > current.created_at:
            latest[key] = pipeline

    return sorted(latest.values(), key=lambda p: p.created_at, reverse=True)
