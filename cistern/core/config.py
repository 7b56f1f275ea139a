"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    CIRCLECI_TOKEN             — Personal API token used to seed the token store
    CIRCLECI_ORG               — Organization filter, e.g. gh/acme (default: all orgs)
    POLL_INTERVAL              — Seconds between poll cycles (default: 10, range 1–3600)
    CIRCLECI_BASE_URL          — API root (default: https://circleci.com/api/v2)
    REQUEST_TIMEOUT            — Per-request timeout in seconds (default: 30)
    MAX_PIPELINE_AGE_DAYS      — Pagination age window (default: 7)
    WORKFLOW_RECENCY_HOURS     — Workflow recency window (default: 24)
    MAX_DISPLAYED_NON_RUNNING  — Cap on non-running builds per cycle (default: 10)
    FETCH_CONCURRENCY          — Parallel per-organization pipeline fetches (default: 4)
    LOG_DIR                    — Directory for the daily log file (default: logs)
    CORS_ORIGINS               — Comma-separated browser origins allowed to call the API
                                 (default: this service's own origin on port 8000)

Bounded Staleness:
    The upstream API has no "active builds" query, only a creation-time
    ordered pipeline list. MAX_PIPELINE_AGE_DAYS bounds how far back each
    cycle pages. A brand-new rerun on a pipeline older than the window is
    not discovered; that is accepted, not a bug.
"""
import os
from datetime import timedelta

from dotenv import load_dotenv

from cistern.core import constants

load_dotenv()

CIRCLECI_TOKEN = os.getenv("CIRCLECI_TOKEN")
CIRCLECI_ORG = os.getenv("CIRCLECI_ORG") or None
CIRCLECI_BASE_URL = os.getenv("CIRCLECI_BASE_URL", constants.API_BASE_URL).rstrip("/")

POLL_INTERVAL = min(
    max(float(os.getenv("POLL_INTERVAL", constants.DEFAULT_POLL_INTERVAL)), constants.MIN_POLL_INTERVAL),
    constants.MAX_POLL_INTERVAL,
)
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", constants.REQUEST_TIMEOUT))

MAX_PIPELINE_AGE = timedelta(
    days=float(os.getenv("MAX_PIPELINE_AGE_DAYS", constants.MAX_PIPELINE_AGE.days))
)
WORKFLOW_RECENCY_WINDOW = timedelta(
    hours=float(os.getenv("WORKFLOW_RECENCY_HOURS", constants.WORKFLOW_RECENCY_WINDOW.total_seconds() / 3600))
)
MAX_DISPLAYED_NON_RUNNING = int(os.getenv("MAX_DISPLAYED_NON_RUNNING", constants.MAX_DISPLAYED_NON_RUNNING))
FETCH_CONCURRENCY = int(os.getenv("FETCH_CONCURRENCY", constants.FETCH_CONCURRENCY))

LOG_DIR = os.getenv("LOG_DIR", "logs")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:8000,http://127.0.0.1:8000").split(",")
    if origin.strip()
]
