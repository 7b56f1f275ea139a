"""
Constants
Centralised storage for wire-level values, display limits and time windows.
"""
from datetime import timedelta

API_BASE_URL = "https://circleci.com/api/v2"
WEB_PIPELINE_URL = "https://app.circleci.com/pipelines/{project_slug}/{number}"

TOKEN_HEADER = "Circle-Token"
UNKNOWN_BRANCH = "unknown"

DEFAULT_POLL_INTERVAL = 10
MIN_POLL_INTERVAL = 1
MAX_POLL_INTERVAL = 3600
REQUEST_TIMEOUT = 30.0

# Pagination stops at the first pipeline older than this
MAX_PIPELINE_AGE = timedelta(days=7)
# Workflows older than this are never turned into builds
WORKFLOW_RECENCY_WINDOW = timedelta(hours=24)
MAX_DISPLAYED_NON_RUNNING = 10
FETCH_CONCURRENCY = 4

# Display-layer limits
MAX_DISPLAYED_BUILDS = 10
MAX_BRANCH_LENGTH = 20
STALE_THRESHOLD = timedelta(minutes=30)
BULLET = "•"
ELLIPSIS = "…"
