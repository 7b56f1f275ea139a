"""
CircleCI Client
===============
Asynchronous wrapper around the CircleCI v2 REST API.

Wire contract:
    GET /me/collaborations                                   → [Organization]
    GET /pipeline?org-slug=<slug>&mine=true[&page-token=<c>] → {items, next_page_token}
    GET /pipeline/{id}/workflow                              → {items, next_page_token}
    GET /me                                                  → connectivity probe

Every request carries ``Circle-Token: <token>`` and ``Accept: application/json``
and is bounded by a fixed timeout (30s by default).

Response Classification:
    2xx  → body returned to the caller
    401  → UnauthorizedError
    429  → RateLimitedError
    else → HttpStatusError(code)

Nothing is retried here. A failed call surfaces immediately and the next
poll cycle is the retry.
"""
import logging
import time
from datetime import datetime, timedelta
from typing import List, Optional
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from cistern.core.config import CIRCLECI_BASE_URL, REQUEST_TIMEOUT
from cistern.core.constants import TOKEN_HEADER
from cistern.core.errors import (
    HttpStatusError,
    InvalidEndpointError,
    InvalidResponseError,
    NetworkError,
    NoCredentialError,
    RateLimitedError,
    UnauthorizedError,
)
from cistern.models.organization import Organization
from cistern.models.pipeline import Pipeline, PipelinePage
from cistern.models.timestamps import utcnow
from cistern.models.workflow import Workflow, WorkflowPage
from cistern.services.token_store import TokenStore

logger = logging.getLogger(__name__)

_ORGANIZATIONS = TypeAdapter(List[Organization])
_PIPELINE_PAGE = TypeAdapter(PipelinePage)
_WORKFLOW_PAGE = TypeAdapter(WorkflowPage)


class CircleCIClient:
    """
    Authenticated CircleCI API client.

    The token is read from the token store on every request so a token
    change takes effect on the next call without rebuilding the client.
    """

    def __init__(
        self,
        token_store: TokenStore,
        base_url: str = CIRCLECI_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.token_store = token_store
        self.base_url = base_url.rstrip("/")
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "CircleCIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _headers(self, token: Optional[str] = None) -> dict[str, str]:
        token = token or self.token_store.get_token()
        if not token:
            raise NoCredentialError()
        return {
            TOKEN_HEADER: token,
            "Accept": "application/json",
        }

    async def _send(self, endpoint: str, token: Optional[str] = None) -> httpx.Response:
        """Perform ``GET <base_url><endpoint>`` and return the raw response."""
        headers = self._headers(token)
        url = f"{self.base_url}{endpoint}"
        start_time = time.monotonic()

        try:
            response = await self._http.get(url, headers=headers)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise InvalidEndpointError(f"Invalid API URL {url}: {e}") from e
        except (httpx.RemoteProtocolError, httpx.DecodingError) as e:
            raise InvalidResponseError(f"Malformed response from {endpoint}: {e}") from e
        except httpx.RequestError as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("GET %s -> %s in %.1fms", endpoint, type(e).__name__, elapsed_ms)
            raise NetworkError(f"GET {endpoint} failed: {e}") from e

        elapsed_ms = (time.monotonic() - start_time) * 1000
        logger.debug("GET %s -> %d in %.1fms", endpoint, response.status_code, elapsed_ms)
        return response

    async def _get(self, endpoint: str) -> bytes:
        """GET ``endpoint`` and classify the status code."""
        response = await self._send(endpoint)
        status_code = response.status_code

        if 200 <= status_code < 300:
            return response.content
        if status_code == 401:
            raise UnauthorizedError(f"GET {endpoint} -> 401")
        if status_code == 429:
            raise RateLimitedError(f"GET {endpoint} -> 429")
        raise HttpStatusError(status_code)

    @staticmethod
    def _decode(adapter, content: bytes, endpoint: str):
        try:
            return adapter.validate_json(content)
        except ValidationError as e:
            logger.error("Could not decode response of %s: %s", endpoint, e)
            raise InvalidResponseError(f"Could not decode response of {endpoint}") from e

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------
    async def fetch_collaborations(self) -> List[Organization]:
        endpoint = "/me/collaborations"
        content = await self._get(endpoint)
        return self._decode(_ORGANIZATIONS, content, endpoint)

    async def fetch_pipelines(
        self,
        org_slug: str,
        max_age: timedelta,
        now: Optional[datetime] = None,
    ) -> List[Pipeline]:
        """
        Page backwards through the pipelines I triggered in ``org_slug``.

        The endpoint lists pipelines newest first, so the first pipeline older
        than ``now - max_age`` ends the walk: it is dropped, the pipelines
        gathered so far are returned, and no further page is requested.

        Parameters
        ----------
        org_slug : str
            Organization slug such as "gh/acme".
        max_age : timedelta
            Age window for pipelines.
        now : datetime, optional
            Reference instant (defaults to the current UTC time).

        Returns
        -------
        list[Pipeline]
            Pipelines inside the window, newest first.
        """
        cutoff = (now or utcnow()) - max_age
        base_endpoint = f"/pipeline?org-slug={quote(org_slug, safe='/')}&mine=true"
        pipelines: List[Pipeline] = []
        page_token: Optional[str] = None
        page = 1

        while True:
            endpoint = base_endpoint
            if page_token:
                endpoint += f"&page-token={quote(page_token, safe='')}"

            content = await self._get(endpoint)
            result = self._decode(_PIPELINE_PAGE, content, endpoint)

            for pipeline in result.items:
                if pipeline.created_at < cutoff:
                    logger.info(
                        "Fetched %d pipelines for %s across %d pages (reached age cutoff)",
                        len(pipelines), org_slug, page,
                    )
                    return pipelines
                pipelines.append(pipeline)

            page_token = result.next_page_token
            if not page_token:
                logger.info(
                    "Fetched %d pipelines for %s across %d pages",
                    len(pipelines), org_slug, page,
                )
                return pipelines
            page += 1

    async def fetch_workflows(self, pipeline_id: str) -> List[Workflow]:
        """Workflows of one pipeline (first page only; pipelines carry few workflows)."""
        endpoint = f"/pipeline/{quote(pipeline_id, safe='')}/workflow"
        content = await self._get(endpoint)
        return self._decode(_WORKFLOW_PAGE, content, endpoint).items

    async def test_connection(self, token: Optional[str] = None) -> bool:
        """
        True when ``GET /me`` answers 200.

        ``token`` is probed instead of the stored one when given; the token
        store is left untouched.
        """
        response = await self._send("/me", token)
        return response.status_code == 200
