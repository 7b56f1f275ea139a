"""
Connection Check
================
Tests a candidate API token against GET /me.

The candidate is sent explicitly with the probe. The token store, which the
background poller reads on every request, only receives the candidate once
the probe has succeeded.
"""
import logging
from dataclasses import dataclass

from cistern.core.errors import CircleCIError
from cistern.services.circleci_client import CircleCIClient
from cistern.services.token_store import TokenStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionResult:
    success: bool
    message: str


async def verify_token(client: CircleCIClient, token_store: TokenStore, candidate: str) -> ConnectionResult:
    candidate = (candidate or "").strip()
    if not candidate:
        return ConnectionResult(success=False, message="Please enter a token")

    try:
        ok = await client.test_connection(token=candidate)
    except CircleCIError as e:
        logger.warning("Connection test failed: %s", e)
        return ConnectionResult(success=False, message=f"Error: {e.user_message}")

    if not ok:
        return ConnectionResult(success=False, message="Connection failed")

    token_store.set_token(candidate)
    logger.info("Connection test succeeded")
    return ConnectionResult(success=True, message="Connection successful!")
