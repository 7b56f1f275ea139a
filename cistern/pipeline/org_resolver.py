"""
Organization Resolver
Decides which organization slugs a poll cycle queries.
"""
import logging
from typing import List, Optional

from cistern.services.circleci_client import CircleCIClient

logger = logging.getLogger(__name__)


async def resolve_organizations(client: CircleCIClient, organization_filter: Optional[str]) -> List[str]:
    """
    Return the org slugs to poll.

    A configured filter is used as-is with no network call. Otherwise the
    user's collaborations are fetched once; any error propagates and fails
    the cycle.
    """
    if organization_filter:
        return [organization_filter]

    organizations = await client.fetch_collaborations()
    slugs = [org.slug for org in organizations]
    logger.info("Resolved %d organizations from collaborations", len(slugs))
    return slugs
