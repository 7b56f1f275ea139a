"""
Token Store
===========
Holds the CircleCI personal API token.

The store is a plain get / set / delete string secret. It lives in process
memory and is seeded from CIRCLECI_TOKEN at startup; nothing is written to
disk. Blank or whitespace-only tokens are treated as "no token".
"""
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class TokenStore:

    def __init__(self, token: Optional[str] = None) -> None:
        self._token: Optional[str] = None
        if token:
            self.set_token(token)

    def get_token(self) -> Optional[str]:
        return self._token

    def has_token(self) -> bool:
        return self._token is not None

    def set_token(self, token: str) -> bool:
        """Store ``token``. Returns False (and stores nothing) for blank input."""
        cleaned = (token or "").strip()
        if not cleaned:
            logger.warning("Refusing to store an empty API token")
            return False
        self._token = cleaned
        logger.info("API token updated")
        return True

    def delete_token(self) -> None:
        self._token = None
        logger.info("API token removed")
