"""
CircleCI Errors
===============
Failure taxonomy for everything that talks to the CircleCI API.

Propagation policy:
    - Organization-scoped failures (one org's pipeline listing) and
      pipeline-scoped failures (one pipeline's workflow listing) are caught
      at their loop level, logged, and skipped.
    - Organization resolution failures and anything raised by the cycle
      orchestration itself fail the whole cycle.
    - Nothing is retried. The next scheduled poll is the only retry.

Every error carries a ``user_message`` for the settings / status surfaces.
"""


class CircleCIError(Exception):
    """Base class for all CircleCI access failures."""

    user_message = "Unexpected error talking to CircleCI"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.user_message)


class NoCredentialError(CircleCIError):
    user_message = "No API token configured. Please add your CircleCI token in Settings."


class InvalidEndpointError(CircleCIError):
    user_message = "Invalid API URL"


class InvalidResponseError(CircleCIError):
    user_message = "Invalid response from CircleCI"


class UnauthorizedError(CircleCIError):
    user_message = "Invalid API token. Please check your token in Settings."


class RateLimitedError(CircleCIError):
    user_message = "Rate limited by CircleCI. Please wait a moment."


class NetworkError(CircleCIError):
    user_message = "Could not reach CircleCI. Check your network connection."


class HttpStatusError(CircleCIError):
    """Any non-2xx status that is not 401 or 429."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"HTTP error: {status_code}")

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return f"HTTP error: {self.status_code}"
