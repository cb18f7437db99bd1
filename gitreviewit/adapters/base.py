"""Abstract review provider and the typed API error taxonomy."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from gitreviewit.models import EnrichedMetadataFields, PullRequest, Team


class APIError(Exception):
    """Raised when a provider API call fails."""

    message = "An unexpected error occurred."
    recovery_suggestion: str | None = None

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class Unauthorized(APIError):
    message = "Your session has expired or your token is invalid. Please sign in again."
    recovery_suggestion = "Update the GitHub token (GITHUB_TOKEN or github.token in config)."


class RateLimited(APIError):
    """Rate limit exceeded; ``reset_at`` when GitHub reported it."""

    recovery_suggestion = "Wait until the reset time or check your token permissions."

    def __init__(self, reset_at: datetime | None = None, message: str | None = None) -> None:
        self.reset_at = reset_at
        if message is None:
            if reset_at is not None:
                message = f"GitHub API rate limit reached. Quota resets at {reset_at.isoformat()}."
            else:
                message = "GitHub API rate limit reached. Please wait a few minutes before trying again."
        super().__init__(message)


class NotFound(APIError):
    message = "The requested resource could not be found. Check your permissions and try again."


class ServerError(APIError):
    recovery_suggestion = "Check GitHub Status (githubstatus.com) for updates."

    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(message or f"GitHub is experiencing technical difficulties ({status_code}).")


class NetworkUnreachable(APIError):
    message = "Could not reach GitHub. Please check your internet connection."
    recovery_suggestion = "Check your network connection and the configured API URL."


class InvalidResponse(APIError):
    message = "Received an invalid response from GitHub. Please try again later."


class HTTPStatusError(APIError):
    """Any other 4xx, e.g. a 403 caused by missing permissions."""

    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        detail = f": {message}" if message else ""
        super().__init__(f"GitHub returned an error ({status_code}){detail}")


class UnknownAPIError(APIError):
    """Failure that fits no other category."""


class ReviewProvider(ABC):
    """Source of pull requests, their detail metadata, and the user's teams.

    Credentials are bound at construction; every call either returns a value
    or raises an ``APIError``. No retries happen at this level.
    """

    @abstractmethod
    async def list_items(self) -> List[PullRequest]:
        """Pull requests awaiting the authenticated user's attention."""
        ...

    @abstractmethod
    async def fetch_enriched_metadata(self, owner: str, repo: str, number: int) -> EnrichedMetadataFields:
        """Change stats, reviewers, check runs and mergeable flag of one PR."""
        ...

    @abstractmethod
    async def resolve_teams(self) -> List[Team]:
        """Teams of the authenticated user with their repositories."""
        ...
