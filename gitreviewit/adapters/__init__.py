"""Review providers (base and GitHub implementation)."""

from gitreviewit.adapters.base import (
    APIError,
    HTTPStatusError,
    InvalidResponse,
    NetworkUnreachable,
    NotFound,
    RateLimited,
    ReviewProvider,
    ServerError,
    Unauthorized,
    UnknownAPIError,
)
from gitreviewit.adapters.github import GitHubAdapter

__all__ = [
    "APIError",
    "GitHubAdapter",
    "HTTPStatusError",
    "InvalidResponse",
    "NetworkUnreachable",
    "NotFound",
    "RateLimited",
    "ReviewProvider",
    "ServerError",
    "Unauthorized",
    "UnknownAPIError",
]
