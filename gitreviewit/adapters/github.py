"""GitHub REST API provider.

Blocking ``requests`` calls run in worker threads (``asyncio.to_thread``) so
the coordinator's event loop only suspends on network I/O.
"""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any, Dict, List, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

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
from gitreviewit.adapters.schemas import (
    CheckRunsResponse,
    ErrorResponse,
    PRDetailsResponse,
    RepositoryResponse,
    ReviewResponse,
    SearchIssuesResponse,
    TeamResponse,
    UserResponse,
    check_run_from_response,
    completed_reviewers_from_reviews,
    pull_request_from_search,
    requested_reviewers_from_details,
    team_from_response,
)
from gitreviewit.models import CheckRun, EnrichedMetadataFields, PullRequest, Team

LOG = logging.getLogger("gitreviewit.adapters.github")

API_VERSION = "2022-11-28"
PER_PAGE = 100

M = TypeVar("M", bound=BaseModel)


def _parse_reset(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromtimestamp(float(value), tz=UTC)
    except (TypeError, ValueError, OverflowError):
        return None


def _error_message(resp: requests.Response) -> str | None:
    try:
        return ErrorResponse.model_validate(resp.json()).message or None
    except (ValueError, ValidationError):
        return None


def error_from_response(resp: requests.Response) -> APIError:
    """Map an HTTP error response to the APIError taxonomy."""
    code = resp.status_code
    if code == 401:
        return Unauthorized()
    if code == 403:
        if resp.headers.get("X-RateLimit-Remaining") == "0":
            return RateLimited(reset_at=_parse_reset(resp.headers.get("X-RateLimit-Reset")))
        return HTTPStatusError(code, _error_message(resp) or "Access forbidden")
    if code == 429:
        return RateLimited(reset_at=_parse_reset(resp.headers.get("X-RateLimit-Reset")))
    if code == 404:
        return NotFound()
    if code == 422:
        return InvalidResponse()
    if 500 <= code <= 599:
        return ServerError(code)
    return HTTPStatusError(code, _error_message(resp))


class GitHubAdapter(ReviewProvider):
    """GitHub API implementation (github.com or GitHub Enterprise)."""

    def __init__(self, token: str, api_url: str = "https://api.github.com", timeout: float = 30) -> None:
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers["Authorization"] = f"Bearer {token}"
        self._session.headers["Accept"] = "application/vnd.github+json"
        self._session.headers["X-GitHub-Api-Version"] = API_VERSION

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._api_url}{path}" if path.startswith("/") else f"{self._api_url}/{path}"

    def _request(self, method: str, path: str, params: Dict[str, Any] | None = None) -> requests.Response:
        url = self._url(path)
        try:
            resp = self._session.request(method, url, params=params, timeout=self._timeout)
        except requests.Timeout as e:
            raise NetworkUnreachable(f"Request to {url} timed out") from e
        except requests.ConnectionError as e:
            raise NetworkUnreachable() from e
        except requests.RequestException as e:
            raise UnknownAPIError(str(e)) from e
        if resp.status_code >= 400:
            raise error_from_response(resp)
        return resp

    def _get(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        resp = self._request("GET", path, params=params)
        try:
            return resp.json()
        except ValueError as e:
            raise InvalidResponse() from e

    def _get_model(self, schema: Type[M], path: str, params: Dict[str, Any] | None = None) -> M:
        data = self._get(path, params=params)
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            raise InvalidResponse(f"Unexpected response from {path}: {e.error_count()} error(s)") from e

    def _get_models(self, schema: Type[M], path: str, params: Dict[str, Any] | None = None) -> List[M]:
        data = self._get(path, params=params)
        if not isinstance(data, list):
            raise InvalidResponse(f"Expected a list from {path}")
        try:
            return [schema.model_validate(d) for d in data]
        except ValidationError as e:
            raise InvalidResponse(f"Unexpected response from {path}: {e.error_count()} error(s)") from e

    # Blocking calls

    def get_user(self) -> UserResponse:
        return self._get_model(UserResponse, "/user")

    def search_pull_requests(self, query: str) -> List[PullRequest]:
        data = self._get_model(SearchIssuesResponse, "/search/issues", params={"q": query, "per_page": PER_PAGE})
        if data.incomplete_results:
            LOG.debug("Search %r timed out on GitHub's side, results may be incomplete", query)
        prs = []
        for item in data.items:
            try:
                pr = pull_request_from_search(item)
            except ValidationError as e:
                LOG.warning("Skipping invalid search result %s: %s", item.html_url, e)
                continue
            if pr is None:
                LOG.warning("Skipping search result with unparseable repository URL %s", item.repository_url)
                continue
            prs.append(pr)
        return prs

    def list_user_teams(self) -> List[TeamResponse]:
        """Teams of the authenticated user, de-duplicated by org/slug."""
        teams = self._get_models(TeamResponse, "/user/teams", params={"per_page": PER_PAGE})
        unique: Dict[str, TeamResponse] = {}
        for team in teams:
            unique.setdefault(f"{team.organization.login}/{team.slug}", team)
        return list(unique.values())

    def list_team_repositories(self, team: TeamResponse) -> List[str]:
        path = team.repositories_url or f"/orgs/{team.organization.login}/teams/{team.slug}/repos"
        repos = self._get_models(RepositoryResponse, path, params={"per_page": PER_PAGE})
        return [r.full_name for r in repos]

    def get_pull_request(self, owner: str, repo: str, number: int) -> PRDetailsResponse:
        return self._get_model(PRDetailsResponse, f"/repos/{owner}/{repo}/pulls/{number}")

    def list_reviews(self, owner: str, repo: str, number: int) -> List[ReviewResponse]:
        return self._get_models(
            ReviewResponse, f"/repos/{owner}/{repo}/pulls/{number}/reviews", params={"per_page": PER_PAGE}
        )

    def list_check_runs(self, owner: str, repo: str, ref: str) -> List[CheckRun]:
        """First page of check runs for ``ref``; later pages are not fetched."""
        data = self._get_model(
            CheckRunsResponse, f"/repos/{owner}/{repo}/commits/{ref}/check-runs", params={"per_page": PER_PAGE}
        )
        if data.total_count > len(data.check_runs):
            LOG.debug(
                "%s/%s@%s has %d check runs, using first %d", owner, repo, ref, data.total_count, len(data.check_runs)
            )
        runs = [check_run_from_response(r) for r in data.check_runs]
        return [r for r in runs if r is not None]

    # ReviewProvider

    async def list_items(self) -> List[PullRequest]:
        user = await asyncio.to_thread(self.get_user)
        login = user.login

        try:
            teams = await asyncio.to_thread(self.list_user_teams)
        except APIError as e:
            LOG.warning("Could not list teams, skipping team review requests: %s", e)
            teams = []

        base = f"type:pr state:open -author:{login}"
        queries = [
            f"{base} review-requested:{login}",
            f"{base} assignee:{login}",
            f"{base} reviewed-by:{login}",
        ]
        for team in teams:
            queries.append(f"{base} team-review-requested:{team.organization.login}/{team.slug}")

        results = await asyncio.gather(*(asyncio.to_thread(self.search_pull_requests, q) for q in queries))

        unique: Dict[str, PullRequest] = {}
        for prs in results:
            for pr in prs:
                unique.setdefault(pr.id, pr)
        items = sorted(unique.values(), key=lambda pr: pr.updated_at, reverse=True)
        LOG.info("Found %d pull request(s) awaiting %s across %d search(es)", len(items), login, len(queries))
        return items

    async def fetch_enriched_metadata(self, owner: str, repo: str, number: int) -> EnrichedMetadataFields:
        details = await asyncio.to_thread(self.get_pull_request, owner, repo, number)
        reviews, check_runs = await asyncio.gather(
            self._optional(f"reviews of {owner}/{repo}#{number}", self.list_reviews, owner, repo, number),
            self._optional(f"check runs of {owner}/{repo}#{number}", self.list_check_runs, owner, repo, details.head.sha),
        )
        return EnrichedMetadataFields(
            additions=details.additions,
            deletions=details.deletions,
            changed_files_count=details.changed_files,
            requested_reviewers=requested_reviewers_from_details(details),
            completed_reviewers=completed_reviewers_from_reviews(reviews),
            check_runs=check_runs,
            mergeable=details.mergeable,
        )

    async def resolve_teams(self) -> List[Team]:
        teams = await asyncio.to_thread(self.list_user_teams)
        repositories = await asyncio.gather(*(asyncio.to_thread(self.list_team_repositories, t) for t in teams))
        return [team_from_response(t, repos) for t, repos in zip(teams, repositories)]

    @staticmethod
    async def _optional(what: str, func: Any, *args: Any) -> list:
        """Run a secondary fetch; on APIError log and return an empty list."""
        try:
            return await asyncio.to_thread(func, *args)
        except APIError as e:
            LOG.warning("Could not fetch %s: %s", what, e)
            return []
