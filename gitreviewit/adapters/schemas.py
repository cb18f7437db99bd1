"""GitHub REST response schemas and their conversion into domain models.

Provider strings (check run states, review states) are turned into the
closed enums here; nothing past this module sees raw API values.
"""

from datetime import datetime
from typing import Dict, List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field

from gitreviewit.models import (
    CheckConclusion,
    CheckRun,
    CheckRunStatus,
    Label,
    PullRequest,
    Reviewer,
    ReviewState,
    Team,
)


class _Response(BaseModel):
    model_config = ConfigDict(extra="ignore")


class UserResponse(_Response):
    login: str
    avatar_url: Optional[str] = None


class ErrorResponse(_Response):
    message: str


class SearchLabel(_Response):
    name: str
    color: str


class SearchIssueItem(_Response):
    """One item of GET /search/issues."""

    number: int
    title: str
    html_url: str
    state: str = "open"
    created_at: Optional[datetime] = None
    updated_at: datetime
    user: UserResponse
    repository_url: str
    comments: int = 0
    labels: List[SearchLabel] = Field(default_factory=list)
    draft: bool = False


class SearchIssuesResponse(_Response):
    total_count: int = 0
    incomplete_results: bool = False
    items: List[SearchIssueItem] = Field(default_factory=list)


class Head(_Response):
    sha: str


class PRDetailsResponse(_Response):
    """GET /repos/{owner}/{repo}/pulls/{number}."""

    additions: int
    deletions: int
    changed_files: int
    requested_reviewers: List[UserResponse] = Field(default_factory=list)
    head: Head
    mergeable: Optional[bool] = None


class ReviewResponse(_Response):
    """One item of GET /repos/{owner}/{repo}/pulls/{number}/reviews."""

    user: Optional[UserResponse] = None
    state: str
    submitted_at: Optional[datetime] = None


class CheckRunResponse(_Response):
    status: str
    conclusion: Optional[str] = None


class CheckRunsResponse(_Response):
    """GET /repos/{owner}/{repo}/commits/{ref}/check-runs."""

    total_count: int = 0
    check_runs: List[CheckRunResponse] = Field(default_factory=list)


class TeamOrganization(_Response):
    login: str


class TeamResponse(_Response):
    """One item of GET /user/teams."""

    id: Optional[int] = None
    slug: str
    name: str = ""
    organization: TeamOrganization
    repositories_url: Optional[str] = None


class RepositoryResponse(_Response):
    full_name: str


def repository_from_url(repository_url: str) -> tuple[str, str] | None:
    """Extract (owner, name) from an API repository URL.

    Handles https://api.github.com/repos/owner/repo and enterprise prefixes
    such as https://ghe.example.com/api/v3/repos/owner/repo.
    """
    parts = [p for p in urlparse(repository_url).path.split("/") if p]
    if "repos" not in parts:
        return None
    # Last "repos" segment, followed by owner and name
    idx = len(parts) - 1 - parts[::-1].index("repos")
    if len(parts) < idx + 3:
        return None
    return parts[idx + 1], parts[idx + 2]


def pull_request_from_search(item: SearchIssueItem) -> PullRequest | None:
    """Convert a search hit into a PullRequest; None if the repo is unparseable."""
    repo = repository_from_url(item.repository_url)
    if repo is None:
        return None
    owner, name = repo
    return PullRequest(
        owner=owner,
        repo_name=name,
        number=item.number,
        title=item.title,
        author_login=item.user.login,
        author_avatar_url=item.user.avatar_url,
        created_at=item.created_at,
        updated_at=item.updated_at,
        html_url=item.html_url,
        comment_count=item.comments,
        labels=[Label(name=lb.name, color=lb.color) for lb in item.labels],
        is_draft=item.draft,
    )


def check_run_from_response(data: CheckRunResponse) -> CheckRun | None:
    """Map API strings to enums; None when the status is not recognised."""
    try:
        status = CheckRunStatus(data.status.lower())
    except ValueError:
        return None
    conclusion: CheckConclusion | None = None
    if data.conclusion:
        try:
            conclusion = CheckConclusion(data.conclusion.lower())
        except ValueError:
            conclusion = None
    return CheckRun(status=status, conclusion=conclusion)


def requested_reviewers_from_details(details: PRDetailsResponse) -> List[Reviewer]:
    return [
        Reviewer(login=u.login, avatar_url=u.avatar_url, state=ReviewState.REQUESTED)
        for u in details.requested_reviewers
        if u.login
    ]


def completed_reviewers_from_reviews(reviews: List[ReviewResponse]) -> List[Reviewer]:
    """Latest submitted review per user, in first-seen order.

    Reviews without a user (deleted accounts) or with an unrecognised state
    (e.g. PENDING drafts) are skipped. The API lists reviews oldest first, so
    a review without ``submitted_at`` replaces the earlier one.
    """
    latest: Dict[str, tuple[ReviewResponse, ReviewState]] = {}
    for review in reviews:
        if review.user is None or not review.user.login:
            continue
        try:
            state = ReviewState(review.state.lower())
        except ValueError:
            continue
        if state == ReviewState.REQUESTED:
            continue
        existing = latest.get(review.user.login)
        if existing is not None:
            before = existing[0].submitted_at
            if before is not None and review.submitted_at is not None and review.submitted_at < before:
                continue
        latest[review.user.login] = (review, state)

    return [
        Reviewer(login=login, avatar_url=review.user.avatar_url if review.user else None, state=state)
        for login, (review, state) in latest.items()
    ]


def team_from_response(data: TeamResponse, repositories: List[str]) -> Team:
    return Team(
        slug=data.slug,
        name=data.name,
        organization=data.organization.login,
        repositories=repositories,
    )
