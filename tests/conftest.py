"""Shared factories for pull requests and metadata."""

from datetime import UTC, datetime
from typing import Callable

import pytest

from gitreviewit.models import CheckStatus, EnrichedMetadata, MergeStatus, PullRequest, Reviewer


@pytest.fixture
def make_pr() -> Callable[..., PullRequest]:
    """Build a PullRequest from a repo full name; other fields get defaults."""

    def _make(
        number: int = 1,
        title: str = "Update docs",
        repo: str = "acme/api",
        author: str = "octocat",
        updated_at: datetime | None = None,
    ) -> PullRequest:
        owner, name = repo.split("/")
        return PullRequest(
            owner=owner,
            repo_name=name,
            number=number,
            title=title,
            author_login=author,
            updated_at=updated_at or datetime(2024, 1, 1, tzinfo=UTC),
            html_url=f"https://github.com/{repo}/pull/{number}",
        )

    return _make


@pytest.fixture
def make_metadata() -> Callable[..., EnrichedMetadata]:
    def _make(additions: int = 10, deletions: int = 2, changed_files_count: int = 1) -> EnrichedMetadata:
        return EnrichedMetadata(
            additions=additions,
            deletions=deletions,
            changed_files_count=changed_files_count,
            requested_reviewers=[Reviewer(login="reviewer")],
            check_status=CheckStatus.PASSING,
            merge_status=MergeStatus.CLEAN,
        )

    return _make
