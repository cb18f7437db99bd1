"""Unit tests for GitHub adapter (mocked API)."""

import asyncio
import logging
from datetime import UTC, datetime
from unittest.mock import Mock, patch

import pytest
import requests

from gitreviewit.adapters import (
    HTTPStatusError,
    InvalidResponse,
    NetworkUnreachable,
    NotFound,
    RateLimited,
    ServerError,
    Unauthorized,
)
from gitreviewit.adapters.github import GitHubAdapter, error_from_response
from gitreviewit.adapters.schemas import ReviewResponse, completed_reviewers_from_reviews, repository_from_url
from gitreviewit.models import CheckConclusion, CheckRunStatus, ReviewState


@pytest.fixture
def adapter() -> GitHubAdapter:
    return GitHubAdapter(token="test-token", api_url="https://api.github.com")


def _resp(status: int = 200, data=None, headers: dict | None = None) -> Mock:
    resp = Mock()
    resp.status_code = status
    resp.json.return_value = data
    resp.headers = headers or {}
    resp.text = ""
    return resp


def _search_item(number: int, repo: str, updated: str, author: str = "jdoe") -> dict:
    return {
        "number": number,
        "title": f"PR {number}",
        "html_url": f"https://github.com/{repo}/pull/{number}",
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": updated,
        "user": {"login": author, "avatar_url": "https://avatars.example/u"},
        "repository_url": f"https://api.github.com/repos/{repo}",
        "comments": 2,
        "labels": [{"name": "bug", "color": "d73a4a"}],
        "draft": False,
    }


def test_session_headers(adapter: GitHubAdapter) -> None:
    headers = adapter._session.headers
    assert headers["Authorization"] == "Bearer test-token"
    assert headers["Accept"] == "application/vnd.github+json"
    assert headers["X-GitHub-Api-Version"] == "2022-11-28"


class TestErrorMapping:
    def test_401_unauthorized(self) -> None:
        assert isinstance(error_from_response(_resp(401)), Unauthorized)

    def test_403_rate_limited_with_reset(self) -> None:
        error = error_from_response(_resp(403, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000000"}))
        assert isinstance(error, RateLimited)
        assert error.reset_at == datetime.fromtimestamp(1700000000, tz=UTC)

    def test_403_without_quota_header_is_permission_error(self) -> None:
        error = error_from_response(_resp(403, data={"message": "Resource not accessible by integration"}))
        assert isinstance(error, HTTPStatusError)
        assert error.status_code == 403
        assert "Resource not accessible" in str(error)

    def test_429_rate_limited(self) -> None:
        error = error_from_response(_resp(429))
        assert isinstance(error, RateLimited)
        assert error.reset_at is None

    def test_404_not_found(self) -> None:
        assert isinstance(error_from_response(_resp(404)), NotFound)

    def test_422_invalid_response(self) -> None:
        assert isinstance(error_from_response(_resp(422)), InvalidResponse)

    @pytest.mark.parametrize("code", [500, 502, 503])
    def test_5xx_server_error(self, code: int) -> None:
        error = error_from_response(_resp(code))
        assert isinstance(error, ServerError)
        assert error.status_code == code

    def test_other_4xx(self) -> None:
        error = error_from_response(_resp(409, data={"message": "Conflict"}))
        assert isinstance(error, HTTPStatusError)
        assert error.status_code == 409

    def test_error_body_without_message(self) -> None:
        error = error_from_response(_resp(403, data=["unexpected"]))
        assert isinstance(error, HTTPStatusError)
        assert "Access forbidden" in str(error)


class TestRequests:
    def test_get_user_success(self, adapter: GitHubAdapter) -> None:
        with patch.object(adapter._session, "request", return_value=_resp(data={"login": "me"})) as req:
            user = adapter.get_user()

        assert user.login == "me"
        req.assert_called_once()
        call_args = req.call_args
        assert call_args[0][0] == "GET"
        assert call_args[0][1] == "https://api.github.com/user"

    def test_connection_error_is_network_unreachable(self, adapter: GitHubAdapter) -> None:
        with patch.object(adapter._session, "request", side_effect=requests.ConnectionError("down")):
            with pytest.raises(NetworkUnreachable):
                adapter.get_user()

    def test_timeout_is_network_unreachable(self, adapter: GitHubAdapter) -> None:
        with patch.object(adapter._session, "request", side_effect=requests.Timeout("slow")):
            with pytest.raises(NetworkUnreachable):
                adapter.get_user()

    def test_undecodable_json_is_invalid_response(self, adapter: GitHubAdapter) -> None:
        resp = _resp()
        resp.json.side_effect = ValueError("not json")
        with patch.object(adapter._session, "request", return_value=resp):
            with pytest.raises(InvalidResponse):
                adapter.get_user()

    def test_schema_mismatch_is_invalid_response(self, adapter: GitHubAdapter) -> None:
        with patch.object(adapter._session, "request", return_value=_resp(data={"id": 1})):
            with pytest.raises(InvalidResponse):
                adapter.get_user()

    def test_error_status_raises_mapped_error(self, adapter: GitHubAdapter) -> None:
        with patch.object(adapter._session, "request", return_value=_resp(401)):
            with pytest.raises(Unauthorized):
                adapter.get_user()

    def test_search_pull_requests_converts_items(self, adapter: GitHubAdapter) -> None:
        data = {"total_count": 1, "items": [_search_item(7, "acme/api", "2024-01-02T00:00:00Z")]}
        with patch.object(adapter._session, "request", return_value=_resp(data=data)) as req:
            prs = adapter.search_pull_requests("type:pr")

        assert len(prs) == 1
        pr = prs[0]
        assert pr.identity == ("acme", "api", 7)
        assert pr.author_login == "jdoe"
        assert pr.comment_count == 2
        assert [lb.name for lb in pr.labels] == ["bug"]
        assert req.call_args[1]["params"] == {"q": "type:pr", "per_page": 100}

    def test_incomplete_search_is_logged(self, adapter: GitHubAdapter, caplog: pytest.LogCaptureFixture) -> None:
        data = {"incomplete_results": True, "items": [_search_item(1, "acme/api", "2024-01-02T00:00:00Z")]}
        with patch.object(adapter._session, "request", return_value=_resp(data=data)):
            with caplog.at_level(logging.DEBUG, logger="gitreviewit.adapters.github"):
                prs = adapter.search_pull_requests("type:pr")

        assert [pr.number for pr in prs] == [1]
        assert "may be incomplete" in caplog.text

    def test_search_skips_unparseable_items(self, adapter: GitHubAdapter) -> None:
        bad_repo = _search_item(1, "acme/api", "2024-01-02T00:00:00Z")
        bad_repo["repository_url"] = "https://api.github.com/users/acme"
        bad_label = _search_item(2, "acme/api", "2024-01-02T00:00:00Z")
        bad_label["labels"] = [{"name": "bug", "color": "not-a-color"}]
        good = _search_item(3, "acme/api", "2024-01-02T00:00:00Z")
        data = {"items": [bad_repo, bad_label, good]}

        with patch.object(adapter._session, "request", return_value=_resp(data=data)):
            prs = adapter.search_pull_requests("type:pr")

        assert [pr.number for pr in prs] == [3]


class TestListItems:
    def test_runs_searches_dedupes_and_sorts(self, adapter: GitHubAdapter) -> None:
        a = _search_item(1, "acme/api", "2024-01-02T00:00:00Z")
        b = _search_item(2, "acme/web", "2024-01-01T00:00:00Z")
        c = _search_item(3, "globex/tools", "2024-01-03T00:00:00Z")
        team_pr = _search_item(4, "acme/api", "2023-12-01T00:00:00Z")
        queries: list[str] = []

        def side_effect(method, url, **kwargs):
            if url.endswith("/user"):
                return _resp(data={"login": "me"})
            if url.endswith("/user/teams"):
                return _resp(data=[{"slug": "backend", "organization": {"login": "acme"}}])
            q = kwargs["params"]["q"]
            queries.append(q)
            if "review-requested:me" in q and "team-" not in q:
                return _resp(data={"items": [a, b]})
            if "assignee:me" in q:
                return _resp(data={"items": [a]})
            if "reviewed-by:me" in q:
                return _resp(data={"items": [c]})
            if "team-review-requested:acme/backend" in q:
                return _resp(data={"items": [team_pr]})
            return _resp(data={"items": []})

        with patch.object(adapter._session, "request", side_effect=side_effect):
            items = asyncio.run(adapter.list_items())

        assert [pr.number for pr in items] == [3, 1, 2, 4]
        assert len(queries) == 4
        assert all("type:pr state:open -author:me" in q for q in queries)

    def test_team_listing_failure_is_ignored(self, adapter: GitHubAdapter) -> None:
        def side_effect(method, url, **kwargs):
            if url.endswith("/user"):
                return _resp(data={"login": "me"})
            if url.endswith("/user/teams"):
                return _resp(403, headers={}, data={"message": "Must have admin rights"})
            return _resp(data={"items": [_search_item(1, "acme/api", "2024-01-02T00:00:00Z")]})

        with patch.object(adapter._session, "request", side_effect=side_effect):
            items = asyncio.run(adapter.list_items())

        assert [pr.number for pr in items] == [1]

    def test_user_failure_propagates(self, adapter: GitHubAdapter) -> None:
        with patch.object(adapter._session, "request", return_value=_resp(401)):
            with pytest.raises(Unauthorized):
                asyncio.run(adapter.list_items())


class TestFetchEnrichedMetadata:
    DETAILS = {
        "additions": 120,
        "deletions": 30,
        "changed_files": 5,
        "requested_reviewers": [{"login": "alice", "avatar_url": "https://avatars.example/a"}],
        "head": {"sha": "abc123"},
        "mergeable": True,
    }
    REVIEWS = [
        {"user": {"login": "bob"}, "state": "COMMENTED", "submitted_at": "2024-01-01T00:00:00Z"},
        {"user": {"login": "bob"}, "state": "APPROVED", "submitted_at": "2024-01-02T00:00:00Z"},
        {"user": None, "state": "APPROVED", "submitted_at": "2024-01-02T00:00:00Z"},
    ]
    CHECK_RUNS = {
        "total_count": 3,
        "check_runs": [
            {"status": "completed", "conclusion": "success"},
            {"status": "in_progress", "conclusion": None},
            {"status": "some_new_status", "conclusion": None},
        ],
    }

    def _route(self, reviews_resp: Mock | None = None, checks_resp: Mock | None = None, details_resp=None):
        def side_effect(method, url, **kwargs):
            if url.endswith("/pulls/5"):
                return details_resp or _resp(data=self.DETAILS)
            if url.endswith("/pulls/5/reviews"):
                return reviews_resp or _resp(data=self.REVIEWS)
            if url.endswith("/commits/abc123/check-runs"):
                return checks_resp or _resp(data=self.CHECK_RUNS)
            return _resp(404)

        return side_effect

    def test_success(self, adapter: GitHubAdapter) -> None:
        with patch.object(adapter._session, "request", side_effect=self._route()):
            fields = asyncio.run(adapter.fetch_enriched_metadata("acme", "api", 5))

        assert (fields.additions, fields.deletions, fields.changed_files_count) == (120, 30, 5)
        assert [r.login for r in fields.requested_reviewers] == ["alice"]
        assert [(r.login, r.state) for r in fields.completed_reviewers] == [("bob", ReviewState.APPROVED)]
        assert [(r.status, r.conclusion) for r in fields.check_runs] == [
            (CheckRunStatus.COMPLETED, CheckConclusion.SUCCESS),
            (CheckRunStatus.IN_PROGRESS, None),
        ]
        assert fields.mergeable is True

    def test_review_and_check_failures_degrade(self, adapter: GitHubAdapter) -> None:
        side_effect = self._route(reviews_resp=_resp(500), checks_resp=_resp(403, headers={}))
        with patch.object(adapter._session, "request", side_effect=side_effect):
            fields = asyncio.run(adapter.fetch_enriched_metadata("acme", "api", 5))

        assert fields.additions == 120
        assert fields.completed_reviewers == []
        assert fields.check_runs == []

    def test_details_not_found_raises(self, adapter: GitHubAdapter) -> None:
        with patch.object(adapter._session, "request", side_effect=self._route(details_resp=_resp(404))):
            with pytest.raises(NotFound):
                asyncio.run(adapter.fetch_enriched_metadata("acme", "api", 5))


def test_resolve_teams(adapter: GitHubAdapter) -> None:
    teams = [
        {"slug": "backend", "name": "Backend", "organization": {"login": "acme"},
         "repositories_url": "https://api.github.com/teams/1/repos"},
        {"slug": "backend", "name": "Backend", "organization": {"login": "acme"},
         "repositories_url": "https://api.github.com/teams/1/repos"},
        {"slug": "tools", "name": "Tools", "organization": {"login": "globex"}},
    ]

    def side_effect(method, url, **kwargs):
        if url.endswith("/user/teams"):
            return _resp(data=teams)
        if url == "https://api.github.com/teams/1/repos":
            return _resp(data=[{"full_name": "acme/api"}, {"full_name": "acme/web"}])
        if url.endswith("/orgs/globex/teams/tools/repos"):
            return _resp(data=[{"full_name": "globex/tools"}])
        return _resp(404)

    with patch.object(adapter._session, "request", side_effect=side_effect):
        resolved = asyncio.run(adapter.resolve_teams())

    assert [t.full_slug for t in resolved] == ["acme/backend", "globex/tools"]
    assert resolved[0].repositories == ["acme/api", "acme/web"]
    assert resolved[1].repositories == ["globex/tools"]


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://api.github.com/repos/acme/api", ("acme", "api")),
        ("https://ghe.example.com/api/v3/repos/acme/api", ("acme", "api")),
        ("https://api.github.com/repos/acme", None),
        ("https://api.github.com/users/acme", None),
    ],
)
def test_repository_from_url(url: str, expected) -> None:
    assert repository_from_url(url) == expected


def test_pending_review_does_not_hide_submitted_one() -> None:
    reviews = [
        ReviewResponse.model_validate({"user": {"login": "bob"}, "state": "APPROVED", "submitted_at": "2024-01-02T00:00:00Z"}),
        ReviewResponse.model_validate({"user": {"login": "bob"}, "state": "PENDING"}),
        ReviewResponse.model_validate(
            {"user": {"login": "carol"}, "state": "CHANGES_REQUESTED", "submitted_at": "2024-01-03T00:00:00Z"}
        ),
    ]
    reviewers = completed_reviewers_from_reviews(reviews)
    assert [(r.login, r.state) for r in reviewers] == [
        ("bob", ReviewState.APPROVED),
        ("carol", ReviewState.CHANGES_REQUESTED),
    ]
