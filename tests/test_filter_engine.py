"""Tests for the organization -> repository -> team -> search pipeline."""

import pytest

from gitreviewit.models import FilterConfiguration, Team
from gitreviewit.services.filter_engine import FilterEngine, resolve_team_repositories


@pytest.fixture
def engine() -> FilterEngine:
    return FilterEngine()


@pytest.fixture
def items(make_pr) -> list:
    return [
        make_pr(number=1, title="Fix login bug", repo="acme/api", author="jdoe"),
        make_pr(number=2, title="Add dashboard", repo="acme/web", author="asmith"),
        make_pr(number=3, title="Bump deps", repo="globex/tools", author="xyz"),
    ]


@pytest.fixture
def teams() -> list:
    return [
        Team(slug="backend", name="Backend", organization="acme", repositories=["acme/api"]),
        Team(slug="tooling", name="Tooling", organization="globex", repositories=["globex/tools"]),
    ]


def test_empty_configuration_and_query_is_identity(engine: FilterEngine, items: list) -> None:
    assert engine.apply(FilterConfiguration.empty(), "", items) == items
    assert engine.apply(FilterConfiguration.empty(), "   ", items) == items


def test_organization_filter(engine: FilterEngine, items: list) -> None:
    config = FilterConfiguration(organizations=frozenset({"acme"}))
    assert [pr.number for pr in engine.apply(config, "", items)] == [1, 2]


def test_repository_filter(engine: FilterEngine, items: list) -> None:
    config = FilterConfiguration(repositories=frozenset({"acme/web", "globex/tools"}))
    assert [pr.number for pr in engine.apply(config, "", items)] == [2, 3]


def test_organization_and_repository_combine(engine: FilterEngine, items: list) -> None:
    config = FilterConfiguration(organizations=frozenset({"acme"}), repositories=frozenset({"globex/tools"}))
    assert engine.apply(config, "", items) == []


def test_team_filter_uses_team_repositories(engine: FilterEngine, items: list, teams: list) -> None:
    config = FilterConfiguration(teams=frozenset({"backend"}))
    assert [pr.number for pr in engine.apply(config, "", items, teams)] == [1]


def test_team_filter_accepts_full_slug(engine: FilterEngine, items: list, teams: list) -> None:
    config = FilterConfiguration(teams=frozenset({"globex/tooling"}))
    assert [pr.number for pr in engine.apply(config, "", items, teams)] == [3]


def test_unknown_team_filters_everything(engine: FilterEngine, items: list, teams: list) -> None:
    config = FilterConfiguration(teams=frozenset({"nobody"}))
    assert engine.apply(config, "", items, teams) == []


def test_search_runs_after_structured_filters(engine: FilterEngine, items: list) -> None:
    config = FilterConfiguration(organizations=frozenset({"globex"}))
    assert engine.apply(config, "login", items) == []
    assert [pr.number for pr in engine.apply(FilterConfiguration.empty(), "login", items)] == [1]


def test_search_orders_by_score(engine: FilterEngine, make_pr) -> None:
    items = [
        make_pr(number=1, title="Fix api client", repo="acme/web", author="xyz"),
        make_pr(number=2, title="api", repo="acme/web", author="xyz"),
    ]
    assert [pr.number for pr in engine.apply(FilterConfiguration.empty(), "api", items)] == [2, 1]


def test_resolve_team_repositories_union() -> None:
    teams = [
        Team(slug="a", organization="acme", repositories=["acme/api", "acme/web"]),
        Team(slug="b", organization="acme", repositories=["acme/web", "acme/docs"]),
        Team(slug="c", organization="acme", repositories=["acme/secret"]),
    ]
    assert resolve_team_repositories({"a", "acme/b"}, teams) == {"acme/api", "acme/web", "acme/docs"}
    assert resolve_team_repositories(set(), teams) == set()
