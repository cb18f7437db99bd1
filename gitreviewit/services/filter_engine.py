"""Structured filters followed by fuzzy search, in a fixed order.

Stages (each one a pure filter over the previous stage's output):

1. organization: owner in configuration.organizations
2. repository: owner/name in configuration.repositories
3. team: owner/name in the repositories of the selected teams
4. search: FuzzyMatcher.match when the query is not blank

A stage whose selection is empty is skipped.
"""

import logging
from typing import Iterable, List, Set

from gitreviewit.models import FilterConfiguration, PullRequest, Team
from gitreviewit.services.fuzzy_matcher import FuzzyMatcher

LOG = logging.getLogger("gitreviewit.services.filter_engine")


def resolve_team_repositories(selected: Iterable[str], teams: Iterable[Team]) -> Set[str]:
    """Union of repositories of the selected teams.

    A selection matches a team by slug or by org/slug. Unknown teams
    contribute nothing.
    """
    wanted = set(selected)
    repositories: Set[str] = set()
    for team in teams:
        if team.slug in wanted or team.full_slug in wanted:
            repositories.update(team.repositories)
    return repositories


class FilterEngine:
    """Applies a FilterConfiguration and a search query to pull requests."""

    def __init__(self, matcher: FuzzyMatcher | None = None) -> None:
        self._matcher = matcher or FuzzyMatcher()

    def apply(
        self,
        configuration: FilterConfiguration,
        query: str,
        pull_requests: Iterable[PullRequest],
        teams: Iterable[Team] = (),
    ) -> List[PullRequest]:
        result = list(pull_requests)
        total = len(result)

        if configuration.organizations:
            result = [pr for pr in result if pr.owner in configuration.organizations]

        if configuration.repositories:
            result = [pr for pr in result if pr.full_name in configuration.repositories]

        if configuration.teams:
            allowed = resolve_team_repositories(configuration.teams, teams)
            result = [pr for pr in result if pr.full_name in allowed]

        if query.strip():
            result = self._matcher.match(query, result)

        LOG.debug("Filter pipeline kept %d of %d pull request(s)", len(result), total)
        return result
