"""Filter configuration and the metadata offered to filter pickers."""

from typing import FrozenSet, Iterable, List

from pydantic import BaseModel, ConfigDict, Field

from gitreviewit.models.pull_request import PullRequest
from gitreviewit.models.team import Team

FILTER_CONFIGURATION_VERSION = 1


class FilterConfiguration(BaseModel):
    """Selected organizations, repositories and teams.

    An empty set means no restriction for that dimension.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: int = Field(default=FILTER_CONFIGURATION_VERSION)
    organizations: FrozenSet[str] = Field(default_factory=frozenset)
    repositories: FrozenSet[str] = Field(default_factory=frozenset, description="Full names, owner/name")
    teams: FrozenSet[str] = Field(default_factory=frozenset, description="Team slugs or org/slug")

    @classmethod
    def empty(cls) -> "FilterConfiguration":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not (self.organizations or self.repositories or self.teams)

    def without_teams(self) -> "FilterConfiguration":
        return self.model_copy(update={"teams": frozenset()})


class FilterMetadata(BaseModel):
    """Values the consumer can offer in its filter pickers."""

    model_config = ConfigDict(frozen=True)

    organizations: FrozenSet[str] = Field(default_factory=frozenset)
    repositories: FrozenSet[str] = Field(default_factory=frozenset)
    teams: List[Team] = Field(default_factory=list)
    teams_available: bool = True

    @property
    def sorted_organizations(self) -> List[str]:
        return sorted(self.organizations)

    @property
    def sorted_repositories(self) -> List[str]:
        return sorted(self.repositories)

    @classmethod
    def from_pull_requests(
        cls,
        pull_requests: Iterable[PullRequest],
        teams: Iterable[Team] = (),
        teams_available: bool = True,
    ) -> "FilterMetadata":
        prs = list(pull_requests)
        return cls(
            organizations=frozenset(pr.owner for pr in prs),
            repositories=frozenset(pr.full_name for pr in prs),
            teams=list(teams),
            teams_available=teams_available,
        )
