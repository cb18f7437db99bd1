"""Domain models for pull requests, metadata, teams and filters (Pydantic)."""

from gitreviewit.models.check_run import CheckRun
from gitreviewit.models.collection import PullRequestCollection
from gitreviewit.models.filters import FilterConfiguration, FilterMetadata
from gitreviewit.models.metadata import EnrichedMetadata, EnrichedMetadataFields
from gitreviewit.models.pull_request import Identity, PullRequest
from gitreviewit.models.reviewer import Label, Reviewer
from gitreviewit.models.status import (
    CheckConclusion,
    CheckRunStatus,
    CheckStatus,
    MergeStatus,
    ReviewState,
)
from gitreviewit.models.team import Team

__all__ = [
    "CheckConclusion",
    "CheckRun",
    "CheckRunStatus",
    "CheckStatus",
    "EnrichedMetadata",
    "EnrichedMetadataFields",
    "FilterConfiguration",
    "FilterMetadata",
    "Identity",
    "Label",
    "MergeStatus",
    "PullRequest",
    "PullRequestCollection",
    "ReviewState",
    "Reviewer",
    "Team",
]
