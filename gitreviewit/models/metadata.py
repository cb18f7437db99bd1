"""Per-item metadata that needs a dedicated fetch beyond the list call.

Two shapes exist:

- ``EnrichedMetadataFields`` is what the provider returns: change stats,
  reviewers, and the raw inputs for status derivation (check runs and the
  tri-state mergeable flag).
- ``EnrichedMetadata`` is what is stored on an item: the same stats with the
  inputs collapsed into ``CheckStatus`` and ``MergeStatus``.

The presence of ``EnrichedMetadata`` on an item means it was fetched
successfully; zero counts are valid values, not placeholders.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gitreviewit.models.check_run import CheckRun
from gitreviewit.models.reviewer import Reviewer
from gitreviewit.models.status import CheckStatus, MergeStatus


def _unique_by_login(reviewers: List[Reviewer]) -> List[Reviewer]:
    seen: set[str] = set()
    out: List[Reviewer] = []
    for reviewer in reviewers:
        if reviewer.login in seen:
            continue
        seen.add(reviewer.login)
        out.append(reviewer)
    return out


class EnrichedMetadataFields(BaseModel):
    """Provider result of the per-item detail fetch."""

    model_config = ConfigDict(frozen=True)

    additions: int = Field(..., ge=0)
    deletions: int = Field(..., ge=0)
    changed_files_count: int = Field(..., ge=0)
    requested_reviewers: List[Reviewer] = Field(default_factory=list)
    completed_reviewers: List[Reviewer] = Field(default_factory=list)
    check_runs: List[CheckRun] = Field(default_factory=list, description="First page of check runs for the head commit")
    mergeable: bool | None = Field(default=None, description="None while GitHub is still computing mergeability")


class EnrichedMetadata(BaseModel):
    """Enriched metadata attached to a pull request."""

    model_config = ConfigDict(frozen=True)

    additions: int = Field(..., ge=0)
    deletions: int = Field(..., ge=0)
    changed_files_count: int = Field(..., ge=0)
    requested_reviewers: List[Reviewer] = Field(default_factory=list)
    completed_reviewers: List[Reviewer] = Field(default_factory=list)
    check_status: CheckStatus = CheckStatus.UNKNOWN
    merge_status: MergeStatus = MergeStatus.UNKNOWN

    @field_validator("requested_reviewers", "completed_reviewers")
    @classmethod
    def _dedupe_reviewers(cls, value: List[Reviewer]) -> List[Reviewer]:
        return _unique_by_login(value)

    @property
    def total_changes(self) -> int:
        return self.additions + self.deletions

    @property
    def all_reviewers(self) -> List[Reviewer]:
        """Completed reviewers first, then the ones still requested."""
        return self.completed_reviewers + self.requested_reviewers

    @property
    def has_requested_reviewers(self) -> bool:
        return bool(self.requested_reviewers)
