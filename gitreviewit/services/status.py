"""Derive CheckStatus and MergeStatus from provider inputs."""

from typing import Iterable

from gitreviewit.models import (
    CheckConclusion,
    CheckRun,
    CheckRunStatus,
    CheckStatus,
    EnrichedMetadata,
    EnrichedMetadataFields,
    MergeStatus,
)

FAILING_CONCLUSIONS = frozenset(
    {
        CheckConclusion.FAILURE,
        CheckConclusion.TIMED_OUT,
        CheckConclusion.CANCELLED,
        CheckConclusion.ACTION_REQUIRED,
        CheckConclusion.STARTUP_FAILURE,
    }
)

PENDING_STATUSES = frozenset(
    {
        CheckRunStatus.QUEUED,
        CheckRunStatus.IN_PROGRESS,
        CheckRunStatus.WAITING,
        CheckRunStatus.REQUESTED,
        CheckRunStatus.PENDING,
    }
)


def derive_check_status(check_runs: Iterable[CheckRun]) -> CheckStatus:
    """Aggregate check runs: failing beats pending beats passing.

    No runs at all means unknown (nothing configured or not reported yet).
    """
    runs = list(check_runs)
    if not runs:
        return CheckStatus.UNKNOWN
    if any(run.conclusion in FAILING_CONCLUSIONS for run in runs):
        return CheckStatus.FAILING
    if any(run.status in PENDING_STATUSES for run in runs):
        return CheckStatus.PENDING
    return CheckStatus.PASSING


def derive_merge_status(mergeable: bool | None) -> MergeStatus:
    """None means GitHub is still computing mergeability."""
    if mergeable is None:
        return MergeStatus.UNKNOWN
    return MergeStatus.CLEAN if mergeable else MergeStatus.CONFLICTING


def build_metadata(fields: EnrichedMetadataFields) -> EnrichedMetadata:
    """Collapse provider fields into the metadata stored on an item."""
    return EnrichedMetadata(
        additions=fields.additions,
        deletions=fields.deletions,
        changed_files_count=fields.changed_files_count,
        requested_reviewers=list(fields.requested_reviewers),
        completed_reviewers=list(fields.completed_reviewers),
        check_status=derive_check_status(fields.check_runs),
        merge_status=derive_merge_status(fields.mergeable),
    )
