"""Tests for check/merge status derivation and metadata building."""

import pytest

from gitreviewit.models import (
    CheckConclusion,
    CheckRun,
    CheckRunStatus,
    CheckStatus,
    EnrichedMetadataFields,
    MergeStatus,
    Reviewer,
    ReviewState,
)
from gitreviewit.services.status import build_metadata, derive_check_status, derive_merge_status


def _completed(conclusion: CheckConclusion) -> CheckRun:
    return CheckRun(status=CheckRunStatus.COMPLETED, conclusion=conclusion)


class TestDeriveCheckStatus:
    def test_no_runs_is_unknown(self) -> None:
        assert derive_check_status([]) == CheckStatus.UNKNOWN

    def test_all_success_is_passing(self) -> None:
        runs = [_completed(CheckConclusion.SUCCESS), _completed(CheckConclusion.SUCCESS)]
        assert derive_check_status(runs) == CheckStatus.PASSING

    def test_neutral_and_skipped_count_as_passing(self) -> None:
        runs = [_completed(CheckConclusion.NEUTRAL), _completed(CheckConclusion.SKIPPED)]
        assert derive_check_status(runs) == CheckStatus.PASSING

    def test_only_queued_or_in_progress_is_pending(self) -> None:
        runs = [CheckRun(status=CheckRunStatus.QUEUED), CheckRun(status=CheckRunStatus.IN_PROGRESS)]
        assert derive_check_status(runs) == CheckStatus.PENDING

    def test_pending_beats_passing(self) -> None:
        runs = [_completed(CheckConclusion.SUCCESS), CheckRun(status=CheckRunStatus.IN_PROGRESS)]
        assert derive_check_status(runs) == CheckStatus.PENDING

    @pytest.mark.parametrize(
        "conclusion",
        [
            CheckConclusion.FAILURE,
            CheckConclusion.TIMED_OUT,
            CheckConclusion.CANCELLED,
            CheckConclusion.ACTION_REQUIRED,
            CheckConclusion.STARTUP_FAILURE,
        ],
    )
    def test_any_failing_run_wins(self, conclusion: CheckConclusion) -> None:
        """A failing run yields failing regardless of the other runs."""
        runs = [
            _completed(CheckConclusion.SUCCESS),
            CheckRun(status=CheckRunStatus.QUEUED),
            _completed(conclusion),
            CheckRun(status=CheckRunStatus.IN_PROGRESS),
        ]
        assert derive_check_status(runs) == CheckStatus.FAILING

    def test_accepts_iterator(self) -> None:
        runs = (r for r in [_completed(CheckConclusion.SUCCESS)])
        assert derive_check_status(runs) == CheckStatus.PASSING


@pytest.mark.parametrize(
    "mergeable,expected",
    [(True, MergeStatus.CLEAN), (False, MergeStatus.CONFLICTING), (None, MergeStatus.UNKNOWN)],
)
def test_derive_merge_status(mergeable: bool | None, expected: MergeStatus) -> None:
    assert derive_merge_status(mergeable) == expected


def test_build_metadata_collapses_inputs() -> None:
    fields = EnrichedMetadataFields(
        additions=12,
        deletions=3,
        changed_files_count=4,
        requested_reviewers=[Reviewer(login="alice"), Reviewer(login="alice")],
        completed_reviewers=[Reviewer(login="bob", state=ReviewState.APPROVED)],
        check_runs=[_completed(CheckConclusion.FAILURE)],
        mergeable=False,
    )

    metadata = build_metadata(fields)

    assert metadata.additions == 12
    assert metadata.deletions == 3
    assert metadata.changed_files_count == 4
    assert metadata.total_changes == 15
    assert [r.login for r in metadata.requested_reviewers] == ["alice"]
    assert [r.login for r in metadata.all_reviewers] == ["bob", "alice"]
    assert metadata.check_status == CheckStatus.FAILING
    assert metadata.merge_status == MergeStatus.CONFLICTING


def test_build_metadata_zero_counts_are_values() -> None:
    metadata = build_metadata(EnrichedMetadataFields(additions=0, deletions=0, changed_files_count=0))
    assert metadata.total_changes == 0
    assert metadata.check_status == CheckStatus.UNKNOWN
    assert metadata.merge_status == MergeStatus.UNKNOWN
    assert not metadata.has_requested_reviewers
