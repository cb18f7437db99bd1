"""Closed status vocabularies derived from provider data."""

from enum import Enum


class CheckStatus(str, Enum):
    """Aggregated CI status of a pull request."""

    PASSING = "passing"
    FAILING = "failing"
    PENDING = "pending"
    UNKNOWN = "unknown"


class MergeStatus(str, Enum):
    """Whether a pull request can be merged without conflicts."""

    CLEAN = "clean"
    CONFLICTING = "conflicting"
    UNKNOWN = "unknown"


class CheckRunStatus(str, Enum):
    """Lifecycle state of a single check run."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    WAITING = "waiting"
    REQUESTED = "requested"
    PENDING = "pending"


class CheckConclusion(str, Enum):
    """Final outcome of a completed check run."""

    SUCCESS = "success"
    FAILURE = "failure"
    NEUTRAL = "neutral"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"
    TIMED_OUT = "timed_out"
    ACTION_REQUIRED = "action_required"
    STALE = "stale"
    STARTUP_FAILURE = "startup_failure"


class ReviewState(str, Enum):
    """Reviewer state: still requested, or the kind of review submitted."""

    REQUESTED = "requested"
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    COMMENTED = "commented"
    DISMISSED = "dismissed"
