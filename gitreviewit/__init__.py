"""GitReviewIt: pull requests waiting for your review, enriched, filtered and searchable."""

__version__ = "0.1.0"
