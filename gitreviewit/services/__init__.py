"""Scoring, status derivation, filtering, enrichment and filter persistence."""

from gitreviewit.services.enrichment import EnrichmentOrchestrator
from gitreviewit.services.filter_engine import FilterEngine, resolve_team_repositories
from gitreviewit.services.filter_store import FilterStore, FilterStoreError, YamlFilterStore
from gitreviewit.services.fuzzy_matcher import FuzzyMatcher
from gitreviewit.services.similarity import similarity
from gitreviewit.services.status import build_metadata, derive_check_status, derive_merge_status

__all__ = [
    "EnrichmentOrchestrator",
    "FilterEngine",
    "FilterStore",
    "FilterStoreError",
    "FuzzyMatcher",
    "YamlFilterStore",
    "build_metadata",
    "derive_check_status",
    "derive_merge_status",
    "resolve_team_repositories",
    "similarity",
]
