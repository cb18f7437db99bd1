"""Weighted fuzzy search over pull requests.

Each pull request is scored on three fields:

- title (weight 3.0)
- repository, short name or owner/name, whichever scores higher (weight 2.0)
- author login (weight 1.5)

A field scores 1.0 on an exact match, 0.9 on a prefix match, 0.7 on a
substring match (all case-insensitive), otherwise 0.6 x similarity when the
similarity exceeds 0.3. The item score is the best weighted field score;
items scoring 0 are dropped.
"""

import functools
import logging
from typing import Iterable, List, Tuple

from gitreviewit.models import PullRequest
from gitreviewit.services.similarity import similarity

LOG = logging.getLogger("gitreviewit.services.fuzzy_matcher")

TITLE_WEIGHT = 3.0
REPOSITORY_WEIGHT = 2.0
AUTHOR_WEIGHT = 1.5

EXACT_SCORE = 1.0
PREFIX_SCORE = 0.9
SUBSTRING_SCORE = 0.7
FUZZY_FACTOR = 0.6
FUZZY_THRESHOLD = 0.3

# Scores closer than this are ordered by pull request number
TIE_EPSILON = 0.001


def field_score(field: str, query: str) -> float:
    """Raw (unweighted) score of one field against an already-trimmed query."""
    f = field.lower()
    q = query.lower()
    if not f or not q:
        return 0.0
    if f == q:
        return EXACT_SCORE
    if f.startswith(q):
        return PREFIX_SCORE
    if q in f:
        return SUBSTRING_SCORE
    sim = similarity(f, q)
    if sim > FUZZY_THRESHOLD:
        return sim * FUZZY_FACTOR
    return 0.0


class FuzzyMatcher:
    """Ranks pull requests against a free-text query."""

    def score(self, query: str, pr: PullRequest) -> float:
        """Best weighted field score of ``pr``; 0.0 means no match."""
        q = query.strip()
        if not q:
            return 0.0
        repository = max(field_score(pr.repo_name, q), field_score(pr.full_name, q))
        return max(
            field_score(pr.title, q) * TITLE_WEIGHT,
            repository * REPOSITORY_WEIGHT,
            field_score(pr.author_login, q) * AUTHOR_WEIGHT,
        )

    def match(self, query: str, pull_requests: Iterable[PullRequest]) -> List[PullRequest]:
        """Return matching pull requests, best first.

        A blank query means search is inactive and yields an empty list.
        """
        q = query.strip()
        if not q:
            return []

        scored: List[Tuple[float, PullRequest]] = []
        for pr in pull_requests:
            s = self.score(q, pr)
            if s > 0:
                scored.append((s, pr))

        scored.sort(key=functools.cmp_to_key(_compare))
        LOG.debug("Query %r matched %d pull request(s)", q, len(scored))
        return [pr for _, pr in scored]


def _compare(a: Tuple[float, PullRequest], b: Tuple[float, PullRequest]) -> int:
    score_a, pr_a = a
    score_b, pr_b = b
    if abs(score_a - score_b) < TIE_EPSILON:
        return pr_a.number - pr_b.number
    return -1 if score_a > score_b else 1
