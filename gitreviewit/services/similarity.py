"""Normalized Levenshtein similarity between two strings.

Case-sensitive; callers lowercase when they need case-insensitive scores.
"""

from Levenshtein import distance


def similarity(a: str, b: str) -> float:
    """Return similarity in [0, 1]: 1.0 for identical strings (including both
    empty), 0.0 when exactly one is empty."""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1.0 - distance(a, b) / max(len(a), len(b))
