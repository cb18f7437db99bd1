"""Owned, identity-keyed collection of pull requests for one load session."""

from typing import Dict, Iterable, Iterator, List, Tuple

from gitreviewit.models.metadata import EnrichedMetadata
from gitreviewit.models.pull_request import Identity, PullRequest


class PullRequestCollection:
    """Ordered pull requests with point writes keyed by identity.

    Order is fixed at construction (the list order returned by the provider).
    Writers replace one item at a time by identity; readers take
    ``snapshot()``, an immutable tuple.
    """

    def __init__(self, items: Iterable[PullRequest] = ()) -> None:
        self._order: List[Identity] = []
        self._items: Dict[Identity, PullRequest] = {}
        for item in items:
            if item.identity in self._items:
                continue
            self._order.append(item.identity)
            self._items[item.identity] = item

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[PullRequest]:
        return iter(self.snapshot())

    def __contains__(self, identity: object) -> bool:
        return identity in self._items

    def get(self, identity: Identity) -> PullRequest | None:
        return self._items.get(identity)

    def snapshot(self) -> Tuple[PullRequest, ...]:
        return tuple(self._items[key] for key in self._order)

    def set_metadata(self, identity: Identity, metadata: EnrichedMetadata) -> bool:
        """Replace the enriched metadata of one item. Returns False if unknown."""
        item = self._items.get(identity)
        if item is None:
            return False
        self._items[identity] = item.with_metadata(metadata)
        return True
