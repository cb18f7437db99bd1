"""Concurrent per-item metadata enrichment with a session cache.

For every pull request not yet cached, one fetch runs concurrently with the
others (scatter-gather). Results are applied as they complete, one at a
time, on the event loop:

- success: cache the metadata, replace the item's metadata wholesale in the
  collection and notify ``on_update``;
- failure: record it in ``failures`` and log; the item keeps whatever
  metadata it had (usually none).

No retries happen here. ``reset()`` starts a new epoch (fresh load); results
that arrive for an older epoch are dropped.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Set, Tuple

from gitreviewit.models import EnrichedMetadata, Identity, PullRequest, PullRequestCollection

LOG = logging.getLogger("gitreviewit.services.enrichment")

FetchDetails = Callable[[PullRequest], Awaitable[EnrichedMetadata]]
OnUpdate = Callable[[PullRequest], None]

_Outcome = Tuple[PullRequest, EnrichedMetadata | None, Exception | None]


class EnrichmentOrchestrator:
    """Owns the fetch cache and merges fetched metadata into a collection."""

    def __init__(self, max_concurrency: int | None = None, on_update: OnUpdate | None = None) -> None:
        self._cache: Dict[Identity, EnrichedMetadata] = {}
        self._failures: Dict[Identity, Exception] = {}
        self._in_flight: Set[Identity] = set()
        self._epoch = 0
        self._max_concurrency = max_concurrency if max_concurrency and max_concurrency > 0 else None
        self._on_update = on_update

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def failures(self) -> Dict[Identity, Exception]:
        """Failures of the current epoch, keyed by identity."""
        return dict(self._failures)

    def cached(self, identity: Identity) -> EnrichedMetadata | None:
        return self._cache.get(identity)

    def reset(self) -> None:
        """Clear the cache and start a new epoch."""
        self._cache.clear()
        self._failures.clear()
        self._in_flight.clear()
        self._epoch += 1
        LOG.debug("Enrichment cache cleared, epoch %d", self._epoch)

    async def enrich(self, collection: PullRequestCollection, fetch: FetchDetails) -> int:
        """Fetch and merge metadata for every uncached item in ``collection``.

        Returns the number of items enriched by this call.
        """
        epoch = self._epoch
        pending = [
            pr for pr in collection.snapshot() if pr.identity not in self._cache and pr.identity not in self._in_flight
        ]
        if not pending:
            LOG.debug("Nothing to enrich: %d item(s) already cached or in flight", len(collection))
            return 0

        semaphore = asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else None

        async def run(pr: PullRequest) -> _Outcome:
            try:
                if semaphore is None:
                    metadata = await fetch(pr)
                else:
                    async with semaphore:
                        metadata = await fetch(pr)
            except Exception as e:
                return pr, None, e
            return pr, metadata, None

        for pr in pending:
            self._in_flight.add(pr.identity)
        LOG.info("Enriching %d pull request(s)", len(pending))

        tasks: List[asyncio.Task] = [asyncio.ensure_future(run(pr)) for pr in pending]
        enriched = 0
        failed = 0
        try:
            for next_done in asyncio.as_completed(tasks):
                pr, metadata, error = await next_done
                if epoch != self._epoch:
                    LOG.debug("Dropping stale result for %s (epoch %d)", pr.id, epoch)
                    continue
                self._in_flight.discard(pr.identity)
                if error is not None or metadata is None:
                    failed += 1
                    self._failures[pr.identity] = error or ValueError("fetch returned no metadata")
                    LOG.warning("Enrichment failed for %s: %s", pr.id, error)
                    continue
                self._cache[pr.identity] = metadata
                self._failures.pop(pr.identity, None)
                if collection.set_metadata(pr.identity, metadata):
                    enriched += 1
                    if self._on_update is not None:
                        self._on_update(collection.get(pr.identity) or pr)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            if epoch == self._epoch:
                for pr in pending:
                    self._in_flight.discard(pr.identity)

        LOG.info("Enrichment finished: %d enriched, %d failed", enriched, failed)
        return enriched
