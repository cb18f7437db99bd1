"""List coordinator: load -> enrich -> filter/search for the pull request list.

States: idle -> loading -> loaded | failed; reload goes back to loading.

On entering ``loaded`` the enrichment cache is cleared and enrichment starts
as a background task, so the list is visible before any detail fetch
returns. ``visible_items`` is always ``FilterEngine.apply(configuration,
query, collection, teams)`` and is recomputed when the collection changes
(new load or an enriched item), when the filter configuration changes, when
teams are resolved, and when a debounced search query settles.

All state is mutated on the event loop thread; call the methods from
coroutines running on that loop.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Set, Tuple

from gitreviewit.adapters.base import APIError, ReviewProvider, UnknownAPIError
from gitreviewit.models import (
    EnrichedMetadata,
    FilterConfiguration,
    FilterMetadata,
    Identity,
    PullRequest,
    PullRequestCollection,
    Team,
)
from gitreviewit.services.enrichment import EnrichmentOrchestrator
from gitreviewit.services.filter_engine import FilterEngine
from gitreviewit.services.filter_store import FilterStore, FilterStoreError
from gitreviewit.services.status import build_metadata

LOG = logging.getLogger("gitreviewit.list_coordinator")

DEFAULT_DEBOUNCE_SECONDS = 0.3
TEAMS_UNAVAILABLE_NOTICE = "Team filtering is unavailable."
TEAM_FILTERS_CLEARED_NOTICE = "Selected team filters were cleared."


class ListState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


Listener = Callable[["ListCoordinator"], None]
Sleep = Callable[[float], Awaitable[None]]


class ListCoordinator:
    """Owns the loaded pull requests and exposes the filtered, ranked view."""

    def __init__(
        self,
        provider: ReviewProvider,
        store: FilterStore | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        max_concurrency: int | None = None,
        engine: FilterEngine | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._provider = provider
        self._store = store
        self._debounce_seconds = debounce_seconds
        self._engine = engine or FilterEngine()
        self._sleep = sleep
        self._orchestrator = EnrichmentOrchestrator(max_concurrency=max_concurrency, on_update=self._on_item_enriched)

        self._state = ListState.IDLE
        self._error: APIError | None = None
        self._collection = PullRequestCollection()
        self._configuration = FilterConfiguration.empty()
        self._query = ""
        self._teams: List[Team] = []
        self._teams_available = True
        self._notice: str | None = None
        self._visible: Tuple[PullRequest, ...] = ()

        self._listeners: List[Listener] = []
        self._search_task: asyncio.Task | None = None
        self._enrichment_task: asyncio.Task | None = None
        self._teams_task: asyncio.Task | None = None
        self._background: Set[asyncio.Task] = set()

    # Read side

    @property
    def state(self) -> ListState:
        return self._state

    @property
    def error(self) -> APIError | None:
        """Failure of the last load, when state is failed."""
        return self._error

    @property
    def items(self) -> Tuple[PullRequest, ...]:
        """Snapshot of the whole loaded collection, unfiltered."""
        return self._collection.snapshot()

    @property
    def visible_items(self) -> List[PullRequest]:
        return list(self._visible)

    @property
    def search_query(self) -> str:
        """Currently applied (settled) query."""
        return self._query

    @property
    def filter_configuration(self) -> FilterConfiguration:
        return self._configuration

    @property
    def teams(self) -> List[Team]:
        return list(self._teams)

    @property
    def teams_available(self) -> bool:
        return self._teams_available

    @property
    def notice(self) -> str | None:
        """User-facing notice, e.g. when team filtering became unavailable."""
        return self._notice

    @property
    def filter_metadata(self) -> FilterMetadata:
        return FilterMetadata.from_pull_requests(
            self._collection.snapshot(), teams=self._teams, teams_available=self._teams_available
        )

    @property
    def enrichment_failures(self) -> dict[Identity, Exception]:
        return self._orchestrator.failures

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(self)`` after every visible change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Loading

    async def load(self) -> None:
        """Load the list, then start enrichment and team resolution in the background."""
        if self._state == ListState.LOADING:
            LOG.debug("Load already in progress, ignoring")
            return

        self._error = None
        self._set_state(ListState.LOADING)
        try:
            items = await self._provider.list_items()
        except APIError as e:
            LOG.warning("Loading pull requests failed: %s", e)
            self._fail(e)
            return
        except Exception as e:
            LOG.exception("Unexpected error while loading pull requests: %s", e)
            self._fail(UnknownAPIError(str(e)))
            return

        self._replace_collection(PullRequestCollection(items))
        self._set_state(ListState.LOADED, notify=False)
        LOG.info("Loaded %d pull request(s)", len(self._collection))
        self._refresh()

        self._enrichment_task = self._spawn(self._orchestrator.enrich(self._collection, self._fetch_metadata))
        self._teams_task = self._spawn(self.refresh_teams())

    async def reload(self) -> None:
        """Retry after a failure or refresh a loaded list."""
        await self.load()

    async def wait_for_enrichment(self) -> None:
        """Wait until the enrichment started by the last load has finished."""
        if self._enrichment_task is not None:
            await asyncio.wait({self._enrichment_task})

    async def wait_for_teams(self) -> None:
        if self._teams_task is not None:
            await asyncio.wait({self._teams_task})

    async def _fetch_metadata(self, pr: PullRequest) -> EnrichedMetadata:
        fields = await self._provider.fetch_enriched_metadata(pr.owner, pr.repo_name, pr.number)
        return build_metadata(fields)

    def _on_item_enriched(self, pr: PullRequest) -> None:
        LOG.debug("Enriched %s", pr.id)
        self._refresh()

    # Search

    def set_search_query(self, query: str) -> None:
        """Apply ``query`` after the debounce delay; a newer call cancels this one."""
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()
        self._search_task = asyncio.get_running_loop().create_task(self._apply_query_later(query))

    def clear_search_query(self) -> None:
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()
        self._search_task = None
        self._query = ""
        self._refresh()

    async def settle_search(self) -> None:
        """Wait for the pending debounced query, if any, to be applied."""
        if self._search_task is not None:
            await asyncio.wait({self._search_task})

    async def _apply_query_later(self, query: str) -> None:
        await self._sleep(self._debounce_seconds)
        self._query = query
        LOG.debug("Search query settled: %r", query)
        self._refresh()

    # Filters

    def set_filter_configuration(self, configuration: FilterConfiguration) -> None:
        """Replace the filter configuration, persist it and recompute."""
        self._configuration = configuration
        self._persist()
        self._refresh()

    def restore_filters(self) -> FilterConfiguration:
        """Load the persisted configuration; unreadable data is cleared."""
        configuration: FilterConfiguration | None = None
        if self._store is not None:
            try:
                configuration = self._store.load()
            except FilterStoreError as e:
                LOG.warning("Discarding unreadable filter configuration: %s", e)
                self._store.clear()
        self._configuration = configuration or FilterConfiguration.empty()
        self._refresh()
        return self._configuration

    async def refresh_teams(self) -> None:
        """Resolve teams for the team filter stage.

        On failure team filtering becomes unavailable: selected teams are
        dropped from the (persisted) configuration and a notice is set, while
        organization, repository and search filters keep working.
        """
        try:
            teams = await self._provider.resolve_teams()
        except APIError as e:
            LOG.warning("Team filtering unavailable: %s", e)
            self._teams = []
            self._teams_available = False
            notice = TEAMS_UNAVAILABLE_NOTICE
            if self._configuration.teams:
                self._configuration = self._configuration.without_teams()
                self._persist()
                notice = f"{notice} {TEAM_FILTERS_CLEARED_NOTICE}"
            self._notice = notice
            self._refresh()
            return

        self._teams = list(teams)
        self._teams_available = True
        self._notice = None
        LOG.info("Resolved %d team(s)", len(self._teams))
        self._refresh()

    def dismiss_notice(self) -> None:
        self._notice = None
        self._notify()

    # Lifecycle

    async def close(self) -> None:
        """Cancel background work (enrichment, team resolution, pending search)."""
        tasks = set(self._background)
        if self._search_task is not None:
            tasks.add(self._search_task)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # Internals

    def _spawn(self, coro: Awaitable) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background_done)
        return task

    def _background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOG.error("Background task failed: %s", exc, exc_info=exc)

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(self._configuration)
        except OSError as e:
            LOG.warning("Could not persist filter configuration: %s", e)

    def _fail(self, error: APIError) -> None:
        """Failed state shows nothing: drop the previous list and its enrichment."""
        self._error = error
        self._replace_collection(PullRequestCollection())
        self._refresh(notify=False)
        self._set_state(ListState.FAILED)

    def _replace_collection(self, collection: PullRequestCollection) -> None:
        if self._enrichment_task is not None and not self._enrichment_task.done():
            self._enrichment_task.cancel()
        self._enrichment_task = None
        self._orchestrator.reset()
        self._collection = collection

    def _set_state(self, state: ListState, notify: bool = True) -> None:
        LOG.info("List state %s -> %s", self._state.value, state.value)
        self._state = state
        if notify:
            self._notify()

    def _refresh(self, notify: bool = True) -> None:
        self._visible = tuple(
            self._engine.apply(self._configuration, self._query, self._collection.snapshot(), self._teams)
        )
        if notify:
            self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                LOG.exception("Listener failed: %s", e)
