"""SearchRoutingEngine: owns the stores, the health loop and the orchestrator.

Construction does not start the health loop: it is an asyncio task and needs a
running event loop, which __init__ may not have. Long-lived callers start it
with start() or `async with`; one-shot callers (the CLI) never start it and use
probe_health() for a single round. Until a probe fails, providers count as healthy.

Usage:
    async with SearchRoutingEngine(ConfigStore.from_file(path)) as engine:
        response = await engine.search(SearchRequest(query="ai", categories=["news"]))
"""

import time
from collections.abc import Callable
from datetime import date
from typing import Any

from search_routing.contracts.routing_config_v1 import SearchConfig
from search_routing.orchestrators.search.adapters.registry import AdapterRegistry
from search_routing.orchestrators.search.cache import ResultCache
from search_routing.orchestrators.search.config_store import ConfigStore
from search_routing.orchestrators.search.credentials import (
    CredentialStore,
    InMemoryCredentialStore,
)
from search_routing.orchestrators.search.health import HealthMonitor, ProbeFn
from search_routing.orchestrators.search.models import (
    ProviderHealth,
    SearchRequest,
    SearchResponse,
    UsageSnapshot,
)
from search_routing.orchestrators.search.orchestrator import SearchOrchestrator
from search_routing.orchestrators.search.selector import SourceSelector
from search_routing.orchestrators.search.usage import UsageTracker


class SearchRoutingEngine:
    def __init__(
        self,
        config_store: ConfigStore,
        registry: AdapterRegistry | None = None,
        credentials: CredentialStore | None = None,
        *,
        probe: ProbeFn | None = None,
        health_interval_sec: float = 300.0,
        probe_timeout_ms: int = 5000,
        today: Callable[[], date] = date.today,
        wall_clock: Callable[[], float] = time.time,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config_store = config_store
        self.registry = registry or AdapterRegistry.with_builtin_adapters()
        self.credentials = credentials or InMemoryCredentialStore()
        self.tracker = UsageTracker(config_store, today=today)
        self.selector = SourceSelector(self.tracker, self.credentials, clock=wall_clock)
        self.cache = ResultCache(clock=clock)
        self.health = HealthMonitor(
            config_store,
            self.tracker,
            probe=probe,
            interval_sec=health_interval_sec,
            default_timeout_ms=probe_timeout_ms,
        )
        self.orchestrator = SearchOrchestrator(
            config_store,
            self.tracker,
            self.selector,
            self.registry,
            self.credentials,
            cache=self.cache,
            clock=clock,
        )

    # -- lifecycle --------------------------------------------------------

    async def start(self) -> None:
        """Start the background health loop. Needs a running event loop."""
        self.health.start()

    async def stop(self) -> None:
        await self.health.stop()

    async def __aenter__(self) -> "SearchRoutingEngine":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    # -- search -----------------------------------------------------------

    async def search(self, request: SearchRequest) -> SearchResponse:
        return await self.orchestrator.search(request)

    async def search_or_raise(self, request: SearchRequest) -> SearchResponse:
        """Like search(), but raises ConfigurationError when no category resolves."""
        return await self.orchestrator.search(request, strict=True)

    # -- configuration ----------------------------------------------------

    @property
    def config(self) -> SearchConfig:
        return self.config_store.current

    def update_config(self, partial: dict[str, Any]) -> SearchConfig:
        config = self.config_store.update_config(partial)
        self.cache.clear()
        return config

    def set_credentials(self, keys: dict[str, str]) -> None:
        """Replace the caller key map (only for the in-memory store)."""
        if not isinstance(self.credentials, InMemoryCredentialStore):
            raise TypeError("set_credentials needs an InMemoryCredentialStore")
        self.credentials.set_credentials(keys)

    # -- diagnostics ------------------------------------------------------

    def get_usage_stats(self) -> UsageSnapshot:
        return self.tracker.snapshot()

    def reset_daily_usage(self) -> None:
        self.tracker.reset_daily_usage()

    def health_status(self) -> dict[str, bool]:
        return self.tracker.health_status()

    async def probe_health(self) -> dict[str, ProviderHealth]:
        """Run one probe round now instead of waiting for the loop."""
        return await self.health.probe_all()
