"""Search orchestrator: resolve -> select -> call adapters -> fallback -> rank.

Pipeline for one search:
  1. CategoryResolver narrows the enabled categories for the role and request
  2. Each category runs as its own task; SourceSelector orders its providers
  3. The first max_parallel providers are called under one global deadline
  4. Failures become SearchError entries; siblings keep running. Answers are
     merged in category order, then selection order, regardless of which call
     finished first
  5. If nothing came back, the fallback cascade runs one keyless provider at a time
  6. ResultRanker dedups, orders and truncates
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from search_routing.contracts.routing_config_v1 import (
    CategoryPolicy,
    FallbackPolicy,
    ProviderConfig,
    SearchConfig,
)
from search_routing.core.logger import logger as engine_log
from search_routing.orchestrators.search.adapters.registry import AdapterRegistry
from search_routing.orchestrators.search.cache import ResultCache
from search_routing.orchestrators.search.categories import CategoryResolver
from search_routing.orchestrators.search.config_store import ConfigStore
from search_routing.orchestrators.search.constants import (
    CATEGORY_ERROR_PROVIDER,
    DEFAULT_CONFIDENCE,
    FALLBACK_CATEGORY,
    FALLBACK_CONFIDENCE_FACTOR,
    FALLBACK_PROVIDERS,
    FALLBACK_RESULT_CAP,
    ROUTER_ERROR_PROVIDER,
    SYSTEM_ERROR_CATEGORY,
    ErrorKind,
)
from search_routing.orchestrators.search.credentials import CredentialStore
from search_routing.orchestrators.search.errors import (
    ConfigurationError,
    HealthCheckFailedError,
    ProviderCallError,
    ProviderTimeoutError,
    QuotaExceededError,
    SearchRoutingError,
    SystemFault,
)
from search_routing.orchestrators.search.models import (
    AdapterResult,
    SearchError,
    SearchRequest,
    SearchResponse,
    SearchResult,
)
from search_routing.orchestrators.search.ranker import ResultRanker
from search_routing.orchestrators.search.selector import Selection, SourceSelector
from search_routing.orchestrators.search.usage import UsageTracker

logger = logging.getLogger(__name__)


def fill_confidence(reported: float | None, provider: ProviderConfig | None) -> float:
    """Adapter confidence clamped to [0, 1]; derived from provider weight when missing."""
    if reported is not None:
        return min(1.0, max(0.0, reported))
    if provider is not None and provider.weight is not None:
        return min(0.95, 0.5 + provider.weight / 100)
    return DEFAULT_CONFIDENCE


def to_search_error(exc: Exception, provider_id: str, category: str) -> SearchError:
    if not isinstance(exc, SearchRoutingError):
        exc = ProviderCallError(f"{type(exc).__name__}: {exc}", provider=provider_id, category=category)
    return SearchError(
        provider=provider_id,
        category=category,
        error=str(exc),
        is_quota_exceeded=isinstance(exc, QuotaExceededError),
        is_health_failed=isinstance(exc, HealthCheckFailedError),
        kind=exc.kind,
    )


@dataclass
class SearchRun:
    """Mutable per-search merge buffer. Only touched from the event loop thread."""

    request: SearchRequest
    config: SearchConfig
    deadline: float
    results: list[SearchResult] = field(default_factory=list)
    sources_used: list[str] = field(default_factory=list)
    categories_searched: list[str] = field(default_factory=list)
    errors: list[SearchError] = field(default_factory=list)
    fallback_used: bool = False

    def add_source(self, provider_id: str) -> None:
        if provider_id not in self.sources_used:
            self.sources_used.append(provider_id)


class SearchOrchestrator:
    def __init__(
        self,
        config_store: ConfigStore,
        tracker: UsageTracker,
        selector: SourceSelector,
        registry: AdapterRegistry,
        credentials: CredentialStore,
        resolver: CategoryResolver | None = None,
        ranker: ResultRanker | None = None,
        cache: ResultCache | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config_store = config_store
        self._tracker = tracker
        self._selector = selector
        self._registry = registry
        self._credentials = credentials
        self._resolver = resolver or CategoryResolver()
        self._ranker = ranker or ResultRanker()
        self._cache = cache if cache is not None else ResultCache()
        self._clock = clock

    async def search(self, request: SearchRequest, *, strict: bool = False) -> SearchResponse:
        """Run one search. Always returns a response unless strict and no category resolves."""
        start = self._clock()
        # One config reference for the whole search; updates apply to the next call.
        config = self._config_store.current
        categories = self._resolver.resolve(config, request.role_id, request.categories)
        engine_log.search_start(request.query, request.role_id, categories)

        run = SearchRun(
            request=request,
            config=config,
            deadline=start + config.routing.timeout_ms / 1000,
        )

        if not categories:
            error = ConfigurationError(
                f"No enabled category resolved for role '{request.role_id}'"
                + (f" and categories {request.categories}" if request.categories else ""),
                provider=ROUTER_ERROR_PROVIDER,
                category=SYSTEM_ERROR_CATEGORY,
            )
            if strict:
                raise error
            run.errors.append(to_search_error(error, ROUTER_ERROR_PROVIDER, SYSTEM_ERROR_CATEGORY))
            return self._respond(run, [], start)

        try:
            settled = await asyncio.gather(
                *(self._search_category(run, category_id) for category_id in categories),
                return_exceptions=True,
            )
            # merge in category order, not completion order
            for category_id, outcome in zip(categories, settled):
                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, Exception):
                        raise outcome
                    logger.warning("Category task %s failed: %s", category_id, outcome)
                    run.errors.append(
                        to_search_error(
                            SystemFault(str(outcome), category=category_id),
                            CATEGORY_ERROR_PROVIDER,
                            category_id,
                        )
                    )
                    continue
                for provider_id, results in outcome:
                    run.add_source(provider_id)
                    run.results.extend(results)

            if not run.results and config.routing.fallback != FallbackPolicy.NONE:
                await self._fallback(
                    run, trial_only=config.routing.fallback == FallbackPolicy.TRIAL_ONLY
                )

            ranked = self._ranker.rank(run.results, request.query, request.max_results)
        except Exception as e:
            engine_log.error("Search pipeline fault", exception=e)
            run.errors.append(
                to_search_error(SystemFault(str(e)), ROUTER_ERROR_PROVIDER, SYSTEM_ERROR_CATEGORY)
            )
            ranked = []

        return self._respond(run, ranked, start)

    # -- per category -----------------------------------------------------

    async def _search_category(
        self, run: SearchRun, category_id: str
    ) -> list[tuple[str, list[SearchResult]]]:
        """(provider id, results) for each provider that answered, in selection order."""
        config = run.config
        selection = self._selector.explain(config, category_id, run.request)
        category = config.category(category_id)
        if not selection.providers or category is None:
            run.errors.append(self._empty_selection_error(config, selection))
            return []

        chosen = selection.providers[: min(category.max_parallel, len(selection.providers))]
        run.categories_searched.append(category_id)
        answered: list[tuple[str, list[SearchResult]]] = []

        if config.routing.category_policy == CategoryPolicy.ONE_PER_CATEGORY:
            # failover: next candidate only when the previous one produced nothing
            for provider_id in chosen:
                results = await self._call_provider(run, category_id, provider_id)
                if results is not None:
                    answered.append((provider_id, results))
                    if results:
                        break
            return answered

        semaphore = asyncio.Semaphore(category.max_parallel)

        async def bounded(provider_id: str) -> list[SearchResult] | None:
            async with semaphore:
                return await self._call_provider(run, category_id, provider_id)

        settled = await asyncio.gather(*(bounded(pid) for pid in chosen), return_exceptions=True)
        for provider_id, outcome in zip(chosen, settled):
            if isinstance(outcome, Exception):
                self._record_error(run, SystemFault(str(outcome)), provider_id, category_id)
            elif isinstance(outcome, BaseException):
                raise outcome
            elif outcome is not None:
                answered.append((provider_id, outcome))
        return answered

    def _empty_selection_error(self, config: SearchConfig, selection: Selection) -> SearchError:
        if not selection.category_enabled:
            message = "Category is disabled"
            kind = ErrorKind.CONFIGURATION
        elif selection.quota_exceeded:
            message = config.trial.copy_.limit_hit
            kind = ErrorKind.QUOTA_EXCEEDED
        elif selection.unhealthy:
            message = f"All providers unhealthy: {', '.join(selection.unhealthy)}"
            kind = ErrorKind.HEALTH_FAILED
        elif selection.missing_credential:
            message = f"No credential for: {', '.join(selection.missing_credential)}"
            kind = ErrorKind.CONFIGURATION
        else:
            message = "No provider available"
            kind = ErrorKind.CONFIGURATION
        logger.info("Category %s has no candidates: %s", selection.category, message)
        return SearchError(
            provider=CATEGORY_ERROR_PROVIDER,
            category=selection.category,
            error=message,
            is_quota_exceeded=bool(selection.quota_exceeded),
            is_health_failed=bool(selection.unhealthy),
            kind=kind,
        )

    # -- per provider -----------------------------------------------------

    async def _invoke(
        self, run: SearchRun, provider_id: str, provider: ProviderConfig, category: str
    ) -> tuple[list[AdapterResult], bool] | None:
        """Call the adapter under the remaining deadline. None means the failure was recorded."""
        adapter = self._registry.get(provider_id)
        if adapter is None:
            self._record_error(
                run,
                ProviderCallError(f"No adapter registered for '{provider_id}'"),
                provider_id,
                category,
            )
            return None

        credential = None
        if provider.requires_key and self._credentials.has_credential(provider_id):
            credential = self._credentials.get_credential(provider_id)

        timeout_ms = run.config.routing.timeout_ms
        remaining = run.deadline - self._clock()
        if remaining <= 0:
            self._record_error(
                run,
                ProviderTimeoutError(f"Search deadline of {timeout_ms}ms passed before call"),
                provider_id,
                category,
            )
            return None

        try:
            raw = await asyncio.wait_for(
                adapter.call(provider_id, provider, run.request.query, credential),
                remaining,
            )
        except TimeoutError:
            self._record_error(
                run,
                ProviderTimeoutError(f"No response within the {timeout_ms}ms search deadline"),
                provider_id,
                category,
            )
            return None
        except Exception as e:
            self._record_error(run, e, provider_id, category)
            return None
        return list(raw or []), credential is not None

    async def _call_provider(
        self, run: SearchRun, category_id: str, provider_id: str
    ) -> list[SearchResult] | None:
        """One provider call for a category; None means it failed."""
        provider = run.config.provider(provider_id)
        if provider is None:
            return None

        ttl = run.config.routing.cache_ttl_sec.get(category_id, 0)
        if ttl > 0:
            cached = self._cache.get(category_id, provider_id, run.request.query)
            if cached is not None:
                engine_log.provider_call(provider_id, category_id, len(cached), 0.0, cached=True)
                return cached

        t0 = self._clock()
        outcome = await self._invoke(run, provider_id, provider, category_id)
        if outcome is None:
            return None
        raw, used_credential = outcome
        duration_ms = (self._clock() - t0) * 1000

        results = [
            self._normalize(item, i, provider_id, category_id, provider) for i, item in enumerate(raw)
        ]
        self._tracker.track_usage(provider_id, category_id, used_credential=used_credential)
        if ttl > 0:
            self._cache.put(category_id, provider_id, run.request.query, results, ttl)
        engine_log.provider_call(provider_id, category_id, len(results), duration_ms)
        return results

    def _normalize(
        self,
        item: AdapterResult,
        index: int,
        provider_id: str,
        category: str,
        provider: ProviderConfig | None,
        factor: float = 1.0,
    ) -> SearchResult:
        return SearchResult(
            id=item.id or f"{provider_id}-{index}",
            title=item.title,
            url=item.url,
            snippet=item.snippet,
            source=provider_id,
            category=category,
            confidence=fill_confidence(item.confidence, provider) * factor,
            published_date=item.published_date,
            image_url=item.image_url,
            metadata=dict(item.metadata),
        )

    def _record_error(self, run: SearchRun, exc: Exception, provider_id: str, category: str) -> None:
        error = to_search_error(exc, provider_id, category)
        run.errors.append(error)
        engine_log.provider_error(
            provider_id, category, error.error, timed_out=error.kind == ErrorKind.TIMEOUT
        )

    # -- fallback ---------------------------------------------------------

    async def _fallback(self, run: SearchRun, *, trial_only: bool = False) -> None:
        """Sequential cascade over the keyless list until enough results are gathered."""
        run.fallback_used = True
        gathered: list[SearchResult] = []
        attempted: list[str] = []

        for provider_id in FALLBACK_PROVIDERS:
            if len(gathered) >= FALLBACK_RESULT_CAP:
                break
            provider = run.config.provider(provider_id)
            if provider is None or not self._registry.has(provider_id):
                continue
            if not self._tracker.is_provider_healthy(provider_id):
                continue
            if trial_only and not (
                provider.trial_applies
                and self._tracker.has_quota_remaining(provider_id, provider.category)
            ):
                continue

            attempted.append(provider_id)
            outcome = await self._invoke(run, provider_id, provider, FALLBACK_CATEGORY)
            if outcome is None:
                continue
            raw, _ = outcome
            gathered.extend(
                self._normalize(
                    item, i, provider_id, FALLBACK_CATEGORY, provider, FALLBACK_CONFIDENCE_FACTOR
                )
                for i, item in enumerate(raw)
            )
            if raw:
                run.add_source(provider_id)

        gathered = gathered[:FALLBACK_RESULT_CAP]
        run.results.extend(gathered)
        engine_log.fallback(attempted, len(gathered))

    # -- response ---------------------------------------------------------

    def _respond(self, run: SearchRun, ranked: list[SearchResult], start: float) -> SearchResponse:
        elapsed_ms = (self._clock() - start) * 1000
        response = SearchResponse(
            results=ranked,
            sources_used=list(run.sources_used),
            categories_searched=list(run.categories_searched),
            trial_quota_used=self._tracker.get_trial_usage_for_today(),
            byok_calls_made=self._tracker.get_byok_calls_for_today(),
            search_time_ms=round(elapsed_ms, 1),
            fallback_used=run.fallback_used,
            errors=list(run.errors),
        )
        engine_log.search_complete(
            len(ranked), response.sources_used, len(response.errors), elapsed_ms, run.fallback_used
        )
        return response
