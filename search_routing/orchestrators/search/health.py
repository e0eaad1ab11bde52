"""Health monitor: background probe loop feeding the tracker's health state machine."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

import httpx

from search_routing.contracts.routing_config_v1 import ProviderConfig
from search_routing.core.logger import logger as engine_log
from search_routing.orchestrators.search.config_store import ConfigStore
from search_routing.orchestrators.search.constants import DEFAULT_PROBE_TIMEOUT_MS
from search_routing.orchestrators.search.models import ProviderHealth
from search_routing.orchestrators.search.usage import UsageTracker

logger = logging.getLogger(__name__)

# (url, timeout_sec) -> HTTP status code
ProbeFn = Callable[[str, float], Awaitable[int]]


def probe_target(provider: ProviderConfig) -> str | None:
    """URL to probe: an absolute `probe` wins, a relative one is joined to base_url."""
    probe = provider.health.probe if provider.health else ""
    if probe.startswith(("http://", "https://")):
        return probe
    if not provider.base_url:
        return None
    if probe.startswith("/"):
        return provider.base_url.rstrip("/") + probe
    return provider.base_url


class HealthMonitor:
    def __init__(
        self,
        config_store: ConfigStore,
        tracker: UsageTracker,
        probe: ProbeFn | None = None,
        interval_sec: float = 300.0,
        default_timeout_ms: int = DEFAULT_PROBE_TIMEOUT_MS,
    ) -> None:
        self._config_store = config_store
        self._tracker = tracker
        self._probe = probe or self._http_probe
        self.interval_sec = interval_sec
        self.default_timeout_ms = default_timeout_ms
        self._client: httpx.AsyncClient | None = None
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _http_probe(self, url: str, timeout_sec: float) -> int:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True)
        response = await self._client.head(url, timeout=timeout_sec)
        return response.status_code

    async def check_provider(self, provider_id: str) -> ProviderHealth | None:
        """Probe one provider, retrying up to retry_count times before counting a failure."""
        provider = self._config_store.current.provider(provider_id)
        if provider is None or provider.health is None:
            return None
        url = probe_target(provider)
        if url is None:
            logger.debug("Health: no probe target for '%s'", provider_id)
            return None

        timeout_sec = (provider.health.timeout_ms or self.default_timeout_ms) / 1000
        attempts = 1 + (provider.health.retry_count or 0)
        error = ""
        for _ in range(attempts):
            try:
                status = await asyncio.wait_for(self._probe(url, timeout_sec), timeout_sec)
            except TimeoutError:
                error = f"probe timed out after {timeout_sec:.1f}s"
                continue
            except Exception as e:
                error = f"{type(e).__name__}: {e}"
                continue
            if status < 400:
                record = self._tracker.record_health_success(provider_id)
                engine_log.health_probe(provider_id, True, 0, True)
                return record
            error = f"HTTP {status}"

        record = self._tracker.record_health_failure(provider_id, error)
        engine_log.health_probe(
            provider_id, False, record.consecutive_failures, record.is_healthy, error
        )
        return record

    async def probe_all(self) -> dict[str, ProviderHealth]:
        """Run one probe round over every provider that declares a health block."""
        provider_ids = [
            pid for pid, p in self._config_store.current.providers.items() if p.health is not None
        ]
        records = await asyncio.gather(*(self.check_provider(pid) for pid in provider_ids))
        return {pid: rec for pid, rec in zip(provider_ids, records) if rec is not None}

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_sec)
            try:
                await self.probe_all()
            except Exception as e:
                engine_log.error("Health probe round failed", exception=e)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="search-routing-health")
        logger.info("Health monitor started (every %ss)", self.interval_sec)

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        if self._client is not None:
            await self._client.aclose()
            self._client = None
