"""Usage tracker: date-keyed call counters and the provider health map.

All state lives behind one lock. Search tasks and the health loop write to it
concurrently; selection reads may be slightly stale, which is acceptable for
quota accounting.
"""

import logging
import threading
from collections.abc import Callable
from datetime import date, datetime

from search_routing.contracts.routing_config_v1 import KeyType
from search_routing.orchestrators.search.config_store import ConfigStore
from search_routing.orchestrators.search.constants import UNHEALTHY_AFTER_FAILURES
from search_routing.orchestrators.search.models import ProviderHealth, UsageSnapshot

logger = logging.getLogger(__name__)


class UsageTracker:
    def __init__(
        self,
        config_store: ConfigStore,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._config_store = config_store
        self._today = today
        self._lock = threading.Lock()
        self._daily_trial_usage: dict[str, dict[str, int]] = {}
        self._daily_byok_calls: dict[str, int] = {}
        self._daily_provider_calls: dict[str, dict[str, int]] = {}
        self._provider_health: dict[str, ProviderHealth] = {}
        self._last_reset_date = self._day_key()

    def _day_key(self) -> str:
        return self._today().isoformat()

    # -- counters ---------------------------------------------------------

    def track_usage(
        self,
        provider_id: str,
        category: str,
        *,
        used_credential: bool = False,
    ) -> None:
        """Count one successful provider call.

        A trial-eligible provider called without the caller's key draws on the
        category's trial allotment; a BYOK provider called with the caller's key
        counts as a BYOK call. One call never increments both.
        """
        provider = self._config_store.current.provider(provider_id)
        if provider is None:
            logger.warning("Usage: untracked call to unknown provider '%s'", provider_id)
            return
        day = self._day_key()
        with self._lock:
            calls = self._daily_provider_calls.setdefault(day, {})
            calls[provider_id] = calls.get(provider_id, 0) + 1
            if provider.trial_applies and not used_credential:
                trial = self._daily_trial_usage.setdefault(day, {})
                trial[category] = trial.get(category, 0) + 1
            elif provider.key_type == KeyType.BYOK:
                self._daily_byok_calls[day] = self._daily_byok_calls.get(day, 0) + 1

    def has_quota_remaining(
        self,
        provider_id: str,
        category: str | None = None,
        *,
        has_credential: bool = False,
    ) -> bool:
        config = self._config_store.current
        provider = config.provider(provider_id)
        if provider is None:
            return False
        category = category or provider.category
        day = self._day_key()

        with self._lock:
            if provider.trial_applies and not has_credential:
                if not config.trial.enabled:
                    return False
                used = self._daily_trial_usage.get(day, {}).get(category, 0)
                if used >= config.trial.per_user_daily.get(category, 0):
                    return False

            if provider.quota is not None:
                daily_cap = provider.quota.daily_cap
                if daily_cap is not None:
                    if self._daily_provider_calls.get(day, {}).get(provider_id, 0) >= daily_cap:
                        return False
                monthly_cap = provider.quota.monthly_cap
                if monthly_cap is not None:
                    month = day[:7]
                    used_month = sum(
                        calls.get(provider_id, 0)
                        for d, calls in self._daily_provider_calls.items()
                        if d.startswith(month)
                    )
                    if used_month >= monthly_cap:
                        return False
        return True

    def get_trial_usage_for_today(self) -> dict[str, int]:
        with self._lock:
            return dict(self._daily_trial_usage.get(self._day_key(), {}))

    def get_byok_calls_for_today(self) -> int:
        with self._lock:
            return self._daily_byok_calls.get(self._day_key(), 0)

    def get_provider_calls_for_today(self) -> dict[str, int]:
        with self._lock:
            return dict(self._daily_provider_calls.get(self._day_key(), {}))

    def reset_daily_usage(self) -> None:
        """Clear every counter unconditionally. Health state is kept."""
        with self._lock:
            self._daily_trial_usage = {}
            self._daily_byok_calls = {}
            self._daily_provider_calls = {}
            self._last_reset_date = self._day_key()
        logger.info("Usage: daily counters reset")

    # -- health -----------------------------------------------------------

    def is_provider_healthy(self, provider_id: str) -> bool:
        with self._lock:
            record = self._provider_health.get(provider_id)
            return record is None or record.is_healthy

    def get_health(self, provider_id: str) -> ProviderHealth | None:
        with self._lock:
            record = self._provider_health.get(provider_id)
            return record.model_copy() if record is not None else None

    def record_health_success(self, provider_id: str) -> ProviderHealth:
        with self._lock:
            record = ProviderHealth(
                is_healthy=True,
                last_check=datetime.now(),
                consecutive_failures=0,
                last_error=None,
            )
            self._provider_health[provider_id] = record
            return record.model_copy()

    def record_health_failure(self, provider_id: str, error: str) -> ProviderHealth:
        """One more failed probe; the provider turns unhealthy at the third in a row."""
        with self._lock:
            previous = self._provider_health.get(provider_id) or ProviderHealth()
            failures = previous.consecutive_failures + 1
            record = ProviderHealth(
                is_healthy=previous.is_healthy and failures < UNHEALTHY_AFTER_FAILURES,
                last_check=datetime.now(),
                consecutive_failures=failures,
                last_error=error,
            )
            self._provider_health[provider_id] = record
            return record.model_copy()

    def health_status(self) -> dict[str, bool]:
        with self._lock:
            return {pid: record.is_healthy for pid, record in self._provider_health.items()}

    def snapshot(self) -> UsageSnapshot:
        with self._lock:
            return UsageSnapshot(
                daily_trial_usage={d: dict(c) for d, c in self._daily_trial_usage.items()},
                daily_byok_calls=dict(self._daily_byok_calls),
                daily_provider_calls={d: dict(c) for d, c in self._daily_provider_calls.items()},
                provider_health={
                    pid: record.model_copy() for pid, record in self._provider_health.items()
                },
                last_reset_date=self._last_reset_date,
            )
