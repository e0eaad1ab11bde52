"""Source selection: filter a category's providers, then order the survivors.

A provider is a candidate only when all of these hold:
  1. its category is enabled
  2. it is not disabled by the role override
  3. a credential is held when it needs a key (trial sources may stand in
     when the request allows them and the provider is not BYOK-only)
  4. it has trial / provider quota left for today
  5. the health state machine does not mark it unhealthy

Survivors are then ordered by the category's strategy (weighted, priority, round_robin).
Filtering is not an error: a removed provider simply never gets called.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from search_routing.contracts.routing_config_v1 import (
    CategoryConfig,
    RoleOverride,
    SearchConfig,
    SelectionStrategy,
)
from search_routing.orchestrators.search.constants import (
    DEFAULT_PROVIDER_WEIGHT,
    ROUND_ROBIN_PERIOD_SEC,
)
from search_routing.orchestrators.search.credentials import CredentialStore
from search_routing.orchestrators.search.models import SearchRequest
from search_routing.orchestrators.search.usage import UsageTracker

logger = logging.getLogger(__name__)


@dataclass
class Selection:
    """Ordered candidates for one category plus what each filter removed."""

    category: str
    providers: list[str] = field(default_factory=list)
    disabled: list[str] = field(default_factory=list)
    missing_credential: list[str] = field(default_factory=list)
    quota_exceeded: list[str] = field(default_factory=list)
    unhealthy: list[str] = field(default_factory=list)
    category_enabled: bool = True


def provider_weight(config: SearchConfig, provider_id: str, override: RoleOverride | None) -> float:
    if override is not None and override.weights and provider_id in override.weights:
        return override.weights[provider_id]
    provider = config.provider(provider_id)
    if provider is not None and provider.weight is not None:
        return provider.weight
    return DEFAULT_PROVIDER_WEIGHT


class SourceSelector:
    def __init__(
        self,
        tracker: UsageTracker,
        credentials: CredentialStore,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._tracker = tracker
        self._credentials = credentials
        self._clock = clock

    def select(self, config: SearchConfig, category_id: str, request: SearchRequest) -> list[str]:
        return self.explain(config, category_id, request).providers

    def explain(self, config: SearchConfig, category_id: str, request: SearchRequest) -> Selection:
        selection = Selection(category=category_id)
        category = config.category(category_id)
        if category is None or not category.enabled:
            selection.category_enabled = False
            return selection

        override = config.role_override(request.role_id)
        disabled = set(override.disable or []) if override is not None else set()

        survivors: list[str] = []
        for provider_id in category.providers:
            provider = config.provider(provider_id)
            if provider is None:
                continue
            if provider_id in disabled:
                selection.disabled.append(provider_id)
                continue

            has_credential = provider.requires_key and self._credentials.has_credential(provider_id)
            if request.force_byok_only:
                if not has_credential:
                    selection.missing_credential.append(provider_id)
                    continue
            elif provider.requires_key and not has_credential:
                if not (request.include_trial_sources and not provider.byok_only):
                    selection.missing_credential.append(provider_id)
                    continue

            if not self._tracker.has_quota_remaining(
                provider_id, category_id, has_credential=has_credential
            ):
                selection.quota_exceeded.append(provider_id)
                continue

            if not self._tracker.is_provider_healthy(provider_id):
                selection.unhealthy.append(provider_id)
                continue

            survivors.append(provider_id)

        selection.providers = self._order(config, category, survivors, override)
        logger.debug(
            "Selector[%s]: %s -> %s (strategy=%s)",
            category_id,
            category.providers,
            selection.providers,
            category.selection.value,
        )
        return selection

    def _order(
        self,
        config: SearchConfig,
        category: CategoryConfig,
        survivors: list[str],
        override: RoleOverride | None,
    ) -> list[str]:
        if not survivors:
            return []

        if category.selection == SelectionStrategy.WEIGHTED:
            # sorted() is stable: equal weights keep declared order
            return sorted(survivors, key=lambda pid: -provider_weight(config, pid, override))

        if category.selection == SelectionStrategy.PRIORITY:
            pins = override.pin if override is not None and override.pin else []
            pinned = [pid for pid in dict.fromkeys(pins) if pid in survivors]
            return pinned + [pid for pid in survivors if pid not in pinned]

        offset = int(self._clock() // ROUND_ROBIN_PERIOD_SEC) % len(survivors)
        return survivors[offset:] + survivors[:offset]
