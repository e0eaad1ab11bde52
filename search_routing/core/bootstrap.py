"""Engine wiring at startup: routing document, adapters, credentials."""

from pathlib import Path

from search_routing.core.config import settings
from search_routing.core.logger import logger
from search_routing.orchestrators.search.adapters import AdapterRegistry
from search_routing.orchestrators.search.config_store import ConfigStore
from search_routing.orchestrators.search.credentials import (
    ChainedCredentialStore,
    EnvCredentialStore,
    InMemoryCredentialStore,
)
from search_routing.orchestrators.search.engine import SearchRoutingEngine


def build_engine(
    config_path: Path | None = None,
    keys: dict[str, str] | None = None,
) -> SearchRoutingEngine:
    """Build an engine from the routing document; caller keys win over env-held ones."""
    path = config_path or settings.routing_config_path
    store = ConfigStore.from_file(path)

    registry = AdapterRegistry.with_builtin_adapters()
    missing = [pid for pid in store.current.providers if not registry.has(pid)]
    if missing:
        logger.warning(
            "Providers without a registered adapter (calls will fail): %s", ", ".join(missing)
        )

    if keys is not None:
        credentials = ChainedCredentialStore(
            InMemoryCredentialStore(keys),
            EnvCredentialStore(settings.credential_env_prefix),
        )
    else:
        credentials = EnvCredentialStore(settings.credential_env_prefix)

    return SearchRoutingEngine(
        store,
        registry,
        credentials,
        health_interval_sec=settings.health_interval_sec,
        probe_timeout_ms=settings.probe_timeout_ms,
    )
