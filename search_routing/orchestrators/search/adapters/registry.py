"""Adapter registry: provider id -> adapter instance.

Adapter classes register themselves at import with @register_adapter; an
engine builds its own AdapterRegistry from them and may add or replace
entries (tests register fakes).
"""

import logging

from search_routing.orchestrators.search.adapters.interface import ProviderAdapter

logger = logging.getLogger(__name__)

_ADAPTER_CLASSES: dict[str, type[ProviderAdapter]] = {}


def register_adapter(adapter_cls: type[ProviderAdapter]) -> type[ProviderAdapter]:
    provider_id = getattr(adapter_cls, "provider_id", None)
    if not provider_id:
        raise ValueError("Adapter must define a non-empty provider_id")
    _ADAPTER_CLASSES[provider_id] = adapter_cls
    return adapter_cls


def registered_adapter_ids() -> list[str]:
    return sorted(_ADAPTER_CLASSES.keys())


class AdapterRegistry:
    def __init__(self) -> None:
        self._adapters: dict[str, ProviderAdapter] = {}

    @classmethod
    def with_builtin_adapters(cls) -> "AdapterRegistry":
        registry = cls()
        for provider_id, adapter_cls in _ADAPTER_CLASSES.items():
            registry.register(provider_id, adapter_cls())
        return registry

    def register(self, provider_id: str, adapter: ProviderAdapter) -> None:
        if provider_id in self._adapters:
            logger.debug("Registry: replacing adapter for '%s'", provider_id)
        self._adapters[provider_id] = adapter

    def unregister(self, provider_id: str) -> None:
        self._adapters.pop(provider_id, None)

    def get(self, provider_id: str) -> ProviderAdapter | None:
        return self._adapters.get(provider_id)

    def has(self, provider_id: str) -> bool:
        return provider_id in self._adapters

    def provider_ids(self) -> list[str]:
        return sorted(self._adapters.keys())
