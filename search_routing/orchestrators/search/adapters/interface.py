"""Standard interface for provider adapters used by the orchestrator.

Every adapter turns one provider's HTTP API into a list of AdapterResult and
raises ProviderCallError on failure.
"""

from abc import ABC, abstractmethod

from search_routing.contracts.routing_config_v1 import ProviderConfig
from search_routing.orchestrators.search.models import AdapterResult


class ProviderAdapter(ABC):
    """Base class for all provider adapters."""

    provider_id: str = ""

    @abstractmethod
    async def call(
        self,
        provider_id: str,
        provider: ProviderConfig,
        query: str,
        credential: str | None = None,
    ) -> list[AdapterResult]:
        """Execute one search call and return provider-neutral results."""
