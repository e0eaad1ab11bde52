"""Provider adapters (one per provider id) and the registry the orchestrator dispatches through."""

from search_routing.orchestrators.search.adapters.interface import ProviderAdapter
from search_routing.orchestrators.search.adapters.registry import (
    AdapterRegistry,
    register_adapter,
    registered_adapter_ids,
)

# Adapter registrations
from search_routing.orchestrators.search.adapters.arxiv import ArxivAdapter  # noqa: F401, E402
from search_routing.orchestrators.search.adapters.openalex import OpenAlexAdapter  # noqa: F401, E402
from search_routing.orchestrators.search.adapters.pubmed import PubMedAdapter  # noqa: F401, E402
from search_routing.orchestrators.search.adapters.semanticscholar import (  # noqa: F401, E402
    SemanticScholarAdapter,
)
from search_routing.orchestrators.search.adapters.serper import (  # noqa: F401, E402
    SerperAdapter,
    SerperNewsAdapter,
)
from search_routing.orchestrators.search.adapters.wikimedia import WikimediaAdapter  # noqa: F401, E402

__all__ = [
    "AdapterRegistry",
    "ProviderAdapter",
    "register_adapter",
    "registered_adapter_ids",
]
