"""Search routing: provider selection, fan-out, fallback and ranking."""

from search_routing.orchestrators.search.config_store import ConfigStore
from search_routing.orchestrators.search.engine import SearchRoutingEngine
from search_routing.orchestrators.search.models import (
    SearchError,
    SearchRequest,
    SearchResponse,
    SearchResult,
)
from search_routing.orchestrators.search.orchestrator import SearchOrchestrator

__all__ = [
    "ConfigStore",
    "SearchError",
    "SearchOrchestrator",
    "SearchRequest",
    "SearchResponse",
    "SearchResult",
    "SearchRoutingEngine",
]
