"""Orchestrators: routing pipelines (e.g. search)."""

from search_routing.orchestrators.search import (
    SearchOrchestrator,
    SearchRequest,
    SearchResponse,
    SearchRoutingEngine,
)

__all__ = [
    "SearchOrchestrator",
    "SearchRequest",
    "SearchResponse",
    "SearchRoutingEngine",
]
