"""Request, result and response models for the routing engine.

SearchResult is the provider-neutral result type every adapter's output is
normalized into; SearchResponse is what callers always get back.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from search_routing.orchestrators.search.constants import DEFAULT_MAX_RESULTS, ErrorKind


class SearchRequest(BaseModel):
    """One search call: free-text query plus the requesting role."""

    query: str = Field(description="Free-text query")
    role_id: str = Field(default="default", description="Requesting role identifier")
    categories: list[str] | None = Field(
        default=None, description="Optional category filter; None or empty = all"
    )
    max_results: int = Field(default=DEFAULT_MAX_RESULTS, ge=0)
    include_trial_sources: bool = Field(
        default=False,
        description="Allow keyed providers without a held credential when they have a trial allotment",
    )
    force_byok_only: bool = Field(
        default=False,
        description="Only call keyed providers for which the caller holds a credential",
    )


class AdapterResult(BaseModel):
    """One item as returned by a provider adapter, before normalization."""

    id: str = Field(default="")
    title: str = Field(default="")
    url: str = Field(default="")
    snippet: str = Field(default="")
    confidence: float | None = Field(default=None)
    published_date: datetime | None = Field(default=None)
    image_url: str | None = Field(default=None)
    metadata: dict[str, Any] = Field(default_factory=dict)


class SearchResult(BaseModel):
    id: str
    title: str = Field(default="")
    url: str = Field(default="")
    snippet: str = Field(default="")
    source: str = Field(description="Provider id that produced this result")
    category: str = Field(description="Category searched, or 'fallback'")
    confidence: float = Field(ge=0.0, le=1.0)
    published_date: datetime | None = Field(default=None)
    image_url: str | None = Field(default=None)
    metadata: dict[str, Any] = Field(default_factory=dict)


class SearchError(BaseModel):
    """A contained failure attached to a response; never raised."""

    provider: str
    category: str
    error: str
    is_quota_exceeded: bool = Field(default=False)
    is_health_failed: bool = Field(default=False)
    kind: ErrorKind = Field(default=ErrorKind.PROVIDER_CALL)


class SearchResponse(BaseModel):
    """Final response from the orchestrator."""

    results: list[SearchResult] = Field(default_factory=list, description="Ranked results")
    sources_used: list[str] = Field(default_factory=list)
    categories_searched: list[str] = Field(default_factory=list)
    trial_quota_used: dict[str, int] = Field(
        default_factory=dict, description="Today's trial usage per category"
    )
    byok_calls_made: int = Field(default=0, description="Today's BYOK call count")
    search_time_ms: float = Field(default=0.0)
    fallback_used: bool = Field(default=False)
    errors: list[SearchError] = Field(default_factory=list, description="Partial failures")


class ProviderHealth(BaseModel):
    is_healthy: bool = Field(default=True)
    last_check: datetime | None = Field(default=None)
    consecutive_failures: int = Field(default=0, ge=0)
    last_error: str | None = Field(default=None)


class UsageSnapshot(BaseModel):
    """Point-in-time copy of the usage store, for dashboards."""

    daily_trial_usage: dict[str, dict[str, int]] = Field(default_factory=dict)
    daily_byok_calls: dict[str, int] = Field(default_factory=dict)
    daily_provider_calls: dict[str, dict[str, int]] = Field(default_factory=dict)
    provider_health: dict[str, ProviderHealth] = Field(default_factory=dict)
    last_reset_date: str = Field(default="")
