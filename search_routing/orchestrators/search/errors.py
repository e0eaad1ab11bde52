"""Exception hierarchy for the routing engine.

    SearchRoutingError (base)
    ├── ConfigurationError      no category resolves / invalid routing document
    ├── QuotaExceededError      provider filtered out by trial or provider quota
    ├── HealthCheckFailedError  provider filtered out by the health state machine
    ├── ProviderCallError       adapter failed (HTTP, transport, parse)
    │   └── ProviderTimeoutError  deadline hit while the call was pending
    └── SystemFault             unexpected internal fault

Only ConfigurationError ever aborts a whole search; the orchestrator converts the
others into SearchError entries on the response.
"""

from __future__ import annotations

from typing import Any

from search_routing.orchestrators.search.constants import ErrorKind


class SearchRoutingError(Exception):
    """Base exception for all routing engine errors."""

    kind: ErrorKind = ErrorKind.SYSTEM

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        category: str | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.category = category

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"error": str(self), "kind": self.kind.value}
        if self.provider:
            result["provider"] = self.provider
        if self.category:
            result["category"] = self.category
        return result


class ConfigurationError(SearchRoutingError):
    kind = ErrorKind.CONFIGURATION


class QuotaExceededError(SearchRoutingError):
    kind = ErrorKind.QUOTA_EXCEEDED


class HealthCheckFailedError(SearchRoutingError):
    kind = ErrorKind.HEALTH_FAILED


class ProviderCallError(SearchRoutingError):
    kind = ErrorKind.PROVIDER_CALL

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        category: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, provider=provider, category=category)
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.status_code is not None:
            result["status_code"] = self.status_code
        return result


class ProviderTimeoutError(ProviderCallError):
    kind = ErrorKind.TIMEOUT


class SystemFault(SearchRoutingError):
    kind = ErrorKind.SYSTEM
