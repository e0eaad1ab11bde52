"""Shared typed constants for routing and aggregation control flow."""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Classification carried by every SearchError."""

    CONFIGURATION = "configuration"
    QUOTA_EXCEEDED = "quota_exceeded"
    HEALTH_FAILED = "health_failed"
    PROVIDER_CALL = "provider_call"
    TIMEOUT = "timeout"
    SYSTEM = "system"


DEFAULT_PROVIDER_WEIGHT = 10.0
DEFAULT_MAX_RESULTS = 20

# Results from a provider that did not report confidence get this, or a weight-derived value.
DEFAULT_CONFIDENCE = 0.7

ROUND_ROBIN_PERIOD_SEC = 60

UNHEALTHY_AFTER_FAILURES = 3
DEFAULT_PROBE_TIMEOUT_MS = 5000

# Keyless providers tried one at a time when routing yields nothing.
FALLBACK_PROVIDERS: tuple[str, ...] = ("wikimedia", "arxiv", "openalex")
FALLBACK_CATEGORY = "fallback"
FALLBACK_CONFIDENCE_FACTOR = 0.8
FALLBACK_RESULT_CAP = 5

ROUTER_ERROR_PROVIDER = "router"
SYSTEM_ERROR_CATEGORY = "system"
CATEGORY_ERROR_PROVIDER = "category"
