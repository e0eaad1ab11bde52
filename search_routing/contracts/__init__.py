"""Versioned contracts: the routing document schema."""

from search_routing.contracts.routing_config_v1 import (
    ByokConfig,
    CategoryConfig,
    CategoryPolicy,
    FallbackPolicy,
    HealthCheckConfig,
    KeyType,
    ProviderConfig,
    QuotaConfig,
    RoleOverride,
    RoutingConfig,
    SearchConfig,
    SelectionStrategy,
    TrialConfig,
    load_config_file,
    parse_config,
)

__all__ = [
    "ByokConfig",
    "CategoryConfig",
    "CategoryPolicy",
    "FallbackPolicy",
    "HealthCheckConfig",
    "KeyType",
    "ProviderConfig",
    "QuotaConfig",
    "RoleOverride",
    "RoutingConfig",
    "SearchConfig",
    "SelectionStrategy",
    "TrialConfig",
    "load_config_file",
    "parse_config",
]
