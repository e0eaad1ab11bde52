"""Routing Config Contract v1.

Defines the canonical types of the routing document:
  - Trial allotment and BYOK storage policy (TrialConfig, ByokConfig)
  - Global routing policy (RoutingConfig)
  - Categories and providers (CategoryConfig, ProviderConfig, HealthCheckConfig, QuotaConfig)
  - Per-role customization (RoleOverride)

The document is read-mostly: it is loaded once and replaced wholesale, never
mutated field by field, so every model here is frozen.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class SelectionStrategy(StrEnum):
    """How a category orders its surviving providers."""

    WEIGHTED = "weighted"
    PRIORITY = "priority"
    ROUND_ROBIN = "round_robin"


class CategoryPolicy(StrEnum):
    """How the providers selected for one category are executed."""

    ONE_PER_CATEGORY = "one_per_category"
    PARALLEL = "parallel"


class FallbackPolicy(StrEnum):
    """What happens when normal routing yields no results."""

    NEXT_AVAILABLE = "next_available"
    TRIAL_ONLY = "trial_only"
    NONE = "none"


class KeyType(StrEnum):
    NONE = "none"
    BYOK = "byok"
    OAUTH = "oauth"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


# ---------------------------------------------------------------------------
# Trial / BYOK
# ---------------------------------------------------------------------------


class TrialCopy(_Frozen):
    limit_hit: str = Field(default="Daily trial limit reached for this category.")


class TrialConfig(_Frozen):
    """Free, credential-less allotment of calls per category per day."""

    enabled: bool = Field(default=True)
    per_user_daily: dict[str, int] = Field(
        default_factory=dict,
        description="Daily trial calls allowed per category, e.g. {'news': 20}",
    )
    copy_: TrialCopy = Field(default_factory=TrialCopy, alias="copy")

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @field_validator("per_user_daily")
    @classmethod
    def _validate_limits(cls, value: dict[str, int]) -> dict[str, int]:
        for category, limit in value.items():
            if limit < 0:
                raise ValueError(f"per_user_daily[{category!r}] must be >= 0")
        return value


class ByokConfig(_Frozen):
    store: str = Field(default="server", description="browser | server | encrypted")
    encryption: str = Field(default="server", description="local | server | none")


# ---------------------------------------------------------------------------
# Routing policy
# ---------------------------------------------------------------------------


class RoutingConfig(_Frozen):
    category_policy: CategoryPolicy = Field(default=CategoryPolicy.PARALLEL)
    fallback: FallbackPolicy = Field(default=FallbackPolicy.NEXT_AVAILABLE)
    timeout_ms: int = Field(default=10000, ge=1, description="Deadline for one whole search")
    cache_ttl_sec: dict[str, int] = Field(
        default_factory=dict,
        description="Per-category result cache TTL in seconds; absent or 0 disables caching",
    )


# ---------------------------------------------------------------------------
# Categories and providers
# ---------------------------------------------------------------------------


class CategoryConfig(_Frozen):
    id: str
    label: str = Field(default="")
    enabled: bool = Field(default=True)
    selection: SelectionStrategy = Field(default=SelectionStrategy.WEIGHTED)
    max_parallel: int = Field(default=1, ge=1)
    providers: list[str] = Field(
        default_factory=list,
        description="Ordered provider ids; every id must exist in the provider registry",
    )

    @field_validator("providers")
    @classmethod
    def _dedupe_providers(cls, value: list[str]) -> list[str]:
        ordered: list[str] = []
        for provider_id in value:
            if provider_id not in ordered:
                ordered.append(provider_id)
        return ordered


class HealthCheckConfig(_Frozen):
    probe: str = Field(
        default="",
        description="Probe target; an absolute URL overrides the provider base_url",
    )
    interval_sec: int = Field(default=300, ge=1)
    timeout_ms: int | None = Field(default=None, ge=1)
    retry_count: int | None = Field(default=None, ge=0)


class QuotaConfig(_Frozen):
    provider_daily: int | None = Field(default=None, ge=0)
    provider_monthly: int | None = Field(default=None, ge=0)
    user_daily: int | None = Field(default=None, ge=0)
    user_monthly: int | None = Field(default=None, ge=0)

    @property
    def daily_cap(self) -> int | None:
        caps = [c for c in (self.provider_daily, self.user_daily) if c is not None]
        return min(caps) if caps else None

    @property
    def monthly_cap(self) -> int | None:
        caps = [c for c in (self.provider_monthly, self.user_monthly) if c is not None]
        return min(caps) if caps else None


class ProviderConfig(_Frozen):
    label: str = Field(default="")
    category: str
    base_url: str = Field(default="")
    key_type: KeyType = Field(default=KeyType.NONE)
    trial_applies: bool = Field(default=False)
    weight: float | None = Field(default=None, ge=0)
    endpoints: dict[str, str] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    health: HealthCheckConfig | None = Field(default=None)
    quota: QuotaConfig | None = Field(default=None)

    @property
    def requires_key(self) -> bool:
        return self.key_type != KeyType.NONE

    @property
    def byok_only(self) -> bool:
        """Needs a caller credential and has no trial allotment to fall back on."""
        return self.requires_key and not self.trial_applies


# ---------------------------------------------------------------------------
# Role overrides
# ---------------------------------------------------------------------------


class RoleOverride(_Frozen):
    enabled_categories: list[str] | None = Field(default=None)
    pin: list[str] | None = Field(default=None)
    weights: dict[str, float] | None = Field(default=None)
    disable: list[str] | None = Field(default=None)


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class SearchConfig(_Frozen):
    """The whole routing document."""

    version: str = Field(default="1.0")
    trial: TrialConfig = Field(default_factory=TrialConfig)
    byok: ByokConfig = Field(default_factory=ByokConfig)
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    categories: list[CategoryConfig] = Field(default_factory=list)
    providers: dict[str, ProviderConfig] = Field(default_factory=dict)
    role_overrides: dict[str, RoleOverride] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_references(self) -> SearchConfig:
        seen: set[str] = set()
        for category in self.categories:
            if category.id in seen:
                raise ValueError(f"duplicate category id {category.id!r}")
            seen.add(category.id)
            missing = [p for p in category.providers if p not in self.providers]
            if missing:
                raise ValueError(
                    f"category {category.id!r} references unknown providers: {missing}"
                )
        for role_id, override in self.role_overrides.items():
            referenced = list(override.pin or []) + list((override.weights or {}).keys())
            referenced += list(override.disable or [])
            missing = [p for p in referenced if p not in self.providers]
            if missing:
                raise ValueError(
                    f"role override {role_id!r} references unknown providers: {missing}"
                )
            for provider_id, weight in (override.weights or {}).items():
                if weight < 0:
                    raise ValueError(
                        f"role override {role_id!r} weight for {provider_id!r} must be >= 0"
                    )
        return self

    def category(self, category_id: str) -> CategoryConfig | None:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def provider(self, provider_id: str) -> ProviderConfig | None:
        return self.providers.get(provider_id)

    def role_override(self, role_id: str) -> RoleOverride | None:
        return self.role_overrides.get(role_id)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def parse_config(data: dict[str, Any]) -> SearchConfig:
    return SearchConfig.model_validate(data)


def load_config_file(path: Path) -> SearchConfig:
    """Load a routing document from YAML (JSON documents parse as YAML too)."""
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Routing document is not valid YAML: {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError(f"Routing document must be a mapping: {path}")
    return parse_config(raw)
