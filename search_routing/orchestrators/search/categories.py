"""Category resolution: enabled categories narrowed by role allow-list and request filter."""

from search_routing.contracts.routing_config_v1 import SearchConfig


class CategoryResolver:
    def resolve(
        self,
        config: SearchConfig,
        role_id: str,
        requested: list[str] | None = None,
    ) -> list[str]:
        """Category ids in declared order; empty when nothing survives."""
        resolved = [c.id for c in config.categories if c.enabled]

        override = config.role_override(role_id)
        if override is not None and override.enabled_categories is not None:
            allowed = set(override.enabled_categories)
            resolved = [c for c in resolved if c in allowed]

        if requested:
            wanted = set(requested)
            resolved = [c for c in resolved if c in wanted]

        return resolved
