"""Serper (Google results API). BYOK: the caller's key goes in X-API-KEY."""

from search_routing.contracts.routing_config_v1 import ProviderConfig
from search_routing.orchestrators.search.adapters.base import HttpProviderAdapter, parse_date
from search_routing.orchestrators.search.adapters.registry import register_adapter
from search_routing.orchestrators.search.errors import ProviderCallError
from search_routing.orchestrators.search.models import AdapterResult


@register_adapter
class SerperAdapter(HttpProviderAdapter):
    provider_id = "serper"
    default_base_url = "https://google.serper.dev"
    default_path = "/search"
    result_key = "organic"

    async def call(
        self,
        provider_id: str,
        provider: ProviderConfig,
        query: str,
        credential: str | None = None,
    ) -> list[AdapterResult]:
        if not credential:
            raise ProviderCallError(f"{provider_id}: API key required", provider=provider_id)
        if not query.strip():
            return []

        headers = self.headers(provider)
        headers["X-API-KEY"] = credential
        data = await self.post_json(
            self.endpoint(provider),
            json_body={"q": query, "num": self.limit},
            headers=headers,
        )

        results: list[AdapterResult] = []
        for item in data.get(self.result_key) or []:
            if not isinstance(item, dict) or not item.get("link"):
                continue
            results.append(
                AdapterResult(
                    id=f"{provider_id}-{item.get('position', len(results) + 1)}",
                    title=item.get("title", ""),
                    url=item["link"],
                    snippet=item.get("snippet", ""),
                    confidence=0.85,
                    # relative dates ("3 hours ago") parse to None
                    published_date=parse_date(item.get("date")),
                    image_url=item.get("imageUrl"),
                    metadata={"source": item["source"]} if item.get("source") else {},
                )
            )
        return results


@register_adapter
class SerperNewsAdapter(SerperAdapter):
    provider_id = "serper_news"
    default_path = "/news"
    result_key = "news"
