"""Wikipedia full-text search via the MediaWiki action API. Keyless."""

from urllib.parse import quote

from search_routing.contracts.routing_config_v1 import ProviderConfig
from search_routing.orchestrators.search.adapters.base import (
    HttpProviderAdapter,
    parse_date,
    strip_html,
)
from search_routing.orchestrators.search.adapters.registry import register_adapter
from search_routing.orchestrators.search.models import AdapterResult

WIKI_BASE = "https://en.wikipedia.org"


@register_adapter
class WikimediaAdapter(HttpProviderAdapter):
    provider_id = "wikimedia"
    default_base_url = WIKI_BASE
    default_path = "/w/api.php"
    limit = 5

    async def call(
        self,
        provider_id: str,
        provider: ProviderConfig,
        query: str,
        credential: str | None = None,
    ) -> list[AdapterResult]:
        if not query.strip():
            return []
        params = {
            "action": "query",
            "list": "search",
            "srsearch": query,
            "srlimit": self.limit,
            "format": "json",
            "utf8": 1,
        }
        data = await self.get_json(self.endpoint(provider), params=params, headers=self.headers(provider))

        site = (provider.base_url or WIKI_BASE).rstrip("/")
        results: list[AdapterResult] = []
        for item in data.get("query", {}).get("search", []):
            title = item.get("title") or ""
            if not title:
                continue
            results.append(
                AdapterResult(
                    id=f"wiki-{item.get('pageid', title)}",
                    title=title,
                    url=f"{site}/wiki/{quote(title.replace(' ', '_'))}",
                    snippet=strip_html(item.get("snippet", "")),
                    confidence=0.9,
                    published_date=parse_date(item.get("timestamp")),
                    metadata={"word_count": item.get("wordcount")},
                )
            )
        return results
