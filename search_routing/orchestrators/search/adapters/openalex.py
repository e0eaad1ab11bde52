"""OpenAlex works search. Keyless (polite pool via User-Agent contact)."""

from typing import Any

from search_routing.contracts.routing_config_v1 import ProviderConfig
from search_routing.orchestrators.search.adapters.base import HttpProviderAdapter, parse_date
from search_routing.orchestrators.search.adapters.registry import register_adapter
from search_routing.orchestrators.search.models import AdapterResult


def rebuild_abstract(inverted_index: dict[str, list[int]] | None) -> str:
    """OpenAlex ships abstracts as word -> positions; put the words back in order."""
    if not inverted_index:
        return ""
    positions: list[tuple[int, str]] = []
    for word, indexes in inverted_index.items():
        for i in indexes:
            positions.append((i, word))
    positions.sort()
    return " ".join(word for _, word in positions)


def _work_url(work: dict[str, Any]) -> str:
    location = work.get("primary_location") or {}
    return location.get("landing_page_url") or work.get("doi") or work.get("id") or ""


@register_adapter
class OpenAlexAdapter(HttpProviderAdapter):
    provider_id = "openalex"
    default_base_url = "https://api.openalex.org"
    default_path = "/works"
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
        params: dict[str, Any] = {"search": query, "per_page": self.limit}
        if credential:
            params["api_key"] = credential
        data = await self.get_json(self.endpoint(provider), params=params, headers=self.headers(provider))

        results: list[AdapterResult] = []
        for work in data.get("results", []) or []:
            if not isinstance(work, dict):
                continue
            title = work.get("title") or work.get("display_name") or ""
            if not title:
                continue
            abstract = rebuild_abstract(work.get("abstract_inverted_index"))
            results.append(
                AdapterResult(
                    id=f"openalex-{str(work.get('id', '')).rsplit('/', 1)[-1]}",
                    title=title,
                    url=_work_url(work),
                    snippet=abstract[:500],
                    confidence=0.8,
                    published_date=parse_date(work.get("publication_date")),
                    metadata={
                        "cited_by_count": work.get("cited_by_count"),
                        "doi": work.get("doi"),
                    },
                )
            )
        return results
