"""Semantic Scholar Graph API paper search. Works keyless at a low rate; a key raises limits."""

from typing import Any

from search_routing.contracts.routing_config_v1 import ProviderConfig
from search_routing.orchestrators.search.adapters.base import HttpProviderAdapter, parse_date
from search_routing.orchestrators.search.adapters.registry import register_adapter
from search_routing.orchestrators.search.models import AdapterResult

FIELDS = "paperId,title,url,abstract,year,authors,citationCount,publicationDate"


def _snippet(paper: dict[str, Any]) -> str:
    abstract = paper.get("abstract") or ""
    if abstract:
        return abstract[:500]
    authors = ", ".join(a.get("name", "") for a in paper.get("authors") or [] if a.get("name"))
    return (
        f"Authors: {authors or 'unknown'} ({paper.get('year') or 'n.d.'}) "
        f"- cited {paper.get('citationCount') or 0} times"
    )


@register_adapter
class SemanticScholarAdapter(HttpProviderAdapter):
    provider_id = "semanticscholar"
    default_base_url = "https://api.semanticscholar.org"
    default_path = "/graph/v1/paper/search"
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
        headers = self.headers(provider)
        if credential:
            headers["x-api-key"] = credential
        params = {"query": query, "limit": self.limit, "fields": FIELDS}
        data = await self.get_json(self.endpoint(provider), params=params, headers=headers)

        results: list[AdapterResult] = []
        for paper in data.get("data", []) or []:
            if not isinstance(paper, dict) or not paper.get("title"):
                continue
            paper_id = paper.get("paperId") or ""
            results.append(
                AdapterResult(
                    id=f"semantic-{paper_id}",
                    title=paper["title"],
                    url=paper.get("url") or f"https://www.semanticscholar.org/paper/{paper_id}",
                    snippet=_snippet(paper),
                    confidence=0.85,
                    published_date=parse_date(paper.get("publicationDate")),
                    metadata={"year": paper.get("year"), "citation_count": paper.get("citationCount")},
                )
            )
        return results
