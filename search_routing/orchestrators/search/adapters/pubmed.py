"""PubMed search through NCBI E-utilities: esearch for ids, then esummary for titles."""

from typing import Any

from search_routing.contracts.routing_config_v1 import ProviderConfig
from search_routing.orchestrators.search.adapters.base import HttpProviderAdapter
from search_routing.orchestrators.search.adapters.registry import register_adapter
from search_routing.orchestrators.search.models import AdapterResult


@register_adapter
class PubMedAdapter(HttpProviderAdapter):
    provider_id = "pubmed"
    default_base_url = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
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
        base = (provider.base_url or self.default_base_url).rstrip("/")
        headers = self.headers(provider)
        common: dict[str, Any] = {"db": "pubmed", "retmode": "json"}
        if credential:
            common["api_key"] = credential

        found = await self.get_json(
            f"{base}/esearch.fcgi",
            params={**common, "term": query, "retmax": self.limit},
            headers=headers,
        )
        ids = found.get("esearchresult", {}).get("idlist", []) or []
        if not ids:
            return []

        summary = await self.get_json(
            f"{base}/esummary.fcgi",
            params={**common, "id": ",".join(ids)},
            headers=headers,
        )
        records = summary.get("result", {})
        results: list[AdapterResult] = []
        for uid in records.get("uids", ids):
            record = records.get(uid)
            if not isinstance(record, dict) or not record.get("title"):
                continue
            authors = [a.get("name", "") for a in record.get("authors") or [] if a.get("name")]
            journal = record.get("fulljournalname") or record.get("source") or ""
            results.append(
                AdapterResult(
                    id=f"pubmed-{uid}",
                    title=record["title"],
                    url=f"https://pubmed.ncbi.nlm.nih.gov/{uid}/",
                    snippet=" - ".join(p for p in (", ".join(authors[:3]), journal) if p),
                    confidence=0.85,
                    metadata={"pubdate": record.get("pubdate"), "journal": journal},
                )
            )
        return results
