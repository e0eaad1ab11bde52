"""arXiv search via the Atom export API. Keyless; the response is XML."""

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from search_routing.contracts.routing_config_v1 import ProviderConfig
from search_routing.orchestrators.search.adapters.base import (
    HttpProviderAdapter,
    parse_date,
    strip_html,
)
from search_routing.orchestrators.search.adapters.registry import register_adapter
from search_routing.orchestrators.search.errors import ProviderCallError
from search_routing.orchestrators.search.models import AdapterResult

ATOM_NS = {"atom": "http://www.w3.org/2005/Atom"}


def parse_feed(xml_text: str) -> list[AdapterResult]:
    root = ET.fromstring(xml_text)
    results: list[AdapterResult] = []
    for entry in root.findall("atom:entry", ATOM_NS):
        entry_id = (entry.findtext("atom:id", default="", namespaces=ATOM_NS) or "").strip()
        title = strip_html(entry.findtext("atom:title", default="", namespaces=ATOM_NS))
        summary = strip_html(entry.findtext("atom:summary", default="", namespaces=ATOM_NS))
        url = entry_id
        for link in entry.findall("atom:link", ATOM_NS):
            if link.get("rel") == "alternate" and link.get("href"):
                url = link.get("href", url)
                break
        authors = [
            (a.findtext("atom:name", default="", namespaces=ATOM_NS) or "").strip()
            for a in entry.findall("atom:author", ATOM_NS)
        ]
        if not title:
            continue
        results.append(
            AdapterResult(
                id=f"arxiv-{entry_id.rsplit('/', 1)[-1] or title}",
                title=title,
                url=url,
                snippet=summary[:500],
                confidence=0.85,
                published_date=parse_date(
                    entry.findtext("atom:published", default="", namespaces=ATOM_NS)
                ),
                metadata={"authors": [a for a in authors if a]},
            )
        )
    return results


@register_adapter
class ArxivAdapter(HttpProviderAdapter):
    provider_id = "arxiv"
    default_base_url = "http://export.arxiv.org"
    default_path = "/api/query"
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
        params = {"search_query": f"all:{query}", "start": 0, "max_results": self.limit}
        response = await self.request(
            "GET", self.endpoint(provider), params=params, headers=self.headers(provider)
        )
        try:
            return parse_feed(response.text)
        except (ET.ParseError, DefusedXmlException) as e:
            raise ProviderCallError(f"arxiv: invalid Atom feed: {e}", provider=self.provider_id) from e
