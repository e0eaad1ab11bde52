from typing import Any

import httpx
import pytest

from search_routing.contracts.routing_config_v1 import ProviderConfig
from search_routing.orchestrators.search.adapters import AdapterRegistry, registered_adapter_ids
from search_routing.orchestrators.search.adapters.arxiv import ArxivAdapter, parse_feed
from search_routing.orchestrators.search.adapters.openalex import OpenAlexAdapter, rebuild_abstract
from search_routing.orchestrators.search.adapters.pubmed import PubMedAdapter
from search_routing.orchestrators.search.adapters.registry import register_adapter
from search_routing.orchestrators.search.adapters.semanticscholar import SemanticScholarAdapter
from search_routing.orchestrators.search.adapters.serper import SerperAdapter, SerperNewsAdapter
from search_routing.orchestrators.search.adapters.wikimedia import WikimediaAdapter
from search_routing.orchestrators.search.errors import ProviderCallError, ProviderTimeoutError
from tests.fakes import FakeAdapter

ARXIV_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry>
    <id>http://arxiv.org/abs/1706.03762v7</id>
    <published>2017-06-12T17:57:34Z</published>
    <title>Attention Is All
      You Need</title>
    <summary>The dominant sequence transduction models...</summary>
    <author><name>Ashish Vaswani</name></author>
    <author><name>Noam Shazeer</name></author>
    <link href="http://arxiv.org/abs/1706.03762v7" rel="alternate" type="text/html"/>
    <link href="http://arxiv.org/pdf/1706.03762v7" rel="related" type="application/pdf"/>
  </entry>
</feed>
"""


class FakeClient:
    """Stands in for httpx.AsyncClient; answers from a list of canned responses."""

    def __init__(self, responses: list[Any]) -> None:
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    def __call__(self, *args, **kwargs) -> "FakeClient":
        return self

    async def __aenter__(self) -> "FakeClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        self.requests.append({"method": method, "url": url, **kwargs})
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        status, body = outcome
        request = httpx.Request(method, url)
        if isinstance(body, str):
            return httpx.Response(status, text=body, request=request)
        return httpx.Response(status, json=body, request=request)


@pytest.fixture
def fake_client(monkeypatch):
    def install(*responses: Any) -> FakeClient:
        client = FakeClient(list(responses))
        monkeypatch.setattr(
            "search_routing.orchestrators.search.adapters.base.httpx.AsyncClient", client
        )
        return client

    return install


def _provider(category: str = "academic", **kwargs) -> ProviderConfig:
    return ProviderConfig(category=category, **kwargs)


class TestRegistry:
    def test_builtin_adapters_register_by_provider_id(self):
        registry = AdapterRegistry.with_builtin_adapters()

        for provider_id in ("wikimedia", "arxiv", "openalex", "semanticscholar", "pubmed", "serper"):
            assert registry.has(provider_id)
        assert isinstance(registry.get("serper_news"), SerperNewsAdapter)
        assert "wikimedia" in registered_adapter_ids()

    def test_register_replace_and_unregister(self):
        registry = AdapterRegistry()
        first, second = FakeAdapter(), FakeAdapter()

        registry.register("x", first)
        registry.register("x", second)
        assert registry.get("x") is second
        assert registry.provider_ids() == ["x"]

        registry.unregister("x")
        assert registry.get("x") is None

    def test_adapter_class_needs_provider_id(self):
        with pytest.raises(ValueError):
            register_adapter(FakeAdapter)


@pytest.mark.asyncio
async def test_wikimedia_maps_search_hits(fake_client):
    client = fake_client(
        (
            200,
            {
                "query": {
                    "search": [
                        {
                            "pageid": 1164,
                            "title": "Artificial intelligence",
                            "snippet": '<span class="searchmatch">AI</span> is intelligence',
                            "timestamp": "2024-05-01T10:00:00Z",
                        }
                    ]
                }
            },
        )
    )

    results = await WikimediaAdapter().call(
        "wikimedia", _provider("encyclopedia", base_url="https://en.wikipedia.org"), "ai"
    )

    assert len(results) == 1
    assert results[0].id == "wiki-1164"
    assert results[0].url == "https://en.wikipedia.org/wiki/Artificial_intelligence"
    assert results[0].snippet == "AI is intelligence"
    assert results[0].published_date.year == 2024
    assert client.requests[0]["params"]["srsearch"] == "ai"
    assert client.requests[0]["url"] == "https://en.wikipedia.org/w/api.php"


@pytest.mark.asyncio
async def test_http_status_error_becomes_provider_call_error(fake_client):
    fake_client((503, {"error": "busy"}))

    with pytest.raises(ProviderCallError) as exc_info:
        await OpenAlexAdapter().call("openalex", _provider(), "graphs")

    assert exc_info.value.status_code == 503
    assert exc_info.value.provider == "openalex"


@pytest.mark.asyncio
async def test_transport_timeout_becomes_provider_timeout_error(fake_client):
    fake_client(httpx.ReadTimeout("slow"))

    with pytest.raises(ProviderTimeoutError):
        await WikimediaAdapter().call("wikimedia", _provider("encyclopedia"), "ai")


@pytest.mark.asyncio
async def test_invalid_json_becomes_provider_call_error(fake_client):
    fake_client((200, "<html>not json</html>"))

    with pytest.raises(ProviderCallError, match="invalid JSON"):
        await OpenAlexAdapter().call("openalex", _provider(), "graphs")


def test_arxiv_feed_parsing():
    results = parse_feed(ARXIV_FEED)

    assert len(results) == 1
    paper = results[0]
    assert paper.id == "arxiv-1706.03762v7"
    assert paper.title == "Attention Is All You Need"
    assert paper.url == "http://arxiv.org/abs/1706.03762v7"
    assert paper.metadata["authors"] == ["Ashish Vaswani", "Noam Shazeer"]
    assert paper.published_date.year == 2017


@pytest.mark.asyncio
async def test_arxiv_rejects_malformed_feed(fake_client):
    fake_client((200, "<feed><entry>"))

    with pytest.raises(ProviderCallError, match="invalid Atom feed"):
        await ArxivAdapter().call("arxiv", _provider(), "attention")


def test_openalex_abstract_is_rebuilt_in_word_order():
    assert rebuild_abstract({"world": [1], "hello": [0], "again": [2]}) == "hello world again"
    assert rebuild_abstract(None) == ""


@pytest.mark.asyncio
async def test_openalex_prefers_landing_page(fake_client):
    fake_client(
        (
            200,
            {
                "results": [
                    {
                        "id": "https://openalex.org/W123",
                        "title": "Graph networks",
                        "doi": "https://doi.org/10.1/x",
                        "primary_location": {"landing_page_url": "https://journal.org/x"},
                        "publication_date": "2021-02-03",
                        "abstract_inverted_index": {"graphs": [0], "rock": [1]},
                    },
                    {"id": "https://openalex.org/W124", "title": ""},
                ]
            },
        )
    )

    results = await OpenAlexAdapter().call("openalex", _provider(), "graphs")

    assert [r.id for r in results] == ["openalex-W123"]
    assert results[0].url == "https://journal.org/x"
    assert results[0].snippet == "graphs rock"


@pytest.mark.asyncio
async def test_pubmed_runs_search_then_summary(fake_client):
    client = fake_client(
        (200, {"esearchresult": {"idlist": ["42"]}}),
        (
            200,
            {
                "result": {
                    "uids": ["42"],
                    "42": {
                        "title": "A trial",
                        "authors": [{"name": "Doe J"}],
                        "fulljournalname": "Journal of Trials",
                        "pubdate": "2020 Jan",
                    },
                }
            },
        ),
    )

    results = await PubMedAdapter().call("pubmed", _provider(), "trial", credential="ncbi-key")

    assert results[0].url == "https://pubmed.ncbi.nlm.nih.gov/42/"
    assert results[0].snippet == "Doe J - Journal of Trials"
    assert [r["url"].rsplit("/", 1)[-1] for r in client.requests] == ["esearch.fcgi", "esummary.fcgi"]
    assert client.requests[0]["params"]["api_key"] == "ncbi-key"


@pytest.mark.asyncio
async def test_pubmed_without_hits_skips_summary(fake_client):
    client = fake_client((200, {"esearchresult": {"idlist": []}}))

    assert await PubMedAdapter().call("pubmed", _provider(), "nothing") == []
    assert len(client.requests) == 1


@pytest.mark.asyncio
async def test_serper_requires_credential():
    with pytest.raises(ProviderCallError, match="API key required"):
        await SerperAdapter().call("serper", _provider("web"), "q")


@pytest.mark.asyncio
async def test_serper_news_posts_to_news_endpoint(fake_client):
    client = fake_client(
        (
            200,
            {
                "news": [
                    {"title": "AI rules", "link": "https://n.com/a", "snippet": "s", "position": 1},
                    {"title": "no link"},
                ]
            },
        )
    )

    results = await SerperNewsAdapter().call("serper_news", _provider("news"), "ai", credential="k")

    assert [r.url for r in results] == ["https://n.com/a"]
    assert results[0].id == "serper_news-1"
    request = client.requests[0]
    assert request["method"] == "POST"
    assert request["url"] == "https://google.serper.dev/news"
    assert request["headers"]["X-API-KEY"] == "k"
    assert request["json"] == {"q": "ai", "num": 10}


@pytest.mark.asyncio
async def test_semanticscholar_sends_key_and_summarizes_missing_abstract(fake_client):
    client = fake_client(
        (
            200,
            {
                "data": [
                    {
                        "paperId": "abc",
                        "title": "Deep nets",
                        "url": None,
                        "abstract": None,
                        "year": 2019,
                        "authors": [{"name": "Ada"}],
                        "citationCount": 7,
                    }
                ]
            },
        )
    )

    results = await SemanticScholarAdapter().call("semanticscholar", _provider(), "nets", credential="s2")

    assert results[0].url == "https://www.semanticscholar.org/paper/abc"
    assert results[0].snippet == "Authors: Ada (2019) - cited 7 times"
    assert client.requests[0]["headers"]["x-api-key"] == "s2"


@pytest.mark.asyncio
async def test_arxiv_refuses_feeds_declaring_entities(fake_client):
    fake_client(
        (
            200,
            '<?xml version="1.0"?><!DOCTYPE feed [<!ENTITY boom "boom">]>'
            '<feed xmlns="http://www.w3.org/2005/Atom"><entry><title>&boom;</title></entry></feed>',
        )
    )

    with pytest.raises(ProviderCallError, match="invalid Atom feed"):
        await ArxivAdapter().call("arxiv", _provider(), "attention")
