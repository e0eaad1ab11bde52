from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from search_routing.orchestrators.search.models import SearchResult
from search_routing.orchestrators.search.ranker import (
    ResultRanker,
    confidence_bucket,
    deduplicate_results,
    normalize_url,
    query_tokens,
    relevance_score,
)


def _result(
    idx: int,
    url: str,
    confidence: float,
    title: str = "",
    snippet: str = "",
) -> SearchResult:
    return SearchResult(
        id=f"r{idx}",
        title=title,
        url=url,
        snippet=snippet,
        source="test",
        category="news",
        confidence=confidence,
    )


def test_normalize_url_strips_query_and_case():
    assert normalize_url("HTTPS://Example.com/Path?utm=1&x=2") == "https://example.com/path"


def test_dedup_first_occurrence_wins():
    results = [
        _result(1, "https://a.com/x?ref=feed", 0.5),
        _result(2, "https://A.com/X", 0.9),
        _result(3, "https://b.com/y", 0.7),
    ]

    deduped = deduplicate_results(results)

    assert [r.id for r in deduped] == ["r1", "r3"]


def test_results_without_url_are_dropped():
    results = [_result(1, "", 0.9), _result(2, "  ", 0.8), _result(3, "https://a.com/x", 0.5)]

    assert [r.id for r in deduplicate_results(results)] == ["r3"]
    assert [r.id for r in ResultRanker().rank(results, "ai", 10)] == ["r3"]


def test_confidence_bucket_rounds_halves_up():
    assert confidence_bucket(0.25) == 0.3
    assert confidence_bucket(0.85) == 0.9
    assert confidence_bucket(0.24) == 0.2
    assert confidence_bucket(1.0) == 1.0


def test_ties_are_broken_by_source_then_id():
    a = _result(2, "https://a.com/1", 0.7).model_copy(update={"source": "zeta"})
    b = _result(1, "https://b.com/1", 0.7).model_copy(update={"source": "alpha"})
    c = _result(3, "https://c.com/1", 0.7).model_copy(update={"source": "alpha"})

    ranked = ResultRanker().rank([a, c, b], "q", 10)

    assert [(r.source, r.id) for r in ranked] == [("alpha", "r1"), ("alpha", "r3"), ("zeta", "r2")]


def test_query_tokens_ignore_single_characters():
    assert query_tokens("a AI  x safety") == ["ai", "safety"]


def test_relevance_weights_title_twice():
    tokens = query_tokens("ai safety")
    title_hit = _result(1, "u1", 0.5, title="AI Safety research")
    snippet_hit = _result(2, "u2", 0.5, snippet="notes on ai safety")
    none = _result(3, "u3", 0.5, title="cooking")

    assert relevance_score(title_hit, tokens) == pytest.approx(1.0)
    assert relevance_score(snippet_hit, tokens) == pytest.approx(0.5)
    assert relevance_score(none, tokens) == 0.0
    assert relevance_score(title_hit, []) == 0.0


def test_confidence_buckets_then_relevance():
    results = [
        _result(1, "u1", 0.71, title="unrelated"),
        _result(2, "u2", 0.68, title="ai news"),
        _result(3, "u3", 0.9, title="unrelated"),
    ]

    ranked = ResultRanker().rank(results, "ai", 10)

    # 0.71 and 0.68 both round to 0.7, so relevance breaks the tie
    assert [r.id for r in ranked] == ["r3", "r2", "r1"]


def test_rank_truncates_and_handles_empty_inputs():
    results = [_result(i, f"https://x.com/{i}", 0.5) for i in range(10)]
    ranker = ResultRanker()

    assert len(ranker.rank(results, "q", 3)) == 3
    assert ranker.rank([], "q", 3) == []
    assert ranker.rank(results, "q", 0) == []


result_strategy = st.builds(
    _result,
    idx=st.integers(min_value=0, max_value=1000),
    url=st.sampled_from(
        [
            "https://a.com/1",
            "https://A.com/1?x=1",
            "https://b.com/2",
            "https://c.com/3?q=z",
            "https://C.com/3",
            "https://d.com/4",
            "",
        ]
    ),
    confidence=st.floats(min_value=0.0, max_value=1.0),
    title=st.sampled_from(["", "ai news", "safety", "ai safety report"]),
    snippet=st.sampled_from(["", "about ai", "nothing"]),
)


@given(
    results=st.lists(result_strategy, max_size=20),
    query=st.sampled_from(["ai", "ai safety", "x", ""]),
    max_results=st.integers(min_value=0, max_value=10),
)
@pytest.mark.property
def test_ranked_output_is_bounded_unique_and_sorted(
    results: list[SearchResult],
    query: str,
    max_results: int,
) -> None:
    ranked = ResultRanker().rank(results, query, max_results)

    assert len(ranked) <= max_results
    urls = [normalize_url(r.url) for r in ranked]
    assert all(urls)
    assert len(urls) == len(set(urls))
    buckets = [confidence_bucket(r.confidence) for r in ranked]
    assert buckets == sorted(buckets, reverse=True)
    assert ranked == ResultRanker().rank(list(results), query, max_results)
