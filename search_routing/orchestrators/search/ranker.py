"""Result ranker: URL dedup, then confidence (0.1 buckets) with query relevance as tie-breaker.

Ranking is pure: identical inputs always give identical output order.
"""

import logging
import math

from search_routing.orchestrators.search.models import SearchResult

logger = logging.getLogger(__name__)

MIN_TOKEN_LENGTH = 2


def normalize_url(url: str) -> str:
    """Dedup key: query string stripped, case-folded."""
    return url.split("?", 1)[0].strip().lower()


def query_tokens(query: str) -> list[str]:
    return [t.lower() for t in query.split() if len(t) >= MIN_TOKEN_LENGTH]


def relevance_score(result: SearchResult, tokens: list[str]) -> float:
    """(title matches * 2 + snippet matches) / (token count * 2), substring containment."""
    if not tokens:
        return 0.0
    title = result.title.lower()
    snippet = result.snippet.lower()
    title_matches = sum(1 for t in tokens if t in title)
    snippet_matches = sum(1 for t in tokens if t in snippet)
    return (title_matches * 2 + snippet_matches) / (len(tokens) * 2)


def deduplicate_results(results: list[SearchResult]) -> list[SearchResult]:
    """First occurrence of each normalized URL wins. Results without a URL are dropped."""
    seen: set[str] = set()
    deduped: list[SearchResult] = []
    for r in results:
        key = normalize_url(r.url)
        if not key or key in seen:
            continue
        seen.add(key)
        deduped.append(r)
    return deduped


def confidence_bucket(confidence: float) -> float:
    """Nearest 0.1, halves rounded up (0.25 -> 0.3)."""
    return math.floor(round(confidence * 10, 9) + 0.5) / 10


class ResultRanker:
    def rank(self, results: list[SearchResult], query: str, max_results: int) -> list[SearchResult]:
        if not results or max_results <= 0:
            return []

        deduped = deduplicate_results(results)
        tokens = query_tokens(query)

        scored = [(confidence_bucket(r.confidence), relevance_score(r, tokens), r) for r in deduped]
        scored.sort(key=lambda x: (-x[0], -x[1], x[2].source, x[2].id))

        ranked = [r for _, _, r in scored[:max_results]]

        logger.info(
            "Ranker: %s input -> %s deduped -> %s ranked",
            len(results), len(deduped), len(ranked),
        )
        return ranked
