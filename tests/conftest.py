import os
from collections.abc import Sequence
from typing import Any

import pytest

# Keep test runs from appending to the JSON event log.
os.environ.setdefault("SEARCH_ROUTING_EVENT_LOG", "0")


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration/e2e tests that call real public providers.",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers", "integration: requires network access to real providers"
    )
    config.addinivalue_line("markers", "e2e: end-to-end runtime tests")
    config.addinivalue_line("markers", "property: property-based deterministic tests")


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: Sequence[pytest.Item],
) -> None:
    run_integration = config.getoption("--run-integration")
    skip_integration = pytest.mark.skip(
        reason="integration/e2e is opt-in; rerun with --run-integration"
    )

    for item in items:
        if "tests/e2e/" in item.nodeid:
            item.add_marker("integration")
            item.add_marker("e2e")
        if (
            item.get_closest_marker("integration") or item.get_closest_marker("e2e")
        ) and not run_integration:
            item.add_marker(skip_integration)


@pytest.fixture
def routing_document() -> dict[str, Any]:
    """Small routing document: one keyless trial news provider, one keyed academic pair."""
    return {
        "version": "1.0",
        "trial": {"enabled": True, "per_user_daily": {"news": 2, "academic": 100}},
        "routing": {
            "category_policy": "parallel",
            "fallback": "next_available",
            "timeout_ms": 2000,
        },
        "categories": [
            {
                "id": "news",
                "label": "News",
                "selection": "weighted",
                "max_parallel": 1,
                "providers": ["newsfeed"],
            },
            {
                "id": "academic",
                "label": "Academic",
                "selection": "weighted",
                "max_parallel": 2,
                "providers": ["papers", "scholar"],
            },
        ],
        "providers": {
            "newsfeed": {
                "label": "News Feed",
                "category": "news",
                "base_url": "https://news.example.com",
                "key_type": "none",
                "trial_applies": True,
            },
            "papers": {
                "label": "Papers",
                "category": "academic",
                "base_url": "https://papers.example.com",
                "key_type": "none",
                "trial_applies": True,
                "weight": 12,
            },
            "scholar": {
                "label": "Scholar",
                "category": "academic",
                "base_url": "https://scholar.example.com",
                "key_type": "byok",
                "trial_applies": False,
                "weight": 20,
            },
        },
    }
