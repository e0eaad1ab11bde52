from collections.abc import AsyncIterator

import pytest_asyncio

from search_routing.core.bootstrap import build_engine
from search_routing.orchestrators.search.engine import SearchRoutingEngine


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[SearchRoutingEngine]:
    """Real engine over the shipped routing document, for e2e suites only."""
    instance = build_engine()
    try:
        yield instance
    finally:
        await instance.stop()
