"""
Tests for source discovery.
"""

import pytest

from briefgen.core.models.errors import InsufficientSourcesError, PipelineStage, SearchError, ValidationError
from briefgen.core.models.source import SourceCandidate
from briefgen.core.pipeline.source_finder import SourceFinder, is_valid_blog_url, simplify_topic

from conftest import FakeSearch, RecordingSleep, blog_candidates


@pytest.mark.parametrize("url,expected", [
    ("https://example.com/blog/container-tips", True),
    ("https://example.com/guide/potting-soil", True),
    ("https://example.com/learn/watering", True),
    ("https://example.com/pricing", False),
    ("https://example.com/products/planter", False),
    ("https://example.com/about", False),
    ("https://www.youtube.com/blog/video", False),
    ("https://www.reddit.com/r/gardening/post/123", False),
    ("https://example.com/container-tips", False),
])
def test_is_valid_blog_url(url, expected):
    assert is_valid_blog_url(url) is expected


def test_blocklist_wins_over_allowlist():
    assert not is_valid_blog_url("https://example.com/blog/pricing")


def test_simplify_topic():
    assert simplify_topic("best running shoes") == "running shoes"
    assert simplify_topic("Top 10 Ultimate budgeting apps") == "10 budgeting apps"
    assert simplify_topic("best") == "best"


@pytest.mark.asyncio
async def test_stops_at_target():
    search = FakeSearch(default=blog_candidates(12))
    finder = SourceFinder(search, delay=0)

    sources = await finder.find_sources("container gardening")

    assert len(sources) == 10
    assert search.queries == ["container gardening blog"]


@pytest.mark.asyncio
async def test_deduplicates_across_queries():
    search = FakeSearch(results={
        "container gardening blog": [
            SourceCandidate(url="https://a.com/blog/one"),
            SourceCandidate(url="https://b.com/blog/two"),
        ],
        "container gardening inurl:blog": [
            SourceCandidate(url="https://A.com/blog/one/"),
            SourceCandidate(url="https://c.com/blog/three"),
        ],
    })
    finder = SourceFinder(search, delay=0)

    sources = await finder.find_sources("container gardening")

    assert [s.url for s in sources] == [
        "https://a.com/blog/one",
        "https://b.com/blog/two",
        "https://c.com/blog/three",
    ]


@pytest.mark.asyncio
async def test_broadens_with_simplified_topic():
    search = FakeSearch(results={
        "best running shoes blog": blog_candidates(3, "a.com"),
        "running shoes how to": blog_candidates(3, "b.com"),
    })
    finder = SourceFinder(search, delay=0)

    sources = await finder.find_sources("best running shoes")

    assert len(sources) == 6
    assert "running shoes how to" in search.queries
    assert "learn about running shoes" in search.queries
    assert search.queries[:4] == [
        "best running shoes blog",
        "best running shoes inurl:blog",
        "best running shoes article",
        "best running shoes guide",
    ]


@pytest.mark.asyncio
async def test_filters_invalid_urls():
    search = FakeSearch(default=[
        SourceCandidate(url="https://shop.com/pricing"),
        SourceCandidate(url="https://youtube.com/watch?v=1"),
        SourceCandidate(url="https://a.com/blog/one"),
        SourceCandidate(url="https://b.com/article/two"),
    ])
    finder = SourceFinder(search, delay=0)

    sources = await finder.find_sources("container gardening")

    assert [s.url for s in sources] == ["https://a.com/blog/one", "https://b.com/article/two"]


@pytest.mark.asyncio
async def test_failed_queries_are_skipped():
    search = FakeSearch(
        results={"container gardening blog": SearchError("quota exceeded", status_code=429)},
        default=blog_candidates(3)
    )
    finder = SourceFinder(search, delay=0)

    sources = await finder.find_sources("container gardening")

    assert len(sources) == 3
    assert len(search.queries) == 10


@pytest.mark.asyncio
async def test_insufficient_sources():
    search = FakeSearch(default=blog_candidates(1))
    finder = SourceFinder(search, delay=0)

    with pytest.raises(InsufficientSourcesError) as exc_info:
        await finder.find_sources("container gardening")

    assert exc_info.value.stage == PipelineStage.BLOG_SEARCH
    assert exc_info.value.found == 1
    assert "container gardening" in exc_info.value.message


@pytest.mark.asyncio
async def test_every_query_failing_is_insufficient():
    search = FakeSearch(default=SearchError("down"))
    finder = SourceFinder(search, delay=0)

    with pytest.raises(InsufficientSourcesError):
        await finder.find_sources("container gardening")


@pytest.mark.asyncio
async def test_short_topic_rejected():
    search = FakeSearch()
    finder = SourceFinder(search)

    with pytest.raises(ValidationError):
        await finder.find_sources("  ab ")

    assert search.queries == []


@pytest.mark.asyncio
async def test_delay_between_search_calls():
    sleep = RecordingSleep()
    search = FakeSearch(default=blog_candidates(2))
    finder = SourceFinder(search, delay=1.5, sleep=sleep)

    await finder.find_sources("container gardening")

    assert len(search.queries) == 10
    assert sleep.calls == [1.5] * 9
