"""
Source discovery.

Finds competitor articles for a topic by running a fixed set of search
query templates and keeping only URLs that look like editorial content.
"""

import asyncio
import logging
import re
import time
from typing import Awaitable, Callable, Dict, List

from ..interfaces import SearchProvider
from ..models.errors import InsufficientSourcesError, PipelineStage, ValidationError
from ..models.source import SourceCandidate
from ...utils.logging import PipelineLogger


logger = logging.getLogger(__name__)

TARGET_SOURCES = 10
MIN_SOURCES = 2
MIN_TOPIC_LENGTH = 3

BLOCKED_URL_PATTERNS = (
    '/pricing',
    '/product/',
    '/products/',
    '/signup',
    '/sign-up',
    '/login',
    '/demo',
    '/about',
    '/contact',
    '/careers',
    '/jobs',
    'youtube.com',
    'facebook.com',
    'twitter.com',
    'linkedin.com',
    'instagram.com',
    'tiktok.com',
    'reddit.com',
)

CONTENT_URL_PATTERNS = (
    '/blog/',
    '/article/',
    '/post/',
    '/guide/',
    '/resource/',
    '/learn/',
    '/insights/',
    '/news/',
    '/content/',
)

PRIMARY_QUERY_TEMPLATES = (
    "{topic} blog",
    "{topic} inurl:blog",
    "{topic} article",
    "{topic} guide",
)

BROADENED_QUERY_TEMPLATES = (
    "{topic} article",
    "{topic} how to",
    "{topic} comparison",
    "{topic} review",
    "learn about {topic}",
    "{topic} explained",
)

_SUPERLATIVES = re.compile(r"\b(best|top|leading|ultimate|essential)\b", re.IGNORECASE)


def is_valid_blog_url(url: str) -> bool:
    """
    Check whether a URL looks like an article rather than a product or social page.

    Blocklist matches win over allowlist matches.
    """
    lowered = (url or '').lower()
    if any(pattern in lowered for pattern in BLOCKED_URL_PATTERNS):
        return False
    return any(pattern in lowered for pattern in CONTENT_URL_PATTERNS)


def simplify_topic(topic: str) -> str:
    """Drop superlatives like "best" or "top"; keep the topic if nothing is left."""
    simplified = re.sub(r"\s+", " ", _SUPERLATIVES.sub(" ", topic)).strip()
    return simplified or topic.strip()


class SourceFinder:
    """
    Discovers up to ten article URLs for a topic.
    """

    def __init__(
        self,
        search_provider: SearchProvider,
        target: int = TARGET_SOURCES,
        min_sources: int = MIN_SOURCES,
        delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """
        Initialize the finder.

        Args:
            search_provider: Web search collaborator
            target: Number of unique URLs to stop at
            min_sources: Fewest URLs that still allow the run to continue
            delay: Seconds between consecutive search calls
            sleep: Sleep coroutine, injectable for tests
        """
        self.search_provider = search_provider
        self.target = target
        self.min_sources = min_sources
        self.delay = delay
        self.sleep = sleep
        self.pipeline_logger = PipelineLogger()

    async def find_sources(self, topic: str) -> List[SourceCandidate]:
        """
        Find candidate articles for ``topic``.

        Returns:
            Between ``min_sources`` and ``target`` candidates in discovery order

        Raises:
            ValidationError: If the topic is too short
            InsufficientSourcesError: If fewer than ``min_sources`` URLs survive
        """
        topic = (topic or '').strip()
        if len(topic) < MIN_TOPIC_LENGTH:
            raise ValidationError(
                f"Topic must be at least {MIN_TOPIC_LENGTH} characters long",
                field="topic",
                value=topic
            )

        start_time = time.time()
        self.pipeline_logger.log_stage_start(PipelineStage.BLOG_SEARCH.value, topic)

        found: Dict[str, SourceCandidate] = {}

        searched = await self._run_queries(
            [template.format(topic=topic) for template in PRIMARY_QUERY_TEMPLATES],
            found,
            searched=0
        )

        if len(found) < self.target:
            simplified = simplify_topic(topic)
            logger.info(f"Found {len(found)} sources; broadening search with '{simplified}'")
            await self._run_queries(
                [template.format(topic=simplified) for template in BROADENED_QUERY_TEMPLATES],
                found,
                searched=searched
            )

        sources = list(found.values())[:self.target]

        if len(sources) < self.min_sources:
            self.pipeline_logger.log_stage_error(
                PipelineStage.BLOG_SEARCH.value,
                f"only {len(sources)} valid sources"
            )
            raise InsufficientSourcesError(topic, found=len(sources))

        if len(sources) < 5:
            self.pipeline_logger.log_stage_degraded(PipelineStage.BLOG_SEARCH.value, len(sources), self.target)

        self.pipeline_logger.log_stage_complete(
            PipelineStage.BLOG_SEARCH.value,
            len(sources),
            time.time() - start_time
        )
        return sources

    async def _run_queries(self, queries: List[str], found: Dict[str, SourceCandidate], searched: int) -> int:
        """Run queries until the target is met; return the running count of search calls."""
        for query in queries:
            if len(found) >= self.target:
                break

            if searched and self.delay:
                await self.sleep(self.delay)
            searched += 1

            try:
                results = await self.search_provider.search(query, count=self.target)
            except Exception as e:
                logger.warning(f"Search failed for '{query}': {str(e)}")
                continue

            added = 0
            for candidate in results:
                if not is_valid_blog_url(candidate.url):
                    continue
                if candidate.dedup_key in found:
                    continue
                found[candidate.dedup_key] = candidate
                added += 1
                if len(found) >= self.target:
                    break

            logger.debug(f"Query '{query}': {len(results)} results, {added} new valid sources")

        return searched
