"""
SerpAPI web search client.

This module queries Google organic results through SerpAPI and maps
them onto ``SourceCandidate`` records.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List

import aiohttp

from ...core.interfaces import SearchProvider
from ...core.models.errors import SearchError
from ...core.models.source import SourceCandidate


logger = logging.getLogger(__name__)


class SerpApiClient(SearchProvider):
    """
    SerpAPI client for Google organic results.
    """

    provider_name = "serpapi"

    def __init__(
        self,
        api_key: str,
        endpoint: str = "https://serpapi.com/search",
        timeout: int = 15,
        country: str = "us",
        language: str = "en"
    ):
        """
        Initialize the SerpAPI client.

        Args:
            api_key: SerpAPI key
            endpoint: Search endpoint URL
            timeout: Request timeout in seconds
            country: Google ``gl`` parameter
            language: Google ``hl`` parameter
        """
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.country = country
        self.language = language

    @classmethod
    def from_config(cls, config) -> 'SerpApiClient':
        return cls(
            api_key=config.SERP_API_KEY,
            endpoint=config.SERP_API_URL,
            timeout=config.SEARCH_TIMEOUT
        )

    async def search(self, query: str, count: int = 10) -> List[SourceCandidate]:
        """
        Run one Google search.

        Args:
            query: Search query
            count: Number of results to request

        Returns:
            Organic results that carry a link

        Raises:
            SearchError: On non-200 responses, timeouts or connection failures
        """
        params = {
            "engine": "google",
            "q": query,
            "num": count,
            "gl": self.country,
            "hl": self.language,
            "api_key": self.api_key
        }

        start_time = time.time()

        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(self.endpoint, params=params) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        logger.error(f"SerpAPI query failed: {response.status} - {error_text[:200]}")
                        raise SearchError(
                            f"Search request failed with HTTP {response.status}",
                            query=query,
                            provider=self.provider_name,
                            status_code=response.status
                        )

                    data = await response.json(content_type=None)

        except asyncio.TimeoutError:
            logger.error(f"SerpAPI query timeout for '{query}'")
            raise SearchError("Search request timed out", query=query, provider=self.provider_name)

        except aiohttp.ClientError as e:
            logger.error(f"SerpAPI connection error: {str(e)}")
            raise SearchError(f"Search request failed: {str(e)}", query=query, provider=self.provider_name)

        if data.get("error"):
            raise SearchError(f"Search provider error: {data['error']}", query=query, provider=self.provider_name)

        results = self._parse_results(data)
        logger.info(f"SerpAPI query '{query}' returned {len(results)} results in {time.time() - start_time:.2f}s")
        return results

    def _parse_results(self, data: Dict[str, Any]) -> List[SourceCandidate]:
        results = []
        for item in data.get("organic_results") or []:
            link = item.get("link")
            if not link:
                continue
            results.append(SourceCandidate(
                url=link,
                title=item.get("title") or "",
                snippet=item.get("snippet") or ""
            ))
        return results
