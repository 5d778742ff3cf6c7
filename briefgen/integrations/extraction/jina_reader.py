"""
Jina Reader extraction client.

Fetches the readable text of an article through the Jina Reader proxy.
"""

import asyncio
import logging

import aiohttp

from ...core.interfaces import ExtractionProvider
from ...core.models.errors import ExtractionError


logger = logging.getLogger(__name__)


class JinaReaderClient(ExtractionProvider):
    """
    Jina Reader client returning plain text for a URL.
    """

    def __init__(
        self,
        api_key: str = None,
        reader_url: str = "https://r.jina.ai/",
        timeout: int = 30
    ):
        """
        Initialize the reader client.

        Args:
            api_key: Jina API key; anonymous requests are rate limited harder
            reader_url: Reader proxy prefix
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.reader_url = reader_url if reader_url.endswith('/') else reader_url + '/'
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> 'JinaReaderClient':
        return cls(
            api_key=config.JINA_API_KEY,
            reader_url=config.JINA_READER_URL,
            timeout=config.EXTRACT_TIMEOUT
        )

    async def extract(self, url: str) -> str:
        """
        Fetch readable text for ``url``.

        Raises:
            ExtractionError: On non-200 responses, timeouts or connection failures
        """
        headers = {
            "X-Return-Format": "text",
            "User-Agent": "ContentBriefGenerator/1.0"
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(f"{self.reader_url}{url}", headers=headers) as response:
                    if response.status != 200:
                        logger.warning(f"Reader returned HTTP {response.status} for {url}")
                        raise ExtractionError(
                            f"HTTP {response.status}",
                            url=url,
                            status_code=response.status
                        )
                    text = await response.text()

        except asyncio.TimeoutError:
            logger.warning(f"Reader timeout for {url}")
            raise ExtractionError("Extraction timeout", url=url)

        except aiohttp.ClientError as e:
            logger.warning(f"Reader connection error for {url}: {str(e)}")
            raise ExtractionError(f"Extraction failed: {str(e)}", url=url)

        return text
