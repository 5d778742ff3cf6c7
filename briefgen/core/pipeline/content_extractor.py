"""
Content extraction.

Fetches readable text for candidate URLs and rejects pages that are too
short, look like error pages or have no article structure.
"""

import asyncio
import logging
import random
import re
import time
from typing import Awaitable, Callable, List, Optional

from ..interfaces import ExtractionProvider
from ..models.errors import ExtractionError, ExtractionFailedError, PipelineStage, ValidationError
from ..models.source import ExtractedSource, ExtractionReport
from ...utils.logging import PipelineLogger


logger = logging.getLogger(__name__)

TARGET_EXTRACTIONS = 5
MIN_EXTRACTIONS = 2
MIN_WORD_COUNT = 500
STRUCTURE_WORD_COUNT = 1000
ERROR_PAGE_MAX_CHARS = 2000

ERROR_PAGE_INDICATORS = (
    '404',
    'not found',
    'page not found',
    'access denied',
    'forbidden',
    'error occurred',
    'something went wrong',
    'try again later',
)

_HEADING_PATTERN = re.compile(r"#{1,6}\s")


def count_words(content: str) -> int:
    return len(content.split())


def derive_title(content: str) -> str:
    """First non-blank line with leading ``#`` markers removed, or "Untitled"."""
    for line in content.splitlines():
        title = line.strip().lstrip('#').strip()
        if title:
            return title
    return "Untitled"


def validate_content(content: str, word_count: Optional[int] = None) -> Optional[str]:
    """
    Check extracted text quality.

    Args:
        content: Extracted text
        word_count: Precomputed word count

    Returns:
        None if the content is usable, otherwise the rejection reason
    """
    if word_count is None:
        word_count = count_words(content)

    if word_count < MIN_WORD_COUNT:
        return "Content too short"

    lowered = content.lower()
    if len(content) < ERROR_PAGE_MAX_CHARS and any(indicator in lowered for indicator in ERROR_PAGE_INDICATORS):
        return "Appears to be an error page"

    has_paragraphs = '\n\n' in content
    has_headings = bool(_HEADING_PATTERN.search(content))
    if not has_paragraphs and not has_headings and word_count <= STRUCTURE_WORD_COUNT:
        return "No clear article structure detected"

    return None


class ContentExtractor:
    """
    Sequential extractor that stops once enough sources pass validation.
    """

    def __init__(
        self,
        extraction_provider: ExtractionProvider,
        target: int = TARGET_EXTRACTIONS,
        min_successes: int = MIN_EXTRACTIONS,
        delay_min: float = 1.0,
        delay_max: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.extraction_provider = extraction_provider
        self.target = target
        self.min_successes = min_successes
        self.delay_min = delay_min
        self.delay_max = delay_max
        self.sleep = sleep
        self.pipeline_logger = PipelineLogger()

    async def extract_all(self, urls: List[str]) -> List[ExtractedSource]:
        """
        Extract content and return only the successful records.

        Raises:
            ValidationError: If ``urls`` is empty
            ExtractionFailedError: If fewer than ``min_successes`` pages pass validation
        """
        report = await self.extract_with_report(urls)
        return report.successes

    async def extract_with_report(self, urls: List[str]) -> ExtractionReport:
        """
        Extract content and keep the failure records alongside the successes.

        URLs are tried in the given order; extraction stops after
        ``min(len(urls), target)`` successes.
        """
        if not urls:
            raise ValidationError("No URLs to extract", field="urls", value=urls)

        start_time = time.time()
        self.pipeline_logger.log_stage_start(PipelineStage.CONTENT_EXTRACTION.value, f"{len(urls)} urls")

        goal = min(len(urls), self.target)
        report = ExtractionReport()

        for index, url in enumerate(urls):
            if len(report.successes) >= goal:
                break

            if index > 0:
                await self._pause()

            record = await self._extract_one(url)
            if record.success:
                report.successes.append(record)
                logger.info(f"Extracted {url} ({record.word_count} words)")
            else:
                report.failures.append(record)
                logger.warning(f"Skipped {url}: {record.failure_reason}")

        extracted = len(report.successes)
        if extracted < self.min_successes:
            self.pipeline_logger.log_stage_error(
                PipelineStage.CONTENT_EXTRACTION.value,
                f"only {extracted} of {report.attempted} pages usable"
            )
            raise ExtractionFailedError(extracted=extracted, attempted=report.attempted)

        if extracted < self.target:
            self.pipeline_logger.log_stage_degraded(PipelineStage.CONTENT_EXTRACTION.value, extracted, self.target)

        self.pipeline_logger.log_stage_complete(
            PipelineStage.CONTENT_EXTRACTION.value,
            extracted,
            time.time() - start_time
        )
        return report

    async def _extract_one(self, url: str) -> ExtractedSource:
        try:
            content = await self.extraction_provider.extract(url)
        except ExtractionError as e:
            return ExtractedSource.failed(url, e.message)
        except asyncio.TimeoutError:
            return ExtractedSource.failed(url, "Extraction timeout")
        except Exception as e:
            return ExtractedSource.failed(url, str(e) or type(e).__name__)

        content = (content or '').strip()
        word_count = count_words(content)
        reason = validate_content(content, word_count)
        if reason:
            return ExtractedSource.failed(url, reason)

        return ExtractedSource(
            url=url,
            title=derive_title(content),
            content=content,
            word_count=word_count,
            success=True
        )

    async def _pause(self):
        delay = random.uniform(self.delay_min, self.delay_max)
        if delay > 0:
            await self.sleep(delay)
