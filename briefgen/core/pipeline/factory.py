"""
Pipeline assembly from application configuration.
"""

import logging
from typing import Optional

from ..interfaces import BriefRenderer
from ...integrations.extraction import JinaReaderClient
from ...integrations.llm import LLMClient
from ...integrations.notifications import ResendEmailNotifier
from ...integrations.search import SerpApiClient
from ...integrations.storage import (
    get_supabase_client,
    SupabaseAccountGateway,
    SupabaseArtifactPublisher,
    SupabaseBriefStore,
)
from .brief_synthesizer import BriefSynthesizer
from .content_extractor import ContentExtractor
from .orchestrator import BriefPipeline
from .source_analyzer import SourceAnalyzer
from .source_finder import SourceFinder


logger = logging.getLogger(__name__)


def build_pipeline(config, renderer: Optional[BriefRenderer] = None) -> BriefPipeline:
    """
    Wire the production collaborators into a ``BriefPipeline``.

    Args:
        config: Application configuration
        renderer: Document renderer; artifact publishing is disabled without one

    Returns:
        Configured pipeline
    """
    llm_client = LLMClient.from_config(config)
    supabase = get_supabase_client(config.SUPABASE_URL, config.SUPABASE_KEY)

    publisher = None
    if renderer is not None:
        publisher = SupabaseArtifactPublisher(supabase, renderer, bucket=config.SUPABASE_PDF_BUCKET)
    else:
        logger.info("No brief renderer configured; artifact publishing disabled")

    notifier = None
    if config.RESEND_API_KEY:
        notifier = ResendEmailNotifier.from_config(config)

    return BriefPipeline(
        source_finder=SourceFinder(
            SerpApiClient.from_config(config),
            delay=config.SEARCH_DELAY_SECONDS
        ),
        content_extractor=ContentExtractor(
            JinaReaderClient.from_config(config),
            delay_min=config.EXTRACT_DELAY_MIN_SECONDS,
            delay_max=config.EXTRACT_DELAY_MAX_SECONDS
        ),
        source_analyzer=SourceAnalyzer(llm_client, content_chars=config.ANALYSIS_CONTENT_CHARS),
        brief_synthesizer=BriefSynthesizer(llm_client),
        brief_store=SupabaseBriefStore(supabase),
        account_gateway=SupabaseAccountGateway(supabase),
        artifact_publisher=publisher,
        notifier=notifier,
        analysis_delay=config.ANALYSIS_DELAY_SECONDS,
        synthesis_retry_delay=config.SYNTHESIS_RETRY_DELAY_SECONDS,
        timeout=config.PIPELINE_TIMEOUT
    )
