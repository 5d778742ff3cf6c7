"""
Brief pipeline orchestrator.

Runs a brief request end to end: account checks, source discovery,
extraction, per-source analysis, synthesis, persistence and the
best-effort delivery steps that follow a successful save.
"""

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from ..interfaces import AccountGateway, ArtifactPublisher, BriefStore, Notifier
from ..models.errors import (
    AnalysisFailedError,
    AuthorizationError,
    NoCreditsError,
    NoSubscriptionError,
    PersistenceError,
    PipelineStage,
    PipelineStageError,
    PipelineTimeoutError,
    SynthesisFailedError,
    UpstreamProviderError,
    ValidationError,
)
from ..models.pipeline import Account, PipelineResult, PipelineRun
from ...utils.logging import PipelineLogger
from .brief_synthesizer import BriefSynthesizer
from .content_extractor import ContentExtractor, TARGET_EXTRACTIONS
from .source_analyzer import SourceAnalyzer
from .source_finder import SourceFinder


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, str], Any]

DEGRADED_SOURCE_COUNT = 5


async def check_account(account_gateway: AccountGateway, user_id: Optional[str]) -> Account:
    """
    Check that a user may generate a brief.

    Raises:
        AuthorizationError: Unknown or missing user
        NoSubscriptionError: Subscription is not active
        NoCreditsError: No credits left
        UpstreamProviderError: The account lookup itself failed
    """
    if not user_id:
        raise AuthorizationError()

    try:
        account = await account_gateway.get_account(user_id)
    except Exception as e:
        logger.error(f"Account lookup failed for {user_id}: {str(e)}")
        raise UpstreamProviderError(f"Account lookup failed: {str(e)}", cause=e) from e

    if account is None:
        raise AuthorizationError(user_id=user_id)

    if not account.has_active_subscription:
        raise NoSubscriptionError(user_id=user_id, subscription_status=account.subscription_status)

    if account.credits_remaining < 1:
        raise NoCreditsError(user_id=user_id, credits_remaining=account.credits_remaining)

    return account


class BriefPipeline:
    """
    Linear brief-generation pipeline.

    Stages run strictly in order and each stage owns its output list.
    Failures abort the run with an error tagged with the failing stage;
    steps after the brief is saved never fail the run.
    """

    def __init__(
        self,
        source_finder: SourceFinder,
        content_extractor: ContentExtractor,
        source_analyzer: SourceAnalyzer,
        brief_synthesizer: BriefSynthesizer,
        brief_store: BriefStore,
        account_gateway: AccountGateway,
        artifact_publisher: Optional[ArtifactPublisher] = None,
        notifier: Optional[Notifier] = None,
        analysis_delay: float = 0.5,
        synthesis_retry_delay: float = 2.0,
        timeout: float = 600,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.source_finder = source_finder
        self.content_extractor = content_extractor
        self.source_analyzer = source_analyzer
        self.brief_synthesizer = brief_synthesizer
        self.brief_store = brief_store
        self.account_gateway = account_gateway
        self.artifact_publisher = artifact_publisher
        self.notifier = notifier
        self.analysis_delay = analysis_delay
        self.synthesis_retry_delay = synthesis_retry_delay
        self.timeout = timeout
        self.sleep = sleep
        self.pipeline_logger = PipelineLogger()

    async def preflight(self, user_id: Optional[str]) -> Account:
        """Check that the user may generate a brief before any stage runs."""
        return await check_account(self.account_gateway, user_id)

    async def run_with_timeout(
        self,
        topic: str,
        user_id: Optional[str],
        on_progress: Optional[ProgressCallback] = None,
        timeout: Optional[float] = None
    ) -> PipelineResult:
        """
        Run the pipeline within a time budget.

        Raises:
            PipelineTimeoutError: If the run does not finish in time
        """
        timeout = timeout or self.timeout
        try:
            return await asyncio.wait_for(self.run(topic, user_id, on_progress), timeout)
        except asyncio.TimeoutError:
            logger.error(f"Brief generation for '{topic}' timed out after {timeout}s")
            raise PipelineTimeoutError(timeout) from None

    async def run(
        self,
        topic: str,
        user_id: Optional[str],
        on_progress: Optional[ProgressCallback] = None
    ) -> PipelineResult:
        """
        Generate, save and deliver a brief for ``topic``.

        Args:
            topic: Brief topic
            user_id: Requesting user
            on_progress: Optional ``(stage, percent, message)`` callback, sync or async

        Returns:
            PipelineResult with the saved brief id

        Raises:
            AuthorizationError, NoSubscriptionError, NoCreditsError: Pre-flight failures
            ValidationError: Invalid topic
            PipelineStageError: A stage failed; ``stage`` names it
        """
        topic = (topic or '').strip()
        start_time = time.time()

        account = await self.preflight(user_id)
        run = PipelineRun(topic=topic, user_id=user_id)
        logger.info(f"Starting brief generation for '{topic}' (user {user_id})")

        # Sources
        await self._progress(on_progress, PipelineStage.BLOG_SEARCH, 10, "Searching for competitor articles")
        run.candidates = await self._stage(run, PipelineStage.BLOG_SEARCH, self.source_finder.find_sources(topic))
        if run.sources_found < DEGRADED_SOURCE_COUNT:
            run.mark_degraded(PipelineStage.BLOG_SEARCH)
        await self._progress(on_progress, PipelineStage.BLOG_SEARCH, 25, f"Found {run.sources_found} articles")

        # Extraction
        await self._progress(on_progress, PipelineStage.CONTENT_EXTRACTION, 30, "Extracting article content")
        report = await self._stage(
            run,
            PipelineStage.CONTENT_EXTRACTION,
            self.content_extractor.extract_with_report([c.url for c in run.candidates])
        )
        run.extracted = list(report.successes)
        run.extraction_failures = list(report.failures)
        if run.sources_extracted < min(run.sources_found, TARGET_EXTRACTIONS):
            run.mark_degraded(PipelineStage.CONTENT_EXTRACTION)
        await self._progress(
            on_progress, PipelineStage.CONTENT_EXTRACTION, 50, f"Extracted {run.sources_extracted} articles"
        )

        # Analysis
        await self._analyze_sources(run, on_progress)

        # Synthesis
        await self._progress(on_progress, PipelineStage.BRIEF_SYNTHESIS, 80, "Synthesizing brief")
        stage_start = time.time()
        brief = await self._synthesize_with_retry(run)
        run.stage_timings[PipelineStage.BRIEF_SYNTHESIS.value] = time.time() - stage_start

        # Persistence
        await self._progress(on_progress, PipelineStage.DATABASE_SAVE, 90, "Saving brief")
        record = run.build_record(brief)
        stage_start = time.time()
        try:
            brief_id = await self.brief_store.save_brief(record)
        except PersistenceError:
            raise
        except Exception as e:
            self.pipeline_logger.log_stage_error(PipelineStage.DATABASE_SAVE.value, str(e))
            raise PersistenceError(f"Failed to save brief: {str(e)}") from e
        run.stage_timings[PipelineStage.DATABASE_SAVE.value] = time.time() - stage_start

        # Delivery
        artifact_url = await self._publish_artifact(account, brief_id, record)
        credits_remaining = await self._deduct_credit(account)
        if artifact_url:
            await self._notify(account, brief_id, topic, artifact_url)

        total_time = time.time() - start_time
        await self._progress(on_progress, PipelineStage.DATABASE_SAVE, 100, "Brief ready")
        logger.info(
            f"Brief {brief_id} for '{topic}' completed in {total_time:.2f}s "
            f"({run.sources_found} found, {run.sources_extracted} extracted, {run.sources_analyzed} analyzed)"
        )

        return PipelineResult(
            brief=brief,
            brief_id=brief_id,
            topic=topic,
            sources_found=run.sources_found,
            sources_extracted=run.sources_extracted,
            sources_analyzed=run.sources_analyzed,
            sources=run.candidates,
            artifact_url=artifact_url,
            credits_remaining=credits_remaining,
            degraded_stages=run.degraded_stages,
            total_time=total_time
        )

    async def _stage(self, run: PipelineRun, stage: PipelineStage, work: Awaitable[Any]) -> Any:
        """Await one stage, tagging unclassified failures with the stage."""
        stage_start = time.time()
        try:
            result = await work
        except (PipelineStageError, ValidationError):
            raise
        except Exception as e:
            self.pipeline_logger.log_stage_error(stage.value, str(e))
            raise UpstreamProviderError(f"{stage.value} failed: {str(e)}", stage=stage, cause=e) from e
        run.stage_timings[stage.value] = time.time() - stage_start
        return result

    async def _analyze_sources(self, run: PipelineRun, on_progress: Optional[ProgressCallback]):
        stage = PipelineStage.BLOG_ANALYSIS
        stage_start = time.time()
        self.pipeline_logger.log_stage_start(stage.value, run.topic)
        total = run.sources_extracted

        for index, source in enumerate(run.extracted):
            if index > 0 and self.analysis_delay:
                await self.sleep(self.analysis_delay)

            await self._progress(
                on_progress, stage, 55 + int(20 * index / max(total, 1)),
                f"Analyzing article {index + 1} of {total}"
            )

            try:
                analysis = await self.source_analyzer.analyze(source.content, source.url, source.title)
            except Exception as e:
                logger.warning(f"Skipping {source.url}: analysis failed: {str(e)}")
                continue

            run.analyses.append(analysis)

        if not run.analyses:
            self.pipeline_logger.log_stage_error(stage.value, "no sources analyzed")
            raise AnalysisFailedError(attempted=total)

        if run.sources_analyzed < total or any(a.is_fallback for a in run.analyses):
            run.mark_degraded(stage)

        run.stage_timings[stage.value] = time.time() - stage_start
        self.pipeline_logger.log_stage_complete(stage.value, run.sources_analyzed, run.stage_timings[stage.value])
        await self._progress(on_progress, stage, 75, f"Analyzed {run.sources_analyzed} articles")

    async def _synthesize_with_retry(self, run: PipelineRun):
        try:
            return await self.brief_synthesizer.synthesize(run.analyses, run.topic)
        except Exception as e:
            logger.warning(f"Brief synthesis failed, retrying in {self.synthesis_retry_delay}s: {str(e)}")

        if self.synthesis_retry_delay:
            await self.sleep(self.synthesis_retry_delay)

        try:
            return await self.brief_synthesizer.synthesize(run.analyses, run.topic)
        except Exception as e:
            self.pipeline_logger.log_stage_error(PipelineStage.BRIEF_SYNTHESIS.value, str(e))
            raise SynthesisFailedError("Failed to generate brief after retry") from e

    async def _publish_artifact(self, account: Account, brief_id: str, record: dict) -> Optional[str]:
        if self.artifact_publisher is None:
            return None
        try:
            artifact_url = await self.artifact_publisher.publish(account.user_id, brief_id, record)
            if artifact_url:
                await self.brief_store.update_artifact_url(brief_id, artifact_url)
            return artifact_url
        except Exception as e:
            logger.error(f"Artifact publishing failed for brief {brief_id}: {str(e)}")
            return None

    async def _deduct_credit(self, account: Account) -> int:
        try:
            return await self.account_gateway.deduct_credit(account)
        except Exception as e:
            logger.error(f"Credit deduction failed for user {account.user_id}: {str(e)}")
            return account.credits_remaining

    async def _notify(self, account: Account, brief_id: str, topic: str, artifact_url: str):
        if self.notifier is None:
            return
        try:
            sent = await self.notifier.notify(account, brief_id, topic, artifact_url)
            if not sent:
                logger.warning(f"Notification for brief {brief_id} was not sent")
        except Exception as e:
            logger.error(f"Notification failed for brief {brief_id}: {str(e)}")

    async def _progress(self, on_progress: Optional[ProgressCallback], stage: PipelineStage, percent: int, message: str):
        if on_progress is None:
            return
        try:
            outcome = on_progress(stage.value, percent, message)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.warning(f"Progress callback failed: {str(e)}")
