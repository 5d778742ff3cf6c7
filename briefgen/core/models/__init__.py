"""
Data models and schemas for the brief generator.

This module contains all the data models, validation schemas, and
type definitions used throughout the system.
"""

from .source import (
    SourceCandidate,
    ExtractedSource,
    ExtractionReport,
    SourceHeadings,
    SourceAnalysis,
    normalize_url
)

from .brief import (
    Brief,
    BriefSection,
    BriefStructure,
    SeoData,
    TargetSpecs,
    CompetitorAnalysis,
    ContentRequirements,
    WritingInstructions,
    MetaData,
    BRIEF_SECTION_KEYS
)

from .pipeline import (
    Account,
    SubscriptionStatus,
    BriefRequest,
    PipelineRun,
    PipelineResult
)

from .llm import (
    LLMProvider,
    LLMModel,
    LLMConfig,
    LLMResponse
)

from .errors import (
    PipelineStage,
    BriefGeneratorError,
    ValidationError,
    LLMError,
    SearchError,
    ExtractionError,
    ConfigurationError,
    AuthorizationError,
    NoCreditsError,
    NoSubscriptionError,
    PipelineStageError,
    InsufficientSourcesError,
    ExtractionFailedError,
    AnalysisFailedError,
    SynthesisFailedError,
    PersistenceError,
    UpstreamProviderError,
    PipelineTimeoutError
)

__all__ = [
    # Source models
    'SourceCandidate',
    'ExtractedSource',
    'ExtractionReport',
    'SourceHeadings',
    'SourceAnalysis',
    'normalize_url',

    # Brief models
    'Brief',
    'BriefSection',
    'BriefStructure',
    'SeoData',
    'TargetSpecs',
    'CompetitorAnalysis',
    'ContentRequirements',
    'WritingInstructions',
    'MetaData',
    'BRIEF_SECTION_KEYS',

    # Pipeline models
    'Account',
    'SubscriptionStatus',
    'BriefRequest',
    'PipelineRun',
    'PipelineResult',

    # LLM models
    'LLMProvider',
    'LLMModel',
    'LLMConfig',
    'LLMResponse',

    # Error models
    'PipelineStage',
    'BriefGeneratorError',
    'ValidationError',
    'LLMError',
    'SearchError',
    'ExtractionError',
    'ConfigurationError',
    'AuthorizationError',
    'NoCreditsError',
    'NoSubscriptionError',
    'PipelineStageError',
    'InsufficientSourcesError',
    'ExtractionFailedError',
    'AnalysisFailedError',
    'SynthesisFailedError',
    'PersistenceError',
    'UpstreamProviderError',
    'PipelineTimeoutError'
]
