"""
Error models and exception classes.

This module defines the exception hierarchy for the brief generator:
transport-level errors raised by provider clients, stage-level errors
raised when a pipeline stage cannot meet its threshold, and pre-flight
errors raised before a run starts. It also defines the error response
body returned by the API.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field


class PipelineStage(str, Enum):
    """Stage identifiers reported with pipeline failures."""
    BLOG_SEARCH = "blog_search"
    CONTENT_EXTRACTION = "content_extraction"
    BLOG_ANALYSIS = "blog_analysis"
    BRIEF_SYNTHESIS = "brief_synthesis"
    DATABASE_SAVE = "database_save"


class BriefGeneratorError(Exception):
    """Base exception for the brief generator."""

    def __init__(self, message: str, error_code: str = None, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(BriefGeneratorError):
    """Validation error."""

    def __init__(self, message: str, field: str = None, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(message, "VALIDATION_ERROR", {"field": field, "value": value})


class LLMError(BriefGeneratorError):
    """LLM-related error."""

    def __init__(self, message: str, provider: str = None, model: str = None, retryable: bool = True):
        self.provider = provider
        self.model = model
        self.retryable = retryable
        super().__init__(
            message,
            "LLM_ERROR",
            {"provider": provider, "model": model, "retryable": retryable}
        )


class SearchError(BriefGeneratorError):
    """Search provider error."""

    def __init__(self, message: str, query: str = None, provider: str = None, status_code: int = None):
        self.query = query
        self.provider = provider
        self.status_code = status_code
        super().__init__(
            message,
            "SEARCH_ERROR",
            {"query": query, "provider": provider, "status_code": status_code}
        )


class ExtractionError(BriefGeneratorError):
    """Content extraction provider error."""

    def __init__(self, message: str, url: str = None, status_code: int = None):
        self.url = url
        self.status_code = status_code
        super().__init__(
            message,
            "EXTRACTION_ERROR",
            {"url": url, "status_code": status_code}
        )


class ConfigurationError(BriefGeneratorError):
    """Configuration error."""

    def __init__(self, message: str, config_key: str = None):
        self.config_key = config_key
        super().__init__(
            message,
            "CONFIGURATION_ERROR",
            {"config_key": config_key}
        )


class RateLimitError(BriefGeneratorError):
    """Rate limit error."""

    def __init__(self, message: str, retry_after: int = None, limit: int = None):
        self.retry_after = retry_after
        self.limit = limit
        super().__init__(
            message,
            "RATE_LIMIT_ERROR",
            {"retry_after": retry_after, "limit": limit}
        )


class AuthenticationError(BriefGeneratorError):
    """API key authentication error."""

    def __init__(self, message: str, api_key: str = None):
        self.api_key = api_key
        super().__init__(
            message,
            "AUTHENTICATION_ERROR",
            {"api_key": api_key}
        )


# Pre-flight errors. Raised before any pipeline stage runs.

class AuthorizationError(BriefGeneratorError):
    """The caller could not be resolved to a known account."""

    def __init__(self, message: str = "Unauthorized. Please sign in.", user_id: str = None):
        self.user_id = user_id
        super().__init__(message, "UNAUTHORIZED", {"user_id": user_id})


class NoSubscriptionError(BriefGeneratorError):
    """The account has no active subscription."""

    def __init__(self, message: str = None, user_id: str = None, subscription_status: str = None):
        self.user_id = user_id
        self.subscription_status = subscription_status
        super().__init__(
            message or "No active subscription. Please subscribe to a plan to generate briefs.",
            "NO_SUBSCRIPTION",
            {"user_id": user_id, "subscription_status": subscription_status}
        )


class NoCreditsError(BriefGeneratorError):
    """The account has no credits left."""

    def __init__(self, message: str = None, user_id: str = None, credits_remaining: int = 0):
        self.user_id = user_id
        self.credits_remaining = credits_remaining
        super().__init__(
            message or (
                "Out of credits. Your credits will reset on your next billing cycle, "
                "or upgrade your plan for more."
            ),
            "NO_CREDITS",
            {"user_id": user_id, "credits_remaining": credits_remaining}
        )


# Stage-level errors. Each carries the stage it failed in.

class PipelineStageError(BriefGeneratorError):
    """Base class for errors that abort a pipeline run at a named stage."""

    stage: Optional[PipelineStage] = None
    default_code = "PIPELINE_ERROR"

    def __init__(self, message: str, stage: PipelineStage = None, details: Dict[str, Any] = None):
        if stage is not None:
            self.stage = stage
        details = dict(details or {})
        details["stage"] = self.stage.value if self.stage else None
        super().__init__(message, self.default_code, details)


class InsufficientSourcesError(PipelineStageError):
    """Search found fewer valid source URLs than the stage threshold."""

    stage = PipelineStage.BLOG_SEARCH
    default_code = "INSUFFICIENT_SOURCES"

    def __init__(self, topic: str, found: int = 0, message: str = None):
        self.topic = topic
        self.found = found
        super().__init__(
            message or (
                f'Unable to find sufficient blog posts on "{topic}". '
                "Try a different or broader search term."
            ),
            details={"topic": topic, "found": found}
        )


class ExtractionFailedError(PipelineStageError):
    """Fewer successful content extractions than the stage threshold."""

    stage = PipelineStage.CONTENT_EXTRACTION
    default_code = "EXTRACTION_FAILED"

    def __init__(self, extracted: int = 0, attempted: int = 0, message: str = None):
        self.extracted = extracted
        self.attempted = attempted
        super().__init__(
            message or (
                "Unable to extract sufficient blog content. The blogs may be behind "
                "paywalls or have protection against scraping."
            ),
            details={"extracted": extracted, "attempted": attempted}
        )


class AnalysisFailedError(PipelineStageError):
    """No source could be analyzed."""

    stage = PipelineStage.BLOG_ANALYSIS
    default_code = "ANALYSIS_FAILED"

    def __init__(self, message: str = "Failed to analyze any blog posts", attempted: int = 0):
        self.attempted = attempted
        super().__init__(message, details={"attempted": attempted})


class SynthesisFailedError(PipelineStageError):
    """Brief synthesis was unrecoverable."""

    stage = PipelineStage.BRIEF_SYNTHESIS
    default_code = "SYNTHESIS_FAILED"


class PersistenceError(PipelineStageError):
    """The finished brief could not be saved."""

    stage = PipelineStage.DATABASE_SAVE
    default_code = "DATABASE_SAVE_FAILED"


class UpstreamProviderError(PipelineStageError):
    """Wraps a raw provider exception not otherwise classified."""

    default_code = "UPSTREAM_PROVIDER_ERROR"

    def __init__(self, message: str, stage: PipelineStage = None, cause: Exception = None):
        self.cause = cause
        super().__init__(
            message,
            stage=stage,
            details={"cause": type(cause).__name__ if cause else None}
        )


class PipelineTimeoutError(BriefGeneratorError):
    """The whole run exceeded the caller's time budget."""

    def __init__(self, timeout: float, message: str = None):
        self.timeout = timeout
        super().__init__(
            message or f"Brief generation did not finish within {timeout:.0f} seconds",
            "PIPELINE_TIMEOUT",
            {"timeout": timeout}
        )


# Checked in order; the first matching class wins.
HTTP_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 401),
    (NoSubscriptionError, 403),
    (NoCreditsError, 403),
    (RateLimitError, 429),
    (PipelineTimeoutError, 504),
    (UpstreamProviderError, 502),
    (LLMError, 502),
    (SearchError, 502),
    (ExtractionError, 502),
    (PipelineStageError, 500),
    (ConfigurationError, 500),
)


def http_status_for(error: Exception) -> int:
    """HTTP status for an application error."""
    for error_class, status in HTTP_STATUS_BY_ERROR:
        if isinstance(error, error_class):
            return status
    return 500


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    status: int = Field(..., description="HTTP status code")
    step: Optional[str] = Field(None, description="Pipeline stage that failed")

    # Optional Details
    details: Optional[Dict[str, Any]] = Field(None, description="Error details")
    field: Optional[str] = Field(None, description="Field that caused error")
    value: Optional[Any] = Field(None, description="Value that caused error")

    # Request Information
    request_id: Optional[str] = Field(None, description="Request ID")
    task_id: Optional[str] = Field(None, description="Task ID")

    # Timestamp
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")

    @classmethod
    def from_exception(cls, exc: BriefGeneratorError, status: int = None) -> 'ErrorResponse':
        """Create error response from exception."""
        if status is None:
            status = http_status_for(exc)
        stage = getattr(exc, 'stage', None)
        return cls(
            error=exc.__class__.__name__,
            message=exc.message,
            error_code=exc.error_code or "UNKNOWN_ERROR",
            status=status,
            step=stage.value if stage else None,
            details=exc.details,
            field=getattr(exc, 'field', None),
            value=getattr(exc, 'value', None)
        )


class ValidationErrorResponse(BaseModel):
    """Validation error response model."""

    error: str = Field(default="validation_error", description="Error type")
    message: str = Field(default="Validation failed", description="Error message")
    status: int = Field(default=400, description="HTTP status code")

    validation_errors: List[Dict[str, Any]] = Field(default_factory=list, description="Validation errors")

    # Request Information
    request_id: Optional[str] = Field(None, description="Request ID")

    # Timestamp
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")

    def add_validation_error(self, field: str, message: str, value: Any = None):
        """Add a validation error."""
        error = {
            "field": field,
            "message": message
        }
        if value is not None:
            error["value"] = value

        self.validation_errors.append(error)

    def has_errors(self) -> bool:
        """Check if there are validation errors."""
        return len(self.validation_errors) > 0
