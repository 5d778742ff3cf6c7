"""
Source-related data models.

This module defines the records that flow through the first three
pipeline stages: search candidates, extracted article text and the
per-source analysis produced by the generative model.
"""

from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, computed_field


def normalize_url(url: str) -> str:
    """Dedup key for a URL: lowercased, surrounding whitespace and trailing slashes removed."""
    return url.strip().lower().rstrip('/')


class SourceCandidate(BaseModel):
    """A search result that passed URL validation."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., min_length=1, description="Article URL")
    title: str = Field(default="", description="Result title")
    snippet: str = Field(default="", description="Result snippet")

    @property
    def dedup_key(self) -> str:
        return normalize_url(self.url)


class ExtractedSource(BaseModel):
    """Readable text fetched for one candidate URL, or a failure record."""

    url: str = Field(..., description="Source URL")
    title: str = Field(default="", description="Title derived from the first non-blank line")
    content: str = Field(default="", description="Normalized article text")
    word_count: int = Field(default=0, ge=0, description="Whitespace-token count")
    success: bool = Field(..., description="Whether the content passed quality validation")
    failure_reason: Optional[str] = Field(None, description="Why extraction or validation failed")

    @classmethod
    def failed(cls, url: str, reason: str) -> 'ExtractedSource':
        """Build a failure record."""
        return cls(url=url, success=False, failure_reason=reason)


class ExtractionReport(BaseModel):
    """Outcome of one extraction pass over a URL list."""

    successes: List[ExtractedSource] = Field(default_factory=list)
    failures: List[ExtractedSource] = Field(default_factory=list)

    @computed_field
    @property
    def attempted(self) -> int:
        return len(self.successes) + len(self.failures)


class SourceHeadings(BaseModel):
    """Headings found in a source article."""

    h2s: List[str] = Field(default_factory=list)
    h3s: List[str] = Field(default_factory=list)


class SourceAnalysis(BaseModel):
    """Structural and keyword facts extracted from one source."""

    source_url: str = Field(..., description="Analyzed source URL")
    primary_keywords: List[str] = Field(default_factory=list)
    headings: SourceHeadings = Field(default_factory=SourceHeadings)
    word_count: int = Field(default=0, ge=0)
    tone: str = Field(default="")
    style: str = Field(default="")
    key_topics: List[str] = Field(default_factory=list)
    unique_angles: List[str] = Field(default_factory=list)
    is_generic_flag: bool = Field(default=False, description="Headings match the generic set")
    is_fallback: bool = Field(default=False, description="Degraded analysis built without the model")
