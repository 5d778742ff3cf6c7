"""
Pipeline run data models.

This module defines the per-run state the orchestrator accumulates, the
result returned to callers, the account record read from the credit
collaborator and the API request model.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, field_validator

from .brief import Brief
from .errors import PipelineStage
from .source import SourceCandidate, ExtractedSource, SourceAnalysis


class SubscriptionStatus(str, Enum):
    """Subscription states the credit collaborator reports."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"
    PAST_DUE = "past_due"


class Account(BaseModel):
    """A user's subscription and credit state."""

    user_id: str = Field(..., description="User ID")
    email: Optional[str] = Field(None, description="Notification address")
    name: Optional[str] = Field(None, description="Display name")
    subscription_status: str = Field(default=SubscriptionStatus.INACTIVE.value)
    credits_remaining: int = Field(default=0)
    plan_type: Optional[str] = Field(None, description="Plan name")

    @property
    def has_active_subscription(self) -> bool:
        return self.subscription_status == SubscriptionStatus.ACTIVE.value


class BriefRequest(BaseModel):
    """Request model for the brief generation endpoint."""

    topic: str = Field(..., max_length=200, description="Topic to build a brief for")

    @field_validator('topic')
    @classmethod
    def validate_topic(cls, v):
        """Topics must have at least three non-blank characters."""
        v = v.strip()
        if len(v) < 3:
            raise ValueError('Topic must be at least 3 characters long')
        return v


class PipelineRun(BaseModel):
    """State accumulated during a single run. Never persisted."""

    topic: str
    user_id: Optional[str] = None
    candidates: List[SourceCandidate] = Field(default_factory=list)
    extracted: List[ExtractedSource] = Field(default_factory=list)
    extraction_failures: List[ExtractedSource] = Field(default_factory=list)
    analyses: List[SourceAnalysis] = Field(default_factory=list)
    degraded_stages: List[str] = Field(default_factory=list)
    stage_timings: Dict[str, float] = Field(default_factory=dict)
    started_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def sources_found(self) -> int:
        return len(self.candidates)

    @property
    def sources_extracted(self) -> int:
        return len(self.extracted)

    @property
    def sources_analyzed(self) -> int:
        return len(self.analyses)

    def mark_degraded(self, stage: PipelineStage):
        if stage.value not in self.degraded_stages:
            self.degraded_stages.append(stage.value)

    def build_record(self, brief: Brief) -> Dict[str, Any]:
        """Storage record for the persistence collaborator."""
        columns = brief.to_record_columns()
        columns['meta_data'] = {
            **columns['meta_data'],
            'sources': [{'url': c.url, 'title': c.title} for c in self.candidates],
            'sourcesAnalyzed': self.sources_analyzed,
            'totalSourcesFound': self.sources_found,
        }
        return {
            'user_id': self.user_id,
            'topic': self.topic,
            **columns,
        }


class PipelineResult(BaseModel):
    """Successful run output: the brief plus provenance."""

    brief: Brief
    brief_id: Optional[str] = None
    topic: str
    sources_found: int
    sources_extracted: int
    sources_analyzed: int
    sources: List[SourceCandidate] = Field(default_factory=list)
    artifact_url: Optional[str] = None
    credits_remaining: Optional[int] = None
    degraded_stages: List[str] = Field(default_factory=list)
    total_time: float = 0.0

    def to_response(self) -> Dict[str, Any]:
        """JSON body returned by the API and the Celery task."""
        return {
            'success': True,
            'briefId': self.brief_id,
            'brief': self.brief.to_wire(),
            'creditsRemaining': self.credits_remaining,
            'pdfUrl': self.artifact_url,
            'metadata': {
                'topic': self.topic,
                'sourcesFound': self.sources_found,
                'sourcesExtracted': self.sources_extracted,
                'sourcesAnalyzed': self.sources_analyzed,
                'degradedStages': self.degraded_stages,
                'totalTime': f"{self.total_time:.2f}s",
                'sources': [s.url for s in self.sources],
            },
        }
