"""
Brief API schemas.

This module contains Pydantic schemas for the brief API endpoints.
"""

from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


class BriefCreateResponse(BaseModel):
    """Response for an accepted brief generation request."""

    task_id: str
    status: str = "PENDING"
    topic: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    links: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def for_task(cls, task_id: str, topic: str) -> 'BriefCreateResponse':
        return cls(
            task_id=task_id,
            topic=topic,
            links={
                "status": f"/api/v1/briefs/{task_id}",
                "result": f"/api/v1/briefs/{task_id}/result",
                "cancel": f"/api/v1/briefs/{task_id}/cancel",
            }
        )


class BriefStatusResponse(BaseModel):
    """Progress of a brief generation task."""

    task_id: str
    status: str
    progress_percent: int = 0
    current_step: str = ""
    message: str = ""
    stage: str = ""
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
