"""
Request/response schemas for the HTTP API.
"""

from .briefs import BriefCreateResponse, BriefStatusResponse

__all__ = [
    'BriefCreateResponse',
    'BriefStatusResponse'
]
