"""
API endpoints for the brief generator.

This module contains all the REST API endpoints for the system.
"""

from .briefs import briefs_bp, limiter
from .health import health_bp

__all__ = [
    'briefs_bp',
    'health_bp',
    'limiter'
]
