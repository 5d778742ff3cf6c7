"""
LLM integration module.

This module provides a unified interface for interacting with
various Large Language Model providers.
"""

from .client import LLMClient
from .litellm_client import LiteLLMClient
from .retry_handler import RetryHandler, RetryOutcome, retry_until
from .rate_limiter import RateLimiter

__all__ = [
    'LLMClient',
    'LiteLLMClient',
    'RetryHandler',
    'RetryOutcome',
    'retry_until',
    'RateLimiter'
]
