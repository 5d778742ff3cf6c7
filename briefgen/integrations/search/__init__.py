"""
Web search integration module.
"""

from .serpapi_client import SerpApiClient

__all__ = ['SerpApiClient']
