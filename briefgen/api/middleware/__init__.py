"""
Middleware components for the brief generator API.

This module contains middleware for authentication, logging,
error handling, and other cross-cutting concerns.
"""

from .auth import AuthMiddleware
from .logging import LoggingMiddleware
from .error_handler import ErrorHandler

__all__ = [
    'AuthMiddleware',
    'LoggingMiddleware',
    'ErrorHandler'
]
