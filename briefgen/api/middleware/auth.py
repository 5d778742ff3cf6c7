"""
Authentication middleware for the brief generator API.

Callers present a shared API key; brief creation additionally needs the
user id the calling frontend resolved from its own session.
"""

import hmac
import logging
from functools import wraps
from flask import request, jsonify, g, current_app

from ...core.models.errors import ErrorResponse


logger = logging.getLogger(__name__)

PUBLIC_ENDPOINTS = frozenset({
    'root',
    'health.health_check',
    'health.readiness_check',
    'health.liveness_check',
})


def _unauthorized(error: str, message: str, error_code: str):
    return jsonify(ErrorResponse(
        error=error,
        message=message,
        error_code=error_code,
        status=401
    ).model_dump(mode='json')), 401


class AuthMiddleware:
    """API key validation and user resolution."""

    @staticmethod
    def before_request():
        """Reject non-public requests without a valid API key."""
        if request.endpoint in PUBLIC_ENDPOINTS or request.endpoint is None:
            return None

        api_key = request.headers.get(current_app.config.get('API_KEY_HEADER', 'X-API-Key'))

        if not api_key:
            return _unauthorized("authentication_required", "API key is required", "AUTHENTICATION_REQUIRED")

        if not AuthMiddleware.validate_api_key(api_key):
            logger.warning(f"Rejected invalid API key for {request.method} {request.path}")
            return _unauthorized("invalid_api_key", "Invalid API key", "INVALID_API_KEY")

        g.api_key = api_key
        g.user_id = request.headers.get(current_app.config.get('USER_ID_HEADER', 'X-User-Id')) or None

        return None

    @staticmethod
    def validate_api_key(api_key: str) -> bool:
        """
        Validate API key.

        Args:
            api_key: API key to validate

        Returns:
            True if valid, False otherwise
        """
        valid_keys = current_app.config.get('API_KEYS')

        if not valid_keys:
            logger.warning("No API keys configured")
            return False

        return any(hmac.compare_digest(api_key, key) for key in valid_keys)

    @staticmethod
    def require_user(f):
        """Decorator that rejects requests without a user identity."""
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not getattr(g, 'user_id', None):
                return _unauthorized("unauthorized", "Unauthorized. Please sign in.", "UNAUTHORIZED")

            return f(*args, **kwargs)

        return decorated_function


def require_user(f):
    """
    Decorator to require an authenticated user.

    This is a convenience function that can be imported directly.
    """
    return AuthMiddleware.require_user(f)
