"""
Error handling middleware for the brief generator API.

This module provides centralized error handling and
response formatting for the API.
"""

import logging
from flask import jsonify, g
from werkzeug.exceptions import HTTPException

from ...core.models.errors import (
    ErrorResponse,
    BriefGeneratorError,
    http_status_for
)


logger = logging.getLogger(__name__)


def error_payload(error: BriefGeneratorError, status: int = None) -> dict:
    """Serialized ``ErrorResponse`` for an application error."""
    response = ErrorResponse.from_exception(error, status)
    response.request_id = getattr(g, 'request_id', None)
    return response.model_dump(mode='json')


class ErrorHandler:
    """Centralized error handling for the API."""

    @staticmethod
    def register_handlers(app):
        """Register error handlers with Flask app."""

        @app.errorhandler(BriefGeneratorError)
        def handle_application_error(error):
            return ErrorHandler.handle_application_error(error)

        @app.errorhandler(HTTPException)
        def handle_http_error(error):
            return ErrorHandler.handle_http_error(error)

        @app.errorhandler(Exception)
        def handle_generic_error(error):
            return ErrorHandler.handle_generic_error(error)

    @staticmethod
    def handle_application_error(error: BriefGeneratorError):
        """Handle errors raised by the pipeline and its collaborators."""
        status = http_status_for(error)

        if status >= 500:
            logger.error(f"{type(error).__name__}: {error.message}")
        else:
            logger.warning(f"{type(error).__name__}: {error.message}")

        return jsonify(error_payload(error, status)), status

    @staticmethod
    def handle_http_error(error: HTTPException):
        """Handle werkzeug HTTP errors such as malformed JSON bodies."""
        return jsonify(ErrorResponse(
            error=(error.name or "http_error").lower().replace(' ', '_'),
            message=error.description or "HTTP error",
            status=error.code or 500,
            request_id=getattr(g, 'request_id', None)
        ).model_dump(mode='json')), error.code or 500

    @staticmethod
    def handle_generic_error(error: Exception):
        """Handle generic errors."""
        request_id = getattr(g, 'request_id', 'unknown')

        logger.error(
            f"Unhandled error in request {request_id}: {str(error)}",
            exc_info=True
        )

        return jsonify(ErrorResponse(
            error="internal_server_error",
            message="An unexpected error occurred",
            error_code="INTERNAL_SERVER_ERROR",
            status=500,
            details={
                "request_id": request_id,
                "error_type": type(error).__name__
            }
        ).model_dump(mode='json')), 500
