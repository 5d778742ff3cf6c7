"""
Request logging middleware for the brief generator API.

Every request gets an ``X-Request-Id`` header. Probe endpoints are logged
at DEBUG so orchestrator health checks do not flood the request log.
"""

import logging
import time
import uuid
from flask import current_app, request, g


logger = logging.getLogger(__name__)

PROBE_PATHS = frozenset(['/api/v1/health', '/api/v1/health/live', '/api/v1/health/ready'])


class LoggingMiddleware:
    """Logs request start/finish with timing and the authenticated user."""

    @staticmethod
    def _level() -> int:
        if not current_app.config.get('LOG_REQUESTS', True) or request.path in PROBE_PATHS:
            return logging.DEBUG
        return logging.INFO

    @staticmethod
    def before_request():
        g.start_time = time.perf_counter()
        g.request_id = f"req_{uuid.uuid4().hex[:12]}"

        logger.log(
            LoggingMiddleware._level(),
            f"{g.request_id} -> {request.method} {request.path} from {request.remote_addr}"
        )

        # Only the topic is logged; request bodies may carry user content.
        if request.method == 'POST' and request.is_json:
            data = request.get_json(silent=True)
            if isinstance(data, dict) and 'topic' in data:
                logger.debug(f"{g.request_id} topic={data.get('topic')!r}")

    @staticmethod
    def after_request(response):
        request_id = getattr(g, 'request_id', None)
        if request_id is None:
            return response

        duration_ms = (time.perf_counter() - g.start_time) * 1000
        user_id = getattr(g, 'user_id', None) or '-'

        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        else:
            level = LoggingMiddleware._level()

        logger.log(
            level,
            f"{request_id} <- {response.status_code} {request.method} {request.path} "
            f"user={user_id} {duration_ms:.1f}ms"
        )

        response.headers['X-Request-Id'] = request_id
        response.headers['X-Response-Time'] = f"{duration_ms:.1f}ms"
        return response
