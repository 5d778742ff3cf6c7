"""
Health check endpoints for the brief generator.

This module provides health check and monitoring endpoints
for the system.
"""

import logging
from datetime import datetime
from flask import Blueprint, jsonify, current_app

from ...utils.health import HealthChecker


logger = logging.getLogger(__name__)

# Create blueprint
health_bp = Blueprint('health', __name__, url_prefix='/api/v1')


def _checker() -> HealthChecker:
    checker = current_app.extensions.get('health_checker')
    if checker is None:
        checker = current_app.extensions['health_checker'] = HealthChecker()
    return checker


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Basic health check endpoint.

    Returns:
        Service health status
    """
    return jsonify({
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": current_app.config.get("API_VERSION", "1.0.0"),
        "service": "content-brief-generator"
    }), 200


@health_bp.route('/health/detailed', methods=['GET'])
def detailed_health_check():
    """
    Detailed health check endpoint.

    Returns:
        Detailed system health information
    """
    health_status = _checker().get_detailed_status()

    overall_status = "healthy"
    if health_status["celery"]["status"] != "healthy" or health_status["providers"]["status"] != "healthy":
        overall_status = "degraded"
    if health_status["redis"]["status"] != "healthy":
        overall_status = "unhealthy"

    return jsonify({
        "status": overall_status,
        "timestamp": datetime.utcnow().isoformat(),
        "version": current_app.config.get("API_VERSION", "1.0.0"),
        "service": "content-brief-generator",
        "components": health_status
    }), 200 if overall_status in ["healthy", "degraded"] else 503


@health_bp.route('/health/ready', methods=['GET'])
def readiness_check():
    """
    Readiness check endpoint.

    Ready when Redis and a Celery worker respond and every provider is configured.
    """
    checker = _checker()
    checks = [checker.check_redis(), checker.check_celery(), checker.check_providers()]

    issues = [check for check in checks if check["status"] != "healthy"]
    if not issues:
        return jsonify({
            "status": "ready",
            "timestamp": datetime.utcnow().isoformat()
        }), 200

    logger.warning(f"Readiness check failed: {[issue['component'] for issue in issues]}")
    return jsonify({
        "status": "not_ready",
        "timestamp": datetime.utcnow().isoformat(),
        "issues": issues
    }), 503


@health_bp.route('/health/live', methods=['GET'])
def liveness_check():
    """Liveness check endpoint."""
    return jsonify({
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat()
    }), 200
