"""
Flask application factory for the brief generator.

The API only accepts and tracks brief requests; the pipeline itself runs
in Celery workers (see ``briefgen.tasks``).
"""

import logging
from datetime import datetime
from flask import Flask, jsonify
from flask_cors import CORS

from .endpoints import briefs_bp, health_bp, limiter
from .middleware.auth import AuthMiddleware, PUBLIC_ENDPOINTS
from .middleware.logging import LoggingMiddleware
from .middleware.error_handler import ErrorHandler
from ..core.models.errors import ErrorResponse
from ..utils.config import get_config, validate_config
from ..utils.health import HealthChecker
from ..utils.logging import setup_logging


logger = logging.getLogger(__name__)

DOCUMENTED_BLUEPRINTS = ('briefs', 'health')


def _json_error(error: str, message: str, status: int):
    return jsonify(ErrorResponse(error=error, message=message, status=status).model_dump(mode='json')), status


def describe_routes(app: Flask) -> list:
    """List the documented routes with their methods and first docstring line."""
    routes = []
    for rule in sorted(app.url_map.iter_rules(), key=lambda r: r.rule):
        blueprint = rule.endpoint.split('.', 1)[0]
        if blueprint not in DOCUMENTED_BLUEPRINTS:
            continue
        view = app.view_functions[rule.endpoint]
        summary = (view.__doc__ or '').strip().splitlines()
        routes.append({
            "path": rule.rule,
            "methods": sorted(rule.methods - {'HEAD', 'OPTIONS'}),
            "description": summary[0] if summary else "",
            "requires_api_key": rule.endpoint not in PUBLIC_ENDPOINTS
        })
    return routes


def create_app(config_name: str = None) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config_name: Configuration name (development, production, testing)

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    config = get_config(config_name)
    app.config.from_object(config)
    # flask-limiter reads RATELIMIT_STORAGE_URI
    app.config.setdefault('RATELIMIT_STORAGE_URI', config.RATELIMIT_STORAGE_URL)

    setup_logging(app.config)

    if not config.TESTING:
        for problem in validate_config(config):
            logger.warning(f"Configuration problem: {problem}")

    CORS(app, origins=config.CORS_ORIGINS)
    app.extensions['health_checker'] = HealthChecker(config)
    limiter.init_app(app)

    # Request ids are assigned before auth runs so rejected calls are traceable
    app.before_request(LoggingMiddleware.before_request)
    app.before_request(AuthMiddleware.before_request)
    app.after_request(LoggingMiddleware.after_request)

    app.register_blueprint(briefs_bp)
    app.register_blueprint(health_bp)

    ErrorHandler.register_handlers(app)

    @app.errorhandler(404)
    def not_found(error):
        return _json_error("not_found", "The requested resource was not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return _json_error("method_not_allowed", "The method is not allowed for the requested URL", 405)

    @app.route('/')
    def root():
        return jsonify({
            "service": "content-brief-generator",
            "version": app.config.get("API_VERSION", "1.0.0"),
            "status": "running",
            "timestamp": datetime.utcnow().isoformat(),
            "endpoints": {
                "health": "/api/v1/health",
                "briefs": "/api/v1/briefs",
                "docs": "/api/v1/docs"
            }
        })

    @app.route('/api/v1/docs')
    def api_docs():
        return jsonify({
            "title": app.config.get("API_TITLE", "Content Brief Generator"),
            "version": app.config.get("API_VERSION", "1.0.0"),
            "description": "Builds SEO content briefs from the top-ranking articles on a topic",
            "routes": describe_routes(app),
            "authentication": {
                "header": app.config.get("API_KEY_HEADER", "X-API-Key"),
                "user_header": app.config.get("USER_ID_HEADER", "X-User-Id")
            },
            "rate_limiting": {
                "brief_creation": app.config.get("BRIEF_RATE_LIMIT", "10 per minute")
            }
        })

    logger.info(f"Flask application created with config: {config_name}")
    return app


def run_app(host: str = '0.0.0.0', port: int = 5001, debug: bool = False):
    """Run the development server."""
    app = create_app()
    logger.info(f"Starting content brief generator on {host}:{port}")
    app.run(host=host, port=port, debug=debug)


if __name__ == '__main__':
    run_app()
