"""
Health checks for the API and the brief workers.

Readiness needs Redis (broker and result backend), at least one worker
consuming the ``briefs`` queue, and credentials for every provider the
pipeline calls.
"""

import logging
import time
from typing import Dict, Any
import psutil
import redis

from ..utils.config import get_config


logger = logging.getLogger(__name__)

BRIEF_QUEUE = 'briefs'


class HealthChecker:
    """Health checker for system components."""

    def __init__(self, config=None, redis_client=None, celery_app=None):
        self.config = config or get_config()
        self._redis_client = redis_client
        self._celery_app = celery_app

    def check_redis(self) -> Dict[str, Any]:
        """Check Redis connectivity and the number of briefs waiting for a worker."""
        try:
            if not self._redis_client:
                self._redis_client = redis.Redis.from_url(self.config.CELERY_BROKER_URL, socket_timeout=5)

            self._redis_client.ping()
            info = self._redis_client.info()

            return {
                "component": "redis",
                "status": "healthy",
                "version": info.get("redis_version", "unknown"),
                "memory_used": info.get("used_memory_human", "unknown"),
                "queued_briefs": self._redis_client.llen(BRIEF_QUEUE)
            }

        except redis.RedisError as e:
            logger.error(f"Redis health check failed: {str(e)}")
            return {
                "component": "redis",
                "status": "unhealthy",
                "error": str(e)
            }

    def check_celery(self) -> Dict[str, Any]:
        """Check that some worker consumes the brief queue."""
        try:
            if not self._celery_app:
                from ..tasks.celery_app import celery_app
                self._celery_app = celery_app

            queues = self._celery_app.control.inspect(timeout=2).active_queues() or {}

        except Exception as e:
            logger.error(f"Celery health check failed: {str(e)}")
            return {
                "component": "celery",
                "status": "unhealthy",
                "error": str(e)
            }

        consumers = sorted(
            worker for worker, worker_queues in queues.items()
            if any(q.get("name") == BRIEF_QUEUE for q in worker_queues or [])
        )

        if not consumers:
            return {
                "component": "celery",
                "status": "unhealthy",
                "workers": len(queues),
                "error": f"No workers consuming the '{BRIEF_QUEUE}' queue"
            }

        return {
            "component": "celery",
            "status": "healthy",
            "workers": len(queues),
            "brief_workers": consumers
        }

    def check_providers(self) -> Dict[str, Any]:
        """Check that every provider the pipeline needs has credentials configured."""
        required = {
            "search": self.config.SERP_API_KEY,
            "extraction": self.config.JINA_API_KEY,
            "llm": self.config.LLM_API_KEY or self.config.LLM_PROVIDER == 'ollama',
            "storage": self.config.SUPABASE_URL and self.config.SUPABASE_KEY,
        }
        optional = {
            "email": self.config.RESEND_API_KEY,
        }

        missing = [name for name, value in required.items() if not value]
        providers = {
            name: "configured" if value else "not_configured"
            for name, value in {**required, **optional}.items()
        }

        return {
            "component": "providers",
            "status": "healthy" if not missing else "unhealthy",
            "providers": providers,
            **({"error": f"Missing credentials: {', '.join(missing)}"} if missing else {})
        }

    def get_system_metrics(self) -> Dict[str, Any]:
        """Get system metrics."""
        try:
            memory = psutil.virtual_memory()
            disk = psutil.disk_usage('/')

            return {
                "status": "healthy",
                "cpu_percent": psutil.cpu_percent(interval=None),
                "memory_percent": memory.percent,
                "memory_available": memory.available,
                "disk_percent": disk.percent,
                "disk_free": disk.free,
                "uptime": time.time() - psutil.boot_time()
            }

        except Exception as e:
            logger.error(f"System metrics collection failed: {str(e)}")
            return {
                "status": "unhealthy",
                "error": str(e)
            }

    def get_detailed_status(self) -> Dict[str, Any]:
        """Get detailed health status for all components."""
        return {
            "redis": self.check_redis(),
            "celery": self.check_celery(),
            "providers": self.check_providers(),
            "system": self.get_system_metrics()
        }
