"""
Tests for the health checker.
"""

from unittest.mock import MagicMock

import redis

from briefgen.utils.config import get_config
from briefgen.utils.health import HealthChecker


def _celery(active_queues):
    app = MagicMock()
    app.control.inspect.return_value.active_queues.return_value = active_queues
    return app


def test_redis_reports_queue_depth():
    client = MagicMock()
    client.info.return_value = {"redis_version": "7.2.4", "used_memory_human": "1.2M"}
    client.llen.return_value = 3

    status = HealthChecker(get_config('testing'), redis_client=client).check_redis()

    assert status["status"] == "healthy"
    assert status["queued_briefs"] == 3
    client.llen.assert_called_once_with("briefs")


def test_redis_unreachable():
    client = MagicMock()
    client.ping.side_effect = redis.ConnectionError("Connection refused")

    status = HealthChecker(get_config('testing'), redis_client=client).check_redis()

    assert status["status"] == "unhealthy"
    assert "Connection refused" in status["error"]


def test_celery_healthy_with_brief_consumer():
    app = _celery({
        "brief-generator-worker@a": [{"name": "briefs"}],
        "other@b": [{"name": "celery"}],
    })

    status = HealthChecker(get_config('testing'), celery_app=app).check_celery()

    assert status["status"] == "healthy"
    assert status["workers"] == 2
    assert status["brief_workers"] == ["brief-generator-worker@a"]


def test_celery_without_brief_consumer():
    status = HealthChecker(get_config('testing'), celery_app=_celery({"other@b": [{"name": "celery"}]})).check_celery()

    assert status["status"] == "unhealthy"
    assert "briefs" in status["error"]


def test_celery_no_reply():
    status = HealthChecker(get_config('testing'), celery_app=_celery(None)).check_celery()

    assert status["status"] == "unhealthy"
    assert status["workers"] == 0
