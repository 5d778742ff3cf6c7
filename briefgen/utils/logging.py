"""
Logging configuration for the brief generator.

Both the API and the Celery workers log through the root logger set up
by ``setup_logging``. Records emitted during an HTTP request carry its
request id; structured fields passed to the stage and task loggers are
rendered as ``key=value`` pairs after the message.
"""

import logging
import logging.handlers
import os
from typing import Dict, Any

from flask import g, has_request_context


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s'

QUIET_LOGGERS = {
    'werkzeug': logging.WARNING,
    'celery': logging.INFO,
    'litellm': logging.WARNING,
    'LiteLLM': logging.WARNING,
    'aiohttp': logging.WARNING,
    'httpx': logging.WARNING,
    'hpack': logging.WARNING,
    'urllib3': logging.WARNING,
}


class RequestIdFilter(logging.Filter):
    """Stamps each record with the current request id, or ``-`` outside requests."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = '-'
        if has_request_context():
            request_id = getattr(g, 'request_id', '-')
        record.request_id = request_id
        return True


def setup_logging(config: Dict[str, Any]):
    """
    Configure the root logger from a Flask-style config mapping.

    Args:
        config: Mapping with LOG_LEVEL, LOG_FILE, LOG_MAX_BYTES, LOG_BACKUP_COUNT
    """
    log_file = config.get('LOG_FILE', 'logs/app.log')
    log_dir = os.path.dirname(log_file) if log_file else ''
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    level = getattr(logging, str(config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
    request_filter = RequestIdFilter()

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=config.get('LOG_MAX_BYTES', 10485760),  # 10MB
            backupCount=config.get('LOG_BACKUP_COUNT', 5)
        ))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(request_filter)
        root_logger.addHandler(handler)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


class StructuredLogger:
    """Logger that appends keyword fields to the message and the record."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def info(self, message: str, **fields):
        self._log(logging.INFO, message, fields)

    def warning(self, message: str, **fields):
        self._log(logging.WARNING, message, fields)

    def error(self, message: str, **fields):
        self._log(logging.ERROR, message, fields)

    def debug(self, message: str, **fields):
        self._log(logging.DEBUG, message, fields)

    def _log(self, level: int, message: str, fields: Dict[str, Any]):
        if not self.logger.isEnabledFor(level):
            return
        rendered = ' '.join(f"{key}={value}" for key, value in fields.items() if value is not None)
        if rendered:
            message = f"{message} | {rendered}"
        self.logger.log(level, message, extra={'fields': fields})


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)


class PipelineLogger:
    """Logger for brief pipeline stages."""

    def __init__(self, name: str = 'briefgen.pipeline'):
        self.logger = get_logger(name)

    def log_stage_start(self, stage: str, topic: str, **kwargs):
        self.logger.info(f"Stage started: {stage}", topic=topic, **kwargs)

    def log_stage_complete(self, stage: str, count: int, duration: float, **kwargs):
        """Log stage completion with the number of items it produced."""
        self.logger.info(
            f"Stage completed: {stage} ({count} items in {duration:.2f}s)",
            **kwargs
        )

    def log_stage_degraded(self, stage: str, count: int, target: int, **kwargs):
        """Log a stage that met its floor but not its target."""
        self.logger.warning(
            f"Stage degraded: {stage} produced {count} items (target: {target})",
            **kwargs
        )

    def log_stage_error(self, stage: str, error: str, **kwargs):
        self.logger.error(f"Stage failed: {stage} - {error}", **kwargs)


class TaskLogger:
    """Logger for Celery tasks; every line carries the task id."""

    def __init__(self, name: str = 'briefgen.tasks'):
        self.logger = get_logger(name)

    def log_task_start(self, task_id: str, task_name: str, **kwargs):
        self.logger.info(f"Task started: {task_name}", task_id=task_id, **kwargs)

    def log_task_progress(self, task_id: str, progress: int, step: str, **kwargs):
        self.logger.info(f"Task progress: {progress}% - {step}", task_id=task_id, **kwargs)

    def log_task_complete(self, task_id: str, task_name: str, duration: float, **kwargs):
        self.logger.info(f"Task completed: {task_name} in {duration:.1f}s", task_id=task_id, **kwargs)

    def log_task_error(self, task_id: str, task_name: str, error: str, **kwargs):
        self.logger.error(f"Task failed: {task_name} - {error}", task_id=task_id, **kwargs)
