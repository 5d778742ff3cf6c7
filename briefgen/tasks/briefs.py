"""
Brief generation tasks.

This module contains the Celery task that runs the brief pipeline
and helpers for reading and cancelling task state.
"""

import asyncio
import logging
import time
from typing import Dict, Any, Optional

from .celery_app import celery_app
from ..core.models.errors import BriefGeneratorError, ErrorResponse
from ..core.pipeline.factory import build_pipeline
from ..utils.config import get_config
from ..utils.logging import TaskLogger

logger = logging.getLogger(__name__)
task_logger = TaskLogger()

TASK_NAME = 'generate_brief_task'


def failure_payload(error: BriefGeneratorError, task_id: str = None) -> Dict[str, Any]:
    """Task result for a run that failed with an application error."""
    response = ErrorResponse.from_exception(error)
    response.task_id = task_id
    return {
        'success': False,
        **response.model_dump(mode='json')
    }


@celery_app.task(bind=True, name='briefgen.tasks.briefs.generate_brief_task')
def generate_brief_task(self, topic: str, user_id: str) -> Dict[str, Any]:
    """
    Generate a content brief.

    Args:
        topic: Brief topic
        user_id: Requesting user

    Returns:
        The brief response on success, or a failure payload naming the failed step
    """
    task_id = self.request.id
    start_time = time.time()

    task_logger.log_task_start(task_id, TASK_NAME, topic=topic, user_id=user_id)

    def report_progress(stage: str, percent: int, message: str):
        self.update_state(
            state='PROGRESS',
            meta={
                'current_step': stage,
                'progress_percent': percent,
                'message': message,
                'stage': stage,
                'user_id': user_id
            }
        )
        task_logger.log_task_progress(task_id, percent, stage)

    try:
        config = get_config()
        pipeline = build_pipeline(config)
        result = asyncio.run(pipeline.run_with_timeout(topic, user_id, on_progress=report_progress))

    except BriefGeneratorError as e:
        task_logger.log_task_error(task_id, TASK_NAME, e.message, error_code=e.error_code)
        return failure_payload(e, task_id)

    except Exception as e:
        error_msg = f"Brief generation failed: {str(e)}"
        logger.error(error_msg, exc_info=True)
        task_logger.log_task_error(task_id, TASK_NAME, error_msg)
        raise

    task_logger.log_task_complete(task_id, TASK_NAME, time.time() - start_time, brief_id=result.brief_id)
    return result.to_response()


def _task_owner(task, info: Dict[str, Any]) -> Optional[str]:
    """User who queued the task, from its progress meta or its stored arguments."""
    if info.get('user_id'):
        return info['user_id']
    kwargs = task.kwargs if isinstance(task.kwargs, dict) else {}
    args = task.args if isinstance(task.args, (list, tuple)) else ()
    return kwargs.get('user_id') or (args[1] if len(args) > 1 else None)


def get_task_status(task_id: str) -> Optional[Dict[str, Any]]:
    """
    Get task status.

    Args:
        task_id: Task ID

    Returns:
        Task status or None if the backend could not be read
    """
    try:
        task = celery_app.AsyncResult(task_id)
        info = task.info if isinstance(task.info, dict) else {}

        return {
            'status': task.status,
            'ready': task.ready(),
            'successful': task.successful(),
            'failed': task.failed(),
            'result': task.result if task.successful() else None,
            'error': str(task.result) if task.failed() else None,
            'progress_percent': 100 if task.ready() else info.get('progress_percent', 0),
            'current_step': info.get('current_step', ''),
            'message': info.get('message', ''),
            'stage': info.get('stage', ''),
            'user_id': _task_owner(task, info)
        }

    except Exception as e:
        logger.error(f"Error getting task status: {str(e)}")
        return None


def cancel_task(task_id: str) -> bool:
    """
    Cancel a task.

    Args:
        task_id: Task ID

    Returns:
        True if cancelled successfully
    """
    try:
        celery_app.control.revoke(task_id, terminate=True)
        return True

    except Exception as e:
        logger.error(f"Error cancelling task: {str(e)}")
        return False
