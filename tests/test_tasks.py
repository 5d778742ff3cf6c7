"""
Tests for the Celery task helpers.
"""

from unittest.mock import MagicMock, patch

from briefgen.core.models.errors import InsufficientSourcesError, NoCreditsError
from briefgen.tasks.briefs import cancel_task, failure_payload, get_task_status
from briefgen.tasks.celery_app import celery_app


def test_celery_app_configuration():
    assert celery_app.main == 'brief_generator'
    assert celery_app.conf.task_serializer == 'json'
    assert 'briefgen.tasks.briefs.generate_brief_task' in celery_app.tasks


def test_failure_payload_names_the_step():
    payload = failure_payload(InsufficientSourcesError("container gardening", found=1), task_id="task-1")

    assert payload['success'] is False
    assert payload['step'] == 'blog_search'
    assert payload['status'] == 500
    assert payload['error_code'] == 'INSUFFICIENT_SOURCES'
    assert payload['task_id'] == 'task-1'
    assert 'container gardening' in payload['message']


def test_failure_payload_for_preflight_error():
    payload = failure_payload(NoCreditsError(user_id="user-1"))

    assert payload['status'] == 403
    assert payload['step'] is None


def test_get_task_status_reads_progress_meta():
    task = MagicMock()
    task.status = 'PROGRESS'
    task.info = {'progress_percent': 55, 'current_step': 'blog_analysis', 'message': 'Analyzing article 1 of 5',
                 'stage': 'blog_analysis'}
    task.ready.return_value = False
    task.successful.return_value = False
    task.failed.return_value = False

    with patch.object(celery_app, 'AsyncResult', return_value=task):
        status = get_task_status('task-1')

    assert status['progress_percent'] == 55
    assert status['stage'] == 'blog_analysis'
    assert status['result'] is None


def test_get_task_status_for_finished_task():
    task = MagicMock()
    task.status = 'SUCCESS'
    task.info = {'success': True}
    task.result = {'success': True, 'briefId': 'brief-1'}
    task.ready.return_value = True
    task.successful.return_value = True
    task.failed.return_value = False

    with patch.object(celery_app, 'AsyncResult', return_value=task):
        status = get_task_status('task-1')

    assert status['progress_percent'] == 100
    assert status['result']['briefId'] == 'brief-1'


def test_get_task_status_backend_error():
    with patch.object(celery_app, 'AsyncResult', side_effect=ConnectionError("redis down")):
        assert get_task_status('task-1') is None


def test_cancel_task():
    with patch.object(celery_app.control, 'revoke') as revoke:
        assert cancel_task('task-1') is True

    revoke.assert_called_once_with('task-1', terminate=True)


def test_make_celery_reads_broker_from_config():
    from briefgen.tasks.celery_app import make_celery
    from briefgen.utils.config import get_config

    config = get_config('testing')
    config.CELERY_BROKER_URL = 'redis://broker:6379/1'

    app = make_celery(config)

    assert app.conf.broker_url == 'redis://broker:6379/1'
    assert app.conf.task_acks_late is True
    assert app.conf.task_default_queue == 'briefs'


def test_get_task_status_reports_owner_from_progress_meta():
    task = MagicMock()
    task.status = 'PROGRESS'
    task.info = {'progress_percent': 30, 'stage': 'blog_search', 'user_id': 'user-1'}
    task.ready.return_value = False
    task.successful.return_value = False
    task.failed.return_value = False

    with patch.object(celery_app, 'AsyncResult', return_value=task):
        status = get_task_status('task-1')

    assert status['user_id'] == 'user-1'


def test_get_task_status_reports_owner_from_stored_arguments():
    task = MagicMock()
    task.status = 'SUCCESS'
    task.info = {'success': True}
    task.result = {'success': True, 'briefId': 'brief-1'}
    task.args = ['container gardening', 'user-1']
    task.kwargs = {}
    task.ready.return_value = True
    task.successful.return_value = True
    task.failed.return_value = False

    with patch.object(celery_app, 'AsyncResult', return_value=task):
        status = get_task_status('task-1')

    assert status['user_id'] == 'user-1'
    assert celery_app.conf.result_extended is True
