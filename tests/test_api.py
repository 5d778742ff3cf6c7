"""
Tests for the HTTP API.
"""

from unittest.mock import MagicMock, patch

import pytest

from briefgen.api.app import create_app
from briefgen.core.models.pipeline import Account

from conftest import FakeGateway

API_KEY = {"X-API-Key": "test-api-key"}
USER = {**API_KEY, "X-User-Id": "user-1"}


@pytest.fixture
def gateway():
    return FakeGateway({
        "user-1": Account(user_id="user-1", subscription_status="active", credits_remaining=2),
        "broke": Account(user_id="broke", subscription_status="active", credits_remaining=0),
        "lapsed": Account(user_id="lapsed", subscription_status="cancelled", credits_remaining=9),
    })


@pytest.fixture
def app(gateway):
    app = create_app('testing')
    app.extensions['account_gateway'] = gateway
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def brief_task():
    with patch('briefgen.api.endpoints.briefs.generate_brief_task') as task:
        task.delay.return_value = MagicMock(id='task-123')
        yield task


def test_root_is_public(client):
    response = client.get('/')

    assert response.status_code == 200
    assert response.get_json()['service'] == 'content-brief-generator'


def test_health_is_public(client):
    response = client.get('/api/v1/health')

    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'
    assert response.headers['X-Request-Id'].startswith('req_')


def test_readiness_reports_issues(app, client):
    checker = MagicMock()
    checker.check_redis.return_value = {"component": "redis", "status": "healthy"}
    checker.check_celery.return_value = {"component": "celery", "status": "unhealthy", "error": "No Celery workers found"}
    checker.check_providers.return_value = {"component": "providers", "status": "healthy"}
    app.extensions['health_checker'] = checker

    response = client.get('/api/v1/health/ready')

    assert response.status_code == 503
    assert response.get_json()['issues'][0]['component'] == 'celery'


def test_detailed_health_requires_api_key(client):
    assert client.get('/api/v1/health/detailed').status_code == 401


def test_missing_api_key(client, brief_task):
    response = client.post('/api/v1/briefs', json={'topic': 'container gardening'})

    assert response.status_code == 401
    assert response.get_json()['error_code'] == 'AUTHENTICATION_REQUIRED'
    brief_task.delay.assert_not_called()


def test_invalid_api_key(client):
    response = client.post('/api/v1/briefs', json={'topic': 'container gardening'},
                           headers={'X-API-Key': 'wrong', 'X-User-Id': 'user-1'})

    assert response.status_code == 401
    assert response.get_json()['error_code'] == 'INVALID_API_KEY'


def test_missing_user(client, brief_task):
    response = client.post('/api/v1/briefs', json={'topic': 'container gardening'}, headers=API_KEY)

    assert response.status_code == 401
    assert response.get_json()['error_code'] == 'UNAUTHORIZED'
    brief_task.delay.assert_not_called()


def test_unknown_user(client, brief_task):
    response = client.post('/api/v1/briefs', json={'topic': 'container gardening'},
                           headers={**API_KEY, 'X-User-Id': 'stranger'})

    assert response.status_code == 401
    assert response.get_json()['error_code'] == 'UNAUTHORIZED'


def test_create_brief(client, brief_task):
    response = client.post('/api/v1/briefs', json={'topic': '  container gardening '}, headers=USER)

    assert response.status_code == 202
    body = response.get_json()
    assert body['task_id'] == 'task-123'
    assert body['topic'] == 'container gardening'
    assert body['links']['result'] == '/api/v1/briefs/task-123/result'
    brief_task.delay.assert_called_once_with('container gardening', 'user-1')


def test_short_topic_is_rejected(client, brief_task):
    response = client.post('/api/v1/briefs', json={'topic': 'ab'}, headers=USER)

    assert response.status_code == 400
    body = response.get_json()
    assert body['error'] == 'validation_error'
    assert body['validation_errors'][0]['field'] == 'topic'
    brief_task.delay.assert_not_called()


def test_non_json_body_is_rejected(client, brief_task):
    response = client.post('/api/v1/briefs', data='topic=container', headers=USER)

    assert response.status_code == 400
    assert response.get_json()['error_code'] == 'INVALID_CONTENT_TYPE'


def test_no_credits(client, brief_task):
    response = client.post('/api/v1/briefs', json={'topic': 'container gardening'},
                           headers={**API_KEY, 'X-User-Id': 'broke'})

    assert response.status_code == 403
    assert response.get_json()['error_code'] == 'NO_CREDITS'
    brief_task.delay.assert_not_called()


def test_no_subscription(client, brief_task):
    response = client.post('/api/v1/briefs', json={'topic': 'container gardening'},
                           headers={**API_KEY, 'X-User-Id': 'lapsed'})

    assert response.status_code == 403
    assert response.get_json()['error_code'] == 'NO_SUBSCRIPTION'


def test_account_lookup_failure(app, client, brief_task):
    app.extensions['account_gateway'] = FakeGateway(lookup_error=ConnectionError("db down"))

    response = client.post('/api/v1/briefs', json={'topic': 'container gardening'}, headers=USER)

    assert response.status_code == 502
    assert response.get_json()['error_code'] == 'UPSTREAM_PROVIDER_ERROR'


def _status(**overrides):
    status = {
        'status': 'PROGRESS',
        'ready': False,
        'successful': False,
        'failed': False,
        'result': None,
        'error': None,
        'progress_percent': 50,
        'current_step': 'content_extraction',
        'message': 'Extracted 5 articles',
        'stage': 'content_extraction',
        'user_id': 'user-1',
    }
    status.update(overrides)
    return status


def test_status(client):
    with patch('briefgen.api.endpoints.briefs.get_task_status', return_value=_status()):
        response = client.get('/api/v1/briefs/task-123', headers=USER)

    assert response.status_code == 200
    body = response.get_json()
    assert body['progress_percent'] == 50
    assert body['stage'] == 'content_extraction'
    assert body['result'] is None


def test_result_not_ready(client):
    with patch('briefgen.api.endpoints.briefs.get_task_status', return_value=_status()):
        response = client.get('/api/v1/briefs/task-123/result', headers=USER)

    assert response.status_code == 202
    assert response.get_json()['error_code'] == 'TASK_NOT_COMPLETED'


def test_result_success(client):
    result = {'success': True, 'briefId': 'brief-1', 'brief': {}, 'metadata': {}}
    status = _status(status='SUCCESS', ready=True, successful=True, result=result, progress_percent=100)

    with patch('briefgen.api.endpoints.briefs.get_task_status', return_value=status):
        response = client.get('/api/v1/briefs/task-123/result', headers=USER)

    assert response.status_code == 200
    assert response.get_json()['briefId'] == 'brief-1'


def test_result_pipeline_failure_keeps_its_status(client):
    result = {'success': False, 'status': 500, 'step': 'blog_search', 'error_code': 'INSUFFICIENT_SOURCES'}
    status = _status(status='SUCCESS', ready=True, successful=True, result=result)

    with patch('briefgen.api.endpoints.briefs.get_task_status', return_value=status):
        response = client.get('/api/v1/briefs/task-123/result', headers=USER)

    assert response.status_code == 500
    assert response.get_json()['step'] == 'blog_search'


def test_result_crashed_task(client):
    status = _status(status='FAILURE', ready=True, failed=True, error='worker lost')

    with patch('briefgen.api.endpoints.briefs.get_task_status', return_value=status):
        response = client.get('/api/v1/briefs/task-123/result', headers=USER)

    assert response.status_code == 500
    assert response.get_json()['message'] == 'worker lost'


def test_cancel(client):
    with patch('briefgen.api.endpoints.briefs.get_task_status', return_value=_status()), \
            patch('briefgen.api.endpoints.briefs.cancel_task', return_value=True) as cancel:
        response = client.post('/api/v1/briefs/task-123/cancel', headers=USER)

    assert response.status_code == 200
    assert response.get_json()['status'] == 'cancelled'
    cancel.assert_called_once_with('task-123')


@pytest.mark.parametrize('path', ['/api/v1/briefs/task-123', '/api/v1/briefs/task-123/result'])
def test_task_of_another_user_is_not_found(client, path):
    result = {'success': True, 'briefId': 'brief-1', 'brief': {}, 'metadata': {}}
    status = _status(status='SUCCESS', ready=True, successful=True, result=result, user_id='user-2')

    with patch('briefgen.api.endpoints.briefs.get_task_status', return_value=status):
        response = client.get(path, headers=USER)

    assert response.status_code == 404
    body = response.get_json()
    assert body['error_code'] == 'TASK_NOT_FOUND'
    assert 'brief-1' not in str(body)


def test_cancel_task_of_another_user_is_not_found(client):
    with patch('briefgen.api.endpoints.briefs.get_task_status', return_value=_status(user_id='user-2')), \
            patch('briefgen.api.endpoints.briefs.cancel_task', return_value=True) as cancel:
        response = client.post('/api/v1/briefs/task-123/cancel', headers=USER)

    assert response.status_code == 404
    cancel.assert_not_called()


def test_status_requires_user(client):
    with patch('briefgen.api.endpoints.briefs.get_task_status', return_value=_status()) as status:
        response = client.get('/api/v1/briefs/task-123', headers=API_KEY)

    assert response.status_code == 401
    status.assert_not_called()


def test_status_without_recorded_owner_is_visible(client):
    status = _status(status='PENDING', progress_percent=0, current_step='', message='', stage='', user_id=None)

    with patch('briefgen.api.endpoints.briefs.get_task_status', return_value=status):
        response = client.get('/api/v1/briefs/task-123', headers=USER)

    assert response.status_code == 200
    assert response.get_json()['status'] == 'PENDING'


def test_unknown_route(client):
    response = client.get('/api/v1/nothing-here', headers=API_KEY)

    assert response.status_code == 404
    assert response.get_json()['error'] == 'not_found'


def test_docs_list_brief_routes(client):
    response = client.get('/api/v1/docs', headers=API_KEY)

    assert response.status_code == 200
    routes = {route['path']: route for route in response.get_json()['routes']}
    assert routes['/api/v1/briefs']['methods'] == ['POST']
    assert routes['/api/v1/briefs/<task_id>/result']['requires_api_key'] is True
    assert routes['/api/v1/health']['requires_api_key'] is False
