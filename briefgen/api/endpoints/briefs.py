"""
Brief API endpoints.

This module provides the endpoints for requesting a content brief,
following its progress and retrieving the finished brief.
"""

import asyncio
import logging
from datetime import datetime
from flask import Blueprint, request, jsonify, current_app, g
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from pydantic import ValidationError as PydanticValidationError

from ...core.models.errors import ErrorResponse, ValidationErrorResponse
from ...core.models.pipeline import BriefRequest
from ...core.pipeline.orchestrator import check_account
from ...integrations.storage import get_supabase_client, SupabaseAccountGateway
from ...tasks.briefs import generate_brief_task, get_task_status, cancel_task
from ..middleware.auth import require_user
from ..schemas.briefs import BriefCreateResponse, BriefStatusResponse


logger = logging.getLogger(__name__)

# Create blueprint
briefs_bp = Blueprint('briefs', __name__, url_prefix='/api/v1')

# Rate limiter, bound to the app in create_app
limiter = Limiter(key_func=get_remote_address, default_limits=[])


def _brief_rate_limit() -> str:
    return current_app.config.get('BRIEF_RATE_LIMIT', '10 per minute')


def _task_status_error(task_id: str, task_status):
    """Error response when the task status cannot be shown to the current user, else None."""
    if not task_status:
        return jsonify(ErrorResponse(
            error="task_status_unavailable",
            message="Could not read brief task status",
            error_code="TASK_STATUS_UNAVAILABLE",
            status=503
        ).model_dump(mode='json')), 503

    owner = task_status.get("user_id")
    if owner and owner != g.user_id:
        # Tasks queued by other users are reported as missing
        return jsonify(ErrorResponse(
            error="task_not_found",
            message="Brief task not found",
            error_code="TASK_NOT_FOUND",
            status=404,
            task_id=task_id
        ).model_dump(mode='json')), 404

    return None


def _account_gateway():
    gateway = current_app.extensions.get('account_gateway')
    if gateway is None:
        client = get_supabase_client(current_app.config.get('SUPABASE_URL'), current_app.config.get('SUPABASE_KEY'))
        gateway = SupabaseAccountGateway(client)
        current_app.extensions['account_gateway'] = gateway
    return gateway


@briefs_bp.route('/briefs', methods=['POST'])
@require_user
@limiter.limit(_brief_rate_limit)
def create_brief():
    """
    Request a new content brief.

    Expected JSON body:
    {
        "topic": "Topic to research (3-200 characters)"
    }

    The account's subscription and credits are checked before the task is
    queued, so a request that would fail pre-flight never reaches a worker.
    """
    if not request.is_json:
        return jsonify(ErrorResponse(
            error="invalid_content_type",
            message="Content-Type must be application/json",
            error_code="INVALID_CONTENT_TYPE",
            status=400
        ).model_dump(mode='json')), 400

    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify(ErrorResponse(
            error="invalid_request",
            message="Request body is required",
            error_code="INVALID_REQUEST",
            status=400
        ).model_dump(mode='json')), 400

    try:
        brief_request = BriefRequest(**data)
    except PydanticValidationError as e:
        response = ValidationErrorResponse(request_id=getattr(g, 'request_id', None))
        for error in e.errors():
            field = '.'.join(str(part) for part in error.get('loc', ())) or 'topic'
            response.add_validation_error(field, error.get('msg', 'Invalid value'))
        return jsonify(response.model_dump(mode='json')), 400

    # Raises pre-flight errors; ErrorHandler maps them to 401/403
    account = asyncio.run(check_account(_account_gateway(), g.user_id))

    task = generate_brief_task.delay(brief_request.topic, account.user_id)

    logger.info(f"Brief task created: {task.id} for user {account.user_id}")

    response = BriefCreateResponse.for_task(task.id, brief_request.topic)
    return jsonify(response.model_dump(mode='json')), 202


@briefs_bp.route('/briefs/<task_id>', methods=['GET'])
@require_user
def get_brief_status(task_id):
    """
    Get the status of a brief task.

    Args:
        task_id: Brief task ID

    Returns:
        Task status and progress information
    """
    task_status = get_task_status(task_id)

    error_response = _task_status_error(task_id, task_status)
    if error_response:
        return error_response

    response = BriefStatusResponse(
        task_id=task_id,
        status=task_status.get("status", "unknown"),
        progress_percent=task_status.get("progress_percent", 0),
        current_step=task_status.get("current_step", ""),
        message=task_status.get("message", ""),
        stage=task_status.get("stage", ""),
        result=task_status.get("result") if task_status.get("successful") else None,
        error=task_status.get("error")
    )

    return jsonify(response.model_dump(mode='json')), 200


@briefs_bp.route('/briefs/<task_id>/result', methods=['GET'])
@require_user
def get_brief_result(task_id):
    """
    Get the result of a finished brief task.

    A run that failed inside the pipeline returns its error payload with
    the status it carries; a task that crashed returns 500.
    """
    task_status = get_task_status(task_id)

    error_response = _task_status_error(task_id, task_status)
    if error_response:
        return error_response

    if not task_status.get("ready"):
        return jsonify(ErrorResponse(
            error="task_not_completed",
            message="Brief task is not completed yet",
            error_code="TASK_NOT_COMPLETED",
            status=202,
            task_id=task_id,
            details={
                "progress_percent": task_status.get("progress_percent", 0),
                "stage": task_status.get("stage", "")
            }
        ).model_dump(mode='json')), 202

    if task_status.get("failed"):
        return jsonify(ErrorResponse(
            error="task_failed",
            message=task_status.get("error") or "Brief generation failed",
            error_code="TASK_FAILED",
            status=500,
            task_id=task_id
        ).model_dump(mode='json')), 500

    result = task_status.get("result")
    if not isinstance(result, dict):
        return jsonify(ErrorResponse(
            error="no_result",
            message="No result available for this task",
            error_code="NO_RESULT",
            status=404,
            task_id=task_id
        ).model_dump(mode='json')), 404

    if not result.get("success"):
        return jsonify(result), result.get("status", 500)

    return jsonify(result), 200


@briefs_bp.route('/briefs/<task_id>/cancel', methods=['POST'])
@require_user
def cancel_brief_task(task_id):
    """
    Cancel a running brief task.

    Args:
        task_id: Brief task ID

    Returns:
        Cancellation confirmation
    """
    error_response = _task_status_error(task_id, get_task_status(task_id))
    if error_response:
        return error_response

    if not cancel_task(task_id):
        return jsonify(ErrorResponse(
            error="cancel_failed",
            message="Brief task could not be cancelled",
            error_code="CANCEL_FAILED",
            status=500,
            task_id=task_id
        ).model_dump(mode='json')), 500

    return jsonify({
        "task_id": task_id,
        "status": "cancelled",
        "message": "Task has been cancelled successfully",
        "timestamp": datetime.utcnow().isoformat()
    }), 200
