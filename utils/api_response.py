"""
Standardized API response helpers.

Provides consistent JSON response format across all API endpoints:

    Success:  {"success": true, "data": {...}, "message": "..."}
    Error:    {"success": false, "error": "Spanish error message", "code": "..."}

Usage:
    from utils.api_response import api_success, api_error

    return api_success(data={'id': 1}, message='Creado exitosamente', status=201)
    return api_error('Datos requeridos', status=400, code='VALIDATION_ERROR')
"""

from flask import jsonify, request
from typing import Any

from utils.errors import ValidationError
from utils.messages import MESSAGES


def api_success(
    data: dict | list | None = None,
    message: str | None = None,
    status: int = 200,
    **extra_fields: Any
) -> tuple:
    """
    Build a standardized success JSON response.

    Args:
        data: Optional payload to include as 'data' key.
        message: Optional success message (Spanish).
        status: HTTP status code (default 200).
        **extra_fields: Additional top-level fields (e.g., pagination).

    Returns:
        Tuple of (Response, status_code)
    """
    response = {'success': True}

    if data is not None:
        response['data'] = data

    if message:
        response['message'] = message

    if extra_fields:
        response.update(extra_fields)

    return jsonify(response), status


def api_error(error: str, status: int = 400, **extra_fields: Any) -> tuple:
    """
    Build a standardized error JSON response.

    Args:
        error: Error message (Spanish).
        status: HTTP status code (default 400).
        **extra_fields: Additional top-level fields (e.g., code, fields, conflicting_ids).

    Returns:
        Tuple of (Response, status_code)
    """
    response = {'success': False, 'error': error}

    if extra_fields:
        response.update(extra_fields)

    return jsonify(response), status


def api_exception(exc) -> tuple:
    """
    Render a ReservationError as a standardized error response.

    Args:
        exc: ReservationError instance

    Returns:
        Tuple of (Response, status_code)
    """
    return api_error(exc.message, status=exc.status, **exc.to_dict())


def get_json_body() -> dict:
    """
    Read the request's JSON object body.

    Returns:
        dict (empty when the body is empty)

    Raises:
        ValidationError: If the body is not a JSON object
    """
    if not request.get_data():
        return {}
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError(MESSAGES['invalid_json'], {'body': MESSAGES['invalid_json']})
    return data
