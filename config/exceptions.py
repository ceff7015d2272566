"""
Global API error handling.

Every error leaving a DRF view is rendered in the error envelope. Domain
exceptions are translated to APIExceptions in the views; anything else
that escapes is logged and reported as a 500.
"""

import logging

from django.conf import settings
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from config.responses import error_payload

logger = logging.getLogger(__name__)


class Conflict(APIException):
    """Request conflicts with the current state of a resource."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Request conflicts with the current state of the resource.'
    default_code = 'conflict'


def flatten_validation_errors(detail, prefix=''):
    """
    Turn DRF's nested validation detail into a flat list.

    Returns:
        list[dict]: [{'field': 'splits.0.userId', 'message': '...'}, ...]
    """
    errors = []
    if isinstance(detail, dict):
        for key, value in detail.items():
            field = f'{prefix}.{key}' if prefix else str(key)
            errors.extend(flatten_validation_errors(value, field))
    elif isinstance(detail, list):
        if all(not isinstance(item, (dict, list)) for item in detail):
            for item in detail:
                errors.append({'field': prefix or 'non_field_errors', 'message': str(item)})
        else:
            for index, item in enumerate(detail):
                field = f'{prefix}.{index}' if prefix else str(index)
                errors.extend(flatten_validation_errors(item, field))
    else:
        errors.append({'field': prefix or 'non_field_errors', 'message': str(detail)})
    return errors


def envelope_exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER that renders errors in the envelope."""
    request = context.get('request')
    response = exception_handler(exc, context)

    if response is None:
        logger.exception('Unhandled error in %s', context.get('view').__class__.__name__)
        message = str(exc) if settings.DEBUG else 'Something went wrong'
        return Response(
            error_payload(request, message),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, ValidationError):
        response.data = error_payload(
            request,
            'Validation failed',
            details=flatten_validation_errors(exc.detail),
        )
    else:
        detail = response.data.get('detail', exc) if isinstance(response.data, dict) else exc
        response.data = error_payload(request, str(detail))

    if response.status_code >= 500:
        logger.error('API error %s: %s', response.status_code, exc)
    else:
        logger.info('API error %s: %s', response.status_code, exc)

    return response
