"""
Response envelope shared by every API endpoint.

Success: {"success": true, "data": ..., "message": ..., "timestamp": ..., "requestId": ...}
Error:   {"success": false, "error": ..., "details": [...], "timestamp": ..., "requestId": ...}
"""

from django.utils import timezone
from rest_framework import status as http_status
from rest_framework.response import Response

from config.middleware import get_request_id


def envelope(request, **payload):
    """Add timestamp and request ID to a payload dict."""
    payload['timestamp'] = timezone.now().isoformat()
    payload['requestId'] = get_request_id(request)
    return payload


def api_response(request, data=None, message=None, status=http_status.HTTP_200_OK):
    """Wrap data in the success envelope."""
    payload = {'success': True, 'data': data}
    if message:
        payload['message'] = message
    return Response(envelope(request, **payload), status=status)


def error_payload(request, error, details=None):
    """Build the error envelope dict."""
    payload = {'success': False, 'error': error}
    if details:
        payload['details'] = details
    return envelope(request, **payload)


def single_page_response(request, data):
    """Wrap a complete, unpaginated list with a one-page pagination block."""
    return Response(envelope(
        request,
        success=True,
        data=data,
        pagination={
            'page': 1,
            'limit': len(data),
            'total': len(data),
            'totalPages': 1,
            'hasNext': False,
            'hasPrev': False,
        },
    ))
