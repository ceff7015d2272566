"""
Request tracking middleware.

Every request gets an ID (taken from the X-Request-ID header when the
client sends one) that is echoed back on the response and included in
error payloads and the access log.
"""

import logging
import time
import uuid

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = 'X-Request-ID'


def get_request_id(request):
    """Return the ID assigned to this request, or None outside the middleware."""
    if request is None:
        return None
    # DRF wraps the Django request; the ID lives on the underlying one
    django_request = getattr(request, '_request', request)
    return getattr(django_request, 'request_id', None)


class RequestIdMiddleware:
    """Assign a request ID and log one access line per request."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        started = time.monotonic()

        response = self.get_response(request)

        response[REQUEST_ID_HEADER] = request.request_id
        duration_ms = (time.monotonic() - started) * 1000
        logger.info(
            '%s %s %s %.1fms request_id=%s',
            request.method,
            request.get_full_path(),
            response.status_code,
            duration_ms,
            request.request_id,
        )
        return response
