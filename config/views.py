import time

from django.conf import settings
from django.http import Http404, HttpResponsePermanentRedirect, JsonResponse
from django.urls import resolve
from django.views.decorators.csrf import csrf_exempt
from rest_framework.decorators import api_view, throttle_classes
from rest_framework.response import Response

from config.responses import envelope, error_payload

STARTED_AT = time.monotonic()


def error_404(request, exception):
    """Custom 404 handler."""
    return JsonResponse(
        error_payload(request, f'Route {request.path} not found'),
        status=404,
    )


def error_500(request):
    """Custom 500 handler."""
    return JsonResponse(
        error_payload(request, 'Internal server error'),
        status=500,
    )


@csrf_exempt
def route_not_found(request, path=''):
    """
    Last URL pattern: unknown routes get the JSON 404 even with DEBUG on.

    Since every path now resolves, CommonMiddleware can no longer append a
    missing slash, so the redirect is done here.
    """
    if settings.APPEND_SLASH and not request.path_info.endswith('/'):
        match = resolve(request.path_info + '/')
        if match.url_name != 'route-not-found':
            return HttpResponsePermanentRedirect(request.get_full_path(force_append_slash=True))
    return error_404(request, Http404())


@api_view(['GET'])
@throttle_classes([])
def health_check(request):
    """Liveness check."""
    return Response(envelope(
        request,
        success=True,
        message='Server is running',
        uptime=round(time.monotonic() - STARTED_AT, 3),
        environment=settings.APP_ENV,
        version=settings.APP_VERSION,
    ))


@api_view(['GET'])
def api_info(request):
    """Describe the API and its entry points."""
    version = settings.API_VERSION
    return Response(envelope(
        request,
        success=True,
        message='Expense Manager API',
        version=version,
        documentation='/api/docs/',
        endpoints={
            'groups': f'/api/{version}/groups/',
            'expenses': f'/api/{version}/expenses/',
            'health': '/health',
        },
    ))


@api_view(['GET'])
def root(request):
    return Response(envelope(
        request,
        success=True,
        message='Welcome to Expense Manager API',
        version=settings.API_VERSION,
        documentation='/api/docs/',
        health='/health',
    ))
