"""
URL configuration for Killshot.

API routes live under /api/<API_VERSION>/ (v1 by default).
"""
from django.conf import settings
from django.contrib import admin
from django.urls import path, include, re_path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from config.views import health_check, api_info, root, route_not_found

API_PREFIX = f'api/{settings.API_VERSION}/'

urlpatterns = [
    # Health check
    path('health', health_check, name='health-check'),

    # Admin
    path('admin/', admin.site.urls),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='api-schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='api-schema'), name='api-docs'),

    # API info
    path('api', api_info, name='api-info'),

    # API endpoints
    path(API_PREFIX + 'groups/', include('apps.groups.urls')),
    path(API_PREFIX + 'expenses/', include('apps.expenses.urls')),

    path('', root, name='root'),

    # Everything else
    re_path(r'^(?P<path>.*)$', route_not_found, name='route-not-found'),
]


# Custom error handlers
handler404 = 'config.views.error_404'
handler500 = 'config.views.error_500'
