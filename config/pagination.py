from math import ceil

from django.core.paginator import Page
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from config.responses import envelope


class EnvelopePagination(PageNumberPagination):
    """
    Page/limit pagination rendered inside the success envelope.

    Query Parameters:
        page (int): Page number, starting at 1 (default 1)
        limit (int): Items per page (default 10, max 100)

    A missing, malformed or non-positive page is read as page 1. A page past
    the end is an empty page rather than an error.
    """

    page_size = 10
    page_query_param = 'page'
    page_size_query_param = 'limit'
    max_page_size = 100

    def get_page_number(self, request, paginator):
        try:
            number = int(request.query_params.get(self.page_query_param, 1))
        except (TypeError, ValueError):
            return 1
        return number if number > 0 else 1

    def paginate_queryset(self, queryset, request, view=None):
        self.request = request
        page_size = self.get_page_size(request)
        paginator = self.django_paginator_class(queryset, page_size)
        number = self.get_page_number(request, paginator)

        bottom = (number - 1) * page_size
        self.page = Page(list(queryset[bottom:bottom + page_size]), number, paginator)
        return list(self.page)

    def get_paginated_response(self, data):
        total = self.page.paginator.count
        limit = self.page.paginator.per_page
        page = self.page.number
        total_pages = ceil(total / limit) if limit else 0

        return Response(envelope(
            self.request,
            success=True,
            data=data,
            pagination={
                'page': page,
                'limit': limit,
                'total': total,
                'totalPages': total_pages,
                'hasNext': self.page.has_next(),
                'hasPrev': self.page.has_previous(),
            },
        ))

    def get_paginated_response_schema(self, schema):
        return {
            'type': 'object',
            'properties': {
                'success': {'type': 'boolean'},
                'data': schema,
                'pagination': {
                    'type': 'object',
                    'properties': {
                        'page': {'type': 'integer'},
                        'limit': {'type': 'integer'},
                        'total': {'type': 'integer'},
                        'totalPages': {'type': 'integer'},
                        'hasNext': {'type': 'boolean'},
                        'hasPrev': {'type': 'boolean'},
                    },
                },
                'timestamp': {'type': 'string', 'format': 'date-time'},
                'requestId': {'type': 'string'},
            },
        }
