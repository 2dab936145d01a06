from typing import Optional

from django.conf import settings
from django.db.models import QuerySet
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class StandardResultsSetPagination(PageNumberPagination):
    """
    Page-number pagination driven by ``page`` and ``limit`` query params.

    Out-of-range and malformed page numbers are clamped instead of raising
    404, so clients paging past the end get the last page.
    """

    page_size = settings.REST_FRAMEWORK.get("PAGE_SIZE", 10)
    page_size_query_param = "limit"
    max_page_size = 100
    page_query_param = "page"

    def paginate_queryset(self, queryset: QuerySet, request, view=None) -> Optional[list]:
        page_size = self.get_page_size(request)
        if not page_size:
            return None

        paginator = self.django_paginator_class(queryset, page_size)
        page_number = self.get_page_number(request, paginator)
        self.page = paginator.page(page_number)
        self.request = request

        if paginator.num_pages > 1 and self.template is not None:
            self.display_page_controls = True

        return list(self.page)

    def get_page_number(self, request, paginator) -> int:
        page_number = request.query_params.get(self.page_query_param, 1)
        if page_number in self.last_page_strings:
            return paginator.num_pages

        try:
            page_number = int(page_number)
        except (TypeError, ValueError):
            return 1

        if page_number < 1:
            return 1
        if page_number > paginator.num_pages:
            return paginator.num_pages
        return page_number

    def get_paginated_response(self, data: list) -> Response:
        return Response(
            {
                "pagination": {
                    "count": self.page.paginator.count,
                    "total_pages": self.page.paginator.num_pages,
                    "current_page": self.page.number,
                    "page_size": self.page.paginator.per_page,
                    "has_next": self.page.has_next(),
                    "has_previous": self.page.has_previous(),
                },
                "links": {
                    "next": self.get_next_link(),
                    "previous": self.get_previous_link(),
                },
                "results": data,
            }
        )
