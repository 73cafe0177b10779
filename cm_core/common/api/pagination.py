# cm_core/common/api/pagination.py
from __future__ import annotations

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class DefaultPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = "page_size"
    max_page_size = 500


def paginate(request, queryset, serializer_class, *, context: dict | None = None) -> Response:
    """
    Paginated list response with the stable contract:
      { count, next, previous, results }
    """
    p = DefaultPagination()
    page = p.paginate_queryset(queryset, request)
    ser = serializer_class(page if page is not None else queryset, many=True, context=context or {})
    if page is not None:
        return p.get_paginated_response(ser.data)
    return Response(ser.data)
