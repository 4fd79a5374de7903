"""
Common utility functions for API responses and request parsing
"""
from datetime import datetime, time

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from rest_framework import status
from rest_framework.response import Response

from .exceptions import LoyaltyValidationError


def success_response(data=None, message="Success", status_code=status.HTTP_200_OK):
    """
    Standard success response envelope
    """
    response_data = {
        "code": status_code,
        "msg": message,
        "data": data
    }
    return Response(response_data, status=status_code)


def error_response(message="Error", errors=None, status_code=status.HTTP_400_BAD_REQUEST):
    """
    Standard error response envelope
    """
    response_data = {
        "code": status_code,
        "msg": message
    }
    if errors:
        response_data["errors"] = errors
    return Response(response_data, status=status_code)


def operation_response(result, message, status_code=status.HTTP_200_OK):
    """
    Success envelope for an OperationResult.

    Side-effect failures keep the success status but are flagged so the
    caller does not retry a grant that already committed.
    """
    data = result.to_dict()
    data['has_side_issues'] = result.has_side_issues
    if result.has_side_issues:
        message = f"{message} (with follow-up issues)"
    return success_response(data, message=message, status_code=status_code)


def paginated_response(queryset, serializer_class, request, message="Success"):
    """
    Standard paginated response format
    """
    from rest_framework.pagination import PageNumberPagination

    paginator = PageNumberPagination()
    paginator.page_size = 20
    page = paginator.paginate_queryset(queryset, request)

    if page is not None:
        serializer = serializer_class(page, many=True)
        return success_response({
            "list": serializer.data,
            "page": {
                "pageNum": paginator.page.number,
                "pageSize": paginator.page_size,
                "total": paginator.page.paginator.count,
                "totalPages": paginator.page.paginator.num_pages
            }
        }, message)

    serializer = serializer_class(queryset, many=True)
    return success_response({
        "list": serializer.data,
        "page": {
            "pageNum": 1,
            "pageSize": len(serializer.data),
            "total": len(serializer.data),
            "totalPages": 1
        }
    }, message)


def parse_moment(value, end_of_day=False, default=None):
    """
    Parse an ISO date or datetime query value into an aware datetime.

    A bare date maps to the start of that day, or to its last microsecond
    when ``end_of_day`` is set.
    """
    if value in (None, ''):
        return default

    try:
        moment = parse_datetime(value)
        day = parse_date(value) if moment is None else None
    except ValueError as e:
        # Well-formed but impossible, e.g. 2025-02-30
        raise LoyaltyValidationError(f"Invalid date value: {value}") from e

    if moment is None:
        if day is None:
            raise LoyaltyValidationError(f"Invalid date value: {value}")
        moment = datetime.combine(day, time.max if end_of_day else time.min)

    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment)
    return moment
