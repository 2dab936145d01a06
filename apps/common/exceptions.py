import logging

from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import Http404
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    NotFound,
    ParseError,
    PermissionDenied,
    ValidationError,
)
from rest_framework.views import exception_handler

from .utils import sanitize_for_log

logger = logging.getLogger(__name__)


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state of the resource."
    default_code = "conflict"


class InternalError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
    default_code = "internal_error"


def translate_exception(exc):
    """Map Django and database exceptions onto DRF API exceptions."""
    if isinstance(exc, APIException):
        return exc
    if isinstance(exc, (Http404, ObjectDoesNotExist)):
        return NotFound(str(exc) or None)
    if isinstance(exc, DjangoPermissionDenied):
        return PermissionDenied(str(exc) or None)
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
        return ValidationError(detail)
    if isinstance(exc, IntegrityError):
        return Conflict()
    return None


def _error_message(exc, data):
    if isinstance(exc, ValidationError):
        if isinstance(data, dict) and "detail" in data:
            return str(data["detail"])
        if isinstance(data, list) and len(data) == 1:
            return str(data[0])
        return "Validation failed"
    detail = getattr(exc, "detail", None)
    return str(detail) if detail is not None else str(exc)


def api_exception_handler(exc, context):
    """
    Render every API error as
    ``{"error": {code, message, status_code, timestamp, path, method, details?}}``.
    Unexpected exceptions are logged with a traceback and reported as 500.
    """
    request = context.get("request")
    translated = translate_exception(exc)

    if translated is None:
        logger.error(
            f"Unhandled API exception: {exc.__class__.__name__} - {str(exc)}",
            extra={
                "path": request.path if request else None,
                "method": request.method if request else None,
                "body": sanitize_for_log(_request_body(request)),
            },
            exc_info=exc,
        )
        translated = InternalError()

    response = exception_handler(translated, context)
    if response is None:
        return None

    user = getattr(request, "user", None) if request else None
    log = logger.error if response.status_code >= 500 else logger.warning
    log(
        f"API error {response.status_code}: {translated.__class__.__name__} - {_error_message(translated, response.data)}",
        extra={
            "user": user.pk if user is not None and user.is_authenticated else None,
            "path": request.path if request else None,
            "method": request.method if request else None,
            "status_code": response.status_code,
            "exception_class": exc.__class__.__name__,
        },
    )

    error = {
        "code": _error_code(translated),
        "message": _error_message(translated, response.data),
        "status_code": response.status_code,
        "timestamp": timezone.now().isoformat(),
        "path": request.path if request else None,
        "method": request.method if request else None,
    }
    if isinstance(translated, ValidationError):
        error["details"] = response.data

    response.data = {"error": error}
    return response


def _error_code(exc):
    codes = exc.get_codes() if hasattr(exc, "get_codes") else None
    if isinstance(codes, str):
        return codes
    return getattr(exc, "default_code", "error")


def _request_body(request):
    if request is None:
        return None
    try:
        return dict(request.data)
    except (ParseError, TypeError, ValueError):
        return None
