# cm_core/common/api/exceptions.py
from __future__ import annotations

import logging
import uuid
from typing import Any

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.serializers import as_serializer_error
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

# Fallback codes when the exception does not carry a specific one
STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "not_authenticated",
    status.HTTP_403_FORBIDDEN: "permission_denied",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_409_CONFLICT: "conflict",
}


def request_id_for(request) -> str:
    """
    Client-supplied X-Request-ID when present and sane, else a fresh uuid.
    The value is cached on the request so repeated calls agree.
    """
    if request is None:
        return uuid.uuid4().hex

    rid = getattr(request, "request_id", None)
    if rid:
        return rid

    supplied = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    rid = supplied if 0 < len(supplied) <= MAX_REQUEST_ID_LENGTH else uuid.uuid4().hex
    request.request_id = rid
    return rid


def error_code(exc: Exception, http_status: int) -> str:
    if isinstance(exc, ValidationError):
        return "validation_error"
    if isinstance(exc, APIException) and exc.default_code != APIException.default_code:
        return exc.default_code
    if http_status >= 500:
        return "server_error"
    return STATUS_CODES.get(http_status, "error")


def first_message(data: Any) -> str | None:
    """
    Depth-first search for the first error string in a DRF error payload.
    """
    if isinstance(data, str):
        return str(data)
    if isinstance(data, dict):
        values = data.values()
    elif isinstance(data, (list, tuple)):
        values = data
    else:
        return None
    for value in values:
        found = first_message(value)
        if found:
            return found
    return None


def split_payload(data: Any) -> tuple[str, Any]:
    """
    DRF error payload -> (message, details).

    A "detail" key becomes the message and the remaining keys the details.
    Field errors stay whole in details; their first message is surfaced.
    """
    if isinstance(data, dict) and "detail" in data:
        rest = {k: v for k, v in data.items() if k != "detail"}
        return str(data["detail"]), rest or None
    return first_message(data) or "Request failed.", data


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": request_id_for(request),
        }
    }


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    """
    Wraps every API error as {"error": {code, message, details, request_id}}
    and echoes the request id back in the X-Request-ID header.
    """
    request = context.get("request")
    if isinstance(exc, DjangoValidationError):
        # model-level clean() errors surface as 400s, not 500s
        exc = ValidationError(detail=as_serializer_error(exc))

    response = drf_exception_handler(exc, context)
    rid = request_id_for(request)

    if response is None:
        logger.exception("Unhandled API error request_id=%s", rid, exc_info=exc)
        return Response(
            build_error_envelope(request=request, code="server_error", message="Unexpected server error."),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            headers={REQUEST_ID_HEADER: rid},
        )

    code = error_code(exc, response.status_code)
    message, details = split_payload(response.data)
    logger.info("API error %s code=%s request_id=%s: %s", response.status_code, code, rid, message)

    # Content-Type is left to the renderer
    headers = {k: v for k, v in response.headers.items() if k.lower() != "content-type"}
    headers[REQUEST_ID_HEADER] = rid
    return Response(
        build_error_envelope(request=request, code=code, message=message, details=details),
        status=response.status_code,
        headers=headers,
    )
