"""
Standardized error handling for the Newsdesk API.

Provides consistent error codes, exception classes, and response formatting.
"""

import logging
import uuid
from enum import Enum
from typing import Any, Dict, Optional
from dataclasses import dataclass, field

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Authentication/Authorization (401/403)
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    ROLE_REQUIRED = "ROLE_REQUIRED"
    RATE_LIMITED = "RATE_LIMITED"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

    # Resource errors (404/409)
    NOT_FOUND = "NOT_FOUND"
    ARTICLE_NOT_FOUND = "ARTICLE_NOT_FOUND"
    DUPLICATE_VOTE = "DUPLICATE_VOTE"
    CONFLICT = "CONFLICT"

    # Workflow errors
    INVALID_TRANSITION = "INVALID_TRANSITION"
    UNKNOWN_STATE = "UNKNOWN_STATE"
    PERSISTENCE_CONFLICT = "PERSISTENCE_CONFLICT"

    # Server errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Error Response Schema
# =============================================================================

@dataclass
class ErrorDetail:
    """Detailed error information."""
    code: ErrorCode
    message: str
    field: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "code": self.code.value if isinstance(self.code, ErrorCode) else self.code,
            "message": self.message,
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result


@dataclass
class ErrorResponse:
    """Standardized error response."""
    error: ErrorDetail
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error.to_dict(),
            "request_id": self.request_id,
        }

    def to_response(self, status_code: int = 400) -> Response:
        return Response(self.to_dict(), status=status_code)


# =============================================================================
# Custom Exceptions
# =============================================================================

class NewsdeskException(APIException):
    """Base exception for Newsdesk API errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.INTERNAL_ERROR
    default_detail = "An error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.default_detail
        self.error_code = code or self.error_code
        self.field = field
        self.error_details = details or {}

        if status_code:
            self.status_code = status_code

        super().__init__(detail=self.message)

    def get_error_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        return ErrorResponse(
            error=ErrorDetail(
                code=self.error_code,
                message=self.message,
                field=self.field,
                details=self.error_details if self.error_details else None,
            ),
            request_id=request_id or str(uuid.uuid4()),
        )


class ValidationError(NewsdeskException):
    """Validation error."""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.VALIDATION_ERROR
    default_detail = "Validation failed"


class NotFoundError(NewsdeskException):
    """Resource not found."""
    status_code = status.HTTP_404_NOT_FOUND
    error_code = ErrorCode.NOT_FOUND
    default_detail = "Resource not found"


class PermissionDeniedError(NewsdeskException):
    """Permission denied."""
    status_code = status.HTTP_403_FORBIDDEN
    error_code = ErrorCode.PERMISSION_DENIED
    default_detail = "Permission denied"


# =============================================================================
# Exception Handler
# =============================================================================

# HTTP status of a wrapped DRF error -> envelope code; anything else 4xx is a validation error
DRF_STATUS_CODES = {
    status.HTTP_401_UNAUTHORIZED: ErrorCode.AUTHENTICATION_REQUIRED,
    status.HTTP_403_FORBIDDEN: ErrorCode.PERMISSION_DENIED,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.METHOD_NOT_ALLOWED,
    status.HTTP_429_TOO_MANY_REQUESTS: ErrorCode.RATE_LIMITED,
}


def get_request_id(request) -> str:
    """Request ID set by RequestIDMiddleware, or a fresh one."""
    return getattr(request, 'request_id', None) or str(uuid.uuid4())


def _wrap_drf_error(response: Response, request_id: str) -> Response:
    """Re-render a response built by DRF's own handler in the Newsdesk envelope."""
    if response.status_code >= 500:
        code = ErrorCode.INTERNAL_ERROR
    else:
        code = DRF_STATUS_CODES.get(response.status_code, ErrorCode.VALIDATION_ERROR)

    data = response.data
    if isinstance(data, dict) and 'detail' in data:
        message, details = str(data['detail']), None
    elif isinstance(data, dict):
        # Serializer field errors
        message, details = "Validation failed", data
    else:
        message, details = "Validation failed", {"errors": data}

    envelope = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details),
        request_id=request_id,
    )
    return envelope.to_response(response.status_code)


def newsdesk_exception_handler(exc, context):
    """
    DRF exception handler producing the Newsdesk error envelope.

    Workflow and API errors (NewsdeskException) render their own code and
    details. Errors DRF already understands (authentication, permissions,
    throttling, serializer validation, Http404) are wrapped. Anything else
    is logged with its traceback and answered with a generic 500.
    """
    request = context.get('request')
    request_id = get_request_id(request) if request else str(uuid.uuid4())

    if isinstance(exc, NewsdeskException):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "API error %s: %s",
            exc.error_code.value, exc.message,
            extra={"error_code": exc.error_code.value, "field": exc.field, "status_code": exc.status_code},
        )
        return exc.get_error_response(request_id).to_response(exc.status_code)

    response = drf_exception_handler(exc, context)
    if response is not None:
        return _wrap_drf_error(response, request_id)

    logger.exception(
        "Unhandled %s while serving request %s", type(exc).__name__, request_id,
        extra={"exception_type": type(exc).__name__},
    )
    envelope = ErrorResponse(
        error=ErrorDetail(code=ErrorCode.INTERNAL_ERROR, message="An unexpected error occurred"),
        request_id=request_id,
    )
    return envelope.to_response(status.HTTP_500_INTERNAL_SERVER_ERROR)


# =============================================================================
# Response Helpers
# =============================================================================

def success_response(
    data: Any = None,
    message: Optional[str] = None,
    status_code: int = 200,
) -> Response:
    """Create a standardized success response."""
    response_data = {}

    if data is not None:
        if isinstance(data, dict):
            response_data.update(data)
        else:
            response_data['data'] = data

    if message:
        response_data['message'] = message

    return Response(response_data, status=status_code)


def created_response(
    data: Any = None,
    message: str = "Created successfully",
) -> Response:
    """Create a 201 Created response."""
    return success_response(data=data, message=message, status_code=201)
