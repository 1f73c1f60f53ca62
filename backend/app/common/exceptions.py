# app/common/exceptions.py
from typing import Optional

from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework.exceptions import (
    NotAuthenticated,
    AuthenticationFailed,
    PermissionDenied,
    ParseError,
    ValidationError,
)
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError


class DomainError(Exception):
    """
    도메인 계층에서 올라오는 타입 있는 실패.
    code는 클라이언트가 분기하는 안정적인 식별자.
    """

    code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "internal error"

    def __init__(self, message: Optional[str] = None, *, code: Optional[str] = None):
        self.message = message or self.default_message
        if code:
            self.code = code
        super().__init__(self.message)

    def to_dict(self):
        return {"code": self.code, "message": self.message}


class NotFound(DomainError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "not found"


class Unauthorized(DomainError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "unauthorized"


class Forbidden(DomainError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "forbidden"


class Gone(DomainError):
    code = "GONE"
    status_code = 410
    default_message = "no longer available"


class Conflict(DomainError):
    code = "CONFLICT"
    status_code = 409
    default_message = "conflict"


class ValidationFailed(DomainError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "invalid request"


class Internal(DomainError):
    code = "INTERNAL_ERROR"
    status_code = 500


class RateLimited(DomainError):
    code = "RATE_LIMITED"
    status_code = 429
    default_message = "Too many requests. Please try again later."

    def __init__(self, message: Optional[str] = None, *, retry_after: int = 60):
        self.retry_after = retry_after
        super().__init__(message)


def error_body(code: str, message: str):
    return {"success": False, "data": None, "error": {"code": code, "message": message}}


def custom_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        response = Response(error_body(exc.code, exc.message), status=exc.status_code)
        if isinstance(exc, RateLimited):
            response["Retry-After"] = str(exc.retry_after)
        return response

    response = exception_handler(exc, context)
    if response is None:
        return response

    # InvalidToken 은 AuthenticationFailed 의 하위 클래스라 먼저 봐야 함
    if isinstance(exc, (InvalidToken, TokenError)):
        # 만료/위조 구분은 하지 않음
        response.data = error_body("INVALID_TOKEN", "Invalid token")
    elif isinstance(exc, (NotAuthenticated, AuthenticationFailed)):
        response.data = error_body("UNAUTHORIZED", "Authorization header missing")
    elif isinstance(exc, PermissionDenied):
        response.data = error_body("FORBIDDEN", "Permission denied")
    elif isinstance(exc, (ParseError, ValidationError)):
        response.data = error_body("VALIDATION_ERROR", _first_message(exc.detail))
    else:
        response.data = error_body("ERROR", _first_message(exc.detail))

    return response


def _first_message(detail) -> str:
    # serializer 에러는 {"field": ["msg"]} 형태라 첫 번째만 꺼냄
    if isinstance(detail, dict):
        for field, value in detail.items():
            msg = _first_message(value)
            return msg if field == "non_field_errors" else f"{field}: {msg}"
        return "invalid request"
    if isinstance(detail, list):
        return _first_message(detail[0]) if detail else "invalid request"
    return str(detail)
