"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Provides pre-configured HTTPException subclasses for common error patterns.
These simplify error raising across services and repositories by
eliminating the need to specify status codes at each call site.

Usage:
    from app.utils.exceptions import NotFoundError, ConflictError
    raise NotFoundError("Student not found")
    raise ConflictError({"message": "Seats unavailable", "seat_ids": [...]})
"""

from typing import Any

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """404 Not Found 예외 — 요청한 리소스를 찾을 수 없을 때 사용.

    404 Not Found exception.
    Raised when a requested resource (student, class, show, etc.) does not exist.

    Args:
        detail: 오류 메시지 (Error message, default: "Resource not found")
    """

    def __init__(self, detail: Any = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class DuplicateError(HTTPException):
    """409 Conflict 예외 — 중복 리소스 생성 시도 시 사용.

    409 Conflict exception.
    Raised when attempting to create a resource that violates a uniqueness constraint
    (e.g. duplicate user email, duplicate SKU).

    Args:
        detail: 오류 메시지 (Error message, default: "Resource already exists")
    """

    def __init__(self, detail: Any = "Resource already exists") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ConflictError(HTTPException):
    """409 Conflict 예외 — 현재 리소스 상태와 충돌할 때 사용.

    409 Conflict exception for state conflicts.
    Raised when the request collides with the current state of a resource
    (e.g. seat already reserved, schedule overlap, already checked in).
    The detail may be a structured dict listing the conflicts.

    Args:
        detail: 오류 메시지 또는 구조화된 상세 (Message or structured detail)
    """

    def __init__(self, detail: Any = "Resource state conflict") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ForbiddenError(HTTPException):
    """403 Forbidden 예외 — 권한 부족 시 사용.

    403 Forbidden exception.
    Raised when the authenticated user lacks the required role or ownership
    (e.g. parent accessing another family's student, teacher marking another class).

    Args:
        detail: 오류 메시지 (Error message, default: "Insufficient permissions")
    """

    def __init__(self, detail: Any = "Insufficient permissions") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class UnauthorizedError(HTTPException):
    """401 Unauthorized 예외 — 인증 실패 시 사용.

    401 Unauthorized exception.
    Raised when authentication is missing, invalid, or expired
    (e.g. missing JWT token, expired token, invalid credentials).

    Args:
        detail: 오류 메시지 (Error message, default: "Authentication required")
    """

    def __init__(self, detail: Any = "Authentication required") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class BadRequestError(HTTPException):
    """400 Bad Request 예외 — 잘못된 요청 데이터 시 사용.

    400 Bad Request exception.
    Raised when the request data is invalid beyond what Pydantic validation catches
    (e.g. business logic validation failures, invalid state transitions).

    Args:
        detail: 오류 메시지 (Error message, default: "Bad request")
    """

    def __init__(self, detail: Any = "Bad request") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class GoneError(HTTPException):
    """410 Gone 예외 — 만료된 리소스 (Expired resource, e.g. lapsed seat hold)."""

    def __init__(self, detail: Any = "Resource has expired") -> None:
        super().__init__(status_code=status.HTTP_410_GONE, detail=detail)


class TooManyRequestsError(HTTPException):
    """429 예외 — 허용 횟수 초과 (Limit reached, e.g. reservation extensions)."""

    def __init__(self, detail: Any = "Limit reached") -> None:
        super().__init__(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=detail)


class ServiceNotConfiguredError(HTTPException):
    """500 예외 — 외부 연동 설정 누락.

    500 Internal Server Error raised when a required integration
    (payment gateway, SMTP) has no credentials configured.

    Args:
        detail: 오류 메시지 (Error message)
    """

    def __init__(self, detail: Any = "Service is not configured") -> None:
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class DeliveryFailedError(HTTPException):
    """500 예외 — 외부 발송 실패 (Outbound delivery failed, e.g. SMTP)."""

    def __init__(self, detail: Any = "Delivery failed") -> None:
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
