"""
Domain exceptions raised by the service layer.

Each error carries the HTTP status it maps to, so routes can translate
them without knowing which service raised them.
"""
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status


class ServiceError(Exception):
    """Base class for expected, user-facing failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "bad_request"

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_http_exception(self) -> HTTPException:
        detail: Any = self.message
        if self.details:
            detail = {"error": self.message, "details": self.details}
        return HTTPException(status_code=self.status_code, detail=detail)


class UnauthorizedError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "unauthorized"


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "forbidden"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "not_found"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "conflict"


class QuotaExceededError(ServiceError):
    # Out of credits is treated as a permission failure
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "quota_exceeded"


class ExpiredError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "expired"


class ValidationFailedError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "validation_failed"

    def __init__(
        self,
        message: str = "Invalid request data",
        details: Optional[List[Dict[str, Any]]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, details)
        if status_code is not None:
            self.status_code = status_code
