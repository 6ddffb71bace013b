"""Application error hierarchy.

Each error is an ``HTTPException`` so services can raise it directly and
FastAPI maps it to the right status code. The message is what the client
sees in the ``{"success": false, "message": ...}`` envelope.
"""

from typing import Any, Optional

from fastapi import HTTPException, status


class AppError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be processed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(
            status_code=type(self).status_code, detail=self.message, headers=headers
        )


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class InvalidTokenError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid QR code"


class TokenExpiredError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "QR code has expired"


class TokenAlreadyUsedError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "QR code has already been used"


class InvalidStateError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid state"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class PermissionDeniedError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class LockedError(AppError):
    status_code = status.HTTP_423_LOCKED
    default_message = "Account is locked"
