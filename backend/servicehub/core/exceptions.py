# backend/servicehub/core/exceptions.py
"""
Domain-specific exceptions for the ServiceHub platform.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException carrying the error envelope."""
        return HTTPException(status_code=self.status_code, detail=self.to_dict())


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when the caller is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when the actor lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


class ServiceUnavailableException(DomainException):
    """Raised when infrastructure is temporarily unavailable; safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail=self.to_dict(),
            headers={"Retry-After": "2"},
        )


# Specific business exceptions


class InvalidTransitionException(BusinessRuleException):
    """Raised when a booking status change is not allowed from its current status."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(
            message=f"Cannot transition from {current} to {requested}",
            code="INVALID_TRANSITION",
            details={"current_status": current, "requested_status": requested},
        )


class ConcurrentModificationException(ConflictException):
    """Raised when another actor changed the record between read and conditional write."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "The record was modified concurrently; re-read and retry",
            code="CONCURRENT_MODIFICATION",
            details=details or {},
        )


class InvalidAmountException(ValidationException):
    """Raised when a transaction amount is not a positive whole number of cents."""

    def __init__(self, amount: Any, message: Optional[str] = None):
        super().__init__(
            message=message or "Transaction amount must be greater than zero",
            code="INVALID_AMOUNT",
            details={"amount": str(amount)},
        )



class InvalidRateException(ValidationException):
    """Raised when a commission rate table fails validation."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INVALID_RATE", details=details or {})


class StoreUnavailableException(ServiceUnavailableException):
    """Raised when the backing store times out or drops the connection."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message=message or "Data store temporarily unavailable. Please retry.",
            code="STORE_UNAVAILABLE",
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as query failures or constraint violations.
    """


def is_transient_db_error(exc: BaseException) -> bool:
    """
    Check whether a failure came from a dropped connection or a timeout.

    Walks the cause chain, so a RepositoryException wrapping an
    OperationalError counts. Such failures are safe for the caller to retry.
    """
    seen: Optional[BaseException] = exc
    visited = set()
    while seen is not None and id(seen) not in visited:
        visited.add(id(seen))
        if isinstance(seen, StoreUnavailableException):
            return True
        if isinstance(seen, (OperationalError, PoolTimeoutError)):
            return True
        seen = seen.__cause__ or seen.__context__
    return False
