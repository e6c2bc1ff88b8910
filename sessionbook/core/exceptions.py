# sessionbook/core/exceptions.py
"""
Domain-specific exceptions for the session booking service.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

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

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException using the class status code."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input is malformed (bad interval, unknown triple fields)."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a referenced booking or slot does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class PersistenceException(DomainException):
    """Raised when a transaction could not be committed."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "The operation could not be saved",
                "code": self.code,
                "details": self.details if self.details else {},
            },
            headers={"Retry-After": "2"},
        )


# Specific business exceptions


class BookingConflictException(ConflictException):
    """Raised when an active booking already exists for the same triple."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "An active booking already exists for this exercise",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class PostingRestrictedException(BusinessRuleException):
    """Raised when a student posts availability before their next allowed date."""

    def __init__(self, next_allowed_date: str, first_slot_date: str):
        super().__init__(
            message=f"Availability cannot be posted before {next_allowed_date}",
            code="POSTING_RESTRICTED",
            details={
                "next_allowed_date": next_allowed_date,
                "first_slot_date": first_slot_date,
            },
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
