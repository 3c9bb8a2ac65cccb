"""
Custom exceptions for PassShare client operations.

This module defines exception classes raised before or around remote calls.
Transport level errors live in ``passshare.core.api.errors``.
"""
from typing import Optional, Dict


class PassShareException(Exception):
    """Base exception for all PassShare-related errors."""

    def __init__(self, message: str, error_code: Optional[int] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            error_code: Numeric error code (if available)
        """
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class ValidationError(PassShareException):
    """Raised when local input is rejected before any network call."""

    def __init__(
        self,
        message: str,
        errors: Optional[Dict[str, str]] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            errors: Field name to message mapping for form-style input
        """
        self.errors = dict(errors or {})
        super().__init__(message)

    @classmethod
    def from_errors(cls, errors: Dict[str, str]) -> 'ValidationError':
        """Build from a field mapping, using the first message as summary."""
        first = next(iter(errors.values()), 'Invalid input')
        return cls(first, errors)


class FileTooLargeError(ValidationError):
    """Raised when a file exceeds the upload size limit."""

    def __init__(self, size: int, max_size: int) -> None:
        self.size = size
        self.max_size = max_size
        limit_mb = max_size // (1024 * 1024)
        super().__init__(f"File size must be less than {limit_mb}MB.")


class AuthError(PassShareException):
    """Raised for authentication-related errors."""
    pass


class TransferError(PassShareException):
    """Raised when an upload or download cannot proceed."""
    pass
