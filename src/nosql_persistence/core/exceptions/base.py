"""Base exceptions for nosql-persistence.

This module defines the root of the exception hierarchy. Every error raised
by the repository layer inherits from PersistenceError and carries an error
code and a details mapping for structured logging and API responses.
"""

from typing import Any, Dict, Optional


class PersistenceError(Exception):
    """Base exception for all nosql-persistence errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ):
        super().__init__(message, *args, **kwargs)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


def create_error_response(exception: PersistenceError) -> Dict[str, Any]:
    """Create standardized error response from exception.

    Args:
        exception: The persistence exception

    Returns:
        Error response dictionary
    """
    return {
        "error": {
            "code": exception.error_code,
            "message": exception.message,
            "details": exception.details,
            "type": exception.__class__.__name__,
        }
    }
