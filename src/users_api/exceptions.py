# src/users_api/exceptions.py

"""
Shared custom exceptions for the Users API service.

Centralizing exception definitions in a separate module prevents circular
import errors between the router, the service and the table client.

Exception Hierarchy:
- UsersApiError (base)
  - RetryableError (can be retried by the caller)
    - StoreUnavailableError
  - NonRetryableError (should not be retried)
    - UserNotFoundError
    - ValidationError
      - InvalidRequestBodyError
    - StoreError
      - StoreAccessDeniedError
    - ConfigurationError
"""

from typing import Any, Dict, Optional


class UsersApiError(Exception):
    """Base exception for all Users API errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = dict(context) if context else {}
        self.correlation_id = correlation_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            # Not "message": stdlib logging refuses that key in `extra`.
            "error_message": self.message,
            "context": self.context,
            "correlation_id": self.correlation_id,
            "retryable": isinstance(self, RetryableError),
        }


class RetryableError(UsersApiError):
    """Base class for errors that can be retried."""
    pass


class NonRetryableError(UsersApiError):
    """Base class for errors that should not be retried."""
    pass


# === Resource Errors ===

class UserNotFoundError(NonRetryableError):
    """Raised when no record exists for the requested user id."""

    def __init__(self, user_id: str, **kwargs):
        message = f"User not found: {user_id}"
        context = {"user_id": user_id}
        super().__init__(message, error_code="USER_NOT_FOUND", context=context, **kwargs)


# === Validation Errors ===

class ValidationError(NonRetryableError):
    """Base class for validation errors."""
    pass


class InvalidRequestBodyError(ValidationError):
    """Raised when a request body is not valid JSON or fails schema validation."""

    def __init__(self, message: str, **kwargs):
        if "error_code" not in kwargs:
            kwargs["error_code"] = "INVALID_REQUEST_BODY"
        super().__init__(message, **kwargs)


# === Store Errors ===

class StoreError(NonRetryableError):
    """Raised for DynamoDB client errors that have no more specific mapping."""

    def __init__(self, operation: str, message: Optional[str] = None, **kwargs):
        message = message or f"Record store error during: {operation}"
        context = {}
        if "context" in kwargs:
            context.update(kwargs.pop("context"))
        context.update({"operation": operation})
        if "error_code" not in kwargs:
            kwargs["error_code"] = "STORE_ERROR"
        super().__init__(message, context=context, **kwargs)


class StoreAccessDeniedError(StoreError):
    """Raised when the execution role may not access the users table."""

    def __init__(self, operation: str, table_name: str, **kwargs):
        context = {"table_name": table_name}
        if "context" in kwargs:
            context.update(kwargs.pop("context"))
        super().__init__(
            operation,
            message=f"Access denied to table {table_name} during: {operation}",
            error_code="STORE_ACCESS_DENIED",
            context=context,
            **kwargs,
        )


class StoreUnavailableError(RetryableError):
    """Raised when the store is throttling, timing out or unreachable."""

    def __init__(self, operation: str, **kwargs):
        message = f"Record store unavailable during: {operation}"
        context = {}
        if "context" in kwargs:
            context.update(kwargs.pop("context"))
        context.update({"operation": operation})
        if "error_code" not in kwargs:
            kwargs["error_code"] = "STORE_UNAVAILABLE"
        super().__init__(message, context=context, **kwargs)


# === Configuration Errors ===

class ConfigurationError(NonRetryableError):
    """Raised when there's an error in the application configuration."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, error_code="CONFIGURATION_ERROR", **kwargs)


# === Utility Functions ===

def is_retryable_error(error: Exception) -> bool:
    """Check if an error is retryable."""
    return isinstance(error, RetryableError)


def get_error_context(error: Exception) -> Dict[str, Any]:
    """Extract error context for logging."""
    if isinstance(error, UsersApiError):
        return error.to_dict()
    else:
        return {
            "error_type": error.__class__.__name__,
            "error_message": str(error),
            "retryable": False,
        }
