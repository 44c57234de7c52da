"""
Custom Exceptions for TodoBook API
==================================

This module defines a hierarchy of custom exceptions that:

1. **Categorize Errors**: Different exception types for different problems
2. **Carry Context**: Include relevant information for debugging
3. **Support APIs**: Map cleanly to HTTP status codes

Exception Hierarchy:
    TodoBookError (base)
    ├── AuthError
    │   ├── MissingCredentialsError
    │   ├── EmailInUseError
    │   ├── InvalidCredentialsError
    │   └── InvalidTokenError
    ├── RecordError
    │   ├── RecordValidationError
    │   └── RecordNotFoundError
    ├── UploadError
    │   ├── UnsupportedPhotoFormatError
    │   └── PhotoTooLargeError
    ├── StoreError
    │   ├── DuplicateKeyError
    │   └── StoreUnavailableError
    └── ConfigurationError
"""

from typing import Optional


class TodoBookError(Exception):
    """
    Base exception for all TodoBook errors.

    All custom exceptions inherit from this, allowing code to catch
    all TodoBook-related errors with a single except clause:

        try:
            await todos.create(identity, fields)
        except TodoBookError as e:
            logger.error(f"TodoBook error: {e}")

    Attributes:
        message: Human-readable error description
        details: Additional context (dict for API responses)
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """
        Convert to dictionary for API responses.

        Returns a structured error that can be easily serialized to JSON.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


# =============================================================================
# Authentication Errors
# =============================================================================

class AuthError(TodoBookError):
    """Base class for signup, signin and token errors."""

    def to_dict(self) -> dict:
        # Clients of the signup/signin routes read a flat "error" key.
        return {"error": self.message}


class MissingCredentialsError(AuthError):
    """Raised when signup is attempted without an email or password."""

    def __init__(self):
        super().__init__(message="You must provide email and password")


class EmailInUseError(AuthError):
    """Raised when signing up with an email that already has an account."""

    def __init__(self, email: str):
        super().__init__(
            message="Email is in use",
            details={"email": email}
        )


class InvalidCredentialsError(AuthError):
    """Raised when signin email/password do not match a user."""

    def __init__(self):
        super().__init__(message="Invalid email or password")


class InvalidTokenError(AuthError):
    """Raised when a bearer token cannot be decoded or verified."""

    def __init__(self, reason: str = "Could not validate credentials"):
        super().__init__(message=reason)


# =============================================================================
# Record Errors
# =============================================================================

class RecordError(TodoBookError):
    """Base class for owned-record errors."""
    pass


class RecordValidationError(RecordError):
    """Raised when record fields fail validation."""

    def __init__(self, resource: str, errors: list[dict]):
        super().__init__(
            message=f"{resource} validation failed",
            details={"errors": errors}
        )


class RecordNotFoundError(RecordError):
    """
    Raised when a record cannot be resolved for the requesting user.

    Malformed ids, missing records and records owned by someone else all
    raise this same error with the same payload.
    """

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(message="Not found")


# =============================================================================
# Upload Errors
# =============================================================================

class UploadError(TodoBookError):
    """Base class for photo upload errors."""
    pass


class UnsupportedPhotoFormatError(UploadError):
    """Raised when the uploaded photo has a disallowed extension."""

    def __init__(self, filename: str, format: str, supported_formats: list[str]):
        super().__init__(
            message=f"Unsupported photo format: {format or 'none'}. Supported: {', '.join(supported_formats)}",
            details={
                "filename": filename,
                "format": format,
                "supported_formats": supported_formats
            }
        )


class PhotoTooLargeError(UploadError):
    """Raised when the uploaded photo exceeds the size limit."""

    def __init__(self, filename: str, max_size_mb: int):
        super().__init__(
            message=f"Photo too large. Maximum size: {max_size_mb}MB",
            details={
                "filename": filename,
                "max_size_mb": max_size_mb
            }
        )


# =============================================================================
# Store Errors
# =============================================================================

class StoreError(TodoBookError):
    """Base class for document store errors."""
    pass


class DuplicateKeyError(StoreError):
    """Raised when an insert violates a unique index."""

    def __init__(self, collection: str, field: str):
        super().__init__(
            message=f"Duplicate value for unique field '{field}' in {collection}",
            details={"collection": collection, "field": field}
        )


class StoreUnavailableError(StoreError):
    """Raised when the document store cannot be reached."""

    def __init__(self, backend: str, original_error: str):
        super().__init__(
            message=f"Document store '{backend}' is unavailable: {original_error}",
            details={
                "backend": backend,
                "original_error": original_error
            }
        )


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(TodoBookError):
    """Raised when there's a configuration problem."""

    def __init__(self, setting_name: str, issue: str):
        super().__init__(
            message=f"Configuration error for '{setting_name}': {issue}",
            details={
                "setting_name": setting_name,
                "issue": issue
            }
        )
