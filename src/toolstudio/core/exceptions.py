"""
Exception classes for Tool Studio.

Defines the exception hierarchy for registry, storage and configuration
errors. Registry operations report validation and not-found outcomes through
result values; exceptions are reserved for misuse and storage access.
"""

from typing import Any, Dict, Optional


class ToolStudioError(Exception):
    """Base exception for all Tool Studio errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize ToolStudioError.

        Args:
            message: Error message
            error_code: Optional error code for categorization
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        """String representation of the error."""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class ValidationError(ToolStudioError):
    """Tool record validation errors."""

    def __init__(self, message: str, errors: Optional[list] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.errors = list(errors or [])


class StorageError(ToolStudioError):
    """Key/value storage read or write failures."""
    pass


class UnsupportedSchemaError(StorageError):
    """Persisted data was written with a schema this version cannot read."""

    def __init__(self, found_version: Any, supported_version: int):
        super().__init__(
            f"Unsupported schema version {found_version!r} "
            f"(this build reads up to {supported_version})",
            error_code="SCHEMA_UNSUPPORTED",
            details={"found": found_version, "supported": supported_version},
        )
        self.found_version = found_version
        self.supported_version = supported_version


class ToolRegistryError(ToolStudioError):
    """Base exception for tool registry operations."""
    pass


class RegistryNotInitializedError(ToolRegistryError):
    """Raised when the registry is used before ``initialize``."""

    def __init__(self, operation: str):
        super().__init__(
            f"Tool registry must be initialized before calling {operation}()",
            error_code="REGISTRY_UNINITIALIZED",
            details={"operation": operation},
        )
