"""Core exceptions for UniDB."""

from typing import Any, Dict, Optional


class UniDBError(Exception):
    """Base exception for all UniDB errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(UniDBError):
    """Raised when there's an error in configuration parsing or validation."""
    pass


class NullInputError(UniDBError):
    """Raised when a required descriptor, statement or resource is missing."""
    pass


class DatabaseError(UniDBError):
    """Raised by an adapter when a backend call fails.

    ``code`` carries the backend's own error code (SQLSTATE, MySQL error
    number, LDAP result name...) when one is available.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        backend: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.code = code
        self.backend = backend


class ConnectionFailureError(DatabaseError):
    """Raised when a backend connection cannot be established."""
    pass


class UnsupportedOperationError(UniDBError):
    """Raised when a backend variant does not implement an operation."""

    def __init__(self, operation: str, backend: str):
        super().__init__(f"Operation '{operation}' is not supported by backend '{backend}'")
        self.operation = operation
        self.backend = backend


class UnknownBackendTypeError(UniDBError):
    """Raised when a type tag matches no available backend variant."""

    def __init__(self, tag: object, operation: str):
        super().__init__(f"Invalid database type '{tag}' passed to {operation}()")
        self.tag = tag
        self.operation = operation
