"""
Custom exceptions for Freight Sync.
"""
from typing import Optional


class FreightSyncException(Exception):
    """Base exception for every error raised by the service."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.details = details or {}
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class DatabaseError(FreightSyncException):
    """Business datastore (Supabase) error."""
    pass


class ExternalAPIError(FreightSyncException):
    """External API error (Slack, PortPro, ...)."""

    def __init__(
        self,
        message: str,
        service: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ):
        self.service = service
        super().__init__(message, details, original_error)


class ValidationError(FreightSyncException):
    """Invalid input data."""
    pass


class NotFoundError(FreightSyncException):
    """Resource not found."""

    def __init__(
        self,
        resource: str,
        identifier: Optional[str] = None
    ):
        message = f"{resource} not found"
        details = {}
        if identifier:
            details["id"] = identifier
        super().__init__(message, details)


class AuthorizationError(FreightSyncException):
    """Missing or invalid credentials."""
    pass


class ConfigurationError(FreightSyncException):
    """Service misconfiguration."""
    pass
