"""
DigitalHub - Custom Exceptions
===============================
Business-level exceptions that are converted to JSON error responses
({"error": message}) by the handler registered in main.py.
"""

from fastapi import status


class DigitalHubError(Exception):
    """Base exception for all business logic errors."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Something went wrong."):
        self.message = message
        super().__init__(self.message)


class AuthError(DigitalHubError):
    """Raised when the bearer token is missing or invalid."""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class PermissionDeniedError(DigitalHubError):
    """Raised when the user lacks the role or ownership for an action."""
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class ValidationError(DigitalHubError):
    """Raised for invalid input (empty cart, bad quantity, missing fields)."""
    pass


class NotFoundError(DigitalHubError):
    """Raised when a requested resource doesn't exist."""
    status_code = status.HTTP_404_NOT_FOUND


class DuplicateError(DigitalHubError):
    """Raised for unique constraint violations at the business level."""
    status_code = status.HTTP_409_CONFLICT


class ConfigurationError(DigitalHubError):
    """Raised when a required setting (e.g. a vendor key) is missing."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class UpstreamError(DigitalHubError):
    """Raised when the payment vendor responds non-2xx or is unreachable."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, vendor_status: int = None, vendor_body: str = ""):
        self.vendor_status = vendor_status
        self.vendor_body = vendor_body or ""
        super().__init__(message)


class WebhookAuthError(DigitalHubError):
    """Raised when an inbound webhook fails signature verification."""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message)
