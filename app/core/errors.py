"""
Error taxonomy for the storefront.

Every failure that reaches a request boundary is one of these; the
exception handler in app.main turns them into
{"success": false, "message": ...} with the class's status code.
"""
from typing import Any, List, Optional


class StorefrontError(Exception):
    status_code = 500
    default_detail = "Something went wrong. Please try again."

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ConfigurationError(StorefrontError):
    """A required credential or identifier is not configured."""
    status_code = 500
    default_detail = "Server configuration error"

    def __init__(self, detail: Optional[str] = None, missing: Optional[List[str]] = None):
        self.missing = missing or []
        super().__init__(detail)


class OrderValidationError(StorefrontError):
    status_code = 400
    default_detail = "Invalid order"


class DuplicateOrderError(StorefrontError):
    status_code = 409
    default_detail = "Duplicate order detected. Please wait a moment before trying again."


class UpstreamError(StorefrontError):
    """The spreadsheet, SMS or payment provider failed or was unreachable."""
    status_code = 500
    default_detail = "Upstream service failed. Please try again."


class PaymentDeclinedError(StorefrontError):
    status_code = 400
    default_detail = "Payment failed"

    def __init__(self, detail: Optional[str] = None, errors: Optional[List[Any]] = None):
        self.errors = errors or []
        super().__init__(detail)


class AuthorizationError(StorefrontError):
    status_code = 401
    default_detail = "Unauthorized"
