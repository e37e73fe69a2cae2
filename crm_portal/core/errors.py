"""HTTP-facing error types for portal and staff endpoints.

Each error is an ``HTTPException`` so FastAPI routes can raise it directly.
``portal_error_handler`` in ``core.middleware`` renders them as
``{"error": ...}`` JSON bodies.
"""
from typing import Any, Dict, Optional

from fastapi import HTTPException


class PortalError(HTTPException):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status_code=self.status_code, detail=message or self.message, headers=headers)

    def body(self) -> Dict[str, Any]:
        return {"error": self.detail}


class PortalAuthRequired(PortalError):
    """A portal session was required but none resolved."""

    status_code = 401
    message = "Unauthorized - Portal session required"


class StaffAuthRequired(PortalError):
    status_code = 401
    message = "Unauthorized"


class BadRequest(PortalError):
    status_code = 400
    message = "Bad request"


class MissingTokenError(BadRequest):
    message = "Missing token parameter"


class NotFound(PortalError):
    status_code = 404
    message = "Not found"


class InvalidTokenError(NotFound):
    """The authority had no valid record for the token, or could not be asked."""

    message = "Invalid or expired token"

    def body(self) -> Dict[str, Any]:
        return {"valid": False, "error": self.detail}


class PortalForbidden(PortalError):
    status_code = 403
    message = "Forbidden"


class RateLimitExceeded(PortalError):
    status_code = 429
    message = "Too many requests. Please try again later."

    def __init__(self, retry_after: int):
        super().__init__(headers={"Retry-After": str(retry_after)})
        self.retry_after = retry_after


class ServiceError(PortalError):
    """A backend step failed; the message is safe to show the caller."""

    status_code = 500
