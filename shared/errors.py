"""
Shared error handling for the Header Gate service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class GateException(Exception):
    """Base exception for Header Gate services."""

    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class PolicyConfigurationError(GateException):
    """Header policy could not be built from its configuration."""

    def __init__(self, message: str = "Policy configuration incorrect", details: Optional[Dict[str, Any]] = None):
        super().__init__("POLICY_CONFIGURATION_ERROR", message, details)


class UpstreamError(GateException):
    """Forwarding an admitted request to the upstream failed."""

    status_code = 502

    def __init__(self, upstream: str, message: str = "Upstream request failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("UPSTREAM_ERROR", f"{upstream}: {message}", details)
