"""
Shared error handling for the Access Layer permission service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel
from opentelemetry import trace


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class AccessLayerException(Exception):
    """Base exception for Access Layer services."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        # Get trace ID from current span
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(AccessLayerException):
    """Malformed or incomplete permission request."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class DomainLockedError(AccessLayerException):
    """Write action blocked by an administrative domain lock."""

    def __init__(self, message: str = "Domain is locked", details: Optional[Dict[str, Any]] = None):
        super().__init__("DOMAIN_LOCKED", message, details)


class PermissionDeniedError(AccessLayerException):
    """Policy evaluation denied the request."""

    def __init__(self, message: str = "No permission", details: Optional[Dict[str, Any]] = None):
        super().__init__("PERMISSION_DENIED", message, details)


class EngineError(AccessLayerException):
    """The policy rule store could not be queried.

    ``fatal`` marks an engine-wide failure. A non-fatal error only
    concerns the candidate rule that was being evaluated.
    """

    def __init__(self, message: str = "Policy engine error", fatal: bool = False,
                 details: Optional[Dict[str, Any]] = None):
        self.fatal = fatal
        super().__init__("ENGINE_ERROR", message, details)


class CanceledError(AccessLayerException):
    """Permission check aborted by the caller."""

    def __init__(self, message: str = "Permission check canceled", details: Optional[Dict[str, Any]] = None):
        super().__init__("CANCELED", message, details)


class ExternalServiceError(AccessLayerException):
    """External service errors."""

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        super().__init__("EXTERNAL_SERVICE_ERROR", f"{service}: {message}", details)
