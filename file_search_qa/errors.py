"""
Error taxonomy for the File Search Q&A service.

Every failure that crosses a module boundary is one of these types.
SDK and transport exceptions are converted at the client boundary
(llm/gemini_client.py, slides/exporter.py), so route handlers and the
poller only ever see explicit fields: code, message, detail.
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base class. Subclasses set the default code and HTTP status."""

    default_code = "SERVICE_ERROR"
    http_status = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        detail: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail = detail or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detail": self.message,
            "error_code": self.code,
            **({"error_detail": self.detail} if self.detail else {}),
        }


class ValidationError(ServiceError):
    """Malformed or missing caller input. Raised before any network call."""

    default_code = "VALIDATION_ERROR"
    http_status = 400


class NotFound(ServiceError):

    default_code = "NOT_FOUND"
    http_status = 404


class ConfigurationError(ServiceError):
    """A required credential or setting is absent."""

    default_code = "CONFIGURATION_ERROR"
    http_status = 500


class RemoteFailure(ServiceError):
    """
    The external service explicitly reported a failure.

    The remote message is carried verbatim. A store deletion refused
    because the store still holds documents uses code STORE_NOT_EMPTY.
    """

    default_code = "REMOTE_FAILURE"
    http_status = 502

    STORE_NOT_EMPTY = "STORE_NOT_EMPTY"

    def __init__(self, message, code=None, detail=None):
        super().__init__(message, code=code, detail=detail)
        if self.code == self.STORE_NOT_EMPTY:
            self.http_status = 409


class PollTimeout(ServiceError):
    """Attempt budget exhausted while the operation was still pending."""

    default_code = "POLL_TIMEOUT"
    http_status = 504

    def __init__(self, operation_name: str, attempts: int, message: Optional[str] = None):
        super().__init__(
            message or f"Operation {operation_name} did not finish after {attempts} attempts",
            detail={"operation": operation_name, "attempts": attempts},
        )
        self.operation_name = operation_name
        self.attempts = attempts


class PollCancelled(ServiceError):
    """
    Polling stopped by the caller between attempts.

    Only raised when a caller passes a cancel_event; no HTTP route does.
    """

    default_code = "POLL_CANCELLED"
    http_status = 409

    def __init__(self, operation):
        super().__init__(
            f"Polling of {operation.name} was cancelled",
            detail={"operation": operation.name, "status": operation.status.value},
        )
        self.operation = operation


class TransportError(ServiceError):
    """Network or transport failure talking to an external service."""

    default_code = "TRANSPORT_ERROR"
    http_status = 502
