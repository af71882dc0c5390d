"""
Base exception classes for the MicroTools backend.

Handlers translate these into HTTP responses; the message is safe to show
to clients, ``details`` is for server-side logs only.
"""

from typing import Any


class BaseServiceError(Exception):
    """Base exception for all service errors."""

    def __init__(self, message: str, error_type: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.error_type = error_type
        self.details = details or {}


class ClientInputError(BaseServiceError):
    """Raised when the request itself is malformed or unsupported."""

    status_code = 400

    def __init__(self, message: str, error_type: str = "INVALID_INPUT", details: dict[str, Any] | None = None):
        super().__init__(message, error_type, details)


class MissingUploadError(ClientInputError):
    """Raised when a multipart request carries no usable file part."""

    def __init__(self, message: str = "No file uploaded"):
        super().__init__(message, "MISSING_UPLOAD")


class UploadTooLargeError(ClientInputError):
    """Raised when an uploaded part exceeds the configured size limit."""

    status_code = 413

    def __init__(self, max_size: int):
        super().__init__(
            f"File too large. Maximum size: {max_size} bytes",
            "FILE_SIZE_EXCEEDED",
            {"max_size": max_size},
        )


class UnsupportedConversionError(ClientInputError):
    """Raised when the conversion router has no tool for a format pair."""

    def __init__(self, source: str, target: str):
        super().__init__(
            f"Unsupported conversion: {source or 'unknown'} -> {target or 'unknown'}",
            "UNSUPPORTED_CONVERSION",
            {"source": source, "target": target},
        )


class InvalidParameterError(ClientInputError):
    """Raised when a request parameter is out of range or malformed."""

    def __init__(self, message: str, parameter: str):
        super().__init__(message, "INVALID_PARAMETER", {"parameter": parameter})


class UpstreamError(BaseServiceError):
    """Raised when a third-party API call fails.

    ``kind`` distinguishes network failures, non-2xx statuses and malformed
    bodies for logging; clients only ever see the endpoint's generic message.
    """

    NETWORK = "network"
    HTTP_STATUS = "http_status"
    MALFORMED_RESPONSE = "malformed_response"

    def __init__(self, service: str, kind: str, detail: str = ""):
        super().__init__(
            f"{service} request failed ({kind})",
            "UPSTREAM_ERROR",
            {"service": service, "kind": kind, "detail": detail},
        )
        self.service = service
        self.kind = kind


class PaymentsNotConfiguredError(BaseServiceError):
    """Raised when payment credentials are absent."""

    def __init__(self):
        super().__init__("Razorpay not configured", "NOT_CONFIGURED")


# Common error types for consistency
class ErrorTypes:
    """Common error type constants."""

    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    TOOL_FAILED = "TOOL_FAILED"
    TRANSFORM_FAILED = "TRANSFORM_FAILED"
    MISSING_OUTPUT = "MISSING_OUTPUT"
    INVALID_INPUT = "INVALID_INPUT"
    MISSING_UPLOAD = "MISSING_UPLOAD"
    FILE_SIZE_EXCEEDED = "FILE_SIZE_EXCEEDED"
    UNSUPPORTED_CONVERSION = "UNSUPPORTED_CONVERSION"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
