"""Errors raised by the FileMaker Admin API client.

Every low-level failure (HTTP status, network error, bad envelope) is
translated into one of these before it leaves the client. Callers get the
taxonomy slot (``kind``), a readable message and an HTTP-status-like code
they can relay upstream.
"""
from typing import Any, Optional


class FileMakerAPIError(Exception):
    """Base exception for FileMaker Admin API errors."""

    kind = "api_error"
    default_status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = self.default_status_code if status_code is None else status_code
        self.details = details

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!r}, status_code={self.status_code}, message={self.message!r})"


class FileMakerAuthenticationError(FileMakerAPIError):
    """Bad credentials, or a token rejected twice in a row."""

    kind = "authentication_failed"
    default_status_code = 401


class FileMakerPrivilegeError(FileMakerAPIError):
    """The admin account lacks privileges for the endpoint (403)."""

    kind = "insufficient_privileges"
    default_status_code = 403


class FileMakerEndpointUnavailableError(FileMakerAPIError):
    """The endpoint does not exist on this server version (404)."""

    kind = "endpoint_unavailable"
    default_status_code = 404


class FileMakerServerError(FileMakerAPIError):
    """The server answered with a 5xx."""

    kind = "remote_server_error"
    default_status_code = 500


class FileMakerMalformedResponseError(FileMakerServerError):
    """The response envelope is missing its payload field."""

    kind = "malformed_response"
    default_status_code = 502


class FileMakerConnectionError(FileMakerAPIError):
    """Network failure or timeout; no HTTP status was received."""

    kind = "connection_failure"
    default_status_code = 0


class FileMakerAggregateError(FileMakerAPIError):
    """Every endpoint of an aggregate fetch failed."""

    kind = "aggregate_failure"

    def __init__(self, message: str, cause: FileMakerAPIError, failures: Optional[list] = None):
        super().__init__(message, status_code=cause.status_code or 500, details=failures)
        self.cause = cause
        self.failures = failures or []


class InvalidSettingError(FileMakerAPIError):
    """Unknown category or setting key; rejected before any network call."""

    kind = "invalid_request"
    default_status_code = 400
