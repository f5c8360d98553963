"""Exception hierarchy for specsync.

All exceptions inherit from :class:`SpecsyncError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specsync.exit_codes`.
The top-level handler in :func:`specsync.app.main` catches
``SpecsyncError`` and exits with the matching code, while unexpected
exceptions produce a traceback, a crash log and :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    SpecsyncError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    +-- NotFoundError       (exit 4)
    +-- ServerError         (exit 5)
    +-- ConnectionError_    (exit 6)
    +-- SpecParseError      (exit 7)
    +-- TaskFailedError     (exit 8)
    +-- ResolutionError     (exit 9)
    +-- ConfigError         (exit 1)
    +-- GatewayExportError  (exit 1)
"""

from __future__ import annotations

from typing import Any, Optional

from specsync.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_RESOLUTION_FAILED,
    EXIT_SERVER_ERROR,
    EXIT_SPEC_PARSE_ERROR,
    EXIT_TASK_FAILED,
)


class SpecsyncError(Exception):
    """Base exception for all specsync errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecsyncError):
    """Raised for missing identity fields or an oversized input document."""

    exit_code = EXIT_INVALID_USAGE


class RemoteCallError(SpecsyncError):
    """A documentation-platform call returned a non-success status.

    Carries the request line and the raw response so callers can report
    exactly what the platform said.

    Args:
        message: Formatted error message.
        method: HTTP method of the failed call.
        path: Request path (with query string) of the failed call.
        status_code: HTTP status returned by the platform.
        body: Response body text.
    """

    def __init__(
        self,
        message: str,
        method: str = "",
        path: str = "",
        status_code: int = 0,
        body: str = "",
    ):
        super().__init__(message)
        self.method = method
        self.path = path
        self.status_code = status_code
        self.body = body


class AuthError(RemoteCallError):
    """Raised when the platform rejects the API key (HTTP 401/403)."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(RemoteCallError):
    """Raised when the platform returns HTTP 404."""

    exit_code = EXIT_NOT_FOUND


class ServerError(RemoteCallError):
    """Raised on HTTP 5xx and on any other unexpected 4xx."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(SpecsyncError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class SpecParseError(SpecsyncError):
    """Raised when the OpenAPI document cannot be read or parsed."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class TaskFailedError(SpecsyncError):
    """Raised when a generation or synchronization task ends without success.

    Args:
        message: Human-readable summary.
        payload: The last task payload observed, kept verbatim.
    """

    exit_code = EXIT_TASK_FAILED

    def __init__(self, message: str, payload: Optional[Any] = None):
        super().__init__(message)
        self.payload = payload


class ResolutionError(SpecsyncError):
    """Raised when no fallback tier can produce a remote identifier."""

    exit_code = EXIT_RESOLUTION_FAILED


class ConfigError(SpecsyncError):
    """Raised for configuration problems (missing API key, invalid project config)."""

    exit_code = EXIT_GENERIC_FAILURE


class GatewayExportError(SpecsyncError):
    """Raised when the API-gateway export step fails."""

    exit_code = EXIT_GENERIC_FAILURE
