"""Exception hierarchy for cloudngfw.

All exceptions inherit from :class:`CloudNgfwError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`cloudngfw.exit_codes`.
The CLI entry point in :func:`cloudngfw.app.main` catches ``CloudNgfwError``
and exits with the appropriate code; library callers catch the specific
subclasses.

Subclass hierarchy::

    CloudNgfwError                   (exit 1)
    +-- ConfigError                  (exit 3)
    |   +-- MissingConfigurationError
    |   +-- InvalidConfigurationError
    +-- InvalidArgumentError         (exit 2)
    +-- UnsupportedOperationError    (exit 7)
    +-- TransportError               (exit 6)
    +-- ResponseError                (exit 5)
        +-- MalformedResponseError
        +-- ApiError                 (exit 4)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from cloudngfw.exit_codes import (
    EXIT_API_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_RESPONSE_ERROR,
    EXIT_UNSUPPORTED,
)

if TYPE_CHECKING:
    from cloudngfw.models import ApiResponse


class CloudNgfwError(Exception):
    """Base exception for all cloudngfw errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(CloudNgfwError):
    """Raised for configuration problems (unreadable credentials file, bad values)."""

    exit_code = EXIT_CONFIG_ERROR


class MissingConfigurationError(ConfigError):
    """A required setting is still empty after every resolution layer."""


class InvalidConfigurationError(ConfigError):
    """A setting resolved to a malformed or out-of-range value."""


class InvalidArgumentError(CloudNgfwError):
    """Raised on caller misuse, e.g. two credential sets or an unknown auth scope."""

    exit_code = EXIT_INVALID_USAGE


class UnsupportedOperationError(CloudNgfwError):
    """Raised for reserved but unimplemented paths such as shared-ARN token retrieval."""

    exit_code = EXIT_UNSUPPORTED


class TransportError(CloudNgfwError):
    """Raised on network-level failures (timeout, DNS, TLS, connection refused).

    The originating :class:`httpx.HTTPError` is chained as ``__cause__``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ResponseError(CloudNgfwError):
    """Base class for errors that carry the raw response body.

    Args:
        message: Human-readable error description.
        body: The raw bytes returned by the API.
    """

    exit_code = EXIT_RESPONSE_ERROR

    def __init__(self, message: str, body: bytes):
        super().__init__(message)
        self.body = body


class MalformedResponseError(ResponseError):
    """The response body could not be decoded into the requested output type."""


class ApiError(ResponseError):
    """The response decoded cleanly but its status reports a failure.

    The decoded response object is available as :attr:`response` so callers
    can inspect API-specific error details.
    """

    exit_code = EXIT_API_ERROR

    def __init__(self, body: bytes, response: "ApiResponse"):
        super().__init__(response.error_message(), body)
        self.response = response

    @property
    def error_code(self) -> Optional[int]:
        status = self.response.response_status
        return status.error_code if status is not None else None

    @property
    def reason(self) -> str:
        status = self.response.response_status
        return status.reason if status is not None else ""
