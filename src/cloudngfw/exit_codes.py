"""Numeric process exit codes used by the ``cloudngfw`` CLI.

Each constant maps to an error category and is referenced by the
corresponding :class:`~cloudngfw.exceptions.CloudNgfwError` subclass, so
shell wrappers can branch on the failure class without parsing stderr.
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command or library call was given invalid arguments."""

EXIT_CONFIG_ERROR = 3
"""The connection configuration is missing or malformed."""

EXIT_API_ERROR = 4
"""The API answered but reported a failure in its response status."""

EXIT_RESPONSE_ERROR = 5
"""The API answered with a body that could not be decoded."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, TLS, connection refused)."""

EXIT_UNSUPPORTED = 7
"""The requested operation is not supported by this client."""
