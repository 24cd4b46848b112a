"""cloudngfw -- client library for the Cloud NGFW management API.

The package resolves connection settings from layered sources, exchanges AWS
role credentials for the API's bearer tokens (JWTs), and dispatches JSON
requests that are either bearer-authenticated or SigV4-signed.

Typical usage::

    from cloudngfw import AuthScope, Client, ClientConfig

    config = ClientConfig(
        host="api.us-east-1.aws.cloudngfw.com",
        region="us-east-1",
        firewall_role_arn="arn:aws:iam::123456789012:role/FirewallAdmin",
    )
    with Client(config) as client:
        body, _ = client.communicate(AuthScope.FIREWALL, "GET", ["v1", "config", "ngfirewalls"])

Modules:
    config: Layered configuration resolution.
    transport: HTTP client construction.
    logging_gate: Bitmask-driven diagnostic logging.
    auth: Auth scopes, token storage, SigV4 signing, and JWT refresh.
    client: The request dispatcher.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

from cloudngfw.auth.scopes import AuthScope
from cloudngfw.client.sync_client import Client
from cloudngfw.exceptions import (
    ApiError,
    CloudNgfwError,
    ConfigError,
    InvalidArgumentError,
    InvalidConfigurationError,
    MalformedResponseError,
    MissingConfigurationError,
    TransportError,
    UnsupportedOperationError,
)
from cloudngfw.logging_gate import LogFlag
from cloudngfw.models import ApiResponse, ClientConfig, TemporaryCredentials

__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "ApiResponse",
    "AuthScope",
    "Client",
    "ClientConfig",
    "CloudNgfwError",
    "ConfigError",
    "InvalidArgumentError",
    "InvalidConfigurationError",
    "LogFlag",
    "MalformedResponseError",
    "MissingConfigurationError",
    "TemporaryCredentials",
    "TransportError",
    "UnsupportedOperationError",
]
