"""Pydantic models shared across cloudngfw.

**Configuration models**:
    :class:`CredentialsFile` mirrors the optional JSON credentials file, and
    :class:`ClientConfig` is the runtime configuration that
    :func:`~cloudngfw.config.resolve_config` finalises. Both accept the
    hyphenated keys used by the credentials file (``lfa-arn``,
    ``skip-verify-certificate``, ...) as well as the Python field names.

**Wire models**:
    :class:`TemporaryCredentials` holds the output of an STS role
    assumption. :class:`ApiResponse` is the base for every decodable API
    response and exposes the success predicate the dispatcher checks.
    :class:`TokenRequest` and :class:`AuthResponse` are the JWT exchange
    payloads.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cloudngfw.logging_gate import NO_LOGGING, LogFlag


# --- Configuration ---


class CredentialsFile(BaseModel):
    """Contents of the JSON credentials file.

    Read once during initialisation and used only as a fallback layer.
    Unknown keys are ignored.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    host: str = ""
    access_key: str = Field(default="", alias="access-key")
    secret_key: str = Field(default="", alias="secret-key")
    region: str = ""
    protocol: str = ""
    timeout: int = 0
    headers: dict[str, str] = Field(default_factory=dict)
    firewall_role_arn: str = Field(default="", alias="lfa-arn")
    rulestack_role_arn: str = Field(default="", alias="lra-arn")
    shared_arn: str = Field(default="", alias="arn")
    skip_verify_certificate: bool = Field(default=False, alias="skip-verify-certificate")
    logging: list[str] = Field(default_factory=list)


class ClientConfig(BaseModel):
    """Connection settings for a :class:`~cloudngfw.client.Client`.

    Empty strings, zero and empty collections mean "not set" and are filled
    in by :func:`~cloudngfw.config.resolve_config` from the environment
    (when ``check_environment`` is true), the credentials file, and the
    built-in defaults, in that order.

    Example::

        ClientConfig(
            host="api.us-east-1.aws.cloudngfw.com",
            region="us-east-1",
            firewall_role_arn="arn:aws:iam::123456789012:role/FirewallAdmin",
            check_environment=True,
        )
    """

    model_config = ConfigDict(populate_by_name=True)

    host: str = ""
    access_key: str = Field(default="", alias="access-key")
    secret_key: str = Field(default="", alias="secret-key")
    region: str = ""
    protocol: str = ""
    timeout: int = Field(default=0, description="Request timeout in seconds")
    headers: dict[str, str] = Field(default_factory=dict)

    firewall_role_arn: str = Field(default="", alias="lfa-arn")
    rulestack_role_arn: str = Field(default="", alias="lra-arn")
    shared_arn: str = Field(
        default="", alias="arn", description="Unified role; reserved, not yet supported"
    )

    skip_verify_certificate: bool = Field(default=False, alias="skip-verify-certificate")
    logging: LogFlag = NO_LOGGING

    credentials_file: Optional[str] = Field(
        default=None, description="Path to a JSON credentials file"
    )
    check_environment: bool = Field(
        default=False, description="Consult CLOUD_NGFW_* environment variables"
    )

    @field_validator("logging", mode="before")
    @classmethod
    def _coerce_logging(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return LogFlag(value)
        return value

    @property
    def api_prefix(self) -> str:
        """Base URI every request path is appended to."""
        return f"{self.protocol}://{self.host}"


# --- Wire models ---


class TemporaryCredentials(BaseModel):
    """Short-lived AWS credentials returned by an STS role assumption.

    Used once to sign a single token request, then discarded.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    access_key_id: str = Field(alias="AccessKeyId")
    secret_access_key: str = Field(alias="SecretAccessKey")
    session_token: str = Field(alias="SessionToken")

    def __repr__(self) -> str:
        return f"TemporaryCredentials(access_key_id={self.access_key_id!r})"

    __str__ = __repr__


class ResponseStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    error_code: int = Field(default=0, alias="ErrorCode")
    reason: str = Field(default="", alias="Reason")


class ApiResponse(BaseModel):
    """Base class for decodable API responses.

    Every management API response carries a ``ResponseStatus`` object; an
    ``ErrorCode`` other than zero means the call failed even when the HTTP
    status was 2xx. Subclasses add a typed ``Response`` payload.

    The dispatcher decodes the body with :meth:`parse_body` and then calls
    :meth:`is_success`; subclasses may override either.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    response_status: Optional[ResponseStatus] = Field(default=None, alias="ResponseStatus")

    @classmethod
    def parse_body(cls, body: bytes) -> "ApiResponse":
        return cls.model_validate_json(body)

    def is_success(self) -> bool:
        return self.response_status is None or self.response_status.error_code == 0

    def error_message(self) -> str:
        status = self.response_status
        if status is None:
            return "API reported failure"
        if status.reason:
            return f"API error {status.error_code}: {status.reason}"
        return f"API error {status.error_code}"


class TokenKeyInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    region: str = Field(alias="Region")
    tenant: str = Field(default="XY", alias="Tenant")


class TokenRequest(BaseModel):
    """Body of a JWT request against ``v1/mgmt/tokens/...``."""

    model_config = ConfigDict(populate_by_name=True)

    expires: int = Field(default=90, alias="ExpiryTime")
    key_info: TokenKeyInfo = Field(alias="KeyInfo")


class TokenDetails(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    jwt: str = Field(default="", alias="TokenId")
    subscription_key: str = Field(default="", alias="SubscriptionKey")
    expiry_time: int = Field(default=0, alias="ExpiryTime")
    enabled: bool = Field(default=False, alias="Enabled")


class AuthResponse(ApiResponse):
    """Response to a JWT request."""

    response: TokenDetails = Field(default_factory=TokenDetails, alias="Response")
