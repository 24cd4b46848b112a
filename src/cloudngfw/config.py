"""Layered configuration resolution.

:func:`resolve_config` turns a partially filled
:class:`~cloudngfw.models.ClientConfig` into a complete one. For every field
the first non-empty source wins:

    1. The value set on the config object itself.
    2. A ``CLOUD_NGFW_*`` environment variable, only when
       ``check_environment`` is true.
    3. The JSON credentials file named by ``credentials_file``.
    4. A built-in default (where one exists).

Two fields combine instead of overriding: ``skip_verify_certificate`` is the
OR of every source, and ``headers`` are taken whole from the first populated
layer and never merged.

The input config is never mutated; a resolved copy is returned.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from cloudngfw.exceptions import (
    ConfigError,
    InvalidConfigurationError,
    MissingConfigurationError,
)
from cloudngfw.logging_gate import DEFAULT_LOGGING, parse_logging
from cloudngfw.models import ClientConfig, CredentialsFile

ENV_PREFIX = "CLOUD_NGFW_"
ENV_HOST = f"{ENV_PREFIX}HOST"
ENV_REGION = f"{ENV_PREFIX}REGION"
ENV_PROTOCOL = f"{ENV_PREFIX}PROTOCOL"
ENV_TIMEOUT = f"{ENV_PREFIX}TIMEOUT"
ENV_HEADERS = f"{ENV_PREFIX}HEADERS"
ENV_VERIFY_CERTIFICATE = f"{ENV_PREFIX}VERIFY_CERTIFICATE"
ENV_LOGGING = f"{ENV_PREFIX}LOGGING"

DEFAULT_PROTOCOL = "https"
DEFAULT_TIMEOUT = 20
VALID_PROTOCOLS = ("http", "https")

_TRUE_STRINGS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_STRINGS = frozenset({"0", "f", "F", "FALSE", "false", "False"})
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


# --- Credentials file ---


def load_credentials_file(path: str | Path) -> CredentialsFile:
    """Load the JSON credentials file.

    Args:
        path: File path; ``~`` is expanded.

    Returns:
        The parsed :class:`~cloudngfw.models.CredentialsFile`.

    Raises:
        ConfigError: If the file cannot be read, is not valid JSON, or does
            not match the expected shape.
    """
    file_path = Path(path).expanduser()
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read credentials file {file_path}: {exc}") from exc
    try:
        return CredentialsFile.model_validate_json(text)
    except ValidationError as exc:
        raise ConfigError(f"Invalid credentials file {file_path}: {exc}") from exc


# --- Value parsers ---


def parse_bool(value: str) -> bool:
    """Parse a boolean the way the environment variables are documented.

    Raises:
        InvalidConfigurationError: If *value* is not a recognised boolean.
    """
    if value in _TRUE_STRINGS:
        return True
    if value in _FALSE_STRINGS:
        return False
    raise InvalidConfigurationError(f"Invalid boolean value {value!r}")


def parse_int(value: str) -> int:
    """Parse a plain signed decimal integer.

    Surrounding whitespace, digit separators and non-ASCII digits are rejected.

    Raises:
        ValueError: If *value* is not a plain integer.
    """
    if not _INT_PATTERN.fullmatch(value):
        raise ValueError(f"invalid integer {value!r}")
    return int(value)


def parse_headers(value: str) -> dict[str, str]:
    """Parse a JSON object of string header values.

    Raises:
        InvalidConfigurationError: If *value* is not a JSON object of strings.
    """
    try:
        data: Any = json.loads(value)
    except json.JSONDecodeError as exc:
        raise InvalidConfigurationError(f"Failed to parse headers env var as JSON: {exc}") from exc
    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise InvalidConfigurationError("Headers env var must be a JSON object of strings")
    return data


# --- Precedence resolution ---


def resolve_config(
    config: ClientConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> ClientConfig:
    """Resolve every field of *config* through the precedence chain.

    Args:
        config: The caller-supplied settings; unset fields are empty.
        environ: Environment mapping to consult. Defaults to ``os.environ``.
            Ignored unless ``config.check_environment`` is true.

    Returns:
        A new :class:`~cloudngfw.models.ClientConfig` with host, region,
        protocol, timeout and logging populated.

    Raises:
        ConfigError: If the credentials file cannot be loaded.
        InvalidConfigurationError: For a bad protocol, a non-positive or
            non-integer timeout, malformed header JSON, an unparsable
            boolean, or an unknown logging category.
        MissingConfigurationError: If host or region is still empty.
    """
    env: Mapping[str, str] = {}
    if config.check_environment:
        env = os.environ if environ is None else environ

    file_cfg = CredentialsFile()
    if config.credentials_file:
        file_cfg = load_credentials_file(config.credentials_file)

    # Host and region have no default; they are checked last.
    host = config.host or env.get(ENV_HOST) or file_cfg.host
    region = config.region or env.get(ENV_REGION) or file_cfg.region

    protocol = config.protocol or env.get(ENV_PROTOCOL) or file_cfg.protocol or DEFAULT_PROTOCOL
    if protocol not in VALID_PROTOCOLS:
        raise InvalidConfigurationError(
            f"Invalid protocol {protocol!r}; expected 'https' or 'http'"
        )

    timeout = config.timeout
    if timeout == 0:
        env_timeout = env.get(ENV_TIMEOUT)
        if env_timeout:
            try:
                timeout = parse_int(env_timeout)
            except ValueError as exc:
                raise InvalidConfigurationError(
                    f"Failed to parse timeout env var as int: {env_timeout!r}"
                ) from exc
        else:
            timeout = file_cfg.timeout or DEFAULT_TIMEOUT
    if timeout <= 0:
        raise InvalidConfigurationError(f"Timeout for {host!r} must be a positive int")

    headers = dict(config.headers)
    if not headers:
        env_headers = env.get(ENV_HEADERS)
        if env_headers:
            headers = parse_headers(env_headers)
        if not headers:
            headers = dict(file_cfg.headers)

    skip_verify = config.skip_verify_certificate
    if not skip_verify:
        env_verify = env.get(ENV_VERIFY_CERTIFICATE)
        if env_verify:
            skip_verify = parse_bool(env_verify)
        skip_verify = skip_verify or file_cfg.skip_verify_certificate

    logging_flags = config.logging
    if not logging_flags:
        env_logging = env.get(ENV_LOGGING)
        tokens = env_logging.split(",") if env_logging else file_cfg.logging
        logging_flags = parse_logging(tokens) if tokens else DEFAULT_LOGGING

    if not region:
        raise MissingConfigurationError("No region specified")
    if not host:
        raise MissingConfigurationError("No host specified")

    return config.model_copy(
        update={
            "host": host,
            "region": region,
            "protocol": protocol,
            "timeout": timeout,
            "headers": headers,
            "skip_verify_certificate": skip_verify,
            "logging": logging_flags,
            "access_key": config.access_key or file_cfg.access_key,
            "secret_key": config.secret_key or file_cfg.secret_key,
            "firewall_role_arn": config.firewall_role_arn or file_cfg.firewall_role_arn,
            "rulestack_role_arn": config.rulestack_role_arn or file_cfg.rulestack_role_arn,
            "shared_arn": config.shared_arn or file_cfg.shared_arn,
        }
    )
