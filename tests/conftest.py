"""Shared test fixtures for cloudngfw.

Provides an isolated environment (no ``CLOUD_NGFW_*`` leakage), a fake STS
client, and helpers for building clients that talk to an
:class:`httpx.MockTransport` instead of the network.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable
from unittest.mock import MagicMock

import httpx
import pytest

from cloudngfw.config import (
    ENV_HEADERS,
    ENV_HOST,
    ENV_LOGGING,
    ENV_PROTOCOL,
    ENV_REGION,
    ENV_TIMEOUT,
    ENV_VERIFY_CERTIFICATE,
)
from cloudngfw.output import reset_output


FIREWALL_ARN = "arn:aws:iam::123456789012:role/CloudFirewallAdmin"
RULESTACK_ARN = "arn:aws:iam::123456789012:role/CloudRulestackAdmin"


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches sys.stdout/sys.stderr at creation time; the
    CliRunner swaps those streams, so a stale manager must not leak.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove every CLOUD_NGFW_* variable so tests never see the real shell."""
    for var in [
        ENV_HOST,
        ENV_REGION,
        ENV_PROTOCOL,
        ENV_TIMEOUT,
        ENV_HEADERS,
        ENV_VERIFY_CERTIFICATE,
        ENV_LOGGING,
    ]:
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# Credentials file
# ---------------------------------------------------------------------------


@pytest.fixture
def write_credentials(tmp_path: Path) -> Callable[[dict[str, Any]], str]:
    """Return a function writing a credentials file and returning its path."""

    def _write(data: dict[str, Any]) -> str:
        path = tmp_path / "credentials.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)

    return _write


# ---------------------------------------------------------------------------
# STS and API fakes
# ---------------------------------------------------------------------------


def sts_credentials(suffix: str = "1") -> dict[str, Any]:
    """An STS ``Credentials`` block as boto3 returns it."""
    return {
        "AccessKeyId": f"ASIATESTKEY{suffix}",
        "SecretAccessKey": f"secret-{suffix}",
        "SessionToken": f"session-token-{suffix}",
        "Expiration": "2030-01-01T00:00:00Z",
    }


@pytest.fixture
def fake_sts() -> MagicMock:
    """A mock STS client whose assume_role returns per-role credentials."""
    sts = MagicMock()

    def _assume_role(RoleArn: str, RoleSessionName: str) -> dict[str, Any]:
        suffix = "FW" if RoleArn == FIREWALL_ARN else "RS"
        return {"Credentials": sts_credentials(suffix)}

    sts.assume_role.side_effect = _assume_role
    return sts


def token_body(jwt: str, error_code: int = 0, reason: str = "") -> dict[str, Any]:
    """A token endpoint response body."""
    return {
        "Response": {
            "TokenId": jwt,
            "SubscriptionKey": "sub-key",
            "ExpiryTime": 90,
            "Enabled": True,
        },
        "ResponseStatus": {"ErrorCode": error_code, "Reason": reason},
    }


class RecordingHandler:
    """MockTransport handler that records requests and answers from a routing table."""

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes = routes or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.routes.get(request.url.path, {"ResponseStatus": {"ErrorCode": 0}})
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, httpx.Response):
            return answer
        return httpx.Response(200, json=answer)

    @property
    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def api() -> RecordingHandler:
    """A recording API handler answering the two token endpoints."""
    return RecordingHandler(
        {
            "/v1/mgmt/tokens/cloudfirewalladmin": token_body("fw-jwt"),
            "/v1/mgmt/tokens/cloudrulestackadmin": token_body("rs-jwt"),
        }
    )
