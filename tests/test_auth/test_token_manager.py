"""Tests for JWT refresh through STS role assumption."""

from __future__ import annotations

import json
import logging
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest
from botocore.exceptions import ClientError

from cloudngfw.auth.manager import SESSION_NAME, TokenManager
from cloudngfw.auth.scopes import AuthScope
from cloudngfw.client.sync_client import Client
from cloudngfw.exceptions import ApiError, UnsupportedOperationError
from cloudngfw.logging_gate import LogFlag
from cloudngfw.models import ClientConfig

from conftest import FIREWALL_ARN, RULESTACK_ARN, RecordingHandler, sts_credentials, token_body


FIREWALL_PATH = "/v1/mgmt/tokens/cloudfirewalladmin"
RULESTACK_PATH = "/v1/mgmt/tokens/cloudrulestackadmin"


def _client(handler: RecordingHandler, sts: MagicMock, **kwargs: Any) -> Client:
    settings: dict[str, Any] = {"host": "api.example.com", "region": "us-east-1"}
    settings.update(kwargs)
    return Client(
        ClientConfig(**settings),
        transport=httpx.MockTransport(handler),
        sts_factory=lambda config: sts,
    )


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------


class TestTargets:
    def test_firewall_before_rulestack(self, api, fake_sts) -> None:
        client = _client(api, fake_sts, firewall_role_arn=FIREWALL_ARN, rulestack_role_arn=RULESTACK_ARN)
        targets = TokenManager(client).targets()
        assert [t.scope for t in targets] == [AuthScope.FIREWALL, AuthScope.RULESTACK]
        assert [t.role_arn for t in targets] == [FIREWALL_ARN, RULESTACK_ARN]

    def test_unset_roles_are_skipped(self, api, fake_sts) -> None:
        client = _client(api, fake_sts, rulestack_role_arn=RULESTACK_ARN)
        targets = TokenManager(client).targets()
        assert [t.scope for t in targets] == [AuthScope.RULESTACK]


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------


class TestRefresh:
    def test_firewall_only(self, api, fake_sts) -> None:
        client = _client(api, fake_sts, firewall_role_arn=FIREWALL_ARN)
        client.initialize()
        assert client.firewall_jwt == "fw-jwt"
        assert client.rulestack_jwt == ""
        assert api.paths == [FIREWALL_PATH]

    def test_both_roles(self, api, fake_sts) -> None:
        client = _client(api, fake_sts, firewall_role_arn=FIREWALL_ARN, rulestack_role_arn=RULESTACK_ARN)
        client.initialize()
        assert client.firewall_jwt == "fw-jwt"
        assert client.rulestack_jwt == "rs-jwt"
        assert api.paths == [FIREWALL_PATH, RULESTACK_PATH]

    def test_assume_role_session_name(self, api, fake_sts) -> None:
        client = _client(api, fake_sts, firewall_role_arn=FIREWALL_ARN, rulestack_role_arn=RULESTACK_ARN)
        client.initialize()
        calls = fake_sts.assume_role.call_args_list
        assert [c.kwargs for c in calls] == [
            {"RoleArn": FIREWALL_ARN, "RoleSessionName": SESSION_NAME},
            {"RoleArn": RULESTACK_ARN, "RoleSessionName": SESSION_NAME},
        ]
        assert SESSION_NAME == "sdk_session"

    def test_no_roles_never_builds_sts(self, api) -> None:
        factory = MagicMock()
        client = Client(
            ClientConfig(host="api.example.com", region="us-east-1"),
            transport=httpx.MockTransport(api),
            sts_factory=factory,
        )
        client.initialize()
        factory.assert_not_called()
        assert api.requests == []

    def test_refresh_replaces_tokens(self, fake_sts) -> None:
        handler = RecordingHandler({FIREWALL_PATH: token_body("first")})
        client = _client(handler, fake_sts, firewall_role_arn=FIREWALL_ARN)
        client.initialize()
        handler.routes[FIREWALL_PATH] = token_body("second")
        client.refresh_jwts()
        assert client.firewall_jwt == "second"


class TestTokenRequest:
    def test_request_is_signed_with_role_credentials(self, api, fake_sts) -> None:
        client = _client(api, fake_sts, region="eu-west-1", firewall_role_arn=FIREWALL_ARN)
        client.initialize()
        request = api.requests[0]
        assert request.method == "GET"
        auth = request.headers["Authorization"]
        assert auth.startswith("AWS4-HMAC-SHA256 Credential=ASIATESTKEYFW/")
        assert "/eu-west-1/execute-api/aws4_request" in auth
        assert request.headers["X-Amz-Security-Token"] == sts_credentials("FW")["SessionToken"]

    def test_request_body(self, api, fake_sts) -> None:
        client = _client(api, fake_sts, region="eu-west-1", firewall_role_arn=FIREWALL_ARN)
        client.initialize()
        assert json.loads(api.requests[0].content) == {
            "ExpiryTime": 90,
            "KeyInfo": {"Region": "eu-west-1", "Tenant": "XY"},
        }

    def test_no_bearer_token_on_token_request(self, api, fake_sts) -> None:
        client = _client(api, fake_sts, firewall_role_arn=FIREWALL_ARN, rulestack_role_arn=RULESTACK_ARN)
        client.initialize()
        # The second request is signed, not authorised with the first JWT.
        assert not api.requests[1].headers["Authorization"].startswith("fw-jwt")


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    def test_shared_arn_unsupported(self, api, fake_sts) -> None:
        client = _client(api, fake_sts, firewall_role_arn=FIREWALL_ARN, shared_arn="arn:aws:iam::1:role/All")
        with pytest.raises(UnsupportedOperationError, match="shared ARN"):
            client.initialize()
        fake_sts.assume_role.assert_not_called()
        assert api.requests == []
        assert client.firewall_jwt == ""

    def test_partial_refresh_keeps_earlier_token(self, fake_sts) -> None:
        handler = RecordingHandler(
            {
                FIREWALL_PATH: token_body("fw-jwt"),
                RULESTACK_PATH: token_body("", error_code=403, reason="denied"),
            }
        )
        client = _client(handler, fake_sts, firewall_role_arn=FIREWALL_ARN, rulestack_role_arn=RULESTACK_ARN)
        with pytest.raises(ApiError) as excinfo:
            client.initialize()
        assert excinfo.value.error_code == 403
        assert client.firewall_jwt == "fw-jwt"
        assert client.rulestack_jwt == ""

    def test_sts_error_propagates(self, api) -> None:
        sts = MagicMock()
        sts.assume_role.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "no"}}, "AssumeRole"
        )
        client = _client(api, sts, firewall_role_arn=FIREWALL_ARN)
        with pytest.raises(ClientError):
            client.initialize()
        assert api.requests == []
        assert client.firewall_jwt == ""

    def test_store_writer_released_after_failure(self, fake_sts) -> None:
        handler = RecordingHandler({FIREWALL_PATH: token_body("", error_code=1)})
        client = _client(handler, fake_sts, firewall_role_arn=FIREWALL_ARN)
        with pytest.raises(ApiError):
            client.initialize()
        client.tokens.set(AuthScope.FIREWALL, "manual")
        assert client.firewall_jwt == "manual"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class TestLoginLogging:
    def test_login_messages(self, api, fake_sts, caplog: pytest.LogCaptureFixture) -> None:
        client = _client(api, fake_sts, firewall_role_arn=FIREWALL_ARN, logging=LogFlag.LOGIN)
        with caplog.at_level(logging.INFO, logger="cloudngfw"):
            client.initialize()
        assert caplog.messages[:2] == [
            "(login) refreshing JWTs...",
            "(login) refreshing firewall JWT...",
        ]

    def test_login_silent_without_flag(self, api, fake_sts, caplog: pytest.LogCaptureFixture) -> None:
        client = _client(api, fake_sts, firewall_role_arn=FIREWALL_ARN, logging=LogFlag.GET)
        with caplog.at_level(logging.INFO, logger="cloudngfw"):
            client.initialize()
        assert not any("(login)" in m for m in caplog.messages)
