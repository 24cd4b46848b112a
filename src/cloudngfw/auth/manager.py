"""JWT refresh through AWS role assumption.

The :class:`TokenManager` populates a client's
:class:`~cloudngfw.auth.tokens.TokenStore`. For each configured
administrative role it:

1. assumes the role through STS with the session name ``sdk_session``;
2. sends a SigV4-signed ``GET v1/mgmt/tokens/<role-endpoint>`` through the
   client's dispatcher, using the temporary credentials exactly once;
3. stores the returned JWT under the matching auth scope.

Roles are processed firewall first, then rulestack. The first failure stops
the refresh and propagates; a token stored by an earlier step is kept.

See Also:
    :meth:`cloudngfw.client.sync_client.Client.communicate` -- the
    dispatcher used for the token requests.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, NamedTuple, Optional, cast

import boto3

from cloudngfw.auth.scopes import AuthScope
from cloudngfw.exceptions import UnsupportedOperationError
from cloudngfw.models import (
    AuthResponse,
    ClientConfig,
    TemporaryCredentials,
    TokenKeyInfo,
    TokenRequest,
)

if TYPE_CHECKING:
    from cloudngfw.client.sync_client import Client

logger = logging.getLogger(__name__)

SESSION_NAME = "sdk_session"
TOKEN_EXPIRY = 90
TOKEN_TENANT = "XY"


class TokenTarget(NamedTuple):
    """One role-to-token exchange: which role to assume and where the JWT goes."""

    scope: AuthScope
    role_arn: str
    path: tuple[str, ...]


def default_sts_client(config: ClientConfig) -> Any:
    """Create an STS client for *config*'s region.

    Static ``access_key`` / ``secret_key`` are used when either is set;
    otherwise boto3's default credential chain applies.
    """
    session = boto3.session.Session(
        aws_access_key_id=config.access_key or None,
        aws_secret_access_key=config.secret_key or None,
        region_name=config.region,
    )
    return session.client("sts")


class TokenManager:
    """Exchanges assumed-role credentials for API bearer tokens.

    Args:
        client: The owning client; supplies configuration, the log gate,
            the token store and the dispatcher.
        sts_factory: Builds the STS client for a configuration. Tests pass a
            factory returning a mock.
    """

    def __init__(
        self,
        client: "Client",
        sts_factory: Optional[Callable[[ClientConfig], Any]] = None,
    ) -> None:
        self._client = client
        self._sts_factory = sts_factory or default_sts_client

    def targets(self) -> list[TokenTarget]:
        """Return the exchanges to perform, in order, for the configured roles."""
        config = self._client.config
        candidates = [
            TokenTarget(
                AuthScope.FIREWALL,
                config.firewall_role_arn,
                ("v1", "mgmt", "tokens", "cloudfirewalladmin"),
            ),
            TokenTarget(
                AuthScope.RULESTACK,
                config.rulestack_role_arn,
                ("v1", "mgmt", "tokens", "cloudrulestackadmin"),
            ),
        ]
        return [target for target in candidates if target.role_arn]

    def refresh_jwts(self) -> None:
        """Fetch a fresh JWT for every configured role.

        Raises:
            UnsupportedOperationError: If ``shared_arn`` is configured.
            botocore.exceptions.BotoCoreError: If STS cannot be reached or
                no base credentials are available.
            botocore.exceptions.ClientError: If STS refuses the role.
            CloudNgfwError: If a token request fails (transport, malformed
                response, or an API error status).
        """
        config = self._client.config
        gate = self._client.gate
        gate.login("refreshing JWTs...")

        if config.shared_arn:
            raise UnsupportedOperationError("No endpoint yet known for shared ARN JWT retrieval")

        targets = self.targets()
        if not targets:
            logger.debug("No role ARNs configured; no JWTs to refresh")
            return

        sts = self._sts_factory(config)
        request = TokenRequest(
            expires=TOKEN_EXPIRY,
            key_info=TokenKeyInfo(region=config.region, tenant=TOKEN_TENANT),
        )
        payload = request.model_dump(by_alias=True)

        for target in targets:
            with self._client.tokens.writer(target.scope) as write:
                gate.login("refreshing %s JWT...", target.scope.value.lower())
                credentials = self.assume_role(sts, target.role_arn)
                _, answer = self._client.communicate(
                    AuthScope.NONE,
                    "GET",
                    list(target.path),
                    credentials,
                    payload=payload,
                    output=AuthResponse,
                )
                write(cast(AuthResponse, answer).response.jwt)

    @staticmethod
    def assume_role(sts: Any, role_arn: str) -> TemporaryCredentials:
        """Assume *role_arn* and return its temporary credentials."""
        result = sts.assume_role(RoleArn=role_arn, RoleSessionName=SESSION_NAME)
        return TemporaryCredentials.model_validate(result["Credentials"])
