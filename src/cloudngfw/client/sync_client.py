"""Synchronous client and request dispatcher for the management API.

:class:`Client` owns everything a session with the API needs: the resolved
configuration, the :class:`httpx.Client`, the bearer tokens and the log
gate. Its :meth:`~Client.communicate` method is the single entry point for
API calls and layers on:

- **Auth** -- a bearer token chosen by :class:`~cloudngfw.auth.AuthScope`,
  or SigV4 signing with temporary credentials (token requests only).
- **Custom headers** -- configured headers override built-in ones.
- **Response validation** -- the body is decoded into an
  :class:`~cloudngfw.models.ApiResponse` subclass whose ``is_success()``
  decides the outcome; the HTTP status code is not consulted.
- **Offline mode** -- when ``test_data`` is supplied, no connection is made
  and every call returns a fixed stub body.

Calls are made once; there is no retry. All methods block the calling
thread. A client is meant for single-threaded use: run
:meth:`~Client.refresh_jwts` and :meth:`~Client.communicate` from one thread
or serialise them yourself.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Sequence, Union

import httpx
from pydantic import BaseModel

from cloudngfw.auth.manager import TokenManager
from cloudngfw.auth.scopes import AuthScope
from cloudngfw.auth.signing import sign_request
from cloudngfw.auth.tokens import TokenStore
from cloudngfw.config import resolve_config
from cloudngfw.exceptions import (
    ApiError,
    InvalidArgumentError,
    MalformedResponseError,
    TransportError,
)
from cloudngfw.logging_gate import LogGate
from cloudngfw.models import ApiResponse, ClientConfig, TemporaryCredentials
from cloudngfw.transport import build_http_client

logger = logging.getLogger(__name__)

TEST_HOST = "test.nz"
TEST_BODY = b'{"test"}'


class Client:
    """Client for the Cloud NGFW management API.

    Construct with a :class:`~cloudngfw.models.ClientConfig`, then call
    :meth:`initialize` (or use the client as a context manager) before
    sending requests.

    Args:
        config: Connection settings; unset fields are resolved by
            :meth:`initialize`.
        transport: Optional httpx transport override. When given it is used
            as-is instead of the default TLS/proxy-aware transport.
        sts_factory: Optional factory building the STS client used for role
            assumption.
        test_data: Preloaded fake responses. Their presence switches the
            client into offline mode.

    Example::

        with Client(ClientConfig(host="api.example.com", region="us-east-1")) as client:
            body, _ = client.communicate(AuthScope.FIREWALL, "GET", ["v1", "config", "ngfirewalls"])
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.BaseTransport] = None,
        sts_factory: Any = None,
        test_data: Optional[Sequence[bytes]] = None,
    ) -> None:
        self.config = config
        self.tokens = TokenStore()
        self.gate = LogGate(config.logging)
        self._transport = transport
        self._test_data = list(test_data or [])
        self._token_manager = TokenManager(self, sts_factory=sts_factory)
        self._http: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Client:
        self.initialize()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def offline(self) -> bool:
        """Whether the client answers from stub data instead of the network."""
        return bool(self._test_data)

    @property
    def firewall_jwt(self) -> str:
        return self.tokens.firewall_jwt

    @property
    def rulestack_jwt(self) -> str:
        return self.tokens.rulestack_jwt

    def initialize(self) -> None:
        """Resolve the configuration, open the HTTP client and fetch all JWTs.

        In offline mode only the host is set (to ``test.nz``); nothing is
        resolved, connected or fetched.

        Raises:
            ConfigError: If the configuration cannot be resolved.
            UnsupportedOperationError: If ``shared_arn`` is configured.
            CloudNgfwError: If a JWT request fails.
        """
        if self.offline:
            self.config = self.config.model_copy(update={"host": TEST_HOST})
            return

        self.config = resolve_config(self.config)
        self.gate = LogGate(self.config.logging)
        if self._http is not None:
            self._http.close()
        self._http = build_http_client(self.config, self._transport)
        logger.debug("Initialised client for %s", self.config.api_prefix)
        self.refresh_jwts()

    def refresh_jwts(self) -> None:
        """Refresh every configured JWT. See :class:`~cloudngfw.auth.TokenManager`."""
        self._token_manager.refresh_jwts()

    def close(self) -> None:
        if self._http is not None:
            self._http.close()
            self._http = None

    def log(self, method: str, msg: str, *args: Any) -> None:
        """Log an API action if logging for *method* is enabled."""
        self.gate.log(method, msg, *args)

    # ------------------------------------------------------------------ #
    # Dispatch
    # ------------------------------------------------------------------ #

    def communicate(
        self,
        auth: Union[AuthScope, str],
        method: str,
        path: Sequence[str],
        *credentials: TemporaryCredentials,
        payload: Any = None,
        output: Optional[type[ApiResponse]] = None,
    ) -> tuple[bytes, Optional[ApiResponse]]:
        """Send one request to the API and validate the answer.

        Args:
            auth: Which bearer token to present; ``AuthScope.NONE`` (or
                ``""``) sends none.
            method: HTTP method.
            path: Path segments, joined with ``/`` onto the base URI.
            *credentials: At most one set of temporary credentials. When
                given, the request is SigV4-signed with them.
            payload: JSON-serialisable body, or a pydantic model (dumped by
                alias). ``None`` sends no body.
            output: The :class:`~cloudngfw.models.ApiResponse` subclass to
                decode the body into. ``None`` skips decoding.

        Returns:
            ``(body, decoded)``, where *decoded* is ``None`` when no
            *output* type was given.

        Raises:
            InvalidArgumentError: More than one credential set, or an
                unknown auth scope.
            TransportError: The request could not be sent or read.
            MalformedResponseError: The body does not decode into *output*.
            ApiError: The decoded response reports failure.
        """
        if len(credentials) > 1:
            raise InvalidArgumentError("Only one credentials is allowed")

        data = self._encode(payload)
        self.gate.send(data)

        if self.offline:
            body = TEST_BODY
        else:
            body = self._send(auth, method, path, data, credentials[0] if credentials else None)

        self.gate.receive(body)

        if output is None:
            return body, None

        try:
            answer = output.parse_body(body)
        except ValueError as exc:
            raise MalformedResponseError(f"Cannot decode response: {exc}", body) from exc

        if not answer.is_success():
            raise ApiError(body, answer)

        return body, answer

    def _encode(self, payload: Any) -> bytes:
        if payload is None:
            return b""
        if isinstance(payload, BaseModel):
            return payload.model_dump_json(by_alias=True).encode("utf-8")
        try:
            return json.dumps(payload, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"Payload is not JSON-serialisable: {exc}") from exc

    def _send(
        self,
        auth: Union[AuthScope, str],
        method: str,
        path: Sequence[str],
        data: bytes,
        credentials: Optional[TemporaryCredentials],
    ) -> bytes:
        assert self._http is not None, "Client not initialised -- call initialize() first"

        url = f"{self.config.api_prefix}/{'/'.join(path)}"
        self.gate.path(method, url)

        headers = httpx.Headers({"Content-Type": "application/json"})
        token = self._bearer_token(auth)
        if token is not None:
            headers["Authorization"] = token
        for name, value in self.config.headers.items():
            headers[name] = value

        if credentials is not None:
            headers = httpx.Headers(
                sign_request(method, url, headers, data, credentials, self.config.region)
            )

        try:
            response = self._http.request(method, url, headers=headers, content=data or None)
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        except httpx.InvalidURL as exc:
            raise TransportError(f"Invalid request URL {url!r}: {exc}") from exc
        return response.content

    def _bearer_token(self, auth: Union[AuthScope, str]) -> Optional[str]:
        try:
            scope = AuthScope(auth)
        except ValueError:
            raise InvalidArgumentError(f"Unknown auth type: {auth!r}") from None
        if scope is AuthScope.NONE:
            return None
        return self.tokens.get(scope)
