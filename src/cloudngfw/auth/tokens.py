"""In-memory storage for the bearer tokens of a client.

A :class:`TokenStore` holds one JWT per :class:`~cloudngfw.auth.scopes.AuthScope`.
Tokens live only in process memory and are replaced whole on every refresh.

Each field has a single writer: :meth:`TokenStore.set` refuses to start a
second write to a scope while another is in flight. Reads never block on
writes to a different scope. Coordinating reads with a concurrent refresh of
the same scope is the caller's responsibility.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Iterator

from cloudngfw.auth.scopes import AuthScope
from cloudngfw.exceptions import InvalidArgumentError

_TOKEN_SCOPES = (AuthScope.FIREWALL, AuthScope.RULESTACK)


class TokenStore:
    """Bearer tokens keyed by auth scope. An empty string means "absent"."""

    def __init__(self) -> None:
        self._tokens: dict[AuthScope, str] = {scope: "" for scope in _TOKEN_SCOPES}
        self._writers: dict[AuthScope, threading.Lock] = {
            scope: threading.Lock() for scope in _TOKEN_SCOPES
        }

    def get(self, scope: AuthScope) -> str:
        """Return the token for *scope* (``""`` if none has been fetched)."""
        try:
            return self._tokens[scope]
        except KeyError:
            raise InvalidArgumentError(f"No token is kept for auth scope {scope!r}") from None

    @contextmanager
    def writer(self, scope: AuthScope) -> Iterator[Callable[[str], None]]:
        """Claim the single write slot for *scope* for the duration of the block.

        Yields a function that stores a new token for *scope*.

        Raises:
            InvalidArgumentError: If another writer already holds the slot,
                or *scope* has no token.
        """
        lock = self._writers.get(scope)
        if lock is None:
            raise InvalidArgumentError(f"No token is kept for auth scope {scope!r}")
        if not lock.acquire(blocking=False):
            raise InvalidArgumentError(f"A refresh of the {scope.value} token is already in progress")

        def _write(token: str) -> None:
            self._tokens[scope] = token

        try:
            yield _write
        finally:
            lock.release()

    def set(self, scope: AuthScope, token: str) -> None:
        with self.writer(scope) as write:
            write(token)

    def clear(self) -> None:
        for scope in _TOKEN_SCOPES:
            self.set(scope, "")

    def snapshot(self) -> dict[AuthScope, str]:
        return dict(self._tokens)

    @property
    def firewall_jwt(self) -> str:
        return self._tokens[AuthScope.FIREWALL]

    @property
    def rulestack_jwt(self) -> str:
        return self._tokens[AuthScope.RULESTACK]
