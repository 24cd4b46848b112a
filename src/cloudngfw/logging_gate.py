"""Bitmask-driven diagnostic logging.

Each client carries a :class:`LogFlag` set that decides which categories of
trace are emitted:

* ``GET`` / ``POST`` / ``PUT`` / ``DELETE`` -- API actions logged through
  :meth:`LogGate.log` by resource-level callers.
* ``LOGIN`` -- progress messages while JWTs are refreshed.
* ``SEND`` / ``RECEIVE`` -- raw outbound and inbound payloads.
* ``PATH`` -- the method and URL of every outbound request.
* ``QUIET`` -- accepted and stored; it does not suppress anything by itself.

All traces go to the ``cloudngfw`` logger at ``INFO`` level. Logging never
raises and never changes the outcome of the call that emits it.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Iterable, Optional

from cloudngfw.exceptions import InvalidConfigurationError

logger = logging.getLogger("cloudngfw")


class LogFlag(enum.Flag):
    """Independent logging categories, combined with ``|``."""

    QUIET = enum.auto()
    LOGIN = enum.auto()
    GET = enum.auto()
    POST = enum.auto()
    PUT = enum.auto()
    DELETE = enum.auto()
    PATH = enum.auto()
    SEND = enum.auto()
    RECEIVE = enum.auto()


NO_LOGGING = LogFlag(0)

DEFAULT_LOGGING = LogFlag.LOGIN | LogFlag.POST | LogFlag.PUT | LogFlag.DELETE
"""Flags applied when neither the caller nor any config source sets logging."""

_TOKEN_FLAGS = {member.name.lower(): member for member in LogFlag}

_METHOD_FLAGS = {
    "GET": LogFlag.GET,
    "POST": LogFlag.POST,
    "PUT": LogFlag.PUT,
    "DELETE": LogFlag.DELETE,
}


def parse_logging(tokens: Iterable[str]) -> LogFlag:
    """Combine lowercase category names into a :class:`LogFlag` set.

    Args:
        tokens: Names such as ``"login"``, ``"get"``, ``"send"``.

    Returns:
        The OR of every named flag. An empty iterable yields ``NO_LOGGING``;
        applying the default is the caller's decision.

    Raises:
        InvalidConfigurationError: If any token is not a known category.
    """
    flags = NO_LOGGING
    for token in tokens:
        member = _TOKEN_FLAGS.get(token)
        if member is None:
            raise InvalidConfigurationError(f"Unknown logging requested: {token}")
        flags |= member
    return flags


def flag_names(flags: LogFlag) -> list[str]:
    """Return the lowercase names of the flags set in *flags*, in declaration order."""
    return [member.name.lower() for member in LogFlag if member in flags]


class LogGate:
    """Filter deciding whether a diagnostic message is emitted.

    Args:
        flags: The active logging categories.
        log: Logger to write to. Defaults to the ``cloudngfw`` logger.
    """

    def __init__(self, flags: LogFlag = DEFAULT_LOGGING, log: Optional[logging.Logger] = None) -> None:
        self.flags = flags
        self._logger = log or logger

    def enabled(self, flag: LogFlag) -> bool:
        return flag in self.flags

    def log(self, method: str, msg: str, *args: Any) -> None:
        """Log an API action if the flag matching *method* is set.

        Methods other than GET, POST, PUT and DELETE are never logged.
        """
        flag = _METHOD_FLAGS.get(method)
        if flag is None or not self.enabled(flag):
            return
        self._emit(f"({method}) {msg}", *args)

    def login(self, msg: str, *args: Any) -> None:
        if self.enabled(LogFlag.LOGIN):
            self._emit(f"(login) {msg}", *args)

    def path(self, method: str, url: str) -> None:
        if self.enabled(LogFlag.PATH):
            self._emit("(path) %s %s", method, url)

    def send(self, data: bytes) -> None:
        if self.enabled(LogFlag.SEND):
            self._emit("sending: %s", data.decode("utf-8", errors="replace"))

    def receive(self, data: bytes) -> None:
        if self.enabled(LogFlag.RECEIVE):
            self._emit("received: %s", data.decode("utf-8", errors="replace"))

    def _emit(self, msg: str, *args: Any) -> None:
        self._logger.info(msg, *args)
