"""Auth scopes: which bearer token, if any, a request presents."""

from __future__ import annotations

import enum


class AuthScope(str, enum.Enum):
    """Administrative domain a request is authorised against.

    ``NONE`` sends no ``Authorization`` header; it is used for the token
    requests themselves, which are SigV4-signed instead.
    """

    NONE = ""
    FIREWALL = "Firewall"
    RULESTACK = "Rulestack"
