"""Authentication for the Cloud NGFW management API.

- :class:`AuthScope` -- which bearer token a request presents.
- :class:`TokenStore` -- the in-memory JWTs of a client.
- :class:`TokenManager` -- refreshes the JWTs by assuming AWS roles.
- :func:`sign_request` -- SigV4 signing with temporary credentials.
"""

from cloudngfw.auth.manager import TokenManager
from cloudngfw.auth.scopes import AuthScope
from cloudngfw.auth.signing import sign_request
from cloudngfw.auth.tokens import TokenStore

__all__ = ["AuthScope", "TokenManager", "TokenStore", "sign_request"]
