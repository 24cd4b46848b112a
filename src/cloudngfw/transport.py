"""HTTP client construction for the management API.

:func:`build_http_client` creates the :class:`httpx.Client` every request
goes through. The client honours the resolved timeout, toggles TLS
verification from ``skip_verify_certificate``, and picks up
``HTTP(S)_PROXY`` / ``NO_PROXY`` from the environment. If the caller supplies
a transport override it is used as-is, so no TLS or proxy settings are
applied to it.
"""

from __future__ import annotations

from typing import Optional

import httpx

from cloudngfw.models import ClientConfig

USER_AGENT = "cloudngfw-python"


def build_http_client(
    config: ClientConfig,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Build the HTTP client for a resolved configuration.

    Args:
        config: A configuration already passed through
            :func:`~cloudngfw.config.resolve_config`.
        transport: Optional transport override, e.g. an
            :class:`httpx.MockTransport` in tests.

    Returns:
        A ready-to-use :class:`httpx.Client` that follows redirects.
    """
    timeout = httpx.Timeout(float(config.timeout))
    headers = {"User-Agent": USER_AGENT}
    if transport is not None:
        return httpx.Client(
            transport=transport,
            timeout=timeout,
            headers=headers,
            follow_redirects=True,
        )
    return httpx.Client(
        timeout=timeout,
        headers=headers,
        follow_redirects=True,
        verify=not config.skip_verify_certificate,
        trust_env=True,
    )
