"""HTTP client for the Cloud NGFW management API.

:class:`Client` resolves configuration, refreshes JWTs and dispatches
requests through :meth:`Client.communicate`.

Example::

    from cloudngfw.client import Client

    with Client(config) as client:
        body, _ = client.communicate("Firewall", "GET", ["v1", "config", "ngfirewalls"])
"""

from cloudngfw.client.sync_client import Client

__all__ = ["Client"]
