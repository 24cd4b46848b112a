"""AWS Signature Version 4 signing for outbound API requests.

Token requests are authorised by signing them with the temporary
credentials of an assumed role. Signing is delegated to botocore's
:class:`~botocore.auth.SigV4Auth`, which stamps the current time and covers
every header passed in plus the exact body bytes, so it must run after all
other headers are final.
"""

from __future__ import annotations

from typing import Mapping

from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials

from cloudngfw.models import TemporaryCredentials

SIGNING_SERVICE = "execute-api"


def sign_request(
    method: str,
    url: str,
    headers: Mapping[str, str],
    body: bytes,
    credentials: TemporaryCredentials,
    region: str,
) -> dict[str, str]:
    """Return *headers* extended with the SigV4 signature headers.

    Args:
        method: HTTP method.
        url: Absolute request URL.
        headers: Headers to sign. They are not modified.
        body: Exact body bytes that will be sent (``b""`` for none).
        credentials: Temporary credentials of the assumed role.
        region: AWS region the signature is scoped to.

    Returns:
        A new header dict including ``Authorization``, ``X-Amz-Date`` and
        ``X-Amz-Security-Token``.
    """
    aws_request = AWSRequest(method=method, url=url, data=body, headers=dict(headers))
    signer = SigV4Auth(
        Credentials(
            access_key=credentials.access_key_id,
            secret_key=credentials.secret_access_key,
            token=credentials.session_token,
        ),
        SIGNING_SERVICE,
        region,
    )
    signer.add_auth(aws_request)
    return dict(aws_request.headers.items())
