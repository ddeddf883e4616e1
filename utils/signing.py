"""
Request body serialization and HMAC signing.
"""

import hashlib
import hmac
import json
from typing import Any, Optional

SIGNATURE_HEADER = 'x-hub-signature-256'


def canonical_json(value: Any) -> bytes:
    """Serialize value to compact UTF-8 JSON. Key order is preserved."""
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False).encode('utf-8')


def sign_body(secret: str, body: bytes) -> str:
    """
    Compute the signature header value for a request body.

    Args:
        secret: Shared signing secret
        body: Exact bytes sent on the wire

    Returns:
        'sha256=<hex digest>'
    """
    digest = hmac.new(secret.encode('utf-8'), body, digestmod=hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def signature_headers(secret: Optional[str], body: bytes) -> dict:
    """Headers to attach for body, empty when signing is disabled."""
    if not secret:
        return {}
    return {SIGNATURE_HEADER: sign_body(secret, body)}
