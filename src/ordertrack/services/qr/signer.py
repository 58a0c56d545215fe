"""HMAC-SHA256 signing over the canonical QR message.

The canonical message is ``orderId.timestamp.tenantId.orderNumber`` with an
empty string standing in for a missing order number. Field order and the
separator are part of the wire protocol.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Optional, Protocol

from pydantic import SecretStr

from ...errors import SigningError

SEPARATOR = "."


def canonical_message(
    order_id: str, timestamp: int, tenant_id: str, order_number: Optional[str] = None
) -> str:
    return SEPARATOR.join([order_id, str(timestamp), tenant_id, order_number or ""])


def sign(secret: str, message: str) -> str:
    """Lowercase hex HMAC-SHA256 of ``message`` keyed by ``secret``."""
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def constant_time_equals(expected: str, candidate: str) -> bool:
    if len(expected) != len(candidate):
        return False
    return hmac.compare_digest(expected.encode("utf-8"), candidate.encode("utf-8"))


def verify(secret: str, message: str, candidate_signature: str) -> bool:
    if not isinstance(candidate_signature, str):
        return False
    return constant_time_equals(sign(secret, message), candidate_signature)


class SignatureProvider(Protocol):
    def sign_fields(
        self, order_id: str, timestamp: int, tenant_id: str, order_number: Optional[str] = None
    ) -> str:
        ...


class LocalSigner:
    """Signs in-process with the shared secret."""

    def __init__(self, secret: SecretStr | str) -> None:
        value = secret.get_secret_value() if isinstance(secret, SecretStr) else secret
        if not value:
            raise SigningError("QR_CODE_SECRET not configured")
        self._secret = value

    def __repr__(self) -> str:
        return "LocalSigner(secret=**********)"

    def sign_fields(
        self, order_id: str, timestamp: int, tenant_id: str, order_number: Optional[str] = None
    ) -> str:
        return sign(self._secret, canonical_message(order_id, timestamp, tenant_id, order_number))
