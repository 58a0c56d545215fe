"""QR payload construction."""

from __future__ import annotations

import logging
from typing import Any, Optional

from ...clock import Clock, now_ms
from ...errors import SigningError
from .codec import encode_json
from .models import MS_PER_HOUR, QRCodePayload, QRProtocolConfig
from .remote import RemoteSigner
from .signer import LocalSigner, SignatureProvider

logger = logging.getLogger(__name__)


class QRPayloadBuilder:
    def __init__(
        self,
        config: QRProtocolConfig,
        signer: SignatureProvider,
        clock: Clock = now_ms,
    ) -> None:
        self.config = config
        self.signer = signer
        self.clock = clock

    def create_payload(
        self,
        order_id: str,
        tenant_id: str,
        *,
        order_number: Optional[str] = None,
        expiration_hours: Optional[float] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> QRCodePayload:
        if not order_id or not tenant_id:
            raise ValueError("order_id and tenant_id are required to build a QR payload.")

        # The timestamp is fixed before signing and reused verbatim in the payload.
        timestamp = self.clock()
        if expiration_hours is None:
            expires_at = timestamp + self.config.default_expiration_ms
        else:
            if expiration_hours <= 0:
                raise ValueError("expiration_hours must be positive.")
            expires_at = timestamp + int(expiration_hours * MS_PER_HOUR)

        signature = self.signer.sign_fields(order_id, timestamp, tenant_id, order_number)
        payload = QRCodePayload(
            order_id=order_id,
            tenant_id=tenant_id,
            timestamp=timestamp,
            signature=signature,
            order_number=order_number,
            expires_at=expires_at,
            version=self.config.supported_version,
            metadata=metadata,
        )
        logger.info(f"Created QR payload for order {order_id} (tenant {tenant_id})")
        return payload


def serialize(payload: QRCodePayload) -> str:
    """base64url of the payload's compact JSON wire form."""
    return encode_json(payload.to_wire())


def build_signer(config: QRProtocolConfig, api_key: str | None = None) -> SignatureProvider:
    """Sign locally when the secret is present, otherwise delegate to the remote endpoint."""
    if config.has_secret:
        return LocalSigner(config.secret)
    if config.signing_endpoint_url:
        return RemoteSigner(endpoint_url=config.signing_endpoint_url, api_key=api_key)
    raise SigningError("QR_CODE_SECRET not configured and no signing endpoint available")
