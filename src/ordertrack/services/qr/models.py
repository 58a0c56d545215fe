"""QR activation protocol models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, StrictInt
from pydantic.alias_generators import to_camel

MS_PER_HOUR = 3_600_000
MS_PER_MINUTE = 60_000


class QRCodePayload(BaseModel):
    """The signed, transmissible unit carried by an activation QR code.

    ``metadata`` is display-only: it is not part of the signed message and
    must never be trusted for authorization decisions.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_id: str = Field(min_length=1)
    tenant_id: str = Field(min_length=1)
    timestamp: StrictInt
    signature: str = Field(min_length=1)
    order_number: Optional[str] = None
    expires_at: Optional[StrictInt] = None
    version: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None

    def effective_expiration_ms(self, default_expiration_ms: int) -> int:
        if self.expires_at is not None:
            return self.expires_at
        return self.timestamp + default_expiration_ms

    def to_wire(self) -> dict[str, Any]:
        """camelCase dict with unset optional fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True, slots=True)
class QRProtocolConfig:
    """Protocol parameters, loaded once at startup and immutable thereafter."""

    secret: Optional[SecretStr] = field(default=None, repr=False)
    supported_version: str = "1"
    default_expiration_ms: int = 24 * MS_PER_HOUR
    max_skew_ms: int = 10 * MS_PER_MINUTE
    signing_endpoint_url: Optional[str] = None

    @property
    def has_secret(self) -> bool:
        return self.secret is not None and bool(self.secret.get_secret_value())

    @classmethod
    def from_settings(cls, settings) -> "QRProtocolConfig":
        return cls(
            secret=settings.qr_code_secret,
            supported_version=settings.qr_protocol_version,
            default_expiration_ms=int(settings.qr_default_expiration_hours * MS_PER_HOUR),
            max_skew_ms=int(settings.qr_max_skew_minutes * MS_PER_MINUTE),
            signing_endpoint_url=settings.qr_signing_endpoint_url,
        )


class QRErrorCode(str, Enum):
    MALFORMED_PAYLOAD = "malformed_payload"
    UNSUPPORTED_VERSION = "unsupported_version"
    TENANT_MISMATCH = "tenant_mismatch"
    EXPIRED = "expired"
    CLOCK_SKEW_EXCEEDED = "clock_skew_exceeded"
    SIGNATURE_INVALID = "signature_invalid"
    SECRET_NOT_CONFIGURED = "secret_not_configured"
    ORDER_NOT_FOUND = "order_not_found"
    DRIVER_NOT_ASSIGNED = "driver_not_assigned"
    ROUTE_UNAVAILABLE = "route_unavailable"


@dataclass(slots=True)
class ValidationResult:
    is_valid: bool
    error: Optional[str] = None
    error_code: Optional[QRErrorCode] = None
    payload: Optional[QRCodePayload] = None
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def accept(cls, payload: QRCodePayload, warnings: list[str] | None = None) -> "ValidationResult":
        return cls(is_valid=True, payload=payload, warnings=warnings or [])

    @classmethod
    def reject(
        cls, code: QRErrorCode, message: str, payload: QRCodePayload | None = None
    ) -> "ValidationResult":
        return cls(is_valid=False, error=message, error_code=code, payload=payload)


@dataclass(slots=True)
class SignedScan:
    """A scan that carried a validated, signed payload."""

    payload: QRCodePayload
    kind: Literal["signed"] = "signed"


@dataclass(slots=True)
class SimpleScan:
    """A legacy unsigned scan: the raw text is only an order lookup key."""

    lookup_key: str
    kind: Literal["simple"] = "simple"


ScannedCode = Union[SignedScan, SimpleScan]
