"""QR activation protocol: codec, signing, payload building and validation."""

from .builder import QRPayloadBuilder, build_signer, serialize
from .models import QRCodePayload, QRErrorCode, QRProtocolConfig, ValidationResult
from .validator import QRValidator, build_validator

__all__ = [
    "QRCodePayload",
    "QRErrorCode",
    "QRPayloadBuilder",
    "QRProtocolConfig",
    "QRValidator",
    "ValidationResult",
    "build_signer",
    "build_validator",
    "serialize",
]
