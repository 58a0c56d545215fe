"""Scan-time validation of QR activation payloads.

Validation is an ordered pipeline; the first failing stage decides the
rejection reason:

    parse -> version -> tenant -> expiration -> clock skew -> signature

Nothing here raises across ``QRValidator.validate``; every outcome is a
``ValidationResult``. Retrying (e.g. asking the driver to rescan) is the
caller's decision.
"""

from __future__ import annotations

import logging
from typing import Optional

from ...clock import Clock, now_ms
from .models import QRCodePayload, QRErrorCode, QRProtocolConfig, ValidationResult
from .parser import DEFAULT_STRATEGIES, ParseStrategy, parse_payload
from .signer import canonical_message, verify

logger = logging.getLogger(__name__)

INVALID_FORMAT = "Invalid QR code format"
DIFFERENT_ORGANIZATION = "QR code belongs to a different organization"
EXPIRED = "QR code has expired"
CLOCK_SKEW = "QR code timestamp is outside the allowed clock skew"
SIGNATURE_FAILED = "Signature verification failed"
SECRET_NOT_CONFIGURED = "QR_CODE_SECRET not configured"


class QRValidator:
    def __init__(
        self,
        config: QRProtocolConfig,
        *,
        allow_unsigned_in_development: bool = False,
        clock: Clock = now_ms,
        strategies: tuple[ParseStrategy, ...] = DEFAULT_STRATEGIES,
    ) -> None:
        self.config = config
        self.allow_unsigned_in_development = allow_unsigned_in_development
        self.clock = clock
        self.strategies = strategies

    def parse(self, raw_text: str) -> Optional[QRCodePayload]:
        return parse_payload(raw_text, self.strategies).payload

    def validate(self, raw_text: str, expected_tenant_id: Optional[str] = None) -> ValidationResult:
        outcome = parse_payload(raw_text, self.strategies)
        if outcome.payload is None:
            logger.debug(f"QR parse failed: {outcome.error}")
            return ValidationResult.reject(QRErrorCode.MALFORMED_PAYLOAD, INVALID_FORMAT)
        return self.validate_payload(outcome.payload, expected_tenant_id)

    def validate_payload(
        self, payload: QRCodePayload, expected_tenant_id: Optional[str] = None
    ) -> ValidationResult:
        if payload.version is not None and payload.version != self.config.supported_version:
            return ValidationResult.reject(
                QRErrorCode.UNSUPPORTED_VERSION, f"Unsupported QR code version: {payload.version}"
            )

        if expected_tenant_id is not None and payload.tenant_id != expected_tenant_id:
            logger.warning(
                f"Rejected QR code for order {payload.order_id}: tenant {payload.tenant_id} "
                f"does not match {expected_tenant_id}"
            )
            return ValidationResult.reject(QRErrorCode.TENANT_MISMATCH, DIFFERENT_ORGANIZATION)

        now = self.clock()
        if now > payload.effective_expiration_ms(self.config.default_expiration_ms):
            return ValidationResult.reject(QRErrorCode.EXPIRED, EXPIRED)

        if abs(now - payload.timestamp) > self.config.max_skew_ms:
            return ValidationResult.reject(QRErrorCode.CLOCK_SKEW_EXCEEDED, CLOCK_SKEW)

        return self._check_signature(payload)

    def _check_signature(self, payload: QRCodePayload) -> ValidationResult:
        if not self.config.has_secret:
            if self.allow_unsigned_in_development:
                warning = "QR code secret not set; signature verification skipped (development mode)"
                logger.warning(warning)
                return ValidationResult.accept(payload, warnings=[warning])
            logger.error("QR code secret not configured; rejecting scan")
            return ValidationResult.reject(QRErrorCode.SECRET_NOT_CONFIGURED, SECRET_NOT_CONFIGURED)

        message = canonical_message(
            payload.order_id, payload.timestamp, payload.tenant_id, payload.order_number
        )
        if not verify(self.config.secret.get_secret_value(), message, payload.signature):
            return ValidationResult.reject(QRErrorCode.SIGNATURE_INVALID, SIGNATURE_FAILED)
        return ValidationResult.accept(payload)


def build_validator(settings, clock: Clock = now_ms) -> QRValidator:
    """Validator wired from application settings.

    Unsigned acceptance requires both the development environment and the
    explicit opt-in flag.
    """
    return QRValidator(
        QRProtocolConfig.from_settings(settings),
        allow_unsigned_in_development=(
            settings.environment == "development" and settings.qr_allow_unsigned_in_development
        ),
        clock=clock,
    )
