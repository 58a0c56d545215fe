"""Scan handling: validate a scanned code, resolve its order, advance the order status."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..data.orders_repository import OrderResolver
from ..errors import OrderNotFoundError
from ..models.domain import Order
from .qr.models import QRErrorCode, ScannedCode, SignedScan
from .qr.parser import parse_simple_code
from .qr.validator import QRValidator

logger = logging.getLogger(__name__)

# First scan after activation is the pickup, the next one the delivery.
SCAN_TRANSITIONS = {
    "activated": "picked_up",
    "picked_up": "delivered",
    "in_transit": "delivered",
}


def next_status_for_scan(current_status: str) -> Optional[str]:
    return SCAN_TRANSITIONS.get(current_status)


@dataclass(slots=True)
class ScanOutcome:
    success: bool
    error: Optional[str] = None
    error_code: Optional[QRErrorCode] = None
    scan: Optional[ScannedCode] = None
    order: Optional[Order] = None
    previous_status: Optional[str] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def kind(self) -> Optional[str]:
        return self.scan.kind if self.scan is not None else None


def process_scan(
    raw_text: str,
    *,
    tenant_id: str,
    validator: QRValidator,
    resolver: OrderResolver,
    user_id: Optional[str] = None,
    role: str = "driver",
    allow_simple: bool = False,
) -> ScanOutcome:
    """Handle one scan end to end.

    Signed payloads are always tried first. The unsigned legacy path is only
    reachable when ``allow_simple`` is set and the text is not a signed
    payload at all; a signed payload that fails a check is never retried as
    a simple code.
    """
    result = validator.validate(raw_text, expected_tenant_id=tenant_id)

    scan: ScannedCode
    try:
        if result.is_valid:
            scan = SignedScan(payload=result.payload)
            order = resolver.fetch_order(result.payload.order_id, tenant_id)
        else:
            simple = parse_simple_code(raw_text) if allow_simple else None
            if result.error_code != QRErrorCode.MALFORMED_PAYLOAD or simple is None:
                return ScanOutcome(success=False, error=result.error, error_code=result.error_code)
            logger.warning(f"Accepting legacy unsigned QR code for tenant {tenant_id}")
            scan = simple
            order = resolver.find_by_lookup_key(simple.lookup_key, tenant_id)
    except OrderNotFoundError as e:
        logger.info(f"Scan rejected: {e}")
        return ScanOutcome(success=False, error="Order not found", error_code=QRErrorCode.ORDER_NOT_FOUND)

    if role == "driver" and order.assigned_driver_id != user_id:
        return ScanOutcome(
            success=False,
            error="You are not assigned to this order",
            error_code=QRErrorCode.DRIVER_NOT_ASSIGNED,
            scan=scan,
        )

    previous_status = order.status
    if role == "driver":
        new_status = next_status_for_scan(order.status)
        if new_status is not None:
            notes = "Order picked up via QR scan" if new_status == "picked_up" else "Order delivered via QR scan"
            order = resolver.update_status(order, new_status, driver_id=user_id, notes=notes)

    return ScanOutcome(
        success=True,
        scan=scan,
        order=order,
        previous_status=previous_status,
        warnings=list(result.warnings),
    )
