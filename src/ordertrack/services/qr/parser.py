"""Ordered parse strategies for scanned QR text."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from pydantic import ValidationError

from .codec import decode_json
from .models import QRCodePayload, SimpleScan


@dataclass(slots=True)
class ParseOutcome:
    strategy: str
    payload: Optional[QRCodePayload] = None
    error: Optional[str] = None
    attempts: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.payload is not None


ParseStrategy = Callable[[str], ParseOutcome]


def _coerce_payload(strategy: str, candidate: Any) -> ParseOutcome:
    if not isinstance(candidate, dict):
        return ParseOutcome(strategy, error="decoded value is not a JSON object")
    try:
        return ParseOutcome(strategy, payload=QRCodePayload.model_validate(candidate))
    except ValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in exc.errors())
        return ParseOutcome(strategy, error=f"invalid fields: {fields}")


def parse_plain_json(raw: str) -> ParseOutcome:
    try:
        candidate = json.loads(raw)
    except (ValueError, RecursionError, TypeError):
        return ParseOutcome("json", error="not JSON")
    return _coerce_payload("json", candidate)


def parse_base64_json(raw: str) -> ParseOutcome:
    candidate = decode_json(raw)
    if candidate is None:
        return ParseOutcome("base64-json", error="not base64 JSON")
    return _coerce_payload("base64-json", candidate)


DEFAULT_STRATEGIES: tuple[ParseStrategy, ...] = (parse_plain_json, parse_base64_json)


def parse_payload(raw: str, strategies: Sequence[ParseStrategy] = DEFAULT_STRATEGIES) -> ParseOutcome:
    """Run each strategy in order and return the first structurally valid payload."""
    if not isinstance(raw, str) or not raw.strip():
        return ParseOutcome("none", error="empty input")

    attempts: list[str] = []
    for strategy in strategies:
        outcome = strategy(raw.strip())
        if outcome.ok:
            outcome.attempts = attempts
            return outcome
        attempts.append(f"{outcome.strategy}: {outcome.error}")
    return ParseOutcome("none", error="; ".join(attempts), attempts=attempts)


# Legacy codes are either a bare order id or ORDER_<orderId>_<timestampMs>.
_SIMPLE_CODE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_\-.:]{0,127}$")
_ORDER_CODE = re.compile(r"^ORDER_(?P<order_id>.+)_(?P<timestamp>\d+)$")


def parse_simple_code(raw: str) -> Optional[SimpleScan]:
    """Interpret raw text as a legacy unsigned lookup key.

    Anything that decodes to a JSON object is rejected so that a broken
    signed payload is never downgraded to the unsigned path.
    """
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not _SIMPLE_CODE.match(text):
        return None
    if isinstance(decode_json(text), dict):
        return None
    return SimpleScan(lookup_key=text)


def build_simple_code(order_id: str, timestamp_ms: int) -> str:
    return f"ORDER_{order_id}_{timestamp_ms}"


def order_id_from_simple_code(lookup_key: str) -> str:
    """Strip the ORDER_<id>_<ts> wrapper if present."""
    match = _ORDER_CODE.match(lookup_key)
    return match.group("order_id") if match else lookup_key
