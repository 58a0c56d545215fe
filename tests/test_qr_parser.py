import json

from src.ordertrack.services.qr.codec import encode_json
from src.ordertrack.services.qr.parser import (
    ParseOutcome,
    build_simple_code,
    order_id_from_simple_code,
    parse_base64_json,
    parse_payload,
    parse_plain_json,
    parse_simple_code,
)

WIRE = {"orderId": "ord-1", "tenantId": "tenant-9", "timestamp": 1700000000000, "signature": "ab" * 32}


def test_plain_json_strategy() -> None:
    outcome = parse_plain_json(json.dumps(WIRE))
    assert outcome.ok
    assert outcome.payload.order_id == "ord-1"
    assert not parse_plain_json("not json").ok


def test_base64_strategy() -> None:
    outcome = parse_base64_json(encode_json(WIRE))
    assert outcome.ok
    assert outcome.payload.tenant_id == "tenant-9"


def test_parse_payload_tries_strategies_in_order() -> None:
    plain = parse_payload(json.dumps(WIRE))
    encoded = parse_payload(encode_json(WIRE))

    assert plain.strategy == "json"
    assert plain.attempts == []
    assert encoded.strategy == "base64-json"
    assert encoded.attempts == ["json: not JSON"]


def test_parse_payload_reports_every_failed_attempt() -> None:
    outcome = parse_payload(encode_json({"orderId": "ord-1"}))
    assert not outcome.ok
    assert len(outcome.attempts) == 2
    assert "invalid fields" in outcome.error


def test_parse_payload_uses_custom_strategies() -> None:
    def always_fails(raw: str) -> ParseOutcome:
        return ParseOutcome("custom", error="nope")

    outcome = parse_payload(json.dumps(WIRE), strategies=(always_fails,))
    assert not outcome.ok
    assert outcome.attempts == ["custom: nope"]


def test_parse_payload_rejects_empty_input() -> None:
    assert parse_payload("").error == "empty input"
    assert parse_payload(None).error == "empty input"  # type: ignore[arg-type]


def test_simple_codes() -> None:
    code = build_simple_code("7d9f6a52-3c1b-4e0f-9a55-2f6a1c0b9e11", 1700000000000)

    assert code == "ORDER_7d9f6a52-3c1b-4e0f-9a55-2f6a1c0b9e11_1700000000000"
    assert parse_simple_code(code).lookup_key == code
    assert parse_simple_code(code).kind == "simple"
    assert order_id_from_simple_code(code) == "7d9f6a52-3c1b-4e0f-9a55-2f6a1c0b9e11"
    assert order_id_from_simple_code("ORD-1001") == "ORD-1001"


def test_simple_code_rejects_signed_payload_text() -> None:
    assert parse_simple_code(encode_json(WIRE)) is None
    assert parse_simple_code(encode_json({"a": 1})) is None
    assert parse_simple_code(json.dumps(WIRE)) is None


def test_simple_code_rejects_arbitrary_text() -> None:
    assert parse_simple_code("has spaces") is None
    assert parse_simple_code("") is None
    assert parse_simple_code("x" * 200) is None


def test_plain_json_strategy_rejects_oversized_integer() -> None:
    outcome = parse_plain_json("1" * 5000)
    assert not outcome.ok
    assert outcome.error == "not JSON"


def test_plain_json_strategy_rejects_deeply_nested_arrays() -> None:
    outcome = parse_plain_json("[" * 100000 + "]" * 100000)
    assert not outcome.ok
    assert outcome.error == "not JSON"


def test_parse_payload_survives_hostile_json() -> None:
    assert not parse_payload("1" * 5000).ok
    assert not parse_payload("[" * 100000 + "]" * 100000).ok
