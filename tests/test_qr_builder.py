import json

import httpx
import pytest
from pydantic import SecretStr

from src.ordertrack.errors import SigningError
from src.ordertrack.services.qr.builder import QRPayloadBuilder, build_signer, serialize
from src.ordertrack.services.qr.codec import decode_json
from src.ordertrack.services.qr.models import MS_PER_HOUR, QRProtocolConfig
from src.ordertrack.services.qr.remote import RemoteSigner
from src.ordertrack.services.qr.signer import LocalSigner, canonical_message, sign
from src.ordertrack.services.qr.validator import QRValidator

SECRET = "test-secret"
NOW = 1_700_000_000_000


def _config(**overrides) -> QRProtocolConfig:
    values = {"secret": SecretStr(SECRET)}
    values.update(overrides)
    return QRProtocolConfig(**values)


class RecordingSigner:
    def __init__(self):
        self.calls = []

    def sign_fields(self, order_id, timestamp, tenant_id, order_number=None):
        self.calls.append((order_id, timestamp, tenant_id, order_number))
        return sign(SECRET, canonical_message(order_id, timestamp, tenant_id, order_number))


def test_create_payload_signs_the_embedded_timestamp() -> None:
    signer = RecordingSigner()
    builder = QRPayloadBuilder(_config(), signer, clock=lambda: NOW)

    payload = builder.create_payload("ord-1", "tenant-9", order_number="ORD-1001")

    assert signer.calls == [("ord-1", NOW, "tenant-9", "ORD-1001")]
    assert payload.timestamp == NOW
    assert payload.expires_at == NOW + 24 * MS_PER_HOUR
    assert payload.version == "1"
    assert payload.signature == sign(SECRET, "ord-1.1700000000000.tenant-9.ORD-1001")


def test_create_payload_honours_expiration_hours() -> None:
    builder = QRPayloadBuilder(_config(), LocalSigner(SECRET), clock=lambda: NOW)

    payload = builder.create_payload("ord-1", "tenant-9", expiration_hours=2)

    assert payload.expires_at == NOW + 2 * MS_PER_HOUR
    assert payload.order_number is None


@pytest.mark.parametrize("hours", [0, -1])
def test_create_payload_rejects_non_positive_expiration(hours) -> None:
    builder = QRPayloadBuilder(_config(), LocalSigner(SECRET), clock=lambda: NOW)
    with pytest.raises(ValueError):
        builder.create_payload("ord-1", "tenant-9", expiration_hours=hours)


def test_create_payload_requires_ids() -> None:
    builder = QRPayloadBuilder(_config(), LocalSigner(SECRET), clock=lambda: NOW)
    with pytest.raises(ValueError):
        builder.create_payload("", "tenant-9")
    with pytest.raises(ValueError):
        builder.create_payload("ord-1", "")


def test_serialize_omits_absent_fields_and_keeps_metadata_unsigned() -> None:
    builder = QRPayloadBuilder(_config(), LocalSigner(SECRET), clock=lambda: NOW)
    payload = builder.create_payload("ord-1", "tenant-9", metadata={"customerName": "Acme"})

    wire = decode_json(serialize(payload))

    assert wire == {
        "orderId": "ord-1",
        "tenantId": "tenant-9",
        "timestamp": NOW,
        "signature": payload.signature,
        "expiresAt": NOW + 24 * MS_PER_HOUR,
        "version": "1",
        "metadata": {"customerName": "Acme"},
    }
    assert payload.signature == sign(SECRET, "ord-1.1700000000000.tenant-9.")


def test_build_signer_prefers_local_secret() -> None:
    assert isinstance(build_signer(_config()), LocalSigner)
    remote = build_signer(_config(secret=None, signing_endpoint_url="https://sign.example.com/qr"))
    assert isinstance(remote, RemoteSigner)
    with pytest.raises(SigningError):
        build_signer(_config(secret=None))


def _remote(monkeypatch, handler, **kwargs) -> RemoteSigner:
    signer = RemoteSigner(
        endpoint_url="https://sign.example.com/qr",
        api_key=kwargs.pop("api_key", None),
        max_retries=kwargs.pop("max_retries", 0),
        backoff_seconds=0,
    )
    monkeypatch.setattr(
        signer, "_get_client", lambda: httpx.Client(transport=httpx.MockTransport(handler))
    )
    return signer


def test_remote_signer_round_trips_with_validator(monkeypatch) -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen.append(body)
        message = canonical_message(body["orderId"], body["timestamp"], body["tenantId"], body.get("orderNumber"))
        return httpx.Response(200, json={"signature": sign(SECRET, message)})

    signer = _remote(monkeypatch, handler)
    builder = QRPayloadBuilder(_config(secret=None), signer, clock=lambda: NOW)
    payload = builder.create_payload("ord-1", "tenant-9", order_number="ORD-1001")

    assert seen == [{"orderId": "ord-1", "timestamp": NOW, "tenantId": "tenant-9", "orderNumber": "ORD-1001"}]
    result = QRValidator(_config(), clock=lambda: NOW).validate(serialize(payload), "tenant-9")
    assert result.is_valid


def test_remote_signer_omits_missing_order_number(monkeypatch) -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"signature": "a" * 64})

    _remote(monkeypatch, handler).sign_fields("ord-1", NOW, "tenant-9")

    assert "orderNumber" not in seen[0]


def test_remote_signer_does_not_retry_client_errors(monkeypatch) -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(401, json={"error": "Unauthorized"})

    signer = _remote(monkeypatch, handler, max_retries=3)
    with pytest.raises(SigningError):
        signer.sign_fields("ord-1", NOW, "tenant-9")
    assert len(calls) == 1


def test_remote_signer_retries_server_errors(monkeypatch) -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json={"signature": "b" * 64})

    signer = _remote(monkeypatch, handler, max_retries=2)
    assert signer.sign_fields("ord-1", NOW, "tenant-9") == "b" * 64
    assert len(calls) == 2


def test_remote_signer_rejects_invalid_signature(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"signature": "not-hex"})

    with pytest.raises(SigningError):
        _remote(monkeypatch, handler).sign_fields("ord-1", NOW, "tenant-9")


def test_remote_signer_wraps_network_errors(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SigningError):
        _remote(monkeypatch, handler).sign_fields("ord-1", NOW, "tenant-9")
