"""QR activation endpoints."""

from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, status

from ...clock import now_ms
from ...config import settings
from ...data.orders_repository import OrderResolver
from ...errors import SigningError, StoreUnavailableError
from ...models.domain import Order
from ...schemas.qr import (
    GenerateQRRequest,
    GenerateQRResponse,
    OrderModel,
    ScanRequest,
    ScanResponse,
    SignatureRequest,
    SignatureResponse,
    ValidateQRRequest,
    ValidateQRResponse,
)
from ...services.qr.builder import QRPayloadBuilder, build_signer, serialize
from ...services.qr.models import QRProtocolConfig
from ...services.qr.parser import build_simple_code
from ...services.qr.render import render_qr_data_url
from ...services.qr.signer import LocalSigner
from ...services.qr.validator import QRValidator, build_validator
from ...services.scanning import process_scan

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/qr", tags=["qr"])


def get_protocol_config() -> QRProtocolConfig:
    return QRProtocolConfig.from_settings(settings)


def get_validator() -> QRValidator:
    return build_validator(settings)


def get_resolver() -> OrderResolver:
    return OrderResolver()


def require_signing_key(
    authorization: str | None = Header(default=None),
    apikey: str | None = Header(default=None),
) -> None:
    """Only callers holding the signing API key may obtain signatures."""
    expected = settings.qr_signing_api_key
    if expected is None or not expected.get_secret_value():
        logger.error("Signing requested but QR_SIGNING_API_KEY is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server configuration error"
        )

    presented = apikey
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer":
            presented = token.strip()
    if not presented or not hmac.compare_digest(
        presented.encode("utf-8"), expected.get_secret_value().encode("utf-8")
    ):
        logger.warning("Rejected signing request with missing or invalid API key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid signing credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def _order_model(order: Order) -> OrderModel:
    return OrderModel(
        id=order.id,
        tenant_id=order.tenant_id,
        order_number=order.order_number,
        status=order.status,
        assigned_driver_id=order.assigned_driver_id,
        loading_point=list(order.loading_point) if order.loading_point else None,
        unloading_point=list(order.unloading_point) if order.unloading_point else None,
    )


@router.post(
    "/signature",
    response_model=SignatureResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_signing_key)],
)
def create_signature(payload: SignatureRequest) -> SignatureResponse:
    """Sign the canonical message for a payload tuple. Only served where the secret lives."""
    config = get_protocol_config()
    if not config.has_secret:
        logger.error("Signature requested but QR_CODE_SECRET is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server configuration error"
        )
    signer = LocalSigner(config.secret)
    signature = signer.sign_fields(payload.order_id, payload.timestamp, payload.tenant_id, payload.order_number)
    return SignatureResponse(signature=signature)


@router.post(
    "/generate",
    response_model=GenerateQRResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_signing_key)],
)
def generate(payload: GenerateQRRequest) -> GenerateQRResponse:
    if payload.mode == "simple":
        data = build_simple_code(payload.order_id, now_ms())
        image = render_qr_data_url(data, error_correction="M") if payload.include_image else None
        return GenerateQRResponse(mode="simple", qr_code_data=data, image_data_url=image)

    config = get_protocol_config()
    api_key = settings.qr_signing_api_key.get_secret_value()
    try:
        builder = QRPayloadBuilder(config, build_signer(config, api_key=api_key))
        qr_payload = builder.create_payload(
            payload.order_id,
            payload.tenant_id,
            order_number=payload.order_number,
            expiration_hours=payload.expiration_hours,
            metadata=payload.metadata,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SigningError as exc:
        logger.error(f"QR signing failed for order {payload.order_id}: {exc}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    data = serialize(qr_payload)
    image = render_qr_data_url(data, error_correction="H") if payload.include_image else None
    return GenerateQRResponse(mode="signed", qr_code_data=data, payload=qr_payload.to_wire(), image_data_url=image)


@router.post("/validate", response_model=ValidateQRResponse, status_code=status.HTTP_200_OK)
def validate(payload: ValidateQRRequest) -> ValidateQRResponse:
    result = get_validator().validate(payload.qr_code_data, payload.expected_tenant_id)
    return ValidateQRResponse(
        is_valid=result.is_valid,
        error=result.error,
        error_code=result.error_code.value if result.error_code else None,
        payload=result.payload.to_wire() if result.payload and result.is_valid else None,
        warnings=result.warnings,
    )


@router.post("/scan", response_model=ScanResponse, status_code=status.HTTP_200_OK)
def scan(payload: ScanRequest) -> ScanResponse:
    try:
        outcome = process_scan(
            payload.qr_code_data,
            tenant_id=payload.tenant_id,
            validator=get_validator(),
            resolver=get_resolver(),
            user_id=payload.user_id,
            role=payload.role,
            allow_simple=settings.qr_allow_simple_codes,
        )
    except StoreUnavailableError as exc:
        logger.exception(f"Order store unavailable during scan: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Order store unavailable"
        ) from exc

    return ScanResponse(
        success=outcome.success,
        kind=outcome.kind,
        error=outcome.error,
        error_code=outcome.error_code.value if outcome.error_code else None,
        previous_status=outcome.previous_status,
        order=_order_model(outcome.order) if outcome.order else None,
        warnings=outcome.warnings,
    )
