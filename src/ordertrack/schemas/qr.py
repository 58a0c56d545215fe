"""QR request/response schemas."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel


class SignatureRequest(BaseModel):
    """Body of the remote signing endpoint; camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_id: str = Field(..., min_length=1)
    timestamp: StrictInt
    tenant_id: str = Field(..., min_length=1)
    order_number: Optional[str] = None


class SignatureResponse(BaseModel):
    signature: str


class GenerateQRRequest(BaseModel):
    order_id: str = Field(..., min_length=1)
    tenant_id: str = Field(..., min_length=1)
    order_number: Optional[str] = None
    mode: Literal["signed", "simple"] = "signed"
    expiration_hours: Optional[float] = Field(default=None, gt=0)
    metadata: Optional[Dict[str, Any]] = Field(
        default=None, description="Display-only data; not covered by the signature."
    )
    include_image: bool = False


class GenerateQRResponse(BaseModel):
    mode: Literal["signed", "simple"]
    qr_code_data: str
    payload: Optional[Dict[str, Any]] = None
    image_data_url: Optional[str] = None


class ValidateQRRequest(BaseModel):
    qr_code_data: str
    expected_tenant_id: Optional[str] = None


class ValidateQRResponse(BaseModel):
    is_valid: bool
    error: Optional[str] = None
    error_code: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
    warnings: List[str] = Field(default_factory=list)


class ScanRequest(BaseModel):
    qr_code_data: str
    tenant_id: str = Field(..., min_length=1)
    user_id: Optional[str] = None
    role: Literal["driver", "dispatcher", "admin"] = "driver"


class OrderModel(BaseModel):
    id: str
    tenant_id: str
    order_number: Optional[str] = None
    status: str
    assigned_driver_id: Optional[str] = None
    loading_point: Optional[List[float]] = None
    unloading_point: Optional[List[float]] = None


class ScanResponse(BaseModel):
    success: bool
    kind: Optional[Literal["signed", "simple"]] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    previous_status: Optional[str] = None
    order: Optional[OrderModel] = None
    warnings: List[str] = Field(default_factory=list)
