"""QR image rendering."""

from __future__ import annotations

import base64
import io
from typing import Literal

import qrcode
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q

ErrorCorrection = Literal["L", "M", "Q", "H"]

_ERROR_CORRECTION = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}


def render_qr_png(
    data: str,
    *,
    error_correction: ErrorCorrection = "M",
    box_size: int = 8,
    border: int = 2,
) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=_ERROR_CORRECTION[error_correction],
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def render_qr_data_url(data: str, *, error_correction: ErrorCorrection = "M") -> str:
    encoded = base64.b64encode(render_qr_png(data, error_correction=error_correction)).decode("ascii")
    return f"data:image/png;base64,{encoded}"
