"""URL-safe base64 and JSON helpers for QR payloads.

None of these functions raise: failures are logged and reported through
sentinel values so callers can fall through to another parse strategy.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def encode_base64url(text: str) -> str:
    """Encode text as unpadded URL-safe base64. Returns "" on failure."""
    if not isinstance(text, str):
        return ""
    try:
        encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    except UnicodeEncodeError as exc:
        logger.warning(f"Base64 encode failed: {exc}")
        return ""
    return encoded.replace("+", "-").replace("/", "_").rstrip("=")


def _looks_like_url(text: str) -> bool:
    return text.startswith("http") or "://" in text


def decode_base64url(text: str) -> str:
    """Decode URL-safe (or standard) base64 text.

    URL-looking input is returned unchanged, as is any input that does not
    decode to UTF-8 text.
    """
    if not isinstance(text, str) or not text:
        return ""
    if _looks_like_url(text):
        return text

    cleaned = text.strip().replace("-", "+").replace("_", "/").rstrip("=")
    padded = cleaned + "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(padded, validate=True).decode("utf-8")
    except (binascii.Error, ValueError) as exc:
        logger.debug(f"Base64 decode failed, returning input unchanged: {exc}")
        return text


def encode_json(obj: Any) -> str:
    """Serialise an object to compact JSON and base64url-encode it."""
    try:
        serialized = json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        logger.warning(f"Base64 JSON encode failed: {exc}")
        return ""
    return encode_base64url(serialized)


def decode_json(text: str) -> Any | None:
    """Inverse of :func:`encode_json`. Returns None when the input is not decodable JSON."""
    decoded = decode_base64url(text)
    if not decoded:
        return None
    try:
        return json.loads(decoded)
    except (ValueError, RecursionError, TypeError) as exc:
        logger.debug(f"Base64 JSON decode failed: {exc}")
        return None
