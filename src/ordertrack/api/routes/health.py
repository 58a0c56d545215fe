"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings
from ...services.qr.models import QRProtocolConfig

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_osrm_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.routing.osrm_client import check_health as osrm_health_check
    return osrm_health_check


@router.get("/health/osrm", status_code=status.HTTP_200_OK)
def health_osrm() -> dict:
    if not settings.osrm_base_url:
        return {"status": "not_configured", "osrm_base_url": None}
    healthy = _get_osrm_health_check()(settings.osrm_base_url)
    return {"status": "ok" if healthy else "unreachable", "osrm_base_url": settings.osrm_base_url}


@router.get("/health/qr", status_code=status.HTTP_200_OK)
def health_qr() -> dict:
    """Report how QR signing is wired, without ever exposing the secret."""
    config = QRProtocolConfig.from_settings(settings)
    if config.has_secret:
        signing = "local"
    elif config.signing_endpoint_url:
        signing = "remote"
    else:
        signing = "unavailable"
    return {
        "environment": settings.environment,
        "secret_configured": config.has_secret,
        "signing": signing,
        "protocol_version": config.supported_version,
        "unsigned_allowed": settings.environment == "development" and settings.qr_allow_unsigned_in_development,
    }
