"""API routers."""

from . import health, qr, tracking

__all__ = ["health", "qr", "tracking"]
