"""Exceptions raised at the I/O seams of the service."""

from __future__ import annotations


class OrderNotFoundError(LookupError):
    """The order does not exist or is not addressable by the caller's tenant."""

    def __init__(self, order_ref: str, tenant_id: str | None = None) -> None:
        self.order_ref = order_ref
        self.tenant_id = tenant_id
        super().__init__(f"Order '{order_ref}' not found")


class StoreUnavailableError(RuntimeError):
    """The backend record store is not configured or could not be queried."""


class RouteUnavailableError(ConnectionError):
    """The routing backend could not produce a planned route."""


class SigningError(RuntimeError):
    """A QR signature could not be produced."""
