"""Tenant-scoped order lookups against the Supabase ``orders`` table."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from ..db.supabase import get_supabase_client
from ..errors import OrderNotFoundError, StoreUnavailableError
from ..models.domain import LatLng, Order
from ..services.geospatial import parse_location
from ..services.qr.parser import order_id_from_simple_code

logger = logging.getLogger(__name__)


def _parse_point(row: dict, column: str) -> Optional[LatLng]:
    value = row.get(column)
    if value is None:
        return None
    try:
        return parse_location(value)
    except ValueError as e:
        logger.warning(f"Ignoring unparseable {column} on order {row.get('id')}: {e}")
        return None


def order_from_row(row: dict[str, Any]) -> Order:
    return Order(
        id=str(row["id"]),
        tenant_id=str(row["tenant_id"]),
        order_number=row.get("order_number"),
        status=str(row.get("status") or "pending"),
        assigned_driver_id=row.get("assigned_driver_id"),
        loading_point=_parse_point(row, "loading_point_location"),
        unloading_point=_parse_point(row, "unloading_point_location"),
        raw=row,
    )


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


class OrderResolver:
    """Fetches authoritative order records; every query is filtered by tenant."""

    def __init__(self, client: Any = None) -> None:
        self.client = client if client is not None else get_supabase_client()

    def _table(self, name: str):
        if self.client is None:
            raise StoreUnavailableError("Supabase is not configured.")
        return self.client.table(name)

    def _first(self, query, description: str) -> Optional[dict]:
        try:
            response = query.limit(1).execute()
        except Exception as e:
            raise StoreUnavailableError(f"Failed to query {description}: {e}") from e
        rows = response.data or []
        return rows[0] if rows else None

    def fetch_order(self, order_id: str, tenant_id: str) -> Order:
        row = self._first(
            self._table("orders").select("*").eq("id", order_id).eq("tenant_id", tenant_id),
            f"order {order_id}",
        )
        if row is None:
            raise OrderNotFoundError(order_id, tenant_id)
        return order_from_row(row)

    def find_by_lookup_key(self, lookup_key: str, tenant_id: str) -> Order:
        """Resolve a legacy simple-code key: an order id, ORDER_<id>_<ts>, or an order number."""
        order_id = order_id_from_simple_code(lookup_key)
        if _is_uuid(order_id):
            try:
                return self.fetch_order(order_id, tenant_id)
            except OrderNotFoundError:
                logger.debug(f"No order with id {order_id}; trying order number")

        row = self._first(
            self._table("orders").select("*").eq("order_number", lookup_key).eq("tenant_id", tenant_id),
            f"order number {lookup_key}",
        )
        if row is None:
            raise OrderNotFoundError(lookup_key, tenant_id)
        return order_from_row(row)

    def update_status(
        self, order: Order, new_status: str, driver_id: Optional[str] = None, notes: Optional[str] = None
    ) -> Order:
        now = datetime.now(timezone.utc).isoformat()
        changes: dict[str, Any] = {"status": new_status}
        if new_status == "picked_up":
            changes["actual_start_time"] = now
        elif new_status == "delivered":
            changes["actual_end_time"] = now

        try:
            response = (
                self._table("orders")
                .update(changes)
                .eq("id", order.id)
                .eq("tenant_id", order.tenant_id)
                .eq("status", order.status)
                .execute()
            )
            if not response.data:
                # Another scan moved the order first; report its current state without a second history row.
                logger.info(f"Order {order.id} already transitioned from {order.status}; skipping update")
                current = self._first(
                    self._table("orders").select("*").eq("id", order.id).eq("tenant_id", order.tenant_id),
                    f"order {order.id}",
                )
                return order_from_row(current) if current is not None else order

            self._table("status_updates").insert(
                {"order_id": order.id, "driver_id": driver_id, "status": new_status, "notes": notes}
            ).execute()
        except StoreUnavailableError:
            raise
        except Exception as e:
            raise StoreUnavailableError(f"Failed to update order {order.id}: {e}") from e

        logger.info(f"Order {order.id} moved from {order.status} to {new_status}")
        order.status = new_status
        order.raw = {**order.raw, **changes}
        return order
