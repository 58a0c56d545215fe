"""Live tracking endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from ...config import settings
from ...data.orders_repository import OrderResolver
from ...errors import OrderNotFoundError, StoreUnavailableError
from ...models.domain import LocationSample
from ...schemas.tracking import (
    ETAModel,
    LocationBatchRequest,
    LocationBatchResponse,
    LocationSampleModel,
    RouteProgressModel,
    StartTripRequest,
    StartTripResponse,
    TrackingSnapshotResponse,
)
from ...services.routing.osrm_client import OSRMClient
from ...services.tracking.models import TrackingConfig
from ...services.tracking.session import RoutePlanner, TrackingRegistry, TrackingSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tracking", tags=["tracking"])

registry = TrackingRegistry(TrackingConfig.from_settings(settings))


def get_planner() -> RoutePlanner | None:
    if not settings.osrm_base_url:
        return None
    return OSRMClient()


def get_resolver() -> OrderResolver:
    return OrderResolver()


def _get_session(trip_id: str, tenant_id: str) -> TrackingSession:
    try:
        return registry.get(trip_id, tenant_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"No active tracking session for trip '{trip_id}'"
        ) from exc


@router.post("/{trip_id}/start", response_model=StartTripResponse, status_code=status.HTTP_201_CREATED)
def start_trip(trip_id: str, payload: StartTripRequest) -> StartTripResponse:
    origin = payload.origin.as_tuple() if payload.origin else None
    destination = payload.destination.as_tuple() if payload.destination else None

    if payload.order_id and (origin is None or destination is None):
        try:
            order = get_resolver().fetch_order(payload.order_id, payload.tenant_id)
        except OrderNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        except StoreUnavailableError as exc:
            logger.exception(f"Order store unavailable while starting trip {trip_id}: {exc}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Order store unavailable"
            ) from exc
        origin = origin or order.loading_point
        destination = destination or order.unloading_point

    planned_route = [point.as_tuple() for point in payload.planned_route] if payload.planned_route else None
    session = registry.start_trip(
        trip_id,
        payload.tenant_id,
        origin=origin,
        destination=destination,
        planned_route=planned_route,
        planner=get_planner() if planned_route is None else None,
    )
    return StartTripResponse(
        trip_id=trip_id,
        route_available=session.route_available,
        planned_route_points=len(session.planned_route or []),
    )


@router.post("/{trip_id}/locations", response_model=LocationBatchResponse, status_code=status.HTTP_200_OK)
def add_locations(trip_id: str, payload: LocationBatchRequest) -> LocationBatchResponse:
    session = _get_session(trip_id, payload.tenant_id)
    accepted = 0
    # Samples are ingested one at a time in arrival order.
    for sample in payload.samples:
        try:
            ok = session.ingest(LocationSample(lat=sample.lat, lng=sample.lng, timestamp_ms=sample.timestamp_ms))
        except RuntimeError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        accepted += int(ok)
    return LocationBatchResponse(accepted=accepted, rejected=len(payload.samples) - accepted)


@router.get("/{trip_id}", response_model=TrackingSnapshotResponse, status_code=status.HTTP_200_OK)
def get_snapshot(
    trip_id: str,
    tenant_id: str = Query(..., description="Tenant that owns the trip"),
) -> TrackingSnapshotResponse:
    session = _get_session(trip_id, tenant_id)
    try:
        snapshot = session.snapshot()
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    progress = snapshot.progress
    eta = snapshot.eta
    return TrackingSnapshotResponse(
        trip_id=snapshot.trip_id,
        route_available=snapshot.route_available,
        at_destination=snapshot.at_destination,
        heading_degrees=snapshot.heading_degrees,
        heading_cardinal=snapshot.heading_cardinal,
        last_sample=LocationSampleModel(
            lat=snapshot.last_sample.lat,
            lng=snapshot.last_sample.lng,
            timestamp_ms=snapshot.last_sample.timestamp_ms,
        ),
        progress=RouteProgressModel(
            progress_percentage=progress.progress_percentage,
            completed_distance_meters=progress.completed_distance_meters,
            remaining_distance_meters=progress.remaining_distance_meters,
            total_distance_meters=progress.total_distance_meters,
            deviation_meters=progress.deviation_meters,
            is_on_route=progress.is_on_route,
            completed_path=[list(point) for point in progress.completed_path],
            remaining_path=[list(point) for point in progress.remaining_path],
        ),
        eta=ETAModel(
            remaining_duration_seconds=eta.remaining_duration_seconds,
            estimated_arrival_ms=eta.estimated_arrival_ms,
            current_speed_kmh=eta.current_speed_kmh,
            average_speed_kmh=eta.average_speed_kmh,
            speed_trend=eta.speed_trend,
            confidence=eta.confidence,
            sample_count=eta.sample_count,
        ),
    )


@router.delete("/{trip_id}", status_code=status.HTTP_200_OK)
def end_trip(
    trip_id: str,
    tenant_id: str = Query(..., description="Tenant that owns the trip"),
) -> dict:
    if not registry.end_trip(trip_id, tenant_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"No active tracking session for trip '{trip_id}'"
        )
    return {"success": True, "message": f"Tracking for trip {trip_id} ended"}
