"""Live tracking request/response schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class LatLngModel(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lng)


class StartTripRequest(BaseModel):
    tenant_id: str = Field(..., min_length=1)
    order_id: Optional[str] = Field(
        default=None, description="When set, origin/destination default to the order's loading/unloading points."
    )
    origin: Optional[LatLngModel] = None
    destination: Optional[LatLngModel] = None
    planned_route: Optional[List[LatLngModel]] = None


class StartTripResponse(BaseModel):
    trip_id: str
    route_available: bool
    planned_route_points: int


class LocationSampleModel(BaseModel):
    # Range checks happen in the engine so bad fixes are dropped, not fatal to the batch.
    lat: float
    lng: float
    timestamp_ms: int


class LocationBatchRequest(BaseModel):
    tenant_id: str = Field(..., min_length=1)
    samples: List[LocationSampleModel] = Field(..., min_length=1)


class LocationBatchResponse(BaseModel):
    accepted: int
    rejected: int


class RouteProgressModel(BaseModel):
    progress_percentage: float
    completed_distance_meters: float
    remaining_distance_meters: float
    total_distance_meters: float
    deviation_meters: float
    is_on_route: bool
    completed_path: List[List[float]]
    remaining_path: List[List[float]]


class ETAModel(BaseModel):
    remaining_duration_seconds: float
    estimated_arrival_ms: int
    current_speed_kmh: float
    average_speed_kmh: float
    speed_trend: Literal["increasing", "decreasing", "stable"]
    confidence: Literal["high", "medium", "low"]
    sample_count: int


class TrackingSnapshotResponse(BaseModel):
    trip_id: str
    route_available: bool
    at_destination: bool
    heading_degrees: Optional[float] = None
    heading_cardinal: Optional[str] = None
    last_sample: LocationSampleModel
    progress: RouteProgressModel
    eta: ETAModel
