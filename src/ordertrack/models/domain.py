"""Domain models for orders and live tracking."""

from dataclasses import dataclass, field
from typing import Literal, Optional

LatLng = tuple[float, float]
SpeedTrend = Literal["increasing", "decreasing", "stable"]
Confidence = Literal["high", "medium", "low"]


@dataclass(slots=True)
class Order:
    """An order record as returned by the backend store."""

    id: str
    tenant_id: str
    order_number: Optional[str]
    status: str
    assigned_driver_id: Optional[str] = None
    loading_point: Optional[LatLng] = None
    unloading_point: Optional[LatLng] = None
    raw: dict = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class LocationSample:
    """A single device fix. Timestamps are milliseconds since epoch."""

    lat: float
    lng: float
    timestamp_ms: int

    @property
    def position(self) -> LatLng:
        return (self.lat, self.lng)


@dataclass(slots=True)
class RouteProgress:
    progress_percentage: float
    completed_distance_meters: float
    remaining_distance_meters: float
    total_distance_meters: float
    deviation_meters: float
    is_on_route: bool
    completed_path: list[LatLng]
    remaining_path: list[LatLng]


@dataclass(slots=True)
class ETAEstimate:
    remaining_duration_seconds: float
    estimated_arrival_ms: int
    current_speed_kmh: float
    average_speed_kmh: float
    speed_trend: SpeedTrend
    confidence: Confidence
    sample_count: int


@dataclass(slots=True)
class TrackingSnapshot:
    """Progress and ETA for one trip at the moment of the latest sample."""

    trip_id: str
    progress: RouteProgress
    eta: ETAEstimate
    heading_degrees: Optional[float]
    heading_cardinal: Optional[str]
    route_available: bool
    at_destination: bool
    last_sample: LocationSample
