"""Per-trip tracking sessions."""

from __future__ import annotations

import logging
import threading
from typing import Optional, Protocol, Sequence

from ...clock import Clock, now_ms
from ...errors import RouteUnavailableError
from ...models.domain import LatLng, LocationSample, TrackingSnapshot
from ..geospatial import bearing_degrees, cardinal_direction, is_within_geofence
from ..routing.models import PlannedRoute
from .eta import ETACalculator
from .models import TrackingConfig
from .progress import RouteProgressEngine

logger = logging.getLogger(__name__)


class RoutePlanner(Protocol):
    def planned_route(self, origin: LatLng, destination: LatLng) -> PlannedRoute:
        ...


class TrackingSession:
    """Progress and ETA state for a single active trip."""

    def __init__(
        self,
        trip_id: str,
        tenant_id: str,
        *,
        planned_route: Optional[Sequence[LatLng]] = None,
        destination: Optional[LatLng] = None,
        config: TrackingConfig | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self.trip_id = trip_id
        self.tenant_id = tenant_id
        self.planned_route = list(planned_route) if planned_route else None
        self.destination = destination
        self.config = config or TrackingConfig()
        self.clock = clock
        self.engine = RouteProgressEngine(self.config)
        self.calculator = ETACalculator(self.config)
        self._lock = threading.Lock()
        self._closed = False

    @property
    def route_available(self) -> bool:
        return bool(self.planned_route) and len(self.planned_route) >= 2

    @property
    def closed(self) -> bool:
        return self._closed

    def ingest(self, sample: LocationSample) -> bool:
        with self._lock:
            if self._closed:
                raise RuntimeError(f"Trip {self.trip_id} has ended.")
            return self.engine.add_location_sample(sample)

    def snapshot(self) -> TrackingSnapshot:
        with self._lock:
            samples = self.engine.samples
            if not samples:
                raise ValueError("No location samples recorded for this trip.")
            progress = self.engine.compute_progress(self.planned_route, self.destination)
            eta = self.calculator.estimate(samples, progress, self.clock())

        heading = None
        if len(samples) >= 2 and samples[-2].position != samples[-1].position:
            heading = bearing_degrees(*samples[-2].position, *samples[-1].position)

        return TrackingSnapshot(
            trip_id=self.trip_id,
            progress=progress,
            eta=eta,
            heading_degrees=heading,
            heading_cardinal=cardinal_direction(heading) if heading is not None else None,
            route_available=self.route_available,
            at_destination=self.destination is not None
            and is_within_geofence(
                samples[-1].position, self.destination, self.config.on_route_threshold_meters
            ),
            last_sample=samples[-1],
        )

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self.engine.clear()


class TrackingRegistry:
    """Active sessions keyed by (tenant_id, trip_id); nothing is shared across trips or tenants."""

    def __init__(self, config: TrackingConfig | None = None, clock: Clock = now_ms) -> None:
        self.config = config or TrackingConfig()
        self.clock = clock
        self._sessions: dict[tuple[str, str], TrackingSession] = {}
        self._lock = threading.Lock()

    def start_trip(
        self,
        trip_id: str,
        tenant_id: str,
        *,
        origin: Optional[LatLng] = None,
        destination: Optional[LatLng] = None,
        planned_route: Optional[Sequence[LatLng]] = None,
        planner: Optional[RoutePlanner] = None,
    ) -> TrackingSession:
        route = list(planned_route) if planned_route else None
        if route is None and planner is not None and origin and destination:
            try:
                route = planner.planned_route(origin, destination).path
            except RouteUnavailableError as exc:
                logger.warning(f"Trip {trip_id}: {exc}. Falling back to straight-line distance.")

        session = TrackingSession(
            trip_id,
            tenant_id,
            planned_route=route,
            destination=destination or (route[-1] if route else None),
            config=self.config,
            clock=self.clock,
        )
        with self._lock:
            previous = self._sessions.pop((tenant_id, trip_id), None)
            self._sessions[(tenant_id, trip_id)] = session
        if previous is not None:
            previous.close()
        logger.info(f"Started tracking trip {trip_id} (tenant {tenant_id}, route available: {session.route_available})")
        return session

    def get(self, trip_id: str, tenant_id: str) -> TrackingSession:
        with self._lock:
            session = self._sessions.get((tenant_id, trip_id))
        if session is None:
            raise KeyError(trip_id)
        return session

    def end_trip(self, trip_id: str, tenant_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop((tenant_id, trip_id), None)
        if session is None:
            return False
        session.close()
        logger.info(f"Ended tracking trip {trip_id} (tenant {tenant_id})")
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
