"""Route progress from a rolling window of device locations."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Optional, Sequence

from ...models.domain import LatLng, LocationSample, RouteProgress
from ..geospatial import haversine_m, is_valid_lat_lng, project_onto_segment
from .models import TrackingConfig

logger = logging.getLogger(__name__)


class RouteProgressEngine:
    """Owns the location window for one trip.

    Samples must arrive in strictly increasing timestamp order; duplicates,
    out-of-order and out-of-range fixes are dropped.
    """

    def __init__(self, config: TrackingConfig | None = None) -> None:
        self.config = config or TrackingConfig()
        self._samples: deque[LocationSample] = deque(maxlen=self.config.max_samples)
        self._lock = threading.Lock()

    @property
    def samples(self) -> tuple[LocationSample, ...]:
        with self._lock:
            return tuple(self._samples)

    @property
    def latest(self) -> Optional[LocationSample]:
        with self._lock:
            return self._samples[-1] if self._samples else None

    def add_location_sample(self, sample: LocationSample) -> bool:
        if not is_valid_lat_lng(sample.lat, sample.lng):
            logger.warning(f"Dropping location sample with invalid coordinates: {sample.lat}, {sample.lng}")
            return False

        with self._lock:
            if self._samples and sample.timestamp_ms <= self._samples[-1].timestamp_ms:
                logger.debug(
                    f"Dropping out-of-order sample at {sample.timestamp_ms} "
                    f"(latest {self._samples[-1].timestamp_ms})"
                )
                return False
            self._samples.append(sample)
            cutoff = sample.timestamp_ms - self.config.max_age_ms
            while self._samples and self._samples[0].timestamp_ms < cutoff:
                self._samples.popleft()
        return True

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()

    def compute_progress(
        self, planned_route: Sequence[LatLng] | None, destination: LatLng | None = None
    ) -> RouteProgress:
        """Snap the latest sample onto the planned route.

        Without a usable route (fewer than two points) only the straight-line
        distance to the destination (or the single route point) is reported.
        """
        latest = self.latest
        if latest is None:
            raise ValueError("No location samples recorded for this trip.")
        position = latest.position

        route = [tuple(point) for point in planned_route or []]
        if len(route) < 2:
            target = destination or (route[0] if route else None)
            return _straight_line_progress(position, target)

        cumulative = [0.0]
        for i in range(1, len(route)):
            cumulative.append(cumulative[-1] + haversine_m(route[i - 1], route[i]))
        total = cumulative[-1]

        index = min(
            range(len(route)),
            key=lambda i: (route[i][0] - position[0]) ** 2 + (route[i][1] - position[1]) ** 2,
        )

        completed = cumulative[index]
        snap_point: LatLng = route[index]
        completed_path = route[: index + 1]
        remaining_path = route[index:]

        forward = 0.0
        if index < len(route) - 1:
            forward, projected = project_onto_segment(position, route[index], route[index + 1])
            if forward > 0.0:
                completed += forward * (cumulative[index + 1] - cumulative[index])
                snap_point = projected
                completed_path = route[: index + 1] + [projected]
                remaining_path = [projected] + route[index + 1 :]
        if forward == 0.0 and index > 0:
            backward, projected = project_onto_segment(position, route[index - 1], route[index])
            if backward < 1.0:
                completed = cumulative[index - 1] + backward * (cumulative[index] - cumulative[index - 1])
                snap_point = projected
                completed_path = route[:index] + [projected]
                remaining_path = [projected] + route[index:]

        completed = min(max(completed, 0.0), total)
        deviation = haversine_m(position, snap_point)
        percentage = 100.0 * completed / total if total > 0 else 0.0

        return RouteProgress(
            progress_percentage=min(max(percentage, 0.0), 100.0),
            completed_distance_meters=completed,
            remaining_distance_meters=total - completed,
            total_distance_meters=total,
            deviation_meters=deviation,
            is_on_route=deviation < self.config.on_route_threshold_meters,
            completed_path=completed_path,
            remaining_path=remaining_path,
        )


def _straight_line_progress(position: LatLng, target: LatLng | None) -> RouteProgress:
    remaining = haversine_m(position, target) if target else 0.0
    return RouteProgress(
        progress_percentage=0.0,
        completed_distance_meters=0.0,
        remaining_distance_meters=remaining,
        total_distance_meters=remaining,
        deviation_meters=0.0,
        is_on_route=False,
        completed_path=[],
        remaining_path=[position, target] if target else [position],
    )
