"""ETA estimation from the location window."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import Confidence, ETAEstimate, LocationSample, RouteProgress, SpeedTrend
from ..geospatial import haversine_m
from .models import TrackingConfig


class ETACalculator:
    def __init__(self, config: TrackingConfig | None = None) -> None:
        self.config = config or TrackingConfig()

    def _segment_speed_kmh(self, first: LocationSample, second: LocationSample) -> float | None:
        """Speed between two fixes, or None when the interval is too short or the speed implausible."""
        interval_ms = second.timestamp_ms - first.timestamp_ms
        if interval_ms < self.config.min_interval_ms:
            return None
        speed = haversine_m(first.position, second.position) / (interval_ms / 1000.0) * 3.6
        if speed > self.config.max_plausible_speed_kmh:
            return None
        return speed

    def current_speed_kmh(self, samples: Sequence[LocationSample]) -> float | None:
        if len(samples) < 2:
            return None
        return self._segment_speed_kmh(samples[-2], samples[-1])

    def average_speed_kmh(self, samples: Sequence[LocationSample]) -> float:
        speeds = [
            speed
            for speed in (self._segment_speed_kmh(samples[i - 1], samples[i]) for i in range(1, len(samples)))
            if speed is not None
        ]
        return sum(speeds) / len(speeds) if speeds else 0.0

    def speed_trend(self, current: float, average: float) -> SpeedTrend:
        tolerance = self.config.speed_trend_tolerance_kmh
        if current > average + tolerance:
            return "increasing"
        if current < average - tolerance:
            return "decreasing"
        return "stable"

    def confidence(self, sample_count: int, is_on_route: bool, reliable_speed: bool) -> Confidence:
        if not reliable_speed:
            return "low"
        enough_samples = sample_count >= self.config.min_samples_for_confidence
        if enough_samples and is_on_route:
            return "high"
        if enough_samples or is_on_route:
            return "medium"
        return "low"

    def estimate(
        self, samples: Sequence[LocationSample], progress: RouteProgress, now_ms: int
    ) -> ETAEstimate:
        current = self.current_speed_kmh(samples)
        reliable_speed = current is not None
        current_speed = current if current is not None else 0.0
        average_speed = self.average_speed_kmh(samples)

        effective_kmh = max(average_speed, self.config.floor_speed_kmh)
        remaining_seconds = progress.remaining_distance_meters / (effective_kmh / 3.6)

        return ETAEstimate(
            remaining_duration_seconds=remaining_seconds,
            estimated_arrival_ms=now_ms + round(remaining_seconds * 1000),
            current_speed_kmh=current_speed,
            average_speed_kmh=average_speed,
            speed_trend=self.speed_trend(current_speed, average_speed),
            confidence=self.confidence(len(samples), progress.is_on_route, reliable_speed),
            sample_count=len(samples),
        )
