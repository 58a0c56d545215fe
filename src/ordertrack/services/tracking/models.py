"""Tracking engine configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TrackingConfig:
    max_samples: int = 100
    max_age_ms: int = 30 * 60_000
    on_route_threshold_meters: float = 150.0
    min_samples_for_confidence: int = 5
    floor_speed_kmh: float = 10.0
    speed_trend_tolerance_kmh: float = 8.0
    max_plausible_speed_kmh: float = 220.0
    # Below this interval two fixes are treated as simultaneous
    min_interval_ms: int = 500

    @classmethod
    def from_settings(cls, settings) -> "TrackingConfig":
        return cls(
            max_samples=settings.tracking_max_samples,
            max_age_ms=int(settings.tracking_max_age_minutes * 60_000),
            on_route_threshold_meters=settings.tracking_on_route_threshold_meters,
            min_samples_for_confidence=settings.tracking_min_samples_for_confidence,
            floor_speed_kmh=settings.tracking_floor_speed_kmh,
            speed_trend_tolerance_kmh=settings.tracking_speed_trend_tolerance_kmh,
            max_plausible_speed_kmh=settings.tracking_max_plausible_speed_kmh,
        )
