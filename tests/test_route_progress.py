import math

import pytest

from src.ordertrack.models.domain import LocationSample
from src.ordertrack.services.geospatial import haversine_m
from src.ordertrack.services.tracking.models import TrackingConfig
from src.ordertrack.services.tracking.progress import RouteProgressEngine

# Eleven vertices along the equator, roughly 1.1 km apart.
ROUTE = [(0.0, round(0.01 * i, 2)) for i in range(11)]
ROUTE_LENGTH = haversine_m(ROUTE[0], ROUTE[-1])


def _sample(lng: float, seconds: float, lat: float = 0.0) -> LocationSample:
    return LocationSample(lat=lat, lng=lng, timestamp_ms=int(seconds * 1000))


def test_progress_is_monotonic_along_the_route() -> None:
    engine = RouteProgressEngine()
    previous = -1.0
    for step in range(51):
        assert engine.add_location_sample(_sample(0.002 * step, step * 10))
        progress = engine.compute_progress(ROUTE)
        assert progress.progress_percentage >= previous
        assert 0.0 <= progress.progress_percentage <= 100.0
        previous = progress.progress_percentage
    assert previous == pytest.approx(100.0, abs=0.01)


def test_progress_at_route_midpoint() -> None:
    engine = RouteProgressEngine()
    engine.add_location_sample(_sample(0.05, 0))

    progress = engine.compute_progress(ROUTE)

    assert progress.progress_percentage == pytest.approx(50.0, abs=0.1)
    assert progress.total_distance_meters == pytest.approx(ROUTE_LENGTH, rel=1e-6)
    assert progress.completed_distance_meters + progress.remaining_distance_meters == pytest.approx(
        progress.total_distance_meters
    )
    assert progress.deviation_meters == pytest.approx(0.0, abs=1.0)
    assert progress.is_on_route


def test_progress_between_vertices_uses_segment_projection() -> None:
    engine = RouteProgressEngine()
    engine.add_location_sample(_sample(0.034, 0))

    progress = engine.compute_progress(ROUTE)

    assert progress.progress_percentage == pytest.approx(34.0, abs=0.1)
    assert progress.completed_path[-1] == pytest.approx((0.0, 0.034), abs=1e-9)
    assert progress.remaining_path[0] == progress.completed_path[-1]
    assert progress.remaining_path[-1] == ROUTE[-1]


def test_deviation_marks_sample_off_route() -> None:
    engine = RouteProgressEngine()
    engine.add_location_sample(_sample(0.05, 0, lat=0.01))

    progress = engine.compute_progress(ROUTE)

    assert progress.deviation_meters > 1000
    assert not progress.is_on_route


def test_sample_just_inside_threshold_is_on_route() -> None:
    engine = RouteProgressEngine(TrackingConfig(on_route_threshold_meters=150.0))
    engine.add_location_sample(_sample(0.05, 0, lat=0.001))  # about 111 m north

    progress = engine.compute_progress(ROUTE)

    assert 100 < progress.deviation_meters < 150
    assert progress.is_on_route


def test_overshooting_the_end_is_clamped() -> None:
    engine = RouteProgressEngine()
    engine.add_location_sample(_sample(0.12, 0))

    progress = engine.compute_progress(ROUTE)

    assert progress.progress_percentage == pytest.approx(100.0)
    assert progress.remaining_distance_meters == pytest.approx(0.0)


@pytest.mark.parametrize(
    "lat,lng",
    [(91.0, 0.0), (-91.0, 0.0), (0.0, 181.0), (math.nan, 0.0), (0.0, math.inf)],
)
def test_invalid_coordinates_are_dropped(lat, lng) -> None:
    engine = RouteProgressEngine()
    assert not engine.add_location_sample(LocationSample(lat=lat, lng=lng, timestamp_ms=1))
    assert engine.samples == ()


def test_out_of_order_and_duplicate_samples_are_dropped() -> None:
    engine = RouteProgressEngine()
    assert engine.add_location_sample(_sample(0.01, 10))
    assert not engine.add_location_sample(_sample(0.02, 10))
    assert not engine.add_location_sample(_sample(0.02, 5))
    assert engine.add_location_sample(_sample(0.02, 11))

    assert [sample.timestamp_ms for sample in engine.samples] == [10_000, 11_000]


def test_window_is_capped_by_count() -> None:
    engine = RouteProgressEngine(TrackingConfig(max_samples=3))
    for step in range(5):
        engine.add_location_sample(_sample(0.001 * step, step))

    assert len(engine.samples) == 3
    assert engine.latest.timestamp_ms == 4000


def test_window_evicts_stale_samples() -> None:
    engine = RouteProgressEngine(TrackingConfig(max_age_ms=20_000))
    for seconds in (0, 10, 20, 30):
        engine.add_location_sample(_sample(0.001, seconds))

    assert [sample.timestamp_ms for sample in engine.samples] == [10_000, 20_000, 30_000]


def test_compute_progress_without_samples_raises() -> None:
    with pytest.raises(ValueError):
        RouteProgressEngine().compute_progress(ROUTE)


def test_missing_route_falls_back_to_straight_line() -> None:
    engine = RouteProgressEngine()
    engine.add_location_sample(_sample(0.0, 0))
    destination = (0.0, 0.1)

    progress = engine.compute_progress(None, destination)

    assert progress.progress_percentage == 0.0
    assert progress.remaining_distance_meters == pytest.approx(ROUTE_LENGTH, rel=1e-6)
    assert not progress.is_on_route
    assert progress.remaining_path == [(0.0, 0.0), destination]


def test_single_point_route_is_treated_as_destination() -> None:
    engine = RouteProgressEngine()
    engine.add_location_sample(_sample(0.0, 0))

    progress = engine.compute_progress([(0.0, 0.1)])

    assert progress.remaining_distance_meters == pytest.approx(ROUTE_LENGTH, rel=1e-6)


def test_clear_empties_the_window() -> None:
    engine = RouteProgressEngine()
    engine.add_location_sample(_sample(0.0, 0))
    engine.clear()
    assert engine.latest is None
