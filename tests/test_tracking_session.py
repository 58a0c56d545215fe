import pytest

from src.ordertrack.errors import RouteUnavailableError
from src.ordertrack.models.domain import LocationSample
from src.ordertrack.services.routing.models import PlannedRoute
from src.ordertrack.services.tracking.session import TrackingRegistry, TrackingSession

NOW = 1_700_000_000_000
ROUTE = [(0.0, round(0.01 * i, 2)) for i in range(11)]


class DummyPlanner:
    def __init__(self, route=None, error: Exception | None = None):
        self.route = route
        self.error = error
        self.calls = []

    def planned_route(self, origin, destination):
        self.calls.append((origin, destination))
        if self.error is not None:
            raise self.error
        return PlannedRoute(path=list(self.route), distance_meters=11_119.5, duration_seconds=600.0)


def _sample(lng: float, seconds: float, lat: float = 0.0) -> LocationSample:
    return LocationSample(lat=lat, lng=lng, timestamp_ms=NOW + int(seconds * 1000))


def test_snapshot_reports_progress_eta_and_heading() -> None:
    session = TrackingSession("trip-1", "tenant-9", planned_route=ROUTE, destination=ROUTE[-1], clock=lambda: NOW)
    for step in range(6):
        session.ingest(_sample(0.002 * step, step * 10))

    snapshot = session.snapshot()

    assert snapshot.trip_id == "trip-1"
    assert snapshot.route_available
    assert snapshot.progress.progress_percentage == pytest.approx(10.0, abs=0.1)
    assert snapshot.eta.confidence == "high"
    assert snapshot.heading_degrees == pytest.approx(90.0, abs=0.01)
    assert snapshot.heading_cardinal == "E"
    assert not snapshot.at_destination
    assert snapshot.last_sample.lng == pytest.approx(0.01)


def test_snapshot_flags_arrival_inside_geofence() -> None:
    session = TrackingSession("trip-1", "tenant-9", planned_route=ROUTE, destination=ROUTE[-1])
    session.ingest(_sample(0.0995, 0))

    assert session.snapshot().at_destination


def test_snapshot_without_samples_raises() -> None:
    session = TrackingSession("trip-1", "tenant-9", planned_route=ROUTE)
    with pytest.raises(ValueError):
        session.snapshot()


def test_heading_is_absent_for_a_single_fix() -> None:
    session = TrackingSession("trip-1", "tenant-9", planned_route=ROUTE)
    session.ingest(_sample(0.0, 0))
    snapshot = session.snapshot()
    assert snapshot.heading_degrees is None
    assert snapshot.heading_cardinal is None


def test_closed_session_rejects_samples() -> None:
    session = TrackingSession("trip-1", "tenant-9", planned_route=ROUTE)
    session.ingest(_sample(0.0, 0))
    session.close()

    assert session.closed
    with pytest.raises(RuntimeError):
        session.ingest(_sample(0.001, 1))


def test_registry_plans_route_when_none_given() -> None:
    planner = DummyPlanner(route=ROUTE)
    registry = TrackingRegistry(clock=lambda: NOW)

    session = registry.start_trip("trip-1", "tenant-9", origin=ROUTE[0], destination=ROUTE[-1], planner=planner)

    assert planner.calls == [(ROUTE[0], ROUTE[-1])]
    assert session.route_available
    assert registry.get("trip-1", "tenant-9") is session
    assert len(registry) == 1


def test_registry_prefers_supplied_route_over_planner() -> None:
    planner = DummyPlanner(route=ROUTE)
    registry = TrackingRegistry()

    session = registry.start_trip("trip-1", "tenant-9", planned_route=ROUTE, planner=planner)

    assert planner.calls == []
    assert session.destination == ROUTE[-1]


def test_registry_degrades_when_route_is_unavailable() -> None:
    planner = DummyPlanner(error=RouteUnavailableError("OSRM down"))
    registry = TrackingRegistry(clock=lambda: NOW)

    session = registry.start_trip("trip-1", "tenant-9", origin=(0.0, 0.0), destination=(0.0, 0.1), planner=planner)
    session.ingest(_sample(0.0, 0))
    snapshot = session.snapshot()

    assert not snapshot.route_available
    assert snapshot.progress.progress_percentage == 0.0
    assert snapshot.progress.remaining_distance_meters > 11_000
    assert not snapshot.progress.is_on_route


def test_registry_isolates_tenants_and_trips() -> None:
    registry = TrackingRegistry()
    first = registry.start_trip("trip-1", "tenant-a", planned_route=ROUTE)
    second = registry.start_trip("trip-1", "tenant-b", planned_route=ROUTE)
    first.ingest(_sample(0.05, 0))

    assert first is not second
    assert second.engine.samples == ()
    with pytest.raises(KeyError):
        registry.get("trip-2", "tenant-a")


def test_restarting_a_trip_closes_the_previous_session() -> None:
    registry = TrackingRegistry()
    old = registry.start_trip("trip-1", "tenant-9", planned_route=ROUTE)
    new = registry.start_trip("trip-1", "tenant-9", planned_route=ROUTE)

    assert old.closed
    assert registry.get("trip-1", "tenant-9") is new
    assert len(registry) == 1


def test_end_trip_discards_the_session() -> None:
    registry = TrackingRegistry()
    session = registry.start_trip("trip-1", "tenant-9", planned_route=ROUTE)

    assert registry.end_trip("trip-1", "tenant-9")
    assert session.closed
    assert not registry.end_trip("trip-1", "tenant-9")
    with pytest.raises(KeyError):
        registry.get("trip-1", "tenant-9")
