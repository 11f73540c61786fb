import pytest

from ecopickup.exceptions import OptimizationInputError
from ecopickup.models.domain import Coordinate, RouteRecord
from ecopickup.schemas.routing import RouteOptimizationRequestModel
from ecopickup.services.routing import service as routing_service
from ecopickup.services.routing.optimizer import RouteOptimizer


def _route(rid: str, stops: int, distance: float, duration: float, status: str = "planned", actual=None) -> RouteRecord:
    return RouteRecord(
        route_id=rid,
        driver_id="D1",
        stop_ids=[f"{rid}-S{i}" for i in range(stops)],
        total_distance_km=distance,
        estimated_duration_min=duration,
        status=status,
        actual_duration_min=actual,
    )


def test_optimize_route_converts_payload():
    payload = RouteOptimizationRequestModel.model_validate(
        {
            "start_location": {"latitude": 0, "longitude": 0},
            "stops": [
                {"id": "B", "coordinates": {"latitude": 0, "longitude": 2}, "priority": "high"},
                {"id": "A", "coordinates": {"latitude": 0, "longitude": 1}},
            ],
            "vehicle_class": "compactor",
        }
    )

    response = routing_service.optimize_route(payload, RouteOptimizer(30, 15))

    assert response.optimized_order == ["A", "B"]
    assert response.path[0].latitude == 0 and response.path[-1].longitude == 0
    assert response.total_distance > 0


def test_optimize_route_without_start_is_rejected():
    payload = RouteOptimizationRequestModel(stops=[])
    with pytest.raises(OptimizationInputError):
        routing_service.optimize_route(payload)


def test_estimate_leg():
    leg = routing_service.estimate_leg(Coordinate(0, 0), Coordinate(0, 1), average_speed_kmh=30)

    assert leg.distance_km == 111.2
    assert leg.duration_min == 222
    assert leg.path == [Coordinate(0, 0), Coordinate(0, 1)]


def test_nearby_locations_sorted_and_filtered():
    origin = Coordinate(21.5, 39.2)
    candidates = [
        ("Far depot", Coordinate(22.5, 39.2)),
        ("Transfer station", Coordinate(21.52, 39.2)),
        ("Recycling center", Coordinate(21.51, 39.2)),
    ]

    matches = routing_service.nearby_locations(origin, candidates, radius_km=5)

    assert [match.name for match in matches] == ["Recycling center", "Transfer station"]
    assert matches[0].distance_km == 1.1


def test_route_stats():
    routes = [
        _route("R1", 4, 12.5, 80, status="completed", actual=95),
        _route("R2", 2, 7.5, 40),
    ]

    stats = routing_service.route_stats(routes)

    assert stats.total_routes == 2
    assert stats.total_distance_km == 20.0
    assert stats.total_duration_min == 135
    assert stats.average_stops_per_route == 3
    assert stats.completion_rate == 50.0


def test_route_stats_for_no_routes():
    stats = routing_service.route_stats([])
    assert stats.total_routes == 0
    assert stats.completion_rate == 0.0
