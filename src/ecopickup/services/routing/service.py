"""Routing orchestration service."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ...config import settings
from ...models.domain import Coordinate, RouteRecord, Stop
from ...schemas.routing import (
    CoordinateModel,
    LegRequest,
    LegResponse,
    NearbyLocationModel,
    NearbyRequest,
    RouteOptimizationRequestModel,
    RouteOptimizationResponse,
)
from ..geospatial import distance
from .models import LegEstimate, NearbyLocation, RouteOptimizationRequest, RouteStats
from .optimizer import RouteOptimizer, round_half_up, validate_coordinate

logger = logging.getLogger(__name__)


def _to_coordinate(model: CoordinateModel | None) -> Coordinate | None:
    if model is None:
        return None
    return Coordinate(latitude=model.latitude, longitude=model.longitude)


def _to_model(coordinate: Coordinate) -> CoordinateModel:
    return CoordinateModel(latitude=coordinate.latitude, longitude=coordinate.longitude)


def build_request(payload: RouteOptimizationRequestModel) -> RouteOptimizationRequest:
    stops = [
        Stop(
            id=stop.id,
            coordinates=Coordinate(latitude=stop.coordinates.latitude, longitude=stop.coordinates.longitude),
            scheduled_time=stop.scheduled_time,
            priority=stop.priority,
        )
        for stop in payload.stops
    ]
    return RouteOptimizationRequest(
        start_location=_to_coordinate(payload.start_location),
        stops=stops,
        vehicle_class=payload.vehicle_class,
        max_duration_min=payload.max_duration,
    )


def optimize_route(
    payload: RouteOptimizationRequestModel,
    optimizer: RouteOptimizer | None = None,
) -> RouteOptimizationResponse:
    optimizer = optimizer or RouteOptimizer()
    request = build_request(payload)
    result = optimizer.optimize(request)
    logger.info(
        "Optimized %d stops: %.1f km, %d min",
        len(result.optimized_order),
        result.total_distance_km,
        result.estimated_duration_min,
    )
    return RouteOptimizationResponse(
        optimized_order=result.optimized_order,
        total_distance=result.total_distance_km,
        estimated_duration=result.estimated_duration_min,
        path=[_to_model(point) for point in result.path],
    )


def estimate_leg(start: Coordinate, end: Coordinate, average_speed_kmh: float | None = None) -> LegEstimate:
    """Straight-line distance and travel time between two points."""

    start = validate_coordinate(start, "start")
    end = validate_coordinate(end, "end")
    speed = average_speed_kmh if average_speed_kmh is not None else settings.average_speed_kmh
    km = distance(start, end)
    return LegEstimate(
        distance_km=round_half_up(km, 1),
        duration_min=int(round_half_up(km / speed * 60)),
        path=[start, end],
    )


def nearby_locations(
    origin: Coordinate,
    candidates: Iterable[tuple[str, Coordinate]],
    radius_km: float | None = None,
) -> list[NearbyLocation]:
    """Return candidates within radius_km of origin, closest first."""

    origin = validate_coordinate(origin, "origin")
    radius = radius_km if radius_km is not None else settings.nearby_radius_km
    matches = []
    for name, coordinate in candidates:
        km = distance(origin, coordinate)
        if km <= radius:
            matches.append(NearbyLocation(name=name, coordinate=coordinate, distance_km=km))
    matches.sort(key=lambda item: item.distance_km)
    for item in matches:
        item.distance_km = round_half_up(item.distance_km, 1)
    return matches


def route_stats(routes: Sequence[RouteRecord]) -> RouteStats:
    total = len(routes)
    if not total:
        return RouteStats(0, 0.0, 0.0, 0.0, 0.0)
    completed = sum(1 for route in routes if route.status == "completed")
    return RouteStats(
        total_routes=total,
        total_distance_km=sum(route.total_distance_km for route in routes),
        total_duration_min=sum(
            route.actual_duration_min if route.actual_duration_min is not None else route.estimated_duration_min
            for route in routes
        ),
        average_stops_per_route=sum(len(route.stop_ids) for route in routes) / total,
        completion_rate=completed / total * 100,
    )


def leg_from_payload(payload: LegRequest) -> LegResponse:
    leg = estimate_leg(_to_coordinate(payload.start), _to_coordinate(payload.end))
    return LegResponse(distance=leg.distance_km, duration=leg.duration_min, path=[_to_model(p) for p in leg.path])


def nearby_from_payload(payload: NearbyRequest) -> list[NearbyLocationModel]:
    candidates = [(item.name, _to_coordinate(item.coordinate)) for item in payload.candidates]
    matches = nearby_locations(_to_coordinate(payload.origin), candidates, payload.radius_km)
    return [
        NearbyLocationModel(name=item.name, coordinate=_to_model(item.coordinate), distance=item.distance_km)
        for item in matches
    ]
