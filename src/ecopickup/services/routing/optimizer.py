"""Greedy nearest-neighbor ordering for a driver's daily stops.

The heuristic is deterministic but not tour-optimal: it always drives to the
closest unvisited stop and then returns to the start. For the stop counts a
single driver handles in a day (tens, not thousands) the O(n^2) scan is cheap
and the resulting order is reasonable, which is all the driver app needs. It
does not model a road network; legs are great-circle distances.
"""

from __future__ import annotations

import logging
import math
import numbers

from ...config import settings
from ...exceptions import OptimizationInputError
from ...models.domain import Coordinate
from ..geospatial import distance
from .models import RouteOptimizationRequest, RouteOptimizationResult

logger = logging.getLogger(__name__)


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def validate_coordinate(coordinate: Coordinate | None, label: str = "start_location") -> Coordinate:
    if coordinate is None:
        raise OptimizationInputError(f"{label} is required.")
    try:
        raw_lat, raw_lon = coordinate.latitude, coordinate.longitude
    except AttributeError as exc:
        raise OptimizationInputError(f"{label} is malformed: {coordinate!r}") from exc
    # Numbers only; numeric strings and booleans are rejected rather than coerced.
    for value in (raw_lat, raw_lon):
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise OptimizationInputError(f"{label} is malformed: {coordinate!r}")
    lat, lon = float(raw_lat), float(raw_lon)
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise OptimizationInputError(f"{label} must have finite latitude/longitude.")
    if not -90.0 <= lat <= 90.0 or not -180.0 <= lon <= 180.0:
        raise OptimizationInputError(f"{label} is out of range: ({lat}, {lon}).")
    return Coordinate(lat, lon)


class RouteOptimizer:
    """Orders stops with a nearest-neighbor scan and estimates the closed loop."""

    def __init__(
        self,
        average_speed_kmh: float | None = None,
        per_stop_overhead_minutes: float | None = None,
    ) -> None:
        self.average_speed_kmh = average_speed_kmh if average_speed_kmh is not None else settings.average_speed_kmh
        self.per_stop_overhead_minutes = (
            per_stop_overhead_minutes
            if per_stop_overhead_minutes is not None
            else settings.per_stop_overhead_minutes
        )
        if self.average_speed_kmh <= 0:
            raise ValueError("average_speed_kmh must be positive.")

    def estimate_duration(self, total_distance_km: float, stop_count: int) -> int:
        minutes = total_distance_km / self.average_speed_kmh * 60 + stop_count * self.per_stop_overhead_minutes
        return int(round_half_up(minutes))

    def optimize(self, request: RouteOptimizationRequest) -> RouteOptimizationResult:
        start = validate_coordinate(request.start_location)

        unvisited = list(request.stops)
        optimized_order: list[str] = []
        path: list[Coordinate] = [start]
        current = start
        total_distance = 0.0

        while unvisited:
            nearest_index = 0
            nearest_distance = distance(current, unvisited[0].coordinates)
            for index in range(1, len(unvisited)):
                candidate = distance(current, unvisited[index].coordinates)
                # Strict comparison: first stop in input order wins ties.
                if candidate < nearest_distance:
                    nearest_distance = candidate
                    nearest_index = index

            stop = unvisited.pop(nearest_index)
            optimized_order.append(stop.id)
            path.append(stop.coordinates)
            total_distance += nearest_distance
            current = stop.coordinates

        total_distance += distance(current, start)
        path.append(start)

        estimated_duration = self.estimate_duration(total_distance, len(request.stops))
        if request.max_duration_min is not None and estimated_duration > request.max_duration_min:
            logger.warning(
                "Estimated route duration %s min exceeds requested maximum %s min (%d stops)",
                estimated_duration,
                request.max_duration_min,
                len(request.stops),
            )

        return RouteOptimizationResult(
            optimized_order=optimized_order,
            total_distance_km=round_half_up(total_distance, 1),
            estimated_duration_min=estimated_duration,
            path=path,
        )
