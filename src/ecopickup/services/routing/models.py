"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ...models.domain import Coordinate, Stop


@dataclass(slots=True)
class RouteOptimizationRequest:
    start_location: Optional[Coordinate]
    stops: List[Stop] = field(default_factory=list)
    vehicle_class: Optional[str] = None
    max_duration_min: Optional[float] = None


@dataclass(slots=True)
class RouteOptimizationResult:
    optimized_order: List[str]
    total_distance_km: float
    estimated_duration_min: int
    path: List[Coordinate]


@dataclass(slots=True)
class LegEstimate:
    distance_km: float
    duration_min: int
    path: List[Coordinate]


@dataclass(slots=True)
class NearbyLocation:
    name: str
    coordinate: Coordinate
    distance_km: float


@dataclass(slots=True)
class RouteStats:
    total_routes: int
    total_distance_km: float
    total_duration_min: float
    average_stops_per_route: float
    completion_rate: float
