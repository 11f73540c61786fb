"""Routing request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class CoordinateModel(BaseModel):
    latitude: float
    longitude: float


class StopModel(BaseModel):
    id: str
    coordinates: CoordinateModel
    scheduled_time: Optional[datetime] = None
    priority: Literal["low", "medium", "high"] = "medium"


class RouteOptimizationRequestModel(BaseModel):
    # Optional here so a missing start reaches the optimizer and is reported as a 400.
    start_location: Optional[CoordinateModel] = None
    stops: List[StopModel] = Field(default_factory=list)
    vehicle_class: Optional[str] = Field(default=None, description="Vehicle type assigned to the route.")
    max_duration: Optional[float] = Field(default=None, ge=0, description="Maximum route duration in minutes.")


class RouteOptimizationResponse(BaseModel):
    optimized_order: List[str]
    total_distance: float = Field(..., description="Closed-loop distance in km, one decimal.")
    estimated_duration: int = Field(..., description="Minutes, including per-stop overhead.")
    path: List[CoordinateModel]


class LegRequest(BaseModel):
    start: CoordinateModel
    end: CoordinateModel


class LegResponse(BaseModel):
    distance: float
    duration: int
    path: List[CoordinateModel]


class NamedLocationModel(BaseModel):
    name: str
    coordinate: CoordinateModel


class NearbyRequest(BaseModel):
    origin: CoordinateModel
    candidates: List[NamedLocationModel]
    radius_km: Optional[float] = Field(default=None, ge=0)


class NearbyLocationModel(BaseModel):
    name: str
    coordinate: CoordinateModel
    distance: float
