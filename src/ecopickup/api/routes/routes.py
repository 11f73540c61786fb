"""Routing endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ...exceptions import OptimizationInputError
from ...schemas.routing import (
    LegRequest,
    LegResponse,
    NearbyLocationModel,
    NearbyRequest,
    RouteOptimizationRequestModel,
    RouteOptimizationResponse,
)
from ...services.routing.optimizer import RouteOptimizer
from ...services.routing.service import leg_from_payload, nearby_from_payload, optimize_route
from ..dependencies import get_optimizer

router = APIRouter(prefix="/routes", tags=["routes"])
logger = logging.getLogger(__name__)


@router.post("/optimize", response_model=RouteOptimizationResponse, status_code=status.HTTP_200_OK)
def optimize(
    payload: RouteOptimizationRequestModel,
    optimizer: RouteOptimizer = Depends(get_optimizer),
) -> RouteOptimizationResponse:
    try:
        return optimize_route(payload, optimizer)
    except OptimizationInputError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error optimizing route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize route: {str(exc)}"
        ) from exc


@router.post("/leg", response_model=LegResponse, status_code=status.HTTP_200_OK)
def leg(payload: LegRequest) -> LegResponse:
    """Straight-line distance and travel time between two points."""
    try:
        return leg_from_payload(payload)
    except OptimizationInputError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/nearby", response_model=List[NearbyLocationModel], status_code=status.HTTP_200_OK)
def nearby(payload: NearbyRequest) -> List[NearbyLocationModel]:
    try:
        return nearby_from_payload(payload)
    except OptimizationInputError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
