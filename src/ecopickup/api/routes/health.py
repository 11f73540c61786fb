"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..dependencies import AppServices, get_services

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/backend", status_code=status.HTTP_200_OK)
def health_backend(services: AppServices = Depends(get_services)) -> dict:
    """Report whether a backend is configured for refreshes and offline replay."""
    backend = services.backend
    return {
        "service": "backend",
        "configured": backend is not None,
        "base_url": backend.base_url if backend else None,
    }
