"""Domain models for stops, routes and offline actions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional

Priority = Literal["low", "medium", "high"]


@dataclass(slots=True, frozen=True)
class Coordinate:
    """WGS84 position in decimal degrees."""

    latitude: float
    longitude: float


@dataclass(slots=True)
class Stop:
    """A single pickup location. Priority is carried through but not used for ordering."""

    id: str
    coordinates: Coordinate
    scheduled_time: Optional[datetime] = None
    priority: Priority = "medium"


@dataclass(slots=True)
class RouteRecord:
    """A driver's planned or completed route as returned by the backend."""

    route_id: str
    driver_id: str
    stop_ids: list[str]
    total_distance_km: float
    estimated_duration_min: float
    status: Literal["planned", "active", "completed"] = "planned"
    actual_duration_min: Optional[float] = None


@dataclass(slots=True)
class QueuedAction:
    """A mutation recorded while disconnected, awaiting delivery to the backend."""

    id: str
    kind: str
    payload: Any
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    synced: bool = False
    attempts: int = 0
    last_error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "payload": self.payload,
            "created_at": self.created_at.isoformat(),
            "synced": self.synced,
            "attempts": self.attempts,
            "last_error": self.last_error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QueuedAction":
        created_at = data.get("created_at")
        return cls(
            id=str(data["id"]),
            kind=str(data.get("kind", "")),
            payload=data.get("payload"),
            created_at=datetime.fromisoformat(created_at) if created_at else datetime.now(timezone.utc),
            synced=bool(data.get("synced", False)),
            attempts=int(data.get("attempts", 0)),
            last_error=data.get("last_error"),
        )
