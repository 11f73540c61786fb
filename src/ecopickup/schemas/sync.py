"""Offline queue and sync status schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field


class QueuedActionModel(BaseModel):
    id: str
    kind: str
    payload: Any = None
    created_at: datetime
    synced: bool = False
    attempts: int = 0
    last_error: Optional[str] = None


class EnqueueRequest(BaseModel):
    kind: Literal["job_update", "photo_upload", "scan_record", "status_change"]
    payload: Any = None


class ConnectivityRequest(BaseModel):
    online: bool


class ReplayResponse(BaseModel):
    synced_ids: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    interrupted: bool = False
    in_progress: bool = False


class SyncStatusResponse(BaseModel):
    state: Literal["idle", "syncing", "error"]
    online: bool
    pending: int
    failed_actions: List[QueuedActionModel]
    last_synced_at: Optional[datetime] = None
    last_error: Optional[str] = None
