"""Offline queue and replay endpoints."""

from __future__ import annotations

import asyncio
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...models.domain import QueuedAction
from ...schemas.sync import (
    ConnectivityRequest,
    EnqueueRequest,
    QueuedActionModel,
    ReplayResponse,
    SyncStatusResponse,
)
from ...services.sync.engine import SyncEngine
from ...services.sync.queue import OfflineActionQueue
from ..dependencies import get_queue, get_sync_engine

router = APIRouter(prefix="/sync", tags=["sync"])


def _to_model(action: QueuedAction) -> QueuedActionModel:
    return QueuedActionModel(**action.to_dict())


@router.get("/queue", response_model=List[QueuedActionModel])
async def list_queue(queue: OfflineActionQueue = Depends(get_queue)) -> List[QueuedActionModel]:
    return [_to_model(action) for action in await queue.list()]


@router.post("/queue", response_model=QueuedActionModel, status_code=status.HTTP_201_CREATED)
async def enqueue(payload: EnqueueRequest, queue: OfflineActionQueue = Depends(get_queue)) -> QueuedActionModel:
    action = await queue.enqueue(payload.kind, payload.payload)
    return _to_model(action)


@router.delete("/queue/{action_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_action(action_id: str, queue: OfflineActionQueue = Depends(get_queue)) -> None:
    if not await queue.remove_by_id(action_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Action {action_id} not found")


@router.delete("/queue", status_code=status.HTTP_204_NO_CONTENT)
async def clear_queue(queue: OfflineActionQueue = Depends(get_queue)) -> None:
    await queue.clear()


@router.post("/connectivity", response_model=ReplayResponse)
async def connectivity_changed(
    payload: ConnectivityRequest,
    response: Response,
    wait: bool = Query(False, description="Hold the request until the replay pass finishes."),
    engine: SyncEngine = Depends(get_sync_engine),
) -> ReplayResponse:
    """Record a connectivity change; going online schedules a replay of the queue.

    By default the replay runs in the background and the client polls
    ``/sync/status``. With ``wait=true`` the outcome of the pass is returned.
    """
    task = engine.on_connectivity_changed(payload.online)
    if task is None:
        return ReplayResponse(interrupted=False)
    if not wait:
        response.status_code = status.HTTP_202_ACCEPTED
        return ReplayResponse(in_progress=True)
    # A dropped client connection must not cancel the pass itself.
    report = await asyncio.shield(task)
    return ReplayResponse(
        synced_ids=report.synced_ids,
        error=str(report.error) if report.error else None,
        interrupted=report.interrupted,
    )


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(engine: SyncEngine = Depends(get_sync_engine)) -> SyncStatusResponse:
    current = await engine.status()
    return SyncStatusResponse(
        state=current.state,
        online=current.online,
        pending=current.pending,
        failed_actions=[_to_model(action) for action in current.failed_actions],
        last_synced_at=current.last_synced_at,
        last_error=current.last_error,
    )
