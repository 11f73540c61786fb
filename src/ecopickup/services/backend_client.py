"""Async HTTP client for the authoritative pickup backend."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from ..config import settings
from ..exceptions import FetchError
from ..models.domain import QueuedAction

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


class BackendClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url or settings.backend_base_url
        if not self.base_url:
            raise ValueError("Backend base URL is not configured.")
        self.base_url = self.base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.backend_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.backend_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.backend_backoff_seconds
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        )

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, *, key: str, json: Any = None) -> Any:
        attempt = 0
        while True:
            try:
                response = await self._client.request(method, path, json=json)
                response.raise_for_status()
                if not response.content:
                    return None
                return response.json()
            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                if status_code not in RETRYABLE_STATUS_CODES:
                    raise FetchError(key, f"{method} {path} returned {status_code}") from e
                attempt += 1
                if attempt > self.max_retries:
                    raise FetchError(key, f"{method} {path} returned {status_code} after {attempt} attempts") from e
            except (httpx.TimeoutException, httpx.NetworkError) as e:
                attempt += 1
                if attempt > self.max_retries:
                    logger.warning(f"Backend request {method} {path} failed after {self.max_retries} retries: {e}")
                    raise FetchError(key, f"backend unreachable: {e}") from e
            except ValueError as e:
                raise FetchError(key, f"invalid JSON from {path}: {e}") from e
            wait_time = self.backoff_seconds * (2 ** (attempt - 1))
            logger.debug(f"Backend request {method} {path} failed, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
            await asyncio.sleep(wait_time)

    async def fetch_driver_jobs(self, driver_id: str) -> list[dict]:
        return await self._request("GET", f"/drivers/{driver_id}/jobs", key="driver_jobs")

    async def fetch_driver_routes(self, driver_id: str) -> list[dict]:
        return await self._request("GET", f"/drivers/{driver_id}/routes", key="driver_routes")

    async def fetch_customer_schedule(self, customer_id: str) -> list[dict]:
        return await self._request("GET", f"/customers/{customer_id}/schedule", key="customer_schedule")

    async def push_action(self, action: QueuedAction) -> Any:
        """Deliver one queued offline action."""
        return await self._request("POST", "/sync/actions", key=f"action:{action.id}", json=action.to_dict())
