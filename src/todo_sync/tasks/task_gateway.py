# src/todo_sync/tasks/task_gateway.py

from __future__ import annotations

"""
HTTP/JSON client for the remote todo service.

Endpoints (relative to the configured base URL):
- GET    /todos        -> JSON array of todos (or null)
- POST   /todos        -> created todo
- PATCH  /todos/{id}   -> mark completed
- PUT    /todos/{id}   -> replace body
- DELETE /todos/{id}

No retries: a failed call surfaces immediately as GatewayError.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from .task_models import Task

logger = logging.getLogger(__name__)


class GatewayError(RuntimeError):
    """The remote operation did not complete."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _make_timeout(connect_s: float, read_s: float) -> httpx.Timeout:
    return httpx.Timeout(
        connect=connect_s,
        read=read_s,
        write=10.0,
        pool=connect_s,
    )


class HttpTaskGateway:
    """
    TaskGateway over httpx.AsyncClient.

    The client is created lazily unless one is injected (tests pass a client
    built on httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        *,
        connect_timeout: float = 5.0,
        read_timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not base_url or not base_url.strip():
            raise ValueError("base_url is required")
        self._base_url = base_url.strip()
        self._timeout = _make_timeout(connect_timeout, read_timeout)
        self._client = client

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpTaskGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ---- low-level helpers ----

    async def _request(self, method: str, path: str, *, json: Any = None) -> httpx.Response:
        client = self._get_client()
        try:
            response = await client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e.__class__.__name__)
            raise GatewayError(f"{method} {path} did not complete") from e

        if not response.is_success:
            logger.warning("%s %s -> HTTP %s", method, path, response.status_code)
            raise GatewayError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug("%s %s -> HTTP %s", method, path, response.status_code)
        return response

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise GatewayError("response is not valid JSON", status_code=response.status_code) from e

    @staticmethod
    def _task_path(task_id: str) -> str:
        return f"/todos/{quote(str(task_id), safe='')}"

    # ---- public API ----

    async def fetch_all(self) -> list[Task]:
        data = self._decode(await self._request("GET", "/todos"))
        if data is None:
            return []
        if not isinstance(data, list):
            raise GatewayError("expected a JSON array of todos")
        try:
            tasks = [Task.from_api(item) for item in data]
        except ValueError as e:
            raise GatewayError(f"malformed todo in list: {e}") from e
        logger.info("Fetched %d todos", len(tasks))
        return tasks

    async def create(self, body: str) -> Task:
        response = await self._request("POST", "/todos", json={"body": body, "completed": False})
        try:
            return Task.from_api(self._decode(response))
        except ValueError as e:
            raise GatewayError(f"malformed created todo: {e}") from e

    async def mark_completed(self, task_id: str) -> None:
        await self._request("PATCH", self._task_path(task_id))

    async def edit_body(self, task_id: str, new_body: str) -> None:
        await self._request("PUT", self._task_path(task_id), json={"body": new_body})

    async def delete(self, task_id: str) -> None:
        await self._request("DELETE", self._task_path(task_id))
