# src/taskgate/backends/http_backend.py

"""HTTP client for the task service (system of record)."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from ..core.errors import (
    BackendError,
    BackendUnavailableError,
    IllegalTransitionError,
    InvalidEdgeError,
    TaskNotFoundError,
)
from ..core.models import Task, TaskPatch, TaskState

logger = logging.getLogger(__name__)

_REJECTED_STATUSES = {400, 409, 422}


def _parse_dt(raw: Any) -> datetime | None:
    if not raw or not isinstance(raw, str):
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        logger.debug("Unparseable timestamp from task service: %r", raw)
        return None


def _parse_state(raw: Any) -> TaskState:
    try:
        return TaskState(str(raw))
    except ValueError:
        logger.warning("Unknown task state from task service: %r (treating as BACKLOG)", raw)
        return TaskState.BACKLOG


def _id_set(raw: Any) -> frozenset[int]:
    if not raw:
        return frozenset()
    return frozenset(int(x) for x in raw)


def task_from_json(data: dict[str, Any]) -> Task:
    return Task(
        id=int(data["id"]),
        title=str(data.get("title") or ""),
        state=_parse_state(data.get("state")),
        blockers=_id_set(data.get("blockers")),
        dependents=_id_set(data.get("dependents")),
        description=data.get("description"),
        due_date=_parse_dt(data.get("due_date")),
        created_at=_parse_dt(data.get("created_at")),
        updated_at=_parse_dt(data.get("updated_at")),
        completed_at=_parse_dt(data.get("completed_at")),
    )


def _json_value(value: object) -> object:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, TaskState):
        return value.value
    return value


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)


class HttpTaskBackend:
    """
    Async client for the task service REST API.

    Endpoints:
    - GET    /tasks
    - POST   /tasks
    - PATCH  /tasks/{id}
    - DELETE /tasks/{id}
    - POST   /dependencies/{task_id}/blockers/{blocker_id}
    - DELETE /dependencies/{task_id}/blockers/{blocker_id}
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise BackendUnavailableError(f"{method} {path}: {exc}") from exc

        if response.is_error:
            raise BackendError(
                f"{method} {path}: {_error_detail(response)}",
                status_code=response.status_code,
            )
        return response

    # ── Tasks ───────────────────────────────────────────────────────────

    async def list_tasks(self) -> list[Task]:
        response = await self._request("GET", "/tasks")
        return [task_from_json(item) for item in response.json()]

    async def create_task(
        self,
        *,
        title: str,
        description: str | None = None,
        due_date: datetime | None = None,
        state: TaskState | None = None,
    ) -> Task:
        payload: dict[str, object] = {"title": title}
        if description is not None:
            payload["description"] = description
        if due_date is not None:
            payload["due_date"] = _json_value(due_date)
        if state is not None:
            payload["state"] = state.value
        response = await self._request("POST", "/tasks", json=payload)
        return task_from_json(response.json())

    async def patch_task(self, task_id: int, patch: TaskPatch) -> Task:
        payload = {k: _json_value(v) for k, v in patch.fields().items()}
        try:
            response = await self._request("PATCH", f"/tasks/{int(task_id)}", json=payload)
        except BackendError as exc:
            if exc.status_code == 404:
                raise TaskNotFoundError(int(task_id)) from exc
            # Only a state-only patch can be blamed on the transition rules;
            # a mixed patch may have been rejected for its other fields.
            if patch.state is not None and set(payload) == {"state"} and exc.status_code in _REJECTED_STATUSES:
                raise IllegalTransitionError(int(task_id), None, patch.state.value, str(exc)) from exc
            raise
        return task_from_json(response.json())

    async def delete_task(self, task_id: int) -> None:
        try:
            await self._request("DELETE", f"/tasks/{int(task_id)}")
        except BackendError as exc:
            if exc.status_code == 404:
                raise TaskNotFoundError(int(task_id)) from exc
            raise

    # ── Dependencies ────────────────────────────────────────────────────

    async def add_edge(self, task_id: int, blocker_id: int) -> None:
        path = f"/dependencies/{int(task_id)}/blockers/{int(blocker_id)}"
        try:
            await self._request("POST", path)
        except BackendError as exc:
            if exc.status_code in _REJECTED_STATUSES:
                raise InvalidEdgeError(int(task_id), int(blocker_id), str(exc)) from exc
            if exc.status_code == 404:
                raise TaskNotFoundError(int(task_id), str(exc)) from exc
            raise

    async def remove_edge(self, task_id: int, blocker_id: int) -> None:
        path = f"/dependencies/{int(task_id)}/blockers/{int(blocker_id)}"
        await self._request("DELETE", path)

    # ── Engine write path ───────────────────────────────────────────────

    async def write_state(self, task_id: int, state: TaskState) -> None:
        await self._request("PATCH", f"/tasks/{int(task_id)}", json={"state": state.value})
