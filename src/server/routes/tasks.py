"""Task list endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List

from fastapi import FastAPI, HTTPException

from ..dependencies import get_assistant, serialize_task, serialize_tasks
from ..schemas import TaskCreateRequest, TaskResponse, TaskUpdateRequest

logger = logging.getLogger(__name__)


def register_task_routes(app: FastAPI) -> None:
    """Register manual task CRUD endpoints."""

    @app.get("/api/tasks", response_model=List[TaskResponse])
    async def list_tasks() -> List[TaskResponse]:
        """List tasks in the current display order."""
        assistant = get_assistant()
        try:
            tasks = await asyncio.to_thread(assistant.list_tasks)
            return serialize_tasks(tasks)
        except Exception as exc:
            logger.exception("Failed to list tasks: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to list tasks") from exc

    @app.get("/api/tasks/{task_id}", response_model=TaskResponse)
    async def get_task(task_id: str) -> TaskResponse:
        assistant = get_assistant()
        task = await asyncio.to_thread(assistant.get_task, task_id)
        if task is None:
            raise HTTPException(status_code=404, detail="Task not found")
        return serialize_task(task)

    @app.post("/api/tasks", response_model=TaskResponse)
    async def create_task(request: TaskCreateRequest) -> TaskResponse:
        """Create a task without going through the command pipeline."""
        assistant = get_assistant()
        try:
            task = await asyncio.to_thread(
                assistant.create_task,
                request.text,
                request.priority,
                request.due_date,
                request.location,
            )
            return serialize_task(task)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except Exception as exc:
            logger.exception("Failed to create task: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to create task") from exc

    @app.patch("/api/tasks/{task_id}", response_model=TaskResponse)
    async def update_task(task_id: str, request: TaskUpdateRequest) -> TaskResponse:
        """Edit a task; only the fields present in the body change."""
        assistant = get_assistant()
        try:
            payload = request.model_dump(exclude_unset=True)
            task = await asyncio.to_thread(assistant.update_task, task_id, **payload)
            if task is None:
                raise HTTPException(status_code=404, detail="Task not found")
            return serialize_task(task)
        except HTTPException:
            raise
        except Exception as exc:
            logger.exception("Failed to update task: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to update task") from exc

    @app.post("/api/tasks/{task_id}/toggle", response_model=TaskResponse)
    async def toggle_task(task_id: str) -> TaskResponse:
        assistant = get_assistant()
        task = await asyncio.to_thread(assistant.toggle_task, task_id)
        if task is None:
            raise HTTPException(status_code=404, detail="Task not found")
        return serialize_task(task)

    @app.delete("/api/tasks/{task_id}")
    async def delete_task(task_id: str) -> Dict[str, bool]:
        assistant = get_assistant()
        deleted = await asyncio.to_thread(assistant.delete_task, task_id)
        if not deleted:
            raise HTTPException(status_code=404, detail="Task not found")
        return {"deleted": True}
