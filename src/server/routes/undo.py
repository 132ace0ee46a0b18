"""Undo and settings endpoints."""

from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI, HTTPException

from ..dependencies import get_assistant, serialize_settings, serialize_tasks
from ..schemas import (
    SettingsResponse,
    SettingsUpdateRequest,
    UndoResponse,
    UndoStatusResponse,
)

logger = logging.getLogger(__name__)


def register_undo_routes(app: FastAPI) -> None:
    """Register undo slot endpoints."""

    @app.get("/api/undo", response_model=UndoStatusResponse)
    async def undo_status() -> UndoStatusResponse:
        status = await asyncio.to_thread(get_assistant().undo_status)
        return UndoStatusResponse(**status)

    @app.post("/api/undo", response_model=UndoResponse)
    async def undo() -> UndoResponse:
        """Revert the last undoable change while its window is open."""
        assistant = get_assistant()
        action = await asyncio.to_thread(assistant.undo)
        tasks = await asyncio.to_thread(assistant.list_tasks)
        if action is None:
            return UndoResponse(reverted=False, tasks=serialize_tasks(tasks))
        return UndoResponse(
            reverted=True,
            kind=action.kind.value,
            task_ids=action.task_ids,
            tasks=serialize_tasks(tasks),
        )

    @app.delete("/api/undo")
    async def dismiss_undo() -> dict:
        dismissed = await asyncio.to_thread(get_assistant().dismiss_undo)
        return {"dismissed": dismissed}


def register_settings_routes(app: FastAPI) -> None:
    """Register user preference endpoints."""

    @app.get("/api/settings", response_model=SettingsResponse)
    async def get_settings() -> SettingsResponse:
        return serialize_settings(get_assistant().get_settings())

    @app.put("/api/settings", response_model=SettingsResponse)
    async def update_settings(request: SettingsUpdateRequest) -> SettingsResponse:
        assistant = get_assistant()
        try:
            settings = await asyncio.to_thread(
                assistant.update_settings,
                request.move_completed_to_bottom,
                request.sort_option,
            )
            return serialize_settings(settings)
        except Exception as exc:
            logger.exception("Failed to update settings: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to update settings") from exc
