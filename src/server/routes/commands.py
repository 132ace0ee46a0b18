"""Voice command and decision endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request

from src.echo_tasks.exceptions import CommandInProgressError, DecisionNotFoundError

from ..dependencies import get_assistant, serialize_outcome
from ..schemas import (
    ActionsRequest,
    CommandRequest,
    CommandResponse,
    DecisionRequest,
    DecisionResponse,
    HealthResponse,
)

logger = logging.getLogger(__name__)


async def _run(func, *args: Any) -> CommandResponse:
    assistant = get_assistant()
    try:
        outcome = await asyncio.to_thread(func, *args)
        tasks = await asyncio.to_thread(assistant.list_tasks)
        return serialize_outcome(outcome, tasks)
    except CommandInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except DecisionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Command failed: %s", exc)
        raise HTTPException(status_code=500, detail="Command failed") from exc


def register_command_routes(app: FastAPI) -> None:
    """Register command pipeline endpoints on the provided app."""

    @app.get("/api/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Health check; "degraded" when the intent model is not installed."""
        assistant = get_assistant()
        tasks = await asyncio.to_thread(assistant.list_tasks)
        intent = await asyncio.to_thread(assistant.intent_status)
        return HealthResponse(
            status="ok" if intent["available"] else "degraded",
            task_count=len(tasks),
            intent_model=intent["model"],
            intent_model_available=intent["available"],
        )

    @app.post("/api/commands", response_model=CommandResponse)
    async def submit_transcript(request: CommandRequest) -> CommandResponse:
        """Interpret a transcript via the intent service."""
        assistant = get_assistant()
        return await _run(assistant.handle_transcript, request.transcript)

    @app.post("/api/commands/actions", response_model=CommandResponse)
    async def submit_actions(request: ActionsRequest) -> CommandResponse:
        """Run an action list directly."""
        assistant = get_assistant()
        payload: Dict[str, Any] = {"actions": request.actions}
        if request.original_query:
            payload["originalQuery"] = request.original_query
        return await _run(assistant.submit_actions, payload, request.transcript)

    @app.post("/api/commands/voice", response_model=CommandResponse)
    async def submit_voice(request: Request) -> CommandResponse:
        """Transcribe the raw request body and run the resulting command."""
        audio = await request.body()
        if not audio:
            raise HTTPException(status_code=400, detail="No audio file provided.")
        content_type = request.headers.get("content-type", "audio/webm")
        assistant = get_assistant()
        return await _run(assistant.handle_audio, audio, content_type)

    @app.get("/api/decisions/pending", response_model=Optional[DecisionResponse])
    async def get_pending_decision() -> Optional[DecisionResponse]:
        decision = get_assistant().pending_decision
        if decision is None:
            return None
        return DecisionResponse(**decision.to_dict())

    @app.post("/api/decisions/{decision_id}", response_model=CommandResponse)
    async def resolve_decision(decision_id: str, request: DecisionRequest) -> CommandResponse:
        """Confirm or cancel a pending decision and continue the command."""
        assistant = get_assistant()
        return await _run(
            assistant.resolve_decision,
            decision_id,
            request.confirmed,
            request.selected_ids,
        )

    @app.delete("/api/decisions/pending")
    async def cancel_pending_decision() -> Dict[str, Any]:
        assistant = get_assistant()
        outcome = await asyncio.to_thread(assistant.cancel_pending)
        if outcome is None:
            return {"cancelled": False, "summary": None}
        return {"cancelled": True, "summary": outcome.summary}
