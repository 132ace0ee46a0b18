"""FastAPI application bootstrap."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .dependencies import get_assistant
from .routes import (
    register_command_routes,
    register_settings_routes,
    register_task_routes,
    register_undo_routes,
)

logger = logging.getLogger(__name__)


def cors_origins() -> List[str]:
    """Allowed origins from ``ECHO_TASKS_CORS_ORIGINS`` (comma separated, default any)."""
    raw = os.getenv("ECHO_TASKS_CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()] or ["*"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Only an assistant that was actually built can hold a running undo timer
    if get_assistant.cache_info().currsize:
        logger.info("Stopping undo timer before shutdown")
        get_assistant().shutdown()


def create_app() -> FastAPI:
    """Create the API app; routes are registered per concern."""
    app = FastAPI(title="EchoTasks API", version="1.0.0", lifespan=lifespan)

    origins = cors_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    register_command_routes(app)
    register_task_routes(app)
    register_undo_routes(app)
    register_settings_routes(app)

    return app


app = create_app()
