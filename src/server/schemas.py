"""Pydantic schemas for the FastAPI server."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from src.todo import Priority, SortOption


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str
    task_count: int
    intent_model: str
    intent_model_available: bool


class TaskResponse(BaseModel):
    """One task as shown to the user."""

    id: str
    text: str
    completed: bool
    priority: Optional[Priority] = None
    due_date: Optional[str] = Field(default=None, description="ISO date (YYYY-MM-DD)")
    location: Optional[str] = None
    created_at: datetime
    last_updated: datetime


class TaskCreateRequest(BaseModel):
    """Request body for creating a task manually."""

    text: str = Field(..., min_length=1, max_length=500)
    priority: Optional[Priority] = None
    due_date: Optional[str] = Field(
        default=None, description="YYYY-MM-DD or a phrase such as 'next friday'"
    )
    location: Optional[str] = Field(default=None, max_length=200)


class TaskUpdateRequest(BaseModel):
    """Request body for editing a task. Omitted fields are kept; null clears."""

    text: Optional[str] = Field(default=None, min_length=1, max_length=500)
    priority: Optional[Priority] = None
    due_date: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=200)
    completed: Optional[bool] = None


class CommandRequest(BaseModel):
    """A transcript to interpret."""

    transcript: str = Field(..., description="Text of the spoken command")


class ActionsRequest(BaseModel):
    """An already extracted action list (bypasses the intent service)."""

    actions: List[Dict[str, Any]] = Field(default_factory=list)
    transcript: str = ""
    original_query: Optional[str] = Field(default=None, alias="originalQuery")

    model_config = {"populate_by_name": True}


class ActionResultResponse(BaseModel):
    intent: str
    status: str
    message: str
    task_ids: List[str]


class DecisionResponse(BaseModel):
    """A confirmation or selection the command is waiting on."""

    id: str
    kind: str
    operation: str
    intent: str
    title: str
    description: str
    task_ids: List[str]
    updates: Optional[Dict[str, Any]] = None


class TaskViewResponse(BaseModel):
    title: str
    task_ids: List[str]
    empty_message: Optional[str] = None


class CommandResponse(BaseModel):
    """Outcome of a command plus the task list after it."""

    transcript: str
    results: List[ActionResultResponse]
    views: List[TaskViewResponse]
    pending_decision: Optional[DecisionResponse] = None
    counters: Dict[str, int]
    summary: str
    retryable: bool = False
    error: Optional[str] = None
    tasks: List[TaskResponse] = Field(default_factory=list)


class DecisionRequest(BaseModel):
    """Answer to a pending decision."""

    confirmed: bool
    selected_ids: Optional[List[str]] = Field(
        default=None, description="Subset of candidate ids for selection decisions"
    )


class UndoStatusResponse(BaseModel):
    available: bool
    kind: Optional[str] = None
    task_ids: List[str] = Field(default_factory=list)
    expires_in: Optional[float] = None


class UndoResponse(BaseModel):
    reverted: bool
    kind: Optional[str] = None
    task_ids: List[str] = Field(default_factory=list)
    tasks: List[TaskResponse] = Field(default_factory=list)


class SettingsResponse(BaseModel):
    move_completed_to_bottom: bool
    sort_option: SortOption


class SettingsUpdateRequest(BaseModel):
    move_completed_to_bottom: Optional[bool] = None
    sort_option: Optional[SortOption] = None
