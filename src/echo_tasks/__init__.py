"""EchoTasks: voice command resolution for a personal to-do list."""

from .actions import Action, ActionFilter, Intent, ParsedCommand, QueryType, TaskUpdates, normalize_actions
from .assistant import TaskAssistant
from .config import Config
from .exceptions import (
    CommandInProgressError,
    ConfigurationError,
    DecisionNotFoundError,
    EchoTasksError,
    IntentServiceError,
    TranscriptionError,
    UpstreamServiceError,
)
from .orchestrator import (
    ActionResult,
    ActionStatus,
    CommandOrchestrator,
    CommandOutcome,
    DecisionKind,
    PendingDecision,
)

__all__ = [
    "Action",
    "ActionFilter",
    "ActionResult",
    "ActionStatus",
    "CommandInProgressError",
    "CommandOrchestrator",
    "CommandOutcome",
    "Config",
    "ConfigurationError",
    "DecisionKind",
    "DecisionNotFoundError",
    "EchoTasksError",
    "Intent",
    "IntentServiceError",
    "ParsedCommand",
    "PendingDecision",
    "QueryType",
    "TaskAssistant",
    "TaskUpdates",
    "TranscriptionError",
    "UpstreamServiceError",
    "normalize_actions",
]
