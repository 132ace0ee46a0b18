"""Route registration helpers."""

from .commands import register_command_routes
from .tasks import register_task_routes
from .undo import register_settings_routes, register_undo_routes

__all__ = [
    "register_command_routes",
    "register_settings_routes",
    "register_task_routes",
    "register_undo_routes",
]
