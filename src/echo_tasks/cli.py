#!/usr/bin/env python3
"""
EchoTasks CLI

Usage:
    python -m src.echo_tasks.cli list [--format json|text]
    python -m src.echo_tasks.cli add --text "Buy milk" [--priority high|medium|low] [--due-date tomorrow] [--location Store]
    python -m src.echo_tasks.cli toggle --id ID
    python -m src.echo_tasks.cli delete --id ID
    python -m src.echo_tasks.cli run --actions '{"actions": [...]}'|actions.json|- [--yes]
    python -m src.echo_tasks.cli say "add buy milk tomorrow" [--yes]

``run`` executes an action list directly and needs no upstream service;
``say`` sends the text through the intent service first. Commands that stop
on a confirmation are confirmed with --yes and cancelled otherwise, since the
pending decision does not outlive the process.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from src.todo.models import Task

from .assistant import TaskAssistant
from .config import Config
from .exceptions import EchoTasksError
from .logger import setup_logger
from .orchestrator import CommandOutcome


def format_task_text(task: Task) -> str:
    mark = "x" if task.completed else " "
    priority = task.priority.value if task.priority else "-"
    due = task.due_date or "no due date"
    location = f" @ {task.location}" if task.location else ""
    return f"[{mark}] {task.text} | {priority} | {due}{location} | {task.id}"


def print_outcome(outcome: CommandOutcome, output_format: str, tasks) -> None:
    if output_format == "json":
        payload: Dict[str, Any] = outcome.to_dict()
        payload["tasks"] = [task.to_dict() for task in tasks]
        print(json.dumps(payload, ensure_ascii=False))
        return
    print(outcome.summary)
    for result in outcome.results:
        if result.message:
            print(f"  - {result.message}")


def drive_decisions(assistant: TaskAssistant, outcome: CommandOutcome, confirm: bool) -> CommandOutcome:
    """Resolve every decision the command stops on."""
    while outcome.pending_decision is not None:
        decision = outcome.pending_decision
        if confirm:
            print(f"Confirming: {decision.title}", file=sys.stderr)
        else:
            print(f"Needs confirmation, cancelled: {decision.title}", file=sys.stderr)
        outcome = assistant.resolve_decision(decision.id, confirm)
    return outcome


def cmd_list(assistant: TaskAssistant, output_format: str) -> int:
    tasks = assistant.list_tasks()
    if output_format == "json":
        print(json.dumps([task.to_dict() for task in tasks], ensure_ascii=False))
    elif not tasks:
        print("Your to-do list is empty.")
    else:
        for task in tasks:
            print(format_task_text(task))
    return 0


def cmd_add(
    assistant: TaskAssistant,
    text: str,
    priority: Optional[str],
    due_date: Optional[str],
    location: Optional[str],
    output_format: str,
) -> int:
    if not text.strip():
        print("Error: task text is required.", file=sys.stderr)
        return 1
    task = assistant.create_task(text, priority=priority, due_date=due_date, location=location)
    if output_format == "json":
        print(json.dumps(task.to_dict(), ensure_ascii=False))
    else:
        print(f"Added: {format_task_text(task)}")
    return 0


def cmd_toggle(assistant: TaskAssistant, task_id: str, output_format: str) -> int:
    task = assistant.toggle_task(task_id)
    if task is None:
        print(f"Error: task {task_id} not found.", file=sys.stderr)
        return 1
    if output_format == "json":
        print(json.dumps(task.to_dict(), ensure_ascii=False))
    else:
        print(format_task_text(task))
    return 0


def cmd_delete(assistant: TaskAssistant, task_id: str, output_format: str) -> int:
    if not assistant.delete_task(task_id):
        print(f"Error: task {task_id} not found.", file=sys.stderr)
        return 1
    if output_format == "json":
        print(json.dumps({"deleted": True, "id": task_id}, ensure_ascii=False))
    else:
        print(f"Deleted: {task_id}")
    return 0


def read_actions(value: str) -> str:
    """--actions accepts inline JSON, a file path, or - for stdin."""
    if value == "-":
        return sys.stdin.read()
    path = Path(value)
    if not value.lstrip().startswith(("{", "[")) and path.is_file():
        return path.read_text(encoding="utf-8")
    return value


def cmd_run(assistant: TaskAssistant, actions: str, confirm: bool, output_format: str) -> int:
    actions = read_actions(actions)
    try:
        json.loads(actions)
    except ValueError as exc:
        print(f"Error: --actions is not valid JSON: {exc}", file=sys.stderr)
        return 1
    outcome = assistant.submit_actions(actions)
    outcome = drive_decisions(assistant, outcome, confirm)
    print_outcome(outcome, output_format, assistant.list_tasks())
    return 0


def cmd_say(assistant: TaskAssistant, transcript: str, confirm: bool, output_format: str) -> int:
    outcome = assistant.handle_transcript(transcript)
    outcome = drive_decisions(assistant, outcome, confirm)
    print_outcome(outcome, output_format, assistant.list_tasks())
    return 2 if outcome.retryable else 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="EchoTasks - voice driven to-do list",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--db-path", type=str, help="SQLite database file (default: data/echo_tasks.db)")
    parser.add_argument("--config", type=str, help="YAML config file (default: config/app_config.yaml)")

    subparsers = parser.add_subparsers(dest="command", help="command to run", required=True)

    def add_format(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--format", choices=["json", "text"], default="text", help="output format (default: text)")

    parser_list = subparsers.add_parser("list", help="show tasks in display order")
    add_format(parser_list)

    parser_add = subparsers.add_parser("add", help="add a task manually")
    parser_add.add_argument("--text", required=True, help="task text")
    parser_add.add_argument("--priority", choices=["high", "medium", "low"], help="priority")
    parser_add.add_argument("--due-date", help="YYYY-MM-DD or a phrase such as 'next friday'")
    parser_add.add_argument("--location", help="location")
    add_format(parser_add)

    parser_toggle = subparsers.add_parser("toggle", help="flip a task's completed flag")
    parser_toggle.add_argument("--id", required=True, help="task id")
    add_format(parser_toggle)

    parser_delete = subparsers.add_parser("delete", help="delete a task")
    parser_delete.add_argument("--id", required=True, help="task id")
    add_format(parser_delete)

    parser_run = subparsers.add_parser("run", help="execute a JSON action list")
    parser_run.add_argument("--actions", required=True, help="action list JSON, a JSON file, or - for stdin")
    parser_run.add_argument("--yes", action="store_true", help="confirm every decision")
    add_format(parser_run)

    parser_say = subparsers.add_parser("say", help="interpret a spoken-style command")
    parser_say.add_argument("transcript", help="command text")
    parser_say.add_argument("--yes", action="store_true", help="confirm every decision")
    add_format(parser_say)

    args = parser.parse_args()

    try:
        config = Config.from_yaml(args.config) if args.config else Config.from_yaml()
        if args.db_path:
            config.storage.db_path = args.db_path
        setup_logger(config)
        assistant = TaskAssistant(config=config)
    except EchoTasksError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        if args.command == "list":
            return cmd_list(assistant, args.format)
        elif args.command == "add":
            return cmd_add(assistant, args.text, args.priority, args.due_date, args.location, args.format)
        elif args.command == "toggle":
            return cmd_toggle(assistant, args.id, args.format)
        elif args.command == "delete":
            return cmd_delete(assistant, args.id, args.format)
        elif args.command == "run":
            return cmd_run(assistant, args.actions, args.yes, args.format)
        elif args.command == "say":
            return cmd_say(assistant, args.transcript, args.yes, args.format)
        else:
            print(f"Error: unknown command: {args.command}", file=sys.stderr)
            return 1
    except EchoTasksError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        assistant.shutdown()


if __name__ == "__main__":
    sys.exit(main())
