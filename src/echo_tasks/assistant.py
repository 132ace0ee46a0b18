"""
EchoTasks main module

TaskAssistant wires the pieces together: persistence, the task store with its
undo slot, the orchestrator and the two upstream services. Every public
operation runs under one lock, so the HTTP layer can call it from worker
threads while commands stay strictly sequential.

Related classes:
  - config.Config: settings
  - orchestrator.CommandOrchestrator: command semantics
  - intent_client.IntentClient / transcriber.DeepgramTranscriber: upstream services
  - scheduler.UndoExpiryScheduler: undo window
"""

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from src.todo.dates import NaturalDateParser
from src.todo.models import Priority, Settings, SortOption, Task, UndoAction
from src.todo.repository import StateRepository
from src.todo.resolver import TaskResolver
from src.todo.store import UNSET, TaskStore, local_now
from src.todo.undo import UndoLog

from .actions import ParsedCommand
from .config import Config
from .exceptions import CommandInProgressError, ConfigurationError, UpstreamServiceError
from .intent_client import IntentClient
from .orchestrator import CommandOrchestrator, CommandOutcome, PendingDecision
from .scheduler import UndoExpiryScheduler
from .transcriber import DeepgramTranscriber

NO_SPEECH_MESSAGE = "No speech detected. Please try again."


class TaskAssistant:
    """Voice to-do assistant"""

    def __init__(
        self,
        config: Optional[Config] = None,
        repository: Optional[StateRepository] = None,
        intent_client: Optional[IntentClient] = None,
        transcriber: Optional[DeepgramTranscriber] = None,
        clock: Callable[[], datetime] = local_now,
    ):
        """
        Args:
            config: settings; loaded from YAML when omitted
            repository: injected persistence (tests)
            intent_client: injected intent service client
            transcriber: injected speech-to-text client
            clock: source of "now" for the store and every command
        """
        self.config = config or Config.from_yaml()
        self.logger = logging.getLogger(__name__)
        self._lock = threading.RLock()

        self.repository = repository or StateRepository(
            self.config.storage.db_path,
            tasks_key=self.config.storage.tasks_key,
            settings_key=self.config.storage.settings_key,
        )
        self.date_parser = NaturalDateParser()
        self.undo_log = UndoLog(timeout_seconds=self.config.undo_timeout_seconds)
        self.store = TaskStore(
            self.repository.load_tasks(clock()),
            date_parser=self.date_parser,
            undo_log=self.undo_log,
            clock=clock,
        )
        self.settings = self.repository.load_settings()
        self.resolver = TaskResolver(date_parser=self.date_parser, synonyms=self.config.synonyms)
        self.orchestrator = CommandOrchestrator(
            self.store,
            self.resolver,
            settings=self.settings,
            date_parser=self.date_parser,
            priority_keywords=self.config.priority.keywords(),
            default_priority=self.config.priority.default_priority,
        )
        self.undo_scheduler = UndoExpiryScheduler(self.undo_log)

        self.intent_client = intent_client or IntentClient(
            host=self.config.ollama.host,
            model=self.config.ollama.model,
            temperature=self.config.ollama.temperature,
            max_tokens=self.config.ollama.max_tokens,
        )
        self.transcriber = transcriber or DeepgramTranscriber(
            api_key=self.config.transcription.api_key,
            api_url=self.config.transcription.api_url,
            model=self.config.transcription.model,
            timeout=self.config.transcription.timeout_seconds,
        )
        self.logger.info(f"TaskAssistant ready with {len(self.store)} task(s)")

    # Commands

    def handle_audio(self, audio: bytes, content_type: str = "audio/webm") -> CommandOutcome:
        """Transcribe a recording and run the resulting command."""
        self._ensure_idle()
        try:
            transcript = self.transcriber.transcribe(audio, content_type)
        except (UpstreamServiceError, ConfigurationError) as e:
            self.logger.error(f"Transcription failed: {e}")
            return self._failed_outcome("", str(e))
        return self.handle_transcript(transcript)

    def handle_transcript(self, transcript: str) -> CommandOutcome:
        """Run a transcript through the intent service and the orchestrator.

        Upstream failures do not raise; they come back as a retryable outcome
        and the task list is left untouched.
        """
        transcript = (transcript or "").strip()
        if not transcript:
            return CommandOutcome(transcript="", summary=NO_SPEECH_MESSAGE)
        self._ensure_idle()
        try:
            parsed = self.intent_client.extract(transcript, self.store.now())
        except UpstreamServiceError as e:
            self.logger.error(f"Intent extraction failed: {e}")
            return self._failed_outcome(transcript, str(e))
        return self.submit_actions(parsed, transcript)

    def submit_actions(
        self,
        actions: Union[ParsedCommand, List[Any], Dict[str, Any], str],
        transcript: str = "",
    ) -> CommandOutcome:
        """Run an already extracted action list."""
        with self._lock:
            generation = self.undo_log.generation
            outcome = self.orchestrator.submit_command(actions, transcript)
            self._after_change(generation)
        self.logger.info(f"Command result: {outcome.summary}")
        return outcome

    def resolve_decision(
        self,
        decision_id: str,
        confirmed: bool,
        selected_ids: Optional[Iterable[str]] = None,
    ) -> CommandOutcome:
        """Confirm or cancel the pending decision and continue its command."""
        with self._lock:
            generation = self.undo_log.generation
            outcome = self.orchestrator.resume(decision_id, confirmed, selected_ids)
            self._after_change(generation)
        return outcome

    def cancel_pending(self) -> Optional[CommandOutcome]:
        with self._lock:
            generation = self.undo_log.generation
            outcome = self.orchestrator.cancel_pending()
            self._after_change(generation)
        return outcome

    @property
    def pending_decision(self) -> Optional[PendingDecision]:
        return self.orchestrator.pending_decision

    # Undo

    def undo(self) -> Optional[UndoAction]:
        """Revert the most recent undoable mutation, if still pending."""
        with self._lock:
            self.undo_scheduler.cancel()
            action = self.store.revert_last()
            if action is not None:
                self._persist()
        return action

    def dismiss_undo(self) -> bool:
        with self._lock:
            self.undo_scheduler.cancel()
            return self.undo_log.clear()

    def undo_status(self) -> Dict[str, Any]:
        """Undo slot state; a slot past its window is reported unavailable before the timer clears it."""
        with self._lock:
            entry = self.undo_log.pending
            return {
                "available": entry is not None and not self.undo_log.is_expired(),
                "kind": entry.kind.value if entry else None,
                "task_ids": entry.task_ids if entry else [],
                "expires_in": self.undo_log.expires_in(),
            }

    def intent_status(self) -> Dict[str, Any]:
        return {"model": self.intent_client.model, "available": self.intent_client.has_model()}

    # Tasks and settings

    def list_tasks(self) -> List[Task]:
        with self._lock:
            return self.orchestrator.display_tasks()

    def get_task(self, task_id: str) -> Optional[Task]:
        with self._lock:
            return self.store.get(task_id)

    def create_task(
        self,
        text: str,
        priority: Optional[Union[Priority, str]] = None,
        due_date: Optional[str] = None,
        location: Optional[str] = None,
    ) -> Task:
        with self._lock:
            generation = self.undo_log.generation
            task = self.store.create(text, priority=priority, due_date=due_date, location=location)
            self._after_change(generation)
        return task

    def update_task(self, task_id: str, **fields: Any) -> Optional[Task]:
        """Manual edit; omitted fields are left unchanged."""
        with self._lock:
            generation = self.undo_log.generation
            task = self.store.update(
                task_id,
                text=fields.get("text"),
                priority=fields.get("priority", UNSET),
                due_date=fields.get("due_date", UNSET),
                location=fields.get("location", UNSET),
                completed=fields.get("completed"),
            )
            self._after_change(generation)
        return task

    def toggle_task(self, task_id: str) -> Optional[Task]:
        with self._lock:
            generation = self.undo_log.generation
            task = self.store.toggle(task_id)
            self._after_change(generation)
        return task

    def delete_task(self, task_id: str) -> bool:
        with self._lock:
            generation = self.undo_log.generation
            removed = self.store.delete(task_id)
            self._after_change(generation)
        return removed > 0

    def get_settings(self) -> Settings:
        with self._lock:
            return Settings(
                move_completed_to_bottom=self.settings.move_completed_to_bottom,
                sort_option=self.settings.sort_option,
            )

    def update_settings(
        self,
        move_completed_to_bottom: Optional[bool] = None,
        sort_option: Optional[Union[SortOption, str]] = None,
    ) -> Settings:
        with self._lock:
            if move_completed_to_bottom is not None:
                self.settings.move_completed_to_bottom = bool(move_completed_to_bottom)
            if sort_option is not None:
                self.settings.sort_option = SortOption(sort_option)
            self.repository.save_settings(self.settings)
        return self.get_settings()

    def shutdown(self) -> None:
        self.undo_scheduler.cancel()

    # Internals

    def _ensure_idle(self) -> None:
        decision = self.orchestrator.pending_decision
        if decision is not None:
            raise CommandInProgressError(f"Decision {decision.id} must be resolved first")

    def _after_change(self, generation_before: int) -> None:
        self._persist()
        if self.undo_log.generation != generation_before:
            self.undo_scheduler.arm()

    def _persist(self) -> None:
        self.repository.save_tasks(self.store.tasks)
        self.repository.save_settings(self.settings)

    @staticmethod
    def _failed_outcome(transcript: str, message: str) -> CommandOutcome:
        return CommandOutcome(
            transcript=transcript,
            summary=message,
            retryable=True,
            error=message,
        )
