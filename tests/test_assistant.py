"""TaskAssistant tests with mocked upstream services"""

from unittest.mock import MagicMock

import pytest

from conftest import FakeClock
from src.echo_tasks.actions import normalize_actions
from src.echo_tasks.assistant import NO_SPEECH_MESSAGE, TaskAssistant
from src.echo_tasks.config import Config, StorageConfig
from src.echo_tasks.exceptions import (
    CommandInProgressError,
    ConfigurationError,
    IntentServiceError,
    TranscriptionError,
)
from src.todo.models import SortOption, UndoKind


@pytest.fixture
def config(tmp_path):
    return Config(storage=StorageConfig(db_path=str(tmp_path / "echo_tasks.db")))


@pytest.fixture
def intent_client():
    return MagicMock()


@pytest.fixture
def transcriber():
    return MagicMock()


@pytest.fixture
def make_assistant(config, intent_client, transcriber):
    created = []

    def factory():
        assistant = TaskAssistant(
            config=config,
            intent_client=intent_client,
            transcriber=transcriber,
            clock=FakeClock(),
        )
        created.append(assistant)
        return assistant

    yield factory
    for assistant in created:
        assistant.shutdown()


@pytest.fixture
def assistant(make_assistant):
    return make_assistant()


def ids(tasks):
    return [task.id for task in tasks]


def test_starts_with_seed_tasks(assistant):
    assert ids(assistant.list_tasks()) == ["seed-report", "seed-groceries", "seed-review"]
    assert assistant.undo_status()["available"] is False


def test_transcript_command_is_persisted(assistant, intent_client, make_assistant):
    intent_client.extract.return_value = normalize_actions(
        {"actions": [{"intent": "ADD_TASK", "tasks": [{"text": "call mom", "dueDate": "tomorrow"}]}]}
    )

    outcome = assistant.handle_transcript("  add call mom tomorrow ")

    intent_client.extract.assert_called_once()
    assert intent_client.extract.call_args.args[0] == "add call mom tomorrow"
    assert outcome.summary == "Added 1 task."
    reloaded = make_assistant()
    assert reloaded.list_tasks()[0].text == "call mom"
    assert reloaded.list_tasks()[0].due_date == "2025-06-12"


def test_empty_transcript_skips_intent_service(assistant, intent_client):
    outcome = assistant.handle_transcript("   ")

    assert outcome.summary == NO_SPEECH_MESSAGE
    assert not outcome.retryable
    intent_client.extract.assert_not_called()


def test_intent_failure_is_retryable_and_changes_nothing(assistant, intent_client):
    intent_client.extract.side_effect = IntentServiceError("Intent service request failed: down")
    before = [task.to_dict() for task in assistant.list_tasks()]

    outcome = assistant.handle_transcript("delete everything")

    assert outcome.retryable is True
    assert outcome.error == "Intent service request failed: down"
    assert [task.to_dict() for task in assistant.list_tasks()] == before
    assert assistant.undo_status()["available"] is False


def test_audio_goes_through_transcriber(assistant, transcriber, intent_client):
    transcriber.transcribe.return_value = "show my tasks"
    intent_client.extract.return_value = normalize_actions({"actions": [{"intent": "SHOW_TASKS"}]})

    outcome = assistant.handle_audio(b"audio-bytes", "audio/wav")

    transcriber.transcribe.assert_called_once_with(b"audio-bytes", "audio/wav")
    assert outcome.transcript == "show my tasks"
    assert outcome.views[0].task_ids == ["seed-report", "seed-groceries", "seed-review"]


@pytest.mark.parametrize(
    "error",
    [TranscriptionError("Transcription service returned an error: 500"), ConfigurationError("no key")],
)
def test_audio_failures_are_retryable(assistant, transcriber, intent_client, error):
    transcriber.transcribe.side_effect = error

    outcome = assistant.handle_audio(b"audio-bytes")

    assert outcome.retryable is True
    assert outcome.error == str(error)
    intent_client.extract.assert_not_called()


def test_silent_recording(assistant, transcriber, intent_client):
    transcriber.transcribe.return_value = ""

    outcome = assistant.handle_audio(b"audio-bytes")

    assert outcome.summary == NO_SPEECH_MESSAGE
    intent_client.extract.assert_not_called()


def test_decision_blocks_new_commands_until_resolved(assistant, intent_client):
    outcome = assistant.submit_actions([{"intent": "DELETE_TASK", "filter": {"text": "report"}}])
    decision = outcome.pending_decision
    assert assistant.pending_decision is decision

    with pytest.raises(CommandInProgressError):
        assistant.handle_transcript("add walk the dog")
    with pytest.raises(CommandInProgressError):
        assistant.handle_audio(b"audio-bytes")
    intent_client.extract.assert_not_called()

    resolved = assistant.resolve_decision(decision.id, confirmed=True)
    assert resolved.counters.deleted == 1
    assert assistant.get_task("seed-report") is None
    assert assistant.pending_decision is None


def test_cancel_pending(assistant):
    assistant.submit_actions([{"intent": "DELETE_ALL"}])

    outcome = assistant.cancel_pending()

    assert outcome.counters.cancelled == 1
    assert len(assistant.list_tasks()) == 3
    assert assistant.cancel_pending() is None


def test_undo_reverts_and_persists(assistant, make_assistant):
    assistant.submit_actions([{"intent": "DELETE_TASK", "filter": {"text": "milk"}}])
    status = assistant.undo_status()
    assert status["available"] is True
    assert status["kind"] == UndoKind.DELETE.value
    assert status["task_ids"] == ["seed-groceries"]
    assert assistant.undo_scheduler.armed_generation == assistant.undo_log.generation

    action = assistant.undo()

    assert action.kind is UndoKind.DELETE
    assert assistant.undo() is None
    assert "seed-groceries" in ids(make_assistant().list_tasks())


def test_dismiss_undo(assistant):
    assistant.create_task("Water plants")
    assert assistant.dismiss_undo() is True
    assert assistant.undo() is None
    assert assistant.undo_scheduler.armed_generation is None


def test_read_only_commands_do_not_arm_undo(assistant):
    assistant.submit_actions([{"intent": "SHOW_TASKS"}, {"intent": "QUERY_TASK_INFO", "queryType": "count"}])
    assert assistant.undo_scheduler.armed_generation is None
    assert assistant.undo_status()["available"] is False


def test_manual_task_operations(assistant, make_assistant):
    task = assistant.create_task("Water plants", priority="low", due_date="friday", location="Balcony")
    assert task.due_date == "2025-06-13"

    updated = assistant.update_task(task.id, text="Water the plants", priority=None)
    assert updated.text == "Water the plants"
    assert updated.priority is None
    assert updated.location == "Balcony"

    assert assistant.toggle_task(task.id).completed is True
    assert assistant.update_task("missing", text="x") is None
    assert assistant.toggle_task("missing") is None
    assert assistant.delete_task("missing") is False
    assert assistant.delete_task("seed-review") is True

    reloaded = make_assistant()
    assert ids(reloaded.list_tasks()) == [task.id, "seed-report", "seed-groceries"]
    assert reloaded.get_task(task.id).completed is True


def test_settings_persist_and_drive_order(assistant, make_assistant):
    settings = assistant.update_settings(move_completed_to_bottom=True, sort_option="priorityLowToHigh")
    assert settings.sort_option is SortOption.PRIORITY_LOW_TO_HIGH

    reloaded = make_assistant()
    assert reloaded.get_settings().move_completed_to_bottom is True
    assert ids(reloaded.list_tasks()) == ["seed-groceries", "seed-report", "seed-review"]


def test_sort_command_is_persisted(assistant, make_assistant):
    assistant.submit_actions([{"intent": "SORT_BY", "sortOption": "dueDate"}])
    assert make_assistant().get_settings().sort_option is SortOption.DUE_DATE


def test_invalid_sort_option_raises(assistant):
    with pytest.raises(ValueError):
        assistant.update_settings(sort_option="alphabetical")


def test_undo_status_after_window_closes(assistant):
    assistant.create_task("Water plants")
    assistant.undo_log.timeout_seconds = 0

    status = assistant.undo_status()

    assert status["available"] is False
    assert status["expires_in"] == 0.0
    assert assistant.undo() is not None


def test_intent_status(assistant, intent_client):
    intent_client.model = "qwen3:8b"
    intent_client.has_model.return_value = False
    assert assistant.intent_status() == {"model": "qwen3:8b", "available": False}
