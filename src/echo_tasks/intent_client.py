"""
Intent service client

Sends a transcript to an Ollama chat model and returns the validated action
list. The model is asked for JSON; anything it returns is passed through
actions.normalize_actions, so malformed output degrades to UNKNOWN actions
instead of failing the command.

Related classes:
  - config.OllamaConfig: connection settings
  - prompt_templates.build_intent_messages: the prompt
  - assistant.TaskAssistant: the caller
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import ollama

from .actions import ParsedCommand, normalize_actions
from .exceptions import IntentServiceError
from .prompt_templates import build_intent_messages

UPSTREAM_HTML_MESSAGE = (
    "The intent service is currently experiencing technical difficulties. "
    "Please try again in a moment."
)


def _looks_like_html(message: str) -> bool:
    lowered = message.strip().lower()
    return "<!doctype html>" in lowered or "<html" in lowered


class IntentClient:
    """Transcript -> ParsedCommand via Ollama (JSON mode)"""

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "qwen3:8b",
        temperature: float = 0.1,
        max_tokens: int = 2048,
        client: Optional[Any] = None,
    ):
        """
        Args:
            host: Ollama server URL
            model: model name
            temperature: sampling temperature, kept low for stable parsing
            max_tokens: generation limit
            client: injected ollama.Client (tests)
        """
        self.host = host
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.logger = logging.getLogger(__name__)
        self.client = client or ollama.Client(host=host)

    def chat(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        """Run one JSON-mode chat completion and decode its content.

        Raises:
            IntentServiceError: transport failure, empty or non-JSON reply
        """
        try:
            response = self.client.chat(
                model=self.model,
                messages=messages,
                stream=False,
                format="json",
                options={
                    "temperature": self.temperature,
                    "num_predict": self.max_tokens,
                },
            )
        except Exception as e:
            self.logger.error(f"Ollama chat error: {e}")
            if _looks_like_html(str(e)):
                raise IntentServiceError(UPSTREAM_HTML_MESSAGE) from e
            raise IntentServiceError(f"Intent service request failed: {e}") from e

        content = response["message"]["content"]
        if not content or not content.strip():
            raise IntentServiceError("Intent service returned an empty response.")
        if _looks_like_html(content):
            raise IntentServiceError(UPSTREAM_HTML_MESSAGE)

        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            self.logger.error(f"JSON decode error: {e}")
            raise IntentServiceError(
                "The intent service returned an invalid response. Please try again."
            ) from e

    def extract(self, transcript: str, now: Optional[datetime] = None) -> ParsedCommand:
        """Parse a transcript into an ordered action list."""
        payload = self.chat(build_intent_messages(transcript, now))
        parsed = normalize_actions(payload)
        self.logger.info(
            "Extracted %d action(s): %s",
            len(parsed.actions),
            ", ".join(action.intent.value for action in parsed.actions) or "none",
        )
        return parsed

    def list_models(self) -> List[str]:
        """Installed model names; empty when the server is unreachable."""
        try:
            models = self.client.list()
            return [model["model"] for model in models["models"]]
        except Exception as e:
            self.logger.error(f"Failed to list models: {e}")
            return []

    def has_model(self) -> bool:
        """Whether the configured model is installed; a bare name matches its ``:latest`` tag."""
        wanted = {self.model, f"{self.model}:latest"}
        return any(name in wanted for name in self.list_models())
