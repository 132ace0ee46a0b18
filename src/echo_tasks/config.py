"""
Configuration

Loaded from config/app_config.yaml (PyYAML) or from environment variables.
Related classes:
  - assistant.TaskAssistant: consumes the whole Config
  - intent_client.IntentClient: uses OllamaConfig
  - transcriber.DeepgramTranscriber: uses TranscriptionConfig
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from src.todo.priority import (
    IMPACT_KEYWORDS,
    LOCATION_KEYWORDS,
    RECURRENCE_MARKERS,
    URGENT_KEYWORDS,
    PriorityKeywords,
)
from src.todo.repository import SETTINGS_KEY, TASKS_KEY
from src.todo.resolver import DEFAULT_SYNONYMS

from .exceptions import ConfigurationError


@dataclass
class OllamaConfig:
    """Ollama settings for the intent service"""

    host: str = "http://localhost:11434"
    model: str = "qwen3:8b"
    temperature: float = 0.1
    max_tokens: int = 2048


@dataclass
class TranscriptionConfig:
    """Speech-to-text settings"""

    api_url: str = "https://api.deepgram.com/v1/listen"
    model: str = "nova-3"
    api_key_env: str = "DEEPGRAM_API_KEY"
    timeout_seconds: float = 30.0

    @property
    def api_key(self) -> Optional[str]:
        return os.getenv(self.api_key_env)


@dataclass
class StorageConfig:
    """Persistence settings"""

    db_path: Optional[str] = None
    tasks_key: str = TASKS_KEY
    settings_key: str = SETTINGS_KEY


@dataclass
class PriorityConfig:
    """Keyword lists for the local priority heuristic"""

    urgent: List[str] = field(default_factory=lambda: list(URGENT_KEYWORDS))
    impact: List[str] = field(default_factory=lambda: list(IMPACT_KEYWORDS))
    location: List[str] = field(default_factory=lambda: list(LOCATION_KEYWORDS))
    recurrence: List[str] = field(default_factory=lambda: list(RECURRENCE_MARKERS))
    default_priority: Optional[str] = "medium"

    def keywords(self) -> PriorityKeywords:
        return PriorityKeywords(
            urgent=tuple(self.urgent),
            impact=tuple(self.impact),
            location=tuple(self.location),
            recurrence=tuple(self.recurrence),
        )


@dataclass
class Config:
    """Application configuration"""

    ollama: OllamaConfig = None  # type: ignore
    transcription: TranscriptionConfig = None  # type: ignore
    storage: StorageConfig = None  # type: ignore
    priority: PriorityConfig = None  # type: ignore

    log_level: str = "INFO"
    log_file: str = "logs/echo_tasks.log"

    undo_timeout_seconds: float = 10.0
    synonyms: Dict[str, List[str]] = None  # type: ignore

    def __post_init__(self):
        if self.ollama is None:
            self.ollama = OllamaConfig()
        if self.transcription is None:
            self.transcription = TranscriptionConfig()
        if self.storage is None:
            self.storage = StorageConfig()
        if self.priority is None:
            self.priority = PriorityConfig()
        if self.synonyms is None:
            self.synonyms = {key: list(words) for key, words in DEFAULT_SYNONYMS.items()}

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "Config":
        """Load settings from YAML.

        Args:
            config_path: defaults to config/app_config.yaml at the project root

        Returns:
            Config: defaults when the file does not exist

        Raises:
            ConfigurationError: the file exists but is not a YAML mapping
        """
        if config_path is None:
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / "config" / "app_config.yaml"
        config_path = Path(config_path)
        if not config_path.exists():
            return cls()

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_data: Dict[str, Any] = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse {config_path}: {e}") from e
        if not isinstance(yaml_data, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping")

        ollama_data = yaml_data.get("ollama", {}) or {}
        transcription_data = yaml_data.get("transcription", {}) or {}
        storage_data = yaml_data.get("storage", {}) or {}
        priority_data = yaml_data.get("priority", {}) or {}
        matching_data = yaml_data.get("matching", {}) or {}
        log_data = yaml_data.get("log", {}) or {}
        undo_data = yaml_data.get("undo", {}) or {}

        defaults = PriorityConfig()
        return cls(
            ollama=OllamaConfig(
                host=ollama_data.get("host", "http://localhost:11434"),
                model=ollama_data.get("model", "qwen3:8b"),
                temperature=float(ollama_data.get("temperature", 0.1)),
                max_tokens=int(ollama_data.get("max_tokens", 2048)),
            ),
            transcription=TranscriptionConfig(
                api_url=transcription_data.get("api_url", "https://api.deepgram.com/v1/listen"),
                model=transcription_data.get("model", "nova-3"),
                api_key_env=transcription_data.get("api_key_env", "DEEPGRAM_API_KEY"),
                timeout_seconds=float(transcription_data.get("timeout_seconds", 30.0)),
            ),
            storage=StorageConfig(
                db_path=storage_data.get("db_path"),
                tasks_key=storage_data.get("tasks_key", TASKS_KEY),
                settings_key=storage_data.get("settings_key", SETTINGS_KEY),
            ),
            priority=PriorityConfig(
                urgent=priority_data.get("urgent", defaults.urgent),
                impact=priority_data.get("impact", defaults.impact),
                location=priority_data.get("location", defaults.location),
                recurrence=priority_data.get("recurrence", defaults.recurrence),
                default_priority=priority_data.get("default_priority", "medium"),
            ),
            log_level=log_data.get("level", "INFO"),
            log_file=log_data.get("file", "logs/echo_tasks.log"),
            undo_timeout_seconds=float(undo_data.get("timeout_seconds", 10.0)),
            synonyms=matching_data.get("synonyms"),
        )

    @classmethod
    def from_env(cls) -> "Config":
        """Load settings from environment variables."""
        return cls(
            ollama=OllamaConfig(
                host=os.getenv("OLLAMA_HOST", "http://localhost:11434"),
                model=os.getenv("OLLAMA_MODEL", "qwen3:8b"),
                temperature=float(os.getenv("OLLAMA_TEMPERATURE", "0.1")),
                max_tokens=int(os.getenv("OLLAMA_MAX_TOKENS", "2048")),
            ),
            transcription=TranscriptionConfig(
                api_url=os.getenv("TRANSCRIPTION_API_URL", "https://api.deepgram.com/v1/listen"),
                model=os.getenv("TRANSCRIPTION_MODEL", "nova-3"),
            ),
            storage=StorageConfig(db_path=os.getenv("ECHO_TASKS_DB_PATH")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", "logs/echo_tasks.log"),
            undo_timeout_seconds=float(os.getenv("UNDO_TIMEOUT_SECONDS", "10")),
        )
