from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict

import yaml

from .data.topics import ALL_TOPICS

DEFAULT_TIME_LIMIT_MINUTES = 30

# Storage keys match the browser build so saved settings stay readable
SETTINGS_KEYS = {
    "dark_mode": "darkMode",
    "timer_enabled": "timerEnabled",
    "time_limit_minutes": "timeLimit",
    "shuffle_questions": "shuffleQuestions",
    "shuffle_answers": "shuffleAnswers",
    "selected_topic": "selectedTopic",
}


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_dir: str = os.getenv("QUIZRUNNER_LOG_DIR", "logs")
    filename: str = "quizrunner.log"
    structured: bool = False


@dataclass
class StorageConfig:
    directory: str = os.getenv("QUIZRUNNER_STORAGE_DIR", ".quizrunner")
    settings_key: str = "quizSettings"
    history_key: str = "quizHistory"
    history_limit: int = 50


@dataclass
class ImportConfig:
    id_salt: str = ""
    max_file_bytes: int = 5 * 1024 * 1024
    seed: int | None = None  # shuffling seed; None draws fresh entropy


@dataclass
class AppConfig:
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    importing: ImportConfig = field(default_factory=ImportConfig)

    @staticmethod
    def from_dict(payload: Dict[str, Any]) -> "AppConfig":
        return AppConfig(
            logging=LoggingConfig(**payload.get("logging", {})),
            storage=StorageConfig(**payload.get("storage", {})),
            importing=ImportConfig(**payload.get("importing", {})),
        )

    @staticmethod
    def from_json(path: str | Path) -> "AppConfig":
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
        return AppConfig.from_dict(payload)

    @staticmethod
    def from_file(path: str | Path) -> "AppConfig":
        """Load a JSON or YAML config, chosen by file suffix."""
        p = Path(path)
        if p.suffix.lower() in {".yaml", ".yml"}:
            with open(p, "r", encoding="utf-8") as f:
                return AppConfig.from_dict(yaml.safe_load(f) or {})
        return AppConfig.from_json(p)

    def to_json(self, path: str | Path) -> None:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        with open(p, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2, ensure_ascii=False)


def default_app_config() -> AppConfig:
    return AppConfig()


@dataclass
class Settings:
    """User preferences, persisted to session storage on every change."""

    dark_mode: bool = False
    timer_enabled: bool = False
    time_limit_minutes: int = DEFAULT_TIME_LIMIT_MINUTES
    shuffle_questions: bool = False
    shuffle_answers: bool = False
    selected_topic: str = ALL_TOPICS

    @property
    def time_limit_seconds(self) -> int:
        return self.time_limit_minutes * 60

    def to_dict(self) -> Dict[str, Any]:
        return {SETTINGS_KEYS[f.name]: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, payload: Any) -> "Settings":
        """Merge saved values over the defaults, ignoring unknown or mistyped keys."""
        settings = cls()
        if not isinstance(payload, dict):
            return settings
        for f in fields(cls):
            key = SETTINGS_KEYS[f.name]
            if key not in payload:
                continue
            value = payload[key]
            default = getattr(settings, f.name)
            if isinstance(default, bool):
                if isinstance(value, bool):
                    setattr(settings, f.name, value)
            elif isinstance(default, int):
                settings.set_time_limit(value)
            elif isinstance(value, str) and value:
                setattr(settings, f.name, value)
        return settings

    def set_time_limit(self, minutes: Any) -> None:
        """Accept a positive whole number of minutes; anything else resets to the default."""
        try:
            value = int(minutes)
        except (TypeError, ValueError, OverflowError):
            value = 0
        if isinstance(minutes, bool) or value <= 0:
            value = DEFAULT_TIME_LIMIT_MINUTES
        self.time_limit_minutes = value
