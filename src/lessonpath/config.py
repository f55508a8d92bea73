"""Runtime settings from an optional YAML file, `.env` and the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values

from .models import Locale

DEFAULT_CONFIG_FILE = "lessonpath.yaml"
DEFAULT_DB_PATH = Path(".lessonpath") / "progress.db"
ENV_PREFIX = "LESSONPATH_"


@dataclass
class CurriculumPrefs:
    exercises_per_lesson: int = 20
    lessons_per_stage: int = 7


@dataclass
class SessionPrefs:
    question_count: int = 20
    max_hearts: float = 5.0
    heart_reset_hours: int = 7


@dataclass
class Settings:
    db_path: Path = DEFAULT_DB_PATH
    content_dir: Path | None = None
    locale: Locale = Locale.PRIMARY
    log_level: str = "WARNING"
    curriculum: CurriculumPrefs = field(default_factory=CurriculumPrefs)
    session: SessionPrefs = field(default_factory=SessionPrefs)


def load_settings(config_path: str | Path | None = None, env_file: str | Path = ".env") -> Settings:
    """Load settings; an explicit `config_path` must exist, the default file may not."""
    if config_path is not None:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")
    else:
        config_file = Path(DEFAULT_CONFIG_FILE)

    cfg: dict[str, Any] = {}
    if config_file.exists():
        with open(config_file, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
        if loaded is not None and not isinstance(loaded, dict):
            raise ValueError(f"Config file '{config_file}' must contain a mapping.")
        cfg = loaded or {}

    env_path = Path(env_file)
    raw_env = dotenv_values(env_path) if env_path.exists() else {}
    env = {str(k).lstrip("\ufeff"): (v or "") for k, v in raw_env.items()}

    def get_env(name: str) -> str | None:
        # Process environment overrides .env file.
        key = ENV_PREFIX + name
        value = os.getenv(key)
        if value is not None and value.strip():
            return value.strip()
        value = env.get(key, "").strip()
        return value or None

    defaults = Settings()
    db_path = get_env("DB_PATH") or cfg.get("db_path") or defaults.db_path
    content_dir = get_env("CONTENT_DIR") or cfg.get("content_dir")
    locale = get_env("LOCALE") or cfg.get("locale") or defaults.locale.value
    log_level = get_env("LOG_LEVEL") or cfg.get("log_level") or defaults.log_level

    return Settings(
        db_path=Path(db_path),
        content_dir=Path(content_dir) if content_dir else None,
        locale=_parse_locale(str(locale)),
        log_level=str(log_level).upper(),
        curriculum=_curriculum_prefs(cfg.get("curriculum") or {}),
        session=_session_prefs(cfg.get("session") or {}),
    )


def _parse_locale(value: str) -> Locale:
    try:
        return Locale(value.strip().lower())
    except ValueError:
        choices = ", ".join(item.value for item in Locale)
        raise ValueError(f"Unsupported locale '{value}' (expected one of: {choices}).") from None


def _curriculum_prefs(raw: dict[str, Any]) -> CurriculumPrefs:
    try:
        prefs = CurriculumPrefs(**raw)
    except TypeError as exc:
        raise ValueError(f"Invalid curriculum settings: {exc}") from exc
    if prefs.exercises_per_lesson < 1 or prefs.lessons_per_stage < 1:
        raise ValueError("curriculum.exercises_per_lesson and curriculum.lessons_per_stage must be positive.")
    return prefs


def _session_prefs(raw: dict[str, Any]) -> SessionPrefs:
    try:
        prefs = SessionPrefs(**raw)
    except TypeError as exc:
        raise ValueError(f"Invalid session settings: {exc}") from exc
    if prefs.question_count < 1:
        raise ValueError("session.question_count must be positive.")
    if prefs.max_hearts <= 0:
        raise ValueError("session.max_hearts must be positive.")
    return prefs
