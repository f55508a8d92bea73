"""Load raw per-language lesson content from bundled JSON resources."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from importlib import resources
from pathlib import Path
from typing import Any

from .errors import MalformedExerciseError
from .models import Exercise

logger = logging.getLogger(__name__)

CONTENT_PACKAGE = "lessonpath.content.lessons"

SUPPORTED_LANGUAGES: tuple[str, ...] = (
    "swahili",
    "hausa",
    "yoruba",
    "zulu",
    "amharic",
    "igbo",
    "arabic",
    "shona",
    "somali",
    "berber",
    "moore",
    "lingala",
    "twi",
    "chichewa",
    "wolof",
)


def load_raw_lessons(language_id: str, content_dir: Path | None = None) -> list[Any]:
    """Return the authored lesson records for a language, or [] when none exist."""
    file_name = f"{language_id}.json"
    if content_dir is not None:
        path = content_dir / file_name
        if not path.is_file():
            return []
        text = path.read_text(encoding="utf-8-sig")
    else:
        entry = resources.files(CONTENT_PACKAGE).joinpath(file_name)
        if not entry.is_file():
            return []
        text = entry.read_text(encoding="utf-8-sig")
    return _lessons_from_payload(json.loads(text), file_name)


def _lessons_from_payload(payload: object, source: str) -> list[Any]:
    """Accept a bare lesson list, a `lessons` object, or stage-structured content."""
    if isinstance(payload, list):
        return list(payload)
    if not isinstance(payload, dict):
        raise ValueError(f"Content file '{source}' root must be a JSON list or object.")
    if isinstance(payload.get("lessons"), list):
        return list(payload["lessons"])
    if isinstance(payload.get("stages"), list):
        lessons: list[Any] = []
        for stage in payload["stages"]:
            if isinstance(stage, dict) and isinstance(stage.get("lessons"), list):
                lessons.extend(stage["lessons"])
        return lessons
    raise ValueError(f"Content file '{source}' has neither 'lessons' nor 'stages'.")


def raw_exercises(raw_lesson: object) -> list[Exercise]:
    """Parse the exercises of one raw lesson, skipping unreadable records."""
    if not isinstance(raw_lesson, Mapping):
        return []
    items = raw_lesson.get("exercises")
    if not isinstance(items, list):
        return []
    exercises: list[Exercise] = []
    for item in items:
        try:
            exercises.append(exercise_from_dict(item))
        except MalformedExerciseError as exc:
            logger.warning("Skipping exercise in lesson %r: %s", raw_lesson.get("id"), exc)
    return exercises


def exercise_from_dict(raw: object) -> Exercise:
    """Build an exercise from raw JSON content.

    Missing text fields become empty strings rather than errors so that the
    validator, not the loader, reports incomplete content.
    """
    if not isinstance(raw, Mapping):
        raise MalformedExerciseError(f"Exercise record must be an object, got {type(raw).__name__}.")
    options_fr = raw.get("optionsFr")
    return Exercise(
        id=_text(raw.get("id")),
        type=_text(raw.get("type")),
        question=_text(raw.get("question")),
        question_fr=_optional_text(raw.get("questionFr")),
        correct_answer=_text(raw.get("correctAnswer")),
        correct_answer_fr=_optional_text(raw.get("correctAnswerFr")),
        options=_text_tuple(raw.get("options")),
        options_fr=_text_tuple(options_fr) if isinstance(options_fr, list) else None,
        hint=_optional_text(raw.get("hint")),
        hint_fr=_optional_text(raw.get("hintFr")),
    )


def _text(value: object) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _optional_text(value: object) -> str | None:
    return None if value is None else _text(value)


def _text_tuple(value: object) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(_text(item) for item in value)
