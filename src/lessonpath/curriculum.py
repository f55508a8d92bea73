"""Build fixed-shape stage/lesson curricula from irregular authored content."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .content_loader import SUPPORTED_LANGUAGES, load_raw_lessons, raw_exercises
from .models import Exercise, Lesson, Stage
from .normalizer import normalize_exercises

logger = logging.getLogger(__name__)

EXERCISES_PER_LESSON = 20
LESSONS_PER_STAGE = 7
DEFAULT_XP_REWARD = 10
DEFAULT_LESSON_TYPE = "vocabulary"


@dataclass(frozen=True)
class StageTemplate:
    """Theme shared by the same stage position in every language."""

    title: str
    title_fr: str
    color: str


STAGE_TEMPLATES: tuple[StageTemplate, ...] = (
    StageTemplate("Greetings & Introductions", "Salutations et présentations", "from-[#F4A300] to-[#FF9500]"),
    StageTemplate("Polite & Formal Speech", "Politesse et formules", "from-[#B11226] to-[#E11D48]"),
    StageTemplate("People & Family", "Personnes et famille", "from-[#006D48] to-[#00A86B]"),
    StageTemplate("Everyday Nouns", "Noms du quotidien", "from-[#0B0710] to-[#12050A]"),
    StageTemplate("Numbers & Time", "Nombres et temps", "from-[#4169E1] to-[#6495ED]"),
    StageTemplate("Food & Daily Life", "Nourriture et vie quotidienne", "from-[#8B4513] to-[#D2691E]"),
    StageTemplate("Conversation & Review", "Conversation et révision", "from-[#228B22] to-[#32CD32]"),
)


def build_curriculum(
    language_id: str,
    raw_lessons: Sequence[Any],
    *,
    exercises_per_lesson: int = EXERCISES_PER_LESSON,
    lessons_per_stage: int = LESSONS_PER_STAGE,
) -> list[Stage]:
    """Return one stage per template, each with `lessons_per_stage` full lessons.

    Authored lessons fill slots in order; empty slots become review lessons
    drawn from content introduced up to and including the stage.
    """
    parsed = [raw_exercises(raw) for raw in raw_lessons]
    all_exercises = [exercise for group in parsed for exercise in group]

    stages: list[Stage] = []
    for stage_index, template in enumerate(STAGE_TEMPLATES):
        stage_id = f"{language_id}-stage-{stage_index + 1}"
        cutoff = max(1, min(len(raw_lessons), (stage_index + 1) * lessons_per_stage))
        pool = [exercise for group in parsed[:cutoff] for exercise in group] or all_exercises

        lessons: list[Lesson] = []
        for slot_index in range(lessons_per_stage):
            global_index = stage_index * lessons_per_stage + slot_index
            raw = raw_lessons[global_index] if global_index < len(raw_lessons) else None
            if raw is not None:
                lesson = _authored_lesson(
                    raw,
                    parsed[global_index],
                    stage_id=stage_id,
                    slot_index=slot_index,
                    seed=f"{language_id}:{global_index}",
                    exercises_per_lesson=exercises_per_lesson,
                )
            else:
                lesson = _review_lesson(
                    language_id,
                    stage_id=stage_id,
                    stage_index=stage_index,
                    slot_index=slot_index,
                    pool=pool,
                    exercises_per_lesson=exercises_per_lesson,
                )
            lessons.append(lesson)

        stages.append(
            Stage(
                id=stage_id,
                stage_number=stage_index + 1,
                title=template.title,
                title_fr=template.title_fr,
                color=template.color,
                lessons=tuple(lessons),
            )
        )

    logger.debug(
        "Built curriculum for %s from %d authored lessons (%d exercises)",
        language_id,
        len(raw_lessons),
        len(all_exercises),
    )
    return stages


def _authored_lesson(
    raw: object,
    exercises: list[Exercise],
    *,
    stage_id: str,
    slot_index: int,
    seed: str,
    exercises_per_lesson: int,
) -> Lesson:
    """Wrap one authored lesson, substituting defaults for missing fields."""
    fields: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    lesson_id = _non_blank(fields.get("id")) or f"{stage_id}-lesson-{slot_index + 1}"
    xp_reward = fields.get("xpReward")
    if isinstance(xp_reward, bool) or not isinstance(xp_reward, int | float):
        xp_reward = DEFAULT_XP_REWARD
    return Lesson(
        id=lesson_id,
        stage_id=stage_id,
        lesson_number=slot_index + 1,
        type=_non_blank(fields.get("type")) or DEFAULT_LESSON_TYPE,
        title=_non_blank(fields.get("title")) or f"Lesson {slot_index + 1}",
        title_fr=_non_blank(fields.get("titleFr")) or f"Leçon {slot_index + 1}",
        xp_reward=int(xp_reward),
        exercises=tuple(normalize_exercises(exercises, exercises_per_lesson, f"{lesson_id}:{seed}")),
    )


def _review_lesson(
    language_id: str,
    *,
    stage_id: str,
    stage_index: int,
    slot_index: int,
    pool: list[Exercise],
    exercises_per_lesson: int,
) -> Lesson:
    """Synthesize a review lesson for a slot with no authored content."""
    template = STAGE_TEMPLATES[stage_index]
    lesson_id = f"{language_id}-review-{stage_index + 1}-{slot_index + 1}"
    seed = f"{lesson_id}:{language_id}:{stage_index}:{slot_index}"
    return Lesson(
        id=lesson_id,
        stage_id=stage_id,
        lesson_number=slot_index + 1,
        type=DEFAULT_LESSON_TYPE,
        title=f"Review: {template.title}",
        title_fr=f"Révision : {template.title_fr}",
        xp_reward=DEFAULT_XP_REWARD,
        exercises=tuple(normalize_exercises(pool, exercises_per_lesson, seed)),
    )


def _non_blank(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


@dataclass(frozen=True)
class LessonCounts:
    """Authored content coverage for one language."""

    language_id: str
    lesson_count: int
    exercise_count: int
    average_exercises: float
    coverage_percent: int


def lesson_counts(language_id: str, raw_lessons: Sequence[Any], lessons_per_stage: int = LESSONS_PER_STAGE) -> LessonCounts:
    """Summarize how much of the fixed lesson grid a language authors directly."""
    target = len(STAGE_TEMPLATES) * lessons_per_stage
    exercise_count = 0
    for raw in raw_lessons:
        if isinstance(raw, Mapping) and isinstance(raw.get("exercises"), list):
            exercise_count += len(raw["exercises"])
    lesson_count = len(raw_lessons)
    return LessonCounts(
        language_id=language_id,
        lesson_count=lesson_count,
        exercise_count=exercise_count,
        average_exercises=exercise_count / lesson_count if lesson_count else 0.0,
        coverage_percent=min(100, round(100 * lesson_count / target)),
    )


RawLessonSource = Callable[[str], Sequence[Any]]


class CurriculumCatalog:
    """Read-only per-language curricula, built on first access and then shared."""

    def __init__(
        self,
        source: RawLessonSource = load_raw_lessons,
        languages: Sequence[str] = SUPPORTED_LANGUAGES,
        *,
        exercises_per_lesson: int = EXERCISES_PER_LESSON,
        lessons_per_stage: int = LESSONS_PER_STAGE,
    ) -> None:
        self._source = source
        self._languages = tuple(languages)
        self._exercises_per_lesson = exercises_per_lesson
        self._lessons_per_stage = lessons_per_stage
        self._stages: dict[str, tuple[Stage, ...]] = {}
        self._lock = threading.Lock()

    def languages(self) -> tuple[str, ...]:
        """Return supported language ids in catalog order."""
        return self._languages

    def stages(self, language_id: str) -> tuple[Stage, ...]:
        """Return the curriculum for a language, building it once."""
        if language_id not in self._languages:
            raise KeyError(language_id)
        cached = self._stages.get(language_id)
        if cached is not None:
            return cached
        with self._lock:
            cached = self._stages.get(language_id)
            if cached is None:
                cached = tuple(
                    build_curriculum(
                        language_id,
                        self._source(language_id),
                        exercises_per_lesson=self._exercises_per_lesson,
                        lessons_per_stage=self._lessons_per_stage,
                    )
                )
                self._stages[language_id] = cached
        return cached

    def lesson(self, language_id: str, lesson_id: str) -> Lesson | None:
        """Find a lesson by id within a language."""
        for stage in self.stages(language_id):
            for lesson in stage.lessons:
                if lesson.id == lesson_id:
                    return lesson
        return None

    def lesson_counts(self, language_id: str) -> LessonCounts:
        """Report authored coverage for one language."""
        if language_id not in self._languages:
            raise KeyError(language_id)
        return lesson_counts(language_id, self._source(language_id), self._lessons_per_stage)
