"""Core domain models for stage/lesson/exercise curricula."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

EXERCISE_TYPES = frozenset({"multiple-choice", "fill-blank", "match", "translate", "type-answer"})
LESSON_TYPES = frozenset({"vocabulary", "grammar", "writing", "culture"})
MULTIPLE_CHOICE = "multiple-choice"


class Locale(str, Enum):
    """Interface locale used to pick bilingual text."""

    PRIMARY = "en"
    SECONDARY = "fr"


def localized(primary: str, secondary: str | None, locale: Locale) -> str:
    """Return the secondary text when requested and non-blank, else the primary."""
    if locale is Locale.SECONDARY and secondary is not None and secondary.strip():
        return secondary
    return primary


@dataclass(frozen=True)
class Exercise:
    """One atomic question."""

    id: str
    type: str
    question: str
    correct_answer: str
    question_fr: str | None = None
    correct_answer_fr: str | None = None
    options: tuple[str, ...] = ()
    options_fr: tuple[str, ...] | None = None
    hint: str | None = None
    hint_fr: str | None = None

    def question_for(self, locale: Locale) -> str:
        return localized(self.question, self.question_fr, locale)

    def answer_for(self, locale: Locale) -> str:
        return localized(self.correct_answer, self.correct_answer_fr, locale)

    def options_for(self, locale: Locale) -> tuple[str, ...]:
        if locale is Locale.SECONDARY and self.options_fr:
            return self.options_fr
        return self.options

    def hint_for(self, locale: Locale) -> str | None:
        if locale is Locale.SECONDARY and self.hint_fr is not None and self.hint_fr.strip():
            return self.hint_fr
        return self.hint


@dataclass(frozen=True)
class Lesson:
    """Ordered lesson holding a fixed number of exercises."""

    id: str
    stage_id: str
    lesson_number: int
    type: str
    title: str
    title_fr: str
    xp_reward: int
    exercises: tuple[Exercise, ...]

    def title_for(self, locale: Locale) -> str:
        return localized(self.title, self.title_fr, locale)


@dataclass(frozen=True)
class Stage:
    """Themed group of lessons."""

    id: str
    stage_number: int
    title: str
    title_fr: str
    color: str
    lessons: tuple[Lesson, ...]

    def title_for(self, locale: Locale) -> str:
        return localized(self.title, self.title_fr, locale)


@dataclass(frozen=True)
class SessionReport:
    """Result handed to progress persistence when a lesson session completes."""

    lesson_id: str
    xp_earned: int
    hearts_lost: float
    hearts_gained: float
    correct_count: int
    total_questions: int
