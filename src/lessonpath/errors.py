"""Exception types raised by the curriculum and session engine."""

from __future__ import annotations

from datetime import datetime


class LessonPathError(Exception):
    """Base class for lessonpath errors."""


class MalformedExerciseError(LessonPathError, ValueError):
    """Raw exercise record cannot be read at all."""


class InvalidNormalizationTarget(LessonPathError, ValueError):
    """Normalizer was asked for a non-positive exercise count."""


class EmptyLessonError(LessonPathError, ValueError):
    """A session cannot start because the lesson has no exercises."""


class InvalidTransitionError(LessonPathError, RuntimeError):
    """Session call made in a state that does not accept it."""


class OutOfHeartsError(LessonPathError, RuntimeError):
    """A lesson cannot start while a non-subscriber has no hearts left."""

    def __init__(self, message: str, refill_at: datetime | None = None) -> None:
        super().__init__(message)
        self.refill_at = refill_at
