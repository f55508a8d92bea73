"""Turn-by-turn state machine for one lesson attempt."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

from .answers import answers_match
from .errors import EmptyLessonError, InvalidTransitionError
from .models import Exercise, Lesson, Locale, SessionReport
from .normalizer import normalize_exercises

logger = logging.getLogger(__name__)

MAX_HEARTS = 5.0
HEART_PENALTY = 1.0
REDEMPTION_REFUND = 0.5
MIN_XP = 5
MIN_REQUEUE_GAP = 2

HeartLostHook = Callable[[float], None]
HeartsExhaustedHook = Callable[[], None]
CompleteHook = Callable[[SessionReport], None]


class SessionState(Enum):
    """Lesson session states."""

    AWAITING_ANSWER = "awaiting_answer"
    SHOWING_FEEDBACK = "showing_feedback"
    COMPLETE = "complete"


@dataclass(frozen=True)
class QueueEntry:
    """One queued attempt at an exercise."""

    exercise: Exercise
    was_wrong: bool = False
    has_retried: bool = False

    @property
    def is_redemption(self) -> bool:
        return self.was_wrong and not self.has_retried


@dataclass(frozen=True)
class AnswerOutcome:
    """Feedback for one submitted answer."""

    correct: bool
    expected: str
    hearts: float
    redemption: bool
    requeued: bool
    hearts_exhausted: bool


class LessonSession:
    """Exercise queue for a single attempt at a lesson.

    Wrong first attempts are requeued at a random later position; getting the
    requeued copy right refunds half a heart, and missing it again retires the
    exercise. Persistence is left to the hooks, which are called synchronously
    and never affect the session's own state.
    """

    def __init__(
        self,
        lesson: Lesson,
        *,
        question_count: int | None = None,
        hearts: float = MAX_HEARTS,
        max_hearts: float = MAX_HEARTS,
        subscribed: bool = False,
        locale: Locale = Locale.PRIMARY,
        rng: random.Random | None = None,
        on_heart_lost: HeartLostHook | None = None,
        on_hearts_exhausted: HeartsExhaustedHook | None = None,
        on_complete: CompleteHook | None = None,
    ) -> None:
        if not lesson.exercises:
            raise EmptyLessonError(f"Lesson '{lesson.id}' has no exercises.")
        exercises = list(lesson.exercises)
        if question_count is not None:
            exercises = normalize_exercises(exercises, question_count, lesson.id)

        self.lesson = lesson
        self.locale = locale
        self.subscribed = subscribed
        self.max_hearts = float(max_hearts)
        self.hearts = float(hearts)
        self.total_questions = len(exercises)
        self.correct_count = 0
        self.hearts_lost = 0.0
        self.hearts_gained = 0.0
        self.state = SessionState.AWAITING_ANSWER
        self.report: SessionReport | None = None
        self._queue: list[QueueEntry] = [QueueEntry(exercise) for exercise in exercises]
        self._rng = rng if rng is not None else random.Random()
        self._on_heart_lost = on_heart_lost
        self._on_hearts_exhausted = on_hearts_exhausted
        self._on_complete = on_complete

    @property
    def current(self) -> QueueEntry | None:
        """Entry at the head of the queue, or None once complete."""
        return self._queue[0] if self._queue else None

    @property
    def remaining(self) -> int:
        """Queued attempts left, including the current one."""
        return len(self._queue)

    def queued_exercise_ids(self) -> list[str]:
        """Exercise ids in queue order."""
        return [entry.exercise.id for entry in self._queue]

    def submit_answer(self, user_answer: str) -> AnswerOutcome:
        """Judge an answer for the current exercise and move to feedback."""
        if self.state is not SessionState.AWAITING_ANSWER:
            raise InvalidTransitionError(f"Cannot submit an answer while {self.state.value}.")

        entry = self._queue[0]
        expected = entry.exercise.answer_for(self.locale)
        correct = answers_match(user_answer, expected)
        redemption = entry.is_redemption
        requeued = False
        exhausted = False

        if correct:
            self.correct_count += 1
            if redemption and not self.subscribed:
                refund = min(REDEMPTION_REFUND, max(0.0, self.max_hearts - self.hearts))
                self.hearts += refund
                self.hearts_gained += refund
                logger.debug("Redeemed %s in %s (+%.1f heart)", entry.exercise.id, self.lesson.id, refund)
        else:
            if not self.subscribed:
                exhausted = self._lose_heart()
            if not entry.was_wrong:
                self._requeue(replace(entry, was_wrong=True, has_retried=False))
                requeued = True
            else:
                logger.debug("Retired %s in %s after failed redemption", entry.exercise.id, self.lesson.id)

        if redemption:
            self._queue[0] = replace(entry, has_retried=True)
        self.state = SessionState.SHOWING_FEEDBACK
        return AnswerOutcome(
            correct=correct,
            expected=expected,
            hearts=self.hearts,
            redemption=redemption,
            requeued=requeued,
            hearts_exhausted=exhausted,
        )

    def advance(self) -> SessionReport | None:
        """Leave feedback; return the report when the queue runs out."""
        if self.state is not SessionState.SHOWING_FEEDBACK:
            raise InvalidTransitionError(f"Cannot advance while {self.state.value}.")

        self._queue.pop(0)
        if self._queue:
            self.state = SessionState.AWAITING_ANSWER
            return None

        self.state = SessionState.COMPLETE
        self.report = SessionReport(
            lesson_id=self.lesson.id,
            xp_earned=self.xp_earned(),
            hearts_lost=self.hearts_lost,
            hearts_gained=self.hearts_gained,
            correct_count=self.correct_count,
            total_questions=self.total_questions,
        )
        logger.debug(
            "Completed %s: %d/%d correct, %d xp",
            self.lesson.id,
            self.correct_count,
            self.total_questions,
            self.report.xp_earned,
        )
        if self._on_complete is not None:
            try:
                self._on_complete(self.report)
            except Exception:
                logger.exception("Session-end report for %s was not recorded", self.lesson.id)
        return self.report

    def xp_earned(self) -> int:
        """XP for the answers given so far, never below the completion minimum."""
        per_correct = self.lesson.xp_reward // self.total_questions
        return max(self.correct_count * per_correct, MIN_XP)

    def _lose_heart(self) -> bool:
        """Deduct the wrong-answer penalty; return True when hearts just hit zero."""
        if self.hearts <= 0:
            return False
        lost = min(HEART_PENALTY, self.hearts)
        self.hearts -= lost
        self.hearts_lost += lost
        if self._on_heart_lost is not None:
            self._on_heart_lost(lost)
        if self.hearts > 0:
            return False
        logger.debug("Hearts exhausted during %s", self.lesson.id)
        if self._on_hearts_exhausted is not None:
            self._on_hearts_exhausted()
        return True

    def _requeue(self, entry: QueueEntry) -> None:
        """Insert a missed exercise at least two items after the current one when possible."""
        remaining = self._queue[1:]
        if len(remaining) > MIN_REQUEUE_GAP:
            position = self._rng.randint(MIN_REQUEUE_GAP, len(remaining))
            remaining.insert(position, entry)
        else:
            remaining.append(entry)
        self._queue[1:] = remaining
        logger.debug("Requeued %s in %s", entry.exercise.id, self.lesson.id)
