"""Application service tying curricula, lesson sessions and learner progress together."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from .config import Settings
from .content_loader import SUPPORTED_LANGUAGES, load_raw_lessons
from .curriculum import CurriculumCatalog, LessonCounts
from .errors import OutOfHeartsError
from .models import Lesson, Locale, SessionReport, Stage
from .progress import LanguageProgress, Profile, ProgressStore
from .session import LessonSession
from .validator import ValidationIssue, validate_catalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LessonState:
    """Path position of one lesson for a profile."""

    lesson: Lesson
    stage: Stage
    position: int
    unlocked: bool
    completed: bool


class LearnService:
    """Coordinates profile state and lesson flows."""

    def __init__(
        self,
        db_path: Path | str,
        settings: Settings | None = None,
        catalog: CurriculumCatalog | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize service with database path."""
        self.settings = settings or Settings()
        if catalog is None:
            catalog = CurriculumCatalog(
                partial(load_raw_lessons, content_dir=self.settings.content_dir),
                SUPPORTED_LANGUAGES,
                exercises_per_lesson=self.settings.curriculum.exercises_per_lesson,
                lessons_per_stage=self.settings.curriculum.lessons_per_stage,
            )
        self.catalog = catalog
        self.progress = ProgressStore(
            db_path,
            max_hearts=self.settings.session.max_hearts,
            heart_reset_hours=self.settings.session.heart_reset_hours,
        )
        self._rng = rng

    def list_profiles(self) -> list[Profile]:
        """Return all profiles."""
        return self.progress.list_profiles()

    def create_profile(self, name: str, subscribed: bool = False) -> Profile:
        """Create profile by name."""
        return self.progress.create_profile(name.strip(), subscribed)

    def delete_profile(self, profile_id: int) -> bool:
        """Delete one profile by id."""
        return self.progress.delete_profile(profile_id)

    def get_profile(self, profile_id: int) -> Profile | None:
        """Return one profile, or None when missing."""
        return self.progress.get_profile(profile_id)

    def set_subscribed(self, profile_id: int, subscribed: bool) -> None:
        """Grant or revoke unlimited hearts for a profile."""
        self.progress.set_subscribed(profile_id, subscribed)

    def languages(self) -> tuple[str, ...]:
        """Return supported language ids."""
        return self.catalog.languages()

    def stages(self, language_id: str) -> tuple[Stage, ...]:
        """Return the fixed-shape curriculum for a language."""
        return self.catalog.stages(language_id)

    def language_progress(self, profile_id: int, language_id: str) -> LanguageProgress:
        """Return XP, hearts and streak for a language."""
        return self.progress.get_language_progress(profile_id, language_id)

    def list_lesson_states(self, profile_id: int, language_id: str) -> list[LessonState]:
        """Return every lesson in path order with lock/completion state.

        The lesson at path position n is unlocked once n lessons are completed.
        """
        completed = self.progress.completed_lesson_ids(profile_id, language_id)
        states: list[LessonState] = []
        for stage in self.catalog.stages(language_id):
            for lesson in stage.lessons:
                position = len(states)
                states.append(
                    LessonState(
                        lesson=lesson,
                        stage=stage,
                        position=position,
                        unlocked=position == 0 or len(completed) >= position,
                        completed=lesson.id in completed,
                    )
                )
        return states

    def current_lesson(self, profile_id: int, language_id: str) -> LessonState | None:
        """Return the first unlocked lesson not yet completed."""
        for state in self.list_lesson_states(profile_id, language_id):
            if state.unlocked and not state.completed:
                return state
        return None

    def start_lesson(
        self, profile_id: int, language_id: str, lesson_id: str, locale: Locale | None = None
    ) -> LessonSession:
        """Start a session wired to persist heart loss and the final report.

        Raises `OutOfHeartsError` when a non-subscriber has no hearts left.
        """
        profile = self.progress.get_profile(profile_id)
        if profile is None:
            raise KeyError(profile_id)
        lesson = self.catalog.lesson(language_id, lesson_id)
        if lesson is None:
            raise KeyError(lesson_id)

        progress = self.progress.get_language_progress(profile_id, language_id)
        if not profile.subscribed and progress.hearts <= 0:
            raise OutOfHeartsError(
                f"Profile {profile_id} has no hearts left for {language_id}.", progress.hearts_reset_at
            )
        return LessonSession(
            lesson,
            question_count=self.settings.session.question_count,
            hearts=progress.hearts,
            max_hearts=self.settings.session.max_hearts,
            subscribed=profile.subscribed,
            locale=locale or self.settings.locale,
            rng=self._rng,
            on_heart_lost=partial(self._persist_heart_loss, profile_id, language_id),
            on_complete=partial(self._persist_report, profile_id, language_id),
        )

    def _persist_heart_loss(self, profile_id: int, language_id: str, amount: float) -> None:
        self.progress.deduct_hearts(profile_id, language_id, amount)

    def _persist_report(self, profile_id: int, language_id: str, report: SessionReport) -> None:
        progress = self.progress.record_session(profile_id, language_id, report)
        logger.info(
            "Profile %s finished %s: +%d xp (total %d, streak %d)",
            profile_id,
            report.lesson_id,
            report.xp_earned,
            progress.xp,
            progress.streak,
        )

    def validate(self, language_ids: list[str] | None = None) -> list[ValidationIssue]:
        """Run the lesson validator over built curricula."""
        return validate_catalog(self.catalog, language_ids)

    def lesson_counts(self) -> list[LessonCounts]:
        """Report authored coverage for every language."""
        return [self.catalog.lesson_counts(language_id) for language_id in self.catalog.languages()]

    def close(self) -> None:
        """Close resources."""
        self.progress.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort cleanup for test/process teardown."""
        try:
            self.close()
        except Exception:
            pass
