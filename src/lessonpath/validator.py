"""Offline consistency checks over built curricula."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

from .models import EXERCISE_TYPES, MULTIPLE_CHOICE, Exercise, Lesson, Stage

MAX_ISSUES_PER_LANGUAGE = 20


@dataclass(frozen=True)
class ValidationIssue:
    """One content defect found by the validator."""

    language_id: str
    where: str
    message: str


class _StageSource(Protocol):
    def languages(self) -> Sequence[str]: ...

    def stages(self, language_id: str) -> Sequence[Stage]: ...


def validate_stages(language_id: str, stages: Sequence[Stage]) -> list[ValidationIssue]:
    """Return every issue found in one language's stages; an empty list means it passed."""
    issues: list[ValidationIssue] = []
    if not stages:
        issues.append(ValidationIssue(language_id, language_id, "No stages found for language"))
        return issues

    stage_ids: set[str] = set()
    lesson_ids: set[str] = set()
    for stage in stages:
        if not _non_empty(stage.id):
            issues.append(ValidationIssue(language_id, language_id, "Stage has missing/empty id"))
            continue
        if stage.id in stage_ids:
            issues.append(ValidationIssue(language_id, stage.id, "Duplicate stage id"))
        stage_ids.add(stage.id)

        if not isinstance(stage.lessons, list | tuple):
            issues.append(ValidationIssue(language_id, stage.id, "Stage lessons is not an array"))
            continue

        for lesson in stage.lessons:
            where = f"{stage.id} / {lesson.id}"
            if lesson.id in lesson_ids:
                issues.append(ValidationIssue(language_id, where, "Duplicate lesson id across language stages"))
            if _non_empty(lesson.id):
                lesson_ids.add(lesson.id)
            issues.extend(_validate_lesson(language_id, lesson, where))
    return issues


def _validate_lesson(language_id: str, lesson: Lesson, where: str) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if not _non_empty(lesson.id):
        issues.append(ValidationIssue(language_id, where, "Lesson has missing/empty id"))
    if not lesson.exercises:
        issues.append(ValidationIssue(language_id, where, "Lesson has no exercises"))
        return issues

    exercise_ids: set[str] = set()
    for exercise in lesson.exercises:
        if exercise.id in exercise_ids:
            issues.append(ValidationIssue(language_id, where, f"Duplicate exercise id within lesson: {exercise.id}"))
        if _non_empty(exercise.id):
            exercise_ids.add(exercise.id)
        issues.extend(_validate_exercise(language_id, exercise, where))
    return issues


def _validate_exercise(language_id: str, exercise: Exercise, where: str) -> list[ValidationIssue]:
    messages: list[str] = []
    if not _non_empty(exercise.id):
        messages.append("Exercise has missing/empty id")
    if exercise.type not in EXERCISE_TYPES:
        messages.append(f"Exercise has unsupported type: {exercise.type}")
    if not _non_empty(exercise.question):
        messages.append("Exercise has missing/empty question")
    if not _non_empty(exercise.correct_answer):
        messages.append("Exercise has missing/empty correctAnswer")
    if exercise.type == MULTIPLE_CHOICE:
        if len(exercise.options) < 2:
            messages.append("Multiple-choice exercise has missing/too-short options[]")
        elif exercise.correct_answer not in exercise.options:
            messages.append("Multiple-choice options[] does not include correctAnswer")
    return [ValidationIssue(language_id, where, message) for message in messages]


def validate_catalog(catalog: _StageSource, language_ids: Iterable[str] | None = None) -> list[ValidationIssue]:
    """Validate every (or the selected) language of a catalog."""
    selected = catalog.languages() if language_ids is None else language_ids
    issues: list[ValidationIssue] = []
    for language_id in selected:
        issues.extend(validate_stages(language_id, catalog.stages(language_id)))
    return issues


def format_issues(issues: Sequence[ValidationIssue], language_count: int) -> list[str]:
    """Render a grouped, truncated developer report."""
    if not issues:
        return [f"Lesson validation passed for {language_count} languages"]

    grouped: dict[str, list[ValidationIssue]] = {}
    for issue in issues:
        grouped.setdefault(issue.language_id, []).append(issue)

    lines = [f"Lesson validation found {len(issues)} issue(s):"]
    for language_id, group in grouped.items():
        lines.append("")
        lines.append(f"- {language_id}: {len(group)} issue(s)")
        for issue in group[:MAX_ISSUES_PER_LANGUAGE]:
            lines.append(f"  * {issue.where}: {issue.message}")
        if len(group) > MAX_ISSUES_PER_LANGUAGE:
            lines.append(f"  * ...and {len(group) - MAX_ISSUES_PER_LANGUAGE} more")
    return lines


def _non_empty(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())
