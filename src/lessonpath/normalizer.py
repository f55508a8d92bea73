"""Reshape a variable-length exercise list into an exact count."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from .errors import InvalidNormalizationTarget
from .models import MULTIPLE_CHOICE, Exercise
from .rng import seeded_shuffle

REVIEW_SUFFIX = " (Review)"
REVIEW_SUFFIX_FR = " (Révision)"


def fallback_exercise(seed_key: str) -> Exercise:
    """Return the generic placeholder used when a lesson has no exercises at all."""
    return Exercise(
        id=f"{seed_key}-fallback-1",
        type=MULTIPLE_CHOICE,
        question="Select the correct answer",
        question_fr="Sélectionnez la bonne réponse",
        correct_answer="A",
        options=("A", "B", "C", "D"),
    )


def normalize_exercises(exercises: Sequence[Exercise], target_count: int, seed_key: str) -> list[Exercise]:
    """Return exactly `target_count` exercises.

    Oversupplied input is sampled without replacement through a seeded shuffle.
    Undersupplied input keeps every original in authored order and is padded
    with review clones cycled from the start of the list.
    """
    if target_count <= 0:
        raise InvalidNormalizationTarget(f"Exercise target count must be positive, got {target_count}.")

    base = list(exercises) if exercises else [fallback_exercise(seed_key)]
    if len(base) >= target_count:
        return seeded_shuffle(base, seed_key)[:target_count]

    chosen = list(base)
    while len(chosen) < target_count:
        template = base[len(chosen) % len(base)]
        chosen.append(_review_clone(template, f"{seed_key}-p{len(chosen) + 1}"))
    return chosen


def _review_clone(template: Exercise, exercise_id: str) -> Exercise:
    """Copy an exercise under a fresh id with its question marked as review."""
    question = f"{template.question}{REVIEW_SUFFIX}" if template.question else template.question
    question_fr = f"{template.question_fr}{REVIEW_SUFFIX_FR}" if template.question_fr else template.question_fr
    return replace(template, id=exercise_id, question=question, question_fr=question_fr)
