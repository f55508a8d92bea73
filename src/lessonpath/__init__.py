"""lessonpath: deterministic curricula and adaptive lesson sessions."""

from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from .curriculum import CurriculumCatalog, build_curriculum
from .models import Exercise, Lesson, Locale, SessionReport, Stage
from .normalizer import normalize_exercises
from .rng import seeded_generator
from .session import LessonSession, SessionState
from .validator import ValidationIssue, validate_stages

__all__ = [
    "CurriculumCatalog",
    "Exercise",
    "Lesson",
    "LessonSession",
    "Locale",
    "SessionReport",
    "SessionState",
    "Stage",
    "ValidationIssue",
    "__version__",
    "build_curriculum",
    "normalize_exercises",
    "seeded_generator",
    "validate_stages",
]


def _version_from_pyproject() -> str | None:
    """Read [project].version when running from a source checkout."""
    for base in Path(__file__).resolve().parents:
        pyproject = base / "pyproject.toml"
        if not pyproject.exists():
            continue
        in_project = False
        for line in pyproject.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped.startswith("[") and stripped.endswith("]"):
                in_project = stripped == "[project]"
            elif in_project:
                match = re.match(r'^version\s*=\s*"([^"]+)"\s*$', stripped)
                if match:
                    return match.group(1)
        return None
    return None


try:
    __version__ = _version_from_pyproject() or version("lessonpath")
except PackageNotFoundError:
    __version__ = "0+unknown"
