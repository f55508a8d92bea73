"""SQLite persistence for profiles, hearts and per-language lesson progress."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

from .models import SessionReport

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
XP_PER_LEVEL = 100


@dataclass(frozen=True)
class Profile:
    """Learner profile record."""

    id: int
    name: str
    subscribed: bool


@dataclass(frozen=True)
class LanguageProgress:
    """Progress snapshot for one profile in one language."""

    profile_id: int
    language_id: str
    xp: int
    hearts: float
    hearts_reset_at: datetime | None
    streak: int
    last_practice_date: date | None
    lessons_completed: int
    completed_lesson_ids: frozenset[str]

    @property
    def level(self) -> int:
        return self.xp // XP_PER_LEVEL + 1


@dataclass(frozen=True)
class SessionResult:
    """One finished lesson session from the history table."""

    language_id: str
    lesson_id: str
    xp_earned: int
    hearts_lost: float
    hearts_gained: float
    correct_count: int
    total_questions: int
    created_at: str


class ProgressStore:
    """Database access layer for learner progress."""

    def __init__(self, db_path: Path | str, max_hearts: float = 5.0, heart_reset_hours: int = 7) -> None:
        """Initialize database and schema."""
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)
        else:
            target = db_path
        self.max_hearts = float(max_hearts)
        self.heart_reset = timedelta(hours=heart_reset_hours)
        self._conn = sqlite3.connect(target)
        self._conn.row_factory = sqlite3.Row
        self._apply_migrations()

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise RuntimeError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")

        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")
                self._conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )

    def _migrate_to_v1(self) -> None:
        """Create profile, language progress, completion and history tables."""
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    subscribed INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS language_progress (
                    profile_id INTEGER NOT NULL,
                    language_id TEXT NOT NULL,
                    xp INTEGER NOT NULL DEFAULT 0,
                    hearts REAL NOT NULL,
                    hearts_reset_at TEXT,
                    streak INTEGER NOT NULL DEFAULT 0,
                    last_practice_date TEXT,
                    lessons_completed INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (profile_id, language_id)
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS completed_lessons (
                    profile_id INTEGER NOT NULL,
                    language_id TEXT NOT NULL,
                    lesson_id TEXT NOT NULL,
                    completed_at TEXT NOT NULL,
                    PRIMARY KEY (profile_id, language_id, lesson_id)
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS session_results (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    profile_id INTEGER NOT NULL,
                    language_id TEXT NOT NULL,
                    lesson_id TEXT NOT NULL,
                    xp_earned INTEGER NOT NULL,
                    hearts_lost REAL NOT NULL,
                    hearts_gained REAL NOT NULL,
                    correct_count INTEGER NOT NULL,
                    total_questions INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                )
                """)

    def list_profiles(self) -> list[Profile]:
        """Return profiles ordered by name."""
        rows = self._conn.execute("SELECT id, name, subscribed FROM profiles ORDER BY name").fetchall()
        return [_profile_from_row(row) for row in rows]

    def create_profile(self, name: str, subscribed: bool = False) -> Profile:
        """Create a new profile."""
        now = datetime.now(UTC).isoformat()
        with self._conn:
            cursor = self._conn.execute(
                "INSERT INTO profiles (name, subscribed, created_at) VALUES (?, ?, ?)",
                (name, int(subscribed), now),
            )
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Could not create profile.")
        return Profile(id=int(row_id), name=name, subscribed=subscribed)

    def get_profile(self, profile_id: int) -> Profile | None:
        """Get one profile by id."""
        row = self._conn.execute(
            "SELECT id, name, subscribed FROM profiles WHERE id = ?", (profile_id,)
        ).fetchone()
        if row is None:
            return None
        return _profile_from_row(row)

    def set_subscribed(self, profile_id: int, subscribed: bool) -> None:
        """Record whether a profile has unlimited hearts."""
        with self._conn:
            self._conn.execute("UPDATE profiles SET subscribed = ? WHERE id = ?", (int(subscribed), profile_id))

    def delete_profile(self, profile_id: int) -> bool:
        """Delete profile and all associated progress data."""
        with self._conn:
            self._conn.execute("DELETE FROM session_results WHERE profile_id = ?", (profile_id,))
            self._conn.execute("DELETE FROM completed_lessons WHERE profile_id = ?", (profile_id,))
            self._conn.execute("DELETE FROM language_progress WHERE profile_id = ?", (profile_id,))
            cursor = self._conn.execute("DELETE FROM profiles WHERE id = ?", (profile_id,))
        return cursor.rowcount > 0

    def get_language_progress(
        self, profile_id: int, language_id: str, now: datetime | None = None
    ) -> LanguageProgress:
        """Return progress for a language, refilling hearts once the reset time has passed."""
        now = now or datetime.now(UTC)
        self._ensure_language_row(profile_id, language_id)
        row = self._language_row(profile_id, language_id)
        reset_at = row["hearts_reset_at"]
        if reset_at is not None and now >= datetime.fromisoformat(reset_at):
            with self._conn:
                self._conn.execute(
                    """
                    UPDATE language_progress
                    SET hearts = ?, hearts_reset_at = NULL
                    WHERE profile_id = ? AND language_id = ?
                    """,
                    (self.max_hearts, profile_id, language_id),
                )
            logger.debug("Hearts refilled for profile %s in %s", profile_id, language_id)
            row = self._language_row(profile_id, language_id)
        return self._progress_from_row(row)

    def completed_lesson_ids(self, profile_id: int, language_id: str) -> set[str]:
        """Return ids of lessons completed at least once."""
        rows = self._conn.execute(
            "SELECT lesson_id FROM completed_lessons WHERE profile_id = ? AND language_id = ?",
            (profile_id, language_id),
        ).fetchall()
        return {str(row["lesson_id"]) for row in rows}

    def deduct_hearts(self, profile_id: int, language_id: str, amount: float, now: datetime | None = None) -> float:
        """Persist a mid-session heart loss and return the remaining hearts.

        Reaching zero hearts starts the refill timer.
        """
        current = self.get_language_progress(profile_id, language_id, now)
        hearts = max(0.0, current.hearts - amount)
        reset_at = current.hearts_reset_at
        if hearts <= 0 and reset_at is None:
            reset_at = (now or datetime.now(UTC)) + self.heart_reset
        with self._conn:
            self._conn.execute(
                """
                UPDATE language_progress
                SET hearts = ?, hearts_reset_at = ?
                WHERE profile_id = ? AND language_id = ?
                """,
                (hearts, reset_at.isoformat() if reset_at else None, profile_id, language_id),
            )
        return hearts

    def record_session(
        self, profile_id: int, language_id: str, report: SessionReport, now: datetime | None = None
    ) -> LanguageProgress:
        """Apply a finished session: xp, heart refunds, streak, completion and history.

        Hearts lost are expected to have been persisted already through
        `deduct_hearts`; only refunds are applied here.
        """
        now = now or datetime.now(UTC)
        current = self.get_language_progress(profile_id, language_id, now)

        hearts = min(self.max_hearts, current.hearts + report.hearts_gained)
        reset_at = current.hearts_reset_at
        if hearts > 0:
            reset_at = None
        elif reset_at is None:
            reset_at = now + self.heart_reset

        today = now.date()
        streak = current.streak
        if current.last_practice_date != today:
            if current.last_practice_date == today - timedelta(days=1):
                streak += 1
            else:
                streak = 1

        with self._conn:
            self._conn.execute(
                """
                UPDATE language_progress
                SET xp = ?, hearts = ?, hearts_reset_at = ?, streak = ?,
                    last_practice_date = ?, lessons_completed = ?
                WHERE profile_id = ? AND language_id = ?
                """,
                (
                    current.xp + report.xp_earned,
                    hearts,
                    reset_at.isoformat() if reset_at else None,
                    streak,
                    today.isoformat(),
                    current.lessons_completed + 1,
                    profile_id,
                    language_id,
                ),
            )
            self._conn.execute(
                """
                INSERT OR IGNORE INTO completed_lessons (profile_id, language_id, lesson_id, completed_at)
                VALUES (?, ?, ?, ?)
                """,
                (profile_id, language_id, report.lesson_id, now.isoformat()),
            )
            self._conn.execute(
                """
                INSERT INTO session_results (
                    profile_id,
                    language_id,
                    lesson_id,
                    xp_earned,
                    hearts_lost,
                    hearts_gained,
                    correct_count,
                    total_questions,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    profile_id,
                    language_id,
                    report.lesson_id,
                    report.xp_earned,
                    report.hearts_lost,
                    report.hearts_gained,
                    report.correct_count,
                    report.total_questions,
                    now.isoformat(),
                ),
            )
        return self.get_language_progress(profile_id, language_id, now)

    def list_session_results(self, profile_id: int, language_id: str | None = None) -> list[SessionResult]:
        """Return finished sessions, oldest first."""
        query = """
            SELECT language_id, lesson_id, xp_earned, hearts_lost, hearts_gained,
                   correct_count, total_questions, created_at
            FROM session_results
            WHERE profile_id = ?
            """
        params: tuple[object, ...] = (profile_id,)
        if language_id is not None:
            query += " AND language_id = ?"
            params = (profile_id, language_id)
        rows = self._conn.execute(query + " ORDER BY id ASC", params).fetchall()
        return [
            SessionResult(
                language_id=str(row["language_id"]),
                lesson_id=str(row["lesson_id"]),
                xp_earned=int(row["xp_earned"]),
                hearts_lost=float(row["hearts_lost"]),
                hearts_gained=float(row["hearts_gained"]),
                correct_count=int(row["correct_count"]),
                total_questions=int(row["total_questions"]),
                created_at=str(row["created_at"]),
            )
            for row in rows
        ]

    def _ensure_language_row(self, profile_id: int, language_id: str) -> None:
        with self._conn:
            self._conn.execute(
                """
                INSERT OR IGNORE INTO language_progress (profile_id, language_id, hearts)
                VALUES (?, ?, ?)
                """,
                (profile_id, language_id, self.max_hearts),
            )

    def _language_row(self, profile_id: int, language_id: str) -> sqlite3.Row:
        return self._conn.execute(
            """
            SELECT profile_id, language_id, xp, hearts, hearts_reset_at, streak,
                   last_practice_date, lessons_completed
            FROM language_progress
            WHERE profile_id = ? AND language_id = ?
            """,
            (profile_id, language_id),
        ).fetchone()

    def _progress_from_row(self, row: sqlite3.Row) -> LanguageProgress:
        profile_id = int(row["profile_id"])
        language_id = str(row["language_id"])
        last_date = row["last_practice_date"]
        reset_at = row["hearts_reset_at"]
        return LanguageProgress(
            profile_id=profile_id,
            language_id=language_id,
            xp=int(row["xp"]),
            hearts=float(row["hearts"]),
            hearts_reset_at=datetime.fromisoformat(reset_at) if reset_at is not None else None,
            streak=int(row["streak"]),
            last_practice_date=date.fromisoformat(last_date) if last_date is not None else None,
            lessons_completed=int(row["lessons_completed"]),
            completed_lesson_ids=frozenset(self.completed_lesson_ids(profile_id, language_id)),
        )

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort connection cleanup."""
        try:
            self.close()
        except Exception:
            pass


def _profile_from_row(row: sqlite3.Row) -> Profile:
    return Profile(id=int(row["id"]), name=str(row["name"]), subscribed=bool(row["subscribed"]))
