"""CLI entrypoint for the language lesson app."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from pathlib import Path

from .config import Settings, load_settings
from .errors import OutOfHeartsError
from .models import MULTIPLE_CHOICE, Lesson
from .service import LearnService
from .session import SessionState
from .validator import format_issues

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
MENU_QUIT_COMMANDS = {"q"}
MENU_BACK_COMMANDS = {"b"}
FLOW_EXIT_COMMANDS = {":quit", ":exit", ":q"}
HINT_COMMANDS = {":hint", ":h"}


class QuitApp(Exception):
    """Signal immediate app exit from nested menu flows."""


def _service(settings: Settings) -> LearnService:
    """Create app service from settings."""
    return LearnService(db_path=settings.db_path, settings=settings)


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = argparse.ArgumentParser(prog="lessonpath", description="Stage-based language lessons")
    parser.add_argument("command", nargs="?", default="play", choices=["play", "validate", "report"])
    parser.add_argument("--config", help="YAML settings file (default: ./lessonpath.yaml if present)")
    parser.add_argument("--db", help="progress database path")
    parser.add_argument("--language", action="append", dest="languages", help="limit validate to a language")
    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    if args.db:
        settings.db_path = Path(args.db)
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "validate":
        return validate_command(_service(settings), print, args.languages)
    if args.command == "report":
        return report_command(_service(settings), print)
    return play_shell(_service(settings))


def validate_command(service: LearnService, print_fn: PrintFn, languages: list[str] | None = None) -> int:
    """Print the lesson validation report; non-zero exit when issues exist."""
    try:
        unknown = [language_id for language_id in languages or [] if language_id not in service.languages()]
        if unknown:
            print_fn(f"Unknown language(s): {', '.join(unknown)}")
            return 2
        issues = service.validate(languages)
        checked = len(languages) if languages else len(service.languages())
        for line in format_issues(issues, checked):
            print_fn(line)
        return 1 if issues else 0
    finally:
        service.close()


def report_command(service: LearnService, print_fn: PrintFn) -> int:
    """Print authored lesson coverage per language."""
    try:
        for counts in service.lesson_counts():
            print_fn(
                f"{counts.language_id:<9} "
                f"lessons={counts.lesson_count:>3}  "
                f"exercises={counts.exercise_count:>5}  "
                f"avg={counts.average_exercises:>5.1f}  "
                f"coverage={counts.coverage_percent:>3}%"
            )
        return 0
    finally:
        service.close()


def play_shell(service: LearnService, input_fn: InputFn = input, print_fn: PrintFn = print) -> int:
    """Run persistent menu-driven shell."""
    try:
        selected = _select_profile(service, input_fn, print_fn)
        if selected is None:
            return 0
        profile_id, profile_name = selected
        language_id = _select_language(service, input_fn, print_fn)
        if language_id is None:
            return 0
        try:
            while True:
                print_fn("\n=== Lessons ===")
                print_fn(f"Profile: {profile_name}  Language: {language_id}")
                print_fn("1) Continue learning")
                print_fn("2) Learning path")
                print_fn("3) Progress")
                print_fn("4) Change language")
                print_fn("5) Unlimited hearts on/off")
                print_fn("b) Back")
                print_fn("q) Quit")
                choice = input_fn("Choose: ").strip().lower()

                if choice == "1":
                    current = service.current_lesson(profile_id, language_id)
                    if current is None:
                        print_fn("Every lesson is complete.")
                    else:
                        _run_lesson(service, profile_id, language_id, current.lesson, input_fn, print_fn)
                elif choice == "2":
                    _path_flow(service, profile_id, language_id, input_fn, print_fn)
                elif choice == "3":
                    _progress_flow(service, profile_id, language_id, print_fn)
                elif choice == "4":
                    switched = _select_language(service, input_fn, print_fn)
                    if switched is not None:
                        language_id = switched
                elif choice == "5":
                    _toggle_subscription_flow(service, profile_id, print_fn)
                elif choice in MENU_BACK_COMMANDS:
                    switched_profile = _select_profile(service, input_fn, print_fn)
                    if switched_profile is None:
                        return 0
                    profile_id, profile_name = switched_profile
                elif choice in MENU_QUIT_COMMANDS:
                    return 0
                else:
                    print_fn("Invalid choice.")
        except QuitApp:
            return 0
    finally:
        service.close()


def _select_profile(service: LearnService, input_fn: InputFn, print_fn: PrintFn) -> tuple[int, str] | None:
    """Select existing profile or create new one."""
    while True:
        profiles = service.list_profiles()
        print_fn("\n=== Profiles ===")
        if profiles:
            for idx, profile in enumerate(profiles, start=1):
                marker = " (unlimited hearts)" if profile.subscribed else ""
                print_fn(f"{idx}) {profile.name}{marker}")
        else:
            print_fn("No profiles yet.")
        print_fn("n) New profile")
        print_fn("d) Delete profile")
        print_fn("q) Quit")

        choice = input_fn("Select profile: ").strip().lower()
        if choice in MENU_QUIT_COMMANDS:
            return None
        if choice == "n":
            name = input_fn("New profile name: ").strip()
            if not name:
                print_fn("Profile name is required.")
                continue
            try:
                created = service.create_profile(name)
            except Exception:
                print_fn("Could not create profile (name may already exist).")
                continue
            marker = " (unlimited hearts)" if created.subscribed else ""
            print_fn(f"Created profile '{created.name}'{marker}.")
            return (created.id, created.name)
        if choice == "d":
            _delete_profile_flow(service, input_fn, print_fn)
            continue

        if choice.isdigit():
            index = int(choice) - 1
            if 0 <= index < len(profiles):
                selected = profiles[index]
                return (selected.id, selected.name)

        print_fn("Invalid profile selection.")


def _toggle_subscription_flow(service: LearnService, profile_id: int, print_fn: PrintFn) -> None:
    """Flip unlimited hearts for the active profile."""
    profile = service.get_profile(profile_id)
    if profile is None:
        print_fn("Profile was not found.")
        return
    service.set_subscribed(profile_id, not profile.subscribed)
    print_fn("Unlimited hearts enabled." if not profile.subscribed else "Unlimited hearts disabled.")


def _delete_profile_flow(service: LearnService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Delete a profile with explicit confirmation safeguard."""
    profiles = service.list_profiles()
    if not profiles:
        print_fn("No profiles available to delete.")
        return

    print_fn("\nDelete profile")
    for idx, profile in enumerate(profiles, start=1):
        print_fn(f"{idx}) {profile.name}")
    print_fn("b) Back")
    choice = input_fn("Choose profile to delete: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return
    if not choice.isdigit() or not (0 <= int(choice) - 1 < len(profiles)):
        print_fn("Invalid choice.")
        return

    target = profiles[int(choice) - 1]
    print_fn(f"WARNING: This permanently deletes profile '{target.name}' and all lesson progress.")
    confirm = input_fn("Type YES to confirm deletion: ").strip()
    if confirm != "YES":
        print_fn("Deletion cancelled.")
        return
    if service.delete_profile(target.id):
        print_fn(f"Deleted profile '{target.name}'.")
    else:
        print_fn("Profile was not found.")


def _select_language(service: LearnService, input_fn: InputFn, print_fn: PrintFn) -> str | None:
    """Pick the language to learn."""
    languages = service.languages()
    while True:
        print_fn("\n=== Languages ===")
        for idx, language_id in enumerate(languages, start=1):
            print_fn(f"{idx:>2}) {language_id}")
        print_fn("q) Quit")
        choice = input_fn("Choose language: ").strip().lower()
        if choice in MENU_QUIT_COMMANDS:
            return None
        if choice in languages:
            return choice
        if choice.isdigit() and 0 <= int(choice) - 1 < len(languages):
            return languages[int(choice) - 1]
        print_fn("Invalid choice.")


def _path_flow(service: LearnService, profile_id: int, language_id: str, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Show the stage/lesson grid and start a chosen unlocked lesson."""
    locale = service.settings.locale
    states = service.list_lesson_states(profile_id, language_id)
    stage_id = None
    for state in states:
        if state.stage.id != stage_id:
            stage_id = state.stage.id
            print_fn(f"\nStage {state.stage.stage_number}: {state.stage.title_for(locale)}")
        status = "done" if state.completed else ("open" if state.unlocked else "locked")
        print_fn(f"{state.position + 1:>3}) [{status:<6}] {state.lesson.title_for(locale)}")

    print_fn("b) Back")
    print_fn("q) Quit")
    choice = input_fn("Choose lesson: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return
    if choice in MENU_QUIT_COMMANDS:
        raise QuitApp()
    if not choice.isdigit() or not (0 <= int(choice) - 1 < len(states)):
        print_fn("Invalid choice.")
        return
    selected = states[int(choice) - 1]
    if not selected.unlocked:
        print_fn("That lesson is still locked.")
        return
    _run_lesson(service, profile_id, language_id, selected.lesson, input_fn, print_fn)


def _run_lesson(
    service: LearnService,
    profile_id: int,
    language_id: str,
    lesson: Lesson,
    input_fn: InputFn,
    print_fn: PrintFn,
) -> None:
    """Play one lesson session until it completes, runs out of hearts or is abandoned."""
    locale = service.settings.locale
    try:
        session = service.start_lesson(profile_id, language_id, lesson.id, locale)
    except OutOfHeartsError as exc:
        refill = f" They refill at {exc.refill_at.isoformat(timespec='minutes')}." if exc.refill_at else ""
        print_fn(f"You are out of hearts.{refill}")
        return
    print_fn(f"\n=== {lesson.title_for(locale)} ===")
    print_fn(f"{session.total_questions} exercises. Type :hint for a hint or :q to leave.")

    while session.state is not SessionState.COMPLETE:
        entry = session.current
        if entry is None:
            break
        exercise = entry.exercise
        prefix = "Try again: " if entry.is_redemption else ""
        print_fn(f"\n{prefix}{exercise.question_for(locale)}")
        options = exercise.options_for(locale) if exercise.type == MULTIPLE_CHOICE else ()
        for idx, option in enumerate(options, start=1):
            print_fn(f"  {idx}) {option}")
        if not session.subscribed:
            print_fn(f"Hearts: {session.hearts:g}")

        answer = input_fn("Answer: ").strip()
        while answer.lower() in HINT_COMMANDS:
            print_fn(f"Hint: {exercise.hint_for(locale) or 'No hint for this one.'}")
            answer = input_fn("Answer: ").strip()
        if answer.lower() in FLOW_EXIT_COMMANDS:
            print_fn("Lesson left early. Progress for this attempt is discarded.")
            return
        if options and answer.isdigit() and 0 <= int(answer) - 1 < len(options):
            answer = options[int(answer) - 1]

        outcome = session.submit_answer(answer)
        if outcome.correct:
            print_fn("Correct! Half a heart restored." if outcome.redemption and not session.subscribed else "Correct!")
        else:
            print_fn(f"Incorrect. Answer: {outcome.expected}")
        if outcome.hearts_exhausted:
            print_fn("You are out of hearts. They refill after a while.")
            return
        session.advance()

    report = session.report
    if report is not None:
        print_fn(f"\nLesson complete: {report.correct_count}/{report.total_questions} correct, +{report.xp_earned} XP")


def _progress_flow(service: LearnService, profile_id: int, language_id: str, print_fn: PrintFn) -> None:
    """Print progress summary for the active language."""
    progress = service.language_progress(profile_id, language_id)
    total = sum(len(stage.lessons) for stage in service.stages(language_id))
    print_fn(f"\n=== Progress: {language_id} ===")
    print_fn(f"- XP: {progress.xp} (level {progress.level})")
    print_fn(f"- Hearts: {progress.hearts:g}")
    if progress.hearts_reset_at is not None:
        print_fn(f"- Hearts refill at: {progress.hearts_reset_at.isoformat(timespec='minutes')}")
    print_fn(f"- Streak: {progress.streak} day(s)")
    print_fn(f"- Lessons: {len(progress.completed_lesson_ids)}/{total} completed")


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
