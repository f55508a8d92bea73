from pathlib import Path
from typing import Any

from lessonpath.config import DEFAULT_DB_PATH, load_settings
from lessonpath.models import Locale


def test_defaults_without_files(tmp_path: Path, monkeypatch: Any) -> None:
    monkeypatch.chdir(tmp_path)
    settings = load_settings()
    assert settings.db_path == DEFAULT_DB_PATH
    assert settings.content_dir is None
    assert settings.locale is Locale.PRIMARY
    assert settings.log_level == "WARNING"
    assert settings.curriculum.exercises_per_lesson == 20
    assert settings.session.question_count == 20
    assert settings.session.heart_reset_hours == 7


def test_yaml_settings(tmp_path: Path) -> None:
    config = tmp_path / "custom.yaml"
    config.write_text(
        "db_path: data/progress.db\n"
        "content_dir: content\n"
        "locale: FR\n"
        "log_level: info\n"
        "session:\n"
        "  question_count: 10\n"
        "  max_hearts: 3\n"
        "curriculum:\n"
        "  lessons_per_stage: 5\n",
        encoding="utf-8",
    )
    settings = load_settings(config, env_file=tmp_path / ".env")
    assert settings.db_path == Path("data/progress.db")
    assert settings.content_dir == Path("content")
    assert settings.locale is Locale.SECONDARY
    assert settings.log_level == "INFO"
    assert settings.session.question_count == 10
    assert settings.session.max_hearts == 3
    assert settings.curriculum.lessons_per_stage == 5
    assert settings.curriculum.exercises_per_lesson == 20


def test_environment_overrides_dotenv_and_yaml(tmp_path: Path, monkeypatch: Any) -> None:
    config = tmp_path / "lessonpath.yaml"
    config.write_text("locale: fr\nlog_level: error\n", encoding="utf-8")
    env_file = tmp_path / ".env"
    env_file.write_text("\ufeffLESSONPATH_LOG_LEVEL=debug\nLESSONPATH_DB_PATH=from-dotenv.db\n", encoding="utf-8")
    monkeypatch.setenv("LESSONPATH_LOCALE", "en")
    monkeypatch.setenv("LESSONPATH_DB_PATH", "  ")

    settings = load_settings(config, env_file=env_file)
    assert settings.locale is Locale.PRIMARY
    assert settings.log_level == "DEBUG"
    assert settings.db_path == Path("from-dotenv.db")


def test_missing_explicit_config_raises(tmp_path: Path) -> None:
    try:
        load_settings(tmp_path / "nope.yaml")
        raise AssertionError("Expected FileNotFoundError.")
    except FileNotFoundError:
        pass


def test_invalid_settings_raise(tmp_path: Path) -> None:
    cases = (
        "- not\n- a mapping\n",
        "locale: de\n",
        "session:\n  question_count: 0\n",
        "session:\n  max_hearts: 0\n",
        "session:\n  unknown: 1\n",
        "curriculum:\n  lessons_per_stage: 0\n",
    )
    for index, text in enumerate(cases):
        config = tmp_path / f"bad-{index}.yaml"
        config.write_text(text, encoding="utf-8")
        try:
            load_settings(config, env_file=tmp_path / ".env")
            raise AssertionError(f"Expected ValueError for {text!r}.")
        except ValueError:
            pass
