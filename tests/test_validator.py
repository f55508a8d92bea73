from lessonpath.curriculum import CurriculumCatalog
from lessonpath.models import Exercise, Lesson, Stage
from lessonpath.validator import (
    MAX_ISSUES_PER_LANGUAGE,
    ValidationIssue,
    format_issues,
    validate_catalog,
    validate_stages,
)


def _exercise(exercise_id: str = "e1", **fields: object) -> Exercise:
    values: dict = {"id": exercise_id, "type": "translate", "question": "Q", "correct_answer": "A"}
    values.update(fields)
    return Exercise(**values)


def _lesson(lesson_id: str, *exercises: Exercise) -> Lesson:
    return Lesson(
        id=lesson_id,
        stage_id="s1",
        lesson_number=1,
        type="vocabulary",
        title="T",
        title_fr="T",
        xp_reward=10,
        exercises=exercises or (_exercise(),),
    )


def _stage(stage_id: str, *lessons: Lesson) -> Stage:
    return Stage(id=stage_id, stage_number=1, title="S", title_fr="S", color="c", lessons=lessons)


def _messages(issues: list[ValidationIssue]) -> list[str]:
    return [issue.message for issue in issues]


def test_clean_stages_pass() -> None:
    assert validate_stages("testlang", [_stage("s1", _lesson("l1"), _lesson("l2"))]) == []


def test_no_stages() -> None:
    assert _messages(validate_stages("testlang", [])) == ["No stages found for language"]


def test_duplicate_lesson_id_across_stages() -> None:
    issues = validate_stages("testlang", [_stage("s1", _lesson("l1")), _stage("s2", _lesson("l1"))])
    assert _messages(issues) == ["Duplicate lesson id across language stages"]
    assert issues[0].where == "s2 / l1"
    assert issues[0].language_id == "testlang"


def test_stage_level_issues() -> None:
    issues = validate_stages("testlang", [_stage(" ", _lesson("l1")), _stage("s1"), _stage("s1")])
    assert _messages(issues) == ["Stage has missing/empty id", "Duplicate stage id"]


def test_lesson_level_issues() -> None:
    empty = Lesson(id="", stage_id="s1", lesson_number=1, type="t", title="", title_fr="", xp_reward=0, exercises=())
    issues = validate_stages("testlang", [_stage("s1", empty)])
    assert _messages(issues) == ["Lesson has missing/empty id", "Lesson has no exercises"]


def test_exercise_level_issues() -> None:
    lesson = _lesson(
        "l1",
        _exercise("e1"),
        _exercise("e1"),
        _exercise("", type="essay", question=" ", correct_answer=""),
        _exercise("mc1", type="multiple-choice", options=("only",)),
        _exercise("mc2", type="multiple-choice", options=("B", "C")),
    )
    messages = _messages(validate_stages("testlang", [_stage("s1", lesson)]))
    assert messages == [
        "Duplicate exercise id within lesson: e1",
        "Exercise has missing/empty id",
        "Exercise has unsupported type: essay",
        "Exercise has missing/empty question",
        "Exercise has missing/empty correctAnswer",
        "Multiple-choice exercise has missing/too-short options[]",
        "Multiple-choice options[] does not include correctAnswer",
    ]


def test_bundled_content_passes() -> None:
    catalog = CurriculumCatalog()
    assert validate_catalog(catalog) == []


def test_validate_catalog_selected_languages() -> None:
    class Source:
        def languages(self) -> tuple[str, ...]:
            return ("good", "bad")

        def stages(self, language_id: str) -> list[Stage]:
            return [_stage("s1", _lesson("l1"))] if language_id == "good" else []

    assert validate_catalog(Source(), ["good"]) == []
    assert [issue.language_id for issue in validate_catalog(Source())] == ["bad"]


def test_format_issues_pass_line() -> None:
    assert format_issues([], 15) == ["Lesson validation passed for 15 languages"]


def test_format_issues_groups_and_truncates() -> None:
    issues = [ValidationIssue("alpha", f"s / l{index}", "Lesson has no exercises") for index in range(25)]
    issues.append(ValidationIssue("beta", "beta", "No stages found for language"))
    lines = format_issues(issues, 2)
    assert lines[0] == "Lesson validation found 26 issue(s):"
    assert "- alpha: 25 issue(s)" in lines
    assert f"  * ...and {25 - MAX_ISSUES_PER_LANGUAGE} more" in lines
    assert "  * beta: No stages found for language" in lines
    assert sum(1 for line in lines if line.startswith("  * s / l")) == MAX_ISSUES_PER_LANGUAGE
