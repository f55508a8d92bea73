import threading
from typing import Any

from lessonpath.curriculum import (
    DEFAULT_XP_REWARD,
    STAGE_TEMPLATES,
    CurriculumCatalog,
    build_curriculum,
    lesson_counts,
)


def _raw_lesson(index: int, exercise_count: int = 2, **fields: Any) -> dict[str, Any]:
    lesson: dict[str, Any] = {
        "id": f"raw-{index}",
        "title": f"Raw {index}",
        "titleFr": f"Brut {index}",
        "type": "vocabulary",
        "xpReward": 20,
        "exercises": [
            {
                "id": f"raw-{index}-ex-{number}",
                "type": "translate",
                "question": f"Translate {index}/{number}",
                "correctAnswer": f"word {index}/{number}",
            }
            for number in range(exercise_count)
        ],
    }
    lesson.update(fields)
    return lesson


def _assert_full_shape(stages: list) -> None:
    assert len(stages) == 7
    for stage_index, stage in enumerate(stages):
        assert stage.stage_number == stage_index + 1
        assert stage.title == STAGE_TEMPLATES[stage_index].title
        assert len(stage.lessons) == 7
        for slot_index, lesson in enumerate(stage.lessons):
            assert lesson.lesson_number == slot_index + 1
            assert lesson.stage_id == stage.id
            assert len(lesson.exercises) == 20


def test_shape_is_fixed_for_any_amount_of_content() -> None:
    for count in (0, 1, 1200):
        _assert_full_shape(build_curriculum("testlang", [_raw_lesson(index) for index in range(count)]))


def test_empty_language_gets_review_lessons_from_fallback() -> None:
    stages = build_curriculum("testlang", [])
    first = stages[0].lessons[0]
    assert first.id == "testlang-review-1-1"
    assert first.title == "Review: Greetings & Introductions"
    assert first.title_fr == "Révision : Salutations et présentations"
    assert first.xp_reward == DEFAULT_XP_REWARD
    assert first.exercises[0].id == "testlang-review-1-1:testlang:0:0-fallback-1"


def test_lesson_ids_are_unique_across_curriculum() -> None:
    stages = build_curriculum("testlang", [_raw_lesson(index) for index in range(10)])
    ids = [lesson.id for stage in stages for lesson in stage.lessons]
    assert len(ids) == len(set(ids)) == 49
    assert stages[0].id == "testlang-stage-1"
    assert stages[1].lessons[2].id == "raw-9"
    assert stages[1].lessons[3].id == "testlang-review-2-4"


def test_authored_lesson_keeps_content_then_pads_with_seeded_ids() -> None:
    stages = build_curriculum("testlang", [_raw_lesson(0)])
    lesson = stages[0].lessons[0]
    assert lesson.id == "raw-0"
    assert lesson.title == "Raw 0"
    assert lesson.xp_reward == 20
    assert [exercise.id for exercise in lesson.exercises[:2]] == ["raw-0-ex-0", "raw-0-ex-1"]
    assert lesson.exercises[2].id == "raw-0:testlang:0-p3"


def test_missing_lesson_fields_get_defaults() -> None:
    raw = {"exercises": [{"id": "e", "type": "translate", "question": "Q", "correctAnswer": "A"}]}
    bad_xp = _raw_lesson(1, xpReward=True)
    stages = build_curriculum("testlang", [raw, bad_xp, {"xpReward": "lots"}])
    first, second, third = stages[0].lessons[:3]
    assert first.id == "testlang-stage-1-lesson-1"
    assert first.title == "Lesson 1"
    assert first.title_fr == "Leçon 1"
    assert first.type == "vocabulary"
    assert first.xp_reward == DEFAULT_XP_REWARD
    assert second.xp_reward == DEFAULT_XP_REWARD
    assert third.id == "testlang-stage-1-lesson-3"
    assert third.exercises[0].id.endswith("-fallback-1")


def test_unreadable_exercises_are_skipped() -> None:
    raw = _raw_lesson(0, exercise_count=1)
    raw["exercises"].append("not an exercise")
    lesson = build_curriculum("testlang", [raw])[0].lessons[0]
    assert lesson.exercises[0].id == "raw-0-ex-0"
    assert all(exercise.question.startswith("Translate 0/0") for exercise in lesson.exercises)


def test_oversupplied_lesson_is_sampled() -> None:
    lesson = build_curriculum("testlang", [_raw_lesson(0, exercise_count=30)])[0].lessons[0]
    ids = [exercise.id for exercise in lesson.exercises]
    assert len(set(ids)) == 20
    assert all(exercise_id.startswith("raw-0-ex-") for exercise_id in ids)


def test_review_lessons_draw_from_authored_pool() -> None:
    raw = [_raw_lesson(index) for index in range(2)]
    authored_ids = {exercise["id"] for lesson in raw for exercise in lesson["exercises"]}
    review = build_curriculum("testlang", raw)[2].lessons[0]
    assert review.id == "testlang-review-3-1"
    for exercise in review.exercises:
        assert exercise.id in authored_ids or "-p" in exercise.id
        assert exercise.question.startswith("Translate ")


def test_build_is_repeatable() -> None:
    raw = [_raw_lesson(index, exercise_count=index % 25) for index in range(30)]
    assert build_curriculum("testlang", raw) == build_curriculum("testlang", raw)


def test_language_id_changes_seeding() -> None:
    raw = [_raw_lesson(0, exercise_count=40)]
    first = build_curriculum("one", raw)[0].lessons[0]
    second = build_curriculum("two", raw)[0].lessons[0]
    assert [e.id for e in first.exercises] != [e.id for e in second.exercises]


def test_custom_shape() -> None:
    stages = build_curriculum("testlang", [], exercises_per_lesson=5, lessons_per_stage=3)
    assert len(stages) == 7
    assert all(len(stage.lessons) == 3 for stage in stages)
    assert all(len(lesson.exercises) == 5 for stage in stages for lesson in stage.lessons)


def test_lesson_counts() -> None:
    raw = [_raw_lesson(0, 4), _raw_lesson(1, 3), _raw_lesson(2, 3)]
    counts = lesson_counts("testlang", raw)
    assert counts.lesson_count == 3
    assert counts.exercise_count == 10
    assert round(counts.average_exercises, 2) == 3.33
    assert counts.coverage_percent == 6

    assert lesson_counts("testlang", []).average_exercises == 0.0
    assert lesson_counts("testlang", [_raw_lesson(i, 0) for i in range(60)]).coverage_percent == 100


def test_catalog_builds_each_language_once() -> None:
    calls: list[str] = []

    def source(language_id: str) -> list[dict[str, Any]]:
        calls.append(language_id)
        return [_raw_lesson(0)]

    catalog = CurriculumCatalog(source, ("alpha", "beta"))
    threads = [threading.Thread(target=catalog.stages, args=("alpha",)) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert catalog.stages("alpha") is catalog.stages("alpha")
    assert calls == ["alpha"]
    assert catalog.languages() == ("alpha", "beta")


def test_catalog_lesson_lookup_and_unknown_language() -> None:
    catalog = CurriculumCatalog(lambda _: [_raw_lesson(0)], ("alpha",))
    lesson = catalog.lesson("alpha", "raw-0")
    assert lesson is not None
    assert lesson.title == "Raw 0"
    assert catalog.lesson("alpha", "missing") is None
    try:
        catalog.stages("nope")
        raise AssertionError("Expected KeyError.")
    except KeyError:
        pass


def test_catalog_over_bundled_content() -> None:
    catalog = CurriculumCatalog()
    assert "swahili" in catalog.languages()
    stages = catalog.stages("swahili")
    assert stages[0].lessons[0].id == "sw-greetings-1"
    assert stages[0].lessons[3].id == "swahili-review-1-4"
    assert catalog.lesson_counts("swahili").lesson_count == 3
