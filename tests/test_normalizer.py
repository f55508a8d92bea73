from lessonpath.errors import InvalidNormalizationTarget
from lessonpath.models import Exercise
from lessonpath.normalizer import REVIEW_SUFFIX, REVIEW_SUFFIX_FR, normalize_exercises


def _exercises(count: int, prefix: str = "ex") -> list[Exercise]:
    return [
        Exercise(
            id=f"{prefix}-{index}",
            type="translate",
            question=f"Question {index}",
            question_fr=f"Question fr {index}",
            correct_answer=f"answer {index}",
        )
        for index in range(count)
    ]


def test_empty_input_uses_fallback_with_distinct_ids() -> None:
    result = normalize_exercises([], 5, "seedA")
    assert len(result) == 5
    assert [item.id for item in result] == ["seedA-fallback-1", "seedA-p2", "seedA-p3", "seedA-p4", "seedA-p5"]
    assert len({item.id for item in result}) == 5
    assert all(item.correct_answer == "A" for item in result)
    assert result[0].question == "Select the correct answer"
    assert result[1].question == "Select the correct answer" + REVIEW_SUFFIX


def test_padding_keeps_originals_in_order_then_cycles_clones() -> None:
    base = _exercises(3)
    result = normalize_exercises(base, 20, "lesson-a")
    assert len(result) == 20
    assert result[:3] == base
    assert result[3].id == "lesson-a-p4"
    assert result[3].question == base[0].question + REVIEW_SUFFIX
    assert result[3].question_fr == base[0].question_fr + REVIEW_SUFFIX_FR
    assert result[3].correct_answer == base[0].correct_answer
    assert result[4].question == base[1].question + REVIEW_SUFFIX
    assert result[19].id == "lesson-a-p20"
    assert len({item.id for item in result}) == 20


def test_clone_keeps_missing_secondary_question_missing() -> None:
    base = [Exercise(id="x", type="translate", question="Q", correct_answer="A")]
    result = normalize_exercises(base, 2, "k")
    assert result[1].question_fr is None


def test_oversupplied_input_is_sampled_without_replacement() -> None:
    base = _exercises(35)
    result = normalize_exercises(base, 20, "lesson-b")
    assert len(result) == 20
    assert len({item.id for item in result}) == 20
    assert all(item in base for item in result)


def test_exact_count_is_shuffled_not_padded() -> None:
    base = _exercises(20)
    result = normalize_exercises(base, 20, "lesson-c")
    assert sorted(item.id for item in result) == sorted(item.id for item in base)


def test_same_arguments_give_identical_output() -> None:
    base = _exercises(30)
    assert normalize_exercises(base, 20, "k") == normalize_exercises(base, 20, "k")
    assert normalize_exercises(base[:4], 20, "k") == normalize_exercises(base[:4], 20, "k")


def test_non_positive_target_raises() -> None:
    for target in (0, -3):
        try:
            normalize_exercises(_exercises(2), target, "k")
            raise AssertionError("Expected InvalidNormalizationTarget.")
        except InvalidNormalizationTarget as exc:
            assert isinstance(exc, ValueError)
