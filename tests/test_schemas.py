"""
Schema validation tests for StepGate.

Tests the Pydantic models, including normalization of legacy field names.
"""

import json

import pytest
from pydantic import ValidationError

from stepgate.schemas import (
    BoxSection,
    CodeExerciseSection,
    CodeSection,
    ExerciseSection,
    Module,
    ProgressSnapshot,
    QuizSection,
    UnknownSection,
    DEFAULT_TOLERANCE,
)


def module_with(*sections):
    return Module.model_validate({"id": "m", "content": list(sections)})


class TestSectionTypes:
    """Test the tagged section variants."""

    def test_box_types_share_one_model(self):
        module = module_with(
            {"type": "concept", "title": "A", "content": "x"},
            {"type": "warning", "title": "B", "content": "y"},
        )
        assert all(isinstance(s, BoxSection) for s in module.content)
        assert module.content[1].type == "warning"

    def test_code_section(self):
        module = module_with({"type": "code", "title": "Run", "code": "print(2)"})
        assert isinstance(module.content[0], CodeSection)
        assert module.content[0].code == "print(2)"

    def test_legacy_type_spellings(self):
        module = module_with(
            {"type": "exemple", "title": "E"},
            {"type": "mathematique", "title": "M"},
        )
        assert module.content[0].type == "example"
        assert module.content[1].type == "math"

    def test_unknown_type_becomes_placeholder(self):
        module = module_with(
            {"type": "video", "url": "x"},
            {"type": "quiz", "question": "Q", "options": ["a", "b"], "correct": 0},
        )
        assert isinstance(module.content[0], UnknownSection)
        assert module.content[0].declared_type == "video"
        assert module.content[0].raw["url"] == "x"
        # later sections keep their index
        assert isinstance(module.content[1], QuizSection)

    def test_missing_type_is_unknown(self):
        module = module_with({"title": "no type"})
        assert isinstance(module.content[0], UnknownSection)
        assert module.content[0].declared_type == ""

    def test_non_mapping_section_rejected(self):
        with pytest.raises(ValidationError):
            module_with("just text")


class TestExerciseNormalization:
    """Test folding of dual-named fields."""

    def test_numeric_correct_answer_alias(self):
        section = ExerciseSection.model_validate({"type": "exercise", "correctAnswer": 7.5})
        assert section.answer == 7.5
        assert section.tolerance == DEFAULT_TOLERANCE

    def test_numeric_answer_name(self):
        section = ExerciseSection.model_validate({"type": "exercise", "answer": "3"})
        assert section.answer == 3.0

    def test_first_name_wins_when_both_present(self):
        section = ExerciseSection.model_validate(
            {"type": "exercise", "correctAnswer": 1, "answer": 2}
        )
        assert section.answer == 1

    def test_mcq_correct_answer_alias(self):
        section = ExerciseSection.model_validate({
            "type": "exercise",
            "exerciseType": "mcq",
            "options": ["a", "b"],
            "correctAnswer": 1,
        })
        assert section.correct == 1
        assert section.answer is None

    def test_content_folds_into_question(self):
        section = ExerciseSection.model_validate(
            {"type": "exercise", "answer": 1, "content": "<p>c</p>", "question": "q"}
        )
        assert section.question == "<p>c</p>"

    def test_question_used_when_no_content(self):
        section = ExerciseSection.model_validate({"type": "exercise", "answer": 1, "question": "q"})
        assert section.question == "q"

    def test_numeric_requires_answer(self):
        with pytest.raises(ValidationError):
            ExerciseSection.model_validate({"type": "exercise"})

    def test_mcq_requires_valid_index(self):
        with pytest.raises(ValidationError):
            ExerciseSection.model_validate({
                "type": "exercise",
                "exerciseType": "mcq",
                "options": ["a", "b"],
                "correct": 5,
            })

    def test_negative_tolerance_rejected(self):
        with pytest.raises(ValidationError):
            ExerciseSection.model_validate({"type": "exercise", "answer": 1, "tolerance": -1})

    def test_explicit_zero_tolerance_kept(self):
        section = ExerciseSection.model_validate({"type": "exercise", "answer": 1, "tolerance": 0})
        assert section.tolerance == 0

    def test_quiz_correct_answer_alias(self):
        section = QuizSection.model_validate(
            {"type": "quiz", "options": ["a", "b"], "correctAnswer": 0, "wrongExplanation": "no"}
        )
        assert section.correct == 0
        assert section.wrong_explanation == "no"

    def test_quiz_requires_correct(self):
        with pytest.raises(ValidationError):
            QuizSection.model_validate({"type": "quiz", "options": ["a"]})

    def test_code_exercise_fields(self):
        section = CodeExerciseSection.model_validate({
            "type": "exercise-code",
            "instruction": "do it",
            "code": "x = 1",
            "validate": "x == 1",
            "expectedOutput": "done",
            "completesObjective": 2,
        })
        assert section.instruction == "do it"
        assert section.starter_code == "x = 1"
        assert section.validate_expr == "x == 1"
        assert section.expected_output == "done"
        assert section.completes_objective == 2

    def test_code_exercise_content_preferred(self):
        section = CodeExerciseSection.model_validate(
            {"type": "exercise-code", "content": "a", "instruction": "b"}
        )
        assert section.instruction == "a"


class TestModule:
    """Test the module container."""

    def test_module_valid(self):
        module = Module.model_validate({
            "id": "intro",
            "title": "Intro",
            "objectives": ["one", "two"],
            "content": [{"type": "concept", "title": "c"}],
            "quiz": {"question": "Q", "options": ["a", "b"], "correct": 1},
        })
        assert module.section_count == 1
        assert module.quiz.correct == 1

    def test_empty_content_rejected(self):
        with pytest.raises(ValidationError):
            Module.model_validate({"id": "m", "content": []})

    def test_missing_id_rejected(self):
        with pytest.raises(ValidationError):
            Module.model_validate({"content": [{"type": "concept"}]})

    def test_section_lookup(self):
        module = module_with({"type": "concept"})
        assert module.section(0).type == "concept"
        with pytest.raises(IndexError):
            module.section(1)
        with pytest.raises(IndexError):
            module.section(-1)


class TestProgressSnapshot:
    """Test the persisted snapshot shape."""

    def test_defaults(self):
        snapshot = ProgressSnapshot()
        assert snapshot.progress == 0
        assert snapshot.unlocked_sections == {0}
        assert snapshot.completed_sections == set()

    def test_json_uses_camel_case_sorted_lists(self):
        snapshot = ProgressSnapshot(
            progress=50,
            completed_sections={3, 1},
            unlocked_sections={2, 0, 1, 3},
            completed_objectives={1},
        )
        data = json.loads(snapshot.to_json())
        assert data == {
            "progress": 50,
            "completedObjectives": [1],
            "completedSections": [1, 3],
            "unlockedSections": [0, 1, 2, 3],
        }

    def test_parse_camel_case(self):
        snapshot = ProgressSnapshot.model_validate_json(
            '{"progress": 25, "completedSections": [2], "unlockedSections": [1, 2]}'
        )
        assert snapshot.completed_sections == {2}
        # section 0 is always unlocked
        assert snapshot.unlocked_sections == {0, 1, 2}

    def test_nulls_treated_as_missing(self):
        snapshot = ProgressSnapshot.model_validate(
            {"progress": None, "unlockedSections": None, "completedObjectives": None}
        )
        assert snapshot.progress == 0
        assert snapshot.unlocked_sections == {0}
        assert snapshot.completed_objectives == set()
