"""
Module content schemas for StepGate.

Defines Pydantic models for a learning module including:
- Informational sections (boxes, runnable code)
- Blocking sections (exercises, code exercises, quizzes)
- The module itself (objectives + ordered content)

Content authored over time uses different names for the same field
(correctAnswer / answer / correct, content / question / instruction) and a
few legacy tag spellings. Everything is folded into one canonical shape at
validation time so read sites never branch on field names. When both names
are present the first one wins.
"""

import logging
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.01

BOX_TYPES = ("concept", "intuition", "example", "math", "warning", "application")
SECTION_TYPES = BOX_TYPES + ("code", "exercise", "exercise-code", "quiz")

# Legacy spellings found in older French content
TYPE_ALIASES = {
    "exemple": "example",
    "mathematique": "math",
}


def _fold(data: dict, legacy: str, canonical: str):
    """Move data[legacy] onto data[canonical]; legacy takes precedence."""
    if legacy in data:
        data[canonical] = data.pop(legacy)


def _check_choice(options: list[str], correct: Optional[int], kind: str):
    if correct is None:
        raise ValueError(f"{kind} needs a correct option index")
    if not options:
        raise ValueError(f"{kind} needs at least one option")
    if not 0 <= correct < len(options):
        raise ValueError(f"{kind} correct index {correct} is outside {len(options)} options")


# -----------------------------------------------------------------------------
# Section types
# -----------------------------------------------------------------------------

class SectionBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: str


class BoxSection(SectionBase):
    """Explanatory box; never blocks progression."""
    type: Literal["concept", "intuition", "example", "math", "warning", "application"]
    title: str = ""
    content: str = ""
    icon: Optional[str] = None


class CodeSection(SectionBase):
    """Runnable code sample; never blocks progression."""
    type: Literal["code"] = "code"
    title: str = ""
    description: Optional[str] = None
    code: str = ""


class ExerciseSection(SectionBase):
    """
    Numeric or multiple-choice exercise.

    Numeric exercises compare against `answer` within `tolerance`;
    mcq exercises compare the selected option index against `correct`.
    """
    type: Literal["exercise"] = "exercise"
    title: str = ""
    question: str = ""
    exercise_type: Literal["numeric", "mcq"] = "numeric"
    answer: Optional[float] = None
    tolerance: float = Field(default=DEFAULT_TOLERANCE, ge=0)
    options: list[str] = []
    correct: Optional[int] = None
    hint: Optional[str] = None
    explanation: Optional[str] = None
    wrong_explanation: Optional[str] = None
    completes_objective: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def fold_legacy_names(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        _fold(data, "content", "question")
        kind = data.get("exerciseType", data.get("exercise_type", "numeric"))
        _fold(data, "correctAnswer", "correct" if kind == "mcq" else "answer")
        return data

    @model_validator(mode="after")
    def expected_answer_present(self) -> "ExerciseSection":
        if self.exercise_type == "numeric":
            if self.answer is None:
                raise ValueError("numeric exercise needs an answer")
        else:
            _check_choice(self.options, self.correct, "mcq exercise")
        return self


class CodeExerciseSection(SectionBase):
    """
    Code challenge judged on the learner's execution result.

    Judging order: expected_output substring, then the `validate`
    expression, then plain error-free execution.
    """
    type: Literal["exercise-code"] = "exercise-code"
    title: str = ""
    instruction: str = ""
    starter_code: str = ""
    solution: Optional[str] = None
    expected_output: Optional[str] = None
    validate_expr: Optional[str] = Field(default=None, alias="validate")
    success_message: Optional[str] = None
    error_message: Optional[str] = None
    hint: Optional[str] = None
    completes_objective: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def fold_legacy_names(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        _fold(data, "content", "instruction")
        _fold(data, "code", "starterCode")
        return data


class QuizSection(SectionBase):
    type: Literal["quiz"] = "quiz"
    title: str = ""
    question: str = ""
    options: list[str] = []
    correct: Optional[int] = None
    explanation: Optional[str] = None
    wrong_explanation: Optional[str] = None
    completes_objective: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def fold_legacy_names(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        _fold(data, "correctAnswer", "correct")
        return data

    @model_validator(mode="after")
    def correct_option_valid(self) -> "QuizSection":
        _check_choice(self.options, self.correct, "quiz")
        return self


class UnknownSection(SectionBase):
    """Placeholder for an unrecognised tag; keeps later indices stable."""
    type: Literal["unknown"] = "unknown"
    declared_type: str = ""
    raw: dict[str, Any] = {}


Section = Annotated[
    Union[
        BoxSection,
        CodeSection,
        ExerciseSection,
        CodeExerciseSection,
        QuizSection,
        UnknownSection,
    ],
    Field(discriminator="type"),
]

# Sections that carry an optional completesObjective link
GradedSection = Union[ExerciseSection, CodeExerciseSection, QuizSection]


def normalize_section(raw: Any, index: int) -> Any:
    """Map legacy tags to canonical ones and unknown tags to UnknownSection."""
    if isinstance(raw, BaseModel):
        return raw
    if not isinstance(raw, dict):
        raise ValueError(f"section {index} must be a mapping, got {type(raw).__name__}")

    declared = str(raw.get("type", "")).strip()
    kind = TYPE_ALIASES.get(declared, declared)
    if kind not in SECTION_TYPES:
        logger.warning(f"UnknownSectionType: section {index} has type {declared!r}, rendering nothing")
        return {"type": "unknown", "declared_type": declared, "raw": raw}
    if kind != declared:
        raw = {**raw, "type": kind}
    return raw


# -----------------------------------------------------------------------------
# Module
# -----------------------------------------------------------------------------

class Module(BaseModel):
    """
    A learning module: objectives plus ordered content.

    Sections are identified by their position in `content`. Persisted
    progress refers to these positions, so reordering content invalidates
    any saved progress for the module.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    title: str = ""
    objectives: list[str] = []
    content: list[Section] = Field(..., min_length=1)
    quiz: Optional[QuizSection] = None

    @field_validator("content", mode="before")
    @classmethod
    def normalize_content(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        return [normalize_section(raw, index) for index, raw in enumerate(v)]

    def section(self, index: int) -> Section:
        """Section at `index`; IndexError when out of range."""
        if not 0 <= index < len(self.content):
            raise IndexError(f"Module {self.id!r} has no section {index}")
        return self.content[index]

    @property
    def section_count(self) -> int:
        return len(self.content)
