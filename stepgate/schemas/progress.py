"""
Progress and judging schemas for StepGate.

Defines Pydantic models for:
- The persisted per-module progress snapshot
- Judge outcomes and learner feedback
- Code execution results
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator
from pydantic.alias_generators import to_camel

from stepgate.errors import ErrorKind


class ProgressSnapshot(BaseModel):
    """
    Serialized progression state, stored as JSON under module-<id>-data.

    `progress` is a cache; the engine recomputes it from completed_sections.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    progress: int = 0
    completed_objectives: set[int] = Field(default_factory=set)
    completed_sections: set[int] = Field(default_factory=set)
    unlocked_sections: set[int] = Field(default_factory=lambda: {0})

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        # Older snapshots may carry explicit nulls; treat them as missing
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @model_validator(mode="after")
    def first_section_unlocked(self) -> "ProgressSnapshot":
        self.unlocked_sections.add(0)
        return self

    @field_serializer("completed_objectives", "completed_sections", "unlocked_sections")
    def _as_sorted_list(self, value: set[int]) -> list[int]:
        return sorted(value)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class Outcome(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    INVALID = "invalid"


class ExecutionResult(BaseModel):
    """Captured output of one code run."""
    stdout: str = ""
    stderr: str = ""
    image_base64: Optional[str] = None

    @property
    def has_error_output(self) -> bool:
        return bool(self.stderr.strip())


class Verdict(BaseModel):
    """Result of judging one attempt."""
    outcome: Outcome
    error: Optional[ErrorKind] = None
    message: str = ""
    execution: Optional[ExecutionResult] = None

    @property
    def is_correct(self) -> bool:
        return self.outcome == Outcome.CORRECT


class Feedback(Verdict):
    """Verdict plus what the session did with it."""
    section: Optional[int] = None
    next_section: Optional[int] = None
