"""
StepGate Schemas - Pydantic models for guided learning modules.

This module exports all schema classes for:
- Module: sections, module definition, content normalization
- Progress: persisted snapshot, verdicts, feedback, execution results
"""

# Module schemas
from .module import (
    BoxSection,
    CodeSection,
    ExerciseSection,
    CodeExerciseSection,
    QuizSection,
    UnknownSection,
    Section,
    GradedSection,
    Module,
    BOX_TYPES,
    SECTION_TYPES,
    TYPE_ALIASES,
    DEFAULT_TOLERANCE,
    normalize_section,
)

# Progress schemas
from .progress import (
    ProgressSnapshot,
    Outcome,
    ExecutionResult,
    Verdict,
    Feedback,
)

__all__ = [
    # Module
    'BoxSection',
    'CodeSection',
    'ExerciseSection',
    'CodeExerciseSection',
    'QuizSection',
    'UnknownSection',
    'Section',
    'GradedSection',
    'Module',
    'BOX_TYPES',
    'SECTION_TYPES',
    'TYPE_ALIASES',
    'DEFAULT_TOLERANCE',
    'normalize_section',
    # Progress
    'ProgressSnapshot',
    'Outcome',
    'ExecutionResult',
    'Verdict',
    'Feedback',
]
