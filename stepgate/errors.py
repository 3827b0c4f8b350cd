"""
Error taxonomy for StepGate.

Exceptions are raised for precondition failures and by collaborators
(storage, code execution). Learner-facing problems are reported as an
ErrorKind on a verdict instead of being raised.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Inline error categories shown next to a section."""
    INVALID_INPUT = "InvalidInput"
    NO_SELECTION = "NoSelection"
    EXECUTION_FAILED = "ExecutionFailed"
    INCOMPLETE_EXERCISES = "IncompleteExercises"
    UNKNOWN_SECTION_TYPE = "UnknownSectionType"
    SECTION_LOCKED = "SectionLocked"
    EXECUTION_IN_PROGRESS = "ExecutionInProgress"


class StepGateError(Exception):
    """Base class for StepGate errors."""


class ModuleDefinitionError(StepGateError, ValueError):
    """The module definition is missing or malformed."""


class StorageUnavailable(StepGateError):
    """The key-value store could not be read or written."""


class ExecutionFailed(StepGateError):
    """Learner code raised while executing."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class IncompleteExercises(StepGateError):
    """Checkpoint attempted before every blocking section was solved."""

    def __init__(self, completed: int, total: int):
        super().__init__(f"{completed} of {total} exercises completed")
        self.completed = completed
        self.total = total
