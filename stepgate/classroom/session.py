"""
LearningSession - One learner working through one module.

Combines the ProgressionEngine (state), the evaluator (judging) and the
CheckpointGate, with injected storage and code execution. The display layer
only talks to this object: it queries section status and forwards learner
actions, and gets Feedback back. Learner mistakes never raise.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from stepgate.errors import ErrorKind, ExecutionFailed, IncompleteExercises
from stepgate.schemas import (
    CodeExerciseSection,
    CodeSection,
    ExecutionResult,
    ExerciseSection,
    Feedback,
    Module,
    Outcome,
    QuizSection,
    Section,
    Verdict,
)

from .checkpoint import CheckpointGate
from .classifier import is_blocking
from .engine import ProgressionEngine
from .evaluator import judge_choice, judge_code, judge_numeric, judge_quiz
from .executor import CodeExecutor, PythonSession
from .persistence import PersistedState
from .storage import KeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class SectionStatus:
    """Section with progression metadata for rendering."""
    index: int
    section: Section
    blocking: bool
    unlocked: bool
    completed: bool
    running: bool


class LearningSession:
    """Drive one module for one learner."""

    def __init__(
        self,
        module: Module,
        store: KeyValueStore,
        executor: Optional[CodeExecutor] = None,
        on_complete: Optional[Callable[[Module], None]] = None,
    ):
        """
        Restore saved progress and repair unlock state.

        Args:
            module: Validated module definition
            store: Key-value store for progress snapshots
            executor: Code runner (default: a fresh PythonSession)
            on_complete: Called with the module after a successful checkpoint
        """
        self.module = module
        self.engine = ProgressionEngine(module, PersistedState(store, module.id))
        self.checkpoint = CheckpointGate(self.engine, on_complete)
        self.executor = executor if executor is not None else PythonSession()
        self._selections: dict[int, int] = {}
        self._running: set[int] = set()
        self.engine.ensure_consistency()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def progress(self) -> int:
        return self.engine.progress

    def can_checkpoint(self) -> bool:
        return self.checkpoint.can_checkpoint()

    def is_module_completed(self) -> bool:
        return self.checkpoint.is_module_completed()

    def is_running(self, index: int) -> bool:
        return index in self._running

    def selected_option(self, index: int) -> Optional[int]:
        return self._selections.get(index)

    def section_status(self, index: int) -> SectionStatus:
        section = self.module.section(index)
        return SectionStatus(
            index=index,
            section=section,
            blocking=is_blocking(section.type),
            unlocked=self.engine.is_unlocked(index),
            completed=self.engine.is_completed(index),
            running=index in self._running,
        )

    def section_statuses(self) -> list[SectionStatus]:
        return [self.section_status(i) for i in range(self.module.section_count)]

    def objective_statuses(self) -> list[tuple[str, bool]]:
        return [
            (text, self.engine.objectives.is_completed(i))
            for i, text in enumerate(self.module.objectives)
        ]

    def starter_code(self, index: int) -> str:
        section = self._require(index, (CodeSection, CodeExerciseSection))
        if isinstance(section, CodeSection):
            return section.code
        return section.starter_code

    def solution(self, index: int) -> Optional[str]:
        return self._require(index, CodeExerciseSection).solution

    # -------------------------------------------------------------------------
    # Learner actions
    # -------------------------------------------------------------------------

    def _require(self, index: int, kinds):
        section = self.module.section(index)
        if not isinstance(section, kinds):
            raise ValueError(f"Section {index} of {self.module.id} is {section.type!r}")
        return section

    def _locked(self, index: int) -> Optional[Feedback]:
        if self.engine.is_unlocked(index):
            return None
        return Feedback(
            outcome=Outcome.INVALID,
            error=ErrorKind.SECTION_LOCKED,
            message="Complete the previous exercise to unlock this one",
            section=index,
        )

    def _apply(self, index: int, verdict: Verdict) -> Feedback:
        next_section = None
        if verdict.is_correct:
            self.engine.complete_section(index)
            next_section = self.engine.unlock_next(index)
        return Feedback(section=index, next_section=next_section, **verdict.model_dump())

    def submit_numeric(self, index: int, text: Optional[str]) -> Feedback:
        section = self._require(index, ExerciseSection)
        locked = self._locked(index)
        if locked:
            return locked
        return self._apply(index, judge_numeric(section, text))

    def select_option(self, index: int, option: int):
        self._require(index, (ExerciseSection, QuizSection))
        self._selections[index] = option

    def check_choice(self, index: int) -> Feedback:
        """Judge the current selection of an mcq exercise or quiz, then clear it."""
        section = self._require(index, (ExerciseSection, QuizSection))
        locked = self._locked(index)
        if locked:
            return locked
        selected = self._selections.pop(index, None)
        if isinstance(section, QuizSection):
            verdict = judge_quiz(section, selected)
        else:
            verdict = judge_choice(section, selected)
        return self._apply(index, verdict)

    def _busy(self, index: int) -> Feedback:
        return Feedback(
            outcome=Outcome.INVALID,
            error=ErrorKind.EXECUTION_IN_PROGRESS,
            message="Code is already running",
            section=index,
        )

    async def submit_code(self, index: int, source: str) -> Feedback:
        """Run and judge a code exercise; one run per section at a time."""
        section = self._require(index, CodeExerciseSection)
        locked = self._locked(index)
        if locked:
            return locked
        if index in self._running:
            return self._busy(index)

        self._running.add(index)
        try:
            verdict = await judge_code(section, source, self.executor)
        finally:
            self._running.discard(index)
        return self._apply(index, verdict)

    async def run_code(self, index: int, source: str) -> Feedback:
        """Run a code sample without grading; never changes progress."""
        self._require(index, CodeSection)
        if index in self._running:
            return self._busy(index)

        self._running.add(index)
        try:
            result = await self.executor.run(source)
        except ExecutionFailed as e:
            return Feedback(
                outcome=Outcome.INCORRECT,
                error=ErrorKind.EXECUTION_FAILED,
                message=e.message,
                execution=ExecutionResult(stderr=e.message),
                section=index,
            )
        finally:
            self._running.discard(index)

        if result.has_error_output:
            return Feedback(
                outcome=Outcome.INCORRECT,
                error=ErrorKind.EXECUTION_FAILED,
                message=result.stderr.strip(),
                execution=result,
                section=index,
            )
        return Feedback(outcome=Outcome.CORRECT, execution=result, section=index)

    def check_final_quiz(self, option: Optional[int]) -> Feedback:
        """Judge the module-level quiz; it does not gate any section."""
        if self.module.quiz is None:
            raise ValueError(f"Module {self.module.id} has no final quiz")
        return Feedback(**judge_quiz(self.module.quiz, option).model_dump())

    def complete_checkpoint(self) -> Feedback:
        try:
            self.checkpoint.complete_checkpoint()
        except IncompleteExercises as e:
            return Feedback(
                outcome=Outcome.INVALID,
                error=ErrorKind.INCOMPLETE_EXERCISES,
                message=f"Complete all exercises before validating ({e.completed}/{e.total} done)",
            )
        return Feedback(outcome=Outcome.CORRECT, message="Module completed!")

    def reset(self):
        """Clear saved progress and start the module over."""
        self._selections.clear()
        self.engine.reset()
        self.engine.ensure_consistency()
