"""
ProgressionEngine - Unlock/complete state machine for one module.

Rules:
- Section 0 is always unlocked.
- Completing a blocking section unlocks the following run of informational
  sections plus the next blocking section, and nothing past it.
- Informational sections never gate: once unlocked, the next section
  unlocks too.
- Progress is derived from completed blocking sections only.
- Sets only grow; the only way back is an explicit reset.
"""

import logging
import math
from typing import Optional

from stepgate.schemas import Module, ProgressSnapshot, Section

from .classifier import is_blocking
from .objectives import ObjectiveTracker
from .persistence import PersistedState

logger = logging.getLogger(__name__)


def progress_percent(completed: int, total: int) -> int:
    """Percentage of blocking sections solved, rounded half up; 100 if none."""
    if total <= 0:
        return 100
    return int(math.floor(100 * completed / total + 0.5))


class ProgressionEngine:
    """
    Track unlocked and completed sections of a module.

    The saved snapshot is restored on construction. Call
    ensure_consistency() once before the first render.
    """

    def __init__(self, module: Module, persisted: PersistedState):
        """
        Initialize engine.

        Args:
            module: Loaded module definition (read-only)
            persisted: Snapshot persistence for this module
        """
        self.module = module
        self.persisted = persisted
        self._set_state(ProgressSnapshot())
        self.restore()

    def _set_state(self, state: ProgressSnapshot):
        self.state = state
        self.objectives = ObjectiveTracker(self.module, state.completed_objectives)
        self._recompute_progress()

    @property
    def content(self) -> list[Section]:
        return self.module.content

    def _blocking_at(self, index: int) -> bool:
        return is_blocking(self.content[index].type)

    def _save(self):
        self.persisted.save(self.state)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def restore(self):
        """Replace in-memory state with the saved snapshot, if any."""
        snapshot = self.persisted.load()
        if snapshot is None:
            return

        count = len(self.content)
        unlocked = {i for i in snapshot.unlocked_sections if 0 <= i < count}
        completed = {
            i for i in snapshot.completed_sections
            if 0 <= i < count and self._blocking_at(i)
        }
        objectives = {
            i for i in snapshot.completed_objectives
            if 0 <= i < len(self.module.objectives)
        }
        dropped = (
            len(snapshot.unlocked_sections - unlocked - {0})
            + len(snapshot.completed_sections - completed)
            + len(snapshot.completed_objectives - objectives)
        )
        if dropped:
            logger.warning(
                f"Dropped {dropped} saved indices that no longer match module "
                f"{self.module.id}; was its content reordered?"
            )

        self._set_state(ProgressSnapshot(
            completed_objectives=objectives,
            completed_sections=completed,
            unlocked_sections=unlocked,
        ))

    def ensure_consistency(self):
        """
        Repair unlocked sections against completed ones after a reload.

        Idempotent: additions only ever target later indices, so one forward
        pass reaches the fixpoint.
        """
        unlocked = self.state.unlocked_sections
        before = len(unlocked)
        count = len(self.content)

        for index in range(count):
            blocking = self._blocking_at(index)
            if blocking and index in self.state.completed_sections:
                self._cascade_from(index)
            if not blocking and (index == 0 or index in unlocked) and index + 1 < count:
                unlocked.add(index + 1)

        unlocked.add(0)
        if len(unlocked) != before:
            logger.debug(f"Consistency pass unlocked {len(unlocked) - before} sections in {self.module.id}")
        self._save()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def is_unlocked(self, index: int) -> bool:
        if index in self.state.unlocked_sections:
            return True
        return index == 0 and not self._blocking_at(0)

    def is_completed(self, index: int) -> bool:
        return index in self.state.completed_sections

    def count_blocking(self) -> int:
        return sum(1 for section in self.content if is_blocking(section.type))

    def count_completed_blocking(self) -> int:
        count = len(self.content)
        return sum(
            1 for index in self.state.completed_sections
            if 0 <= index < count and self._blocking_at(index)
        )

    @property
    def progress(self) -> int:
        return self.state.progress

    def snapshot(self) -> ProgressSnapshot:
        return self.state.model_copy(deep=True)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _recompute_progress(self):
        self.state.progress = progress_percent(self.count_completed_blocking(), self.count_blocking())

    def _cascade_from(self, index: int) -> Optional[int]:
        """Unlock from index+1 through the next blocking section (inclusive)."""
        count = len(self.content)
        first = index + 1
        current = first
        while current < count:
            self.state.unlocked_sections.add(current)
            if self._blocking_at(current):
                break
            current += 1
        return first if first < count else None

    def complete_section(self, index: int) -> bool:
        """
        Record a solved blocking section.

        The caller has already judged the answer. Returns True if the section
        was newly completed. Informational sections are never recorded.
        """
        section = self.module.section(index)
        if not is_blocking(section.type):
            logger.warning(f"Section {index} of {self.module.id} is {section.type!r}, not completable")
            return False
        if index in self.state.completed_sections:
            return False

        self.state.completed_sections.add(index)
        self._recompute_progress()

        objective = getattr(section, "completes_objective", None)
        if objective is not None:
            self.objectives.complete_objective(objective)

        self._save()
        logger.info(f"Completed section {index} of {self.module.id} ({self.state.progress}%)")
        return True

    def unlock_next(self, index: int) -> Optional[int]:
        """
        Unlock the sections after `index`, stopping after one blocking section.

        Returns the first index of the cascade, or None at the end of content.
        """
        self.module.section(index)
        first = self._cascade_from(index)
        self._save()
        return first

    def complete_objective(self, index: int) -> bool:
        added = self.objectives.complete_objective(index)
        if added:
            self._save()
        return added

    def force_complete(self):
        """Checkpoint path: every objective done and progress at 100."""
        self.objectives.complete_all()
        self.state.progress = 100
        self._save()

    def reset(self):
        """Forget all progress for the module, in memory and in storage."""
        self.persisted.clear()
        self._set_state(ProgressSnapshot())
        logger.info(f"Reset progress for {self.module.id}")
