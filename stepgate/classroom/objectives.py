"""Track which learning objectives of a module are complete."""

import logging

from stepgate.schemas import Module

logger = logging.getLogger(__name__)


class ObjectiveTracker:
    """
    Marks objectives complete.

    Operates on the engine's completed-objectives set; the engine owns
    persistence.
    """

    def __init__(self, module: Module, completed: set[int]):
        self.module = module
        self.completed = completed

    @property
    def total(self) -> int:
        return len(self.module.objectives)

    def complete_objective(self, index: int) -> bool:
        """Add an objective; returns True if it was newly completed."""
        if not 0 <= index < self.total:
            logger.warning(
                f"Module {self.module.id} has no objective {index} "
                f"({self.total} objectives); ignoring"
            )
            return False
        if index in self.completed:
            return False
        self.completed.add(index)
        return True

    def complete_all(self) -> int:
        """Complete every objective; returns how many were newly added."""
        return sum(1 for index in range(self.total) if self.complete_objective(index))

    def is_completed(self, index: int) -> bool:
        return index in self.completed
