"""CheckpointGate - Final all-exercises-complete check for a module."""

import logging
from typing import Callable, Optional

from stepgate.errors import IncompleteExercises
from stepgate.schemas import Module

from .engine import ProgressionEngine

logger = logging.getLogger(__name__)


class CheckpointGate:
    """
    Marks a module fully complete once every blocking section is solved.

    `on_complete` is called with the module after a successful checkpoint,
    so the display layer can react.
    """

    def __init__(
        self,
        engine: ProgressionEngine,
        on_complete: Optional[Callable[[Module], None]] = None,
    ):
        self.engine = engine
        self.on_complete = on_complete

    def can_checkpoint(self) -> bool:
        return self.engine.count_completed_blocking() >= self.engine.count_blocking()

    def is_module_completed(self) -> bool:
        return self.engine.persisted.is_completed()

    def complete_checkpoint(self):
        """
        Mark the module complete.

        Raises:
            IncompleteExercises: if any blocking section is still unsolved
        """
        completed = self.engine.count_completed_blocking()
        total = self.engine.count_blocking()
        if completed < total:
            raise IncompleteExercises(completed, total)

        self.engine.persisted.mark_completed()
        self.engine.force_complete()
        logger.info(f"Module {self.engine.module.id} checkpoint passed")

        if self.on_complete is not None:
            self.on_complete(self.engine.module)
