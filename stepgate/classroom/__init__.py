"""
StepGate Classroom - Runtime components for working through a module.

This module provides:
- ModuleLoader: Load module definitions from JSON/YAML files
- PersistedState: Save and restore progress snapshots
- ProgressionEngine: Unlock/complete state machine
- ObjectiveTracker, CheckpointGate: Objectives and module completion
- Evaluator judges and PythonSession code execution
- LearningSession: Orchestration used by the display layer
"""

from .classifier import (
    BLOCKING_TYPES,
    is_blocking,
)

from .storage import (
    KeyValueStore,
    MemoryStore,
    SqliteStore,
)

from .persistence import (
    PersistedState,
    data_key,
    completed_key,
)

from .objectives import ObjectiveTracker

from .engine import (
    ProgressionEngine,
    progress_percent,
)

from .checkpoint import CheckpointGate

from .executor import (
    CodeExecutor,
    PythonSession,
)

from .evaluator import (
    parse_number,
    judge_numeric,
    judge_choice,
    judge_quiz,
    judge_code,
)

from .loader import (
    ModuleLoader,
    load_dict,
    load_file,
)

from .session import (
    LearningSession,
    SectionStatus,
)

__all__ = [
    # Classifier
    "BLOCKING_TYPES",
    "is_blocking",
    # Storage
    "KeyValueStore",
    "MemoryStore",
    "SqliteStore",
    # Persistence
    "PersistedState",
    "data_key",
    "completed_key",
    # Engine
    "ObjectiveTracker",
    "ProgressionEngine",
    "progress_percent",
    "CheckpointGate",
    # Execution and judging
    "CodeExecutor",
    "PythonSession",
    "parse_number",
    "judge_numeric",
    "judge_choice",
    "judge_quiz",
    "judge_code",
    # Loading
    "ModuleLoader",
    "load_dict",
    "load_file",
    # Session
    "LearningSession",
    "SectionStatus",
]
