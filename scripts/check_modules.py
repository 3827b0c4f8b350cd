#!/usr/bin/env python3
"""
check_modules.py - Validate module files and inspect stored progress.

Loads every module definition in a directory, reports structural problems,
and prints a summary per module. Can also show or reset learner progress
kept in the progress database.

Usage:
  python scripts/check_modules.py
  python scripts/check_modules.py --modules modules --progress
  python scripts/check_modules.py --reset linear-regression
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from stepgate.classroom import (
    ModuleLoader,
    PersistedState,
    ProgressionEngine,
    SqliteStore,
    is_blocking,
)
from stepgate.config import configure_logging, get_settings
from stepgate.errors import ModuleDefinitionError, StorageUnavailable
from stepgate.schemas import Module, UnknownSection

logger = logging.getLogger(__name__)


def summarize(module: Module) -> str:
    blocking = [i for i, s in enumerate(module.content) if is_blocking(s.type)]
    unknown = [i for i, s in enumerate(module.content) if isinstance(s, UnknownSection)]
    dangling = [
        i for i, s in enumerate(module.content)
        if getattr(s, "completes_objective", None) is not None
        and s.completes_objective >= len(module.objectives)
    ]
    lines = [
        f"{module.id}: {module.title or '(untitled)'}",
        f"  sections: {module.section_count} ({len(blocking)} blocking at {blocking})",
        f"  objectives: {len(module.objectives)}",
    ]
    if module.quiz is not None:
        lines.append("  final quiz: yes")
    if unknown:
        lines.append(f"  WARNING unknown section types at {unknown}")
    if dangling:
        lines.append(f"  WARNING sections {dangling} link to missing objectives")
    return "\n".join(lines)


def show_progress(module: Module, store: SqliteStore) -> str:
    persisted = PersistedState(store, module.id)
    engine = ProgressionEngine(module, persisted)
    status = "completed" if persisted.is_completed() else "in progress"
    return (
        f"  progress: {engine.progress}% ({engine.count_completed_blocking()}/"
        f"{engine.count_blocking()} exercises, {status})\n"
        f"  unlocked: {sorted(engine.state.unlocked_sections)}"
    )


def main():
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Validate StepGate module files",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--modules",
        type=Path,
        default=settings.modules_dir,
        help=f"Directory of module files (default: {settings.modules_dir})"
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=settings.progress_db,
        help=f"Progress database (default: {settings.progress_db})"
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show stored progress for each module"
    )
    parser.add_argument(
        "--reset",
        metavar="MODULE_ID",
        help="Clear stored progress for one module"
    )
    args = parser.parse_args()
    configure_logging(settings.log_level)

    try:
        modules = ModuleLoader(args.modules).load_all()
    except (FileNotFoundError, ModuleDefinitionError) as e:
        logger.error(str(e))
        return 1

    logger.info(f"Loaded {len(modules)} modules from {args.modules}")

    store = None
    if args.progress or args.reset:
        try:
            store = SqliteStore(args.db)
        except StorageUnavailable as e:
            logger.error(str(e))
            return 1

    if args.reset:
        module = modules.get(args.reset)
        if module is None:
            logger.error(f"Unknown module id: {args.reset}")
            return 1
        PersistedState(store, module.id).clear()
        logger.info(f"Cleared progress for {module.id}")
        return 0

    for module in modules.values():
        print(summarize(module))
        if args.progress:
            print(show_progress(module, store))

    return 0


if __name__ == "__main__":
    sys.exit(main())
