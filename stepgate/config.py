"""
Runtime configuration for StepGate.

Values come from the environment, optionally seeded from a .env file in the
working directory:

- STEPGATE_PROGRESS_DB: SQLite file holding learner progress
- STEPGATE_MODULES_DIR: directory of module definition files
- STEPGATE_LOG_LEVEL: logging level name
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv


DEFAULT_PROGRESS_DIR = Path.home() / ".stepgate"
DEFAULT_PROGRESS_DB = DEFAULT_PROGRESS_DIR / "progress.db"
DEFAULT_MODULES_DIR = Path("modules")

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    """Resolved settings."""
    progress_db: Path
    modules_dir: Path
    log_level: str


def get_settings() -> Settings:
    """Read settings from the environment (and .env if present)."""
    load_dotenv(find_dotenv(usecwd=True))
    progress_db = os.environ.get("STEPGATE_PROGRESS_DB")
    modules_dir = os.environ.get("STEPGATE_MODULES_DIR")
    return Settings(
        progress_db=Path(progress_db).expanduser() if progress_db else DEFAULT_PROGRESS_DB,
        modules_dir=Path(modules_dir).expanduser() if modules_dir else DEFAULT_MODULES_DIR,
        log_level=os.environ.get("STEPGATE_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO"):
    """Configure root logging for the app and scripts."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
