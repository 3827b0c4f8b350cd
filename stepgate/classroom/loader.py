"""
ModuleLoader - Load module definitions from JSON or YAML files.

A module file holds one module: {id, title, objectives, content, quiz?}.
Anything that does not validate is a ModuleDefinitionError; the core never
runs on a partial module.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from stepgate.errors import ModuleDefinitionError
from stepgate.schemas import Module, UnknownSection

logger = logging.getLogger(__name__)

MODULE_SUFFIXES = (".json", ".yaml", ".yml")


def load_dict(raw: Any, source: str = "<dict>") -> Module:
    """Validate a raw module definition."""
    if not isinstance(raw, dict):
        raise ModuleDefinitionError(f"{source}: module definition must be a mapping")
    try:
        module = Module.model_validate(raw)
    except ValidationError as e:
        raise ModuleDefinitionError(f"{source}: invalid module definition\n{e}") from e

    unknown = [i for i, section in enumerate(module.content) if isinstance(section, UnknownSection)]
    if unknown:
        logger.warning(f"{source}: sections {unknown} have unknown types and will not render")
    return module


def load_file(path: str | Path) -> Module:
    """
    Load one module file.

    Raises:
        FileNotFoundError: if the file does not exist
        ModuleDefinitionError: if it cannot be parsed or validated
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Module file not found: {path}")
    if path.suffix.lower() not in MODULE_SUFFIXES:
        raise ModuleDefinitionError(f"{path}: unsupported module file type {path.suffix!r}")

    text = path.read_text(encoding="utf-8-sig")
    try:
        if path.suffix.lower() == ".json":
            raw = json.loads(text)
        else:
            raw = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ModuleDefinitionError(f"{path}: cannot parse module file: {e}") from e

    return load_dict(raw, source=str(path))


class ModuleLoader:
    """Read module definitions from a directory."""

    def __init__(self, modules_dir: str | Path):
        """
        Initialize loader.

        Args:
            modules_dir: Directory containing *.json / *.yaml module files
        """
        self.modules_dir = Path(modules_dir)
        if not self.modules_dir.is_dir():
            raise FileNotFoundError(f"Modules directory not found: {modules_dir}")

    def module_files(self) -> list[Path]:
        return sorted(
            path for path in self.modules_dir.iterdir()
            if path.suffix.lower() in MODULE_SUFFIXES
        )

    def load_all(self) -> dict[str, Module]:
        """Load every module, keyed by id; duplicate ids are rejected."""
        modules: dict[str, Module] = {}
        for path in self.module_files():
            module = load_file(path)
            if module.id in modules:
                raise ModuleDefinitionError(f"Duplicate module id: {module.id} ({path})")
            modules[module.id] = module
        logger.debug(f"Loaded {len(modules)} modules from {self.modules_dir}")
        return modules

    def get_module(self, module_id: str) -> Optional[Module]:
        return self.load_all().get(module_id)
