"""
PersistedState - Load and save per-module progress snapshots.

Two keys per module:
- module-<id>-data: JSON ProgressSnapshot
- module-<id>-completed: "true" once the checkpoint has been passed

Storage failures are logged and swallowed: progress keeps working in memory
for the session and is simply not there after a reload.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from stepgate.errors import StorageUnavailable
from stepgate.schemas import ProgressSnapshot

from .storage import KeyValueStore

logger = logging.getLogger(__name__)


def data_key(module_id: str) -> str:
    return f"module-{module_id}-data"


def completed_key(module_id: str) -> str:
    return f"module-{module_id}-completed"


class PersistedState:
    """
    Snapshot serialization for one module; no progression policy.

    If the snapshot cannot be read, saved progress may still exist, so
    writes are skipped for the rest of the session instead of replacing it
    with a fresh state. The completion flag is kept in memory as well.
    """

    def __init__(self, store: KeyValueStore, module_id: str):
        self.store = store
        self.module_id = module_id
        self.read_failed = False
        self._completed = False

    def load(self) -> Optional[ProgressSnapshot]:
        """Return the saved snapshot, or None if absent or unreadable."""
        try:
            raw = self.store.get(data_key(self.module_id))
        except StorageUnavailable as e:
            self.read_failed = True
            logger.warning(f"Could not load progress for {self.module_id}, not saving this session: {e}")
            return None
        if raw is None:
            return None
        try:
            return ProgressSnapshot.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable progress snapshot for {self.module_id}: {e}")
            return None

    def _write(self, key: str, value: str) -> bool:
        if self.read_failed:
            logger.debug(f"Skipping write of {key}; saved progress could not be read")
            return False
        try:
            self.store.set(key, value)
        except StorageUnavailable as e:
            logger.warning(f"{key} kept in memory only: {e}")
            return False
        return True

    def save(self, snapshot: ProgressSnapshot) -> bool:
        """Write the snapshot; False if it was not stored."""
        return self._write(data_key(self.module_id), snapshot.to_json())

    def mark_completed(self) -> bool:
        self._completed = True
        return self._write(completed_key(self.module_id), "true")

    def is_completed(self) -> bool:
        if self._completed:
            return True
        try:
            return self.store.get(completed_key(self.module_id)) == "true"
        except StorageUnavailable as e:
            logger.warning(f"Could not read completion flag for {self.module_id}: {e}")
            return False

    def clear(self):
        """Remove both keys for the module; writes resume once both are gone."""
        self._completed = False
        removed = True
        for key in (data_key(self.module_id), completed_key(self.module_id)):
            try:
                self.store.remove(key)
            except StorageUnavailable as e:
                removed = False
                logger.warning(f"Could not remove {key}: {e}")
        if removed:
            self.read_failed = False
