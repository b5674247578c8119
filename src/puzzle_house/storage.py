from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from .errors import StorageError

logger = logging.getLogger(__name__)

DEFAULT_SLOT = "puzzleHouseProgress"


class ProgressStorage:
    """Interface for durable progress slots.

    A slot holds one serialized document. ``read`` returns None when the slot
    has never been written; ``write`` raises :class:`StorageError` on failure.
    """

    def read(self, slot: str) -> Optional[str]:  # pragma: no cover - interface
        raise NotImplementedError

    def write(self, slot: str, text: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class InMemoryStorage(ProgressStorage):
    """
    Test/ephemeral in-memory storage.
    Stores slot contents in a dictionary for the lifetime of the object.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._slots: Dict[str, str] = dict(initial or {})
        self.writes = 0

    def read(self, slot: str) -> Optional[str]:
        return self._slots.get(slot)

    def write(self, slot: str, text: str) -> None:
        self._slots[slot] = text
        self.writes += 1


class JsonFileStorage(ProgressStorage):
    """Store each slot as ``<data_dir>/<slot>.json``.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace`` so a crash never leaves a half-written slot.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)

    def path_for(self, slot: str) -> Path:
        return self.data_dir / f"{slot}.json"

    def read(self, slot: str) -> Optional[str]:
        path = self.path_for(slot)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No progress slot at %s", path)
            return None
        except OSError as exc:
            # Unreadable slot is treated like a corrupt one: start fresh.
            logger.warning("Could not read progress slot %s: %s", path, exc)
            return None

    def write(self, slot: str, text: str) -> None:
        path = self.path_for(slot)
        tmp_name: Optional[str] = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{slot}.", suffix=".tmp", dir=self.data_dir)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, path)
            tmp_name = None
            logger.debug("Saved progress slot to %s", path)
        except OSError as exc:
            logger.exception("Failed to write progress slot %s", path)
            raise StorageError(slot, exc) from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
