from __future__ import annotations

import json
import logging
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, Union

from jsonschema import Draft202012Validator

from .errors import ValidationError
from .models import Hall, Room
from .storage import DEFAULT_SLOT, ProgressStorage

logger = logging.getLogger(__name__)


PROGRESS_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "unlockedRooms": {
            "type": "object",
            "additionalProperties": {"type": "boolean"},
        },
        "revealedHints": {
            "type": "object",
            "additionalProperties": {"type": "integer", "minimum": 0},
        },
    },
}

_VALIDATOR = Draft202012Validator(PROGRESS_SCHEMA)

RoomRef = Union[Room, str]


def normalize_key(text: str) -> str:
    """Normalize player input for key comparison: trim surrounding whitespace, lowercase."""
    return text.strip().lower()


def _room_id(room: RoomRef) -> str:
    return room if isinstance(room, str) else room.id


@dataclass
class Progress:
    """Per-room unlock flags and revealed-hint counts.

    Absence from ``unlocked_rooms`` means locked; absence from
    ``revealed_hints`` means no hints revealed.
    """

    unlocked_rooms: Dict[str, bool] = field(default_factory=dict)
    revealed_hints: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unlockedRooms": dict(self.unlocked_rooms),
            "revealedHints": dict(self.revealed_hints),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Progress":
        """Validate and build progress from its persisted form.

        Raises:
            ValidationError if the structure does not match the progress schema.
        """
        errors = sorted(_VALIDATOR.iter_errors(data), key=lambda e: [str(p) for p in e.path])
        if errors:
            first = errors[0]
            where = ".".join(str(p) for p in first.absolute_path) or "root"
            raise ValidationError(f"Invalid progress at {where}: {first.message}")
        unlocked = data.get("unlockedRooms") or {}
        hints = data.get("revealedHints") or {}
        return cls(
            unlocked_rooms={room_id: True for room_id, flag in unlocked.items() if flag},
            # JSON Schema "integer" also admits 1.0; store plain ints.
            revealed_hints={room_id: int(count) for room_id, count in hints.items() if count > 0},
        )

    @classmethod
    def from_json(cls, text: str) -> "Progress":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid progress JSON: {e.msg}") from e
        return cls.from_dict(data)


class ProgressStore:
    """Owns the player's progress and persists it after every mutation.

    Progress is read from the storage slot once, at construction. A missing or
    malformed slot yields empty progress; a malformed one is logged and
    otherwise ignored until the next successful write replaces it.

    Every mutator persists synchronously before returning and raises
    :class:`~puzzle_house.errors.StorageError` if the write fails. The
    in-memory change is kept in that case so a later persist can retry.
    """

    def __init__(self, storage: ProgressStorage, slot: str = DEFAULT_SLOT) -> None:
        self.storage = storage
        self.slot = slot
        self.progress = self._load()

    def _load(self) -> Progress:
        raw = self.storage.read(self.slot)
        if raw is None:
            logger.debug("No saved progress in slot '%s'; starting fresh", self.slot)
            return Progress()
        try:
            progress = Progress.from_json(raw)
        except ValidationError as e:
            logger.warning("Discarding malformed progress in slot '%s': %s", self.slot, e)
            return Progress()
        logger.debug(
            "Loaded progress from slot '%s': %d unlocked, %d hinted",
            self.slot,
            len(progress.unlocked_rooms),
            len(progress.revealed_hints),
        )
        return progress

    def persist(self) -> None:
        """Serialize the full progress structure to the storage slot."""
        self.storage.write(self.slot, json.dumps(self.progress.to_dict(), sort_keys=True))

    def snapshot(self) -> Dict[str, Any]:
        return deepcopy(self.progress.to_dict())

    def is_unlocked(self, room: RoomRef) -> bool:
        return self.progress.unlocked_rooms.get(_room_id(room), False)

    def attempt_unlock(self, room: Room, input_text: str) -> bool:
        """Try to unlock ``room`` with the player's input.

        Returns True on a key match and False otherwise. A mismatch never
        changes state, and a room that is already unlocked stays unlocked.
        """
        if normalize_key(input_text) != room.key:
            logger.debug("Wrong key for room '%s'", room.id)
            return False
        if self.is_unlocked(room):
            return True
        self.progress.unlocked_rooms[room.id] = True
        logger.info("Room '%s' unlocked", room.id)
        self.persist()
        return True

    def revealed_hint_count(self, room: Room) -> int:
        count = self.progress.revealed_hints.get(room.id, 0)
        return max(0, min(count, len(room.hints)))

    def reveal_next_hint(self, room: Room) -> int:
        """Reveal one more hint for ``room`` unless all are already shown.

        Returns the revealed count after the call.
        """
        current = self.revealed_hint_count(room)
        if current >= len(room.hints):
            logger.debug("All %d hints already revealed for room '%s'", current, room.id)
            return current
        self.progress.revealed_hints[room.id] = current + 1
        logger.info("Revealed hint %d/%d for room '%s'", current + 1, len(room.hints), room.id)
        self.persist()
        return current + 1

    def relock_from(self, hall: Hall, start_index: int) -> None:
        """Relock every room at ``start_index`` or later and clear its hints.

        Persists once after the whole batch.
        """
        if start_index < 0:
            raise ValueError(f"start_index must be >= 0, got {start_index}")
        relocked = hall.rooms[start_index:]
        for room in relocked:
            self.progress.unlocked_rooms.pop(room.id, None)
            self.progress.revealed_hints.pop(room.id, None)
        logger.info("Relocked %d room(s) in hall '%s' from index %d", len(relocked), hall.id, start_index)
        self.persist()

    def reset(self) -> None:
        """Forget all progress in every hall."""
        self.progress = Progress()
        logger.info("Cleared all progress in slot '%s'", self.slot)
        self.persist()
