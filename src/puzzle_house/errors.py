from __future__ import annotations

from typing import Optional


class PuzzleHouseError(Exception):
    """Base error for Puzzle House domain exceptions."""


class HallContentError(PuzzleHouseError):
    """Raised by a content source when a hall document cannot be fetched or decoded."""


class LoadError(PuzzleHouseError):
    """Raised when a hall cannot be loaded. Carries the hall id and underlying cause."""

    def __init__(self, hall_id: str, cause: BaseException) -> None:
        self.hall_id = hall_id
        self.cause = cause
        super().__init__(f"Failed to load hall '{hall_id}': {cause}")


class StorageError(PuzzleHouseError):
    """Raised when progress cannot be written to durable storage."""

    def __init__(self, slot: str, cause: Optional[BaseException] = None) -> None:
        self.slot = slot
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to persist progress slot '{slot}'{detail}")


class ValidationError(PuzzleHouseError):
    """Raised when persisted progress is malformed. Recovered by the store with defaults."""


class NoHallSelectedError(PuzzleHouseError):
    """Raised when an operation needs a current hall but none has been loaded."""


class UnknownRoomError(PuzzleHouseError):
    """Raised when a room id is not part of the current hall."""

    def __init__(self, room_id: str, hall_id: str) -> None:
        self.room_id = room_id
        self.hall_id = hall_id
        super().__init__(f"Room '{room_id}' not found in hall '{hall_id}'")


class RoomNotAccessibleError(PuzzleHouseError):
    """Raised when a key is submitted for a room whose predecessor is still locked."""

    def __init__(self, room_id: str) -> None:
        self.room_id = room_id
        super().__init__(f"Room '{room_id}' is locked; unlock the previous room first")
