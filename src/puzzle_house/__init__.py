"""
Puzzle House package root.

Halls of sequential puzzle rooms: a progress store that tracks unlocked rooms
and revealed hints, and a hall session that loads static hall content and
derives which rooms are playable. Rendering lives outside this package; the
``PuzzleHouse`` facade exposes state and accepts player intents.
"""

from .errors import (
    LoadError,
    PuzzleHouseError,
    StorageError,
    ValidationError,
)
from .game import PuzzleHouse
from .models import Hall, Room
from .progress import Progress, ProgressStore
from .session import AccessState, HallSession, RoomView

__version__ = "0.1.0"

__all__ = [
    "AccessState",
    "Hall",
    "HallSession",
    "LoadError",
    "Progress",
    "ProgressStore",
    "PuzzleHouse",
    "PuzzleHouseError",
    "Room",
    "RoomView",
    "StorageError",
    "ValidationError",
    "__version__",
]
