from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .config import DEFAULT_HALL_IDS, PuzzleHouseConfig
from .content import HallSource, source_from_location
from .errors import NoHallSelectedError, RoomNotAccessibleError, UnknownRoomError
from .models import Hall, Room
from .progress import ProgressStore
from .session import HallSession, RoomView
from .storage import DEFAULT_SLOT, JsonFileStorage, ProgressStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HallChoice:
    """An entry in the hall picker."""

    id: str
    label: str


def hall_label(hall_id: str) -> str:
    return f"{hall_id[:1].upper()}{hall_id[1:]}’s Puzzle Hall"


class PuzzleHouse:
    """The caller-facing surface: one player's progress plus their hall session.

    The rendering layer drives this object with intents (select a hall, submit
    a key, reveal a hint, relock) and re-queries :meth:`get_accessible_rooms`
    afterwards. Progress mutators raise :class:`StorageError` when the write
    to durable storage fails.
    """

    def __init__(
        self,
        source: HallSource,
        storage: ProgressStorage,
        hall_ids: tuple[str, ...] = DEFAULT_HALL_IDS,
        slot: str = DEFAULT_SLOT,
    ) -> None:
        self.hall_ids = tuple(hall_ids)
        self.session = HallSession(source)
        self.progress = ProgressStore(storage, slot)

    @classmethod
    def from_config(cls, config: PuzzleHouseConfig) -> "PuzzleHouse":
        return cls(
            source=source_from_location(config.content),
            storage=JsonFileStorage(config.data_dir),
            hall_ids=config.hall_ids,
            slot=config.storage_slot,
        )

    # --- hall selection -------------------------------------------------

    def enumerate_halls(self) -> List[HallChoice]:
        return [HallChoice(id=hall_id, label=hall_label(hall_id)) for hall_id in self.hall_ids]

    async def select_hall(self, hall_id: str) -> Hall:
        return await self.session.load_hall(hall_id)

    @property
    def current_hall(self) -> Optional[Hall]:
        return self.session.current_hall()

    def _require_hall(self) -> Hall:
        hall = self.session.current_hall()
        if hall is None:
            raise NoHallSelectedError("No hall selected")
        return hall

    def _room(self, room_id: str) -> tuple[int, Room]:
        hall = self._require_hall()
        try:
            index = hall.index_of(room_id)
        except KeyError:
            raise UnknownRoomError(room_id, hall.id) from None
        return index, hall.rooms[index]

    # --- derived state --------------------------------------------------

    def get_accessible_rooms(self) -> List[RoomView]:
        hall = self.session.current_hall()
        if hall is None:
            return []
        return self.session.accessible_rooms(hall, self.progress)

    def completion_percent(self) -> int:
        hall = self._require_hall()
        if not hall.rooms:
            return 0
        unlocked = sum(1 for room in hall.rooms if self.progress.is_unlocked(room))
        # Half rounds up, matching the progress bar.
        return int(unlocked * 100 / len(hall.rooms) + 0.5)

    def visible_hints(self, room_id: str) -> List[str]:
        _, room = self._room(room_id)
        return room.hints[: self.progress.revealed_hint_count(room)]

    # --- intents --------------------------------------------------------

    def _accessible_room(self, room_id: str) -> Room:
        index, room = self._room(room_id)
        if not self.get_accessible_rooms()[index].accessible:
            raise RoomNotAccessibleError(room_id)
        return room

    def submit_key(self, room_id: str, text: str) -> bool:
        room = self._accessible_room(room_id)
        return self.progress.attempt_unlock(room, text)

    def reveal_hint(self, room_id: str) -> int:
        room = self._accessible_room(room_id)
        return self.progress.reveal_next_hint(room)

    def relock_from(self, room_id: str) -> None:
        index, _ = self._room(room_id)
        self.progress.relock_from(self._require_hall(), index)

    def reset_hall(self) -> None:
        self.progress.relock_from(self._require_hall(), 0)
