from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from .content import HallSource
from .errors import HallContentError, LoadError
from .models import Hall, Room
from .progress import ProgressStore

logger = logging.getLogger(__name__)


class AccessState(str, Enum):
    LOCKED = "locked"  # predecessor not unlocked yet
    AVAILABLE = "available"
    COMPLETED = "completed"


@dataclass(frozen=True)
class RoomView:
    """A room paired with its derived access state at query time."""

    index: int
    room: Room
    state: AccessState

    @property
    def accessible(self) -> bool:
        return self.state is not AccessState.LOCKED


def derive_access(hall: Hall, progress: ProgressStore) -> List[RoomView]:
    """Compute the access state of every room in ``hall``, in order.

    Room 0 is always accessible; room i is accessible only if room i-1 is
    unlocked. Nothing here is cached.
    """
    views: List[RoomView] = []
    previous_unlocked = True
    for index, room in enumerate(hall.rooms):
        unlocked = progress.is_unlocked(room)
        if not previous_unlocked:
            state = AccessState.LOCKED
        elif unlocked:
            state = AccessState.COMPLETED
        else:
            state = AccessState.AVAILABLE
        views.append(RoomView(index=index, room=room, state=state))
        previous_unlocked = unlocked
    return views


class HallSession:
    """Loads hall content on demand and remembers it for the session.

    Cached halls are never invalidated. ``current_hall`` follows the most
    recently completed load; a failed load leaves it untouched.
    """

    def __init__(self, source: HallSource) -> None:
        self.source = source
        self._halls: Dict[str, Hall] = {}
        self._current_hall_id: Optional[str] = None

    async def load_hall(self, hall_id: str) -> Hall:
        cached = self._halls.get(hall_id)
        if cached is not None:
            logger.debug("Hall '%s' served from cache", hall_id)
            self._current_hall_id = hall_id
            return cached

        try:
            document = await asyncio.to_thread(self.source.fetch, hall_id)
            hall = Hall.from_document(hall_id, document)
        except (HallContentError, PydanticValidationError) as e:
            logger.error("Failed to load hall '%s': %s", hall_id, e)
            raise LoadError(hall_id, e) from e

        self._halls[hall_id] = hall
        self._current_hall_id = hall_id
        logger.info("Loaded hall '%s' (%s) with %d rooms", hall_id, hall.display_name, len(hall.rooms))
        return hall

    def current_hall(self) -> Optional[Hall]:
        if self._current_hall_id is None:
            return None
        return self._halls.get(self._current_hall_id)

    def cached_hall_ids(self) -> tuple[str, ...]:
        return tuple(self._halls)

    def accessible_rooms(self, hall: Hall, progress: ProgressStore) -> List[RoomView]:
        return derive_access(hall, progress)
