from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from puzzle_house.content import DirectoryHallSource
from puzzle_house.errors import HallContentError, LoadError
from puzzle_house.models import Hall
from puzzle_house.progress import ProgressStore
from puzzle_house.session import AccessState, HallSession, derive_access
from puzzle_house.storage import InMemoryStorage


class CountingSource:
    def __init__(self, documents):
        self.documents = documents
        self.calls = []

    def fetch(self, hall_id):
        self.calls.append(hall_id)
        if hall_id not in self.documents:
            raise HallContentError(f"no hall {hall_id}")
        return self.documents[hall_id]


def states(views):
    return [(v.room.id, v.state) for v in views]


def test_current_hall_is_none_before_any_load(halls_dir: Path):
    assert HallSession(DirectoryHallSource(halls_dir)).current_hall() is None


def test_load_hall_parses_and_sets_current(halls_dir: Path):
    session = HallSession(DirectoryHallSource(halls_dir))
    hall = asyncio.run(session.load_hall("test"))
    assert isinstance(hall, Hall)
    assert session.current_hall() is hall
    assert session.cached_hall_ids() == ("test",)


def test_load_hall_uses_cache(hall_document):
    source = CountingSource({"a": hall_document, "b": hall_document})
    session = HallSession(source)

    first = asyncio.run(session.load_hall("a"))
    asyncio.run(session.load_hall("b"))
    again = asyncio.run(session.load_hall("a"))

    assert again is first
    assert source.calls == ["a", "b"]
    assert session.current_hall().id == "a"


def test_missing_hall_raises_load_error_and_keeps_current(halls_dir: Path):
    session = HallSession(DirectoryHallSource(halls_dir))
    loaded = asyncio.run(session.load_hall("test"))

    with pytest.raises(LoadError) as ei:
        asyncio.run(session.load_hall("missing"))

    assert ei.value.hall_id == "missing"
    assert isinstance(ei.value.cause, HallContentError)
    assert session.current_hall() is loaded
    assert "missing" not in session.cached_hall_ids()


def test_failed_load_is_not_cached_and_can_be_retried(hall_document):
    source = CountingSource({})
    session = HallSession(source)
    with pytest.raises(LoadError):
        asyncio.run(session.load_hall("late"))
    assert session.current_hall() is None

    source.documents["late"] = hall_document
    assert asyncio.run(session.load_hall("late")).id == "late"
    assert source.calls == ["late", "late"]


def test_invalid_model_is_a_load_error():
    source = CountingSource({"dupes": {"displayName": "D", "rooms": [{"id": "a", "key": "x"}, {"id": "a", "key": "y"}]}})
    with pytest.raises(LoadError):
        asyncio.run(HallSession(source).load_hall("dupes"))


def test_fresh_progress_first_room_available_rest_locked(hall: Hall):
    store = ProgressStore(InMemoryStorage())
    assert states(derive_access(hall, store)) == [
        ("r0", AccessState.AVAILABLE),
        ("r1", AccessState.LOCKED),
    ]


def test_unlocking_first_room_makes_second_available(hall: Hall):
    store = ProgressStore(InMemoryStorage())
    session = HallSession(CountingSource({}))
    assert store.attempt_unlock(hall.room("r0"), "sesame")
    assert states(session.accessible_rooms(hall, store)) == [
        ("r0", AccessState.COMPLETED),
        ("r1", AccessState.AVAILABLE),
    ]


def test_access_is_recomputed_on_every_query(hall: Hall):
    store = ProgressStore(InMemoryStorage())
    store.attempt_unlock(hall.room("r0"), "sesame")
    before = derive_access(hall, store)
    store.relock_from(hall, 0)
    after = derive_access(hall, store)
    assert before[0].state is AccessState.COMPLETED
    assert after[0].state is AccessState.AVAILABLE


def test_unlocked_room_behind_locked_predecessor_stays_locked(hall: Hall):
    # Stale progress can mark a later room unlocked; the chain still gates it.
    store = ProgressStore(InMemoryStorage({"puzzleHouseProgress": '{"unlockedRooms": {"r1": true}}'}))
    views = derive_access(hall, store)
    assert views[0].state is AccessState.AVAILABLE
    assert views[1].state is AccessState.LOCKED
    assert not views[1].accessible


def test_empty_hall_has_no_views():
    hall = Hall.from_document("empty", {"displayName": "Empty", "rooms": []})
    assert derive_access(hall, ProgressStore(InMemoryStorage())) == []


def test_undecodable_hall_file_is_a_load_error(halls_dir: Path):
    (halls_dir / "binary.json").write_bytes(b'{"displayName": "\xff\xfe", "rooms": []}')
    session = HallSession(DirectoryHallSource(halls_dir))

    with pytest.raises(LoadError) as ei:
        asyncio.run(session.load_hall("binary"))

    assert ei.value.hall_id == "binary"
    assert isinstance(ei.value.cause, HallContentError)
    assert session.current_hall() is None
