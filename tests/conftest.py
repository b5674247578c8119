import json
import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from puzzle_house.models import Hall  # noqa: E402


TWO_ROOM_HALL = {
    "displayName": "Test Hall",
    "rooms": [
        {
            "id": "r0",
            "title": "Foyer",
            "description": "A dusty <a href='https://example.com'>entrance</a>.",
            "image": "img/foyer.png",
            "key": "sesame",
            "hints": ["Think of thieves", "Forty of them", "Open ..."],
        },
        {
            "id": "r1",
            "title": "Library",
            "description": "Shelves everywhere.",
            "images": ["img/lib1.png", "img/lib2.png"],
            "key": "dewey",
            "hints": ["Decimal"],
        },
    ],
}


@pytest.fixture()
def hall_document():
    return json.loads(json.dumps(TWO_ROOM_HALL))


@pytest.fixture()
def hall(hall_document) -> Hall:
    return Hall.from_document("test", hall_document)


@pytest.fixture()
def halls_dir(tmp_path: Path, hall_document) -> Path:
    d = tmp_path / "halls"
    d.mkdir()
    (d / "test.json").write_text(json.dumps(hall_document), encoding="utf-8")
    return d
