import json
from pathlib import Path

import pytest

from puzzle_house.config import DEFAULT_HALL_IDS, PuzzleHouseConfig
from puzzle_house.game import PuzzleHouse
from puzzle_house.storage import DEFAULT_SLOT, JsonFileStorage


def test_defaults():
    cfg = PuzzleHouseConfig()
    assert cfg.hall_ids == DEFAULT_HALL_IDS
    assert cfg.storage_slot == DEFAULT_SLOT
    assert cfg.content == "halls"
    assert isinstance(cfg.data_dir, Path)


def test_from_env_overrides():
    cfg = PuzzleHouseConfig.from_env(
        {
            "PUZZLE_HOUSE_HALLS": "alpha, beta ,,",
            "PUZZLE_HOUSE_CONTENT": "https://example.com/halls",
            "PUZZLE_HOUSE_DATA_DIR": "/tmp/ph",
            "PUZZLE_HOUSE_SLOT": "custom",
        }
    )
    assert cfg.hall_ids == ("alpha", "beta")
    assert cfg.content == "https://example.com/halls"
    assert cfg.data_dir == Path("/tmp/ph")
    assert cfg.storage_slot == "custom"


def test_from_env_blank_values_keep_defaults():
    cfg = PuzzleHouseConfig.from_env({"PUZZLE_HOUSE_HALLS": "  ", "PUZZLE_HOUSE_CONTENT": ""})
    assert cfg.hall_ids == DEFAULT_HALL_IDS
    assert cfg.content == "halls"


def test_from_json(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"hall_ids": ["one"], "data_dir": str(tmp_path / "d")}), encoding="utf-8")
    cfg = PuzzleHouseConfig.from_json(path)
    assert cfg.hall_ids == ("one",)
    assert cfg.data_dir == tmp_path / "d"
    assert cfg.content == "halls"


def test_from_json_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        PuzzleHouseConfig.from_json(tmp_path / "nope.json")


def test_empty_hall_ids_rejected():
    with pytest.raises(ValueError):
        PuzzleHouseConfig(hall_ids=())


def test_house_from_config_uses_file_storage(tmp_path: Path):
    cfg = PuzzleHouseConfig(content=str(tmp_path), data_dir=tmp_path / "data", storage_slot="slot")
    house = PuzzleHouse.from_config(cfg)
    assert isinstance(house.progress.storage, JsonFileStorage)
    assert house.progress.slot == "slot"
    assert house.hall_ids == DEFAULT_HALL_IDS


def test_from_json_normalizes_hall_ids(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"hall_ids": [" a ", "", "b"]}), encoding="utf-8")
    assert PuzzleHouseConfig.from_json(path).hall_ids == ("a", "b")


def test_from_json_blank_hall_ids_keep_defaults(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"hall_ids": ["  ", ""]}), encoding="utf-8")
    assert PuzzleHouseConfig.from_json(path).hall_ids == DEFAULT_HALL_IDS


def test_from_json_rejects_non_object(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        PuzzleHouseConfig.from_json(path)
