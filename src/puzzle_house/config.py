from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from platformdirs import user_data_dir

from .storage import DEFAULT_SLOT

logger = logging.getLogger(__name__)

APP_SLUG = "puzzle-house"
DEFAULT_HALL_IDS: Tuple[str, ...] = ("nate", "erik", "patty")


def _default_data_dir() -> Path:
    return Path(user_data_dir(appname=APP_SLUG))


def _normalize_hall_ids(hall_ids: Iterable[str]) -> Tuple[str, ...]:
    return tuple(h.strip() for h in hall_ids if h and h.strip())


@dataclass
class PuzzleHouseConfig:
    """Runtime configuration for a puzzle house session.

    - hall_ids: the known, fixed set of halls offered to the player, in menu order.
    - content: directory path or http(s) base URL holding ``<hall_id>.json`` files.
    - data_dir: where the progress slot file lives.
    - storage_slot: name of the progress slot.
    """

    hall_ids: Tuple[str, ...] = DEFAULT_HALL_IDS
    content: str = "halls"
    data_dir: Path = field(default_factory=_default_data_dir)
    storage_slot: str = DEFAULT_SLOT

    def __post_init__(self) -> None:
        self.hall_ids = _normalize_hall_ids(self.hall_ids)
        if not self.hall_ids:
            raise ValueError("At least one hall id must be configured")
        self.data_dir = Path(self.data_dir)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PuzzleHouseConfig":
        """Build configuration from ``PUZZLE_HOUSE_*`` environment variables.

        Unset or blank variables fall back to defaults.
        """
        env = os.environ if environ is None else environ
        kwargs: Dict[str, Any] = {}
        halls = _normalize_hall_ids((env.get("PUZZLE_HOUSE_HALLS") or "").split(","))
        if halls:
            kwargs["hall_ids"] = halls
        content = (env.get("PUZZLE_HOUSE_CONTENT") or "").strip()
        if content:
            kwargs["content"] = content
        data_dir = (env.get("PUZZLE_HOUSE_DATA_DIR") or "").strip()
        if data_dir:
            kwargs["data_dir"] = Path(data_dir)
        slot = (env.get("PUZZLE_HOUSE_SLOT") or "").strip()
        if slot:
            kwargs["storage_slot"] = slot
        return cls(**kwargs)

    @classmethod
    def from_json(cls, path: Path) -> "PuzzleHouseConfig":
        """Load configuration from a JSON file. Missing fields fall back to defaults."""
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            raise ValueError(f"Config file {path} must hold a JSON object")
        kwargs: Dict[str, Any] = {}
        if "hall_ids" in raw:
            halls = _normalize_hall_ids(str(h) for h in raw["hall_ids"])
            if halls:
                kwargs["hall_ids"] = halls
        if "content" in raw:
            kwargs["content"] = str(raw["content"])
        if "data_dir" in raw:
            kwargs["data_dir"] = Path(raw["data_dir"])
        if "storage_slot" in raw:
            kwargs["storage_slot"] = str(raw["storage_slot"])
        logger.debug("Loaded config from %s", path)
        return cls(**kwargs)
