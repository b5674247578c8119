from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from . import __version__
from .config import PuzzleHouseConfig
from .errors import LoadError, PuzzleHouseError, StorageError
from .game import PuzzleHouse
from .session import AccessState

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_WRONG_KEY = 1
EXIT_ERROR = 2

_STATE_MARKS = {
    AccessState.LOCKED: "🔒",
    AccessState.AVAILABLE: "  ",
    AccessState.COMPLETED: "✅",
}


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="puzzle-house",
        description="Puzzle House - unlock the rooms of each hall in order",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, default=None, help="JSON config file")
    parser.add_argument("--content", default=None, help="Hall content directory or base URL")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory for saved progress")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("halls", help="List the available halls")

    show = sub.add_parser("show", help="Show the rooms of a hall")
    show.add_argument("hall")

    unlock = sub.add_parser("unlock", help="Submit a key for a room")
    unlock.add_argument("hall")
    unlock.add_argument("room")
    unlock.add_argument("key")

    hint = sub.add_parser("hint", help="Reveal the next hint for a room")
    hint.add_argument("hall")
    hint.add_argument("room")

    relock = sub.add_parser("relock", help="Re-lock a room and every room after it")
    relock.add_argument("hall")
    relock.add_argument("room")

    reset = sub.add_parser("reset", help="Re-lock every room in a hall")
    reset.add_argument("hall", nargs="?")
    reset.add_argument("--all", action="store_true", help="Forget progress in every hall")
    return parser


def _load_config(args: argparse.Namespace) -> PuzzleHouseConfig:
    cfg = PuzzleHouseConfig.from_json(args.config) if args.config else PuzzleHouseConfig.from_env()
    # Honor CLI over config file and env vars
    if args.content:
        cfg.content = args.content
    if args.data_dir:
        cfg.data_dir = args.data_dir
    return cfg


def render_hall(house: PuzzleHouse, out: TextIO) -> None:
    hall = house.current_hall
    if hall is None:
        return
    out.write(f"{hall.display_name}  [{house.completion_percent()}% complete]\n")
    for view in house.get_accessible_rooms():
        room = view.room
        mark = _STATE_MARKS[view.state]
        if view.state is AccessState.LOCKED:
            out.write(f"{mark} {view.index + 1}. Locked\n")
            continue
        out.write(f"{mark} {view.index + 1}. {room.title} ({room.id})\n")
        if room.description:
            out.write(f"     {room.description}\n")
        for ref in room.image_refs:
            out.write(f"     [image] {ref}\n")
        shown = house.visible_hints(room.id)
        for text in shown:
            out.write(f"     💡 {text}\n")
        if len(shown) < len(room.hints):
            out.write(f"     ({len(room.hints) - len(shown)} more hint(s) available)\n")


def run(args: argparse.Namespace, cfg: PuzzleHouseConfig, out: TextIO) -> int:
    house = PuzzleHouse.from_config(cfg)

    if args.command == "halls":
        for choice in house.enumerate_halls():
            out.write(f"{choice.id}\t{choice.label}\n")
        return EXIT_OK

    if args.command == "reset" and args.all:
        house.progress.reset()
        out.write("All progress cleared.\n")
        return EXIT_OK
    if args.command == "reset" and not args.hall:
        out.write("reset needs a hall id or --all\n")
        return EXIT_ERROR

    asyncio.run(house.select_hall(args.hall))

    if args.command == "show":
        render_hall(house, out)
        return EXIT_OK
    if args.command == "unlock":
        if house.submit_key(args.room, args.key):
            out.write("Unlocked!\n")
            return EXIT_OK
        out.write("Incorrect key.\n")
        return EXIT_WRONG_KEY
    if args.command == "hint":
        count = house.reveal_hint(args.room)
        hints = house.visible_hints(args.room)
        total = len(house.current_hall.room(args.room).hints)
        if hints:
            out.write(f"💡 {hints[-1]} ({count}/{total})\n")
        else:
            out.write("This room has no hints.\n")
        return EXIT_OK
    if args.command == "relock":
        house.relock_from(args.room)
        out.write(f"Re-locked '{args.room}' and every room after it.\n")
        return EXIT_OK
    if args.command == "reset":
        house.reset_hall()
        out.write("Hall progress reset.\n")
        return EXIT_OK
    raise ValueError(f"Unknown command: {args.command}")  # pragma: no cover - argparse guards this


def main(argv: Optional[List[str]] = None, out: Optional[TextIO] = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)
    out = out or sys.stdout
    try:
        cfg = _load_config(args)
    except (OSError, ValueError) as e:
        # ValueError covers malformed JSON and an empty hall list
        out.write(f"Invalid configuration: {e}\n")
        return EXIT_ERROR
    try:
        return run(args, cfg, out)
    except LoadError as e:
        out.write(f"Could not load hall '{e.hall_id}': {e.cause}\n")
    except StorageError as e:
        out.write(f"Progress could not be saved: {e}\n")
    except PuzzleHouseError as e:
        out.write(f"{e}\n")
    return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
