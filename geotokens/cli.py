"""
Terminal front end for Geotokens.

Commands (typed at the prompt):
    n / s / e / w        step one cell north/south/east/west (button mode)
    click DI DJ          click the cell DI rows north and DJ columns east of you
    map                  redraw the map
    status               show what you are holding
    geo on|off           switch between geolocation and button movement
    reset                start a new game
    config               show configuration
    help                 show this list
    quit                 leave (progress is saved as you play)

Run: python -m geotokens [--memory] [--storage-dir DIR] [--route route.json]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .config import Config
from .grid.coords import CellCoord, cell_for
from .logging_utils import Color, colored, log_error
from .persistence import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore
from .positioning import ScriptedPositionSource
from .render import TextMapRenderer
from .schemas import LatLng
from .session import GameSession

SHORT_DIRECTIONS = {"n": "north", "s": "south", "e": "east", "w": "west"}

HELP_TEXT = (__doc__ or "").split("Run:")[0].strip()

QUIT = object()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Collect and craft tokens on a map grid")
    parser.add_argument(
        "--storage-dir",
        type=Path,
        default=Config.STORAGE_DIR,
        help="Directory for saved games (default: %(default)s)",
    )
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Keep the game in memory only (nothing is saved)",
    )
    parser.add_argument(
        "--route",
        type=Path,
        default=None,
        help="JSON list of {lat, lng} points replayed as a geolocation feed",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=2.0,
        help="Seconds between replayed route points (default: %(default)s)",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colors")
    return parser.parse_args(argv)


def load_route(path: Path, interval: float) -> Optional[ScriptedPositionSource]:
    """Build a scripted position source from a route file. Errors are logged."""
    try:
        points = json.loads(path.read_text("utf-8"))
        positions = [LatLng.model_validate(point) for point in points]
    except (OSError, ValueError, TypeError, ValidationError) as exc:
        log_error(f"Could not load route {path}: {exc}")
        return None
    return ScriptedPositionSource(positions, interval=interval)


def run_command(session: GameSession, line: str) -> object:
    """Execute one command line. Returns text to print, or QUIT."""
    parts = line.strip().lower().split()
    if not parts:
        return ""
    command, args = parts[0], parts[1:]

    if command in ("q", "quit", "exit"):
        return QUIT
    if command in ("h", "help", "?"):
        return HELP_TEXT
    if command == "config":
        return Config.display()
    if command in ("m", "map"):
        return render_map(session)
    if command == "status":
        return session.status_text()

    if command in SHORT_DIRECTIONS or command in SHORT_DIRECTIONS.values():
        direction = SHORT_DIRECTIONS.get(command, command)
        if not session.step(direction):
            return "Directional buttons are off (geolocation mode). Use 'geo off'."
        return render_map(session)

    if command == "click":
        if len(args) != 2:
            return "Usage: click DI DJ (offsets from your cell, north/east positive)"
        try:
            di, dj = int(args[0]), int(args[1])
        except ValueError:
            return "Offsets must be integers"
        here = cell_for(session.player_position, session.tile_degrees)
        target = CellCoord(here.i + di, here.j + dj)
        if target not in session.world.registry:
            return f"No cell at {target.key}"
        result = session.interact(target)
        if result.rejected:
            return f"Cell {target.key} is out of reach"
        return render_map(session)

    if command == "geo":
        if args not in (["on"], ["off"]):
            return "Usage: geo on|off"
        enabled = args[0] == "on"
        if not session.set_geolocation(enabled):
            return "Geolocation needs a position source (start with --route)"
        return "Geolocation on" if enabled else "Directional buttons on"

    if command == "reset":
        session.reset()
        return render_map(session)

    return f"Unknown command {command!r}. Type 'help'."


def render_map(session: GameSession) -> str:
    renderer = session.renderer
    text = renderer.render() if isinstance(renderer, TextMapRenderer) else session.status_text()
    if isinstance(renderer, TextMapRenderer) and renderer.notifications:
        banner = "\n".join(colored(note, Color.GREEN, bold=True) for note in renderer.notifications)
        renderer.notifications.clear()
        text = f"{text}\n{banner}"
    return text


async def play(session: GameSession) -> None:
    await session.start()
    print(render_map(session))
    try:
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            output = run_command(session, line)
            if output is QUIT:
                break
            if output:
                print(output)
    finally:
        session.close()


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    if args.no_color:
        os.environ["GEOTOKENS_NO_COLOR"] = "1"
    Config.validate()

    store: KeyValueStore = (
        InMemoryKeyValueStore() if args.memory else JsonFileKeyValueStore(args.storage_dir)
    )
    source = load_route(args.route, args.interval) if args.route else None
    session = GameSession(TextMapRenderer(), persistence=store, position_source=source)

    try:
        asyncio.run(play(session))
    except KeyboardInterrupt:
        print()


if __name__ == "__main__":
    main()
