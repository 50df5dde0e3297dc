"""
Scripted walk

Replays a short geolocation route from the default spawn point, picking up
and crafting every reachable token along the way, then prints the map.
Nothing is written to disk.

Run: python examples/scripted_walk/run.py [--steps 12]
"""

import argparse
import asyncio

from geotokens import (
    Config,
    GameSession,
    InMemoryKeyValueStore,
    LatLng,
    ScriptedPositionSource,
    TextMapRenderer,
)


def build_route(steps: int) -> list[LatLng]:
    start = LatLng(lat=Config.SPAWN_LAT, lng=Config.SPAWN_LNG)
    tile = Config.TILE_DEGREES
    # Walk east, then north, one cell per update
    route = [start.offset(0, k * tile) for k in range(1, steps + 1)]
    corner = route[-1] if route else start
    route += [corner.offset(k * tile, 0) for k in range(1, steps + 1)]
    return route


def collect_nearby(session: GameSession) -> None:
    """Click every reachable cell whose exchange would do something useful."""
    for cell in session.world.registry:
        if not cell.reachable or cell.token == 0:
            continue
        if session.inventory in (0, cell.token):
            session.interact(cell.coord)


async def main(steps: int) -> None:
    source = ScriptedPositionSource(build_route(steps), interval=0)
    renderer = TextMapRenderer()
    session = GameSession(renderer, persistence=InMemoryKeyValueStore(), position_source=source)

    await session.start()
    session.set_geolocation(True)
    renderer.on_bounds_changed(lambda _bounds: collect_nearby(session))
    await session.movement.task

    print(renderer.render())
    for note in renderer.notifications:
        print(note)
    session.close()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay a scripted walk")
    parser.add_argument("--steps", type=int, default=12, help="Cells to walk per leg")
    return parser.parse_args()


if __name__ == "__main__":
    asyncio.run(main(parse_args().steps))
