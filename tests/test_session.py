"""Tests for the game session: startup, movement, interaction, persistence."""

import asyncio
import json

import pytest

from geotokens.grid import CellCoord, ContentOracle, GeometryCache
from geotokens.movement import ButtonMovement, GeolocationMovement
from geotokens.overrides import Override
from geotokens.persistence import InMemoryKeyValueStore
from geotokens.positioning import PositionSource, ScriptedPositionSource
from geotokens.render import TextMapRenderer
from geotokens.schemas import LatLng
from geotokens.session import GameSession

SPAWN = LatLng(lat=0.5, lng=0.5)


class BrokenDeviceSource(PositionSource):
    """Source whose device fails with ordinary OS-level errors."""

    async def current_position(self) -> LatLng:
        raise TimeoutError("gps timed out")

    async def watch(self):
        yield LatLng(lat=3.5, lng=2.5)
        raise OSError("device unplugged")


def make_session(*tokens: CellCoord, store=None, source=None, win_value=16):
    keys = {c.key for c in tokens}
    renderer = TextMapRenderer(SPAWN, view_radius=1, tile_degrees=1.0)
    session = GameSession(
        renderer,
        persistence=store if store is not None else InMemoryKeyValueStore(),
        position_source=source,
        oracle=ContentOracle(0.5, luck_fn=lambda key: 0.0 if key in keys else 0.9),
        geometry=GeometryCache(1.0),
        spawn_point=SPAWN,
        tile_degrees=1.0,
        margin=0,
        interaction_radius=1,
        win_value=win_value,
        debug=False,
    )
    return session, renderer


@pytest.mark.asyncio
async def test_start_spawns_cells_around_player():
    session, renderer = make_session(CellCoord(0, 0))
    await session.start()

    assert isinstance(session.movement, ButtonMovement)
    assert session.player_position == SPAWN
    assert renderer.player == SPAWN
    assert len(session.world.registry) == 9
    assert session.world.registry.get(CellCoord(0, 0)).token == 1
    assert renderer.status == "Your hands are empty"

    with pytest.raises(RuntimeError):
        await session.start()
    session.close()


@pytest.mark.asyncio
async def test_step_moves_one_cell_and_reconciles():
    store = InMemoryKeyValueStore()
    session, renderer = make_session(store=store)
    await session.start()

    assert session.step("north") is True

    assert session.player_position == LatLng(lat=1.5, lng=0.5)
    assert json.loads(store.raw["player_position"]) == {"lat": 1.5, "lng": 0.5}
    assert CellCoord(2, 0) in session.world.registry
    assert CellCoord(-1, 0) not in session.world.registry

    with pytest.raises(ValueError):
        session.step("up")
    session.close()


@pytest.mark.asyncio
async def test_click_take_updates_inventory_and_status():
    store = InMemoryKeyValueStore()
    session, renderer = make_session(CellCoord(0, 0), store=store)
    await session.start()

    assert renderer.click(CellCoord(0, 0)) is True

    assert session.inventory == 1
    assert json.loads(store.raw["inventory"]) == 1
    assert session.overrides.restore("0,0") == Override.value(0)
    assert renderer.status == "Picked up a token worth 1. Holding a token worth 1"
    session.close()


@pytest.mark.asyncio
async def test_saved_game_is_restored_on_next_start():
    store = InMemoryKeyValueStore()
    first, _ = make_session(CellCoord(0, 0), store=store)
    await first.start()
    first.interact(CellCoord(0, 0))
    first.step("east")
    first.close()

    second, renderer = make_session(CellCoord(0, 0), store=store)
    await second.start()

    assert second.inventory == 1
    assert second.player_position == LatLng(lat=0.5, lng=1.5)
    # The emptied cell comes back empty instead of regenerating its token
    assert second.world.registry.get(CellCoord(0, 0)).token == 0
    assert renderer.status == "Holding a token worth 1"
    second.close()


@pytest.mark.asyncio
async def test_out_of_reach_click_changes_nothing():
    store = InMemoryKeyValueStore()
    session, _ = make_session(CellCoord(1, 1), store=store)
    await session.start()

    result = session.interact(CellCoord(1, 1))

    assert result.rejected is True
    assert session.inventory == 0
    assert "inventory" not in store.raw
    assert session.world.registry.get(CellCoord(1, 1)).token == 1
    session.close()


@pytest.mark.asyncio
async def test_win_is_acknowledged_once():
    session, renderer = make_session(CellCoord(0, 0), CellCoord(1, 0), win_value=2)
    await session.start()

    session.interact(CellCoord(0, 0))   # take 1
    result = session.interact(CellCoord(1, 0))   # craft 1 + 1 = 2
    assert result.exchange.won is True
    session.interact(CellCoord(1, 0))   # pick the winning token up again

    assert session.inventory == 2
    assert renderer.notifications == ["You made a token worth 2. You win!"]
    session.close()


@pytest.mark.asyncio
async def test_reset_starts_a_new_game():
    store = InMemoryKeyValueStore()
    session, renderer = make_session(CellCoord(0, 0), store=store)
    await session.start()
    session.interact(CellCoord(0, 0))
    session.step("north")

    session.reset()

    assert session.inventory == 0
    assert len(session.overrides) == 0
    assert json.loads(store.raw["overrides"]) == []
    assert session.player_position == SPAWN
    assert session.world.registry.get(CellCoord(0, 0)).token == 1
    assert renderer.status == "Your hands are empty"
    session.close()


@pytest.mark.asyncio
async def test_geolocation_mode_follows_position_stream():
    store = InMemoryKeyValueStore()
    store.save("use_geolocation", True)
    source = ScriptedPositionSource(
        [LatLng(lat=5.5, lng=5.5), LatLng(lat=6.5, lng=5.5)],
        current=LatLng(lat=4.5, lng=5.5),
    )
    session, renderer = make_session(store=store, source=source)

    await session.start()
    assert isinstance(session.movement, GeolocationMovement)
    assert CellCoord(4, 5) in session.world.registry

    await session.movement.task

    assert session.player_position == LatLng(lat=6.5, lng=5.5)
    assert CellCoord(7, 5) in session.world.registry
    assert CellCoord(3, 5) not in session.world.registry
    assert session.step("north") is False
    session.close()


@pytest.mark.asyncio
async def test_position_source_failures_are_not_fatal(capsys):
    store = InMemoryKeyValueStore()
    store.save("use_geolocation", True)
    store.save("player_position", {"lat": 2.5, "lng": 2.5})
    source = ScriptedPositionSource([LatLng(lat=3.5, lng=2.5), LatLng(lat=9.5, lng=9.5)], fail_after=1)
    source.current = None

    session, _ = make_session(store=store, source=source)
    await session.start()
    assert session.player_position == LatLng(lat=2.5, lng=2.5)

    await session.movement.task

    assert session.player_position == LatLng(lat=3.5, lng=2.5)
    output = capsys.readouterr().out
    assert "Could not get current position" in output
    assert "Position source failed" in output
    session.close()


@pytest.mark.asyncio
async def test_switching_modes_tears_down_previous_strategy():
    store = InMemoryKeyValueStore()
    source = ScriptedPositionSource([LatLng(lat=8.5, lng=8.5)], interval=30)
    session, _ = make_session(store=store, source=source)
    await session.start()

    assert session.set_geolocation(True) is True
    geo = session.movement
    task = geo.task
    assert json.loads(store.raw["use_geolocation"]) is True

    assert session.set_geolocation(False) is True
    assert geo.enabled is False
    with pytest.raises(asyncio.CancelledError):
        await task

    assert isinstance(session.movement, ButtonMovement)
    assert session.player_position == SPAWN
    assert json.loads(store.raw["use_geolocation"]) is False
    session.close()


@pytest.mark.asyncio
async def test_geolocation_requires_a_source():
    session, _ = make_session()
    await session.start()

    assert session.set_geolocation(True) is False
    assert isinstance(session.movement, ButtonMovement)
    session.close()


@pytest.mark.asyncio
async def test_bad_saved_data_falls_back_to_defaults():
    store = InMemoryKeyValueStore()
    store.save("inventory", -3)
    store.save("player_position", "somewhere")
    store.save("use_geolocation", "yes")
    store.save("overrides", {"0,0": 1})
    store.raw["overrides"] = "{broken"

    session, _ = make_session(store=store)
    await session.start()

    assert session.inventory == 0
    assert session.player_position == SPAWN
    assert session.use_geolocation is False
    assert len(session.overrides) == 0
    session.close()


@pytest.mark.asyncio
async def test_export_state_snapshot():
    session, _ = make_session(CellCoord(0, 0))
    await session.start()
    session.interact(CellCoord(0, 0))

    saved = session.export_state()

    assert saved.inventory == 1
    assert saved.player_position == SPAWN
    assert [(r.key, r.token) for r in saved.overrides] == [("0,0", 0)]
    assert saved.use_geolocation is False
    session.close()


@pytest.mark.asyncio
async def test_injected_empty_geometry_cache_is_used():
    cache = GeometryCache(1.0)
    store = InMemoryKeyValueStore()
    renderer = TextMapRenderer(SPAWN, view_radius=1, tile_degrees=1.0)
    session = GameSession(
        renderer, persistence=store, geometry=cache, spawn_point=SPAWN, tile_degrees=1.0, margin=0
    )

    assert session.world.geometry is cache
    assert session.persistence is store

    await session.start()

    assert len(cache) == 9
    session.close()


@pytest.mark.asyncio
async def test_unexpected_position_errors_are_not_fatal(capsys):
    store = InMemoryKeyValueStore()
    store.save("use_geolocation", True)
    store.save("player_position", {"lat": 2.5, "lng": 2.5})

    session, _ = make_session(store=store, source=BrokenDeviceSource())
    await session.start()
    assert session.started is True
    assert session.player_position == LatLng(lat=2.5, lng=2.5)

    task = session.movement.task
    await task

    assert task.done()
    assert session.player_position == LatLng(lat=3.5, lng=2.5)
    output = capsys.readouterr().out
    assert "gps timed out" in output
    assert "device unplugged" in output
    session.close()


@pytest.mark.asyncio
async def test_win_notice_is_not_repeated_after_restart():
    store = InMemoryKeyValueStore()
    first, renderer = make_session(CellCoord(0, 0), CellCoord(1, 0), store=store, win_value=2)
    await first.start()
    first.interact(CellCoord(0, 0))
    first.interact(CellCoord(1, 0))
    assert renderer.notifications == ["You made a token worth 2. You win!"]
    assert json.loads(store.raw["win_announced"]) is True
    first.close()

    second, renderer = make_session(CellCoord(0, 0), CellCoord(1, 0), store=store, win_value=2)
    await second.start()
    result = second.interact(CellCoord(1, 0))   # pick up the winning token

    assert result.exchange.won is True
    assert renderer.notifications == []
    assert second.export_state().win_announced is True

    second.reset()

    assert json.loads(store.raw["win_announced"]) is False
    assert second.export_state().win_announced is False
    second.close()
