"""
Game session: the single owner of all mutable game state.

The session wires the collaborators together and is the only place state
changes:
- player inventory (one token, 0 = empty)
- player position and movement mode
- the override store and, through the world driver, the active cells

Every change that affects persisted state is written through to the key/value
store immediately, so a game can be closed at any point and resumed.

Usage:
    renderer = TextMapRenderer()
    session = GameSession(renderer, persistence=JsonFileKeyValueStore())
    await session.start()
    session.step("north")
    session.interact(CellCoord(574766, -42252))
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError

from .config import Config
from .grid.coords import CellCoord
from .grid.geometry import GeometryCache
from .grid.oracle import ContentOracle
from .logging_utils import log_error, log_info, log_player, log_success
from .movement import ButtonMovement, GeolocationMovement, MovementController
from .overrides import OverrideStore
from .persistence import InMemoryKeyValueStore, KeyValueStore
from .positioning import PositionSource
from .render import MapRenderer
from .schemas import CellBounds, LatLng, SavedGame
from .world import InteractionResult, ReconcileReport, WorldDriver

OVERRIDES_KEY = "overrides"
INVENTORY_KEY = "inventory"
POSITION_KEY = "player_position"
MOVEMENT_MODE_KEY = "use_geolocation"
WIN_KEY = "win_announced"


class GameSession:
    """Top-level game object.

    All dependencies are injected; only the renderer is required. Without a
    persistence backend the game is kept in memory. Without a position source
    only button movement is available.
    """

    def __init__(
        self,
        renderer: MapRenderer,
        *,
        persistence: Optional[KeyValueStore] = None,
        position_source: Optional[PositionSource] = None,
        oracle: Optional[ContentOracle] = None,
        geometry: Optional[GeometryCache] = None,
        spawn_point: Optional[LatLng] = None,
        tile_degrees: Optional[float] = None,
        margin: Optional[int] = None,
        interaction_radius: Optional[float] = None,
        win_value: Optional[int] = None,
        debug: Optional[bool] = None,
    ):
        self.renderer = renderer
        self.persistence = persistence if persistence is not None else InMemoryKeyValueStore()
        self.position_source = position_source
        self.spawn_point = spawn_point or LatLng(lat=Config.SPAWN_LAT, lng=Config.SPAWN_LNG)
        self.win_value = win_value or Config.WIN_VALUE

        self.overrides = OverrideStore(self.persistence, storage_key=OVERRIDES_KEY)
        self.world = WorldDriver(
            renderer,
            self.overrides,
            geometry=geometry,
            oracle=oracle,
            tile_degrees=tile_degrees,
            margin=margin,
            interaction_radius=interaction_radius,
            win_value=self.win_value,
            on_click=self.interact,
            debug=debug,
        )

        self.inventory = 0
        self.player_position = self.spawn_point
        self.use_geolocation = False
        self.movement: Optional[MovementController] = None
        self.started = False
        self._win_announced = False

    @property
    def tile_degrees(self) -> float:
        return self.world.tile_degrees

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Load saved state, find the player, draw the first set of cells.

        The only await in the game: when geolocation is on, wait once for the
        current position before any cell is spawned. A failure keeps the saved
        (or spawn) position.
        """
        if self.started:
            raise RuntimeError("Session already started")

        self._load()

        if self.use_geolocation and self.position_source is None:
            log_error("Geolocation mode saved but no position source available; using buttons")
            self.use_geolocation = False

        if self.use_geolocation:
            try:
                self.player_position = await self.position_source.current_position()
                self.persistence.save(POSITION_KEY, self.player_position.model_dump(mode="json"))
            except Exception as exc:
                log_error(f"Could not get current position, using last known: {exc}")

        self.started = True
        self.renderer.set_player_marker(self.player_position)
        self.renderer.move_to(self.player_position)
        self.renderer.on_bounds_changed(self._on_bounds_changed)
        self.refresh()
        self.renderer.set_status(self.status_text())
        self._activate_movement(self.use_geolocation)
        log_info(f"Game started at {self.player_position.lat:.6f}, {self.player_position.lng:.6f}")

    def close(self) -> None:
        """Stop movement subscriptions."""
        if self.movement is not None:
            self.movement.disable()
            self.movement = None

    def _load(self) -> None:
        records = self.persistence.load(OVERRIDES_KEY, [])
        if isinstance(records, list):
            self.overrides.load_all(records)
        else:
            log_error(f"Ignoring saved overrides of unexpected type {type(records).__name__}")

        self.inventory = self._load_inventory()

        raw_position = self.persistence.load(POSITION_KEY, None)
        if raw_position is not None:
            try:
                self.player_position = LatLng.model_validate(raw_position)
            except ValidationError as exc:
                log_error(f"Ignoring saved position: {exc}")

        mode = self.persistence.load(MOVEMENT_MODE_KEY, False)
        if isinstance(mode, bool):
            self.use_geolocation = mode
        else:
            log_error(f"Ignoring saved movement mode {mode!r}")

        announced = self.persistence.load(WIN_KEY, False)
        if isinstance(announced, bool):
            self._win_announced = announced
        else:
            log_error(f"Ignoring saved win flag {announced!r}")

    def _load_inventory(self) -> int:
        value: Any = self.persistence.load(INVENTORY_KEY, 0)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            log_error(f"Ignoring saved inventory {value!r}")
            return 0
        return value

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------

    def _activate_movement(self, use_geolocation: bool) -> None:
        # Tear down the previous strategy before the next one subscribes
        if self.movement is not None:
            self.movement.disable()
        if use_geolocation:
            self.movement = GeolocationMovement(self.position_source)
        else:
            self.movement = ButtonMovement()
        self.movement.enable(self)

    def set_geolocation(self, enabled: bool) -> bool:
        """Switch movement mode. Returns False if the switch is impossible.

        Must be called from a running event loop when enabling geolocation.
        """
        if enabled and self.position_source is None:
            log_error("No position source available; staying on directional buttons")
            return False
        self.use_geolocation = enabled
        self.persistence.save(MOVEMENT_MODE_KEY, enabled)
        if self.started:
            self._activate_movement(enabled)
        return True

    def step(self, direction: str) -> bool:
        """Handle a directional button. Ignored (returns False) in geolocation mode."""
        if not isinstance(self.movement, ButtonMovement):
            log_info("Directional buttons are disabled while geolocation is on")
            return False
        return self.movement.step(direction)

    def move_player(self, position: LatLng) -> None:
        """Move the player and recenter the map (which reconciles the cells)."""
        self.player_position = position
        self.persistence.save(POSITION_KEY, position.model_dump(mode="json"))
        self.renderer.set_player_marker(position)
        self.renderer.move_to(position)

    # ------------------------------------------------------------------
    # World
    # ------------------------------------------------------------------

    def _on_bounds_changed(self, bounds: CellBounds) -> None:
        self.world.reconcile(self.world.desired_cells(bounds), self.player_position)

    def refresh(self) -> ReconcileReport:
        """Reconcile against the renderer's current viewport."""
        bounds = self.renderer.visible_bounds()
        return self.world.reconcile(self.world.desired_cells(bounds), self.player_position)

    def interact(self, coord: CellCoord) -> InteractionResult:
        """Handle a click on a cell."""
        result = self.world.handle_interaction(coord, self.inventory)
        if result.rejected:
            return result

        outcome = result.exchange
        if outcome.inventory != self.inventory:
            self.inventory = outcome.inventory
            self.persistence.save(INVENTORY_KEY, self.inventory)

        message = outcome.describe()
        log_player(f"Cell {coord.key}: {message}")
        self.renderer.set_status(self.status_text(message))

        if outcome.won and not self._win_announced:
            self._win_announced = True
            self.persistence.save(WIN_KEY, True)
            log_success(f"Token worth {self.win_value} reached")
            self.renderer.notify(f"You made a token worth {self.win_value}. You win!")
        return result

    def status_text(self, message: Optional[str] = None) -> str:
        held = (
            f"Holding a token worth {self.inventory}" if self.inventory else "Your hands are empty"
        )
        return f"{message}. {held}" if message else held

    # ------------------------------------------------------------------
    # New game / export
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Start a new game: forget every override, empty the hand, return to spawn."""
        self.overrides.reset()
        self.inventory = 0
        self.persistence.save(INVENTORY_KEY, 0)
        self._win_announced = False
        self.persistence.save(WIN_KEY, False)
        # Cells must respawn from scratch, not keep their live tokens
        self.world.clear()
        self.move_player(self.spawn_point)
        self.renderer.set_status(self.status_text())
        log_info("New game")

    def export_state(self) -> SavedGame:
        return SavedGame(
            overrides=list(self.overrides.all()),
            inventory=self.inventory,
            player_position=self.player_position,
            use_geolocation=self.use_geolocation,
            win_announced=self._win_announced,
        )
