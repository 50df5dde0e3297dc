"""
Active cell registry and world driver.

The world is infinite, so cells are only materialized near the viewport.
On every viewport or player move the driver reconciles the live registry with
the desired set of coordinates:

1. Spawn desired cells that are not active yet. The starting token comes from
   the override store when the player has changed the cell before, otherwise
   from the content oracle. Cells with a DELETED override never spawn.
2. Destroy active cells that are no longer desired or have been deleted,
   unbinding everything.
3. Refresh reachability, style and label of every active cell from its
   current token and the player position.

Only deltas from the oracle default are ever persisted (via the override
store); active cells themselves are throwaway.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set

from .config import Config
from .exchange import ExchangeOutcome, ExchangeResult, exchange
from .grid.coords import CellCoord, cell_distance, cells_in_bounds
from .grid.geometry import GeometryCache
from .grid.oracle import ContentOracle
from .logging_utils import log_world
from .overrides import OverrideStore
from .render import CellView, MapRenderer
from .schemas import CellBounds, LatLng

# Called by a cell's click handler; the session routes it to handle_interaction
InteractionCallback = Callable[[CellCoord], None]


@dataclass
class ActiveCell:
    """A materialized cell: coordinate, rendered view and live token."""

    coord: CellCoord
    bounds: CellBounds
    view: CellView
    token: int
    reachable: bool = False


class CellRegistry:
    """Live set of active cells keyed by coordinate."""

    def __init__(self) -> None:
        self._cells: Dict[CellCoord, ActiveCell] = {}

    def add(self, cell: ActiveCell) -> None:
        if cell.coord in self._cells:
            raise ValueError(f"Cell {cell.coord} is already active")
        self._cells[cell.coord] = cell

    def get(self, coord: CellCoord) -> Optional[ActiveCell]:
        return self._cells.get(coord)

    def remove(self, coord: CellCoord) -> Optional[ActiveCell]:
        """Remove and return the cell. Removing an absent cell is a no-op."""
        return self._cells.pop(coord, None)

    def coords(self) -> Set[CellCoord]:
        return set(self._cells)

    def __iter__(self) -> Iterator[ActiveCell]:
        return iter(list(self._cells.values()))

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, coord: object) -> bool:
        return coord in self._cells


@dataclass
class ReconcileReport:
    spawned: List[CellCoord] = field(default_factory=list)
    destroyed: List[CellCoord] = field(default_factory=list)
    skipped_deleted: List[CellCoord] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.spawned or self.destroyed)


@dataclass(frozen=True)
class InteractionResult:
    """What happened when the player clicked a cell.

    ``rejected`` is True when the click was ignored outright (cell not active,
    out of reach or deleted); ``exchange`` is None in that case.
    """

    coord: CellCoord
    rejected: bool
    exchange: Optional[ExchangeResult] = None

    @property
    def inventory_changed(self) -> bool:
        return self.exchange is not None and self.exchange.outcome in (
            ExchangeOutcome.TAKE,
            ExchangeOutcome.DROP,
            ExchangeOutcome.CRAFT,
        )


def describe_cell(cell: ActiveCell) -> str:
    """Label text for a cell, derived only from its current state."""
    text = f"Cell {cell.coord.key}: token {cell.token}" if cell.token else f"Cell {cell.coord.key}: empty"
    if not cell.reachable:
        text += " (out of reach)"
    return text


class WorldDriver:
    """Keeps the active cell registry in sync with the viewport and player."""

    def __init__(
        self,
        renderer: MapRenderer,
        overrides: OverrideStore,
        *,
        geometry: Optional[GeometryCache] = None,
        oracle: Optional[ContentOracle] = None,
        tile_degrees: Optional[float] = None,
        margin: Optional[int] = None,
        interaction_radius: Optional[float] = None,
        win_value: Optional[int] = None,
        on_click: Optional[InteractionCallback] = None,
        debug: Optional[bool] = None,
    ):
        self.renderer = renderer
        self.overrides = overrides
        self.tile_degrees = tile_degrees or Config.TILE_DEGREES
        self.geometry = geometry if geometry is not None else GeometryCache(self.tile_degrees)
        self.oracle = oracle if oracle is not None else ContentOracle()
        self.margin = Config.NEIGHBORHOOD_MARGIN if margin is None else margin
        self.interaction_radius = (
            Config.INTERACTION_RADIUS if interaction_radius is None else interaction_radius
        )
        self.win_value = win_value or Config.WIN_VALUE
        self.on_click = on_click
        self.debug = Config.DEBUG_WORLD if debug is None else debug
        self.registry = CellRegistry()
        self.player_position: Optional[LatLng] = None

    # ------------------------------------------------------------------
    # Desired set
    # ------------------------------------------------------------------

    def desired_cells(self, bounds: CellBounds) -> Set[CellCoord]:
        """Every cell overlapping ``bounds`` plus the margin ring."""
        return cells_in_bounds(bounds, self.tile_degrees, margin=self.margin)

    def is_reachable(self, cell: ActiveCell, player: Optional[LatLng] = None) -> bool:
        player = player or self.player_position
        if player is None:
            return False
        reach = self.interaction_radius * self.tile_degrees
        return cell_distance(cell.bounds.center, player) <= reach

    # ------------------------------------------------------------------
    # Reconcile
    # ------------------------------------------------------------------

    def reconcile(self, desired: Iterable[CellCoord], player: LatLng) -> ReconcileReport:
        """Spawn, destroy and refresh cells so the registry matches ``desired``."""
        desired = set(desired)
        self.player_position = player
        report = ReconcileReport()

        # Sorted so spawn order (and logs) are reproducible
        for coord in sorted(desired - self.registry.coords()):
            if self._spawn(coord):
                report.spawned.append(coord)
            else:
                report.skipped_deleted.append(coord)

        # Cells deleted while on screen go too, not just cells scrolled away
        deleted = {c for c in self.registry.coords() if self.overrides.restore(c).is_deleted}
        for coord in sorted((self.registry.coords() - desired) | deleted):
            self.destroy(coord)
            report.destroyed.append(coord)

        for cell in self.registry:
            self._refresh(cell)

        if self.debug and report.changed:
            log_world(
                f"Reconciled: +{len(report.spawned)} -{len(report.destroyed)} "
                f"(active={len(self.registry)}, deleted skipped={len(report.skipped_deleted)})"
            )
        return report

    def _spawn(self, coord: CellCoord) -> bool:
        override = self.overrides.restore(coord)
        if override.is_deleted:
            return False

        token = override.token if override.has_value else self.oracle.initial_value(coord)
        view = self.geometry.rectangle_for(coord, self.renderer)
        cell = ActiveCell(coord=coord, bounds=self.geometry.bounds_for(coord), view=view, token=token)
        view.bind_click(lambda: self._clicked(coord))
        self.registry.add(cell)
        return True

    def _clicked(self, coord: CellCoord) -> None:
        if self.on_click is not None:
            self.on_click(coord)

    def destroy(self, coord: CellCoord) -> None:
        """Tear down a cell completely. Destroying an absent cell is a no-op."""
        cell = self.registry.remove(coord)
        if cell is None:
            return
        cell.view.clear_label()
        cell.view.unbind_click()
        cell.view.remove()

    def clear(self) -> None:
        """Destroy every active cell."""
        for coord in sorted(self.registry.coords()):
            self.destroy(coord)

    def _refresh(self, cell: ActiveCell) -> None:
        cell.reachable = self.is_reachable(cell)
        cell.view.set_style(reachable=cell.reachable, token=cell.token)
        cell.view.set_label(describe_cell(cell))

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    def handle_interaction(self, coord: CellCoord, inventory: int) -> InteractionResult:
        """Apply a click on ``coord`` by a player holding ``inventory``.

        Clicks on inactive, out-of-reach or deleted cells are ignored. Otherwise the
        exchange result is applied to the cell, written through the override
        store when the cell's token changed, and the cell is restyled. The
        caller owns the inventory and must apply ``result.exchange.inventory``.
        """
        cell = self.registry.get(coord)
        if cell is None or not self.is_reachable(cell):
            return InteractionResult(coord=coord, rejected=True)
        if self.overrides.restore(coord).is_deleted:
            self.destroy(coord)
            return InteractionResult(coord=coord, rejected=True)

        before = cell.token
        result = exchange(before, inventory, self.win_value)
        if result.cell != before:
            cell.token = result.cell
            # An emptied cell stays revisitable: store VALUE(0), never DELETED
            self.overrides.save(coord, result.cell)
        self._refresh(cell)
        return InteractionResult(coord=coord, rejected=False, exchange=result)
