"""Flyweight cache for cell geometry."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional

from ..config import Config
from ..schemas import CellBounds
from .coords import CellCoord

if TYPE_CHECKING:  # pragma: no cover
    from ..render import CellView, MapRenderer


class GeometryCache:
    """Memoizes the bounds of every cell ever materialized.

    Cells enter and leave the active set constantly as the player walks. The
    bounds for a coordinate never change, so they are computed once and the
    same frozen ``CellBounds`` instance is shared by every later spawn. There
    is no eviction: entries are small and the set of visited cells stays sparse.
    """

    def __init__(self, tile_degrees: Optional[float] = None):
        self.tile_degrees = tile_degrees or Config.TILE_DEGREES
        self._bounds: Dict[CellCoord, CellBounds] = {}
        # Number of bounds actually computed (cache misses)
        self.computations = 0

    def bounds_for(self, coord: CellCoord) -> CellBounds:
        bounds = self._bounds.get(coord)
        if bounds is None:
            tile = self.tile_degrees
            bounds = CellBounds(
                south=coord.i * tile,
                west=coord.j * tile,
                north=(coord.i + 1) * tile,
                east=(coord.j + 1) * tile,
            )
            self._bounds[coord] = bounds
            self.computations += 1
        return bounds

    def rectangle_for(self, coord: CellCoord, renderer: "MapRenderer") -> "CellView":
        """Draw the cached bounds for ``coord`` on ``renderer``."""
        return renderer.draw_cell(coord, self.bounds_for(coord))

    def __len__(self) -> int:
        return len(self._bounds)

    def __contains__(self, coord: object) -> bool:
        return coord in self._bounds
