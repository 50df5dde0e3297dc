"""Cell coordinates and the mapping between geographic points and cells.

The world is an infinite grid anchored at Null Island (0, 0). Cell ``(i, j)``
covers latitudes ``[i * tile, (i + 1) * tile)`` and longitudes
``[j * tile, (j + 1) * tile)``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Set

from ..schemas import CellBounds, LatLng


@dataclass(frozen=True, order=True)
class CellCoord:
    """Integer address of a grid cell."""

    i: int
    j: int

    @property
    def key(self) -> str:
        """Canonical string key, used for override lookups and luck hashing."""
        return f"{self.i},{self.j}"

    @classmethod
    def from_key(cls, key: str) -> "CellCoord":
        parts = key.split(",")
        if len(parts) != 2:
            raise ValueError(f"Malformed cell key: {key!r}")
        try:
            return cls(int(parts[0]), int(parts[1]))
        except ValueError as exc:
            raise ValueError(f"Malformed cell key: {key!r}") from exc

    def __str__(self) -> str:
        return self.key


def cell_for(point: LatLng, tile_degrees: float) -> CellCoord:
    """Return the cell containing ``point``."""
    # Small epsilon keeps points sitting exactly on a boundary from flickering
    # between cells due to float division error (e.g. 0.3 / 0.1 = 2.9999...).
    i = math.floor(point.lat / tile_degrees + 1e-9)
    j = math.floor(point.lng / tile_degrees + 1e-9)
    return CellCoord(i, j)


def cells_in_bounds(bounds: CellBounds, tile_degrees: float, *, margin: int = 0) -> Set[CellCoord]:
    """Return every cell overlapping ``bounds``, expanded by ``margin`` cells per side."""

    margin = max(int(margin), 0)
    south_west = cell_for(LatLng(lat=bounds.south, lng=bounds.west), tile_degrees)
    north_east = cell_for(LatLng(lat=bounds.north, lng=bounds.east), tile_degrees)

    return {
        CellCoord(i, j)
        for i in range(south_west.i - margin, north_east.i + margin + 1)
        for j in range(south_west.j - margin, north_east.j + margin + 1)
    }


def cell_distance(a: LatLng, b: LatLng) -> float:
    """Straight-line distance between two points, in degrees."""
    return math.hypot(a.lat - b.lat, a.lng - b.lng)
