"""Grid primitives: coordinates, default content and cached geometry."""

from .coords import CellCoord, cell_for, cells_in_bounds, cell_distance
from .geometry import GeometryCache
from .oracle import ContentOracle

__all__ = [
    "CellCoord",
    "cell_for",
    "cells_in_bounds",
    "cell_distance",
    "GeometryCache",
    "ContentOracle",
]
