"""Deterministic default content for grid cells."""

from __future__ import annotations

from typing import Callable, Optional

from ..config import Config
from ..luck import luck
from .coords import CellCoord


class ContentOracle:
    """Decides what a cell holds before the player ever touches it.

    The answer depends only on the cell key, so it can be recomputed any number
    of times instead of being stored. Overrides take precedence; the oracle is
    only consulted when a cell has no override.
    """

    def __init__(
        self,
        spawn_probability: Optional[float] = None,
        *,
        luck_fn: Callable[[str], float] = luck,
    ):
        if spawn_probability is None:
            spawn_probability = Config.CACHE_SPAWN_PROBABILITY
        if not 0.0 <= spawn_probability <= 1.0:
            raise ValueError(f"spawn_probability must be in [0, 1], got {spawn_probability}")
        self.spawn_probability = spawn_probability
        self._luck = luck_fn

    def initial_value(self, coord: CellCoord) -> int:
        """Return 1 if the cell starts with a token, else 0."""
        return 1 if self._luck(coord.key) < self.spawn_probability else 0
