"""Position source collaborator.

A position source supplies the player's real-world location: a one-shot
``current_position()`` used once at startup, and ``watch()``, an unbounded
stream of updates that the geolocation movement mode consumes. Sources may
fail at any time; callers log the failure and keep the last known position.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import AsyncIterator, Iterable, List, Optional

from .schemas import LatLng


class PositionUnavailableError(Exception):
    """Raised when a position source cannot produce a position."""


class PositionSource(ABC):
    """Abstract provider of player positions."""

    @abstractmethod
    async def current_position(self) -> LatLng:
        """Return the current position once.

        Raises:
            PositionUnavailableError: If no fix can be obtained
        """

    @abstractmethod
    def watch(self) -> AsyncIterator[LatLng]:
        """Return an async iterator of position updates.

        The stream is lazy, potentially unbounded and not restartable: call
        ``watch()`` again to subscribe anew. It may raise
        ``PositionUnavailableError`` mid-stream.
        """


class ScriptedPositionSource(PositionSource):
    """Replays a fixed list of positions (tests, demos, offline play).

    Args:
        positions: Positions yielded by ``watch()`` in order
        current: Answer for ``current_position()``; defaults to the first scripted
            position. If neither exists, ``current_position()`` fails.
        interval: Delay in seconds before each streamed update
        fail_after: If set, ``watch()`` raises PositionUnavailableError after
            yielding this many updates
    """

    def __init__(
        self,
        positions: Iterable[LatLng] = (),
        *,
        current: Optional[LatLng] = None,
        interval: float = 0.0,
        fail_after: Optional[int] = None,
    ):
        self.positions: List[LatLng] = list(positions)
        self.current = current if current is not None else (self.positions[0] if self.positions else None)
        self.interval = interval
        self.fail_after = fail_after

    async def current_position(self) -> LatLng:
        if self.current is None:
            raise PositionUnavailableError("No position fix available")
        return self.current

    async def watch(self) -> AsyncIterator[LatLng]:
        for count, position in enumerate(self.positions):
            if self.fail_after is not None and count >= self.fail_after:
                raise PositionUnavailableError(f"Position stream lost after {count} updates")
            await asyncio.sleep(self.interval)
            self.current = position
            yield position
        if self.fail_after is not None and len(self.positions) >= self.fail_after:
            raise PositionUnavailableError(
                f"Position stream lost after {len(self.positions)} updates"
            )
