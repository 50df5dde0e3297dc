"""
Movement strategies.

The player moves either by real-world position updates (geolocation) or by
the four on-screen directional buttons. Exactly one strategy is active at a
time; the session disables the old one before enabling the new one, so a
geolocation stream never keeps moving the player after switching to buttons.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from .logging_utils import log_error, log_info
from .positioning import PositionSource

if TYPE_CHECKING:  # pragma: no cover
    from .session import GameSession


# Unit steps in (dlat, dlng) cell units
DIRECTIONS: Dict[str, Tuple[int, int]] = {
    "north": (1, 0),
    "south": (-1, 0),
    "east": (0, 1),
    "west": (0, -1),
}


class MovementController(ABC):
    """Capability that moves the player while enabled."""

    def __init__(self) -> None:
        self.session: Optional["GameSession"] = None

    @property
    def enabled(self) -> bool:
        return self.session is not None

    def enable(self, session: "GameSession") -> None:
        if self.session is not None:
            raise RuntimeError(f"{type(self).__name__} is already enabled")
        self.session = session
        self._on_enable()

    def disable(self) -> None:
        """Tear down subscriptions. Safe to call when already disabled."""
        if self.session is None:
            return
        self._on_disable()
        self.session = None

    @abstractmethod
    def _on_enable(self) -> None:
        pass

    @abstractmethod
    def _on_disable(self) -> None:
        pass


class ButtonMovement(MovementController):
    """Moves the player one cell per directional button press."""

    def _on_enable(self) -> None:
        log_info("Movement: directional buttons")

    def _on_disable(self) -> None:
        pass

    def step(self, direction: str) -> bool:
        """Move one cell in ``direction``. Returns False when disabled."""
        if direction not in DIRECTIONS:
            raise ValueError(
                f"Unknown direction {direction!r}; expected one of {', '.join(DIRECTIONS)}"
            )
        if self.session is None:
            return False
        dlat, dlng = DIRECTIONS[direction]
        tile = self.session.tile_degrees
        position = self.session.player_position
        self.session.move_player(position.offset(dlat * tile, dlng * tile))
        return True


class GeolocationMovement(MovementController):
    """Follows the position source's update stream.

    Enabling schedules a task on the running event loop that forwards every
    update to ``session.move_player``. Stream failures are logged and the
    player stays at the last known position.
    """

    def __init__(self, source: PositionSource):
        super().__init__()
        self.source = source
        self.task: Optional[asyncio.Task] = None

    def _on_enable(self) -> None:
        log_info("Movement: geolocation")
        self.task = asyncio.get_running_loop().create_task(self._follow())

    def _on_disable(self) -> None:
        if self.task is not None:
            self.task.cancel()
            self.task = None

    async def _follow(self) -> None:
        try:
            async for position in self.source.watch():
                # Stale updates may still arrive after a switch; ignore them.
                if self.session is None:
                    return
                self.session.move_player(position)
        except Exception as exc:
            # Any source failure (no fix, timeout, device error) degrades to the last position
            log_error(f"Position source failed, keeping last known position: {exc}")
