"""Viewport / render collaborator.

The game core never draws anything itself. It talks to a ``MapRenderer``
which owns the viewport and hands back a ``CellView`` for every rectangle it
draws. A browser map, a pygame window or a terminal can all sit behind this
interface.

``TextMapRenderer`` is the bundled headless implementation. It keeps the
viewport centred on a point and renders a small ASCII window, which is what
the CLI prints and what the tests inspect.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from .config import Config
from .grid.coords import CellCoord, cell_for
from .schemas import CellBounds, LatLng

ClickHandler = Callable[[], None]
BoundsListener = Callable[[CellBounds], None]


class CellView(ABC):
    """Rendered representation of one active cell."""

    @abstractmethod
    def set_style(self, *, reachable: bool, token: int) -> None:
        """Restyle the rectangle from current state (never from history)."""

    @abstractmethod
    def set_label(self, text: str) -> None:
        """Bind or replace the tooltip/popup text."""

    @abstractmethod
    def clear_label(self) -> None:
        """Unbind the tooltip/popup. Safe to call when none is bound."""

    @abstractmethod
    def bind_click(self, handler: ClickHandler) -> None:
        """Route clicks on this rectangle to ``handler`` (replaces any previous handler)."""

    @abstractmethod
    def unbind_click(self) -> None:
        """Stop routing clicks. Safe to call when no handler is bound."""

    @abstractmethod
    def remove(self) -> None:
        """Remove the rectangle from the map. Idempotent."""


class MapRenderer(ABC):
    """Map/viewport collaborator used by the world driver and the session."""

    @abstractmethod
    def visible_bounds(self) -> CellBounds:
        """Return the currently visible region."""

    @abstractmethod
    def move_to(self, center: LatLng) -> None:
        """Re-centre the viewport. Fires bounds-changed listeners."""

    @abstractmethod
    def on_bounds_changed(self, listener: BoundsListener) -> None:
        """Register ``listener`` to be called with the new bounds after every change."""

    @abstractmethod
    def draw_cell(self, coord: CellCoord, bounds: CellBounds) -> CellView:
        """Draw a rectangle for a cell and return its view handle."""

    @abstractmethod
    def set_player_marker(self, position: LatLng) -> None:
        """Move the player marker."""

    @abstractmethod
    def set_status(self, text: str) -> None:
        """Update the inventory/status panel."""

    @abstractmethod
    def notify(self, message: str) -> None:
        """Show a one-off acknowledgment to the user (e.g. the win message)."""


class TextCellView(CellView):
    """In-memory cell view used by ``TextMapRenderer``."""

    def __init__(self, renderer: "TextMapRenderer", coord: CellCoord, bounds: CellBounds):
        self._renderer = renderer
        self.coord = coord
        self.bounds = bounds
        self.reachable = False
        self.token = 0
        self.label: Optional[str] = None
        self.handler: Optional[ClickHandler] = None
        self.removed = False

    def set_style(self, *, reachable: bool, token: int) -> None:
        self.reachable = reachable
        self.token = token

    def set_label(self, text: str) -> None:
        self.label = text

    def clear_label(self) -> None:
        self.label = None

    def bind_click(self, handler: ClickHandler) -> None:
        self.handler = handler

    def unbind_click(self) -> None:
        self.handler = None

    def remove(self) -> None:
        if self.removed:
            return
        self.removed = True
        self._renderer._forget(self)

    def click(self) -> bool:
        """Simulate a click. Returns False if nothing was listening."""
        if self.handler is None:
            return False
        self.handler()
        return True

    def symbol(self) -> str:
        if self.token == 0:
            return " . "
        text = str(self.token) if self.token < 10 else "+"
        return f"[{text}]" if self.reachable else f" {text} "


class TextMapRenderer(MapRenderer):
    """Headless renderer drawing an ASCII window around the viewport centre.

    The viewport spans ``view_radius`` cells in every direction from its
    centre, so ``2 * view_radius + 1`` cells per side are visible.
    """

    def __init__(
        self,
        center: Optional[LatLng] = None,
        *,
        view_radius: Optional[int] = None,
        tile_degrees: Optional[float] = None,
    ):
        self.center = center or LatLng(lat=Config.SPAWN_LAT, lng=Config.SPAWN_LNG)
        self.view_radius = Config.VIEW_RADIUS if view_radius is None else max(int(view_radius), 0)
        self.tile_degrees = tile_degrees or Config.TILE_DEGREES
        self.player: Optional[LatLng] = None
        self.status = ""
        self.notifications: List[str] = []
        self.cells: Dict[CellCoord, TextCellView] = {}
        self._listeners: List[BoundsListener] = []

    def visible_bounds(self) -> CellBounds:
        half = self.view_radius * self.tile_degrees
        return CellBounds(
            south=self.center.lat - half,
            west=self.center.lng - half,
            north=self.center.lat + half,
            east=self.center.lng + half,
        )

    def move_to(self, center: LatLng) -> None:
        self.center = center
        bounds = self.visible_bounds()
        for listener in list(self._listeners):
            listener(bounds)

    def on_bounds_changed(self, listener: BoundsListener) -> None:
        self._listeners.append(listener)

    def draw_cell(self, coord: CellCoord, bounds: CellBounds) -> TextCellView:
        view = TextCellView(self, coord, bounds)
        self.cells[coord] = view
        return view

    def _forget(self, view: TextCellView) -> None:
        # Only drop the entry if it still points at this view
        if self.cells.get(view.coord) is view:
            del self.cells[view.coord]

    def set_player_marker(self, position: LatLng) -> None:
        self.player = position

    def set_status(self, text: str) -> None:
        self.status = text

    def notify(self, message: str) -> None:
        self.notifications.append(message)

    def click(self, coord: CellCoord) -> bool:
        """Deliver a click to the cell drawn at ``coord``. Returns False if none is drawn."""
        view = self.cells.get(coord)
        if view is None:
            return False
        return view.click()

    def render(self) -> str:
        """Render the visible window, north at the top.

        Legend: ``@`` player, ``[n]`` reachable token, `` n `` token out of
        reach, `` . `` empty cell, blank = no cell. Tokens of 10 or more show
        as ``+``.
        """
        middle = cell_for(self.center, self.tile_degrees)
        player_cell = cell_for(self.player, self.tile_degrees) if self.player else None
        radius = self.view_radius

        lines: List[str] = []
        for i in range(middle.i + radius, middle.i - radius - 1, -1):
            row: List[str] = []
            for j in range(middle.j - radius, middle.j + radius + 1):
                coord = CellCoord(i, j)
                if coord == player_cell:
                    row.append(" @ ")
                elif coord in self.cells:
                    row.append(self.cells[coord].symbol())
                else:
                    row.append("   ")
            lines.append("".join(row).rstrip())
        if self.status:
            lines.append(self.status)
        return "\n".join(lines)
