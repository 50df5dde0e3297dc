"""
Geotokens - a location-based token collecting game on an infinite map grid.

Every cell of the grid deterministically starts with or without a token.
Walk around, pick tokens up, drop them, and merge equal tokens into bigger
ones until one reaches the winning value.

The game core is headless: rendering, position sources and storage are
injected collaborators.
"""

__version__ = "0.1.0"

# Main game object
from .session import GameSession
from .config import Config

# Grid engine
from .grid import CellCoord, ContentOracle, GeometryCache, cell_for, cells_in_bounds
from .overrides import DELETED, UNSET, Override, OverrideKind, OverrideStore
from .exchange import ExchangeOutcome, ExchangeResult, exchange
from .world import ActiveCell, CellRegistry, InteractionResult, ReconcileReport, WorldDriver
from .luck import luck

# Collaborators
from .persistence import KeyValueStore, InMemoryKeyValueStore, JsonFileKeyValueStore
from .positioning import PositionSource, PositionUnavailableError, ScriptedPositionSource
from .render import CellView, MapRenderer, TextMapRenderer
from .movement import ButtonMovement, GeolocationMovement, MovementController, DIRECTIONS

# Schemas
from .schemas import CellBounds, LatLng, OverrideRecord, SavedGame

__all__ = [
    # Main class
    "GameSession",
    "Config",
    # Grid engine
    "CellCoord",
    "ContentOracle",
    "GeometryCache",
    "cell_for",
    "cells_in_bounds",
    "DELETED",
    "UNSET",
    "Override",
    "OverrideKind",
    "OverrideStore",
    "ExchangeOutcome",
    "ExchangeResult",
    "exchange",
    "ActiveCell",
    "CellRegistry",
    "InteractionResult",
    "ReconcileReport",
    "WorldDriver",
    "luck",
    # Collaborators
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "PositionSource",
    "PositionUnavailableError",
    "ScriptedPositionSource",
    "CellView",
    "MapRenderer",
    "TextMapRenderer",
    "ButtonMovement",
    "GeolocationMovement",
    "MovementController",
    "DIRECTIONS",
    # Schemas
    "CellBounds",
    "LatLng",
    "OverrideRecord",
    "SavedGame",
]
