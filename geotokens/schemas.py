"""
Pydantic schemas for the Geotokens game.

Everything that is persisted or handed across a collaborator boundary
(renderer, position source, key/value store) is defined here.

Design Philosophy:
- Persisted shapes stay flat and JSON-friendly ({key, token}, {lat, lng})
- Geometry is immutable so the flyweight cache can hand out shared instances
- Validation happens at the boundary; core logic works on plain ints
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LatLng(BaseModel):
    """A geographic point (degrees)."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., description="Latitude in degrees")
    lng: float = Field(..., description="Longitude in degrees")

    def offset(self, dlat: float, dlng: float) -> "LatLng":
        return LatLng(lat=self.lat + dlat, lng=self.lng + dlng)


class CellBounds(BaseModel):
    """Immutable spatial bounds of one grid cell.

    Instances are shared by the geometry cache across every spawn of the same
    coordinate, so they must never be mutated (frozen model).
    """

    model_config = ConfigDict(frozen=True)

    south: float
    west: float
    north: float
    east: float

    @property
    def center(self) -> LatLng:
        return LatLng(lat=(self.south + self.north) / 2, lng=(self.west + self.east) / 2)


class OverrideRecord(BaseModel):
    """Persisted form of a single cell override.

    ``token`` is the explicit value for the cell. ``None`` means the cell was
    deleted and must never respawn. Cells without a record fall back to the
    deterministic default.
    """

    key: str = Field(..., description="Canonical cell key, e.g. '574765,-42252'")
    token: Optional[int] = Field(
        None, ge=0, description="Explicit token value; None marks the cell as deleted",
    )


class SavedGame(BaseModel):
    """Snapshot of every persisted piece of game state."""

    overrides: List[OverrideRecord] = Field(default_factory=list)
    inventory: int = Field(0, ge=0, description="Token held by the player (0 = empty)")
    player_position: LatLng
    use_geolocation: bool = Field(
        False, description="True when the position source drives movement",
    )
    win_announced: bool = Field(
        False, description="True once the win notice has been shown this game",
    )
