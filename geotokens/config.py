"""
Geotokens Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """Game configuration loaded from environment variables."""

    # Where a fresh game places the player (Leaflet-style lat/lng)
    SPAWN_LAT: float = float(os.getenv("SPAWN_LAT", "57.476538"))
    SPAWN_LNG: float = float(os.getenv("SPAWN_LNG", "-4.225123"))

    # Grid geometry. One cell spans TILE_DEGREES of latitude and longitude.
    TILE_DEGREES: float = float(os.getenv("TILE_DEGREES", "1e-4"))
    # Extra cells materialized around the viewport to avoid pop-in at the edges
    NEIGHBORHOOD_MARGIN: int = int(os.getenv("NEIGHBORHOOD_MARGIN", "1"))
    # Maximum reach, measured in cells from the player to a cell center
    INTERACTION_RADIUS: float = float(os.getenv("INTERACTION_RADIUS", "3"))

    # Game rules
    CACHE_SPAWN_PROBABILITY: float = float(os.getenv("CACHE_SPAWN_PROBABILITY", "0.1"))
    WIN_VALUE: int = int(os.getenv("WIN_VALUE", "16"))

    # Text renderer viewport half-size, in cells
    VIEW_RADIUS: int = int(os.getenv("VIEW_RADIUS", "8"))

    # Storage
    STORAGE_DIR: Path = Path(os.getenv("STORAGE_DIR", ".geotokens"))

    # Debugging
    DEBUG_WORLD: bool = _env_flag("DEBUG_WORLD")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors for impossible values."""
        if cls.TILE_DEGREES <= 0:
            raise ValueError("TILE_DEGREES must be positive")

        if cls.NEIGHBORHOOD_MARGIN < 0:
            raise ValueError("NEIGHBORHOOD_MARGIN cannot be negative")

        if cls.INTERACTION_RADIUS < 0:
            raise ValueError("INTERACTION_RADIUS cannot be negative")

        if not 0.0 <= cls.CACHE_SPAWN_PROBABILITY <= 1.0:
            raise ValueError(
                "CACHE_SPAWN_PROBABILITY must be between 0 and 1 "
                f"(got {cls.CACHE_SPAWN_PROBABILITY})"
            )

        if cls.WIN_VALUE <= 0:
            raise ValueError("WIN_VALUE must be a positive token value")

        if cls.VIEW_RADIUS < 0:
            raise ValueError("VIEW_RADIUS cannot be negative")

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "Geotokens Configuration:",
            f"  Spawn point: {cls.SPAWN_LAT}, {cls.SPAWN_LNG}",
            f"  Tile size: {cls.TILE_DEGREES} degrees",
            f"  Neighborhood margin: {cls.NEIGHBORHOOD_MARGIN} cells",
            f"  Interaction radius: {cls.INTERACTION_RADIUS} cells",
            f"  Spawn probability: {cls.CACHE_SPAWN_PROBABILITY}",
            f"  Win value: {cls.WIN_VALUE}",
            f"  Storage: {cls.STORAGE_DIR}",
        ]
        return "\n".join(lines)
