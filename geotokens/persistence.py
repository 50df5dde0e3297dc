"""
KeyValueStore interface for pluggable game storage.

This module provides the abstract KeyValueStore interface and two concrete
implementations for persisting game state between sessions. Persistence is
OPTIONAL - a game can run entirely in memory.

Two included implementations:
1. InMemoryKeyValueStore - Dict-based storage, data lost on exit (testing, demos)
2. JsonFileKeyValueStore - One JSON file per key, human-readable (the CLI default)

Keys written by the game session:
- "overrides"        list of {key, token} records (token None = deleted cell)
- "inventory"        int held by the player
- "player_position"  {lat, lng}
- "use_geolocation"  bool movement-mode flag

Failure policy: storage is never allowed to crash the game. Write failures are
logged and dropped; read failures (missing or corrupt data) are logged and the
caller's fallback is returned instead.

Usage pattern:
    store = JsonFileKeyValueStore(".geotokens")
    store.save("inventory", 4)
    store.load("inventory", 0)  # -> 4
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from .config import Config
from .logging_utils import log_error


class KeyValueStore(ABC):
    """Abstract base class for game state persistence.

    Values are JSON-compatible Python data (dicts, lists, numbers, strings,
    bools, None). Implementations serialize on ``save`` and deserialize on
    ``load`` so that a value which cannot round-trip through JSON fails at
    write time, in every backend, the same way.

    Design pattern: Strategy pattern - the session depends on this interface,
    not on where the bytes end up.
    """

    def save(self, key: str, value: Any) -> bool:
        """
        Serialize and store ``value`` under ``key``.

        Returns:
            True if the value was stored, False if the write failed (the
            failure has already been logged)
        """
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as exc:
            log_error(f"Could not serialize '{key}': {exc}")
            return False

        try:
            self._write(key, payload)
        except OSError as exc:
            log_error(f"Could not save '{key}': {exc}")
            return False
        return True

    def load(self, key: str, fallback: Any = None) -> Any:
        """
        Load the value stored under ``key``.

        Returns:
            The deserialized value, or ``fallback`` if the key is missing or
            its data cannot be read or parsed
        """
        try:
            payload = self._read(key)
        except (OSError, UnicodeDecodeError) as exc:
            log_error(f"Could not read '{key}': {exc}")
            return fallback

        if payload is None:
            return fallback

        try:
            return json.loads(payload)
        except ValueError as exc:
            log_error(f"Discarding corrupt data for '{key}': {exc}")
            return fallback

    @abstractmethod
    def _write(self, key: str, payload: str) -> None:
        """Store an already-serialized payload. May raise OSError."""

    @abstractmethod
    def _read(self, key: str) -> Optional[str]:
        """Return the serialized payload for ``key`` or None if missing. May raise OSError."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store for tests and throwaway games.

    Payloads are kept serialized so tests can inspect exactly what would hit
    disk (``store.raw``) and so loaded values are fresh copies.
    """

    def __init__(self) -> None:
        self.raw: Dict[str, str] = {}

    def _write(self, key: str, payload: str) -> None:
        self.raw[key] = payload

    def _read(self, key: str) -> Optional[str]:
        return self.raw.get(key)

    def delete(self, key: str) -> None:
        self.raw.pop(key, None)


class JsonFileKeyValueStore(KeyValueStore):
    """File-based store writing one JSON file per key.

    Directory structure:
    ```
    {base_path}/
      overrides.json
      inventory.json
      player_position.json
      use_geolocation.json
    ```
    """

    def __init__(self, base_path: Path | str | None = None):
        self.base_path = Path(base_path) if base_path is not None else Config.STORAGE_DIR

    def _path(self, key: str) -> Path:
        return self.base_path / f"{key}.json"

    def _write(self, key: str, payload: str) -> None:
        self.base_path.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        # Write then rename so a crash mid-write never leaves a truncated file
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(payload, "utf-8")
        tmp.replace(path)

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text("utf-8")

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
