"""
Override store: remembers how the player changed each cell.

Cells normally get their content from the deterministic oracle, so nothing
about an untouched cell needs to be stored. Once the player interacts with a
cell, the store keeps a memento of the cell's new state so that the cell comes
back exactly as the player left it the next time it scrolls into view.

Each cell key is in one of three states:
- UNSET      never touched; the oracle default applies
- VALUE(n)   explicit token value (0 included) that replaces the default
- DELETED    the cell must not respawn at all

VALUE(0) and DELETED are different on purpose. An empty cell can still
receive a dropped token; a deleted cell never materializes again until the
store is reset.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Optional, Union

from pydantic import ValidationError

from .grid.coords import CellCoord
from .logging_utils import log_error
from .persistence import KeyValueStore
from .schemas import OverrideRecord


class OverrideKind(str, Enum):
    UNSET = "unset"
    DELETED = "deleted"
    VALUE = "value"


@dataclass(frozen=True)
class Override:
    """Tagged override variant. Use ``UNSET``, ``DELETED`` or ``Override.value(n)``."""

    kind: OverrideKind
    token: Optional[int] = None

    def __post_init__(self) -> None:
        if self.kind is OverrideKind.VALUE:
            if self.token is None or self.token < 0:
                raise ValueError(f"Override value must be a non-negative int, got {self.token!r}")
        elif self.token is not None:
            raise ValueError(f"{self.kind.value} override cannot carry a token")

    @classmethod
    def value(cls, token: int) -> "Override":
        return cls(OverrideKind.VALUE, token)

    @property
    def is_unset(self) -> bool:
        return self.kind is OverrideKind.UNSET

    @property
    def is_deleted(self) -> bool:
        return self.kind is OverrideKind.DELETED

    @property
    def has_value(self) -> bool:
        return self.kind is OverrideKind.VALUE


UNSET = Override(OverrideKind.UNSET)
DELETED = Override(OverrideKind.DELETED)

CellRef = Union[CellCoord, str]


def _key_of(ref: CellRef) -> str:
    return ref.key if isinstance(ref, CellCoord) else ref


class OverrideStore:
    """Persistent map from cell key to override.

    Every mutation writes the full override list through to ``persistence``
    (when one is attached) under ``storage_key``. The list is small: it only
    grows with cells the player has actually changed.
    """

    def __init__(
        self,
        persistence: Optional[KeyValueStore] = None,
        *,
        storage_key: str = "overrides",
    ):
        self.persistence = persistence
        self.storage_key = storage_key
        # Only VALUE and DELETED overrides are stored; missing keys are UNSET.
        self._overrides: Dict[str, Override] = {}

    def save(self, ref: CellRef, value: Union[int, Override]) -> None:
        """Record ``value`` as authoritative for the cell, replacing any prior record."""
        if isinstance(value, Override):
            if value.is_unset:
                raise ValueError("Cannot save UNSET; use reset() to clear overrides")
            override = value
        elif isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Override token must be an int, got {value!r}")
        else:
            override = Override.value(value)

        self._overrides[_key_of(ref)] = override
        self._write_through()

    def restore(self, ref: CellRef) -> Override:
        """Return the override for a cell: a VALUE, DELETED, or UNSET."""
        return self._overrides.get(_key_of(ref), UNSET)

    def all(self) -> Iterator[OverrideRecord]:
        """Lazily yield every recorded override in its persisted form."""
        for key, override in self._overrides.items():
            yield OverrideRecord(key=key, token=override.token)

    def load_all(self, records: Iterable[Union[OverrideRecord, Dict[str, Any]]]) -> int:
        """Bulk-import previously persisted records. Returns how many were loaded.

        Malformed entries are logged and skipped so one bad record does not
        lose the rest of a saved game. Does not write through.
        """
        loaded = 0
        for raw in records:
            try:
                record = raw if isinstance(raw, OverrideRecord) else OverrideRecord.model_validate(raw)
                key = CellCoord.from_key(record.key).key
            except (ValidationError, ValueError) as exc:
                log_error(f"Skipping malformed override record {raw!r}: {exc}")
                continue
            self._overrides[key] = (
                DELETED if record.token is None else Override.value(record.token)
            )
            loaded += 1
        return loaded

    def reset(self) -> None:
        """Forget every override (new game)."""
        self._overrides.clear()
        self._write_through()

    def _write_through(self) -> None:
        if self.persistence is None:
            return
        payload = [record.model_dump(mode="json") for record in self.all()]
        self.persistence.save(self.storage_key, payload)

    def __len__(self) -> int:
        return len(self._overrides)

    def __contains__(self, ref: object) -> bool:
        if not isinstance(ref, (CellCoord, str)):
            return False
        return _key_of(ref) in self._overrides
