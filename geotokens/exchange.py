"""Token exchange rules between the player's hand and a cell.

Pure logic, no side effects. The session applies the result.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .config import Config


class ExchangeOutcome(str, Enum):
    TAKE = "take"
    DROP = "drop"
    CRAFT = "craft"
    REJECT = "reject"
    NOOP = "noop"


_MESSAGES = {
    ExchangeOutcome.TAKE: "Picked up a token worth {inventory}",
    ExchangeOutcome.DROP: "Dropped a token worth {cell}",
    ExchangeOutcome.CRAFT: "Crafted a token worth {cell}",
    ExchangeOutcome.REJECT: "No action available: tokens do not match",
    ExchangeOutcome.NOOP: "Nothing here and nothing in hand",
}


@dataclass(frozen=True)
class ExchangeResult:
    cell: int
    inventory: int
    won: bool
    outcome: ExchangeOutcome

    def describe(self) -> str:
        """Human-readable summary for status lines."""
        return _MESSAGES[self.outcome].format(cell=self.cell, inventory=self.inventory)


def exchange(cell_token: int, inventory_token: int, win_value: Optional[int] = None) -> ExchangeResult:
    """Resolve a click on a cell holding ``cell_token`` by a player holding ``inventory_token``.

    Cases, first match wins:
    1. cell has a token, hand empty        -> TAKE   (hand = cell, cell = 0)
    2. cell empty, hand has a token        -> DROP   (cell = hand, hand = 0)
    3. equal non-zero tokens               -> CRAFT  (cell = 2 * cell, hand = 0)
    4. different non-zero tokens           -> REJECT (no change)
    5. both empty                          -> NOOP

    The total number of token units is conserved in every case. ``won`` is set
    when either side ends up holding exactly ``win_value``; it is informational
    only and does not change state.
    """
    if cell_token < 0 or inventory_token < 0:
        raise ValueError(
            f"Tokens must be non-negative (cell={cell_token}, inventory={inventory_token})"
        )
    if win_value is None:
        win_value = Config.WIN_VALUE

    if cell_token > 0 and inventory_token == 0:
        cell, inventory, outcome = 0, cell_token, ExchangeOutcome.TAKE
    elif cell_token == 0 and inventory_token > 0:
        cell, inventory, outcome = inventory_token, 0, ExchangeOutcome.DROP
    elif cell_token == inventory_token and cell_token != 0:
        cell, inventory, outcome = cell_token + inventory_token, 0, ExchangeOutcome.CRAFT
    elif cell_token != 0 and inventory_token != 0:
        cell, inventory, outcome = cell_token, inventory_token, ExchangeOutcome.REJECT
    else:
        cell, inventory, outcome = 0, 0, ExchangeOutcome.NOOP

    won = cell == win_value or inventory == win_value
    return ExchangeResult(cell=cell, inventory=inventory, won=won, outcome=outcome)
