"""Tests for the token exchange state machine."""

import pytest

from geotokens.exchange import ExchangeOutcome, exchange


def test_take_from_cell_into_empty_hand():
    result = exchange(1, 0, win_value=16)
    assert (result.cell, result.inventory, result.outcome) == (0, 1, ExchangeOutcome.TAKE)
    assert result.won is False


def test_drop_into_empty_cell():
    result = exchange(0, 4, win_value=16)
    assert (result.cell, result.inventory, result.outcome) == (4, 0, ExchangeOutcome.DROP)


def test_craft_equal_tokens_and_win():
    result = exchange(1, 1, win_value=2)
    assert (result.cell, result.inventory, result.outcome) == (2, 0, ExchangeOutcome.CRAFT)
    assert result.won is True


def test_reject_unequal_tokens():
    result = exchange(3, 1, win_value=16)
    assert (result.cell, result.inventory, result.outcome) == (3, 1, ExchangeOutcome.REJECT)
    assert "No action available" in result.describe()


def test_both_empty_is_noop():
    result = exchange(0, 0, win_value=16)
    assert (result.cell, result.inventory, result.outcome) == (0, 0, ExchangeOutcome.NOOP)
    assert result.won is False


def test_taking_the_winning_token_reports_win():
    assert exchange(8, 0, win_value=8).won is True


def test_exchange_is_total_and_conserves_tokens():
    values = [0, 1, 2, 3, 4, 8]
    for cell in values:
        for hand in values:
            result = exchange(cell, hand, win_value=16)
            assert result.cell + result.inventory == cell + hand
            if result.outcome in (ExchangeOutcome.REJECT, ExchangeOutcome.NOOP):
                assert (result.cell, result.inventory) == (cell, hand)
            else:
                assert result.inventory == 0 or result.cell == 0


@pytest.mark.parametrize("cell,hand", [(-1, 0), (0, -1)])
def test_negative_tokens_rejected(cell, hand):
    with pytest.raises(ValueError):
        exchange(cell, hand)
