from decimal import Decimal

import pytest

from creator_coins.core.constants.chains import CHAIN_ID_BASE_SEPOLIA
from creator_coins.core.utils.units import explorer_url, from_wei_eth, to_wei_eth


@pytest.mark.parametrize(
    "amount,expected",
    [
        ("1", 10**18),
        ("0.5", 5 * 10**17),
        (Decimal("0.0000000000000000019"), 1),
        (2, 2 * 10**18),
    ],
)
def test_to_wei_rounds_down(amount, expected):
    assert to_wei_eth(amount) == expected


@pytest.mark.parametrize("amount", ["abc", "", "NaN", "-1"])
def test_to_wei_rejects_bad_amounts(amount):
    with pytest.raises(ValueError):
        to_wei_eth(amount)


def test_from_wei():
    assert from_wei_eth(15 * 10**17) == Decimal("1.5")


def test_explorer_url():
    tx_url = explorer_url(CHAIN_ID_BASE_SEPOLIA, tx_hash="0xabc")
    assert tx_url.endswith("tx/0xabc")
    assert explorer_url(CHAIN_ID_BASE_SEPOLIA, address="0x1").endswith("address/0x1")
    assert explorer_url(1, tx_hash="0xabc") is None
