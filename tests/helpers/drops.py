"""Shared addresses, times and builders for drop tests."""

from dataclasses import replace
from typing import List

from dropmint.core.models import DropStage, ItemType, SpentItem, to_address

NOW = 1_700_000_000

TOKEN         = to_address("0x" + "a1" * 20)
CALLER        = to_address("0x" + "5e" * 20)
FEE_RECIPIENT = to_address("0x" + "fe" * 20)
CREATOR       = to_address("0x" + "c0" * 20)
CO_CREATOR    = to_address("0x" + "c1" * 20)
MINTER        = to_address("0x" + "11" * 20)
OTHER_MINTER  = to_address("0x" + "22" * 20)
PAYER         = to_address("0x" + "33" * 20)
COMPANION     = to_address("0x" + "77" * 20)
ERC20_ASSET   = to_address("0x" + "e2" * 20)


def make_stage(**overrides) -> DropStage:
    """A stage active around NOW: price 1, cap 3 per wallet, 5% fee."""
    stage = DropStage(
        start_price=             1,
        end_price=               1,
        start_time=              NOW - 100,
        end_time=                NOW + 100,
        max_per_wallet=          3,
        max_supply_for_stage=    100,
        fee_bps=                 500,
        restrict_fee_recipients= False,
    )
    return replace(stage, **overrides)


def claim(quantity: int, token: str = TOKEN) -> List[SpentItem]:
    return [SpentItem(ItemType.ERC1155, token, 0, quantity)]
