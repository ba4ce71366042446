"""
tests/test_payouts.py

Fee and creator payout splits. Every split rounds down.
"""

import pytest

from dropmint.core.exceptions import CreatorPayoutsNotSet, InvalidFeeBps
from dropmint.core.models import ZERO_ADDRESS, CreatorPayout, ItemType, PaymentObligation
from dropmint.settlement.payouts import compute_obligations

from tests.helpers.drops import CO_CREATOR, CREATOR, ERC20_ASSET, FEE_RECIPIENT

SOLE = [CreatorPayout(CREATOR, 10_000)]
SPLIT = [CreatorPayout(CREATOR, 7_000), CreatorPayout(CO_CREATOR, 3_000)]


class TestComputeObligations:

    def test_free_mint_owes_nothing(self):
        assert compute_obligations(5, 0, 500, FEE_RECIPIENT, SOLE) == []

    def test_free_mint_ignores_missing_payouts(self):
        assert compute_obligations(5, 0, 500, FEE_RECIPIENT, []) == []

    def test_fee_then_payee(self):
        obligations = compute_obligations(2, 1_000, 500, FEE_RECIPIENT, SOLE)
        assert obligations == [
            PaymentObligation(FEE_RECIPIENT, 100),
            PaymentObligation(CREATOR, 1_900),
        ]

    def test_fee_rounds_to_zero_and_is_omitted(self):
        """3 units at price 1 with 5% fee: floor(3*500/10000) = 0."""
        obligations = compute_obligations(3, 1, 500, FEE_RECIPIENT, SOLE)
        assert obligations == [PaymentObligation(CREATOR, 3)]

    def test_split_rounds_down_and_leaves_dust(self):
        obligations = compute_obligations(1, 11, 0, FEE_RECIPIENT, SPLIT)
        assert obligations == [
            PaymentObligation(CREATOR, 7),
            PaymentObligation(CO_CREATOR, 3),
        ]
        assert sum(o.amount for o in obligations) == 10

    def test_zero_share_omitted(self):
        obligations = compute_obligations(1, 2, 0, FEE_RECIPIENT, SPLIT)
        assert obligations == [PaymentObligation(CREATOR, 1)]

    def test_full_fee(self):
        obligations = compute_obligations(1, 100, 10_000, FEE_RECIPIENT, SOLE)
        assert obligations == [PaymentObligation(FEE_RECIPIENT, 100)]

    def test_payment_asset_carried(self):
        obligations = compute_obligations(1, 100, 0, FEE_RECIPIENT, SOLE, ERC20_ASSET)
        assert obligations[0].payment_asset == ERC20_ASSET
        assert obligations[0].to_received_item().item_type == ItemType.ERC20

    def test_native_asset_maps_to_native_item(self):
        item = PaymentObligation(CREATOR, 5, ZERO_ADDRESS).to_received_item()
        assert item.item_type == ItemType.NATIVE
        assert item.recipient == CREATOR

    def test_fee_bps_over_max(self):
        with pytest.raises(InvalidFeeBps):
            compute_obligations(1, 100, 10_001, FEE_RECIPIENT, SOLE)

    def test_payouts_required_for_paid_mint(self):
        with pytest.raises(CreatorPayoutsNotSet):
            compute_obligations(1, 100, 0, FEE_RECIPIENT, [])
