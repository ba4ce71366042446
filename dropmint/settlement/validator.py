"""
Eligibility and settlement validator.

The common path every strategy funnels into. Checks run in a fixed
order, each with its own error:

    1. Payer       minter itself, an allowed payer, or a delegate
    2. Quantity    wallet cap, token max supply, stage supply
    3. Fee         non-zero recipient, allowed if the stage restricts
    4. Payouts     obligations from the payout calculator
    5. Commit      only when with_effects: record the mint, then apply
                   the strategy's pending effects

A preview runs steps 1-4 exactly as a commit does.
"""

import logging
from typing import List, Optional

from dropmint.collaborators import DelegationOracle, MintStatsReader, NoDelegation
from dropmint.core.exceptions import (
    FeeRecipientIsZero,
    FeeRecipientNotAllowed,
    MaxSupplyExceeded,
    PayerNotAllowed,
    StageSupplyExceeded,
    WalletCapExceeded,
)
from dropmint.core.models import DropStage, PaymentObligation, is_zero_address, to_address
from dropmint.ledger.events import EventType
from dropmint.ledger.log import EventSink
from dropmint.proofs.strategies import PendingEffects
from dropmint.registry.stage_registry import StageRegistry
from dropmint.settlement.payouts import compute_obligations

logger = logging.getLogger(__name__)


class EligibilityValidator:

    def __init__(
        self,
        registry:   StageRegistry,
        mint_stats: MintStatsReader,
        delegation: Optional[DelegationOracle] = None,
        events:     Optional[EventSink]        = None,
    ) -> None:
        self.registry   = registry
        self.mint_stats = mint_stats
        self.delegation = delegation or NoDelegation()
        self.events     = events if events is not None else registry.events

    def validate(
        self,
        fee_recipient: str,
        payer:         str,
        minter:        str,
        quantity:      int,
        price:         int,
        stage:         DropStage,
        with_effects:  bool,
        effects:       Optional[PendingEffects] = None,
    ) -> List[PaymentObligation]:
        """
        Run every eligibility check and return the mint's payment
        obligations. With with_effects=True a passing mint is also
        recorded and its pending effects applied.
        """
        payer         = to_address(payer)
        minter        = to_address(minter)
        fee_recipient = to_address(fee_recipient)

        self._check_payer(payer, minter)
        self._check_quantity(minter, quantity, stage)
        self._check_fee_recipient(fee_recipient, stage)

        obligations = compute_obligations(
            quantity=        quantity,
            price=           price,
            fee_bps=         stage.fee_bps,
            fee_recipient=   fee_recipient,
            creator_payouts= self.registry.creator_payouts,
            payment_asset=   stage.payment_asset,
        )

        if with_effects:
            effects = effects if effects is not None else PendingEffects()
            self.events.emit(EventType.MINT_RECORDED, {
                "payer":         payer,
                "minter":        minter,
                "stage_index":   stage.stage_index,
                "quantity":      quantity,
                "unit_price":    price,
                "fee_recipient": fee_recipient,
                "obligations": [
                    {"recipient": o.recipient, "amount": o.amount} for o in obligations
                ],
                "effects":       dict(effects.summary),
            })
            effects.apply()
            logger.info(
                "mint recorded: %d unit(s) to %s at %d (stage %d)",
                quantity, minter, price, stage.stage_index,
            )

        return obligations

    # ── Checks ────────────────────────────────────────────────

    def _check_payer(self, payer: str, minter: str) -> None:
        if payer == minter:
            return
        if self.registry.is_allowed_payer(payer):
            return
        if self.delegation.is_delegate(payer, minter):
            return
        raise PayerNotAllowed(
            "Payer may not pay for this minter", {"payer": payer, "minter": minter}
        )

    def _check_quantity(self, minter: str, quantity: int, stage: DropStage) -> None:
        stats = self.mint_stats.mint_stats(minter)

        if quantity + stats.minted_by_wallet > stage.max_per_wallet:
            raise WalletCapExceeded(
                "Mint quantity exceeds wallet cap",
                {
                    "requested":        quantity,
                    "minted_by_wallet": stats.minted_by_wallet,
                    "max_per_wallet":   stage.max_per_wallet,
                },
            )
        if quantity + stats.current_supply > stats.max_supply:
            raise MaxSupplyExceeded(
                "Mint quantity exceeds max supply",
                {
                    "requested":      quantity,
                    "current_supply": stats.current_supply,
                    "max_supply":     stats.max_supply,
                },
            )
        if quantity + stats.current_supply > stage.max_supply_for_stage:
            raise StageSupplyExceeded(
                "Mint quantity exceeds stage supply",
                {
                    "requested":            quantity,
                    "current_supply":       stats.current_supply,
                    "max_supply_for_stage": stage.max_supply_for_stage,
                },
            )

    def _check_fee_recipient(self, fee_recipient: str, stage: DropStage) -> None:
        if is_zero_address(fee_recipient):
            raise FeeRecipientIsZero("Fee recipient cannot be the zero address")
        if stage.restrict_fee_recipients and not self.registry.is_allowed_fee_recipient(
            fee_recipient
        ):
            raise FeeRecipientNotAllowed(
                "Fee recipient not allowed for this stage",
                {"fee_recipient": fee_recipient},
            )
