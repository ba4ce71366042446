"""
Creator payout calculator.

    total = quantity * price
    fee   = floor(total * fee_bps / 10000)          → fee recipient
    net   = total - fee
    share = floor(net * basis_points / 10000)       → each payee

Every split rounds down. Whatever dust that leaves (at most one
smallest unit per payee plus one for the fee) is never collected.
"""

from typing import List, Sequence

from dropmint.core.exceptions import CreatorPayoutsNotSet, InvalidFeeBps
from dropmint.core.models import MAX_BPS, ZERO_ADDRESS, CreatorPayout, PaymentObligation


def compute_obligations(
    quantity:        int,
    price:           int,
    fee_bps:         int,
    fee_recipient:   str,
    creator_payouts: Sequence[CreatorPayout],
    payment_asset:   str = ZERO_ADDRESS,
) -> List[PaymentObligation]:
    """
    Payment obligations for a mint, fee first, then payees in order.
    A free mint owes nothing. Zero amounts are left out.
    """
    if price == 0:
        return []
    if fee_bps > MAX_BPS:
        raise InvalidFeeBps("Fee bps exceeds 10,000", {"fee_bps": fee_bps})
    if not creator_payouts:
        raise CreatorPayoutsNotSet("Creator payouts are not configured")

    total = quantity * price
    fee   = total * fee_bps // MAX_BPS
    net   = total - fee

    obligations: List[PaymentObligation] = []
    if fee:
        obligations.append(PaymentObligation(fee_recipient, fee, payment_asset))

    for payout in creator_payouts:
        amount = net * payout.basis_points // MAX_BPS
        if amount:
            obligations.append(
                PaymentObligation(payout.payout_address, amount, payment_asset)
            )

    return obligations
