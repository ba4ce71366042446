"""
dropmint Settlement

The Eligibility Validator is the single funnel every authorized mint
passes through, and the only place a committed mint mutates state.

Critical Invariants:
- Preview and commit run identical checks
- Nothing is mutated unless every check passed
- Payout splits round down; dust is never reallocated
"""

from dropmint.settlement.payouts import compute_obligations
from dropmint.settlement.validator import EligibilityValidator

__all__ = ["EligibilityValidator", "compute_obligations"]
