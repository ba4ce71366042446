"""
dropmint Proof Verifiers

One strategy per substandard. Each authenticates an intent and
resolves it to a stage, quantity and price; none of them mutate state.
"""

from dropmint.proofs.merkle import allow_list_leaf, hash_pair, verify_proof
from dropmint.proofs.strategies import (
    AllowListStrategy,
    MintStrategy,
    OpenStrategy,
    PendingEffects,
    ResolvedMint,
    SignedMintStrategy,
    TokenGatedStrategy,
)
from dropmint.proofs.typed_data import SigningDomain, message_digest, signable_message

__all__ = [
    "AllowListStrategy",
    "MintStrategy",
    "OpenStrategy",
    "PendingEffects",
    "ResolvedMint",
    "SignedMintStrategy",
    "SigningDomain",
    "TokenGatedStrategy",
    "allow_list_leaf",
    "hash_pair",
    "message_digest",
    "signable_message",
    "verify_proof",
]
