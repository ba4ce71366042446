"""
External collaborators.

The engine only ever reads from these. Each protocol exposes query
methods and nothing else, so an implementation handed to the engine
cannot be driven to mutate state through it.
"""

from typing import Protocol

from dropmint.core.models import MintStats


class MintStatsReader(Protocol):
    """Issuance ledger of the drop's own token."""

    def mint_stats(self, minter: str) -> MintStats:
        ...


class OwnershipOracle(Protocol):
    """Owner lookup on a companion collection."""

    def owner_of(self, token: str, token_id: int) -> str:
        ...


class DelegationOracle(Protocol):
    """Answers whether `payer` is a full delegate of `minter`."""

    def is_delegate(self, payer: str, minter: str) -> bool:
        ...


class NoDelegation:
    """Delegation oracle for deployments without a delegation registry."""

    def is_delegate(self, payer: str, minter: str) -> bool:
        return False
