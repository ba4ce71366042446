"""
dropmint/core/sets.py

Membership structures backing the registry and the strategies.

    AllowedSet            — enumerable set, O(1) add/remove/contains
    UsedAuthorizationSet  — one-way set of consumed signed-mint digests
    RedemptionLedger      — per companion token redemption counters
"""

from typing import Dict, Generic, Hashable, Iterator, List, Set, Tuple, TypeVar

from dropmint.core.exceptions import AlreadyPresent, NotPresent, SignatureAlreadyUsed


T = TypeVar("T", bound=Hashable)


class AllowedSet(Generic[T]):
    """
    Enumerable membership set.

    A key→slot map plus a dense list. Removal moves the last element
    into the freed slot and truncates, so enumeration order is not
    stable across removals.

    Invariant: self._items[self._slots[k]] == k for every member k.
    """

    def __init__(self, name: str = "member") -> None:
        self.name = name
        self._slots: Dict[T, int] = {}
        self._items: List[T]      = []

    def add(self, item: T) -> None:
        if item in self._slots:
            raise AlreadyPresent(
                f"{self.name} already present", {self.name: item}
            )
        self._slots[item] = len(self._items)
        self._items.append(item)

    def remove(self, item: T) -> None:
        slot = self._slots.pop(item, None)
        if slot is None:
            raise NotPresent(f"{self.name} not present", {self.name: item})

        last = self._items.pop()
        if slot < len(self._items):
            self._items[slot]  = last
            self._slots[last] = slot

    def items(self) -> List[T]:
        """Snapshot of the members, in storage order."""
        return list(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._slots

    def __iter__(self) -> Iterator[T]:
        return iter(self.items())

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"AllowedSet(name={self.name!r}, size={len(self._items)})"


class UsedAuthorizationSet:
    """Consumed digests. Membership only ever goes from unused to used."""

    def __init__(self) -> None:
        self._used: Set[bytes] = set()

    def is_used(self, digest: bytes) -> bool:
        return digest in self._used

    def mark_used(self, digest: bytes) -> None:
        if digest in self._used:
            raise SignatureAlreadyUsed(
                "Signed mint already used", {"digest": "0x" + digest.hex()}
            )
        self._used.add(digest)

    def __len__(self) -> int:
        return len(self._used)


class RedemptionLedger:
    """(companion_token, token_id) → number of units redeemed. Counters only grow."""

    def __init__(self) -> None:
        self._redeemed: Dict[Tuple[str, int], int] = {}

    def redeemed(self, companion_token: str, token_id: int) -> int:
        return self._redeemed.get((companion_token, token_id), 0)

    def increment(self, companion_token: str, token_id: int, amount: int) -> int:
        if amount < 0:
            raise ValueError(f"redemption amount must be non-negative, got {amount}")
        key = (companion_token, token_id)
        self._redeemed[key] = self._redeemed.get(key, 0) + amount
        return self._redeemed[key]

