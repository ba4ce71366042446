"""
Stage registry for dropmint.

Holds every piece of drop configuration the mint path reads:

    public stages        index (0-255)        → DropStage
    token-gated stages   companion token      → DropStage
    allow-list root      one 32-byte Merkle root
    signer bounds        signer address       → SignedMintBounds
    allowed sets         fee recipients, payers, upstream callers
    creator payouts      ordered list summing to 10,000 bps

Presence is the mapping key. Keyed collections have a parallel
AllowedSet for enumeration; both are updated together.

Every mutation validates, emits one event carrying the old and new
value, and only then touches state; a failed emit leaves the registry
unchanged.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from dropmint.core.exceptions import (
    AlreadyPresent,
    InvalidCreatorPayouts,
    InvalidFeeBps,
    InvalidSignerBounds,
    InvalidStageIndex,
    MissingRedemptionCap,
    NotPresent,
    ZeroAddress,
)
from dropmint.core.models import (
    MAX_BPS,
    PUBLIC_STAGE_INDEX,
    CreatorPayout,
    DropStage,
    SignedMintBounds,
    is_zero_address,
    to_address,
)
from dropmint.core.sets import AllowedSet
from dropmint.ledger.events import EventType
from dropmint.ledger.log import EventLog, EventSink

logger = logging.getLogger(__name__)

MAX_PUBLIC_STAGE_INDEX = 255


class StageRegistry:
    """Persistent drop configuration. Mutations are externally serialized."""

    def __init__(self, events: Optional[EventSink] = None) -> None:
        self.events: EventSink = events if events is not None else EventLog()

        self._public_stages:      Dict[int, DropStage]        = {}
        self._token_gated_stages: Dict[str, DropStage]        = {}
        self._signer_bounds:      Dict[str, SignedMintBounds] = {}
        self._allow_list_root:    Optional[bytes]             = None
        self._creator_payouts:    Tuple[CreatorPayout, ...]   = ()
        self._drop_uri:           str                         = ""

        self._public_indexes  = AllowedSet[int]("stage_index")
        self._companion_tokens = AllowedSet[str]("companion_token")
        self._signers         = AllowedSet[str]("signer")
        self._fee_recipients  = AllowedSet[str]("fee_recipient")
        self._payers          = AllowedSet[str]("payer")
        self._allowed_callers = AllowedSet[str]("caller")

    # ── Public stages ─────────────────────────────────────────

    def upsert_public_stage(self, index: int, stage: DropStage) -> None:
        if not 0 <= index <= MAX_PUBLIC_STAGE_INDEX:
            raise InvalidStageIndex(
                "Public stage index out of range", {"index": index}
            )
        if stage.stage_index != PUBLIC_STAGE_INDEX:
            raise InvalidStageIndex(
                "Public stages must carry stage index 0",
                {"stage_index": stage.stage_index},
            )
        _check_fee_bps(stage.fee_bps)

        old = self._public_stages.get(index)
        self.events.emit(EventType.PUBLIC_STAGE_UPDATED, {
            "index": index,
            "old":   _stage_dict(old),
            "new":   stage.to_dict(),
        })

        if old is None:
            self._public_indexes.add(index)
        self._public_stages[index] = stage
        logger.info("public stage %d %s", index, "updated" if old else "added")

    def remove_stage(self, index: int) -> None:
        if index not in self._public_stages:
            raise NotPresent("Public stage not present", {"index": index})

        self.events.emit(EventType.PUBLIC_STAGE_UPDATED, {
            "index": index,
            "old":   self._public_stages[index].to_dict(),
            "new":   None,
        })

        del self._public_stages[index]
        self._public_indexes.remove(index)
        logger.info("public stage %d removed", index)

    def public_stage(self, index: int) -> Optional[DropStage]:
        return self._public_stages.get(index)

    def public_stage_indexes(self) -> List[int]:
        return self._public_indexes.items()

    # ── Token-gated stages ────────────────────────────────────

    def upsert_token_gated_stage(self, companion_token: str, stage: DropStage) -> None:
        companion_token = _nonzero(companion_token, "companion_token")
        if stage.stage_index == PUBLIC_STAGE_INDEX:
            raise InvalidStageIndex(
                "Token-gated stages must carry a non-zero stage index",
                {"companion_token": companion_token},
            )
        if stage.max_per_wallet_per_unit is None:
            raise MissingRedemptionCap(
                "Token-gated stage needs max_per_wallet_per_unit",
                {"companion_token": companion_token},
            )
        _check_fee_bps(stage.fee_bps)

        old = self._token_gated_stages.get(companion_token)
        self.events.emit(EventType.TOKEN_GATED_STAGE_UPDATED, {
            "companion_token": companion_token,
            "old":             _stage_dict(old),
            "new":             stage.to_dict(),
        })

        if old is None:
            self._companion_tokens.add(companion_token)
        self._token_gated_stages[companion_token] = stage
        logger.info("token-gated stage for %s %s", companion_token, "updated" if old else "added")

    def remove_token_gated_stage(self, companion_token: str) -> None:
        companion_token = to_address(companion_token)
        if companion_token not in self._token_gated_stages:
            raise NotPresent(
                "Token-gated stage not present", {"companion_token": companion_token}
            )

        self.events.emit(EventType.TOKEN_GATED_STAGE_UPDATED, {
            "companion_token": companion_token,
            "old":             self._token_gated_stages[companion_token].to_dict(),
            "new":             None,
        })

        del self._token_gated_stages[companion_token]
        self._companion_tokens.remove(companion_token)
        logger.info("token-gated stage for %s removed", companion_token)

    def token_gated_stage(self, companion_token: str) -> Optional[DropStage]:
        return self._token_gated_stages.get(to_address(companion_token))

    def token_gated_tokens(self) -> List[str]:
        return self._companion_tokens.items()

    # ── Allow list ────────────────────────────────────────────

    def set_allow_list_root(
        self,
        root:            Optional[bytes],
        public_key_uris: Sequence[str] = (),
        allow_list_uri:  str           = "",
    ) -> None:
        """
        Replace the Merkle root. None clears it. The URIs point at the
        published list and its encryption keys; they only travel in the
        event.
        """
        if root is not None and len(root) != 32:
            raise ValueError(f"allow-list root must be 32 bytes, got {len(root)}")

        new = None if root is None else bytes(root)
        self.events.emit(EventType.ALLOW_LIST_UPDATED, {
            "old_root":        _hex(self._allow_list_root),
            "new_root":        _hex(new),
            "public_key_uris": list(public_key_uris),
            "allow_list_uri":  allow_list_uri,
        })

        self._allow_list_root = new
        logger.info("allow-list root updated")

    @property
    def allow_list_root(self) -> Optional[bytes]:
        return self._allow_list_root

    # ── Signers ───────────────────────────────────────────────

    def upsert_signer_bounds(self, signer: str, bounds: SignedMintBounds) -> None:
        signer = _nonzero(signer, "signer")
        if bounds.max_fee_bps > MAX_BPS:
            raise InvalidFeeBps("Fee bps exceeds 10,000", {"fee_bps": bounds.max_fee_bps})
        if bounds.min_fee_bps > bounds.max_fee_bps:
            raise InvalidSignerBounds(
                "min_fee_bps exceeds max_fee_bps",
                {"min_fee_bps": bounds.min_fee_bps, "max_fee_bps": bounds.max_fee_bps},
            )

        old = self._signer_bounds.get(signer)
        self.events.emit(EventType.SIGNER_BOUNDS_UPDATED, {
            "signer": signer,
            "old":    old.to_dict() if old else None,
            "new":    bounds.to_dict(),
        })

        if old is None:
            self._signers.add(signer)
        self._signer_bounds[signer] = bounds
        logger.info("signer %s %s", signer, "updated" if old else "added")

    def remove_signer(self, signer: str) -> None:
        signer = to_address(signer)
        if signer not in self._signer_bounds:
            raise NotPresent("Signer not present", {"signer": signer})

        self.events.emit(EventType.SIGNER_BOUNDS_UPDATED, {
            "signer": signer,
            "old":    self._signer_bounds[signer].to_dict(),
            "new":    None,
        })

        del self._signer_bounds[signer]
        self._signers.remove(signer)
        logger.info("signer %s removed", signer)

    def signer_bounds(self, signer: str) -> Optional[SignedMintBounds]:
        return self._signer_bounds.get(to_address(signer))

    def signers(self) -> List[str]:
        return self._signers.items()

    # ── Allowed sets ──────────────────────────────────────────

    def update_allowed_fee_recipient(self, fee_recipient: str, allowed: bool) -> None:
        self._update_membership(
            self._fee_recipients, fee_recipient, allowed,
            EventType.ALLOWED_FEE_RECIPIENT_UPDATED,
        )

    def update_payer(self, payer: str, allowed: bool) -> None:
        self._update_membership(
            self._payers, payer, allowed, EventType.PAYER_UPDATED,
        )

    def update_allowed_caller(self, caller: str, allowed: bool) -> None:
        """Allow or revoke an upstream settlement protocol."""
        self._update_membership(
            self._allowed_callers, caller, allowed, EventType.ALLOWED_CALLER_UPDATED,
        )

    def is_allowed_fee_recipient(self, fee_recipient: str) -> bool:
        return to_address(fee_recipient) in self._fee_recipients

    def is_allowed_payer(self, payer: str) -> bool:
        return to_address(payer) in self._payers

    def is_allowed_caller(self, caller: str) -> bool:
        return to_address(caller) in self._allowed_callers

    def fee_recipients(self) -> List[str]:
        return self._fee_recipients.items()

    def payers(self) -> List[str]:
        return self._payers.items()

    def allowed_callers(self) -> List[str]:
        return self._allowed_callers.items()

    # ── Creator payouts and metadata ──────────────────────────

    def update_creator_payouts(self, payouts: Iterable[CreatorPayout]) -> None:
        payouts = tuple(payouts)
        if not payouts:
            raise InvalidCreatorPayouts("Creator payouts must not be empty")

        for payout in payouts:
            _nonzero(payout.payout_address, "payout_address")
            if payout.basis_points <= 0:
                raise InvalidCreatorPayouts(
                    "Creator payout basis points must be positive",
                    {"payout_address": payout.payout_address,
                     "basis_points": payout.basis_points},
                )

        total = sum(p.basis_points for p in payouts)
        if total != MAX_BPS:
            raise InvalidCreatorPayouts(
                "Creator payout basis points must sum to 10,000",
                {"total_basis_points": total},
            )

        new = tuple(
            CreatorPayout(to_address(p.payout_address), p.basis_points) for p in payouts
        )
        self.events.emit(EventType.CREATOR_PAYOUTS_UPDATED, {
            "old": [p.to_dict() for p in self._creator_payouts],
            "new": [p.to_dict() for p in new],
        })

        self._creator_payouts = new
        logger.info("creator payouts updated (%d payees)", len(new))

    @property
    def creator_payouts(self) -> Tuple[CreatorPayout, ...]:
        return self._creator_payouts

    def update_drop_uri(self, drop_uri: str) -> None:
        self.events.emit(EventType.DROP_URI_UPDATED, {"old": self._drop_uri, "new": drop_uri})
        self._drop_uri = drop_uri
        logger.info("drop URI updated to %s", drop_uri)

    @property
    def drop_uri(self) -> str:
        return self._drop_uri

    # ── Internal ──────────────────────────────────────────────

    def _update_membership(
        self,
        members:    AllowedSet,
        address:    str,
        allowed:    bool,
        event_type: str,
    ) -> None:
        address = _nonzero(address, members.name)
        if allowed and address in members:
            raise AlreadyPresent(f"{members.name} already present", {members.name: address})
        if not allowed and address not in members:
            raise NotPresent(f"{members.name} not present", {members.name: address})

        self.events.emit(event_type, {members.name: address, "allowed": allowed})

        if allowed:
            members.add(address)
        else:
            members.remove(address)
        logger.info("%s %s %s", members.name, address, "added" if allowed else "removed")


def _check_fee_bps(fee_bps: int) -> None:
    if not 0 <= fee_bps <= MAX_BPS:
        raise InvalidFeeBps("Fee bps must be within [0, 10000]", {"fee_bps": fee_bps})


def _nonzero(address: str, name: str) -> str:
    address = to_address(address)
    if is_zero_address(address):
        raise ZeroAddress(f"{name} cannot be the zero address")
    return address


def _stage_dict(stage: Optional[DropStage]) -> Optional[Dict[str, Any]]:
    return stage.to_dict() if stage else None


def _hex(value: Optional[bytes]) -> Optional[str]:
    return None if value is None else "0x" + value.hex()
