"""
Authorization strategies.

Each strategy authenticates one kind of mint intent and resolves it
to a concrete stage, quantity and unit price. Nothing is mutated
here: state changes a commit would need are queued on PendingEffects
and applied by the settlement validator only after every check passed.

    OPEN         public stage looked up by index
    ALLOW_LIST   inline stage proven by a Merkle proof
    TOKEN_GATED  stage keyed by companion token, ownership per token id
    SIGNED       inline stage signed by a bounded, trusted signer
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Dict, List

from dropmint.collaborators import OwnershipOracle
from dropmint.core.exceptions import (
    InvalidProof,
    InvalidSignedEndTime,
    InvalidSignedFeeBps,
    InvalidSignedMaxPerWallet,
    InvalidSignedMaxSupplyForStage,
    InvalidSignedPaymentAsset,
    InvalidSignedPrice,
    InvalidSignedStartTime,
    InvalidStageIndex,
    NotTokenOwner,
    QuantityMismatch,
    SignatureAlreadyUsed,
    SignedMintsMustRestrictFeeRecipients,
    StageNotFound,
    TokenIdAmountMismatch,
    TokenRedemptionCapExceeded,
    UntrustedSigner,
)
from dropmint.core.models import (
    PUBLIC_STAGE_INDEX,
    DropStage,
    MintIntent,
    SignedMintBounds,
    Substandard,
    to_address,
)
from dropmint.core.sets import RedemptionLedger, UsedAuthorizationSet
from dropmint.pricing import current_price
from dropmint.proofs.merkle import allow_list_leaf, verify_proof
from dropmint.proofs.typed_data import (
    SigningDomain,
    message_digest,
    recover_signer,
    signable_message,
)
from dropmint.registry.stage_registry import StageRegistry

logger = logging.getLogger(__name__)


@dataclass
class PendingEffects:
    """State changes a strategy needs, held back until commit."""
    _actions: List[Callable[[], object]] = field(default_factory=list)
    summary:  Dict[str, object]          = field(default_factory=dict)

    def add(self, action: Callable[[], object]) -> None:
        self._actions.append(action)

    def apply(self) -> None:
        for action in self._actions:
            action()

    def __len__(self) -> int:
        return len(self._actions)


@dataclass(frozen=True)
class ResolvedMint:
    stage:    DropStage
    quantity: int
    price:    int
    effects:  PendingEffects


class MintStrategy:
    """Base class. Subclasses implement resolve()."""

    substandard: Substandard

    def __init__(self, registry: StageRegistry) -> None:
        self.registry = registry

    def resolve(self, intent: MintIntent, now: int) -> ResolvedMint:
        raise NotImplementedError

    def _priced(
        self,
        stage:    DropStage,
        quantity: int,
        now:      int,
        effects:  PendingEffects = None,
    ) -> ResolvedMint:
        return ResolvedMint(
            stage=    stage,
            quantity= quantity,
            price=    current_price(stage, now),
            effects=  effects if effects is not None else PendingEffects(),
        )


def _require_private_index(stage: DropStage) -> None:
    if stage.stage_index == PUBLIC_STAGE_INDEX:
        raise InvalidStageIndex(
            "Non-public stages must carry a non-zero stage index",
            {"stage_index": stage.stage_index},
        )


# ─────────────────────────────────────────────────────────────
# Open
# ─────────────────────────────────────────────────────────────

class OpenStrategy(MintStrategy):
    substandard = Substandard.OPEN

    def resolve(self, intent: MintIntent, now: int) -> ResolvedMint:
        stage = self.registry.public_stage(intent.stage_index)
        if stage is None:
            raise StageNotFound("Public stage not configured", {"index": intent.stage_index})
        return self._priced(stage, intent.quantity, now)


# ─────────────────────────────────────────────────────────────
# Allow list
# ─────────────────────────────────────────────────────────────

class AllowListStrategy(MintStrategy):
    """
    The stage travels inside the proof's leaf, so it is trusted exactly
    as far as the root is. There is no second, stored copy to compare
    fee_bps against.
    """

    substandard = Substandard.ALLOW_LIST

    def resolve(self, intent: MintIntent, now: int) -> ResolvedMint:
        stage = intent.stage
        _require_private_index(stage)

        root = self.registry.allow_list_root
        if root is None:
            raise InvalidProof("Allow list root not set")

        leaf = allow_list_leaf(intent.minter, stage)
        if not verify_proof(intent.proof, root, leaf):
            raise InvalidProof(
                "Allow list proof does not verify",
                {"minter": intent.minter, "proof_length": len(intent.proof)},
            )
        return self._priced(stage, intent.quantity, now)


# ─────────────────────────────────────────────────────────────
# Signed
# ─────────────────────────────────────────────────────────────

class SignedMintStrategy(MintStrategy):
    substandard = Substandard.SIGNED

    def __init__(
        self,
        registry: StageRegistry,
        used:     UsedAuthorizationSet,
        domain:   SigningDomain,
    ) -> None:
        super().__init__(registry)
        self.used   = used
        self.domain = domain

    def resolve(self, intent: MintIntent, now: int) -> ResolvedMint:
        stage = intent.stage
        _require_private_index(stage)

        message = signable_message(
            self.domain, intent.minter, intent.fee_recipient, stage, intent.salt
        )
        digest = message_digest(message)
        if self.used.is_used(digest):
            raise SignatureAlreadyUsed(
                "Signed mint already used", {"digest": "0x" + digest.hex()}
            )

        signer = recover_signer(message, intent.signature)
        bounds = self.registry.signer_bounds(signer)
        if bounds is None:
            raise UntrustedSigner("Signer is not trusted", {"signer": signer})

        resolved = self._priced(stage, intent.quantity, now)
        check_signed_bounds(stage, resolved.price, bounds)

        resolved.effects.add(partial(self.used.mark_used, digest))
        resolved.effects.summary["digest"] = "0x" + digest.hex()
        resolved.effects.summary["signer"] = signer
        return resolved


def check_signed_bounds(stage: DropStage, price: int, bounds: SignedMintBounds) -> None:
    """Reject a signed stage outside its signer's bounds, naming the field."""
    if to_address(stage.payment_asset) != to_address(bounds.payment_asset):
        raise InvalidSignedPaymentAsset(
            "Signed payment asset not allowed",
            {"got": stage.payment_asset, "expected": bounds.payment_asset},
        )
    if price < bounds.min_price:
        raise InvalidSignedPrice(
            "Signed price below signer minimum",
            {"got": price, "min": bounds.min_price},
        )
    if stage.max_per_wallet > bounds.max_max_per_wallet:
        raise InvalidSignedMaxPerWallet(
            "Signed wallet cap above signer maximum",
            {"got": stage.max_per_wallet, "max": bounds.max_max_per_wallet},
        )
    if stage.start_time < bounds.min_start_time:
        raise InvalidSignedStartTime(
            "Signed start time before signer minimum",
            {"got": stage.start_time, "min": bounds.min_start_time},
        )
    if stage.end_time > bounds.max_end_time:
        raise InvalidSignedEndTime(
            "Signed end time after signer maximum",
            {"got": stage.end_time, "max": bounds.max_end_time},
        )
    if stage.max_supply_for_stage > bounds.max_max_supply_for_stage:
        raise InvalidSignedMaxSupplyForStage(
            "Signed stage supply above signer maximum",
            {"got": stage.max_supply_for_stage, "max": bounds.max_max_supply_for_stage},
        )
    if not bounds.min_fee_bps <= stage.fee_bps <= bounds.max_fee_bps:
        raise InvalidSignedFeeBps(
            "Signed fee bps outside signer range",
            {"got": stage.fee_bps, "min": bounds.min_fee_bps, "max": bounds.max_fee_bps},
        )
    if not stage.restrict_fee_recipients:
        raise SignedMintsMustRestrictFeeRecipients(
            "Signed mints must restrict fee recipients"
        )


# ─────────────────────────────────────────────────────────────
# Token gated
# ─────────────────────────────────────────────────────────────

class TokenGatedStrategy(MintStrategy):
    substandard = Substandard.TOKEN_GATED

    def __init__(
        self,
        registry:    StageRegistry,
        redemptions: RedemptionLedger,
        ownership:   OwnershipOracle,
    ) -> None:
        super().__init__(registry)
        self.redemptions = redemptions
        self.ownership   = ownership

    def resolve(self, intent: MintIntent, now: int) -> ResolvedMint:
        companion = to_address(intent.companion_token)
        stage = self.registry.token_gated_stage(companion)
        if stage is None:
            raise StageNotFound(
                "Token-gated stage not configured", {"companion_token": companion}
            )
        if len(intent.token_ids) != len(intent.amounts):
            raise TokenIdAmountMismatch(
                "Token ids and amounts differ in length",
                {"token_ids": len(intent.token_ids), "amounts": len(intent.amounts)},
            )

        cap = stage.max_per_wallet_per_unit
        pending: Dict[int, int] = defaultdict(int)
        total = 0

        for token_id, amount in zip(intent.token_ids, intent.amounts):
            owner = to_address(self.ownership.owner_of(companion, token_id))
            if owner != intent.minter:
                raise NotTokenOwner(
                    "Minter does not own companion token",
                    {"companion_token": companion, "token_id": token_id, "owner": owner},
                )

            pending[token_id] += amount
            redeemed = self.redemptions.redeemed(companion, token_id)
            if redeemed + pending[token_id] > cap:
                raise TokenRedemptionCapExceeded(
                    "Companion token redemption cap exceeded",
                    {
                        "companion_token": companion,
                        "token_id":        token_id,
                        "redeemed":        redeemed,
                        "requested":       pending[token_id],
                        "cap":             cap,
                    },
                )
            total += amount

        if total != intent.quantity:
            raise QuantityMismatch(
                "Redemption amounts do not match claimed quantity",
                {"redeemed": total, "claimed": intent.quantity},
            )

        effects = PendingEffects()
        for token_id, amount in pending.items():
            effects.add(partial(self.redemptions.increment, companion, token_id, amount))
        effects.summary["companion_token"] = companion
        effects.summary["redeemed"] = {str(k): v for k, v in pending.items()}

        return self._priced(stage, total, now, effects)
