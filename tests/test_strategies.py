"""
tests/test_strategies.py

Authorization strategies in isolation: each resolves an intent to a
stage, quantity and price, and queues but never applies its effects.
"""

from dataclasses import replace

import pytest

from dropmint.core.exceptions import (
    InvalidProof,
    InvalidSignature,
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
from dropmint.core.models import ZERO_ADDRESS, MintIntent, SignedMintBounds, Substandard
from dropmint.core.sets import RedemptionLedger, UsedAuthorizationSet
from dropmint.proofs.merkle import allow_list_leaf, hash_pair, verify_proof
from dropmint.proofs.strategies import (
    AllowListStrategy,
    OpenStrategy,
    SignedMintStrategy,
    TokenGatedStrategy,
    check_signed_bounds,
)
from dropmint.proofs.typed_data import message_digest, signable_message

from tests.helpers.allow_list import AllowListTree
from tests.helpers.drops import (
    COMPANION,
    ERC20_ASSET,
    FEE_RECIPIENT,
    MINTER,
    NOW,
    OTHER_MINTER,
    make_stage,
)
from tests.helpers.signing import sign_mint

SALT = b"\x5a" * 32


def intent(substandard: Substandard, quantity: int = 1, **fields) -> MintIntent:
    return MintIntent(
        substandard=   substandard,
        fee_recipient= FEE_RECIPIENT,
        minter=        fields.pop("minter", MINTER),
        quantity=      quantity,
        **fields,
    )


def bounds_for(stage, **overrides) -> SignedMintBounds:
    values = dict(
        payment_asset=            stage.payment_asset,
        min_price=                1,
        max_max_per_wallet=       stage.max_per_wallet,
        min_start_time=           stage.start_time,
        max_end_time=             stage.end_time,
        max_max_supply_for_stage= stage.max_supply_for_stage,
        min_fee_bps=              stage.fee_bps,
        max_fee_bps=              stage.fee_bps,
    )
    values.update(overrides)
    return SignedMintBounds(**values)


class TestOpenStrategy:

    def test_resolves_configured_stage(self, registry):
        registry.upsert_public_stage(1, make_stage(start_price=4, end_price=4))
        resolved = OpenStrategy(registry).resolve(intent(Substandard.OPEN, 2, stage_index=1), NOW)
        assert resolved.price == 4
        assert resolved.quantity == 2
        assert len(resolved.effects) == 0

    def test_unknown_index(self, registry):
        with pytest.raises(StageNotFound):
            OpenStrategy(registry).resolve(intent(Substandard.OPEN, stage_index=9), NOW)


class TestMerkle:

    def test_hash_pair_is_order_independent(self):
        a, b = b"\x01" * 32, b"\x02" * 32
        assert hash_pair(a, b) == hash_pair(b, a)

    def test_single_leaf_tree(self):
        stage = make_stage(stage_index=1)
        tree = AllowListTree([(MINTER, stage)])
        assert tree.root == allow_list_leaf(MINTER, stage)
        assert tree.proof(MINTER, stage) == ()

    def test_every_member_of_odd_tree_verifies(self):
        stage = make_stage(stage_index=1)
        members = [("0x" + f"{i:02x}" * 20, stage) for i in range(1, 6)]
        tree = AllowListTree(members)
        for minter, s in members:
            assert verify_proof(tree.proof(minter, s), tree.root, allow_list_leaf(minter, s))

    def test_leaf_binds_stage_parameters(self):
        stage = make_stage(stage_index=1)
        tree = AllowListTree([(MINTER, stage), (OTHER_MINTER, stage)])
        cheaper = replace(stage, start_price=0, end_price=0)
        assert not verify_proof(
            tree.proof(MINTER, stage), tree.root, allow_list_leaf(MINTER, cheaper)
        )


class TestAllowListStrategy:

    def test_valid_proof(self, registry):
        stage = make_stage(stage_index=2)
        tree = AllowListTree([(MINTER, stage), (OTHER_MINTER, stage)])
        registry.set_allow_list_root(tree.root)

        resolved = AllowListStrategy(registry).resolve(
            intent(Substandard.ALLOW_LIST, stage=stage, proof=tree.proof(MINTER, stage)), NOW
        )
        assert resolved.stage == stage

    def test_proof_for_another_minter(self, registry):
        stage = make_stage(stage_index=2)
        tree = AllowListTree([(MINTER, stage), (OTHER_MINTER, stage)])
        registry.set_allow_list_root(tree.root)

        with pytest.raises(InvalidProof):
            AllowListStrategy(registry).resolve(
                intent(Substandard.ALLOW_LIST, minter=OTHER_MINTER,
                       stage=stage, proof=tree.proof(MINTER, stage)),
                NOW,
            )

    def test_root_unset(self, registry):
        stage = make_stage(stage_index=2)
        with pytest.raises(InvalidProof):
            AllowListStrategy(registry).resolve(intent(Substandard.ALLOW_LIST, stage=stage), NOW)

    def test_public_index_rejected(self, registry):
        stage = make_stage()
        registry.set_allow_list_root(AllowListTree([(MINTER, stage)]).root)
        with pytest.raises(InvalidStageIndex):
            AllowListStrategy(registry).resolve(intent(Substandard.ALLOW_LIST, stage=stage), NOW)


class TestSignedMintStrategy:

    @pytest.fixture
    def signed(self, registry, domain):
        return SignedMintStrategy(registry, UsedAuthorizationSet(), domain)

    @pytest.fixture
    def stage(self):
        return make_stage(stage_index=3, restrict_fee_recipients=True)

    def signed_intent(self, server_account, domain, stage, minter=MINTER, salt=SALT):
        sig = sign_mint(server_account.key, domain, minter, FEE_RECIPIENT, stage, salt)
        return intent(Substandard.SIGNED, minter=minter, stage=stage, salt=salt, signature=sig)

    def test_trusted_signer(self, registry, signed, domain, server_account, stage):
        registry.upsert_signer_bounds(server_account.address, bounds_for(stage))
        resolved = signed.resolve(self.signed_intent(server_account, domain, stage), NOW)

        assert resolved.price == 1
        assert len(resolved.effects) == 1
        assert resolved.effects.summary["signer"] == server_account.address

    def test_resolve_does_not_consume_digest(self, registry, signed, domain, server_account, stage):
        """Only applying the effects marks the digest used."""
        registry.upsert_signer_bounds(server_account.address, bounds_for(stage))
        mint = self.signed_intent(server_account, domain, stage)

        signed.resolve(mint, NOW)
        resolved = signed.resolve(mint, NOW)
        assert len(signed.used) == 0

        resolved.effects.apply()
        with pytest.raises(SignatureAlreadyUsed):
            signed.resolve(mint, NOW)

    def test_untrusted_signer(self, signed, domain, server_account, stage):
        with pytest.raises(UntrustedSigner):
            signed.resolve(self.signed_intent(server_account, domain, stage), NOW)

    def test_signature_for_other_minter(self, registry, signed, domain, server_account, stage):
        """Swapping the minter changes the digest, so the recovered signer is not trusted."""
        registry.upsert_signer_bounds(server_account.address, bounds_for(stage))
        mint = self.signed_intent(server_account, domain, stage)
        with pytest.raises(UntrustedSigner):
            signed.resolve(replace(mint, minter=OTHER_MINTER), NOW)

    def test_malformed_signature(self, signed, stage):
        mint = intent(Substandard.SIGNED, stage=stage, salt=SALT, signature=b"\x01" * 64)
        with pytest.raises(InvalidSignature):
            signed.resolve(mint, NOW)

    def test_public_index_rejected(self, signed, domain, server_account):
        stage = make_stage(restrict_fee_recipients=True)
        with pytest.raises(InvalidStageIndex):
            signed.resolve(self.signed_intent(server_account, domain, stage), NOW)

    def test_digest_is_eip712(self, domain, stage):
        message = signable_message(domain, MINTER, FEE_RECIPIENT, stage, SALT)
        assert message.version == b"\x01"
        assert len(message_digest(message)) == 32


class TestSignedBounds:

    @pytest.fixture
    def stage(self):
        return make_stage(stage_index=3, restrict_fee_recipients=True)

    def test_within_bounds(self, stage):
        check_signed_bounds(stage, 1, bounds_for(stage))

    @pytest.mark.parametrize("overrides, price, error", [
        ({"payment_asset": ERC20_ASSET},                1, InvalidSignedPaymentAsset),
        ({"min_price": 2},                              1, InvalidSignedPrice),
        ({"max_max_per_wallet": 2},                     1, InvalidSignedMaxPerWallet),
        ({"min_start_time": NOW},                       1, InvalidSignedStartTime),
        ({"max_end_time": NOW},                         1, InvalidSignedEndTime),
        ({"max_max_supply_for_stage": 99},              1, InvalidSignedMaxSupplyForStage),
        ({"min_fee_bps": 600, "max_fee_bps": 700},      1, InvalidSignedFeeBps),
        ({"min_fee_bps": 100, "max_fee_bps": 400},      1, InvalidSignedFeeBps),
    ])
    def test_each_bound_named(self, stage, overrides, price, error):
        with pytest.raises(error):
            check_signed_bounds(stage, price, bounds_for(stage, **overrides))

    def test_must_restrict_fee_recipients(self, stage):
        open_fees = replace(stage, restrict_fee_recipients=False)
        with pytest.raises(SignedMintsMustRestrictFeeRecipients):
            check_signed_bounds(open_fees, 1, bounds_for(open_fees))


class TestTokenGatedStrategy:

    @pytest.fixture
    def gated(self, registry, owners):
        registry.upsert_token_gated_stage(
            COMPANION, make_stage(stage_index=4, max_per_wallet=20, max_per_wallet_per_unit=5)
        )
        owners.set_owner(COMPANION, 7, MINTER)
        owners.set_owner(COMPANION, 8, MINTER)
        return TokenGatedStrategy(registry, RedemptionLedger(), owners)

    def gated_intent(self, ids, amounts, quantity=None, token=COMPANION):
        return intent(
            Substandard.TOKEN_GATED,
            quantity if quantity is not None else sum(amounts),
            companion_token= token,
            token_ids=       tuple(ids),
            amounts=         tuple(amounts),
        )

    def test_redeems_owned_tokens(self, gated):
        resolved = gated.resolve(self.gated_intent([7, 8], [2, 3]), NOW)
        assert resolved.quantity == 5
        assert gated.redemptions.redeemed(COMPANION, 7) == 0

        resolved.effects.apply()
        assert gated.redemptions.redeemed(COMPANION, 7) == 2
        assert gated.redemptions.redeemed(COMPANION, 8) == 3

    def test_unconfigured_companion(self, gated):
        with pytest.raises(StageNotFound):
            gated.resolve(self.gated_intent([7], [1], token=OTHER_MINTER), NOW)

    def test_length_mismatch(self, gated):
        with pytest.raises(TokenIdAmountMismatch):
            gated.resolve(self.gated_intent([7, 8], [1], quantity=1), NOW)

    def test_not_owner(self, gated, owners):
        owners.set_owner(COMPANION, 9, OTHER_MINTER)
        with pytest.raises(NotTokenOwner):
            gated.resolve(self.gated_intent([9], [1]), NOW)

    def test_unowned_token(self, gated):
        with pytest.raises(NotTokenOwner) as exc:
            gated.resolve(self.gated_intent([99], [1]), NOW)
        assert exc.value.details["owner"] == ZERO_ADDRESS

    def test_cap_counts_repeated_ids_within_one_mint(self, gated):
        with pytest.raises(TokenRedemptionCapExceeded):
            gated.resolve(self.gated_intent([7, 7], [3, 3]), NOW)

    def test_cap_counts_prior_redemptions(self, gated):
        gated.resolve(self.gated_intent([7], [4]), NOW).effects.apply()
        with pytest.raises(TokenRedemptionCapExceeded):
            gated.resolve(self.gated_intent([7], [2]), NOW)
        gated.resolve(self.gated_intent([7], [1]), NOW)

    def test_amounts_must_match_claim(self, gated):
        with pytest.raises(QuantityMismatch):
            gated.resolve(self.gated_intent([7], [2], quantity=3), NOW)
