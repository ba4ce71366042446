"""
Signed mint authorizations (EIP-712).

A trusted server signs SignedMint{minter, feeRecipient, mintParams, salt}
under the drop's domain {name, version, chainId, verifyingContract}.
The digest doubles as the replay key: once a committed mint consumes
it, the same signature can never mint again.
"""

from dataclasses import dataclass
from typing import Any, Dict

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_utils import keccak

from dropmint.core.exceptions import InvalidSignature
from dropmint.core.models import DropStage, to_address


SIGNATURE_LENGTH = 65

EIP712_DOMAIN_TYPE = [
    {"name": "name",              "type": "string"},
    {"name": "version",           "type": "string"},
    {"name": "chainId",           "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

MINT_PARAMS_TYPE = [
    {"name": "startPrice",               "type": "uint256"},
    {"name": "endPrice",                 "type": "uint256"},
    {"name": "paymentToken",             "type": "address"},
    {"name": "maxTotalMintableByWallet", "type": "uint256"},
    {"name": "startTime",                "type": "uint256"},
    {"name": "endTime",                  "type": "uint256"},
    {"name": "dropStageIndex",           "type": "uint256"},
    {"name": "maxTokenSupplyForStage",   "type": "uint256"},
    {"name": "feeBps",                   "type": "uint256"},
    {"name": "restrictFeeRecipients",    "type": "bool"},
]

SIGNED_MINT_TYPE = [
    {"name": "minter",       "type": "address"},
    {"name": "feeRecipient", "type": "address"},
    {"name": "mintParams",   "type": "MintParams"},
    {"name": "salt",         "type": "bytes32"},
]


@dataclass(frozen=True)
class SigningDomain:
    name:               str
    version:            str
    chain_id:           int
    verifying_contract: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name":              self.name,
            "version":           self.version,
            "chainId":           self.chain_id,
            "verifyingContract": to_address(self.verifying_contract),
        }


def typed_data(
    domain:        SigningDomain,
    minter:        str,
    fee_recipient: str,
    stage:         DropStage,
    salt:          bytes,
) -> Dict[str, Any]:
    """The full EIP-712 message a server signs for one mint."""
    return {
        "types": {
            "EIP712Domain": EIP712_DOMAIN_TYPE,
            "SignedMint":   SIGNED_MINT_TYPE,
            "MintParams":   MINT_PARAMS_TYPE,
        },
        "primaryType": "SignedMint",
        "domain":      domain.to_dict(),
        "message": {
            "minter":       to_address(minter),
            "feeRecipient": to_address(fee_recipient),
            "mintParams": {
                "startPrice":               stage.start_price,
                "endPrice":                 stage.end_price,
                "paymentToken":             to_address(stage.payment_asset),
                "maxTotalMintableByWallet": stage.max_per_wallet,
                "startTime":                stage.start_time,
                "endTime":                  stage.end_time,
                "dropStageIndex":           stage.stage_index,
                "maxTokenSupplyForStage":   stage.max_supply_for_stage,
                "feeBps":                   stage.fee_bps,
                "restrictFeeRecipients":    stage.restrict_fee_recipients,
            },
            "salt": bytes(salt),
        },
    }


def signable_message(
    domain:        SigningDomain,
    minter:        str,
    fee_recipient: str,
    stage:         DropStage,
    salt:          bytes,
) -> SignableMessage:
    return encode_typed_data(
        full_message=typed_data(domain, minter, fee_recipient, stage, salt)
    )


def message_digest(message: SignableMessage) -> bytes:
    """keccak256(0x19 ‖ version ‖ domain separator ‖ struct hash)."""
    return keccak(b"\x19" + message.version + message.header + message.body)


def recover_signer(message: SignableMessage, signature: bytes) -> str:
    """Recover the signing address. Raises InvalidSignature on malformed bytes."""
    if len(signature) != SIGNATURE_LENGTH:
        raise InvalidSignature(
            "Signature must be 65 bytes", {"got": len(signature)}
        )
    try:
        return to_address(Account.recover_message(message, signature=signature))
    except Exception as exc:
        raise InvalidSignature("Signature could not be recovered") from exc
