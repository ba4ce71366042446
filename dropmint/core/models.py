"""
dropmint/core/models.py

Drop data model.

    DropStage         — pricing and eligibility configuration for one stage
    SignedMintBounds  — per-signer envelope over signed stage parameters
    CreatorPayout     — one payee and its share of net proceeds
    SpentItem         — one item of the upstream minimum-received claim
    MintIntent        — decoded authorization context
    PaymentObligation — one amount the settlement layer must collect
    MintStats         — read-only issuance figures for one wallet

Addresses are EIP-55 checksummed strings everywhere. Raw 20-byte
values from the wire go through to_address() before they reach
any of these types.
"""

from dataclasses import asdict, dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple, Union

from eth_utils import to_checksum_address


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

MAX_BPS = 10_000

# The public stage always carries this index.
PUBLIC_STAGE_INDEX = 0


def to_address(value: Union[str, bytes]) -> str:
    """Normalize a hex string or 20 raw bytes to a checksummed address."""
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise ValueError(f"address must be 20 bytes, got {len(value)}")
        value = "0x" + bytes(value).hex()
    return to_checksum_address(value)


def is_zero_address(value: str) -> bool:
    return int(value, 16) == 0


# ─────────────────────────────────────────────────────────────
# Enumerations
# ─────────────────────────────────────────────────────────────

class ItemType(IntEnum):
    """Item kinds understood by the settlement protocol."""
    NATIVE  = 0
    ERC20   = 1
    ERC721  = 2
    ERC1155 = 3


class Substandard(IntEnum):
    """Authorization strategy tag carried in byte 1 of the context."""
    OPEN        = 0
    ALLOW_LIST  = 1
    TOKEN_GATED = 2
    SIGNED      = 3


# ─────────────────────────────────────────────────────────────
# Configuration records
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DropStage:
    """
    One mint stage.

    Price moves linearly from start_price at start_time to end_price
    at end_time. stage_index is an analytics tag: 0 is the public
    stage, every other stage must carry a non-zero index.
    max_per_wallet_per_unit only applies to token-gated stages, where
    it caps redemptions per companion token.
    """
    start_price:             int
    end_price:               int
    start_time:              int
    end_time:                int
    max_per_wallet:          int
    max_supply_for_stage:    int
    fee_bps:                 int
    restrict_fee_recipients: bool
    payment_asset:           str           = ZERO_ADDRESS
    stage_index:             int           = PUBLIC_STAGE_INDEX
    max_per_wallet_per_unit: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "DropStage":
        per_unit = data.get("max_per_wallet_per_unit")
        return DropStage(
            start_price=             int(data["start_price"]),
            end_price=               int(data["end_price"]),
            start_time=              int(data["start_time"]),
            end_time=                int(data["end_time"]),
            max_per_wallet=          int(data["max_per_wallet"]),
            max_supply_for_stage=    int(data["max_supply_for_stage"]),
            fee_bps=                 int(data["fee_bps"]),
            restrict_fee_recipients= bool(data["restrict_fee_recipients"]),
            payment_asset=           to_address(data.get("payment_asset", ZERO_ADDRESS)),
            stage_index=             int(data.get("stage_index", PUBLIC_STAGE_INDEX)),
            max_per_wallet_per_unit= None if per_unit is None else int(per_unit),
        )


@dataclass(frozen=True)
class SignedMintBounds:
    """Limits a trusted signer's stages must stay within."""
    payment_asset:            str
    min_price:                int
    max_max_per_wallet:       int
    min_start_time:           int
    max_end_time:             int
    max_max_supply_for_stage: int
    min_fee_bps:              int
    max_fee_bps:              int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "SignedMintBounds":
        return SignedMintBounds(
            payment_asset=            to_address(data.get("payment_asset", ZERO_ADDRESS)),
            min_price=                int(data["min_price"]),
            max_max_per_wallet=       int(data["max_max_per_wallet"]),
            min_start_time=           int(data["min_start_time"]),
            max_end_time=             int(data["max_end_time"]),
            max_max_supply_for_stage= int(data["max_max_supply_for_stage"]),
            min_fee_bps=              int(data["min_fee_bps"]),
            max_fee_bps=              int(data["max_fee_bps"]),
        )


@dataclass(frozen=True)
class CreatorPayout:
    payout_address: str
    basis_points:   int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "CreatorPayout":
        return CreatorPayout(
            payout_address= to_address(data["payout_address"]),
            basis_points=   int(data["basis_points"]),
        )


# ─────────────────────────────────────────────────────────────
# Settlement protocol items
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SpentItem:
    """An item the upstream protocol expects this engine to offer."""
    item_type:  ItemType
    token:      str
    identifier: int
    amount:     int


@dataclass(frozen=True)
class ReceivedItem:
    """An item the upstream protocol must collect for a recipient."""
    item_type:  ItemType
    token:      str
    identifier: int
    amount:     int
    recipient:  str


@dataclass(frozen=True)
class PaymentObligation:
    """One amount owed to one recipient in the stage's payment asset."""
    recipient:     str
    amount:        int
    payment_asset: str = ZERO_ADDRESS

    def to_received_item(self) -> ReceivedItem:
        native = is_zero_address(self.payment_asset)
        return ReceivedItem(
            item_type=  ItemType.NATIVE if native else ItemType.ERC20,
            token=      self.payment_asset,
            identifier= 0,
            amount=     self.amount,
            recipient=  self.recipient,
        )


@dataclass(frozen=True)
class MintStats:
    """Issuance figures for one wallet, as reported by the token ledger."""
    minted_by_wallet: int
    current_supply:   int
    max_supply:       int


# ─────────────────────────────────────────────────────────────
# Decoded intent
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MintIntent:
    """
    A decoded mint authorization.

    The common prefix (substandard, fee_recipient, minter, quantity) is
    always set. The remaining fields depend on the substandard:

        OPEN         stage_index
        ALLOW_LIST   stage, proof
        TOKEN_GATED  companion_token, token_ids, amounts
        SIGNED       stage, salt, signature
    """
    substandard:     Substandard
    fee_recipient:   str
    minter:          str
    quantity:        int
    stage_index:     int                = PUBLIC_STAGE_INDEX
    stage:           Optional[DropStage] = None
    proof:           Tuple[bytes, ...]  = field(default_factory=tuple)
    companion_token: Optional[str]      = None
    token_ids:       Tuple[int, ...]    = field(default_factory=tuple)
    amounts:         Tuple[int, ...]    = field(default_factory=tuple)
    salt:            bytes              = b""
    signature:       bytes              = b""

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view, bytes rendered as 0x-hex."""
        return {
            "substandard":     self.substandard.name.lower(),
            "fee_recipient":   self.fee_recipient,
            "minter":          self.minter,
            "quantity":        self.quantity,
            "stage_index":     self.stage_index,
            "stage":           self.stage.to_dict() if self.stage else None,
            "proof":           ["0x" + node.hex() for node in self.proof],
            "companion_token": self.companion_token,
            "token_ids":       list(self.token_ids),
            "amounts":         list(self.amounts),
            "salt":            "0x" + self.salt.hex(),
            "signature":       "0x" + self.signature.hex(),
        }
