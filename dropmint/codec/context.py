"""
dropmint/codec/context.py

Authorization context codec.

Wire layout (big-endian):

    [0]       version tag, must equal SUPPORTED_VERSION
    [1]       substandard (0 open, 1 allow-list, 2 token-gated, 3 signed)
    [2:22]    fee recipient
    [22:42]   minter (zero → the fulfiller)
    [42:]     substandard tail

    open         u8 public stage index
    allow-list   stage (10 words) ‖ proof nodes (32 bytes each)
    token-gated  companion token (20) ‖ u16 n ‖ n ids ‖ u16 m ‖ m amounts
    signed       stage (10 words) ‖ salt (32) ‖ signature

Stage words, each a 32-byte big-endian unsigned integer:

    start_price, end_price, payment_asset, max_per_wallet, start_time,
    end_time, stage_index, max_supply_for_stage, fee_bps,
    restrict_fee_recipients

The same stage words follow the minter in an allow-list leaf.

Checks run in a fixed order and the first failure wins: claim shape,
version, substandard, prefix length, then the tail.
"""

from typing import List, Optional, Sequence, Tuple

from dropmint.core.exceptions import (
    InvalidClaim,
    MalformedPayload,
    TruncatedPayload,
    UnsupportedSubstandard,
    UnsupportedVersion,
)
from dropmint.core.models import (
    ZERO_ADDRESS,
    DropStage,
    ItemType,
    MintIntent,
    SpentItem,
    Substandard,
    is_zero_address,
    to_address,
)


SUPPORTED_VERSION = 0

WORD = 32
ADDRESS_LENGTH = 20
PREFIX_LENGTH = 2 + 2 * ADDRESS_LENGTH      # 42
STAGE_WORDS = 10
STAGE_LENGTH = STAGE_WORDS * WORD            # 320
SALT_LENGTH = 32
COUNT_LENGTH = 2

_UINT256_MAX = 2 ** 256 - 1


# ─────────────────────────────────────────────────────────────
# Words
# ─────────────────────────────────────────────────────────────

def encode_word(value: int) -> bytes:
    if not 0 <= value <= _UINT256_MAX:
        raise ValueError(f"value {value} does not fit in 256 bits")
    return value.to_bytes(WORD, "big")


def address_word(address: str) -> bytes:
    """An address left-padded to 32 bytes."""
    return bytes(12) + bytes.fromhex(to_address(address)[2:])


def _word_at(data: bytes, i: int) -> int:
    return int.from_bytes(data[i * WORD:(i + 1) * WORD], "big")


# ─────────────────────────────────────────────────────────────
# Stage
# ─────────────────────────────────────────────────────────────

def encode_stage(stage: DropStage) -> bytes:
    return b"".join([
        encode_word(stage.start_price),
        encode_word(stage.end_price),
        address_word(stage.payment_asset),
        encode_word(stage.max_per_wallet),
        encode_word(stage.start_time),
        encode_word(stage.end_time),
        encode_word(stage.stage_index),
        encode_word(stage.max_supply_for_stage),
        encode_word(stage.fee_bps),
        encode_word(1 if stage.restrict_fee_recipients else 0),
    ])


def decode_stage(data: bytes) -> DropStage:
    if len(data) < STAGE_LENGTH:
        raise TruncatedPayload(
            "Stage parameters truncated", {"expected": STAGE_LENGTH, "got": len(data)}
        )
    asset = data[2 * WORD:3 * WORD]
    if any(asset[:WORD - ADDRESS_LENGTH]):
        raise MalformedPayload(
            "Payment asset word has non-zero high bytes", {"word": "0x" + asset.hex()}
        )
    return DropStage(
        start_price=             _word_at(data, 0),
        end_price=               _word_at(data, 1),
        payment_asset=           to_address(asset[-ADDRESS_LENGTH:]),
        max_per_wallet=          _word_at(data, 3),
        start_time=              _word_at(data, 4),
        end_time=                _word_at(data, 5),
        stage_index=             _word_at(data, 6),
        max_supply_for_stage=    _word_at(data, 7),
        fee_bps=                 _word_at(data, 8),
        restrict_fee_recipients= _word_at(data, 9) != 0,
    )


# ─────────────────────────────────────────────────────────────
# Claim
# ─────────────────────────────────────────────────────────────

def decode_claim(
    minimum_received: Sequence[SpentItem],
    token:            str,
    item_type:        ItemType,
) -> int:
    """
    Validate the upstream claim and return the quantity it asks for.

    The claim must hold exactly one item, of this drop's own token and
    item type, with a positive amount.
    """
    if len(minimum_received) != 1:
        raise InvalidClaim(
            "Claim must contain exactly one item", {"items": len(minimum_received)}
        )
    item = minimum_received[0]
    if to_address(item.token) != to_address(token):
        raise InvalidClaim("Claim is not for this token", {"token": item.token})
    if item.item_type != item_type:
        raise InvalidClaim(
            "Claim has the wrong item type",
            {"expected": ItemType(item_type).name, "got": ItemType(item.item_type).name},
        )
    if item.amount <= 0:
        raise InvalidClaim("Claim amount must be positive", {"amount": item.amount})
    return item.amount


# ─────────────────────────────────────────────────────────────
# Context
# ─────────────────────────────────────────────────────────────

def decode_context(
    context:          bytes,
    fulfiller:        str,
    minimum_received: Sequence[SpentItem],
    token:            str,
    item_type:        ItemType = ItemType.ERC1155,
) -> MintIntent:
    """Decode an authorization context into a MintIntent."""
    quantity = decode_claim(minimum_received, token, item_type)

    if len(context) < 1:
        raise TruncatedPayload("Context is empty", {"got": 0})
    if context[0] != SUPPORTED_VERSION:
        raise UnsupportedVersion(
            "Unsupported context version",
            {"expected": SUPPORTED_VERSION, "got": context[0]},
        )
    if len(context) < 2:
        raise TruncatedPayload("Context has no substandard", {"got": len(context)})
    try:
        substandard = Substandard(context[1])
    except ValueError:
        raise UnsupportedSubstandard(
            "Unsupported substandard", {"substandard": context[1]}
        ) from None
    if len(context) < PREFIX_LENGTH:
        raise TruncatedPayload(
            "Context shorter than its fixed prefix",
            {"expected": PREFIX_LENGTH, "got": len(context)},
        )

    fee_recipient = to_address(context[2:22])
    minter        = to_address(context[22:42])
    if is_zero_address(minter):
        minter = to_address(fulfiller)

    tail = context[PREFIX_LENGTH:]
    common = dict(
        substandard=   substandard,
        fee_recipient= fee_recipient,
        minter=        minter,
        quantity=      quantity,
    )

    if substandard == Substandard.OPEN:
        if len(tail) < 1:
            raise TruncatedPayload("Open mint context has no stage index")
        return MintIntent(stage_index=tail[0], **common)

    if substandard == Substandard.ALLOW_LIST:
        stage = decode_stage(tail)
        return MintIntent(stage=stage, proof=_split_proof(tail[STAGE_LENGTH:]), **common)

    if substandard == Substandard.TOKEN_GATED:
        companion_token, token_ids, amounts = _decode_token_gated(tail)
        return MintIntent(
            companion_token= companion_token,
            token_ids=       token_ids,
            amounts=         amounts,
            **common,
        )

    stage = decode_stage(tail)
    rest  = tail[STAGE_LENGTH:]
    if len(rest) < SALT_LENGTH:
        raise TruncatedPayload(
            "Signed mint context has no salt", {"expected": SALT_LENGTH, "got": len(rest)}
        )
    return MintIntent(
        stage=     stage,
        salt=      rest[:SALT_LENGTH],
        signature= rest[SALT_LENGTH:],
        **common,
    )


def _split_proof(data: bytes) -> Tuple[bytes, ...]:
    if len(data) % WORD:
        raise TruncatedPayload(
            "Proof is not a whole number of 32-byte nodes", {"got": len(data)}
        )
    return tuple(data[i:i + WORD] for i in range(0, len(data), WORD))


def _read_words(data: bytes, offset: int, what: str) -> Tuple[Tuple[int, ...], int]:
    if len(data) < offset + COUNT_LENGTH:
        raise TruncatedPayload(f"Token-gated context has no {what} count")
    count  = int.from_bytes(data[offset:offset + COUNT_LENGTH], "big")
    offset += COUNT_LENGTH
    end    = offset + count * WORD
    if len(data) < end:
        raise TruncatedPayload(
            f"Token-gated {what} truncated", {"expected": end, "got": len(data)}
        )
    words = tuple(
        int.from_bytes(data[o:o + WORD], "big") for o in range(offset, end, WORD)
    )
    return words, end


def _decode_token_gated(tail: bytes) -> Tuple[str, Tuple[int, ...], Tuple[int, ...]]:
    if len(tail) < ADDRESS_LENGTH:
        raise TruncatedPayload("Token-gated context has no companion token")
    companion_token = to_address(tail[:ADDRESS_LENGTH])
    token_ids, offset = _read_words(tail, ADDRESS_LENGTH, "token id")
    amounts, _        = _read_words(tail, offset, "amount")
    return companion_token, token_ids, amounts


# ─────────────────────────────────────────────────────────────
# Encoding
# ─────────────────────────────────────────────────────────────

def encode_context(
    substandard:     Substandard,
    fee_recipient:   str,
    minter:          str                = ZERO_ADDRESS,
    *,
    stage_index:     int                = 0,
    stage:           Optional[DropStage] = None,
    proof:           Sequence[bytes]    = (),
    companion_token: Optional[str]      = None,
    token_ids:       Sequence[int]      = (),
    amounts:         Sequence[int]      = (),
    salt:            bytes              = bytes(SALT_LENGTH),
    signature:       bytes              = b"",
    version:         int                = SUPPORTED_VERSION,
) -> bytes:
    """Build a context payload. The inverse of decode_context()."""
    parts: List[bytes] = [
        bytes([version, int(substandard)]),
        bytes.fromhex(to_address(fee_recipient)[2:]),
        bytes.fromhex(to_address(minter)[2:]),
    ]

    if substandard == Substandard.OPEN:
        parts.append(bytes([stage_index]))
    elif substandard == Substandard.ALLOW_LIST:
        parts.append(encode_stage(stage))
        parts.extend(proof)
    elif substandard == Substandard.TOKEN_GATED:
        parts.append(bytes.fromhex(to_address(companion_token)[2:]))
        parts.append(len(token_ids).to_bytes(COUNT_LENGTH, "big"))
        parts.extend(encode_word(i) for i in token_ids)
        parts.append(len(amounts).to_bytes(COUNT_LENGTH, "big"))
        parts.extend(encode_word(a) for a in amounts)
    else:
        if len(salt) != SALT_LENGTH:
            raise ValueError(f"salt must be {SALT_LENGTH} bytes, got {len(salt)}")
        parts.append(encode_stage(stage))
        parts.append(salt)
        parts.append(signature)

    return b"".join(parts)
