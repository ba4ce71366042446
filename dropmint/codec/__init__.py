"""
dropmint Authorization Decoder

Turns the upstream claim plus an opaque context payload into a
MintIntent, and builds such payloads for clients and tests.
"""

from dropmint.codec.context import (
    PREFIX_LENGTH,
    STAGE_LENGTH,
    SUPPORTED_VERSION,
    address_word,
    decode_claim,
    decode_context,
    decode_stage,
    encode_context,
    encode_stage,
)

__all__ = [
    "PREFIX_LENGTH",
    "STAGE_LENGTH",
    "SUPPORTED_VERSION",
    "address_word",
    "decode_claim",
    "decode_context",
    "decode_stage",
    "encode_context",
    "encode_stage",
]
