"""
Allow-list Merkle proofs.

Trees are built off-chain with hashed leaves, sorted leaves and
sorted pairs, so a proof is a flat list of sibling hashes and the
verifier never needs to know left from right:

    leaf   = keccak256(pad32(minter) ‖ stage words)
    parent = keccak256(min(a, b) ‖ max(a, b))
"""

from typing import Sequence

from eth_utils import keccak

from dropmint.codec.context import address_word, encode_stage
from dropmint.core.models import DropStage


def hash_pair(a: bytes, b: bytes) -> bytes:
    return keccak(a + b) if a <= b else keccak(b + a)


def allow_list_leaf(minter: str, stage: DropStage) -> bytes:
    """Hashed leaf authorizing `minter` under exactly these stage parameters."""
    return keccak(address_word(minter) + encode_stage(stage))


def process_proof(proof: Sequence[bytes], leaf: bytes) -> bytes:
    computed = leaf
    for node in proof:
        computed = hash_pair(computed, node)
    return computed


def verify_proof(proof: Sequence[bytes], root: bytes, leaf: bytes) -> bool:
    return process_proof(proof, leaf) == root
