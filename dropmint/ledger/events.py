"""
dropmint/ledger/events.py

Event envelope.

Every registry mutation and every committed mint is recorded as one
DropEvent. Envelopes are chained and signed:

    signed bytes = canonicalize(event.to_signing_dict())
    prev_hash    = SHA-256(canonicalize(prev.to_signing_dict()))
    first event  = GENESIS_HASH ("0" * 64)

The signature is not part of the chain; everything else is.
"""

import hashlib
import re
import secrets
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from dropmint.core.canonical import canonicalize
from dropmint.core.crypto import EventSigner
from dropmint.core.time import event_timestamp


GENESIS_HASH = "0" * 64

_NONCE_HEX_LENGTH = 32

_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class EventType:
    """Event type constants. The only valid values for DropEvent.event_type."""
    PUBLIC_STAGE_UPDATED          = "public_stage_updated"
    TOKEN_GATED_STAGE_UPDATED     = "token_gated_stage_updated"
    ALLOW_LIST_UPDATED            = "allow_list_updated"
    SIGNER_BOUNDS_UPDATED         = "signer_bounds_updated"
    ALLOWED_FEE_RECIPIENT_UPDATED = "allowed_fee_recipient_updated"
    PAYER_UPDATED                 = "payer_updated"
    ALLOWED_CALLER_UPDATED        = "allowed_caller_updated"
    CREATOR_PAYOUTS_UPDATED       = "creator_payouts_updated"
    DROP_URI_UPDATED              = "drop_uri_updated"
    MINT_RECORDED                 = "mint_recorded"


VALID_EVENT_TYPES = frozenset(
    value for name, value in vars(EventType).items() if name.isupper()
)


@dataclass
class DropEvent:
    event_type: str
    sequence:   int
    nonce:      str
    timestamp:  str
    prev_hash:  str
    signer:     str
    payload:    Dict[str, Any]
    signature:  Optional[str] = None

    @classmethod
    def create(
        cls,
        event_type: str,
        sequence:   int,
        signer:     str,
        payload:    Dict[str, Any],
        prev:       Optional["DropEvent"] = None,
    ) -> "DropEvent":
        """Create an unsigned event chained onto `prev`. Call .sign() next."""
        if event_type not in VALID_EVENT_TYPES:
            raise ValueError(
                f"Invalid event_type '{event_type}'. Valid: {sorted(VALID_EVENT_TYPES)}"
            )
        if not isinstance(payload, dict):
            raise TypeError(f"payload must be dict, got {type(payload).__name__}")
        if not isinstance(sequence, int) or sequence < 0:
            raise ValueError(f"sequence must be non-negative int, got {sequence!r}")

        return cls(
            event_type= event_type,
            sequence=   sequence,
            nonce=      secrets.token_hex(_NONCE_HEX_LENGTH // 2),
            timestamp=  event_timestamp(),
            prev_hash=  cls.chain_hash(prev),
            signer=     signer,
            payload=    payload,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DropEvent":
        """Deserialize a JSONL line. Trusts the data; call validate_schema()."""
        return cls(
            event_type= data["event_type"],
            sequence=   data["sequence"],
            nonce=      data["nonce"],
            timestamp=  data["timestamp"],
            prev_hash=  data["prev_hash"],
            signer=     data["signer"],
            payload=    data.get("payload", {}),
            signature=  data.get("signature"),
        )

    def validate_schema(self) -> List[str]:
        """Return every schema violation found; empty when valid."""
        errors: List[str] = []

        if self.event_type not in VALID_EVENT_TYPES:
            errors.append(f"event_type '{self.event_type}' is not a known event type")
        if not isinstance(self.sequence, int) or self.sequence < 0:
            errors.append(f"sequence must be non-negative int, got {self.sequence!r}")
        if not _is_hex(self.nonce, _NONCE_HEX_LENGTH):
            errors.append(f"nonce must be {_NONCE_HEX_LENGTH} hex chars")
        if not isinstance(self.timestamp, str) or not _TIMESTAMP_RE.match(self.timestamp):
            errors.append(f"timestamp {self.timestamp!r} is not YYYY-MM-DDTHH:MM:SS.mmmZ")
        if not _is_hex(self.prev_hash, 64):
            errors.append("prev_hash must be 64 hex chars")
        if not _is_hex(self.signer, 64):
            errors.append("signer must be a 64-char Ed25519 public key hex")
        if not isinstance(self.payload, dict):
            errors.append(f"payload must be dict, got {type(self.payload).__name__}")

        return errors

    # ── Canonical forms ───────────────────────────────────────

    def to_signing_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "nonce":      self.nonce,
            "payload":    self.payload,
            "prev_hash":  self.prev_hash,
            "sequence":   self.sequence,
            "signer":     self.signer,
            "timestamp":  self.timestamp,
        }

    def to_dict(self) -> Dict[str, Any]:
        d = self.to_signing_dict()
        d["signature"] = self.signature
        return d

    @staticmethod
    def chain_hash(prev: Optional["DropEvent"]) -> str:
        if prev is None:
            return GENESIS_HASH
        return hashlib.sha256(canonicalize(prev.to_signing_dict())).hexdigest()

    # ── Signing and verification ──────────────────────────────

    def sign(self, signer: EventSigner) -> "DropEvent":
        self.signature = signer.sign(canonicalize(self.to_signing_dict()))
        return self

    def verify_signature(self, public_key_hex: Optional[str] = None) -> bool:
        if not self.signature:
            return False
        return EventSigner.verify_detached(
            canonicalize(self.to_signing_dict()),
            self.signature,
            public_key_hex or self.signer,
        )

    def verify_chain(self, prev: Optional["DropEvent"]) -> bool:
        return self.prev_hash == DropEvent.chain_hash(prev)


def _is_hex(value: Any, length: int) -> bool:
    if not isinstance(value, str) or len(value) != length:
        return False
    try:
        bytes.fromhex(value)
    except ValueError:
        return False
    return True
