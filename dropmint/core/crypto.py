"""
dropmint/core/crypto.py

Ed25519 key manager for the event log.

The log signer is the engine's own identity: every event envelope is
signed with it so an exported log can be checked offline against one
public key. Signed mint authorizations are a separate scheme
(secp256k1 / EIP-712, see dropmint.proofs.typed_data).

    EventSigner.generate()                         → new random key
    EventSigner.from_file(path)                    → load PEM private key
    EventSigner.from_private_bytes(seed)           → load raw 32-byte seed
    EventSigner.verify_detached(data, sig, hex)    → @staticmethod

    signer.public_key_hex   (@property) → 64-char lowercase hex
    signer.sign(data)                   → base64url str, no padding
    signer.save(path)                   → write PEM private key
"""

import base64
from pathlib import Path

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
    load_pem_private_key,
)


class EventSigner:
    """Holds the Ed25519 key that signs event envelopes."""

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private_key:    Ed25519PrivateKey = private_key
        self._public_key_hex: str = (
            private_key.public_key()
            .public_bytes(Encoding.Raw, PublicFormat.Raw)
            .hex()
        )

    # ── Construction ──────────────────────────────────────────

    @classmethod
    def generate(cls) -> "EventSigner":
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_file(cls, path: Path) -> "EventSigner":
        """
        Load an Ed25519 private key from a PEM file.
        Raises FileNotFoundError if path does not exist.
        Raises ValueError if the file is not an Ed25519 PEM key.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Key file not found: {path}")
        private_key = load_pem_private_key(path.read_bytes(), password=None)
        if not isinstance(private_key, Ed25519PrivateKey):
            raise ValueError(f"Key file {path} does not contain an Ed25519 private key")
        return cls(private_key)

    @classmethod
    def from_private_bytes(cls, seed: bytes) -> "EventSigner":
        if len(seed) != 32:
            raise ValueError(f"Ed25519 seed must be 32 bytes, got {len(seed)}")
        return cls(Ed25519PrivateKey.from_private_bytes(seed))

    # ── Keys and signatures ───────────────────────────────────

    @property
    def public_key_hex(self) -> str:
        """64-character lowercase hex of the raw public key. A property, not a method."""
        return self._public_key_hex

    def sign(self, data: bytes) -> str:
        """Sign raw bytes. Returns base64url without '=' padding (86 chars)."""
        raw_sig = self._private_key.sign(data)
        return base64.urlsafe_b64encode(raw_sig).rstrip(b"=").decode("ascii")

    @staticmethod
    def verify_detached(data: bytes, signature_b64: str, public_key_hex: str) -> bool:
        """
        Verify a signature with only the signer's public key hex.

        Returns False for any malformed key, malformed signature or
        mismatch. Never raises.
        """
        if not isinstance(public_key_hex, str) or len(public_key_hex) != 64:
            return False
        if not isinstance(signature_b64, str):
            return False
        try:
            pub = Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key_hex))
            padded  = signature_b64 + "=" * (-len(signature_b64) % 4)
            raw_sig = base64.urlsafe_b64decode(padded)
        except ValueError:
            return False
        if len(raw_sig) != 64:
            return False
        try:
            pub.verify(raw_sig, data)
        except InvalidSignature:
            return False
        return True

    # ── Persistence ───────────────────────────────────────────

    def save(self, path: Path) -> None:
        """Write the private key as PKCS8 PEM, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(
            self._private_key.private_bytes(
                encoding=             Encoding.PEM,
                format=               PrivateFormat.PKCS8,
                encryption_algorithm= NoEncryption(),
            )
        )

    def __repr__(self) -> str:
        return f"EventSigner(public_key_hex={self._public_key_hex[:16]}...)"
