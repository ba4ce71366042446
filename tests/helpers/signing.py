"""Server-side signing of mint authorizations, as a drop's backend would do it."""

from eth_account import Account

from dropmint.core.models import DropStage
from dropmint.proofs.typed_data import SigningDomain, signable_message


def sign_mint(
    private_key:   bytes,
    domain:        SigningDomain,
    minter:        str,
    fee_recipient: str,
    stage:         DropStage,
    salt:          bytes,
) -> bytes:
    """65-byte r ‖ s ‖ v signature over the SignedMint typed data."""
    message = signable_message(domain, minter, fee_recipient, stage, salt)
    return bytes(Account.sign_message(message, private_key).signature)
