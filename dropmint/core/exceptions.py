"""
dropmint Exception Hierarchy

All exceptions inherit from DropMintError for easy catching.
Each concrete class names exactly one cause; its parameters
travel in ``details`` so callers can assert on them.
"""


class DropMintError(Exception):
    """Base exception for all dropmint errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


# ── Decode ────────────────────────────────────────────────────

class DecodeError(DropMintError):
    """Raised when a mint claim or context payload is malformed"""
    pass


class InvalidClaim(DecodeError):
    """Raised when the minimum-received claim is not a single own-token item"""
    pass


class UnsupportedVersion(DecodeError):
    """Raised when the context version tag is not supported"""
    pass


class UnsupportedSubstandard(DecodeError):
    """Raised when the substandard tag is unknown"""
    pass


class TruncatedPayload(DecodeError):
    """Raised when the context payload is shorter than its layout requires"""
    pass


class MalformedPayload(DecodeError):
    """Raised when a fixed-width field carries bits outside its type"""
    pass


class TokenIdAmountMismatch(DecodeError):
    """Raised when token-gated ids and amounts differ in length"""
    pass


class QuantityMismatch(DecodeError):
    """Raised when redemption amounts do not add up to the claimed quantity"""
    pass


# ── Config ────────────────────────────────────────────────────

class ConfigError(DropMintError):
    """Raised when drop configuration is invalid"""
    pass


class InvalidFeeBps(ConfigError):
    """Raised when a fee exceeds 10,000 basis points"""
    pass


class InvalidSignerBounds(ConfigError):
    """Raised when signer validation bounds are inconsistent"""
    pass


class InvalidStageIndex(ConfigError):
    """Raised when a stage carries an index reserved for another stage kind"""
    pass


class MissingRedemptionCap(ConfigError):
    """Raised when a token-gated stage has no per-token redemption cap"""
    pass


class InvalidCreatorPayouts(ConfigError):
    """Raised when creator payout shares do not sum to 10,000 basis points"""
    pass


class CreatorPayoutsNotSet(ConfigError):
    """Raised when a paid mint has no creator payouts configured"""
    pass


class ZeroAddress(ConfigError):
    """Raised when the zero address is given where it is forbidden"""
    pass


class AlreadyPresent(ConfigError):
    """Raised when adding a member that is already present"""
    pass


class NotPresent(ConfigError):
    """Raised when removing a member or key that is not present"""
    pass


# ── Authorization ─────────────────────────────────────────────

class AuthorizationError(DropMintError):
    """Raised when a mint intent is not authorized"""
    pass


class InvalidCaller(AuthorizationError):
    """Raised when the upstream caller is not an allowed settlement protocol"""
    pass


class StageNotFound(AuthorizationError):
    """Raised when the referenced stage is not configured"""
    pass


class InvalidProof(AuthorizationError):
    """Raised when an allow-list proof does not verify against the root"""
    pass


class InvalidSignature(AuthorizationError):
    """Raised when a signature cannot be recovered"""
    pass


class SignatureAlreadyUsed(AuthorizationError):
    """Raised when a signed mint digest has already been consumed"""
    pass


class UntrustedSigner(AuthorizationError):
    """Raised when the recovered signer has no validation bounds"""
    pass


class SignedBoundsViolation(AuthorizationError):
    """Raised when a signed stage falls outside its signer's bounds"""
    pass


class InvalidSignedPaymentAsset(SignedBoundsViolation):
    pass


class InvalidSignedPrice(SignedBoundsViolation):
    pass


class InvalidSignedMaxPerWallet(SignedBoundsViolation):
    pass


class InvalidSignedStartTime(SignedBoundsViolation):
    pass


class InvalidSignedEndTime(SignedBoundsViolation):
    pass


class InvalidSignedMaxSupplyForStage(SignedBoundsViolation):
    pass


class InvalidSignedFeeBps(SignedBoundsViolation):
    pass


class SignedMintsMustRestrictFeeRecipients(SignedBoundsViolation):
    pass


class NotTokenOwner(AuthorizationError):
    """Raised when the minter does not own a redeemed companion token"""
    pass


class TokenRedemptionCapExceeded(AuthorizationError):
    """Raised when a companion token would be redeemed past its cap"""
    pass


# ── Eligibility ───────────────────────────────────────────────

class EligibilityError(DropMintError):
    """Raised when an authorized mint is not eligible right now"""
    pass


class StageNotActive(EligibilityError):
    """Raised when the current time is outside the stage window"""
    pass


class PayerNotAllowed(EligibilityError):
    """Raised when the payer may not pay on behalf of the minter"""
    pass


class WalletCapExceeded(EligibilityError):
    """Raised when the minter would exceed the stage's per-wallet cap"""
    pass


class MaxSupplyExceeded(EligibilityError):
    """Raised when the mint would exceed the token's maximum supply"""
    pass


class StageSupplyExceeded(EligibilityError):
    """Raised when the mint would exceed the stage's supply cap"""
    pass


class FeeRecipientIsZero(EligibilityError):
    """Raised when the fee recipient is the zero address"""
    pass


class FeeRecipientNotAllowed(EligibilityError):
    """Raised when a restricted stage gets an unlisted fee recipient"""
    pass


class ReentrantMint(EligibilityError):
    """Raised when a mint is entered while another is in flight"""
    pass


# ── Event log ─────────────────────────────────────────────────

class EventLogError(DropMintError):
    """Raised when event log operations fail"""
    pass
