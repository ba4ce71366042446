"""
dropmint/__init__.py

dropmint: a mint engine for a contract offerer.

An upstream settlement protocol asks the offerer to price and
authorize a mint. The offerer decodes the authorization context,
checks it against the drop's configured stages (open, allow-list,
token-gated or signed), enforces supply and wallet caps, and returns
the payments the settlement layer must collect. Every configuration
change and committed mint lands in a signed, hash-chained event log.
"""

__version__ = "0.3.0"

from dropmint.core.exceptions import (
    AuthorizationError,
    ConfigError,
    DecodeError,
    DropMintError,
    EligibilityError,
    EventLogError,
)
from dropmint.core.models import (
    CreatorPayout,
    DropStage,
    ItemType,
    MintIntent,
    MintStats,
    PaymentObligation,
    ReceivedItem,
    SignedMintBounds,
    SpentItem,
    Substandard,
)
from dropmint.config import DropConfig, DropRuntime, apply_drop_section
from dropmint.ledger import EventLog, EventType, verify_event_log
from dropmint.offerer import DropMintOfferer, OffererCommand, OrderResult
from dropmint.registry import StageRegistry

__all__ = [
    # Engine
    "DropMintOfferer",
    "OffererCommand",
    "OrderResult",
    "StageRegistry",
    "EventLog",
    "EventType",
    "verify_event_log",
    # Configuration
    "DropConfig",
    "DropRuntime",
    "apply_drop_section",
    # Models
    "CreatorPayout",
    "DropStage",
    "ItemType",
    "MintIntent",
    "MintStats",
    "PaymentObligation",
    "ReceivedItem",
    "SignedMintBounds",
    "SpentItem",
    "Substandard",
    # Errors
    "DropMintError",
    "DecodeError",
    "ConfigError",
    "AuthorizationError",
    "EligibilityError",
    "EventLogError",
]
