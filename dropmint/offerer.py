"""
Mint offerer: the entry point the upstream settlement protocol calls.

    caller → decode context → strategy by substandard → price
           → eligibility validator → payout calculator → (offer, consideration)

preview_order() and generate_order() share one path; only the commit
flag differs. A mint either passes every check and lands all of its
effects, or raises and changes nothing.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

from dropmint.codec.context import SUPPORTED_VERSION, decode_context
from dropmint.collaborators import DelegationOracle, MintStatsReader, OwnershipOracle
from dropmint.core.exceptions import (
    DropMintError,
    InvalidCaller,
    ReentrantMint,
    UnsupportedSubstandard,
)
from dropmint.core.models import ItemType, ReceivedItem, SpentItem, Substandard, to_address
from dropmint.core.sets import RedemptionLedger, UsedAuthorizationSet
from dropmint.core.time import Clock, unix_now
from dropmint.proofs.strategies import (
    AllowListStrategy,
    MintStrategy,
    OpenStrategy,
    SignedMintStrategy,
    TokenGatedStrategy,
)
from dropmint.proofs.typed_data import SigningDomain
from dropmint.registry.stage_registry import StageRegistry
from dropmint.settlement.validator import EligibilityValidator

logger = logging.getLogger(__name__)


class OffererCommand(Enum):
    PREVIEW_ORDER  = "preview_order"
    GENERATE_ORDER = "generate_order"
    RATIFY_ORDER   = "ratify_order"
    GET_METADATA   = "get_metadata"


@dataclass(frozen=True)
class OrderResult:
    """What the settlement protocol gives out (offer) and collects (consideration)."""
    offer:         Tuple[SpentItem, ...]
    consideration: Tuple[ReceivedItem, ...]


class DropMintOfferer:
    """
    Authorizes, prices and settles mints of one token.

    The token-gated strategy is only available when an ownership oracle
    is supplied; without one, token-gated intents are rejected as an
    unsupported substandard.
    """

    def __init__(
        self,
        token:      str,
        registry:   StageRegistry,
        mint_stats: MintStatsReader,
        domain:     SigningDomain,
        ownership:  Optional[OwnershipOracle]  = None,
        delegation: Optional[DelegationOracle] = None,
        item_type:  ItemType                   = ItemType.ERC1155,
        clock:      Clock                      = unix_now,
        name:       str                        = "dropmint",
    ) -> None:
        self.token     = to_address(token)
        self.registry  = registry
        self.domain    = domain
        self.item_type = item_type
        self.clock     = clock
        self.name      = name

        self.used_authorizations = UsedAuthorizationSet()
        self.redemptions         = RedemptionLedger()

        self.validator = EligibilityValidator(
            registry=   registry,
            mint_stats= mint_stats,
            delegation= delegation,
        )

        self.strategies: Dict[Substandard, MintStrategy] = {
            Substandard.OPEN:       OpenStrategy(registry),
            Substandard.ALLOW_LIST: AllowListStrategy(registry),
            Substandard.SIGNED:     SignedMintStrategy(registry, self.used_authorizations, domain),
        }
        if ownership is not None:
            self.strategies[Substandard.TOKEN_GATED] = TokenGatedStrategy(
                registry, self.redemptions, ownership
            )

        self._entered = False

    # ── Settlement protocol interface ─────────────────────────

    def preview_order(
        self,
        caller:           str,
        fulfiller:        str,
        minimum_received: Sequence[SpentItem],
        context:          bytes,
    ) -> OrderResult:
        """Run every check and return the order without mutating anything."""
        return self._mint(caller, fulfiller, minimum_received, context, commit=False)

    def generate_order(
        self,
        caller:           str,
        fulfiller:        str,
        minimum_received: Sequence[SpentItem],
        context:          bytes,
    ) -> OrderResult:
        """Run every check, commit the mint's effects and return the order."""
        return self._mint(caller, fulfiller, minimum_received, context, commit=True)

    def ratify_order(self, *args: Any, **kwargs: Any) -> bool:
        """Post-settlement hook. Nothing is left to verify once the order ran."""
        return True

    def get_metadata(self) -> Dict[str, Any]:
        return {
            "name":         self.name,
            "token":        self.token,
            "version":      SUPPORTED_VERSION,
            "substandards": sorted(int(s) for s in self.strategies),
        }

    def handle(self, command: OffererCommand, **kwargs: Any) -> Any:
        """Route a command from the settlement protocol to its handler."""
        if command == OffererCommand.PREVIEW_ORDER:
            return self.preview_order(**kwargs)
        elif command == OffererCommand.GENERATE_ORDER:
            return self.generate_order(**kwargs)
        elif command == OffererCommand.RATIFY_ORDER:
            return self.ratify_order(**kwargs)
        elif command == OffererCommand.GET_METADATA:
            return self.get_metadata()
        raise ValueError(f"Unknown offerer command: {command!r}")

    # ── Internal ──────────────────────────────────────────────

    def _mint(
        self,
        caller:           str,
        fulfiller:        str,
        minimum_received: Sequence[SpentItem],
        context:          bytes,
        commit:           bool,
    ) -> OrderResult:
        if self._entered:
            raise ReentrantMint("Mint re-entered while another is in progress")

        self._entered = True
        try:
            if not self.registry.is_allowed_caller(caller):
                raise InvalidCaller("Caller is not an allowed settlement protocol",
                                    {"caller": caller})

            fulfiller = to_address(fulfiller)
            intent = decode_context(
                context, fulfiller, minimum_received, self.token, self.item_type
            )

            strategy = self.strategies.get(intent.substandard)
            if strategy is None:
                raise UnsupportedSubstandard(
                    "Substandard not enabled", {"substandard": int(intent.substandard)}
                )

            resolved = strategy.resolve(intent, self.clock())

            obligations = self.validator.validate(
                fee_recipient= intent.fee_recipient,
                payer=         fulfiller,
                minter=        intent.minter,
                quantity=      resolved.quantity,
                price=         resolved.price,
                stage=         resolved.stage,
                with_effects=  commit,
                effects=       resolved.effects,
            )
        except DropMintError as exc:
            logger.debug("mint rejected (%s): %s", type(exc).__name__, exc)
            raise
        finally:
            self._entered = False

        return OrderResult(
            offer=         tuple(minimum_received),
            consideration= tuple(o.to_received_item() for o in obligations),
        )
