"""
Configuration and runtime wiring for dropmint.

A drop is described by one YAML file:

    name: my-drop
    chain_id: 1
    token: "0x..."
    event_log_path: .dropmint/events.jsonl
    key_path: .dropmint/event_signer.pem
    drop:
      creator_payouts:
        - {payout_address: "0x...", basis_points: 10000}
      allowed_callers: ["0x..."]
      public_stages:
        0: {start_price: 100, end_price: 100, start_time: 0, ...}

The optional `drop:` section is replayed through the registry's own
operations, so file-based setup gets the same validation and events
as live administration.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from dropmint.collaborators import DelegationOracle, MintStatsReader, OwnershipOracle
from dropmint.core.crypto import EventSigner
from dropmint.core.exceptions import ConfigError
from dropmint.core.models import (
    CreatorPayout,
    DropStage,
    ItemType,
    SignedMintBounds,
    to_address,
)
from dropmint.core.time import Clock, unix_now
from dropmint.ledger.log import EventLog
from dropmint.offerer import DropMintOfferer
from dropmint.proofs.typed_data import SigningDomain
from dropmint.registry.stage_registry import StageRegistry


@dataclass
class DropConfig:
    name:               str
    chain_id:           int
    token:              str
    version:            str                = "1.0"
    verifying_contract: Optional[str]      = None
    item_type:          ItemType           = ItemType.ERC1155
    event_log_path:     Optional[Path]     = None
    key_path:           Optional[Path]     = None
    drop:               Dict[str, Any]     = None

    @property
    def domain(self) -> SigningDomain:
        return SigningDomain(
            name=               self.name,
            version=            self.version,
            chain_id=           self.chain_id,
            verifying_contract= self.verifying_contract or self.token,
        )

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "DropConfig":
        missing = [k for k in ("name", "chain_id", "token") if k not in data]
        if missing:
            raise ConfigError("Drop config is missing required keys", {"missing": missing})

        item_type = data.get("item_type", ItemType.ERC1155.name)
        if isinstance(item_type, str):
            try:
                item_type = ItemType[item_type.upper()]
            except KeyError:
                raise ConfigError(
                    "Unknown item type",
                    {"item_type": item_type, "known": [t.name for t in ItemType]},
                ) from None

        return DropConfig(
            name=               str(data["name"]),
            chain_id=           int(data["chain_id"]),
            token=              to_address(data["token"]),
            version=            str(data.get("version", "1.0")),
            verifying_contract= data.get("verifying_contract"),
            item_type=          ItemType(item_type),
            event_log_path=     _optional_path(data.get("event_log_path")),
            key_path=           _optional_path(data.get("key_path")),
            drop=               data.get("drop") or {},
        )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "DropConfig":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ConfigError("Drop config must be a mapping", {"path": str(path)})
        return cls.from_dict(data)


def apply_drop_section(registry: StageRegistry, section: Dict[str, Any]) -> None:
    """Replay a `drop:` config section through the registry."""
    if not section:
        return

    if "creator_payouts" in section:
        registry.update_creator_payouts(
            CreatorPayout.from_dict(p) for p in section["creator_payouts"]
        )

    for address in section.get("allowed_callers", []):
        registry.update_allowed_caller(address, True)
    for address in section.get("fee_recipients", []):
        registry.update_allowed_fee_recipient(address, True)
    for address in section.get("payers", []):
        registry.update_payer(address, True)

    for index, stage in (section.get("public_stages") or {}).items():
        registry.upsert_public_stage(int(index), DropStage.from_dict(stage))
    for token, stage in (section.get("token_gated_stages") or {}).items():
        registry.upsert_token_gated_stage(token, DropStage.from_dict(stage))
    for signer, bounds in (section.get("signers") or {}).items():
        registry.upsert_signer_bounds(signer, SignedMintBounds.from_dict(bounds))

    allow_list = section.get("allow_list")
    if allow_list:
        registry.set_allow_list_root(
            bytes.fromhex(str(allow_list["root"]).removeprefix("0x")),
            public_key_uris= allow_list.get("public_key_uris", ()),
            allow_list_uri=  allow_list.get("allow_list_uri", ""),
        )

    if "drop_uri" in section:
        registry.update_drop_uri(section["drop_uri"])


@dataclass
class DropRuntime:
    """Everything needed to serve one drop, wired from a DropConfig."""

    config:   DropConfig
    signer:   EventSigner
    events:   EventLog
    registry: StageRegistry
    offerer:  DropMintOfferer

    @classmethod
    def from_config(
        cls,
        config:     DropConfig,
        mint_stats: MintStatsReader,
        ownership:  Optional[OwnershipOracle]  = None,
        delegation: Optional[DelegationOracle] = None,
        clock:      Clock                      = unix_now,
    ) -> "DropRuntime":
        if config.key_path and config.key_path.exists():
            signer = EventSigner.from_file(config.key_path)
        else:
            signer = EventSigner.generate()
            if config.key_path:
                signer.save(config.key_path)

        events   = EventLog(signer=signer, log_path=config.event_log_path)
        registry = StageRegistry(events=events)
        apply_drop_section(registry, config.drop)

        offerer = DropMintOfferer(
            token=      config.token,
            registry=   registry,
            mint_stats= mint_stats,
            domain=     config.domain,
            ownership=  ownership,
            delegation= delegation,
            item_type=  config.item_type,
            clock=      clock,
            name=       config.name,
        )
        return cls(
            config=   config,
            signer=   signer,
            events=   events,
            registry= registry,
            offerer=  offerer,
        )

    def __repr__(self) -> str:
        return f"DropRuntime(name={self.config.name!r}, events={len(self.events)})"


def _optional_path(value: Any) -> Optional[Path]:
    return Path(value) if value else None
