"""
dropmint/ledger/replay.py

Offline verification of an exported event log.

Checks, per line:
    1. Schema    → event.validate_schema()
    2. Sequence  → strictly 0, 1, 2, ...
    3. Chain     → event.verify_chain(prev)
    4. Signature → event.verify_signature()  (against an expected key if given)

Unparseable lines abort the replay with EventLogError; everything
else is collected as a ChainViolation so one pass reports all damage.
"""

import json
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from dropmint.core.exceptions import EventLogError
from dropmint.ledger.events import DropEvent


@dataclass
class ChainViolation:
    at_sequence:    int
    violation_type: str   # "schema" | "sequence_gap" | "chain_break" | "invalid_signature"
    detail:         str


@dataclass
class ReplaySummary:
    total_events:       int
    valid_signatures:   int
    invalid_signatures: int
    violations:         List[ChainViolation] = field(default_factory=list)
    event_type_counts:  Dict[str, int]       = field(default_factory=dict)
    signers_seen:       List[str]            = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.violations

    def to_dict(self) -> dict:
        return {
            "valid":              self.valid,
            "total_events":       self.total_events,
            "valid_signatures":   self.valid_signatures,
            "invalid_signatures": self.invalid_signatures,
            "event_type_counts":  self.event_type_counts,
            "signers_seen":       self.signers_seen,
            "violations": [
                {
                    "at_sequence":    v.at_sequence,
                    "violation_type": v.violation_type,
                    "detail":         v.detail,
                }
                for v in self.violations
            ],
        }


def load_events(path: Union[str, Path]) -> List[DropEvent]:
    path = Path(path)
    if not path.exists():
        raise EventLogError("Event log not found", {"path": str(path)})

    events: List[DropEvent] = []
    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                events.append(DropEvent.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError, TypeError) as exc:
                raise EventLogError(
                    "Malformed event log line", {"line": line_num, "error": str(exc)}
                ) from exc
    return events


def verify_events(
    events:         List[DropEvent],
    public_key_hex: Optional[str] = None,
) -> ReplaySummary:
    violations: List[ChainViolation] = []
    valid_sigs = 0
    signers: List[str] = []
    prev: Optional[DropEvent] = None

    for position, event in enumerate(events):
        for error in event.validate_schema():
            violations.append(ChainViolation(position, "schema", error))

        if event.sequence != position:
            violations.append(ChainViolation(
                position, "sequence_gap",
                f"expected sequence {position}, got {event.sequence}",
            ))

        if not event.verify_chain(prev):
            violations.append(ChainViolation(
                position, "chain_break",
                f"prev_hash ...{event.prev_hash[-12:]} does not match predecessor",
            ))

        if event.verify_signature(public_key_hex):
            valid_sigs += 1
        else:
            violations.append(ChainViolation(
                position, "invalid_signature", "signature does not verify",
            ))

        if event.signer not in signers:
            signers.append(event.signer)
        prev = event

    return ReplaySummary(
        total_events=       len(events),
        valid_signatures=   valid_sigs,
        invalid_signatures= len(events) - valid_sigs,
        violations=         violations,
        event_type_counts=  dict(Counter(e.event_type for e in events)),
        signers_seen=       signers,
    )


def verify_event_log(
    path:           Union[str, Path],
    public_key_hex: Optional[str] = None,
) -> ReplaySummary:
    """Load and verify a JSONL event log in one call."""
    return verify_events(load_events(path), public_key_hex)
