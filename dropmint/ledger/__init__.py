"""
dropmint Event Log - signed, hash-chained record of every drop event

Registry updates and committed mints land here. The log is the
audit trail an operator exports and checks with `dropmint verify`.
"""

from dropmint.ledger.events import DropEvent, EventType, GENESIS_HASH
from dropmint.ledger.log import EventLog, EventSink
from dropmint.ledger.replay import ReplaySummary, verify_event_log

__all__ = [
    "DropEvent",
    "EventType",
    "EventLog",
    "EventSink",
    "GENESIS_HASH",
    "ReplaySummary",
    "verify_event_log",
]
