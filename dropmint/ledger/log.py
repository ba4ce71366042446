"""
dropmint/ledger/log.py

Append-only event log.

emit() MUST, in this order:
  1. Acquire lock
  2. Create the envelope chained onto the last one
  3. Sign it
  4. Append to the JSONL file (when the log is persistent)
  5. Advance in-memory state, only after the write succeeded
  6. Return the signed envelope

A log without a path keeps everything in memory; the registry and
the offerer use it by default.
"""

import json
import logging
import threading
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from dropmint.core.crypto import EventSigner
from dropmint.core.exceptions import EventLogError
from dropmint.ledger.events import DropEvent, GENESIS_HASH

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    """Anything that accepts drop events."""

    def emit(self, event_type: str, payload: Dict[str, Any]) -> Any:
        ...


class EventLog:
    """
    Signed, hash-chained event log.

    Thread-safe within one process. A persistent log restores its
    sequence and chain head from the last line of the file on open.
    """

    def __init__(
        self,
        signer:   Optional[EventSigner]      = None,
        log_path: Optional[Union[str, Path]] = None,
    ) -> None:
        self.signer = signer or EventSigner.generate()

        self._lock:     threading.Lock     = threading.Lock()
        self._events:   List[DropEvent]    = []
        self._sequence: int                = 0
        self._last:     Optional[DropEvent] = None

        self._log_file: Optional[Path] = Path(log_path) if log_path else None
        if self._log_file is not None:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
            self._restore_state()

    # ── Public API ────────────────────────────────────────────

    def emit(self, event_type: str, payload: Dict[str, Any]) -> DropEvent:
        """
        Record one event. Raises EventLogError on write failure; state
        does not advance in that case.
        """
        with self._lock:
            event = DropEvent.create(
                event_type= event_type,
                sequence=   self._sequence,
                signer=     self.signer.public_key_hex,
                payload=    payload,
                prev=       self._last,
            ).sign(self.signer)

            if self._log_file is not None:
                self._append(event)

            self._events.append(event)
            self._sequence += 1
            self._last      = event

        logger.debug("event %d %s", event.sequence, event_type)
        return event

    def events(self, event_type: Optional[str] = None) -> List[DropEvent]:
        """Events emitted through this instance, optionally filtered by type."""
        with self._lock:
            if event_type is None:
                return list(self._events)
            return [e for e in self._events if e.event_type == event_type]

    def get_stats(self) -> Dict[str, Any]:
        return {
            "next_sequence": self._sequence,
            "head_hash":     DropEvent.chain_hash(self._last) if self._last else GENESIS_HASH,
            "signer":        self.signer.public_key_hex,
            "log_file":      str(self._log_file) if self._log_file else None,
        }

    def __len__(self) -> int:
        return self._sequence

    # ── Internal ──────────────────────────────────────────────

    def _restore_state(self) -> None:
        """
        Pick up sequence and chain head from an existing file. A corrupt
        last line leaves state at genesis and issues a RuntimeWarning.
        """
        if not self._log_file.exists():
            return

        last_line = None
        with open(self._log_file, "r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    last_line = line.strip()

        if not last_line:
            return

        try:
            event  = DropEvent.from_dict(json.loads(last_line))
            errors = event.validate_schema()
            if errors:
                raise ValueError(f"schema violation in last line: {errors}")
        except (ValueError, KeyError, TypeError) as exc:
            warnings.warn(
                f"EventLog: could not restore state from {self._log_file}: {exc}. "
                "Run `dropmint verify` before emitting.",
                RuntimeWarning,
                stacklevel=3,
            )
            return

        self._sequence = event.sequence + 1
        self._last     = event

    def _append(self, event: DropEvent) -> None:
        try:
            with open(self._log_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(event.to_dict()) + "\n")
        except OSError as exc:
            raise EventLogError(
                "Event log write failed", {"path": str(self._log_file), "error": str(exc)}
            ) from exc
