"""
tests/test_event_log.py

Event log integrity: signatures, hash chain, persistence and replay.

  SIGNING
    Signature verifies over canonical bytes
    Amounts above 2^53 are bound exactly
    Mutating any signed field breaks the signature
    Wrong key cannot verify

  CHAIN
    First event chains to GENESIS_HASH
    Each event chains to SHA-256(JCS(previous signing dict))

  PERSISTENCE
    JSONL append and restore on reopen
    Corrupt last line warns and restarts at genesis

  REPLAY
    Tampering, gaps and forged signers are all reported
"""

import json
import warnings

import pytest

from dropmint.core.canonical import canonicalize
from dropmint.core.crypto import EventSigner
from dropmint.core.exceptions import EventLogError
from dropmint.ledger.events import GENESIS_HASH, DropEvent, EventType
from dropmint.ledger.log import EventLog
from dropmint.ledger.replay import load_events, verify_event_log, verify_events


@pytest.fixture
def signer():
    return EventSigner.generate()


def emit_n(log: EventLog, n: int) -> None:
    for i in range(n):
        log.emit(EventType.DROP_URI_UPDATED, {"old": str(i), "new": str(i + 1)})


def rewrite(path, mutate) -> None:
    lines = [json.loads(l) for l in path.read_text().splitlines() if l.strip()]
    mutate(lines)
    path.write_text("".join(json.dumps(l) + "\n" for l in lines))


class TestSigning:

    def test_signed_event_verifies(self, signer):
        event = EventLog(signer=signer).emit(EventType.PAYER_UPDATED, {"payer": "x"})
        assert event.verify_signature()
        assert event.verify_signature(signer.public_key_hex)

    @pytest.mark.parametrize("field, value", [
        ("payload",    {"payer": "tampered"}),
        ("event_type", EventType.MINT_RECORDED),
        ("timestamp",  "2000-01-01T00:00:00.000Z"),
        ("sequence",   99),
        ("nonce",      "0" * 32),
    ])
    def test_mutation_breaks_signature(self, signer, field, value):
        event = EventLog(signer=signer).emit(EventType.PAYER_UPDATED, {"payer": "x"})
        setattr(event, field, value)
        assert not event.verify_signature()

    def test_wrong_key(self, signer):
        event = EventLog(signer=signer).emit(EventType.PAYER_UPDATED, {})
        assert not event.verify_signature(EventSigner.generate().public_key_hex)

    def test_unknown_event_type_rejected(self, signer):
        with pytest.raises(ValueError):
            EventLog(signer=signer).emit("stage_exploded", {})

    def test_non_dict_payload_rejected(self, signer):
        with pytest.raises(TypeError):
            EventLog(signer=signer).emit(EventType.PAYER_UPDATED, ["x"])


    def test_large_integers_are_exact(self):
        a = canonicalize({"unit_price": 10**18 + 1})
        b = canonicalize({"unit_price": 10**18 + 7})
        assert a != b
        assert b"1000000000000000001" in a

    def test_small_integers_stay_numbers(self):
        assert canonicalize({"quantity": 3, "ok": True}) == b'{"ok":true,"quantity":3}'


class TestChain:

    def test_genesis_and_links(self, signer):
        log = EventLog(signer=signer)
        emit_n(log, 3)
        first, second, third = log.events()

        assert first.prev_hash == GENESIS_HASH
        assert second.verify_chain(first)
        assert third.prev_hash == DropEvent.chain_hash(second)
        assert not third.verify_chain(first)

    def test_stats_track_head(self, signer):
        log = EventLog(signer=signer)
        assert log.get_stats()["head_hash"] == GENESIS_HASH
        emit_n(log, 2)
        stats = log.get_stats()
        assert stats["next_sequence"] == 2
        assert stats["head_hash"] == DropEvent.chain_hash(log.events()[-1])

    def test_filter_by_type(self, signer):
        log = EventLog(signer=signer)
        emit_n(log, 2)
        log.emit(EventType.PAYER_UPDATED, {})
        assert len(log.events(EventType.PAYER_UPDATED)) == 1
        assert len(log) == 3


class TestPersistence:

    def test_appends_jsonl(self, tmp_path, signer):
        path = tmp_path / "events.jsonl"
        emit_n(EventLog(signer=signer, log_path=path), 3)
        assert len(path.read_text().splitlines()) == 3
        assert verify_event_log(path).valid

    def test_reopen_continues_chain(self, tmp_path, signer):
        path = tmp_path / "events.jsonl"
        emit_n(EventLog(signer=signer, log_path=path), 2)

        reopened = EventLog(signer=signer, log_path=path)
        assert len(reopened) == 2
        emit_n(reopened, 1)

        summary = verify_event_log(path, signer.public_key_hex)
        assert summary.valid
        assert summary.total_events == 3

    def test_corrupt_tail_warns(self, tmp_path, signer):
        path = tmp_path / "events.jsonl"
        emit_n(EventLog(signer=signer, log_path=path), 1)
        with open(path, "a", encoding="utf-8") as f:
            f.write("{not json\n")

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            log = EventLog(signer=signer, log_path=path)
        assert any(issubclass(w.category, RuntimeWarning) for w in caught)
        assert len(log) == 0

    def test_write_failure_raises(self, tmp_path, signer):
        path = tmp_path / "events.jsonl"
        log = EventLog(signer=signer, log_path=path)
        path.mkdir()
        with pytest.raises(EventLogError):
            log.emit(EventType.PAYER_UPDATED, {})
        assert len(log) == 0


class TestReplay:

    @pytest.fixture
    def path(self, tmp_path, signer):
        path = tmp_path / "events.jsonl"
        emit_n(EventLog(signer=signer, log_path=path), 4)
        return path

    def test_clean_log(self, path, signer):
        summary = verify_event_log(path, signer.public_key_hex)
        assert summary.valid
        assert summary.valid_signatures == 4
        assert summary.event_type_counts == {EventType.DROP_URI_UPDATED: 4}
        assert summary.signers_seen == [signer.public_key_hex]

    def test_tampered_payload(self, path):
        def mutate(lines):
            lines[1]["payload"]["new"] = "ipfs://evil"
        rewrite(path, mutate)

        types = {v.violation_type for v in verify_event_log(path).violations}
        assert "invalid_signature" in types
        assert "chain_break" in types

    def test_tampered_large_amount(self, tmp_path, signer):
        path = tmp_path / "mints.jsonl"
        EventLog(signer=signer, log_path=path).emit(
            EventType.MINT_RECORDED, {"quantity": 1, "unit_price": 10**18 + 1}
        )

        def mutate(lines):
            lines[0]["payload"]["unit_price"] = 10**18 + 7
        rewrite(path, mutate)

        summary = verify_event_log(path, signer.public_key_hex)
        assert not summary.valid
        assert "invalid_signature" in {v.violation_type for v in summary.violations}

    def test_deleted_event(self, path):
        rewrite(path, lambda lines: lines.pop(2))
        types = {v.violation_type for v in verify_event_log(path).violations}
        assert {"sequence_gap", "chain_break"} <= types

    def test_foreign_signer(self, path):
        summary = verify_event_log(path, EventSigner.generate().public_key_hex)
        assert summary.invalid_signatures == 4
        assert not summary.valid

    def test_schema_violation(self, path):
        def mutate(lines):
            lines[0]["nonce"] = "short"
        rewrite(path, mutate)
        types = {v.violation_type for v in verify_event_log(path).violations}
        assert "schema" in types

    def test_missing_file(self, tmp_path):
        with pytest.raises(EventLogError):
            load_events(tmp_path / "absent.jsonl")

    def test_malformed_line(self, path):
        with open(path, "a", encoding="utf-8") as f:
            f.write("[1, 2]\n")
        with pytest.raises(EventLogError):
            load_events(path)

    def test_empty_log_is_valid(self):
        assert verify_events([]).valid
