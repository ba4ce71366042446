"""
dropmint/cli/verify.py

dropmint verify — event log verification
========================================

Usage:
    dropmint verify <log>                        Human output (default)
    dropmint verify <log> --format json          Machine-readable JSON
    dropmint verify <log> --public-key HEX       Require one signer
    dropmint verify <log> --quiet                Exit code only

Exit codes:
    0  Log fully valid  (schema + sequence + chain + signatures)
    1  Log has violations
    2  Error  (file missing, malformed line)
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from dropmint.core.exceptions import DropMintError
from dropmint.ledger.events import DropEvent
from dropmint.ledger.replay import ReplaySummary, load_events, verify_events

BAR = "─" * 60


def _row(label: str, value: str, ok: Optional[bool] = None) -> str:
    if ok is None:
        mark = "   "
    elif ok:
        mark = click.style("ok ", fg="green")
    else:
        mark = click.style("!! ", fg="red")
    return f"  {label:<14} {mark} {value}"


@click.command(name="verify")
@click.argument("log", type=click.Path(exists=False))
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format: human (default) or json (CI/automation).",
)
@click.option(
    "--public-key",
    type=str,
    default=None,
    metavar="HEX",
    help="Expected Ed25519 signer key. Events signed by any other key fail.",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress all output. Use exit code only (0=valid, 1=invalid, 2=error).",
)
def verify_command(
    log:        str,
    fmt:        str,
    public_key: Optional[str],
    quiet:      bool,
) -> None:
    """
    Verify a dropmint event log.

    LOG is the path to a .jsonl event log.
    """
    log_path = Path(log)

    try:
        events = load_events(log_path)
    except DropMintError as exc:
        _emit_error(str(exc), fmt, quiet)
        sys.exit(2)

    summary = verify_events(events, public_key)
    head    = DropEvent.chain_hash(events[-1]) if events else None

    if quiet:
        sys.exit(0 if summary.valid else 1)

    if fmt == "json":
        out = {"dropmint_verify": {"log": str(log_path), "head_hash": head, **summary.to_dict()}}
        click.echo(json.dumps(out, indent=2))
    else:
        _output_human(summary, log_path, head)

    sys.exit(0 if summary.valid else 1)


def _output_human(summary: ReplaySummary, log_path: Path, head: Optional[str]) -> None:
    by_type = {}
    for v in summary.violations:
        by_type.setdefault(v.violation_type, []).append(v)

    click.echo()
    click.echo(click.style("  dropmint · event log verification", bold=True))
    click.echo(f"  {BAR}")
    click.echo(_row("Log", str(log_path)))
    click.echo(_row("Events", f"{summary.total_events:,}"))
    click.echo(_row("Signers", ", ".join(s[:16] + "..." for s in summary.signers_seen) or "-"))
    click.echo()

    checks = [
        ("Schema",     "schema",            "all events well-formed"),
        ("Sequence",   "sequence_gap",      "no gaps"),
        ("Chain",      "chain_break",       "intact"),
        ("Signatures", "invalid_signature", f"{summary.valid_signatures:,} / {summary.total_events:,} valid"),
    ]
    for label, key, clean in checks:
        found = by_type.get(key, [])
        if found:
            click.echo(_row(label, click.style(f"{len(found)} violation(s)", fg="red"), ok=False))
        else:
            click.echo(_row(label, clean, ok=True))

    if summary.event_type_counts:
        counts = "  ".join(f"{k}: {n}" for k, n in sorted(summary.event_type_counts.items()))
        click.echo(_row("Event types", counts))
    if head:
        click.echo(_row("Chain head", head[:16] + "..." + head[-8:]))

    if summary.violations:
        click.echo(f"  {BAR}")
        for v in summary.violations:
            click.echo(f"  {v.at_sequence:>6}  {v.violation_type:<18}  {v.detail}")

    click.echo(f"  {BAR}")
    if summary.valid:
        click.echo(click.style("  VALID  ·  0 violations", fg="green", bold=True))
    else:
        n = len(summary.violations)
        click.echo(click.style(f"  INVALID  ·  {n} violation(s)", fg="red", bold=True))
    click.echo()


def _emit_error(msg: str, fmt: str, quiet: bool) -> None:
    if quiet:
        return
    if fmt == "json":
        click.echo(json.dumps({"dropmint_verify": {"error": msg}}, indent=2))
    else:
        click.echo(click.style(f"  error: {msg}", fg="red"), err=True)
