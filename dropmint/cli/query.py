"""
dropmint/cli/query.py

Read-only helpers for operators:

    dropmint price <config.yaml> --index N [--at UNIX]
    dropmint decode <hex> [--fulfiller ADDR] [--quantity N]

Both exit 2 on configuration or decoding errors.
"""

import json
import sys
from typing import Optional

import click

from dropmint.codec.context import decode_context
from dropmint.config import DropConfig, apply_drop_section
from dropmint.core.exceptions import DropMintError
from dropmint.core.models import ZERO_ADDRESS, ItemType, SpentItem
from dropmint.core.time import unix_now
from dropmint.ledger.log import EventLog
from dropmint.pricing import current_price
from dropmint.registry.stage_registry import StageRegistry


@click.command(name="price")
@click.argument("config", type=click.Path(exists=True, dir_okay=False))
@click.option("--index", type=int, required=True, help="Public stage index.")
@click.option("--at", "at", type=int, default=None, metavar="UNIX",
              help="Unix time to price at. Defaults to now.")
def price_command(config: str, index: int, at: Optional[int]) -> None:
    """Print the unit price of a configured public stage."""
    at = unix_now() if at is None else at
    try:
        drop = DropConfig.from_yaml(config)
        # Throwaway in-memory log: pricing must not append to the drop's real log.
        registry = StageRegistry(events=EventLog())
        apply_drop_section(registry, drop.drop)

        stage = registry.public_stage(index)
        if stage is None:
            click.echo(f"error: no public stage at index {index}", err=True)
            sys.exit(2)
        price = current_price(stage, at)
    except DropMintError as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(2)

    click.echo(json.dumps({
        "index":         index,
        "at":            at,
        "price":         price,
        "payment_asset": stage.payment_asset,
    }))


@click.command(name="decode")
@click.argument("payload", type=str)
@click.option("--fulfiller", default=ZERO_ADDRESS, show_default=True,
              help="Address substituted when the payload's minter is zero.")
@click.option("--quantity", default=1, show_default=True, type=int,
              help="Quantity of the claim the payload accompanies.")
def decode_command(payload: str, fulfiller: str, quantity: int) -> None:
    """Decode a hex context payload and print the mint intent as JSON."""
    try:
        context = bytes.fromhex(payload.removeprefix("0x"))
    except ValueError:
        click.echo("error: payload is not valid hex", err=True)
        sys.exit(2)

    claim = [SpentItem(ItemType.ERC1155, ZERO_ADDRESS, 0, quantity)]
    try:
        intent = decode_context(context, fulfiller, claim, ZERO_ADDRESS, ItemType.ERC1155)
    except DropMintError as exc:
        click.echo(f"error: {type(exc).__name__}: {exc}", err=True)
        sys.exit(2)

    click.echo(json.dumps(intent.to_dict(), indent=2))
