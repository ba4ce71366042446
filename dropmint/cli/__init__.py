"""
dropmint/cli/__init__.py

dropmint CLI — root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    dropmint = "dropmint.cli:cli"

Adding a new command:
    1. Create dropmint/cli/your_command.py with a @click.command()
    2. Import it here
    3. cli.add_command(your_command)
"""

import logging

import click

from dropmint.cli.query import decode_command, price_command
from dropmint.cli.verify import verify_command


@click.group()
@click.version_option(package_name="dropmint")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level for dropmint's own loggers.",
)
def cli(log_level: str) -> None:
    """
    dropmint — drop mint engine CLI.

    \b
    Commands:
      verify    Verify an event log: chain, sequence, signatures, schema.
      price     Show a public stage's current price from a drop config.
      decode    Decode an authorization context payload to JSON.

    \b
    Quick start:
      dropmint verify .dropmint/events.jsonl
      dropmint price drop.yaml --index 1 --at 1700000000
      dropmint decode 0x0000...
    """
    logging.basicConfig(
        level=  getattr(logging, log_level.upper()),
        format= "%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


cli.add_command(verify_command)
cli.add_command(price_command)
cli.add_command(decode_command)
