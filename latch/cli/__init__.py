"""
latch/cli/__init__.py

Latch CLI — root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    latch = "latch.cli:cli"

Adding a new command:
    1. Create latch/cli/your_command.py with a @click.command()
    2. Import it here
    3. cli.add_command(your_command)
"""

import logging

import click

from latch.cli.config import check_config_command
from latch.cli.rounds import rounds_command
from latch.cli.verify import verify_command


@click.group()
@click.version_option(package_name="latch")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level for library messages on stderr.",
)
def cli(log_level: str) -> None:
    """
    Latch — sealed-bid batch auction tooling.

    \b
    Commands:
      verify        Verify a market event log: sequence, chain, signatures.
      rounds        Summarize the rounds recorded in an event log.
      check-config  Validate a YAML market configuration.

    \b
    Quick start:
      latch verify market.jsonl
      latch rounds market.jsonl --market eth-usdc
      latch check-config market.yaml
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


cli.add_command(verify_command)
cli.add_command(rounds_command)
cli.add_command(check_config_command)
