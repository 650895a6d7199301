"""
latch/cli/config.py

latch check-config — validate a YAML market configuration.

Exit codes:
    0  Config valid
    1  Config invalid
    2  File missing
"""

import json
import sys

import click

from latch.cli._style import Color, emit_error, header, row_fail, row_info, row_ok
from latch.core.exceptions import ConfigError
from latch.core.config import load_market_config


@click.command(name="check-config")
@click.argument("path", type=click.Path(exists=False))
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
)
@click.option("--no-color", is_flag=True, default=False, help="Disable ANSI color output.")
def check_config_command(path: str, fmt: str, no_color: bool) -> None:
    """
    Validate a market config file and print the effective settings.

    Defaults are filled in for every setting the file omits.
    """
    Color.configure(not no_color)

    try:
        config = load_market_config(path)
    except FileNotFoundError as e:
        emit_error(str(e), fmt, False, "latch_config")
        sys.exit(2)
    except ConfigError as e:
        if fmt == "json":
            click.echo(json.dumps({"latch_config": {"valid": False, "error": str(e)}}, indent=2))
        else:
            header("Market Config")
            click.echo(row_fail("Config", str(e)))
            click.echo()
        sys.exit(1)

    if fmt == "json":
        click.echo(json.dumps({"latch_config": {"valid": True, **config.to_dict()}}, indent=2))
        return

    header("Market Config")
    click.echo(row_ok("Config", f"{path} is valid"))
    click.echo(row_info("Market", config.market_id))
    click.echo(row_info("Admin", config.admin))
    click.echo(row_info("Penalty to", config.penalty_recipient))
    if config.pool is None:
        click.echo(row_info("Pool", "not configured"))
    else:
        for key, value in config.pool.to_dict().items():
            click.echo(row_info(f"pool.{key}", str(value)))
    click.echo()
    for key, value in config.settings.to_dict().items():
        click.echo(row_info(key, str(value)))
    click.echo()
