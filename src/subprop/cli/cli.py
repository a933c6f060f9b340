import logging
from pathlib import Path

import click

from subprop.cli.commands.cache_cmd import cache_group
from subprop.cli.commands.close_failed_cmd import close_failed_cmd
from subprop.cli.commands.order_cmd import order_cmd
from subprop.cli.commands.propagate_cmd import propagate_cmd
from subprop.cli.commands.status_cmd import status_cmd
from subprop.cli.config import default_config_path, load_config
from subprop.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="subprop")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: ~/.subprop/config.toml)",
)
@click.pass_context
def cli(ctx: click.Context, debug: bool, config_path: Path | None) -> None:
    """Propagate dependency updates through a graph of git submodules."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(levelname)s - %(message)s")

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        config = load_config(config_path if config_path is not None else default_config_path())
        ctx.obj = create_context(config=config, dry_run=False)


cli.add_command(propagate_cmd)
cli.add_command(order_cmd)
cli.add_command(status_cmd)
cli.add_command(close_failed_cmd)
cli.add_command(cache_group)


def main() -> None:
    """CLI entry point used by the `subprop` console script."""
    cli()
