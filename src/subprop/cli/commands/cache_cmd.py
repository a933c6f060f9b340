"""Cache commands - inspect or drop the cached processing order."""

import click

from subprop.core.context import PropagateContext
from subprop_shared.output.output import machine_output, user_output


@click.group("cache")
def cache_group() -> None:
    """Manage the cached processing order."""


@cache_group.command("show")
@click.pass_obj
def cache_show(ctx: PropagateContext) -> None:
    """Print the cached root list and processing order."""
    entry = ctx.order_cache.load()
    if entry is None:
        user_output(f"No cached order at {ctx.order_cache.path}")
        return

    machine_output("roots:")
    for url in entry.root_list:
        machine_output(f"  {url}")
    machine_output("order:")
    for position, name in enumerate(entry.repo_order, start=1):
        machine_output(f"  {position}\t{name}\t{entry.repo_urls[name]}")


@cache_group.command("clear")
@click.pass_obj
def cache_clear(ctx: PropagateContext) -> None:
    """Drop the cached processing order."""
    ctx.order_cache.clear()
    user_output(f"Cleared {ctx.order_cache.path}")
