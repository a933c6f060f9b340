"""Order command - show the processing order for a set of root repositories."""

from pathlib import Path

import click

from subprop.cli.commands.common import resolve_ignore, resolve_work_dir
from subprop.cli.ensure import exit_with_error
from subprop.core.context import PropagateContext
from subprop.core.errors import PropagationInputError
from subprop.core.order_cache import resolve_processing_order
from subprop.core.repo_ref import parse_root_list
from subprop_shared.output.output import machine_output

# Clones made only to discover the order live here, next to the runs.
DISCOVERY_DIR_NAME = ".discovery"


@click.command("order")
@click.option("--roots", required=True, help="Comma-separated URLs of the root repositories.")
@click.option(
    "--work-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding clones made for discovery.",
)
@click.option("--ignore", multiple=True, help="Repository name to leave out (repeatable).")
@click.option("--no-cache", is_flag=True, help="Rediscover the processing order.")
@click.pass_obj
def order_cmd(
    ctx: PropagateContext,
    roots: str,
    work_dir: Path | None,
    ignore: tuple[str, ...],
    no_cache: bool,
) -> None:
    """Print the processing order, one "position<TAB>name<TAB>url" line per repository."""
    try:
        root_refs = parse_root_list(roots)
        if not root_refs:
            raise click.UsageError("--roots lists no repositories")
        order = resolve_processing_order(
            ctx.git,
            ctx.order_cache,
            roots=root_refs,
            ignore=resolve_ignore(ctx, ignore),
            clone_root=resolve_work_dir(ctx, work_dir) / DISCOVERY_DIR_NAME,
            use_cache=not no_cache,
        )
    except PropagationInputError as e:
        exit_with_error(str(e))
    except RuntimeError as e:
        exit_with_error(f"Could not discover the submodule graph: {e}")

    for position, name in enumerate(order.repo_order, start=1):
        machine_output(f"{position}\t{name}\t{order.repo_urls[name]}")
