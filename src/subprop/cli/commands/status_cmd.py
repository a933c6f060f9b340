"""Status command - show the table of the most recent persisted run."""

from pathlib import Path

import click

from subprop.cli.commands.common import resolve_work_dir
from subprop.cli.ensure import Ensure
from subprop.core.context import PropagateContext
from subprop.core.status_tracker import build_status_table


@click.command("status")
@click.option(
    "--work-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding the persisted runs.",
)
@click.pass_obj
def status_cmd(ctx: PropagateContext, work_dir: Path | None) -> None:
    """Show per-repository status of the most recent run."""
    state_path = Ensure.latest_state_path(resolve_work_dir(ctx, work_dir))
    state = Ensure.loaded_state(state_path)

    ctx.console.print(
        build_status_table(state.repo_order, state.repo_statuses, title=state.branch_name)
    )
    if state.associated_work_item is not None:
        ctx.console.print(f"Work item: {state.associated_work_item}")
    ctx.console.print(f"State: {state_path}")
