"""Close-failed command - close the review requests of failed repositories."""

import logging
from dataclasses import replace
from pathlib import Path

import click

from subprop.cli.commands.common import resolve_work_dir
from subprop.cli.ensure import Ensure
from subprop.core.context import PropagateContext
from subprop.core.state import save_propagation_state
from subprop_shared.gateway.review_host.types import UnsupportedHostError
from subprop_shared.output.output import user_output

logger = logging.getLogger(__name__)


@click.command("close-failed")
@click.option(
    "--work-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding the persisted runs.",
)
@click.option("--dry-run", is_flag=True, help="Print what would be closed.")
@click.pass_obj
def close_failed_cmd(ctx: PropagateContext, work_dir: Path | None, dry_run: bool) -> None:
    """Close or abandon the review request of every failed repository.

    Applies to the most recent persisted run. Exits with code 1 if any
    review request could not be closed.
    """
    if dry_run:
        ctx = ctx.as_dry_run()

    state_path = Ensure.latest_state_path(resolve_work_dir(ctx, work_dir))
    state = Ensure.loaded_state(state_path)

    statuses = dict(state.repo_statuses)
    closed = 0
    errors = 0
    for name in state.repo_order:
        repo_status = statuses.get(name)
        if repo_status is None or repo_status.status != "failed":
            continue
        if repo_status.review_request_url is None:
            continue

        try:
            host = ctx.review_hosts.for_url(state.repo_urls[name])
            host.close_or_abandon(repo_status.review_request_url)
        except (UnsupportedHostError, RuntimeError, ValueError) as e:
            user_output(click.style("Error: ", fg="red") + f"{name}: {e}")
            errors += 1
            continue

        closed += 1
        user_output(f"Closed {repo_status.review_request_url} ({name})")
        if not ctx.dry_run:
            statuses[name] = replace(repo_status, message=f"{repo_status.message} (closed)")

    if closed and not ctx.dry_run:
        save_propagation_state(state_path, replace(state, repo_statuses=statuses))
    if closed == 0 and errors == 0:
        user_output("No failed review requests to close")
    if errors:
        raise SystemExit(1)
