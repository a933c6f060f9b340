"""Propagate command - update submodules through the whole dependency graph."""

from pathlib import Path

import click

from subprop.cli.commands.common import resolve_ignore, resolve_work_dir
from subprop.cli.ensure import Ensure, exit_with_error
from subprop.core.context import PropagateContext
from subprop.core.errors import PropagationInputError
from subprop.core.orchestrator import (
    PropagationOrchestrator,
    PropagationResult,
    PropagationSettings,
    default_branch_name,
)
from subprop.core.repo_ref import parse_root_list


@click.command("propagate")
@click.option("--roots", help="Comma-separated URLs of the root repositories.")
@click.option("--resume", is_flag=True, help="Resume the most recent persisted run.")
@click.option(
    "--poll-interval",
    type=click.FloatRange(min=0),
    help="Seconds between check status polls.",
)
@click.option(
    "--timeout-minutes",
    type=click.FloatRange(min=0),
    help="Minutes to wait for one review request to finish.",
)
@click.option(
    "--close-failed/--no-close-failed",
    default=None,
    help="Close or abandon the review request of a failed repository.",
)
@click.option(
    "--work-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding clones and state of each run.",
)
@click.option("--branch-name", help="Topic branch name (default: new_deps_<timestamp>).")
@click.option("--work-item", help="Work item linked to every review request.")
@click.option("--ignore", multiple=True, help="Repository name to leave alone (repeatable).")
@click.option("--no-cache", is_flag=True, help="Rediscover the processing order.")
@click.option("--dry-run", is_flag=True, help="Print mutating actions instead of running them.")
@click.pass_obj
def propagate_cmd(
    ctx: PropagateContext,
    roots: str | None,
    resume: bool,
    poll_interval: float | None,
    timeout_minutes: float | None,
    close_failed: bool | None,
    work_dir: Path | None,
    branch_name: str | None,
    work_item: str | None,
    ignore: tuple[str, ...],
    no_cache: bool,
    dry_run: bool,
) -> None:
    """Update submodule pins leaf-first, one merged review request at a time.

    Every repository reachable from the roots is processed in dependency
    order: its submodules are pinned to the commits merged so far, a review
    request is opened, and the run waits for it to merge before moving on.

    Exits with code 1 if any repository failed.
    """
    if roots is not None and resume:
        raise click.UsageError("--roots and --resume are mutually exclusive")
    if roots is None and not resume:
        raise click.UsageError("Provide --roots or --resume")

    if dry_run:
        ctx = ctx.as_dry_run()

    resolved_work_dir = resolve_work_dir(ctx, work_dir)
    settings = PropagationSettings(
        work_dir=resolved_work_dir,
        ignore=resolve_ignore(ctx, ignore),
        poll_interval=(
            poll_interval if poll_interval is not None else ctx.config.poll_interval_seconds
        ),
        timeout_minutes=(
            timeout_minutes if timeout_minutes is not None else ctx.config.timeout_minutes
        ),
        close_failed=close_failed if close_failed is not None else ctx.config.close_failed,
        commit_message=ctx.config.commit_message,
        use_cache=not no_cache,
    )
    orchestrator = PropagationOrchestrator(ctx, settings)

    result: PropagationResult
    try:
        if resume:
            result = orchestrator.resume(Ensure.latest_state_path(resolved_work_dir))
        else:
            assert roots is not None
            root_refs = parse_root_list(roots)
            if not root_refs:
                raise click.UsageError("--roots lists no repositories")
            result = orchestrator.start(
                root_refs,
                branch_name=branch_name or default_branch_name(ctx.time.now()),
                work_item=work_item,
            )
    except PropagationInputError as e:
        exit_with_error(str(e))

    if not result.success:
        raise SystemExit(1)
