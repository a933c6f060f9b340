"""Option resolution shared by several commands."""

from collections.abc import Sequence
from pathlib import Path

from subprop.core.context import PropagateContext


def resolve_work_dir(ctx: PropagateContext, work_dir: Path | None) -> Path:
    """--work-dir, else the configured work_dir, else the current directory."""
    if work_dir is not None:
        return work_dir
    if ctx.config.work_dir is not None:
        return ctx.config.work_dir
    return ctx.cwd


def resolve_ignore(ctx: PropagateContext, ignore: Sequence[str]) -> frozenset[str]:
    """Configured ignore list extended by repeatable --ignore options."""
    return frozenset(ctx.config.ignore) | frozenset(name.strip() for name in ignore if name.strip())
