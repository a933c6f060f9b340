"""Waiting for the checks of a review request to reach a final result.

The poller knows nothing about review hosts: the caller passes functions that
fetch checks, render them and decide completion, plus the time gateway used
for sleeping and the deadline.
"""

import logging
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import timedelta

from rich.table import Table

from subprop_shared.gateway.review_host.types import (
    ACTIVE_CHECK_STATUSES,
    TERMINAL_CHECK_STATUSES,
    Check,
)
from subprop_shared.gateway.time.abc import Time

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Timeout"

CHECK_STATUS_STYLES = {
    "pending": "dim",
    "running": "yellow",
    "succeeded": "green",
    "failed": "red",
    "skipped": "cyan",
    "cancelled": "magenta",
    "unknown": "dim",
}


@dataclass(frozen=True)
class Completion:
    complete: bool
    success: bool
    message: str


@dataclass(frozen=True)
class PollOutcome:
    """Result of polling a review request.

    Attributes:
        success: Whether the checks finished successfully
        timed_out: Whether polling stopped because the deadline passed
        message: Human-readable detail ("Timeout" when timed out)
        checks: The last fetched checks
    """

    success: bool
    timed_out: bool
    message: str
    checks: tuple[Check, ...]


def evaluate_checks(checks: Sequence[Check]) -> Completion:
    """Decide whether a set of checks has finished, and whether it passed.

    A failed blocking check completes them as failed right away, even while
    other blocking checks (such as the merge check) are still pending.
    Otherwise they are complete once no blocking check is pending or running,
    and they passed unless every finished blocking check was cancelled without
    any succeeding.
    """
    if not checks:
        return Completion(complete=False, success=False, message="No checks reported yet")
    blocking = [c for c in checks if c.blocks]

    failed = [c.name for c in blocking if c.status == "failed"]
    if failed:
        return Completion(complete=True, success=False, message=f"Failed: {', '.join(failed)}")

    active = [c for c in blocking if c.status in ACTIVE_CHECK_STATUSES]
    if active:
        return Completion(
            complete=False,
            success=False,
            message=f"Waiting for {len(active)} blocking check(s)",
        )

    terminal = [c for c in blocking if c.status in TERMINAL_CHECK_STATUSES]
    succeeded = [c for c in terminal if c.status == "succeeded"]
    if terminal and not succeeded and all(c.status == "cancelled" for c in terminal):
        return Completion(complete=True, success=False, message="All checks were cancelled")

    return Completion(complete=True, success=True, message="All blocking checks passed")


def summarize_checks(checks: Sequence[Check]) -> str:
    counts = Counter(c.status for c in checks)
    return ", ".join(f"{count} {status}" for status, count in sorted(counts.items()))


def _format_duration(check: Check) -> str:
    if check.start_time is None or check.end_time is None:
        return "-"
    seconds = int((check.end_time - check.start_time).total_seconds())
    return str(timedelta(seconds=max(seconds, 0)))


def build_checks_table(checks: Sequence[Check], *, title: str | None = None) -> Table:
    table = Table(show_header=True, header_style="bold", title=title)
    table.add_column("check", style="cyan", no_wrap=True)
    table.add_column("status", no_wrap=True)
    table.add_column("blocking", no_wrap=True)
    table.add_column("duration", no_wrap=True)
    table.add_column("url")

    for check in checks:
        style = CHECK_STATUS_STYLES[check.status]
        table.add_row(
            check.name,
            f"[{style}]{check.status}[/{style}]",
            "yes" if check.blocks else "no",
            _format_duration(check),
            check.url or "-",
        )
    return table


def poll_until_complete(
    *,
    fetch: Callable[[], list[Check]],
    render: Callable[[Sequence[Check]], None],
    is_complete: Callable[[Sequence[Check]], Completion],
    time: Time,
    poll_interval: float,
    timeout_minutes: float,
    on_iteration: Callable[[], None] | None = None,
) -> PollOutcome:
    """Fetch and render checks every poll_interval seconds until they finish.

    The deadline is checked before every fetch. A fetch that raises
    RuntimeError is logged and retried on the next iteration.

    Args:
        fetch: Returns the current checks
        render: Displays the current checks
        is_complete: Decides completion and success
        time: Time gateway providing sleep() and now()
        poll_interval: Seconds between fetches
        timeout_minutes: Total time allowed
        on_iteration: Called after every successful fetch and render
    """
    deadline = time.now() + timedelta(minutes=timeout_minutes)
    checks: list[Check] = []

    while True:
        if time.now() >= deadline:
            return PollOutcome(
                success=False, timed_out=True, message=TIMEOUT_MESSAGE, checks=tuple(checks)
            )

        try:
            checks = fetch()
        except RuntimeError as e:
            logger.warning("Fetching checks failed, retrying in %ss: %s", poll_interval, e)
            time.sleep(poll_interval)
            continue

        render(checks)
        if on_iteration is not None:
            on_iteration()

        completion = is_complete(checks)
        if completion.complete:
            return PollOutcome(
                success=completion.success,
                timed_out=False,
                message=completion.message,
                checks=tuple(checks),
            )
        time.sleep(poll_interval)
