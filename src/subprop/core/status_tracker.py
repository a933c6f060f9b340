"""Per-repository status tracking and the run's status table."""

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace

from rich.console import Console
from rich.table import Table

from subprop.core.state import FINISHED_STATUSES, RepoStatus, RepoStatusValue

logger = logging.getLogger(__name__)

STATUS_SYMBOLS: dict[RepoStatusValue, str] = {
    "pending": "⏳",
    "in-progress": "🔄",
    "updated": "✅",
    "skipped": "⏭",
    "failed": "❌",
}

STATUS_STYLES: dict[RepoStatusValue, str] = {
    "pending": "dim",
    "in-progress": "yellow",
    "updated": "green",
    "skipped": "cyan",
    "failed": "red",
}


def build_status_table(
    repo_order: Sequence[str], statuses: Mapping[str, RepoStatus], *, title: str | None = None
) -> Table:
    """Render one row per repository in processing order."""
    table = Table(show_header=True, header_style="bold", title=title)
    table.add_column("repo", style="cyan", no_wrap=True)
    table.add_column("status", no_wrap=True)
    table.add_column("message")
    table.add_column("review request", no_wrap=True)

    for name in repo_order:
        repo_status = statuses.get(name, RepoStatus(status="pending"))
        style = STATUS_STYLES[repo_status.status]
        table.add_row(
            name,
            f"[{style}]{STATUS_SYMBOLS[repo_status.status]} {repo_status.status}[/{style}]",
            repo_status.message,
            repo_status.review_request_url or "-",
        )
    return table


def format_counts(counts: Mapping[RepoStatusValue, int]) -> str:
    return ", ".join(f"{count} {status}" for status, count in counts.items() if count)


class RepoStatusTracker:
    """Holds the status of every repository in a run and renders it.

    A repository becomes the active repository when it is set in-progress;
    fail() always applies to the active repository. The final table is
    printed at most once.
    """

    def __init__(self, console: Console) -> None:
        self._console = console
        self._order: tuple[str, ...] = ()
        self._statuses: dict[str, RepoStatus] = {}
        self._active_repo: str | None = None
        self._final_rendered = False
        self._failed = False

    def initialize(self, repo_order: Sequence[str]) -> None:
        """Start a fresh run with every repository pending."""
        self._order = tuple(repo_order)
        self._statuses = {name: RepoStatus(status="pending") for name in self._order}
        self._active_repo = None

    def restore(self, repo_order: Sequence[str], saved: Mapping[str, RepoStatus]) -> None:
        """Continue a persisted run.

        Only updated and skipped repositories keep their saved status; anything
        else, including a repository that was in progress when the run stopped,
        starts over as pending.
        """
        self._order = tuple(repo_order)
        self._statuses = {}
        for name in self._order:
            previous = saved.get(name)
            if previous is not None and previous.status in FINISHED_STATUSES:
                self._statuses[name] = previous
            else:
                self._statuses[name] = RepoStatus(status="pending")
        self._active_repo = None

    def set_status(
        self,
        name: str,
        status: RepoStatusValue,
        message: str = "",
        review_url: str | None = None,
    ) -> None:
        """Record a transition. A review URL, once set, is kept by later transitions."""
        previous = self._statuses.get(name, RepoStatus(status="pending"))
        self._statuses[name] = replace(
            previous,
            status=status,
            message=message,
            review_request_url=review_url or previous.review_request_url,
        )
        if status == "in-progress":
            self._active_repo = name
        elif self._active_repo == name:
            self._active_repo = None
        logger.debug("%s -> %s: %s", name, status, message)

    def get(self, name: str) -> RepoStatus:
        return self._statuses[name]

    @property
    def active_repo(self) -> str | None:
        return self._active_repo

    @property
    def repo_order(self) -> tuple[str, ...]:
        return self._order

    def statuses(self) -> dict[str, RepoStatus]:
        return dict(self._statuses)

    def counts(self) -> dict[RepoStatusValue, int]:
        counts: dict[RepoStatusValue, int] = {status: 0 for status in STATUS_SYMBOLS}
        for repo_status in self._statuses.values():
            counts[repo_status.status] += 1
        return counts

    def build_table(self) -> Table:
        return build_status_table(self._order, self._statuses)

    def render(self, final: bool) -> bool:
        """Print the status table.

        Returns:
            True if no repository has failed
        """
        success = self.counts()["failed"] == 0
        if final and self._final_rendered:
            return success

        self._console.print(self.build_table())
        if final:
            self._final_rendered = True
            self._console.print(format_counts(self.counts()))
        return success

    def fail(
        self,
        message: str,
        close_review_request: Callable[[str], None] | None = None,
    ) -> bool:
        """Mark the active repository failed and finish the run.

        Args:
            message: Failure detail shown for the repository
            close_review_request: Called with the repository's review request URL,
                if it has one. Errors it raises are logged.

        Returns:
            False, always
        """
        if self._failed:
            return False
        self._failed = True

        name = self._active_repo
        if name is not None:
            self.set_status(name, "failed", message)
            review_url = self._statuses[name].review_request_url
            if close_review_request is not None and review_url is not None:
                try:
                    close_review_request(review_url)
                except (RuntimeError, ValueError, OSError) as e:
                    logger.warning("Could not close review request %s: %s", review_url, e)
        else:
            logger.error("Propagation failed: %s", message)

        self.render(final=True)
        return False
