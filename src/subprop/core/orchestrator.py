"""Propagation of submodule updates through the dependency graph.

A run processes repositories leaf-first. For each repository the submodules
are pinned to the commits fixed so far, a review request is opened, and the
run waits for it to pass its checks and merge. The merged head then becomes
the commit every dependent pins. The first failure stops the run; persisted
state allows resuming where it stopped.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path

from rich.console import Group, RenderableType

from subprop.core.check_poller import (
    build_checks_table,
    evaluate_checks,
    poll_until_complete,
    summarize_checks,
)
from subprop.core.context import PropagateContext
from subprop.core.errors import BaselineSnapshotError, GraphBuildError, StateNotFoundError
from subprop.core.local_update import NewerUpstreamCommit, update_local_repository
from subprop.core.order_cache import CachedOrder, resolve_processing_order
from subprop.core.repo_ref import RepoRef
from subprop.core.state import (
    FINISHED_STATUSES,
    PropagationState,
    load_propagation_state,
    save_propagation_state,
    state_path_for,
)
from subprop.core.status_tracker import RepoStatusTracker
from subprop_shared.gateway.review_host.abc import ReviewHost
from subprop_shared.gateway.review_host.types import Check, UnsupportedHostError
from subprop_shared.output.output import user_output

logger = logging.getLogger(__name__)


def default_branch_name(now: datetime) -> str:
    return f"new_deps_{now:%Y%m%d_%H%M%S}"


@dataclass(frozen=True)
class PropagationSettings:
    """Per-run options, resolved from config and command-line flags."""

    work_dir: Path
    ignore: frozenset[str]
    poll_interval: float
    timeout_minutes: float
    close_failed: bool
    commit_message: str
    use_cache: bool = True


@dataclass(frozen=True)
class RepoStepError:
    """Why processing a repository stopped.

    Attributes:
        repo_name: Repository being processed
        message: Failure detail shown in the status table
    """

    repo_name: str
    message: str


@dataclass(frozen=True)
class PropagationResult:
    """Outcome of a run.

    Attributes:
        success: True if no repository failed
        state_path: Where the run's state is persisted
        newer_upstream: Submodules pinned behind their upstream head
    """

    success: bool
    state_path: Path
    newer_upstream: tuple[NewerUpstreamCommit, ...]


class PropagationOrchestrator:
    """Drives one propagation run, started fresh or resumed from persisted state."""

    def __init__(
        self,
        ctx: PropagateContext,
        settings: PropagationSettings,
        *,
        tracker: RepoStatusTracker | None = None,
    ) -> None:
        self._ctx = ctx
        self._settings = settings
        self._tracker = tracker if tracker is not None else RepoStatusTracker(ctx.console)

        self._state: PropagationState | None = None
        self._state_path: Path | None = None
        self._fixed_commits: dict[str, str] = {}
        self._newer_upstream: list[NewerUpstreamCommit] = []
        self._checks_view: RenderableType | None = None

    @property
    def tracker(self) -> RepoStatusTracker:
        return self._tracker

    def start(
        self,
        roots: Sequence[RepoRef],
        *,
        branch_name: str,
        work_item: str | None,
    ) -> PropagationResult:
        """Discover the processing order for roots and process every repository.

        Raises:
            GraphBuildError: If discovering the submodule graph fails
            DependencyCycleError: If the submodule graph contains a cycle
            BaselineSnapshotError: If a repository's starting commit cannot be read
        """
        run_dir = self._settings.work_dir / branch_name
        try:
            order = resolve_processing_order(
                self._ctx.git,
                self._ctx.order_cache,
                roots=roots,
                ignore=self._settings.ignore,
                clone_root=run_dir,
                use_cache=self._settings.use_cache,
            )
        except RuntimeError as e:
            raise GraphBuildError(f"Could not discover the submodule graph: {e}") from e

        fixed_commits = self._snapshot_heads(order)
        self._tracker.initialize(order.repo_order)

        state = PropagationState(
            branch_name=branch_name,
            repo_order=order.repo_order,
            repo_urls=dict(order.repo_urls),
            fixed_commits=fixed_commits,
            repo_statuses=self._tracker.statuses(),
            root_list=tuple(root.url for root in roots),
            associated_work_item=work_item,
            ignored=tuple(sorted(self._settings.ignore | set(order.excluded))),
        )
        state_path = state_path_for(self._settings.work_dir, branch_name)
        save_propagation_state(state_path, state)
        user_output(f"Processing {len(order.repo_order)} repositories on branch {branch_name}")
        return self._run(state, state_path)

    def resume(self, state_path: Path) -> PropagationResult:
        """Continue the run persisted at state_path.

        Updated and skipped repositories are passed over; every other
        repository is processed again from the start.

        Raises:
            StateNotFoundError: If state_path holds no usable state
        """
        state = load_propagation_state(state_path)
        if state is None:
            raise StateNotFoundError(f"No resumable propagation state at {state_path}")

        self._tracker.restore(state.repo_order, state.repo_statuses)
        user_output(f"Resuming propagation on branch {state.branch_name}")
        return self._run(state, state_path)

    def _snapshot_heads(self, order: CachedOrder) -> dict[str, str]:
        fixed_commits: dict[str, str] = {}
        for name in order.repo_order:
            try:
                fixed_commits[name] = self._ctx.git.get_remote_head_commit(order.repo_urls[name])
            except RuntimeError as e:
                raise BaselineSnapshotError(
                    f"Could not read the default branch head of {name}: {e}"
                ) from e
        return fixed_commits

    def _run(self, state: PropagationState, state_path: Path) -> PropagationResult:
        self._state = state
        self._state_path = state_path
        self._fixed_commits = dict(state.fixed_commits)
        self._newer_upstream = []

        error: RepoStepError | None = None
        self._ctx.live_display.start()
        try:
            self._refresh_display()
            for name in state.repo_order:
                if self._tracker.get(name).status in FINISHED_STATUSES:
                    logger.debug("Skipping %s, already %s", name, self._tracker.get(name).status)
                    continue
                error = self._process_repo(name)
                self._save()
                if error is not None:
                    break
        finally:
            self._ctx.live_display.stop()

        if error is not None:
            self._tracker.fail(error.message, close_review_request=self._closer_for(error))
            self._save()
            self._report_newer_upstream()
            return PropagationResult(
                success=False,
                state_path=state_path,
                newer_upstream=tuple(self._newer_upstream),
            )

        success = self._tracker.render(final=True)
        self._report_newer_upstream()
        return PropagationResult(
            success=success,
            state_path=state_path,
            newer_upstream=tuple(self._newer_upstream),
        )

    def _process_repo(self, name: str) -> RepoStepError | None:
        assert self._state is not None
        state = self._state
        repo = RepoRef(name=name, url=state.repo_urls[name])
        self._checks_view = None
        self._tracker.set_status(name, "in-progress", "Updating submodules")
        self._refresh_display()

        try:
            update = update_local_repository(
                self._ctx.git,
                repo=repo,
                fixed_commits=self._fixed_commits,
                ignore=self._settings.ignore | frozenset(state.ignored),
                branch_name=state.branch_name,
                commit_message=self._settings.commit_message,
                clone_root=self._run_dir(),
            )
        except RuntimeError as e:
            return RepoStepError(repo_name=name, message=f"Local update failed: {e}")
        self._newer_upstream.extend(update.newer_upstream)

        if not update.committed:
            self._tracker.set_status(name, "skipped", "No submodule changes")
            self._refresh_display()
            return None

        try:
            host = self._ctx.review_hosts.for_url(repo.url)
        except UnsupportedHostError as e:
            return RepoStepError(repo_name=name, message=str(e))

        try:
            request_url = host.open_review_request(
                update.repo_root,
                repo_url=repo.url,
                source_branch=state.branch_name,
                target_branch=update.default_branch,
                title=self._settings.commit_message,
                body=_review_body(update.pinned_commits),
                work_item=state.associated_work_item,
            )
        except RuntimeError as e:
            return RepoStepError(repo_name=name, message=f"Opening review request failed: {e}")

        self._tracker.set_status(name, "in-progress", "Waiting for checks", review_url=request_url)
        self._save()

        outcome = poll_until_complete(
            fetch=lambda: host.fetch_checks(request_url),
            render=lambda checks: self._render_checks(name, checks),
            is_complete=evaluate_checks,
            time=self._ctx.time,
            poll_interval=self._settings.poll_interval,
            timeout_minutes=self._settings.timeout_minutes,
            on_iteration=self._refresh_display,
        )
        if not outcome.success:
            return RepoStepError(repo_name=name, message=outcome.message)

        try:
            merged = host.get_merge_commit(request_url)
            if merged is None:
                merged = self._ctx.git.get_remote_head_commit(repo.url)
        except RuntimeError as e:
            return RepoStepError(repo_name=name, message=f"Reading merged commit failed: {e}")

        self._fixed_commits[name] = merged
        self._tracker.set_status(name, "updated", f"Merged as {merged[:12]}")
        self._refresh_display()
        return None

    def _closer_for(self, error: RepoStepError) -> Callable[[str], None] | None:
        if not self._settings.close_failed:
            return None
        assert self._state is not None
        host = self._host_or_none(self._state.repo_urls[error.repo_name])
        if host is None:
            return None
        return host.close_or_abandon

    def _host_or_none(self, repo_url: str) -> ReviewHost | None:
        try:
            return self._ctx.review_hosts.for_url(repo_url)
        except UnsupportedHostError:
            return None

    def _run_dir(self) -> Path:
        assert self._state_path is not None
        return self._state_path.parent

    def _save(self) -> None:
        assert self._state is not None and self._state_path is not None
        self._state = replace(
            self._state,
            fixed_commits=dict(self._fixed_commits),
            repo_statuses=self._tracker.statuses(),
        )
        save_propagation_state(self._state_path, self._state)

    def _render_checks(self, name: str, checks: Sequence[Check]) -> None:
        self._checks_view = Group(
            build_checks_table(checks, title=f"{name} checks"),
            summarize_checks(checks),
        )

    def _refresh_display(self) -> None:
        renderables: list[RenderableType] = [self._tracker.build_table()]
        if self._checks_view is not None:
            renderables.append(self._checks_view)
        self._ctx.live_display.update(Group(*renderables))

    def _report_newer_upstream(self) -> None:
        seen: set[tuple[str, str]] = set()
        lines: list[str] = []
        for item in self._newer_upstream:
            key = (item.submodule_name, item.upstream_commit)
            if key in seen:
                continue
            seen.add(key)
            lines.append(
                f"  {item.submodule_name}: pinned {item.pinned_commit[:12]}, "
                f"upstream {item.upstream_commit[:12]} (in {item.repo_name})"
            )
        if not lines:
            return
        user_output("Newer upstream commits exist than the ones pinned by this run:")
        for line in lines:
            user_output(line)


def _review_body(pinned_commits: dict[str, str]) -> str:
    lines = ["Pins submodules to:", ""]
    lines.extend(f"- {name}: {commit}" for name, commit in sorted(pinned_commits.items()))
    return "\n".join(lines)
