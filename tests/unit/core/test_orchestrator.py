"""End-to-end tests of propagation runs against fake gateways."""

from datetime import datetime
from pathlib import Path

import pytest

from subprop.core.errors import BaselineSnapshotError, DependencyCycleError, StateNotFoundError
from subprop.core.local_update import NewerUpstreamCommit
from subprop.core.orchestrator import PropagationOrchestrator, default_branch_name
from subprop.core.repo_ref import RepoRef
from subprop.core.state import RepoStatus, load_propagation_state
from subprop_shared.gateway.git.abc import SubmoduleInfo
from subprop_shared.gateway.git.fake import FakeGit
from subprop_shared.gateway.review_host.fake import FakeReviewHost
from subprop_shared.gateway.review_host.types import MERGE_CHECK_NAME, Check
from tests.test_utils.context_builders import (
    build_settings,
    build_test_context,
    graph_git,
    head,
    repo_url,
)

BRANCH = "new_deps_20250115_120000"

# R depends on A and B; A depends on C.
MANIFESTS = {"R": ["A", "B"], "A": ["C"]}


def _roots() -> list[RepoRef]:
    return [RepoRef.from_url(repo_url("R"))]


def _run_dir(tmp_path: Path) -> Path:
    return tmp_path / "runs" / BRANCH


def _start(tmp_path: Path, git: FakeGit, host: FakeReviewHost, **settings):
    ctx = build_test_context(tmp_path, git=git, host=host)
    orchestrator = PropagationOrchestrator(ctx, build_settings(tmp_path, **settings))
    result = orchestrator.start(_roots(), branch_name=BRANCH, work_item="1234")
    return orchestrator, result


def test_default_branch_name() -> None:
    assert default_branch_name(datetime(2025, 1, 15, 12, 0, 0)) == BRANCH


def test_propagates_merged_commits_to_dependents(tmp_path: Path) -> None:
    git = graph_git(MANIFESTS)
    host = FakeReviewHost(merge_commits={repo_url("A"): "a-merged"})

    orchestrator, result = _start(tmp_path, git, host)

    assert result.success
    assert orchestrator.tracker.repo_order == ("C", "A", "B", "R")
    assert orchestrator.tracker.get("C").status == "skipped"
    assert orchestrator.tracker.get("A").status == "updated"
    assert orchestrator.tracker.get("B").status == "skipped"
    assert orchestrator.tracker.get("R").status == "updated"
    assert host.opened_repo_urls == [repo_url("A"), repo_url("R")]

    r_root = _run_dir(tmp_path) / "R"
    assert (r_root / "deps/A", "a-merged") in git.checked_out_commits
    assert (r_root / "deps/B", head("B")) in git.checked_out_commits


def test_review_requests_describe_the_update(tmp_path: Path) -> None:
    git = graph_git(MANIFESTS)
    host = FakeReviewHost()

    _start(tmp_path, git, host, commit_message="Bump deps")

    request = host.opened[0]
    assert request.source_branch == BRANCH
    assert request.target_branch == "main"
    assert request.title == "Bump deps"
    assert request.work_item == "1234"
    assert f"- C: {head('C')}" in request.body


def test_merged_commit_falls_back_to_remote_head(tmp_path: Path) -> None:
    git = graph_git(MANIFESTS)
    host = FakeReviewHost()

    orchestrator, _ = _start(tmp_path, git, host)

    assert orchestrator.tracker.get("R").message == f"Merged as {head('R')[:12]}"


def test_reports_newer_upstream_commits(tmp_path: Path) -> None:
    git = graph_git(MANIFESTS)
    host = FakeReviewHost(merge_commits={repo_url("A"): "a-merged"})

    _, result = _start(tmp_path, git, host)

    assert result.newer_upstream == (
        NewerUpstreamCommit(
            repo_name="R",
            submodule_name="A",
            pinned_commit="a-merged",
            upstream_commit=head("A"),
        ),
    )


def test_persists_final_state(tmp_path: Path) -> None:
    git = graph_git(MANIFESTS)
    host = FakeReviewHost(merge_commits={repo_url("A"): "a-merged"})

    _, result = _start(tmp_path, git, host)

    state = load_propagation_state(result.state_path)
    assert state is not None
    assert result.state_path.parent == _run_dir(tmp_path)
    assert state.branch_name == BRANCH
    assert state.root_list == (repo_url("R"),)
    assert state.associated_work_item == "1234"
    assert state.fixed_commits["A"] == "a-merged"
    assert state.fixed_commits["C"] == head("C")
    assert state.repo_statuses["A"].review_request_url == "https://github.com/org/A/pull/1"
    assert {s.status for s in state.repo_statuses.values()} == {"updated", "skipped"}


def test_failed_checks_stop_the_run(tmp_path: Path) -> None:
    git = graph_git(MANIFESTS)
    open_request = [
        Check(name="build", status="failed"),
        Check(name=MERGE_CHECK_NAME, status="pending", is_blocking=True),
    ]
    host = FakeReviewHost(check_sequences={repo_url("A"): [open_request]})

    orchestrator, result = _start(tmp_path, git, host)

    assert not result.success
    assert orchestrator.tracker.get("A") == RepoStatus(
        status="failed",
        message="Failed: build",
        review_request_url="https://github.com/org/A/pull/1",
    )
    assert orchestrator.tracker.get("B").status == "pending"
    assert orchestrator.tracker.get("R").status == "pending"
    assert host.opened_repo_urls == [repo_url("A")]
    assert host.closed == []

    state = load_propagation_state(result.state_path)
    assert state is not None
    assert state.repo_statuses["A"].status == "failed"


def test_close_failed_closes_the_review_request(tmp_path: Path) -> None:
    git = graph_git(MANIFESTS)
    host = FakeReviewHost(check_sequences={repo_url("A"): [[Check(name="build", status="failed")]]})

    _, result = _start(tmp_path, git, host, close_failed=True)

    assert not result.success
    assert host.closed == ["https://github.com/org/A/pull/1"]


def test_checks_that_never_finish_time_out(tmp_path: Path) -> None:
    git = graph_git(MANIFESTS)
    host = FakeReviewHost(
        check_sequences={repo_url("A"): [[Check(name="build", status="running")]]}
    )

    orchestrator, result = _start(tmp_path, git, host, poll_interval=30.0, timeout_minutes=1.0)

    assert not result.success
    assert orchestrator.tracker.get("A").message == "Timeout"


def test_local_update_failure_is_reported(tmp_path: Path) -> None:
    git = graph_git(MANIFESTS, push_raises=RuntimeError("push rejected"))
    host = FakeReviewHost()

    orchestrator, result = _start(tmp_path, git, host)

    assert not result.success
    assert orchestrator.tracker.get("A").message == "Local update failed: push rejected"
    assert host.opened == []


def test_open_failure_is_reported(tmp_path: Path) -> None:
    git = graph_git(MANIFESTS)
    host = FakeReviewHost(open_raises=RuntimeError("gh pr create failed"))

    orchestrator, result = _start(tmp_path, git, host)

    assert not result.success
    assert orchestrator.tracker.get("A").message == (
        "Opening review request failed: gh pr create failed"
    )


def test_unsupported_host_fails_a_repository_with_changes(tmp_path: Path) -> None:
    url = "https://gitlab.com/org/R.git"
    git = FakeGit(
        remote_submodules={url: [SubmoduleInfo(name="A", path="deps/A", url=repo_url("A"))]},
        remote_heads={url: "r1", repo_url("A"): head("A")},
    )
    host = FakeReviewHost()
    ctx = build_test_context(tmp_path, git=git, host=host)
    orchestrator = PropagationOrchestrator(ctx, build_settings(tmp_path))

    result = orchestrator.start([RepoRef.from_url(url)], branch_name=BRANCH, work_item=None)

    assert not result.success
    assert orchestrator.tracker.get("A").status == "skipped"
    assert orchestrator.tracker.get("R").status == "failed"
    assert "gitlab.com" in orchestrator.tracker.get("R").message
    assert host.opened == []


def test_unchanged_repository_on_unsupported_host_is_skipped(tmp_path: Path) -> None:
    leaf_url = "https://gitlab.com/third-party/L.git"
    git = FakeGit(
        remote_submodules={
            repo_url("R"): [SubmoduleInfo(name="L", path="deps/L", url=leaf_url)],
        },
        remote_heads={repo_url("R"): head("R"), leaf_url: "l1"},
    )
    host = FakeReviewHost()
    ctx = build_test_context(tmp_path, git=git, host=host)
    orchestrator = PropagationOrchestrator(ctx, build_settings(tmp_path))

    result = orchestrator.start(_roots(), branch_name=BRANCH, work_item=None)

    assert result.success
    assert orchestrator.tracker.get("L").status == "skipped"
    assert orchestrator.tracker.get("R").status == "updated"
    assert host.opened_repo_urls == [repo_url("R")]


def test_resume_skips_finished_repositories(tmp_path: Path) -> None:
    failing = FakeReviewHost(
        check_sequences={repo_url("A"): [[Check(name="build", status="failed")]]}
    )
    _, first = _start(tmp_path, graph_git(MANIFESTS), failing)

    git = graph_git(MANIFESTS)
    host = FakeReviewHost(merge_commits={repo_url("A"): "a-merged"})
    ctx = build_test_context(tmp_path, git=git, host=host)
    orchestrator = PropagationOrchestrator(ctx, build_settings(tmp_path))
    result = orchestrator.resume(first.state_path)

    assert result.success
    assert orchestrator.tracker.get("C").status == "skipped"
    assert host.opened_repo_urls == [repo_url("A"), repo_url("R")]
    assert repo_url("C") not in git.cloned_urls


def test_resume_without_state(tmp_path: Path) -> None:
    ctx = build_test_context(tmp_path, git=FakeGit())
    orchestrator = PropagationOrchestrator(ctx, build_settings(tmp_path))

    with pytest.raises(StateNotFoundError):
        orchestrator.resume(tmp_path / "missing" / "propagation-state.json")


def test_unreadable_baseline_aborts_before_state_exists(tmp_path: Path) -> None:
    git = FakeGit()
    ctx = build_test_context(tmp_path, git=git)
    orchestrator = PropagationOrchestrator(ctx, build_settings(tmp_path))

    with pytest.raises(BaselineSnapshotError):
        orchestrator.start(_roots(), branch_name=BRANCH, work_item=None)

    assert not _run_dir(tmp_path).joinpath("propagation-state.json").exists()


def test_cycle_aborts_the_run(tmp_path: Path) -> None:
    git = graph_git({"R": ["A"], "A": ["B"], "B": ["A"]})
    ctx = build_test_context(tmp_path, git=git)
    orchestrator = PropagationOrchestrator(ctx, build_settings(tmp_path))

    with pytest.raises(DependencyCycleError):
        orchestrator.start(_roots(), branch_name=BRANCH, work_item=None)


def test_live_display_is_stopped_after_the_run(tmp_path: Path) -> None:
    git = graph_git(MANIFESTS)
    ctx = build_test_context(tmp_path, git=git)
    orchestrator = PropagationOrchestrator(ctx, build_settings(tmp_path))

    orchestrator.start(_roots(), branch_name=BRANCH, work_item=None)

    assert ctx.live_display.start_count == 1
    assert not ctx.live_display.is_active
    assert ctx.live_display.updates
