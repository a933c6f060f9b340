"""Tests for pinning the submodules of a single repository."""

from pathlib import Path

import pytest

from subprop.core.local_update import NewerUpstreamCommit, update_local_repository
from subprop.core.repo_ref import RepoRef
from tests.test_utils.context_builders import graph_git, head, repo_url

CLONE_ROOT = Path("/work/run")
ROOT = CLONE_ROOT / "R"
R = RepoRef.from_url(repo_url("R"))


def _update(git, *, fixed_commits=None, ignore=frozenset()):
    return update_local_repository(
        git,
        repo=R,
        fixed_commits=fixed_commits or {},
        ignore=ignore,
        branch_name="new_deps_20250115_120000",
        commit_message="Update submodule dependencies",
        clone_root=CLONE_ROOT,
    )


def test_pins_fixed_commits_and_upstream_heads() -> None:
    git = graph_git({"R": ["A", "B"]})

    result = _update(git, fixed_commits={"A": "a-merged"})

    assert result.committed
    assert result.pinned_commits == {"A": "a-merged", "B": head("B")}
    assert git.checked_out_commits == [
        (ROOT / "deps/A", "a-merged"),
        (ROOT / "deps/B", head("B")),
    ]


def test_brings_default_branch_up_to_date_first() -> None:
    git = graph_git({"R": ["A"]}, default_branches={ROOT: "develop"})

    result = _update(git)

    assert result.default_branch == "develop"
    assert git.cloned == [(repo_url("R"), ROOT)]
    assert git.fetched == [ROOT]
    assert git.checked_out_branches == [(ROOT, "develop")]
    assert git.pulled == [(ROOT, "origin", "develop")]
    assert git.synced == [ROOT]


def test_commits_and_force_pushes_changes() -> None:
    git = graph_git({"R": ["A"]})

    _update(git)

    assert git.created_branches == [(ROOT, "new_deps_20250115_120000")]
    assert git.commits == [(ROOT, "Update submodule dependencies")]
    assert git.pushed_branches == [(ROOT, "origin", "new_deps_20250115_120000")]


def test_nothing_committed_when_pointers_are_unchanged() -> None:
    git = graph_git(
        {"R": ["A", "B"]},
        pinned_commits={ROOT / "deps/A": head("A"), ROOT / "deps/B": head("B")},
    )

    result = _update(git)

    assert not result.committed
    assert git.commits == []
    assert git.pushed_branches == []


def test_repository_without_submodules_is_not_committed() -> None:
    git = graph_git({"R": []})

    result = _update(git)

    assert not result.committed
    assert result.pinned_commits == {}


def test_ignored_submodules_are_left_untouched() -> None:
    git = graph_git({"R": ["A", "vendor"]})

    result = _update(git, ignore=frozenset({"vendor"}))

    assert "vendor" not in result.pinned_commits
    assert [path for path, _ in git.checked_out_commits] == [ROOT / "deps/A"]


def test_stale_submodule_checkout_is_reinitialized() -> None:
    git = graph_git({"R": ["A", "B"]}, stale_submodules={ROOT / "deps/B"})

    _update(git)

    assert git.reinitialized_submodules == [(ROOT, "deps/B")]


def test_reports_upstream_heads_newer_than_fixed_commits() -> None:
    git = graph_git({"R": ["A", "B"]})

    result = _update(git, fixed_commits={"A": "a-merged", "B": head("B")})

    assert result.newer_upstream == (
        NewerUpstreamCommit(
            repo_name="R",
            submodule_name="A",
            pinned_commit="a-merged",
            upstream_commit=head("A"),
        ),
    )


def test_existing_clone_is_reused() -> None:
    git = graph_git({"R": ["A"]}, existing_paths={ROOT})

    _update(git)

    assert git.cloned == []


def test_push_failure_propagates() -> None:
    git = graph_git({"R": ["A"]}, push_raises=RuntimeError("push rejected"))

    with pytest.raises(RuntimeError, match="push rejected"):
        _update(git)

    assert git.commits == [(ROOT, "Update submodule dependencies")]
