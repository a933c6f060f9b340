"""Pinning the submodules of one repository and pushing the result."""

import logging
from dataclasses import dataclass
from pathlib import Path

from subprop.core.graph import ensure_local_clone, read_submodule_manifest
from subprop.core.repo_ref import RepoRef, repo_name_from_url, resolve_submodule_url
from subprop_shared.gateway.git.abc import Git

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewerUpstreamCommit:
    """A submodule whose default branch moved past the commit it was pinned to.

    Attributes:
        repo_name: Repository containing the submodule
        submodule_name: Repository name of the submodule
        pinned_commit: Commit the submodule was pinned to
        upstream_commit: Current head of the submodule's default branch
    """

    repo_name: str
    submodule_name: str
    pinned_commit: str
    upstream_commit: str


@dataclass(frozen=True)
class LocalUpdateResult:
    """Outcome of updating one repository locally.

    Attributes:
        committed: Whether a commit was created and pushed
        default_branch: Branch the topic branch was created from
        repo_root: Local clone of the repository
        pinned_commits: Submodule name -> commit it was checked out at
        newer_upstream: Submodules pinned behind their upstream head
    """

    committed: bool
    default_branch: str
    repo_root: Path
    pinned_commits: dict[str, str]
    newer_upstream: tuple[NewerUpstreamCommit, ...]


def update_local_repository(
    git: Git,
    *,
    repo: RepoRef,
    fixed_commits: dict[str, str],
    ignore: frozenset[str],
    branch_name: str,
    commit_message: str,
    clone_root: Path,
) -> LocalUpdateResult:
    """Pin every submodule of repo and push the change to branch_name.

    The repository is brought up to date with its default branch, each
    non-ignored submodule is checked out at its fixed commit (or at its
    upstream head when it has none), and the result is committed and force
    pushed to branch_name. Nothing is committed or pushed when no submodule
    pointer changed.

    Raises:
        RuntimeError: If any git operation fails
    """
    repo_root = ensure_local_clone(git, repo, clone_root)
    git.fetch(repo_root)
    default_branch = git.detect_default_branch(repo_root)
    git.checkout_branch(repo_root, default_branch)
    git.pull_branch(repo_root, "origin", default_branch)
    git.sync_submodules(repo_root)

    pinned_commits: dict[str, str] = {}
    newer_upstream: list[NewerUpstreamCommit] = []
    for submodule in read_submodule_manifest(git, repo_root):
        url = resolve_submodule_url(repo.url, submodule.url)
        name = repo_name_from_url(url)
        if name in ignore:
            logger.debug("Leaving ignored submodule %s of %s untouched", name, repo.name)
            continue

        checkout = repo_root / submodule.path
        if git.path_exists(checkout) and not git.path_exists(checkout / ".git"):
            logger.info("Re-initializing stale submodule %s in %s", submodule.path, repo.name)
            git.reinit_submodule(repo_root, submodule.path)

        upstream = git.get_remote_head_commit(url)
        pinned = fixed_commits.get(name)
        if pinned is None:
            target = upstream
        else:
            target = pinned
            if upstream != pinned:
                newer_upstream.append(
                    NewerUpstreamCommit(
                        repo_name=repo.name,
                        submodule_name=name,
                        pinned_commit=pinned,
                        upstream_commit=upstream,
                    )
                )
        git.checkout_commit(checkout, target)
        pinned_commits[name] = target

    git.create_or_reset_branch(repo_root, branch_name)
    git.add_all(repo_root)
    if not git.has_staged_changes(repo_root):
        logger.debug("No submodule changes in %s", repo.name)
        return LocalUpdateResult(
            committed=False,
            default_branch=default_branch,
            repo_root=repo_root,
            pinned_commits=pinned_commits,
            newer_upstream=tuple(newer_upstream),
        )

    git.commit(repo_root, commit_message)
    git.force_push(repo_root, "origin", branch_name)
    return LocalUpdateResult(
        committed=True,
        default_branch=default_branch,
        repo_root=repo_root,
        pinned_commits=pinned_commits,
        newer_upstream=tuple(newer_upstream),
    )
